"""Async client for the Airtable records API.

Mirrors the callback contract of the official JavaScript client:

    base = Airtable(api_key).base(base_id)
    await base("People").select(view="Grid view").each_page(page, done)

``page(records, fetch_next_page)`` is called once per page and the next page
is only requested after the callback calls ``fetch_next_page()``. ``done(err)``
is called with ``None`` after the last page, or with an ``AirtableError``.
"""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT_URL = "https://api.airtable.com"
API_VERSION = "v0"
INITIAL_RETRY_DELAY_IF_RATE_LIMITED = 5.0
MAX_RETRY_DELAY_IF_RATE_LIMITED = 600.0

_STATUS_ERRORS: Dict[int, tuple[str, str]] = {
    401: ("AUTHENTICATION_REQUIRED", "You should provide valid api key to perform this operation"),
    403: ("NOT_AUTHORIZED", "You are not authorized to perform this operation"),
    404: ("NOT_FOUND", "Could not find what you are looking for"),
    413: ("REQUEST_TOO_LARGE", "Request body is too large"),
    422: ("INVALID_REQUEST_UNKNOWN", "The operation cannot be processed"),
    429: ("TOO_MANY_REQUESTS", "You have made too many requests in a short period of time. Please retry your request later"),
    500: ("SERVER_ERROR", "Try again. If the problem persists, contact support."),
    503: ("SERVICE_UNAVAILABLE", "The service is temporarily unavailable. Please retry shortly."),
}


class AirtableError(Exception):
    def __init__(self, error: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        text = f"{self.message}({self.error})"
        if self.status_code is not None:
            text += f"[Http code {self.status_code}]"
        return text


@dataclass(frozen=True)
class Record:
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    created_time: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Record":
        return cls(
            id=data["id"],
            fields=dict(data.get("fields") or {}),
            created_time=data.get("createdTime"),
        )


PageCallback = Callable[[List[Record], Callable[[], None]], None]
DoneCallback = Callable[[Optional[AirtableError]], None]


def _error_from_response(response: httpx.Response) -> AirtableError:
    status = response.status_code
    default_type, default_message = _STATUS_ERRORS.get(
        status, ("UNEXPECTED_ERROR", "An unexpected error occurred")
    )
    try:
        body = response.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return AirtableError(
            error.get("type") or default_type,
            error.get("message") or default_message,
            status,
        )
    if isinstance(error, str):
        return AirtableError(error, default_message, status)
    return AirtableError(default_type, default_message, status)


class Airtable:
    """Connection settings plus the shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        api_key: str = "",
        endpoint_url: str = DEFAULT_ENDPOINT_URL,
        request_timeout: float = 300.0,
        *,
        no_retry_if_rate_limited: bool = False,
        max_retries: int = 5,
        retry_initial_delay: float = INITIAL_RETRY_DELAY_IF_RATE_LIMITED,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.endpoint_url = endpoint_url.rstrip("/")
        self.no_retry_if_rate_limited = no_retry_if_rate_limited
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self._client = httpx.AsyncClient(
            base_url=self.endpoint_url,
            timeout=request_timeout,
            transport=transport,
        )

    def base(self, base_id: str) -> "Base":
        return Base(self, base_id)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "Airtable":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _backoff(self, attempt: int) -> float:
        clipped = min(MAX_RETRY_DELAY_IF_RATE_LIMITED, self.retry_initial_delay * 2 ** attempt)
        return random.random() * clipped

    async def get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise AirtableError("AUTHENTICATION_REQUIRED", "An API key is required to connect to Airtable")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        attempt = 0
        while True:
            try:
                response = await self._client.get(path, params=params, headers=headers)
            except httpx.HTTPError as exc:
                raise AirtableError(
                    "CONNECTION_ERROR", f"Error communicating with Airtable API: {exc}"
                ) from exc

            if response.status_code == 429 and not self.no_retry_if_rate_limited and attempt < self.max_retries:
                delay = self._backoff(attempt)
                attempt += 1
                logger.warning("Rate limited on %s; retry %d in %.2fs", path, attempt, delay)
                await asyncio.sleep(delay)
                continue

            if response.status_code >= 400:
                raise _error_from_response(response)

            try:
                return response.json()
            except ValueError as exc:
                raise AirtableError(
                    "UNEXPECTED_ERROR", "Could not parse the response from Airtable", response.status_code
                ) from exc


class Base:
    def __init__(self, airtable: Airtable, base_id: str):
        self.airtable = airtable
        self.id = base_id

    def table(self, name: str) -> "Table":
        return Table(self, name)

    def __call__(self, name: str) -> "Table":
        return self.table(name)


class Table:
    def __init__(self, base: Base, name: str):
        self.base = base
        self.name = name

    @property
    def path(self) -> str:
        return f"/{API_VERSION}/{quote(self.base.id, safe='')}/{quote(self.name, safe='')}"

    def select(
        self,
        view: Optional[str] = None,
        page_size: Optional[int] = None,
        fields: Optional[Sequence[str]] = None,
        max_records: Optional[int] = None,
        filter_by_formula: Optional[str] = None,
    ) -> "Query":
        params: Dict[str, Any] = {}
        if view:
            params["view"] = view
        if page_size is not None:
            if not 1 <= page_size <= 100:
                raise ValueError("page_size must be between 1 and 100")
            params["pageSize"] = page_size
        if fields:
            params["fields[]"] = list(fields)
        if max_records is not None:
            params["maxRecords"] = max_records
        if filter_by_formula:
            params["filterByFormula"] = filter_by_formula
        return Query(self, params)


class Query:
    def __init__(self, table: Table, params: Dict[str, Any]):
        self.table = table
        self.params = params

    async def each_page(self, page: PageCallback, done: DoneCallback) -> None:
        offset: Optional[str] = None
        page_number = 0
        while True:
            params = dict(self.params)
            if offset:
                params["offset"] = offset
            try:
                body = await self.table.base.airtable.get_json(self.table.path, params)
            except AirtableError as err:
                done(err)
                return

            records = [Record.from_json(r) for r in body.get("records", [])]
            page_number += 1
            logger.debug("%s: page %d with %d records", self.table.name, page_number, len(records))

            requested = False

            def fetch_next_page() -> None:
                nonlocal requested
                requested = True

            page(records, fetch_next_page)
            if not requested:
                return

            offset = body.get("offset")
            if not offset:
                done(None)
                return

    async def first_page(self) -> List[Record]:
        records: List[Record] = []
        errors: List[AirtableError] = []

        def page(batch: List[Record], fetch_next_page: Callable[[], None]) -> None:
            records.extend(batch)

        await self.each_page(page, lambda err: errors.append(err) if err else None)
        if errors:
            raise errors[0]
        return records

    async def all(self) -> List[Record]:
        records: List[Record] = []
        errors: List[AirtableError] = []

        def page(batch: List[Record], fetch_next_page: Callable[[], None]) -> None:
            records.extend(batch)
            fetch_next_page()

        await self.each_page(page, lambda err: errors.append(err) if err else None)
        if errors:
            raise errors[0]
        return records
