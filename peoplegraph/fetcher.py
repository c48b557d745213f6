"""Page People and Relationships into the shared graph."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .airtable import AirtableError, Base, Record
from .config import Settings
from .loading import LoadingCoordinator
from .models import Graph, Link, Node
from .normalize import first_or_none, normalize_photo, normalize_text

logger = logging.getLogger(__name__)

Alert = Callable[[str, AirtableError], None]


def transform_person(record: Record, settings: Optional[Settings] = None) -> Node:
    settings = settings or Settings()
    fields = {**record.fields, "id": record.id}
    return Node(
        id=record.id,
        name=normalize_text(fields.get(settings.name_field)) or "",
        category=normalize_text(fields.get(settings.category_field)),
        photo=normalize_photo(fields.get(settings.photo_field)),
        fields=fields,
    )


def transform_relationship(record: Record) -> Link:
    source = first_or_none(record.fields.get("source"))
    target = first_or_none(record.fields.get("target"))
    fields = {**record.fields, "source": source, "target": target, "id": record.id}
    return Link(id=record.id, source=source, target=target, fields=fields)


async def fetch_collection(
    base: Base,
    table_name: str,
    view: str,
    transform: Callable[[Record], object],
    graph: Graph,
    attr: str,
    coordinator: LoadingCoordinator,
    key: str,
    alert: Alert,
) -> None:
    """
    Page one table into ``graph.<attr>``.

    Every page replaces the list with old + new rather than appending in place,
    so a consumer holding the previous list never sees it change.
    """

    def page(records: List[Record], fetch_next_page: Callable[[], None]) -> None:
        setattr(graph, attr, [*getattr(graph, attr), *(transform(r) for r in records)])
        fetch_next_page()

    def done(err: Optional[AirtableError]) -> None:
        if err:
            logger.error("Loading %s failed: %s", table_name, err)
            alert(key, err)
            return
        logger.info("Loaded %d %s from %s", len(getattr(graph, attr)), attr, table_name)
        coordinator.update_loading(key)

    await base(table_name).select(view=view).each_page(page, done)


async def fetch_data(
    base: Base,
    graph: Graph,
    coordinator: LoadingCoordinator,
    settings: Settings,
    alert: Optional[Alert] = None,
) -> None:
    """Fetch both collections concurrently; each signals the coordinator independently."""
    alert = alert or coordinator.report_error
    await asyncio.gather(
        fetch_collection(
            base, settings.people_table, settings.view,
            lambda r: transform_person(r, settings),
            graph, "nodes", coordinator, "nodes", alert,
        ),
        fetch_collection(
            base, settings.relationships_table, settings.view,
            transform_relationship,
            graph, "links", coordinator, "links", alert,
        ),
    )
