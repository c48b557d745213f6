"""Environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    airtable_api_key: str = ""
    airtable_base_id: str = ""
    airtable_endpoint_url: str = "https://api.airtable.com"
    request_timeout: float = 300.0
    people_table: str = "People"
    relationships_table: str = "Relationships"
    view: str = "Grid view"
    name_field: str = "Person"
    category_field: str = "Position"
    photo_field: str = "Photo"
    tick_interval: float = 1 / 60
    log_level: str = "INFO"


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "")
    if raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number (got {raw!r})") from None
    if value < 0:
        raise ValueError(f"{key} must not be negative (got {raw!r})")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from ``env`` (defaults to ``os.environ``)."""
    env = os.environ if env is None else env
    defaults = Settings()
    return Settings(
        airtable_api_key=env.get("AIRTABLE_API_KEY", ""),
        airtable_base_id=env.get("AIRTABLE_DB_ID", ""),
        airtable_endpoint_url=env.get("AIRTABLE_ENDPOINT_URL", defaults.airtable_endpoint_url).rstrip("/"),
        request_timeout=_float(env, "AIRTABLE_REQUEST_TIMEOUT", defaults.request_timeout),
        people_table=env.get("PEOPLE_TABLE", defaults.people_table),
        relationships_table=env.get("RELATIONSHIPS_TABLE", defaults.relationships_table),
        view=env.get("AIRTABLE_VIEW", defaults.view),
        name_field=env.get("NAME_FIELD", defaults.name_field),
        category_field=env.get("CATEGORY_FIELD", defaults.category_field),
        photo_field=env.get("PHOTO_FIELD", defaults.photo_field),
        tick_interval=_float(env, "SIMULATION_TICK_INTERVAL", defaults.tick_interval),
        log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
    )
