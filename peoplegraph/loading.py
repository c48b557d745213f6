"""Readiness latch: run the renderer once the document and both collections are loaded."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_KEYS = ("document", "nodes", "links")
DEFAULT_INDICATORS = {"nodes": "#nodes-loading", "links": "#links-loading"}


class LoadingCoordinator:
    """
    Counts down a fixed set of readiness keys and fires ``on_ready`` exactly once.

    Each key may own a loading-indicator selector; the indicator is hidden as
    soon as its key is ready.
    """

    def __init__(
        self,
        on_ready: Callable[[], None],
        keys: Iterable[str] = DEFAULT_KEYS,
        indicators: Optional[Mapping[str, str]] = None,
    ):
        self._on_ready = on_ready
        self.loaded: Dict[str, bool] = {k: False for k in keys}
        if not self.loaded:
            raise ValueError("at least one readiness key is required")
        self.indicators: Dict[str, str] = dict(DEFAULT_INDICATORS if indicators is None else indicators)
        unknown = set(self.indicators) - set(self.loaded)
        if unknown:
            raise ValueError(f"indicators for unknown keys: {sorted(unknown)}")
        self.hidden: List[str] = []
        self.alerts: List[str] = []
        self.fired = False

    @property
    def ready(self) -> bool:
        return all(self.loaded.values())

    def update_loading(self, completed: str) -> None:
        if completed not in self.loaded:
            raise KeyError(completed)
        self.loaded[completed] = True
        logger.debug("Loaded %s (%s)", completed, self.loaded)

        for key, selector in self.indicators.items():
            if self.loaded[key] and selector not in self.hidden:
                self.hidden.append(selector)

        if self.ready and not self.fired:
            self.fired = True
            logger.info("All inputs ready; rendering graph")
            self._on_ready()

    def report_error(self, key: str, error: object) -> None:
        """Record a user-facing alert; ``key`` stays not-loaded so rendering stays blocked."""
        if key not in self.loaded:
            raise KeyError(key)
        self.alerts.append(str(error))

    def status(self) -> dict:
        return {
            "loaded": dict(self.loaded),
            "hidden": list(self.hidden),
            "alerts": list(self.alerts),
            "rendered": self.fired,
        }
