from __future__ import annotations
from typing import Dict, Hashable, List, Optional, Sequence

CATEGORY10 = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
]


class OrdinalColorScale:
    """Assigns palette colors to categories in order of first use, cycling when exhausted."""

    def __init__(self, palette: Optional[Sequence[str]] = None):
        self.palette: List[str] = list(palette or CATEGORY10)
        if not self.palette:
            raise ValueError("palette must not be empty")
        self._assigned: Dict[Hashable, str] = {}

    def __call__(self, category: Hashable) -> str:
        color = self._assigned.get(category)
        if color is None:
            color = self.palette[len(self._assigned) % len(self.palette)]
            self._assigned[category] = color
        return color

    @property
    def domain(self) -> List[Hashable]:
        return list(self._assigned)
