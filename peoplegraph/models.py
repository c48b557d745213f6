from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(eq=False)
class Node:
    """One person. Only the simulation state (index, x, y, vx, vy) changes after creation."""
    id: str
    name: str = ""
    category: Optional[str] = None
    photo: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    index: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    vx: Optional[float] = None
    vy: Optional[float] = None


Endpoint = Union[str, Node, None]


@dataclass(eq=False)
class Link:
    """One relationship. source/target hold node ids until the link force resolves them to nodes."""
    id: str
    source: Endpoint = None
    target: Endpoint = None
    fields: Dict[str, Any] = field(default_factory=dict)
    index: Optional[int] = None

    @staticmethod
    def endpoint_id(endpoint: Endpoint) -> Optional[str]:
        return endpoint.id if isinstance(endpoint, Node) else endpoint

    @property
    def source_id(self) -> Optional[str]:
        return self.endpoint_id(self.source)

    @property
    def target_id(self) -> Optional[str]:
        return self.endpoint_id(self.target)


@dataclass
class Graph:
    nodes: List[Node] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}
