"""Retained-mode scene: one visual element per node and link, keyed by id."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..models import Graph, Link, Node
from .colors import OrdinalColorScale

logger = logging.getLogger(__name__)

CIRCLE_RADIUS = 11.0


@dataclass
class NodeElement:
    node: Node
    color: str
    radius: float = CIRCLE_RADIUS
    label_visible: bool = True

    @property
    def label(self) -> str:
        return self.node.name


@dataclass
class LinkElement:
    link: Link


class Scene:
    def __init__(self, nodes: List[NodeElement], links: List[LinkElement], radius: float = CIRCLE_RADIUS):
        self.nodes = nodes
        self.links = links
        self.radius = radius
        self._by_id: Dict[str, NodeElement] = {el.node.id: el for el in nodes}

    def node(self, node_id: str) -> NodeElement:
        return self._by_id[node_id]

    def bbox(self) -> Optional[Tuple[float, float, float, float]]:
        """(min_x, min_y, max_x, max_y) of all node markers in layout coordinates."""
        placed = [el for el in self.nodes if el.node.x is not None and el.node.y is not None]
        if not placed:
            return None
        return (
            min(el.node.x - el.radius for el in placed),
            min(el.node.y - el.radius for el in placed),
            max(el.node.x + el.radius for el in placed),
            max(el.node.y + el.radius for el in placed),
        )


def drop_dangling_links(graph: Graph) -> List[Link]:
    """Links whose endpoints both exist; the rest are logged and skipped."""
    ids = graph.node_ids()
    kept: List[Link] = []
    for link in graph.links:
        if link.source_id in ids and link.target_id in ids:
            kept.append(link)
        else:
            logger.warning(
                "Skipping relationship %s: endpoint not found (source=%s, target=%s)",
                link.id, link.source_id, link.target_id,
            )
    return kept


def build_scene(
    graph: Graph,
    color_scale: Optional[OrdinalColorScale] = None,
    radius: float = CIRCLE_RADIUS,
) -> Scene:
    color_scale = color_scale or OrdinalColorScale()
    nodes = [NodeElement(node=n, color=color_scale(n.category), radius=radius) for n in graph.nodes]
    links = [LinkElement(link=l) for l in graph.links]
    return Scene(nodes, links, radius=radius)
