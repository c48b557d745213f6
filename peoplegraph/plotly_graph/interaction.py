"""
Zoom, pan, resize and tooltip state layered over a running simulation.

Screen coordinates are CSS pixels with the origin at the top-left of the
viewport; layout coordinates are the simulation's. A ZoomTransform maps
layout -> screen as ``screen = layout * k + (x, y)``.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from html import escape
from typing import Callable, List, Optional, Sequence, Tuple

from ..models import Node
from .scene import NodeElement, Scene

Point = Tuple[float, float]
Extent = Tuple[Point, Point]

SCALE_EXTENT = (0.5, 5.0)
EXTENT_MARGIN = 100.0
UNBOUNDED: Extent = ((-math.inf, -math.inf), (math.inf, math.inf))
PHOTO_PLACEHOLDER = "<small>No photo available.</small>"


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    def __post_init__(self):
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"viewport must have a positive size (got {self.width}x{self.height})")


@dataclass(frozen=True)
class ZoomTransform:
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def translate(self, x: float, y: float) -> "ZoomTransform":
        return ZoomTransform(self.x + self.k * x, self.y + self.k * y, self.k)

    def scale(self, k: float) -> "ZoomTransform":
        return ZoomTransform(self.x, self.y, self.k * k)

    def apply(self, point: Point) -> Point:
        return (point[0] * self.k + self.x, point[1] * self.k + self.y)

    def invert_x(self, x: float) -> float:
        return (x - self.x) / self.k

    def invert_y(self, y: float) -> float:
        return (y - self.y) / self.k

    def to_ranges(self, viewport: Viewport) -> Tuple[List[float], List[float]]:
        """Plotly axis ranges showing this transform; the y range runs top-down."""
        x_range = [self.invert_x(0), self.invert_x(viewport.width)]
        y_range = [self.invert_y(viewport.height), self.invert_y(0)]
        return x_range, y_range

    @classmethod
    def from_ranges(cls, x_range: Sequence[float], y_range: Sequence[float], viewport: Viewport) -> "ZoomTransform":
        x0, x1 = sorted(x_range)
        if not x1 > x0:
            raise ValueError("x range must not be empty")
        k = viewport.width / (x1 - x0)
        top = min(y_range)
        return cls(x=-x0 * k, y=-top * k, k=k)


IDENTITY = ZoomTransform()


class ZoomBehavior:
    """Clamps scale to ``scale_extent`` and keeps the viewport inside ``translate_extent``."""

    def __init__(self, scale_extent: Tuple[float, float] = SCALE_EXTENT, translate_extent: Extent = UNBOUNDED):
        lo, hi = scale_extent
        if not 0 < lo <= hi:
            raise ValueError(f"invalid scale extent: {scale_extent}")
        self.scale_extent = (lo, hi)
        self.translate_extent = translate_extent

    def clamp_scale(self, k: float) -> float:
        lo, hi = self.scale_extent
        return max(lo, min(hi, k))

    def constrain(self, transform: ZoomTransform, viewport: Viewport) -> ZoomTransform:
        k = self.clamp_scale(transform.k)
        if k != transform.k:
            # keep the layout point under the viewport center fixed
            cx, cy = viewport.width / 2, viewport.height / 2
            px, py = transform.invert_x(cx), transform.invert_y(cy)
            transform = ZoomTransform(cx - px * k, cy - py * k, k)

        (x0, y0), (x1, y1) = self.translate_extent
        dx0 = transform.invert_x(0) - x0
        dx1 = transform.invert_x(viewport.width) - x1
        dy0 = transform.invert_y(0) - y0
        dy1 = transform.invert_y(viewport.height) - y1
        return transform.translate(
            (dx0 + dx1) / 2 if dx1 > dx0 else (min(0, dx0) or max(0, dx1)),
            (dy0 + dy1) / 2 if dy1 > dy0 else (min(0, dy0) or max(0, dy1)),
        )


class ViewController:
    """
    Holds the current zoom transform plus the center ratios and scale used
    to re-apply it after a resize.
    """

    def __init__(
        self,
        scene: Scene,
        viewport: Viewport,
        is_settled: Callable[[], bool],
        zoom: Optional[ZoomBehavior] = None,
        margin: float = EXTENT_MARGIN,
    ):
        self.scene = scene
        self.viewport = viewport
        self.is_settled = is_settled
        self.zoom = zoom or ZoomBehavior()
        self.margin = margin
        self.center_x = 0.5
        self.center_y = 0.5
        self.scale = 1.0
        self.transform = IDENTITY
        self._listeners: List[Callable[[ZoomTransform], None]] = []

    def on_change(self, listener: Callable[[ZoomTransform], None]) -> None:
        self._listeners.append(listener)

    def initial_transform(self) -> ZoomTransform:
        return self.resize_transform()

    def resize_transform(self) -> ZoomTransform:
        return IDENTITY.translate(
            self.viewport.width * self.center_x,
            self.viewport.height * self.center_y,
        ).scale(self.scale)

    def handle_zoom(self, transform: ZoomTransform, constrain: bool = True) -> ZoomTransform:
        """
        Apply ``transform``. User gestures are constrained to the scale and
        translate extents; programmatic transforms (initial view, resize) only
        have their scale clamped.
        """
        if constrain:
            applied = self.zoom.constrain(transform, self.viewport)
        else:
            applied = ZoomTransform(transform.x, transform.y, self.zoom.clamp_scale(transform.k))
        self.center_x = applied.x / self.viewport.width
        self.center_y = applied.y / self.viewport.height
        self.scale = applied.k

        self.update_extent()
        self.transform = applied
        for listener in self._listeners:
            listener(applied)
        return applied

    def update_extent(self) -> None:
        width, height = self.viewport.width, self.viewport.height
        k, margin = self.scale, self.margin

        ext0 = (-(width + margin) / k, -(height + margin) / k)
        ext1 = ((width + margin) / k, (height + margin) / k)

        bbox = self.scene.bbox() if self.is_settled() else None
        if bbox is not None:
            box_width = (bbox[2] - bbox[0]) * k
            box_height = (bbox[3] - bbox[1]) * k
            ext0 = (-(width + box_width / 2 - margin) / k, -(height + box_height / 2 - margin) / k)
            ext1 = ((width + box_width / 2 - margin) / k, (height + box_height / 2 - margin) / k)

        self.zoom.translate_extent = (ext0, ext1)

    def resize(self, width: float, height: float) -> ZoomTransform:
        self.viewport = Viewport(width, height)
        return self.handle_zoom(self.resize_transform(), constrain=False)


@dataclass
class Tooltip:
    title: str = "Title"
    html: str = ""
    visible: bool = False
    top: Optional[float] = None
    left: Optional[float] = None
    node_id: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


def tooltip_html(node: Node) -> str:
    name = escape(node.name)
    if node.photo:
        photo = f'<img src="{escape(node.photo)}" alt="Photo of {name}">'
    else:
        photo = PHOTO_PLACEHOLDER
    return f"<p>Position:<br/>{escape(node.category or '')}</p>\n{photo}"


class TooltipController:
    def __init__(self, scene: Scene, view: ViewController):
        self.scene = scene
        self.view = view
        self.tooltip = Tooltip()
        self._element: Optional[NodeElement] = None
        view.on_change(lambda _transform: self.update_position())

    def hover_enter(self, node_id: str) -> Tooltip:
        element = self.scene.node(node_id)
        self._element = element

        element.radius = self.scene.radius * 2
        element.label_visible = False

        self.tooltip.title = element.node.name
        self.tooltip.html = tooltip_html(element.node)
        self.tooltip.visible = True
        self.tooltip.node_id = node_id
        self.update_position()
        return self.tooltip

    def update_position(self) -> None:
        element = self._element
        if element is None or element.node.x is None or element.node.y is None:
            return
        t = self.view.transform
        left = t.x + t.k * (element.node.x - element.radius)
        top = t.y + t.k * (element.node.y - element.radius)
        offset = self.scene.radius * self.view.scale
        self.tooltip.top = top + offset * 2
        self.tooltip.left = left + offset * 4

    def hover_exit(self, node_id: str) -> Tooltip:
        element = self.scene.node(node_id)
        element.radius = self.scene.radius
        element.label_visible = True

        # a late exit for a node that is no longer hovered leaves the tooltip alone
        if node_id == self.tooltip.node_id:
            self.tooltip.visible = False
            self.tooltip.node_id = None
            self._element = None
        return self.tooltip
