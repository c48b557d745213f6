"""One-shot graph setup: scene, force simulation and interaction wiring."""
from __future__ import annotations

import logging
from typing import Optional

from plotly import graph_objects as go

from .models import Graph
from .plotly_graph.forces import Center, ForceSimulation, LinkForce, ManyBody
from .plotly_graph.interaction import Tooltip, TooltipController, ViewController, Viewport, ZoomTransform
from .plotly_graph import plotly_render
from .plotly_graph.scene import build_scene, drop_dangling_links

logger = logging.getLogger(__name__)

CHARGE_STRENGTH = -50.0
LINK_DISTANCE = 30.0
DEFAULT_VIEWPORT = Viewport(1280, 800)


class GraphView:
    """
    The rendered graph. Built once; afterwards only the simulation moves
    nodes and the interaction handlers adjust the view.
    """

    def __init__(self, graph: Graph, viewport: Viewport = DEFAULT_VIEWPORT, seed: Optional[int] = None):
        self.graph = graph
        self.scene = build_scene(graph)
        self.frames = 0
        self.simulation_complete = False

        self.view = ViewController(self.scene, viewport, is_settled=lambda: self.simulation_complete)
        self.tooltips = TooltipController(self.scene, self.view)

        self.simulation = (
            ForceSimulation(graph.nodes, seed=seed)
            .on("tick", self._ticked)
            .on("end", self._ended)
            .force("charge", ManyBody(strength=CHARGE_STRENGTH))
            .force("center", Center(0, 0))
            .force("link", LinkForce(graph.links, distance=LINK_DISTANCE))
        )

        self.view.handle_zoom(self.view.initial_transform(), constrain=False)

    def _ticked(self) -> None:
        self.frames += 1
        self.tooltips.update_position()

    def _ended(self) -> None:
        self.simulation_complete = True
        logger.info("Layout settled after %d ticks", self.simulation.ticks)

    @property
    def viewport(self) -> Viewport:
        return self.view.viewport

    @property
    def tooltip(self) -> Tooltip:
        return self.tooltips.tooltip

    def view_state(self) -> dict:
        return {
            "relayout": plotly_render.axis_ranges(self.view.transform, self.viewport),
            "scale": self.view.scale,
            "tooltip": self.tooltip.as_dict(),
        }

    def zoom(self, transform: ZoomTransform) -> dict:
        self.view.handle_zoom(transform)
        return self.view_state()

    def zoom_to_ranges(self, x_range, y_range, width: float, height: float) -> dict:
        viewport = Viewport(width, height)
        if viewport != self.viewport:
            self.view.viewport = viewport
        return self.zoom(ZoomTransform.from_ranges(x_range, y_range, viewport))

    def resize(self, width: float, height: float) -> dict:
        self.tooltips.update_position()
        self.view.resize(width, height)
        return self.view_state()

    def hover_enter(self, node_id: str) -> dict:
        self.tooltips.hover_enter(node_id)
        return {"style": plotly_render.node_style(self.scene), "tooltip": self.tooltip.as_dict()}

    def hover_exit(self, node_id: str) -> dict:
        self.tooltips.hover_exit(node_id)
        return {"style": plotly_render.node_style(self.scene), "tooltip": self.tooltip.as_dict()}

    def frame(self) -> dict:
        return {
            "frame": self.frames,
            "simulation_complete": self.simulation_complete,
            "data": plotly_render.frame(self.scene),
            "tooltip": self.tooltip.as_dict(),
        }

    def figure(self) -> go.Figure:
        return plotly_render.build_plotly_figure(self.scene, self.view.transform, self.viewport)


def plot_graph(
    graph: Graph,
    viewport: Optional[Viewport] = None,
    seed: Optional[int] = None,
) -> GraphView:
    """Build the view over the fully loaded graph. Links with missing endpoints are dropped first."""
    graph.links = drop_dangling_links(graph)
    logger.info("Plotting %d people and %d relationships", len(graph.nodes), len(graph.links))
    return GraphView(graph, viewport or DEFAULT_VIEWPORT, seed=seed)
