from __future__ import annotations

from typing import Dict, List, Optional

from plotly import graph_objects as go

from ..models import Node
from .interaction import IDENTITY, Viewport, ZoomTransform
from .scene import Scene

EDGE_TRACE = 0
NODE_TRACE = 1
LABEL_OFFSET = "middle right"
PLOT_CONFIG = {"scrollZoom": True, "displayModeBar": False, "responsive": True}


def edge_coordinates(scene: Scene) -> tuple[list, list]:
    edge_x: list = []
    edge_y: list = []
    for el in scene.links:
        source, target = el.link.source, el.link.target
        # unresolved links are ids, not nodes, until the simulation starts
        if not isinstance(source, Node) or not isinstance(target, Node):
            continue
        edge_x += [source.x, target.x, None]
        edge_y += [source.y, target.y, None]
    return edge_x, edge_y


def node_coordinates(scene: Scene) -> tuple[list, list]:
    return [el.node.x for el in scene.nodes], [el.node.y for el in scene.nodes]


def node_style(scene: Scene) -> Dict[str, list]:
    """Per-node marker size (diameter) and label text; hidden labels are blank."""
    return {
        "marker.size": [el.radius * 2 for el in scene.nodes],
        "text": [el.label if el.label_visible else "" for el in scene.nodes],
    }


def frame(scene: Scene) -> Dict[str, list]:
    """Position update for Plotly.restyle over [EDGE_TRACE, NODE_TRACE]."""
    edge_x, edge_y = edge_coordinates(scene)
    node_x, node_y = node_coordinates(scene)
    return {"x": [edge_x, node_x], "y": [edge_y, node_y]}


def axis_ranges(transform: ZoomTransform, viewport: Viewport) -> Dict[str, List[float]]:
    x_range, y_range = transform.to_ranges(viewport)
    return {"xaxis.range": x_range, "yaxis.range": y_range}


def build_plotly_figure(
    scene: Scene,
    transform: ZoomTransform = IDENTITY,
    viewport: Optional[Viewport] = None,
) -> go.Figure:
    edge_x, edge_y = edge_coordinates(scene)
    edge_trace = go.Scatter(
        x=edge_x,
        y=edge_y,
        mode="lines",
        line=dict(width=1, color="#999"),
        hoverinfo="none",
        showlegend=False,
    )

    node_x, node_y = node_coordinates(scene)
    style = node_style(scene)
    node_trace = go.Scatter(
        x=node_x,
        y=node_y,
        mode="markers+text",
        text=style["text"],
        textposition=LABEL_OFFSET,
        textfont=dict(size=10),
        hoverinfo="none",
        customdata=[el.node.id for el in scene.nodes],
        marker=dict(
            size=style["marker.size"],
            sizemode="diameter",
            color=[el.color for el in scene.nodes],
            line=dict(width=1.5, color="#fff"),
        ),
        showlegend=False,
    )

    xaxis = dict(showgrid=False, zeroline=False, showticklabels=False, scaleanchor="y", scaleratio=1)
    yaxis = dict(showgrid=False, zeroline=False, showticklabels=False)
    if viewport is not None:
        x_range, y_range = transform.to_ranges(viewport)
        xaxis["range"] = x_range
        yaxis["range"] = y_range
    else:
        yaxis["autorange"] = "reversed"

    fig = go.Figure(data=[edge_trace, node_trace])
    fig.update_layout(
        showlegend=False,
        hovermode="closest",
        dragmode="pan",
        autosize=True,
        uirevision="graph",
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor="white",
        paper_bgcolor="white",
        xaxis=xaxis,
        yaxis=yaxis,
    )
    return fig


def write_html(fig: go.Figure, out_path: str) -> None:
    fig.write_html(out_path, include_plotlyjs="cdn", full_html=True, config=PLOT_CONFIG)
