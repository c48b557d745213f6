from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

import httpx

from .airtable import Airtable
from .config import Settings, load_settings
from .fetcher import fetch_data
from .graph import GraphView, plot_graph
from .loading import LoadingCoordinator
from .models import Graph
from .plotly_graph.interaction import Viewport
from .plotly_graph.plotly_render import write_html

logger = logging.getLogger(__name__)


async def load_graph(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> tuple[Graph, LoadingCoordinator]:
    """Fetch both collections; the returned coordinator tells whether everything loaded."""
    graph = Graph()
    # the output file plays the part of the document, so only the collections are awaited
    coordinator = LoadingCoordinator(lambda: None, keys=("nodes", "links"))
    async with Airtable(
        settings.airtable_api_key,
        settings.airtable_endpoint_url,
        settings.request_timeout,
        transport=transport,
    ) as airtable:
        await fetch_data(airtable.base(settings.airtable_base_id), graph, coordinator, settings)
    return graph, coordinator


def snapshot(
    out_path: Path,
    settings: Settings,
    viewport: Viewport,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    seed: Optional[int] = None,
) -> GraphView:
    graph, coordinator = asyncio.run(load_graph(settings, transport))
    if not coordinator.ready:
        raise SystemExit("Loading failed: " + "; ".join(coordinator.alerts))

    view = plot_graph(graph, viewport, seed=seed)
    view.simulation.run_to_end()
    view.view.handle_zoom(view.view.initial_transform(), constrain=False)
    write_html(view.figure(), str(out_path))
    return view


def main(argv: Optional[Sequence[str]] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
    parser = argparse.ArgumentParser(prog="peoplegraph")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_p = sub.add_parser("serve", help="Serve the interactive graph")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)

    snap_p = sub.add_parser("snapshot", help="Write a standalone HTML file of the settled graph")
    snap_p.add_argument("out_path", help="Path of the HTML file to write")
    snap_p.add_argument("--width", type=float, default=1280)
    snap_p.add_argument("--height", type=float, default=800)
    snap_p.add_argument("--seed", type=int, default=None)

    args = parser.parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("peoplegraph.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
        return

    out_path = Path(args.out_path)
    view = snapshot(out_path, settings, Viewport(args.width, args.height), transport=transport, seed=args.seed)
    print(f"Snapshot written to {out_path}: {len(view.graph.nodes)} people, {len(view.graph.links)} relationships")


if __name__ == "__main__":
    main()
