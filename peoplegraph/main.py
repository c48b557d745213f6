"""FastAPI app: serves the page and relays browser events to the rendered graph."""
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, Response

from . import schemas
from .airtable import Airtable
from .config import Settings, load_settings
from .fetcher import fetch_data
from .graph import GraphView, plot_graph
from .loading import LoadingCoordinator
from .models import Graph
from .plotly_graph.interaction import Viewport

logger = logging.getLogger(__name__)

WEB_DIR = Path(__file__).resolve().parent / "web"


class Session:
    """State of the single viewer: the graph being loaded, its readiness latch and the view once rendered."""

    def __init__(self, settings: Settings, seed: Optional[int] = None):
        self.settings = settings
        self.seed = seed
        self.graph = Graph()
        self.viewport: Optional[Viewport] = None
        self.view: Optional[GraphView] = None
        self.tasks: List[asyncio.Task] = []
        self.coordinator = LoadingCoordinator(self.render)

    def render(self) -> None:
        self.view = plot_graph(self.graph, self.viewport, seed=self.seed)
        task = asyncio.get_running_loop().create_task(
            self.view.simulation.run(self.settings.tick_interval)
        )
        self.tasks.append(task)

    def status(self) -> dict:
        return {
            **self.coordinator.status(),
            "simulation_complete": bool(self.view and self.view.simulation_complete),
        }

    async def close(self) -> None:
        for task in self.tasks:
            task.cancel()
        results = await asyncio.gather(*self.tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("Background task failed: %r", result)


def get_session(request: Request) -> Session:
    return request.app.state.session


def get_view(session: Session = Depends(get_session)) -> GraphView:
    if session.view is None:
        raise HTTPException(409, "Graph has not been rendered yet")
    return session.view


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    seed: Optional[int] = None,
) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = Session(settings, seed=seed)
        app.state.session = session
        airtable = Airtable(
            settings.airtable_api_key,
            settings.airtable_endpoint_url,
            settings.request_timeout,
            transport=transport,
        )
        base = airtable.base(settings.airtable_base_id)
        session.tasks.append(
            asyncio.create_task(fetch_data(base, session.graph, session.coordinator, settings))
        )
        try:
            yield
        finally:
            await session.close()
            await airtable.aclose()

    app = FastAPI(lifespan=lifespan)

    @app.get("/", include_in_schema=False)
    async def ui():
        return FileResponse(WEB_DIR / "index.html")

    @app.get("/web/app.js", include_in_schema=False)
    async def ui_js():
        return FileResponse(WEB_DIR / "app.js")

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.post("/ready", response_model=schemas.StatusOut)
    async def ready(body: schemas.ViewportIn, session: Session = Depends(get_session)):
        if session.viewport is None:
            session.viewport = Viewport(body.width, body.height)
        session.coordinator.update_loading("document")
        return session.status()

    @app.get("/status", response_model=schemas.StatusOut)
    async def status(session: Session = Depends(get_session)):
        return session.status()

    @app.get("/figure")
    async def figure(view: GraphView = Depends(get_view)):
        return Response(content=view.figure().to_json(), media_type="application/json")

    @app.get("/frame", response_model=schemas.FrameOut)
    async def frame(view: GraphView = Depends(get_view)):
        return view.frame()

    @app.post("/zoom", response_model=schemas.ViewOut)
    async def zoom(body: schemas.ZoomIn, view: GraphView = Depends(get_view)):
        return view.zoom_to_ranges(body.x_range, body.y_range, body.width, body.height)

    @app.post("/resize", response_model=schemas.ViewOut)
    async def resize(body: schemas.ViewportIn, view: GraphView = Depends(get_view)):
        return view.resize(body.width, body.height)

    @app.post("/nodes/{node_id}/hover", response_model=schemas.HoverOut)
    async def hover(node_id: str, view: GraphView = Depends(get_view)):
        try:
            return view.hover_enter(node_id)
        except KeyError:
            raise HTTPException(404, "Node not found")

    @app.post("/nodes/{node_id}/unhover", response_model=schemas.HoverOut)
    async def unhover(node_id: str, view: GraphView = Depends(get_view)):
        try:
            return view.hover_exit(node_id)
        except KeyError:
            raise HTTPException(404, "Node not found")

    @app.get("/tooltip", response_model=schemas.TooltipOut)
    async def tooltip(view: GraphView = Depends(get_view)):
        view.tooltips.update_position()
        return view.tooltip.as_dict()

    return app


app = create_app()
