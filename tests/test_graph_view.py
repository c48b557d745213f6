"""Tests for peoplegraph/graph.py."""
import asyncio

import pytest

from peoplegraph.graph import DEFAULT_VIEWPORT, plot_graph
from peoplegraph.models import Link, Node
from peoplegraph.plotly_graph.interaction import Viewport


@pytest.fixture
def view(small_graph):
    return plot_graph(small_graph, Viewport(1000, 800), seed=3)


class TestPlotGraph:
    def test_default_viewport(self, small_graph):
        assert plot_graph(small_graph).viewport == DEFAULT_VIEWPORT

    def test_initial_view(self, view):
        state = view.view_state()
        assert state["relayout"] == {"xaxis.range": [-500, 500], "yaxis.range": [400, -400]}
        assert state["scale"] == 1
        assert state["tooltip"]["visible"] is False

    def test_links_resolved_to_nodes(self, view, small_graph):
        link = view.graph.links[0]
        assert isinstance(link.source, Node)
        assert link.source is small_graph.nodes[0]

    def test_dangling_links_dropped(self, small_graph):
        small_graph.links.append(Link(id="rel3", source="recAda", target="recGhost"))
        view = plot_graph(small_graph)
        assert [l.id for l in view.graph.links] == ["rel1", "rel2"]

    def test_empty_graph(self):
        from peoplegraph.models import Graph

        view = plot_graph(Graph())
        view.simulation.run_to_end()
        assert view.simulation_complete
        assert view.frame()["data"] == {"x": [[], []], "y": [[], []]}


class TestFrames:
    def test_ticks_counted(self, view):
        view.simulation.step()
        view.simulation.step()
        frame = view.frame()
        assert frame["frame"] == 2
        assert not frame["simulation_complete"]
        assert len(frame["data"]["x"][1]) == 3

    def test_settles(self, view):
        asyncio.run(view.simulation.run(interval=0))
        assert view.simulation_complete
        assert view.frame()["simulation_complete"]
        assert view.frames == view.simulation.ticks


class TestInteraction:
    def test_hover_enter_and_exit(self, view):
        entered = view.hover_enter("recCharles")
        assert entered["style"]["marker.size"] == [22, 44, 22]
        assert entered["style"]["text"] == ["Ada Lovelace", "", "Mary Somerville"]
        assert entered["tooltip"]["title"] == "Charles Babbage"
        assert 'src="https://example.com/babbage.jpg"' in entered["tooltip"]["html"]

        exited = view.hover_exit("recCharles")
        assert exited["style"]["marker.size"] == [22, 22, 22]
        assert exited["tooltip"]["visible"] is False

    def test_hover_unknown(self, view):
        with pytest.raises(KeyError):
            view.hover_enter("nobody")

    def test_zoom_clamped(self, view):
        state = view.zoom_to_ranges([-5, 5], [4, -4], 1000, 800)
        assert state["scale"] == 5
        assert state["relayout"]["xaxis.range"] == [-100, 100]

    def test_zoom_adopts_viewport(self, view):
        view.zoom_to_ranges([-300, 300], [200, -200], 600, 400)
        assert view.viewport == Viewport(600, 400)
        assert view.view.scale == 1

    def test_resize(self, view):
        state = view.resize(500, 400)
        assert view.viewport == Viewport(500, 400)
        assert state["relayout"]["xaxis.range"] == [-250, 250]

    def test_tooltip_tracks_ticks(self, view):
        view.hover_enter("recAda")
        before = (view.tooltip.top, view.tooltip.left)
        view.simulation.tick(20)
        view.simulation.step()
        assert (view.tooltip.top, view.tooltip.left) != before

    def test_figure(self, view):
        fig = view.figure()
        assert len(fig.data) == 2
        assert list(fig.layout.xaxis.range) == [-500, 500]
