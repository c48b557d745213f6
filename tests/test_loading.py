"""Tests for peoplegraph/loading.py: the one-shot readiness latch."""
from itertools import permutations

import pytest

from peoplegraph.loading import LoadingCoordinator


@pytest.fixture
def calls():
    return []


@pytest.fixture
def coordinator(calls):
    return LoadingCoordinator(lambda: calls.append("render"))


class TestReadiness:
    @pytest.mark.parametrize("pair", [("document", "nodes"), ("document", "links"), ("nodes", "links")])
    def test_two_of_three_do_not_render(self, coordinator, calls, pair):
        for key in pair:
            coordinator.update_loading(key)
        assert calls == []
        assert not coordinator.ready

    @pytest.mark.parametrize("order", list(permutations(["document", "nodes", "links"])))
    def test_any_order_renders_once(self, calls, order):
        coordinator = LoadingCoordinator(lambda: calls.append("render"))
        for key in order:
            coordinator.update_loading(key)
        assert calls == ["render"]
        assert coordinator.fired

    def test_repeated_signals_do_not_rerender(self, coordinator, calls):
        for key in ["document", "nodes", "links", "links", "document", "nodes"]:
            coordinator.update_loading(key)
        assert calls == ["render"]

    def test_repeated_key_does_not_count_twice(self, coordinator, calls):
        coordinator.update_loading("nodes")
        coordinator.update_loading("nodes")
        coordinator.update_loading("nodes")
        assert calls == []

    def test_unknown_key(self, coordinator):
        with pytest.raises(KeyError):
            coordinator.update_loading("images")

    def test_custom_keys(self, calls):
        coordinator = LoadingCoordinator(lambda: calls.append("render"), keys=("nodes", "links"))
        coordinator.update_loading("links")
        coordinator.update_loading("nodes")
        assert calls == ["render"]

    def test_requires_keys(self):
        with pytest.raises(ValueError):
            LoadingCoordinator(lambda: None, keys=())


class TestIndicators:
    def test_hidden_as_keys_complete(self, coordinator):
        coordinator.update_loading("document")
        assert coordinator.hidden == []
        coordinator.update_loading("links")
        assert coordinator.hidden == ["#links-loading"]
        coordinator.update_loading("nodes")
        assert coordinator.hidden == ["#links-loading", "#nodes-loading"]

    def test_indicator_for_unknown_key(self):
        with pytest.raises(ValueError):
            LoadingCoordinator(lambda: None, keys=("nodes",), indicators={"links": "#links-loading"})


class TestErrors:
    def test_report_error_keeps_blocked(self, coordinator, calls):
        coordinator.update_loading("document")
        coordinator.update_loading("nodes")
        coordinator.report_error("links", RuntimeError("boom"))
        assert coordinator.alerts == ["boom"]
        assert calls == []
        assert "#links-loading" not in coordinator.hidden

    def test_status_snapshot(self, coordinator):
        coordinator.update_loading("nodes")
        status = coordinator.status()
        assert status == {
            "loaded": {"document": False, "nodes": True, "links": False},
            "hidden": ["#nodes-loading"],
            "alerts": [],
            "rendered": False,
        }
        status["hidden"].append("mutated")
        assert coordinator.hidden == ["#nodes-loading"]
