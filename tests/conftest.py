"""Shared fixtures for the people-graph test suite."""
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from peoplegraph.airtable import Airtable, Record
from peoplegraph.config import Settings
from peoplegraph.main import create_app
from peoplegraph.models import Graph, Link, Node


API_KEY = "key-test"
BASE_ID = "appTEST"


# ── Record builders ──

def person(rid, name, position=None, photo=None, **extra):
    fields = {"Person": name, **extra}
    if position is not None:
        fields["Position"] = position
    if photo is not None:
        fields["Photo"] = photo
    return {"id": rid, "createdTime": "2020-01-01T00:00:00.000Z", "fields": fields}


def relationship(rid, source=None, target=None, **extra):
    fields = dict(extra)
    if source is not None:
        fields["source"] = source
    if target is not None:
        fields["target"] = target
    return {"id": rid, "createdTime": "2020-01-01T00:00:00.000Z", "fields": fields}


PEOPLE_PAGES = [
    [
        person("recAda", "Ada Lovelace", "Mathematician"),
        person("recCharles", "Charles Babbage", "Engineer",
               photo=[{"url": "https://example.com/babbage.jpg", "filename": "babbage.jpg"}]),
    ],
    [person("recMary", "Mary Somerville", "Mathematician")],
]

RELATIONSHIP_PAGES = [
    [relationship("relAdaCharles", ["recAda"], ["recCharles"], Name="Collaborators")],
]


# ── Fake Airtable API ──

class FakeAirtable:
    """
    Serves canned pages per table. Page N carries offset "page-N+1" while
    more pages follow. ``failures`` maps a table to a (status, body) reply.
    """

    def __init__(self, tables, api_key=API_KEY):
        self.tables = tables
        self.api_key = api_key
        self.failures = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != f"Bearer {self.api_key}":
            return httpx.Response(401, json={"error": {"type": "AUTHENTICATION_REQUIRED",
                                                       "message": "Authentication required"}})
        _, version, base_id, table = request.url.path.split("/")
        if table in self.failures:
            status, body = self.failures[table]
            return httpx.Response(status, json=body)
        pages = self.tables.get(table)
        if version != "v0" or base_id != BASE_ID or pages is None:
            return httpx.Response(404, json={"error": "NOT_FOUND"})

        offset = request.url.params.get("offset")
        index = int(offset.split("-")[1]) if offset else 0
        body = {"records": pages[index]}
        if index + 1 < len(pages):
            body["offset"] = f"page-{index + 1}"
        return httpx.Response(200, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_for(self, table):
        return [r for r in self.requests if r.url.path.endswith("/" + table)]


@pytest.fixture
def fake_airtable():
    return FakeAirtable({"People": PEOPLE_PAGES, "Relationships": RELATIONSHIP_PAGES})


@pytest.fixture
def settings():
    return Settings(airtable_api_key=API_KEY, airtable_base_id=BASE_ID, tick_interval=0.0)


@pytest.fixture
def airtable(fake_airtable):
    return Airtable(API_KEY, transport=fake_airtable.transport, retry_initial_delay=0.0)


@pytest.fixture
def base(airtable):
    return airtable.base(BASE_ID)


# ── Graph fixtures ──

@pytest.fixture
def small_graph():
    """Three people, two relationships: ada-charles, charles-mary."""
    nodes = [
        Node(id="recAda", name="Ada Lovelace", category="Mathematician"),
        Node(id="recCharles", name="Charles Babbage", category="Engineer",
             photo="https://example.com/babbage.jpg"),
        Node(id="recMary", name="Mary Somerville", category="Mathematician"),
    ]
    links = [
        Link(id="rel1", source="recAda", target="recCharles"),
        Link(id="rel2", source="recCharles", target="recMary"),
    ]
    return Graph(nodes=nodes, links=links)


def record(data):
    return Record.from_json(data)


# ── FastAPI app fixtures ──

@pytest.fixture
def client(settings, fake_airtable):
    app = create_app(settings, transport=fake_airtable.transport, seed=7)
    with TestClient(app) as test_client:
        yield test_client


def wait_for(client, predicate, timeout=5.0):
    """Poll /status until ``predicate(status)`` holds; returns the last status."""
    deadline = time.monotonic() + timeout
    while True:
        status = client.get("/status").json()
        if predicate(status) or time.monotonic() > deadline:
            return status
        time.sleep(0.01)


@pytest.fixture
def rendered_client(client):
    """Client whose graph has loaded and rendered."""
    client.post("/ready", json={"width": 1000, "height": 800})
    status = wait_for(client, lambda s: s["rendered"])
    assert status["rendered"], status
    return client
