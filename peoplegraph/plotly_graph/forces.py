"""
Force-directed layout following d3-force semantics.

Positions and velocities live on the Node objects. Each tick gathers them into
numpy arrays, lets every registered force adjust them, integrates velocity
into position and writes the result back.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ..models import Link, Node

logger = logging.getLogger(__name__)

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


@dataclass
class Bodies:
    x: np.ndarray
    y: np.ndarray
    vx: np.ndarray
    vy: np.ndarray

    @classmethod
    def gather(cls, nodes: Sequence[Node]) -> "Bodies":
        return cls(
            x=np.array([n.x for n in nodes], dtype=float),
            y=np.array([n.y for n in nodes], dtype=float),
            vx=np.array([n.vx for n in nodes], dtype=float),
            vy=np.array([n.vy for n in nodes], dtype=float),
        )

    def scatter(self, nodes: Sequence[Node]) -> None:
        for i, node in enumerate(nodes):
            node.x = float(self.x[i])
            node.y = float(self.y[i])
            node.vx = float(self.vx[i])
            node.vy = float(self.vy[i])


class Force:
    def initialize(self, nodes: List[Node], rng: np.random.Generator) -> None:
        self._rng = rng

    def jiggle(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6

    def __call__(self, alpha: float, bodies: Bodies) -> None:
        raise NotImplementedError


class ManyBody(Force):
    """Pairwise charge: negative strength repels, positive attracts."""

    def __init__(self, strength: float = -30.0, distance_min: float = 1.0, distance_max: float = math.inf):
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max

    def __call__(self, alpha: float, bodies: Bodies) -> None:
        n = len(bodies.x)
        if n < 2:
            return
        dx = bodies.x[None, :] - bodies.x[:, None]
        dy = bodies.y[None, :] - bodies.y[:, None]
        others = ~np.eye(n, dtype=bool)

        coincident = others & (dx == 0) & (dy == 0)
        if coincident.any():
            count = int(coincident.sum())
            dx[coincident] = (self._rng.random(count) - 0.5) * 1e-6
            dy[coincident] = (self._rng.random(count) - 0.5) * 1e-6

        l = dx * dx + dy * dy
        l = np.where(l < self.distance_min2, np.sqrt(self.distance_min2 * l), l)
        in_range = others & (l < self.distance_max2)
        w = np.where(in_range, self.strength * alpha / np.where(in_range, l, 1.0), 0.0)
        bodies.vx += (dx * w).sum(axis=1)
        bodies.vy += (dy * w).sum(axis=1)


class Center(Force):
    """Translates all nodes so their mean position sits on (x, y)."""

    def __init__(self, x: float = 0.0, y: float = 0.0):
        self.x = x
        self.y = y

    def __call__(self, alpha: float, bodies: Bodies) -> None:
        if len(bodies.x) == 0:
            return
        bodies.x -= bodies.x.mean() - self.x
        bodies.y -= bodies.y.mean() - self.y


class LinkForce(Force):
    """
    Spring towards a fixed distance along each link.

    On initialize, link endpoints given as ids are replaced in place with the
    matching Node objects. Strength defaults to 1 / min(degree) and the
    correction is split between endpoints in proportion to their degree.
    """

    def __init__(
        self,
        links: List[Link],
        distance: float = 30.0,
        iterations: int = 1,
        id: Callable[[Node], str] = lambda node: node.id,
    ):
        self.links = links
        self.distance = distance
        self.iterations = iterations
        self.id = id

    def initialize(self, nodes: List[Node], rng: np.random.Generator) -> None:
        super().initialize(nodes, rng)
        by_id = {self.id(node): node for node in nodes}

        def find(endpoint) -> Node:
            if isinstance(endpoint, Node):
                return endpoint
            node = by_id.get(endpoint)
            if node is None:
                raise ValueError(f"node not found: {endpoint}")
            return node

        count = np.zeros(len(nodes))
        for i, link in enumerate(self.links):
            link.index = i
            link.source = find(link.source)
            link.target = find(link.target)
            count[link.source.index] += 1
            count[link.target.index] += 1

        self._source = np.array([link.source.index for link in self.links], dtype=int)
        self._target = np.array([link.target.index for link in self.links], dtype=int)
        if len(self.links):
            src_count = count[self._source]
            tgt_count = count[self._target]
            self._bias = src_count / (src_count + tgt_count)
            self._strength = 1.0 / np.minimum(src_count, tgt_count)
        else:
            self._bias = np.zeros(0)
            self._strength = np.zeros(0)

    def __call__(self, alpha: float, bodies: Bodies) -> None:
        for _ in range(self.iterations):
            for i in range(len(self.links)):
                s = self._source[i]
                t = self._target[i]
                x = bodies.x[t] + bodies.vx[t] - bodies.x[s] - bodies.vx[s]
                y = bodies.y[t] + bodies.vy[t] - bodies.y[s] - bodies.vy[s]
                if x == 0:
                    x = self.jiggle()
                if y == 0:
                    y = self.jiggle()
                l = math.hypot(x, y)
                l = (l - self.distance) / l * alpha * self._strength[i]
                x *= l
                y *= l
                bias = self._bias[i]
                bodies.vx[t] -= x * bias
                bodies.vy[t] -= y * bias
                bodies.vx[s] += x * (1 - bias)
                bodies.vy[s] += y * (1 - bias)


class ForceSimulation:
    """
    Iterative layout driven by a cooling ``alpha``.

    ``step()`` is one timer callback: tick, fire "tick" handlers, and once
    alpha falls below ``alpha_min`` stop and fire "end" handlers.
    """

    EVENTS = ("tick", "end")

    def __init__(
        self,
        nodes: List[Node],
        *,
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_decay: Optional[float] = None,
        alpha_target: float = 0.0,
        velocity_decay: float = 0.4,
        seed: Optional[int] = None,
    ):
        self.nodes = nodes
        self.alpha = alpha
        self.alpha_min = alpha_min
        self.alpha_decay = 1 - alpha_min ** (1 / 300) if alpha_decay is None else alpha_decay
        self.alpha_target = alpha_target
        self.velocity_decay = velocity_decay
        self.ticks = 0
        self.ended = False
        self._stopped = False
        self._rng = np.random.default_rng(seed)
        self._forces: Dict[str, Force] = {}
        self._handlers: Dict[str, List[Callable[[], None]]] = {e: [] for e in self.EVENTS}
        self._initialize_nodes()

    def _initialize_nodes(self) -> None:
        for i, node in enumerate(self.nodes):
            node.index = i
            if node.x is None or node.y is None:
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                node.x = radius * math.cos(angle)
                node.y = radius * math.sin(angle)
            if node.vx is None or node.vy is None:
                node.vx = 0.0
                node.vy = 0.0

    def force(self, name: str, force: Force) -> "ForceSimulation":
        force.initialize(self.nodes, self._rng)
        self._forces[name] = force
        return self

    def get_force(self, name: str) -> Optional[Force]:
        return self._forces.get(name)

    def on(self, event: str, handler: Callable[[], None]) -> "ForceSimulation":
        if event not in self._handlers:
            raise ValueError(f"unknown event: {event}")
        self._handlers[event].append(handler)
        return self

    def _emit(self, event: str) -> None:
        for handler in self._handlers[event]:
            handler()

    def tick(self, iterations: int = 1) -> "ForceSimulation":
        bodies = Bodies.gather(self.nodes)
        keep = 1 - self.velocity_decay
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
            for force in self._forces.values():
                force(self.alpha, bodies)
            bodies.vx *= keep
            bodies.vy *= keep
            bodies.x += bodies.vx
            bodies.y += bodies.vy
        bodies.scatter(self.nodes)
        self.ticks += iterations
        return self

    @property
    def running(self) -> bool:
        return not (self.ended or self._stopped)

    def step(self) -> bool:
        if not self.running:
            return False
        self.tick()
        self._emit("tick")
        if self.alpha < self.alpha_min:
            self.ended = True
            logger.debug("Simulation settled after %d ticks", self.ticks)
            self._emit("end")
            return False
        return True

    async def run(self, interval: float = 1 / 60) -> None:
        while self.step():
            await asyncio.sleep(interval)

    def run_to_end(self) -> None:
        while self.step():
            pass

    def stop(self) -> "ForceSimulation":
        self._stopped = True
        return self
