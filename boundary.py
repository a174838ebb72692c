# boundary.py
"""
Static collision geometry of the coin vessel.

The vessel is drawn as a circle of radius R centred at (R, R). Coins collide
with the lower half of that circle, approximated by short static segments,
and with two vertical walls rising from its equator. The collision surface
sits a few percent outside the drawn circle so that settled coins, whose
hitboxes are smaller than their sprites, look flush with the circular mask.
"""
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from config import EngineConfig
from physics import PhysicsWorld


@dataclass(frozen=True)
class Segment:
    a: Tuple[float, float]
    b: Tuple[float, float]
    thickness: float


def arc_segments(config: EngineConfig) -> Tuple[Segment, ...]:
    """Lower hemisphere, left to right through the bottom (+y is down)."""
    r = config.container_radius
    # Segment centrelines sit half a thickness outside the inner surface.
    ring = config.inner_radius + config.wall_thickness / 2.0
    n = config.arc_segments
    points = [
        (r + math.cos(math.pi * i / n) * ring, r + math.sin(math.pi * i / n) * ring)
        for i in range(n + 1)
    ]
    return tuple(
        Segment(points[i], points[i + 1], config.wall_thickness) for i in range(n)
    )


def side_wall_segments(config: EngineConfig) -> Tuple[Segment, Segment]:
    r = config.container_radius
    offset = config.inner_radius + config.wall_thickness / 2.0
    top = r - config.side_wall_height
    left = Segment((r - offset, r), (r - offset, top), config.wall_thickness)
    right = Segment((r + offset, r), (r + offset, top), config.wall_thickness)
    return left, right


class BoundaryBuilder:
    """Adds the vessel to a PhysicsWorld. May run once per builder."""

    def __init__(self, config: EngineConfig):
        self.config = config
        self.segments: Tuple[Segment, ...] = ()
        self.handles: list = []

    @property
    def built(self) -> bool:
        return bool(self.handles)

    def build(self, world: PhysicsWorld) -> Tuple[Segment, ...]:
        if self.built:
            msg = "Boundary already built for this engine; it must be built exactly once."
            logging.critical(msg)
            raise RuntimeError(msg)

        self.segments = arc_segments(self.config) + side_wall_segments(self.config)
        for segment in self.segments:
            self.handles.append(world.add_segment(
                segment.a, segment.b, segment.thickness,
                self.config.wall_friction, self.config.wall_restitution,
            ))

        logging.info(
            f"Vessel boundary built: {self.config.arc_segments} arc segments + 2 side walls, "
            f"inner radius {self.config.inner_radius:.2f}px."
        )
        return self.segments

    def release(self, world: PhysicsWorld) -> None:
        for handle in self.handles:
            world.remove(handle)
        self.handles = []
