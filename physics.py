# physics.py
"""
Thin adapter over the pymunk physics space.

The rest of the simulator never touches pymunk directly: it adds segments and
circles, steps the world, and reads body state back as NumPy arrays, always
through the opaque handles returned here. Swapping the physics library means
rewriting this module only.
"""
import logging
from typing import Sequence, Tuple

import numpy as np
import pymunk

from config import EngineConfig

# --- Data Contracts ---
#
# class PhysicsWorld:
#   - add_segment(a, b, thickness, friction, restitution) -> handle
#       Adds a static segment. `thickness` is the full width of the segment.
#   - add_circle(position, radius, density, friction, restitution,
#                angular_velocity) -> handle
#       Adds a dynamic circle. Mass and moment derive from density.
#   - remove(handle) -> None
#   - step() -> None
#       Advances the world by config.timestep, split into config.substeps,
#       then zeroes the velocity of bodies slower than config.stiction_speed.
#   - positions(handles) -> np.ndarray (N, 2) float64
#   - velocities(handles) -> np.ndarray (N, 2) float64
#   - angles(handles) -> np.ndarray (N,) float64, radians
#   - Coordinates: screen space, +y points down, so gravity is +y.


class PhysicsWorld:
    def __init__(self, config: EngineConfig):
        """
        Creates an empty pymunk space set up from the engine configuration.

        Args:
            config (EngineConfig): Supplies gravity, damping, solver iterations,
                the fixed timestep and the number of substeps per step.
        """
        self.config = config
        self.space = pymunk.Space()
        self.space.gravity = (0.0, config.gravity)
        self.space.iterations = config.solver_iterations
        self.space.damping = config.damping
        self._substep_dt = config.timestep / config.substeps
        self._stiction_sq = config.stiction_speed ** 2

        logging.debug(
            f"PhysicsWorld created: gravity={config.gravity}, "
            f"dt={config.timestep:.4f}s x{config.substeps} substeps, "
            f"iterations={config.solver_iterations}, damping={config.damping}"
        )

    def add_segment(self, a: Tuple[float, float], b: Tuple[float, float],
                    thickness: float, friction: float, restitution: float) -> pymunk.Segment:
        """
        Adds a static wall segment from a to b.

        Args:
            a, b (Tuple[float, float]): End points in screen space.
            thickness (float): Full wall thickness; the segment radius is half of it.
            friction (float): Coulomb friction coefficient.
            restitution (float): Bounciness, stored as the shape's elasticity.

        Returns:
            pymunk.Segment: The handle to pass back to remove().
        """
        segment = pymunk.Segment(self.space.static_body, a, b, thickness / 2.0)
        segment.friction = friction
        segment.elasticity = restitution
        self.space.add(segment)
        return segment

    def add_circle(self, position: Tuple[float, float], radius: float, density: float,
                   friction: float, restitution: float, angular_velocity: float) -> pymunk.Circle:
        """
        Adds a dynamic circular body.

        Args:
            position (Tuple[float, float]): Initial centre in screen space.
            radius (float): Collision radius.
            density (float): Mass per unit area; mass and moment follow from it.
            friction (float): Coulomb friction coefficient.
            restitution (float): Bounciness, stored as the shape's elasticity.
            angular_velocity (float): Initial spin in rad/s.

        Returns:
            pymunk.Circle: The shape, whose body carries position and velocity.
        """
        body = pymunk.Body()
        body.position = position
        shape = pymunk.Circle(body, radius)
        shape.density = density
        shape.friction = friction
        shape.elasticity = restitution
        self.space.add(body, shape)
        # Mass is only known once the shape is in the space.
        body.angular_velocity = angular_velocity
        return shape

    def remove(self, handle) -> None:
        """Removes a shape returned by add_segment() or add_circle(), with its body if dynamic."""
        if handle.body is self.space.static_body:
            self.space.remove(handle)
        else:
            self.space.remove(handle.body, handle)

    def step(self) -> None:
        """
        Advances the world by one fixed timestep.

        The timestep is split into config.substeps equal pymunk steps. Bodies
        slower than config.stiction_speed are then brought to a full stop, so
        the pile can actually come to rest.
        """
        for _ in range(self.config.substeps):
            self.space.step(self._substep_dt)

        if self._stiction_sq > 0:
            for body in self.space.bodies:
                vx, vy = body.velocity
                if vx * vx + vy * vy < self._stiction_sq:
                    body.velocity = (0.0, 0.0)
                    body.angular_velocity = 0.0

    def positions(self, handles: Sequence[pymunk.Circle]) -> np.ndarray:
        """Body centres as an (N, 2) array, in the order of handles."""
        out = np.zeros((len(handles), 2), dtype=np.float64)
        for i, shape in enumerate(handles):
            out[i] = shape.body.position
        return out

    def velocities(self, handles: Sequence[pymunk.Circle]) -> np.ndarray:
        """Linear velocities as an (N, 2) array, in the order of handles."""
        out = np.zeros((len(handles), 2), dtype=np.float64)
        for i, shape in enumerate(handles):
            out[i] = shape.body.velocity
        return out

    def angles(self, handles: Sequence[pymunk.Circle]) -> np.ndarray:
        """Body angles in radians, unbounded."""
        return np.array([shape.body.angle for shape in handles], dtype=np.float64)

    @property
    def dynamic_count(self) -> int:
        return len(self.space.bodies)

    @property
    def static_count(self) -> int:
        return sum(1 for shape in self.space.shapes if shape.body is self.space.static_body)
