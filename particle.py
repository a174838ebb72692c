# particle.py
"""
Coins and where they come from.

This module defines the Particle record, the ParticleArena that maps stable
particle ids to physics handles, and the ParticleFactory that drops new coins
into the vessel. The reconciler and projector only ever see Particles; the
physics handle inside each one is opaque to them.
"""
import itertools
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional

import numpy as np

from boundary import BoundaryBuilder
from config import EngineConfig
from physics import PhysicsWorld
from variants import Variant, sample_variant

# --- Data Contracts ---
#
# class ParticleArena:
#   - add(particle) / pop_newest() -> Particle / release_all()
#   - Invariants:
#     - Iteration order is creation order (oldest first).
#     - len(arena) equals the number of dynamic bodies in the world.
#
# class ParticleFactory:
#   - create_particle(variant: Optional[Variant] = None,
#                     spawn_index: Optional[int] = None) -> Particle
#     - Inputs:
#       - variant: forces the coin's appearance; sampled from the variant
#         table when None.
#       - spawn_index: position within a bulk seed. None for a single drop.
#     - Outputs: the new Particle, already in the arena and the world.
#     - Raises: RuntimeError if the vessel boundary has not been built.
#     - Invariants: particle ids are strictly increasing and never reused.


@dataclass(frozen=True)
class Particle:
    particle_id: int
    variant: Variant
    handle: Any

    @property
    def creation_order(self) -> int:
        return self.particle_id


class ParticleArena:
    """Live particles of one engine, keyed by particle id."""

    def __init__(self, world: PhysicsWorld):
        self.world = world
        self._particles: "OrderedDict[int, Particle]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._particles)

    def __iter__(self):
        return iter(self._particles.values())

    def __contains__(self, particle_id: int) -> bool:
        return particle_id in self._particles

    def ids(self) -> List[int]:
        return list(self._particles)

    def handles(self) -> list:
        return [p.handle for p in self._particles.values()]

    def add(self, particle: Particle) -> None:
        self._particles[particle.particle_id] = particle

    def pop_newest(self) -> Particle:
        _, particle = self._particles.popitem(last=True)
        self.world.remove(particle.handle)
        return particle

    def release_all(self) -> None:
        while self._particles:
            self.pop_newest()


class ParticleFactory:
    """
    Creates coins above the vessel so they visibly fall in.
    """
    def __init__(self, config: EngineConfig, world: PhysicsWorld, arena: ParticleArena,
                 boundary: BoundaryBuilder, rng: np.random.Generator):
        self.config = config
        self.world = world
        self.arena = arena
        self.boundary = boundary
        self.rng = rng
        self._ids = itertools.count(1)

    def spawn_position(self, spawn_index: Optional[int] = None) -> tuple:
        c = self.config
        x = c.container_radius + (self.rng.random() - 0.5) * c.spawn_spread
        if spawn_index is None:
            y = -2.0 * c.particle_diameter
        else:
            # Bulk seeds stack upward a few pixels apart so no two coins start coincident.
            y = -c.particle_diameter - spawn_index * c.batch_spawn_step
        return float(x), float(y)

    def create_particle(self, variant: Optional[Variant] = None,
                        spawn_index: Optional[int] = None) -> Particle:
        """
        Creates one coin above the vessel and adds it to the arena.

        Args:
            variant (Optional[Variant]): Appearance to use. Sampled by weight
                from the variant table when None.
            spawn_index (Optional[int]): Position within a bulk seed. Coins of
                one batch are stacked upward by this index; None spawns a
                single coin two diameters above the vessel.

        Returns:
            Particle: The new live particle, with the next creation order.

        Raises:
            RuntimeError: If the vessel boundary has not been built.
        """
        if not self.boundary.built:
            msg = "Cannot create particles before the vessel boundary is built."
            logging.critical(msg)
            raise RuntimeError(msg)

        c = self.config
        if variant is None:
            variant = sample_variant(self.rng)
        spin = float(self.rng.uniform(-c.initial_spin, c.initial_spin))

        handle = self.world.add_circle(
            self.spawn_position(spawn_index), c.particle_radius, c.density,
            c.friction, c.restitution, spin,
        )
        particle = Particle(next(self._ids), variant, handle)
        self.arena.add(particle)

        logging.debug(
            f"Particle {particle.particle_id} created ({variant.variant_id}, "
            f"spin {spin:+.2f} rad/s)."
        )
        return particle
