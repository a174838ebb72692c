# config.py
"""
Engine configuration.

An EngineConfig is built once from the "engine" section of config.json and
handed to every component of an Engine. It is frozen: none of these values
may change while an Engine is alive.
"""
import logging
from dataclasses import dataclass, fields
from typing import Dict, Any

# --- Data Contracts ---
#
# EngineConfig.from_dict(params: Dict[str, Any]) -> EngineConfig:
#   - Inputs: the "engine" section of config.json. Missing keys fall back to
#     the reference values below. Unknown keys are ignored with a warning.
#   - Outputs: a validated, frozen EngineConfig.
#   - Raises: ValueError on any value outside its valid range.


@dataclass(frozen=True)
class EngineConfig:
    # Vessel geometry (pixels)
    container_radius: float = 54.5
    particle_diameter: float = 18.0
    hitbox_scale: float = 0.85
    arc_segments: int = 20
    wall_margin_ratio: float = 0.05
    wall_thickness: float = 15.0
    side_wall_height: float = 218.0

    # World
    gravity: float = 1500.0
    timestep: float = 1.0 / 60.0
    substeps: int = 2
    solver_iterations: int = 10
    damping: float = 0.1
    stiction_speed: float = 3.0

    # Materials
    friction: float = 0.8
    restitution: float = 0.2
    density: float = 0.005
    wall_friction: float = 0.9
    wall_restitution: float = 0.1
    initial_spin: float = 6.0

    # Spawning
    spawn_spread: float = 70.0
    batch_spawn_step: float = 3.0

    # Reconciliation
    max_particles: int = 40
    stagger_interval: float = 0.1

    # Settling
    warmup_frames: int = 50
    speed_threshold: float = 6.0
    required_stable_frames: int = 25
    frame_ceiling: int = 200

    # Presentation
    rotation_clamp_degrees: float = 30.0
    log_throttle_frames: int = 50

    @property
    def particle_radius(self) -> float:
        """Collision radius, smaller than the drawn token so tokens overlap slightly."""
        return self.particle_diameter / 2.0 * self.hitbox_scale

    @property
    def inner_radius(self) -> float:
        """Radius of the vessel's inner collision surface."""
        return self.container_radius * (1.0 + self.wall_margin_ratio)

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "EngineConfig":
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, value in params.items():
            if key not in known:
                logging.warning(f"Ignoring unknown engine config key '{key}'.")
                continue
            # JSON has no int/float distinction worth trusting.
            field_type = known[key].type
            if field_type in (int, "int"):
                values[key] = int(value)
            else:
                values[key] = float(value)
        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        """Raises ValueError if any value is outside its valid range."""
        positive = (
            "container_radius", "particle_diameter", "hitbox_scale",
            "wall_thickness", "gravity", "timestep", "density",
            "speed_threshold",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                self._fail(f"'{name}' must be positive, got {getattr(self, name)}.")

        at_least_one = (
            "arc_segments", "substeps", "solver_iterations", "max_particles",
            "required_stable_frames", "frame_ceiling", "log_throttle_frames",
        )
        for name in at_least_one:
            if getattr(self, name) < 1:
                self._fail(f"'{name}' must be at least 1, got {getattr(self, name)}.")

        non_negative = (
            "wall_margin_ratio", "side_wall_height", "stiction_speed",
            "friction", "restitution", "wall_friction", "wall_restitution",
            "initial_spin", "spawn_spread", "batch_spawn_step",
            "stagger_interval", "warmup_frames",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                self._fail(f"'{name}' must not be negative, got {getattr(self, name)}.")

        if not 0.0 < self.damping <= 1.0:
            self._fail(f"'damping' must be in (0, 1], got {self.damping}.")
        if not 0.0 <= self.rotation_clamp_degrees <= 180.0:
            self._fail(
                f"'rotation_clamp_degrees' must be in [0, 180], got {self.rotation_clamp_degrees}."
            )
        if self.spawn_spread + self.particle_diameter > 2 * self.container_radius:
            self._fail(
                f"Spawn band ({self.spawn_spread} px) plus one particle does not fit "
                f"inside the vessel ({2 * self.container_radius} px wide)."
            )
        if self.warmup_frames + self.required_stable_frames > self.frame_ceiling:
            logging.warning(
                "warmup_frames + required_stable_frames exceeds frame_ceiling; "
                "every run will end at the ceiling."
            )

    @staticmethod
    def _fail(msg: str) -> None:
        msg = f"Configuration error: {msg}"
        logging.critical(msg)
        raise ValueError(msg)
