# projector.py
"""
Turns raw body state into what the presentation layer draws.

There is no z axis in the simulation. Depth is a painter's-algorithm cue:
coins are drawn oldest first, and the older (lower) a coin sits in the draw
order, the darker and slightly more contrasted it is rendered.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from particle import Particle

# Shading of the bottom-most and top-most coin in the draw order.
BOTTOM_BRIGHTNESS = 0.85
TOP_BRIGHTNESS = 1.0
BOTTOM_CONTRAST = 1.05
TOP_CONTRAST = 1.0


@dataclass(frozen=True)
class RenderState:
    particle_id: int
    position: Tuple[float, float]
    rotation_degrees: float
    variant_id: str
    depth: int
    brightness: float
    contrast: float


def display_rotation(angles: np.ndarray, clamp_degrees: float) -> np.ndarray:
    """
    Maps physics angles (radians, unbounded) to display degrees.

    Angles are wrapped into [-180, 180) first, then clamped, so a coin that
    has spun several turns still reads as nearly upright.
    """
    degrees = np.degrees(np.asarray(angles, dtype=np.float64))
    wrapped = (degrees + 180.0) % 360.0 - 180.0
    return np.clip(wrapped, -clamp_degrees, clamp_degrees)


def depth_attenuation(count: int) -> Tuple[np.ndarray, np.ndarray]:
    """Brightness and contrast for each draw index 0..count-1."""
    ratio = np.arange(count, dtype=np.float64) / max(count - 1, 1)
    brightness = BOTTOM_BRIGHTNESS + ratio * (TOP_BRIGHTNESS - BOTTOM_BRIGHTNESS)
    contrast = BOTTOM_CONTRAST + ratio * (TOP_CONTRAST - BOTTOM_CONTRAST)
    return brightness, contrast


def project(particles: Sequence[Particle], positions: np.ndarray, angles: np.ndarray,
            clamp_degrees: float) -> Tuple[RenderState, ...]:
    """
    Builds one frame's snapshot. `positions` and `angles` are row-aligned
    with `particles`. Has no side effects.
    """
    order = sorted(range(len(particles)), key=lambda i: particles[i].creation_order)
    rotations = display_rotation(angles, clamp_degrees)
    brightness, contrast = depth_attenuation(len(order))

    return tuple(
        RenderState(
            particle_id=particles[i].particle_id,
            position=(float(positions[i, 0]), float(positions[i, 1])),
            rotation_degrees=float(rotations[i]),
            variant_id=particles[i].variant.variant_id,
            depth=depth,
            brightness=float(brightness[depth]),
            contrast=float(contrast[depth]),
        )
        for depth, i in enumerate(order)
    )
