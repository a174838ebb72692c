# variants.py
"""
The coin variant table.

Each coin is drawn with one of ten textures. Front-facing and slightly turned
coins make up most of a pile; edge-on coins are rarer, which keeps the pile
reading as "a heap of coins" rather than "a heap of sticks".
"""
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class Variant:
    variant_id: str
    face: str  # "front" or "side"
    weight: float
    asset: str


def _build_table() -> tuple:
    front = [f"coin-{i}" for i in range(4)]
    side = [f"coin-{i}" for i in range(4, 10)]
    # 80% of all draws are front-facing, 20% edge-on, evenly split within each group.
    entries = [Variant(v, "front", 0.8 / len(front), f"coins/{v}.png") for v in front]
    entries += [Variant(v, "side", 0.2 / len(side), f"coins/{v}.png") for v in side]
    return tuple(entries)


VARIANT_TABLE = _build_table()
_BY_ID: Dict[str, Variant] = {v.variant_id: v for v in VARIANT_TABLE}


def get_variant(variant_id: str) -> Variant:
    """Looks up a variant by id. Raises KeyError for unknown ids."""
    return _BY_ID[variant_id]


def sample_variant(rng: np.random.Generator, table: Optional[Sequence[Variant]] = None) -> Variant:
    """Draws one variant, with probability proportional to its weight."""
    table = VARIANT_TABLE if table is None else table
    weights = np.array([v.weight for v in table], dtype=np.float64)
    index = rng.choice(len(table), p=weights / weights.sum())
    return table[int(index)]
