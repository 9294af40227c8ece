# ============================================================
# Candidate generation
# - PlacementSpec: what was placed, where, how big, how turned
# - CandidateGenerator owns its RNG; library and target are
#   only read
# ============================================================

import math
import os
from dataclasses import dataclass

import numpy as np

from .config import SIZE_DRAWS
from .errors import InputError
from .imaging import to_float
from .transform import render_stamp, rotated_size


@dataclass(frozen=True)
class PlacementSpec:
    fragment: object          # FragmentAsset
    center_x: int
    center_y: int
    size: int                 # edge before rotation
    rotation: float           # radians, [0, 2pi)
    color: tuple              # uint8 RGB

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"placement size must be >= 1, got {self.size}")

    @property
    def rotation_degrees(self):
        return math.degrees(self.rotation)

    @property
    def stamp_origin(self):
        half = rotated_size(self.size) // 2
        return self.center_x - half, self.center_y - half


@dataclass(eq=False)
class Candidate:
    spec: PlacementSpec
    stamp: np.ndarray         # (S, S, 4) float32

    @property
    def left(self): return self.spec.stamp_origin[0]

    @property
    def top(self): return self.spec.stamp_origin[1]


def new_rng(seed=None):
    if seed is None:
        seed = int.from_bytes(os.urandom(8), "little")
    return np.random.default_rng(seed)


class CandidateGenerator:
    def __init__(self, library, target, seed=None, size_draws=SIZE_DRAWS):
        if not library:
            raise InputError("fragment library is empty, nothing to place")
        self.library = library
        self.target = target
        self.size_draws = size_draws
        self.rng = new_rng(seed)

    def sample_size(self):
        # min of several draws skews towards small fragments
        limit = max(self.target.width, self.target.height)
        size = int(self.rng.integers(0, limit, size=self.size_draws).min())
        return max(size, 1)

    def sample_spec(self):
        fragment = self.library[int(self.rng.integers(0, len(self.library)))]
        x = int(self.rng.integers(0, self.target.width))
        y = int(self.rng.integers(0, self.target.height))
        size = self.sample_size()
        rotation = float(self.rng.uniform(0.0, 2.0 * math.pi))
        return PlacementSpec(fragment=fragment, center_x=x, center_y=y, size=size,
                             rotation=rotation, color=self.target.color_at(x, y))

    def build(self, spec):
        stamp = render_stamp(spec.fragment.image, spec.size, spec.rotation, spec.color)
        return Candidate(spec=spec, stamp=to_float(stamp))

    def generate(self):
        return self.build(self.sample_spec())

    def batch(self, n):
        return [self.generate() for _ in range(n)]
