# ============================================================
# Placement history: committed placements in paint order
# ============================================================

import numpy as np


class PlacementHistory:
    """Append-only record of accepted placements; index 0 is painted first."""

    def __init__(self):
        self._placements = []
        self._scores = []

    def append(self, spec, score):
        self._placements.append(spec)
        self._scores.append(score)

    def __len__(self): return len(self._placements)
    def __iter__(self): return iter(self._placements)
    def __getitem__(self, i): return self._placements[i]

    @property
    def scores(self):
        return tuple(self._scores)

    def sources(self):
        """Distinct vector sources in first-use order (None for fragments without one)."""
        seen = {}
        for spec in self._placements:
            seen.setdefault(spec.fragment.vector_source, None)
        return list(seen)

    def save(self, path):
        n = len(self._placements)
        np.savez_compressed(
            path,
            centers=np.array([(p.center_x, p.center_y) for p in self._placements], np.int32).reshape(n, 2),
            sizes=np.array([p.size for p in self._placements], np.int32),
            rotations=np.array([p.rotation for p in self._placements], np.float32),
            colors=np.array([p.color for p in self._placements], np.uint8).reshape(n, 3),
            fragments=np.array([str(p.fragment.path) for p in self._placements], dtype=str),
            scores=np.array(self._scores, np.float64),
        )
