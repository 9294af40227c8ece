# ============================================================
# EVO-FILTER configuration
# - Module-level defaults shared by the CLI and the engine
# - SearchConfig: the knobs of one greedy search run
# ============================================================

from dataclasses import dataclass
from typing import Optional

from joblib import cpu_count

from .errors import ConfigError

# --------------------------- CONFIG ---------------------------
DEFAULT_SHAPES       = 2000           # minimum shapes to place (0 disables)
DEFAULT_CMP_WIDTH    = 384            # comparison width in px
DEFAULT_BATCH_SIZE   = 16             # candidates evaluated per round
DEFAULT_MAX_FAILURES = 0              # consecutive failed rounds before giving up (0 = never)
SCORE_DECIMALS       = 6              # scores are floored to this many decimals
SIZE_DRAWS           = 4              # size = min of this many uniform draws
FRAGMENT_RASTER_DIR  = "images_png"   # raster silhouettes
FRAGMENT_VECTOR_DIR  = "images"       # paired vector sources
FRAGMENT_RENDER_PX   = 512            # edge of rasterised vector fragments
DPI_META             = (300, 300)
N_CORES              = max(1, cpu_count() - 1)


@dataclass
class SearchConfig:
    target_score: float = 0.0
    target_shapes: int = DEFAULT_SHAPES
    batch_size: int = DEFAULT_BATCH_SIZE
    max_consecutive_failures: Optional[int] = DEFAULT_MAX_FAILURES
    n_jobs: int = N_CORES
    backend: str = "loky"
    report_every: int = 1
    snapshot_every: int = 0
    verbose: bool = True
    seed: Optional[int] = None

    @property
    def failure_cap(self):
        # 0 and None both mean "no cap"
        return self.max_consecutive_failures or 0

    def validate(self):
        target_score = self.target_score or 0.0
        if target_score <= 0.0 and self.target_shapes <= 0:
            raise ConfigError(
                "Without a target score or target shape count, the image will be blank. "
                "Please provide one."
            )
        if not 0.0 <= target_score <= 1.0:
            raise ConfigError(f"target score {target_score} is not in the range 0.0-1.0 inclusive")
        if self.batch_size < 1:
            raise ConfigError(f"batch size must be at least 1, got {self.batch_size}")
        if self.failure_cap < 0:
            raise ConfigError(f"max consecutive failures must be >= 0, got {self.max_consecutive_failures}")
        return self
