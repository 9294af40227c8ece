# ============================================================
# EVO-FILTER: approximate an image with stamped fragments
# ============================================================

from .candidates import CandidateGenerator, PlacementSpec
from .config import SearchConfig
from .errors import ConfigError, EvoFilterError, ExportError, InputError
from .history import PlacementHistory
from .imaging import TargetRaster, load_target, target_from_image
from .library import FragmentAsset, load_library
from .scoring import Scorer, quantize
from .search import GreedySearch

__version__ = "1.1.0"
