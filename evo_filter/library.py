# ============================================================
# Fragment library
# - Raster silhouettes live under images_png/, vector sources
#   under images/ with the same relative path and a .svg suffix
# - Loading is best-effort: unreadable files are skipped
# ============================================================

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from joblib import Parallel, delayed
from PIL import Image, UnidentifiedImageError

from .config import FRAGMENT_RENDER_PX, N_CORES

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FragmentAsset:
    image: Image.Image                 # RGBA silhouette, never mutated
    path: Path
    vector_source: Optional[Path] = None


def vector_source_for(raster_path, raster_root, vector_root):
    rel = Path(raster_path).relative_to(raster_root)
    return Path(vector_root) / rel.with_suffix(".svg")


def _load_fragment(path, raster_root, vector_root):
    try:
        with Image.open(path) as im:
            im.load()
            rgba = im.convert("RGBA")
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.warning("Skipping fragment %s: %s", path, e)
        return None

    src = None
    if vector_root is not None:
        candidate = vector_source_for(path, raster_root, vector_root)
        if candidate.is_file():
            src = candidate
    return FragmentAsset(image=rgba, path=Path(path), vector_source=src)


def load_library(raster_root, vector_root=None, n_jobs=N_CORES):
    """Load every decodable raster under `raster_root`, in sorted path order."""
    raster_root = Path(raster_root)
    if not raster_root.is_dir():
        return []
    paths = sorted(p for p in raster_root.rglob("*") if p.is_file())
    if not paths:
        return []
    # threads: the decoded images would otherwise be pickled back from workers
    loaded = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(_load_fragment)(p, raster_root, vector_root) for p in paths
    )
    fragments = [f for f in loaded if f is not None]
    print(f"Loaded {len(fragments)} fragment images successfully ({len(paths) - len(fragments)} skipped)")
    return fragments


def render_vector_library(vector_root, raster_root, edge=FRAGMENT_RENDER_PX):
    """Rasterise every .svg under `vector_root` into the mirrored tree under `raster_root`."""
    import cairosvg

    vector_root, raster_root = Path(vector_root), Path(raster_root)
    rendered = 0
    for svg in sorted(vector_root.rglob("*.svg")):
        out = raster_root / svg.relative_to(vector_root).with_suffix(".png")
        out.parent.mkdir(parents=True, exist_ok=True)
        try:
            cairosvg.svg2png(url=str(svg), write_to=str(out), output_width=edge, output_height=edge)
        except Exception as e:
            logger.warning("Skipping vector fragment %s: %s", svg, e)
            continue
        rendered += 1
    return rendered
