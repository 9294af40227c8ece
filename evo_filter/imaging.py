# ============================================================
# Raster helpers
# - Target loading (downsampled comparison copy + average color)
# - Float canvas in [0,1], RGBA, always opaque
# - Source-over overlay of stamps, clipped to the canvas
# - Progress strip of canvas snapshots
# ============================================================

from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from .config import DPI_META
from .errors import InputError


# ---------------------- Utility / IO ----------------------
def clamp01(a): return np.minimum(1.0, np.maximum(0.0, a))
def to_uint8(a): return (clamp01(a) * 255.0 + 0.5).astype(np.uint8)
def to_float(im): return np.asarray(im.convert("RGBA")).astype(np.float32) / 255.0


@dataclass(frozen=True, eq=False)
class TargetRaster:
    pixels: np.ndarray            # (H, W, 4) float32 comparison copy
    original_size: tuple          # (width, height) of the decoded file
    average_color: tuple          # uint8 RGB

    @property
    def width(self): return self.pixels.shape[1]

    @property
    def height(self): return self.pixels.shape[0]

    @property
    def background(self):
        return np.array(self.average_color, np.float32) / 255.0

    def color_at(self, x, y):
        r, g, b = to_uint8(self.pixels[y, x, :3])
        return int(r), int(g), int(b)


def average_color(pixels):
    r, g, b = to_uint8(pixels[..., :3].reshape(-1, 3).mean(axis=0))
    return int(r), int(g), int(b)


def target_from_image(im, cmp_width=None):
    """Build the comparison raster from a decoded image."""
    im = im.convert("RGBA")
    original_size = im.size
    if cmp_width:
        w, h = im.size
        im = im.resize((cmp_width, max(1, int(cmp_width / w * h))), Image.LANCZOS)
    pixels = to_float(im)
    return TargetRaster(pixels=pixels, original_size=original_size, average_color=average_color(pixels))


def load_target(path, cmp_width):
    try:
        with Image.open(path) as im:
            im.load()
            return target_from_image(im, cmp_width)
    except (OSError, UnidentifiedImageError) as e:
        raise InputError(f"cannot load target image {path}: {e}") from e


# ------------------------- Canvas --------------------------
def blank_canvas(target):
    canvas = np.ones((target.height, target.width, 4), np.float32)
    canvas[..., :3] = target.background
    return canvas


def alpha_blend_rgb(base_rgb, over_rgb, alpha):
    return over_rgb * alpha + base_rgb * (1.0 - alpha)


def overlay(canvas, stamp, left, top):
    """Composite `stamp` onto `canvas` in place with its top-left at (left, top)."""
    ch, cw, _ = canvas.shape
    sh, sw, _ = stamp.shape
    x0, y0 = max(left, 0), max(top, 0)
    x1, y1 = min(left + sw, cw), min(top + sh, ch)
    if x0 >= x1 or y0 >= y1:
        return canvas

    over = stamp[y0 - top:y1 - top, x0 - left:x1 - left]
    base = canvas[y0:y1, x0:x1]
    a = over[..., 3:4]
    base[..., :3] = alpha_blend_rgb(base[..., :3], over[..., :3], a)
    base[..., 3:4] = a + base[..., 3:4] * (1.0 - a)
    return canvas


def canvas_image(canvas):
    return Image.fromarray(to_uint8(canvas[..., :3]), "RGB")


# ---------------------- Progress Strip ----------------------
def make_strip(panels, save_path, gap=16, bg=1.0):
    if not panels: return
    h, w, _ = panels[0].shape
    out = np.ones((h, w*len(panels) + gap*(len(panels)-1), 3), np.float32) * bg
    for i, p in enumerate(panels):
        x0 = i*(w+gap)
        out[:, x0:x0+w, :] = p[..., :3]
    Image.fromarray(to_uint8(out)).save(save_path, dpi=DPI_META)
