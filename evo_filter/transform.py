# ============================================================
# Fragment transform: resize -> recolor -> rotate
# The stamp is a square of edge rotated_size(size), large
# enough that the silhouette never clips at any rotation.
# ============================================================

import math

from PIL import Image


def rotated_size(size):
    """Edge of the stamp holding a `size` square at any angle, same parity as `size`."""
    side = int(math.ceil(math.sqrt(2.0) * size))
    if side % 2 != size % 2:
        side += 1
    return side


def paste_offset(size):
    return rotated_size(size) // 2 - size // 2


def render_stamp(fragment, size, angle, color):
    """
    Solid-color cutout of `fragment` scaled to size x size and rotated
    clockwise by `angle` radians. Caller guarantees size >= 1.
    """
    side = rotated_size(size)
    fill = (color[0], color[1], color[2], 0)

    resized = fragment.resize((size, size), Image.LANCZOS)
    mask = Image.new("L", (side, side), 0)
    off = paste_offset(size)
    mask.paste(resized.getchannel("A"), (off, off))

    stamp = Image.new("RGBA", (side, side), fill)
    stamp.putalpha(mask)
    # PIL turns counter-clockwise; SVG rotate() on a y-down canvas is clockwise
    return stamp.rotate(-math.degrees(angle), resample=Image.BICUBIC, fillcolor=fill)
