# ============================================================
# Similarity scoring
# - Both rasters are blended over a reference background,
#   split into YUV; structure is compared with SSIM on Y,
#   color with the per-pixel U/V distance
# - Scores are quantized before any comparison (see quantize)
# ============================================================

import math

import numpy as np
from skimage.metrics import mean_squared_error, peak_signal_noise_ratio as psnr
from skimage.metrics import structural_similarity as ssim

from .config import SCORE_DECIMALS

# BT.601 RGB -> YUV
_YUV = np.array([[ 0.299,    0.587,    0.114  ],
                 [-0.14713, -0.28886,  0.436  ],
                 [ 0.615,   -0.51499, -0.10001]], np.float32)


def quantize(score, decimals=SCORE_DECIMALS):
    """
    Floor `score` to `decimals` places. Every score the engine compares
    goes through here, so a candidate must beat the current score by at
    least 10**-decimals to count as an improvement.
    """
    scale = 10 ** decimals
    return math.floor(score * scale) / scale


def blend_over(pixels, background):
    a = pixels[..., 3:4]
    return pixels[..., :3] * a + background * (1.0 - a)


def to_yuv(rgb):
    return rgb @ _YUV.T


def _win_size(shape):
    win = min(7, *shape)
    return win if win % 2 else win - 1


def structure_map(y1, y2):
    win = _win_size(y1.shape)
    if win < 3:
        return 1.0 - np.abs(y1 - y2)
    _, smap = ssim(y1, y2, win_size=win, data_range=1.0, full=True)
    return smap


def hybrid_similarity(target_yuv, candidate_yuv):
    structure = np.clip(structure_map(target_yuv[..., 0], candidate_yuv[..., 0]), 0.0, 1.0)
    duv = target_yuv[..., 1:] - candidate_yuv[..., 1:]
    color_diff = np.clip(np.sqrt(np.sum(duv * duv, axis=-1)), 0.0, 1.0)
    # equal blend; clipping the sum would hide color gains wherever structure is poor
    deviation = 0.5 * ((1.0 - structure) + color_diff)
    return float(1.0 - deviation.mean())


class Scorer:
    """
    Compares candidate canvases with a fixed target. Holds only the
    precomputed target, so one instance can be shared by any number of
    concurrent workers.
    """

    def __init__(self, target_pixels, background, decimals=SCORE_DECIMALS):
        self.background = np.asarray(background, np.float32)
        self.decimals = decimals
        self.target_yuv = to_yuv(blend_over(target_pixels, self.background))

    def raw(self, pixels):
        return hybrid_similarity(self.target_yuv, to_yuv(blend_over(pixels, self.background)))

    def __call__(self, pixels):
        return quantize(self.raw(pixels), self.decimals)


def scorer_for(target):
    return Scorer(target.pixels, target.background)


# ---------------------- Final report ----------------------
def compute_metrics(canvas, target):
    a = canvas[..., :3].astype(np.float64)
    b = blend_over(target.pixels, target.background).astype(np.float64)
    win = _win_size(a.shape[:2])
    return dict(
        mse=float(mean_squared_error(b, a)),
        psnr=float(psnr(b, a, data_range=1.0)),
        ssim=float(ssim(b, a, win_size=win, channel_axis=2, data_range=1.0)) if win >= 3 else float("nan"),
    )
