"""Shared test fixtures."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image, ImageDraw

from evo_filter.config import SearchConfig
from evo_filter.imaging import target_from_image
from evo_filter.library import FragmentAsset


DISC_SVG = '''<?xml version="1.0" encoding="UTF-8"?>
<!-- Created with Inkscape -->
<svg xmlns="http://www.w3.org/2000/svg"
     xmlns:inkscape="http://www.inkscape.org/namespaces/inkscape"
     xmlns:sodipodi="http://sodipodi.sourceforge.net/DTD/sodipodi-0.0.dtd"
     width="24" height="24" viewBox="0 0 24 24" inkscape:version="1.2">
  <title>disc</title>
  <metadata><rdf>something</rdf></metadata>
  <style>.a { fill: #ff0000; }</style>
  <sodipodi:namedview id="namedview1" pagecolor="#ffffff"/>
  <circle id="c1" class="a" cx="12" cy="12" r="10" style="fill:#123456;stroke:none;stroke-width:2"/>
</svg>'''

SQUARE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" width="32" height="32">
  <rect x="0" y="0" width="32" height="32" fill="#000000" stroke="#ffffff"/>
</svg>'''


def quiet_config(**kwargs):
    kwargs.setdefault("n_jobs", 1)
    kwargs.setdefault("verbose", False)
    kwargs.setdefault("seed", 1234)
    return SearchConfig(**kwargs)


def solid_image(size, color):
    return Image.new("RGBA", size, color)


def two_tone_image(w=16, h=16, left=(255, 0, 0, 255), right=(255, 255, 255, 255)):
    im = Image.new("RGBA", (w, h), right)
    ImageDraw.Draw(im).rectangle([0, 0, w // 2 - 1, h - 1], fill=left)
    return im


def gradient_image(w=16, h=16):
    """Dark red on the left fading to white on the right."""
    ramp = np.linspace(0.0, 1.0, w)
    rgb = np.empty((h, w, 3), np.float32)
    rgb[..., 0] = 0.4 + 0.6 * ramp
    rgb[..., 1] = ramp
    rgb[..., 2] = ramp
    return Image.fromarray((rgb * 255 + 0.5).astype(np.uint8), "RGB").convert("RGBA")


def disc_image(edge=64):
    im = Image.new("RGBA", (edge, edge), (0, 0, 0, 0))
    ImageDraw.Draw(im).ellipse([4, 4, edge - 5, edge - 5], fill=(0, 0, 0, 255))
    return im


@pytest.fixture
def square_fragment(tmp_path) -> FragmentAsset:
    src = tmp_path / "square.svg"
    src.write_text(SQUARE_SVG, encoding="utf-8")
    return FragmentAsset(image=solid_image((32, 32), (0, 0, 0, 255)),
                         path=tmp_path / "square.png", vector_source=src)


@pytest.fixture
def disc_fragment(tmp_path) -> FragmentAsset:
    src = tmp_path / "disc.svg"
    src.write_text(DISC_SVG, encoding="utf-8")
    return FragmentAsset(image=disc_image(), path=tmp_path / "disc.png", vector_source=src)


@pytest.fixture
def two_tone_target():
    return target_from_image(two_tone_image())


@pytest.fixture
def gradient_target():
    return target_from_image(gradient_image())


@pytest.fixture
def flat_target():
    return target_from_image(solid_image((16, 16), (200, 100, 50, 255)))


@pytest.fixture
def fragment_tree(tmp_path) -> Path:
    """images_png/ + images/ pair with one good disc, one good square and one broken file."""
    raster = tmp_path / "images_png"
    vector = tmp_path / "images"
    (raster / "shapes").mkdir(parents=True)
    (vector / "shapes").mkdir(parents=True)

    disc_image().save(raster / "shapes" / "disc.png")
    solid_image((16, 16), (0, 0, 0, 255)).save(raster / "square.png")
    (raster / "broken.png").write_bytes(b"not a png at all")

    (vector / "shapes" / "disc.svg").write_text(DISC_SVG, encoding="utf-8")
    return tmp_path


@pytest.fixture
def rng():
    return np.random.default_rng(7)
