"""Tests for fragment library loading."""

from pathlib import Path

import pytest

from evo_filter.library import load_library, render_vector_library, vector_source_for

try:
    import cairosvg
except (ImportError, OSError):
    cairosvg = None


def test_vector_source_convention():
    src = vector_source_for(Path("lib/png/a/b.png"), Path("lib/png"), Path("lib/svg"))
    assert src == Path("lib/svg/a/b.svg")


def test_load_library_skips_broken_files(fragment_tree):
    frags = load_library(fragment_tree / "images_png", fragment_tree / "images", n_jobs=1)
    names = [f.path.name for f in frags]
    assert names == ["square.png", "disc.png"] or names == ["disc.png", "square.png"]
    assert "broken.png" not in names
    for f in frags:
        assert f.image.mode == "RGBA"


def test_load_library_pairs_vector_sources(fragment_tree):
    frags = {f.path.name: f for f in load_library(fragment_tree / "images_png", fragment_tree / "images", n_jobs=1)}
    assert frags["disc.png"].vector_source == fragment_tree / "images" / "shapes" / "disc.svg"
    assert frags["square.png"].vector_source is None


def test_load_library_sorted_and_stable(fragment_tree):
    a = [f.path for f in load_library(fragment_tree / "images_png", n_jobs=1)]
    b = [f.path for f in load_library(fragment_tree / "images_png", n_jobs=2)]
    assert a == b == sorted(a)


def test_load_library_empty(tmp_path):
    assert load_library(tmp_path) == []


@pytest.mark.skipif(cairosvg is None, reason="cairo library not available")
def test_render_vector_library(fragment_tree, tmp_path):
    out = tmp_path / "rendered"
    n = render_vector_library(fragment_tree / "images", out, edge=32)
    assert n == 1
    frags = load_library(out, fragment_tree / "images", n_jobs=1)
    assert len(frags) == 1
    assert frags[0].image.size == (32, 32)
    assert frags[0].vector_source == fragment_tree / "images" / "shapes" / "disc.svg"
