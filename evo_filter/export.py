# ============================================================
# Vector export
# - One <symbol> per distinct fragment source, registered the
#   first time a placement uses it, paint bound to currentColor
# - One <use> per placement, in paint order, carrying position,
#   rotation, scale and the concrete color
# ============================================================

import re
import xml.etree.ElementTree as ET
from pathlib import Path

from .config import DPI_META
from .errors import ExportError
from .imaging import canvas_image

_XML_DECL_RE = re.compile(r"<\?xml[^>]*\?>")
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_STYLE_TAG_RE = re.compile(r"<style\b[^>]*>.*?</style>", re.DOTALL | re.IGNORECASE)
_FILL_DECL_RE = re.compile(r"fill\s*:(?!\s*none\b)\s*[^;\"]+")
_STROKE_DECL_RE = re.compile(r"stroke\s*:(?!\s*none\b)\s*[^;\"]+")

XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

REMOVE_TAGS = {"style", "title", "desc", "metadata", "script", "namedview", "perspective"}
DROP_ATTRS = {"id", "class"}
ROOT_ONLY_ATTRS = {"width", "height", "x", "y", "viewBox", "version", "preserveAspectRatio"}


def _strip_ns(name):
    return name.split("}")[-1] if "}" in name else name


def _paint(value):
    return value if value.strip() == "none" else "currentColor"


def _clean_attrs(attrib):
    out = {}
    for key, value in attrib.items():
        if key == XLINK_HREF:
            out["xlink:href"] = value
            continue
        if "}" in key or _strip_ns(key) in DROP_ATTRS:
            # inkscape:*, sodipodi:* and friends
            continue
        if key in ("fill", "stroke"):
            value = _paint(value)
        elif key == "style":
            value = _STROKE_DECL_RE.sub("stroke:currentColor", _FILL_DECL_RE.sub("fill:currentColor", value))
        out[key] = value
    return out


def _clean_tree(elem):
    for child in list(elem):
        if _strip_ns(child.tag) in REMOVE_TAGS:
            elem.remove(child)
            continue
        child.tag = _strip_ns(child.tag)
        child.attrib = _clean_attrs(child.attrib)
        _clean_tree(child)


def _view_box(root):
    vb = root.get("viewBox")
    if vb:
        return vb
    w, h = root.get("width"), root.get("height")
    try:
        return f"0 0 {float(w.rstrip('px'))} {float(h.rstrip('px'))}"
    except (AttributeError, ValueError):
        return None


def clean_symbol(svg_text, symbol_id):
    """Rewrite a standalone SVG document into a recolorable <symbol> definition."""
    text = _XML_DECL_RE.sub("", svg_text)
    text = _DOCTYPE_RE.sub("", text)
    text = _COMMENT_RE.sub("", text)
    text = _STYLE_TAG_RE.sub("", text)
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ExportError(f"cannot parse vector source for {symbol_id}: {e}") from e
    if _strip_ns(root.tag) != "svg":
        raise ExportError(f"vector source for {symbol_id} is not an <svg> document")

    view_box = _view_box(root)
    if view_box is None:
        raise ExportError(f"vector source for {symbol_id} has neither viewBox nor width/height")

    attrs = {k: v for k, v in _clean_attrs(root.attrib).items() if k not in ROOT_ONLY_ATTRS}
    attrs.setdefault("fill", "currentColor")
    symbol = ET.Element("symbol", {"id": symbol_id, "viewBox": view_box, **attrs})
    if root.get("preserveAspectRatio"):
        symbol.set("preserveAspectRatio", root.get("preserveAspectRatio"))

    _clean_tree(root)
    symbol.extend(list(root))
    return ET.tostring(symbol, encoding="unicode")


class SymbolRegistry:
    """Maps each vector source to its symbol id, assigned in first-use order."""

    def __init__(self, prefix="frag"):
        self.prefix = prefix
        self._ids = {}
        self._definitions = []

    def __len__(self): return len(self._ids)

    @property
    def definitions(self):
        return list(self._definitions)

    def symbol_for(self, source):
        if source is None:
            raise ExportError("placed fragment has no vector source")
        key = Path(source)
        if key in self._ids:
            return self._ids[key]

        symbol_id = f"{self.prefix}{len(self._ids)}"
        try:
            text = key.read_text(encoding="utf-8")
        except OSError as e:
            raise ExportError(f"cannot read vector source {key}: {e}") from e
        self._definitions.append(clean_symbol(text, symbol_id))
        self._ids[key] = symbol_id
        return symbol_id


def use_element(spec, symbol_id):
    x = spec.center_x - spec.size // 2
    y = spec.center_y - spec.size // 2
    half = spec.size / 2
    r, g, b = spec.color
    return (f'<use xlink:href="#{symbol_id}" width="{spec.size}" height="{spec.size}" '
            f'color="rgb({r},{g},{b})" '
            f'transform="translate({x} {y}) rotate({spec.rotation_degrees:.4f} {half:g} {half:g})"/>')


def export_svg(history, target):
    registry = SymbolRegistry()
    uses = [use_element(spec, registry.symbol_for(spec.fragment.vector_source)) for spec in history]

    w, h = target.width, target.height
    ow, oh = target.original_size
    r, g, b = target.average_color
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{ow}" height="{oh}" viewBox="0 0 {w} {h}">',
        f'<defs><clipPath id="clipView"><rect x="0" y="0" width="{w}" height="{h}"/></clipPath>',
        *registry.definitions,
        "</defs>",
        f'<rect x="0" y="0" width="{w}" height="{h}" fill="rgb({r},{g},{b})"/>',
        '<g clip-path="url(#clipView)">',
        *uses,
        "</g></svg>",
    ]
    return "\n".join(parts)


def write_svg(history, target, path):
    Path(path).write_text(export_svg(history, target), encoding="utf-8")


def write_preview(canvas, path):
    canvas_image(canvas).save(path, format="PNG", dpi=DPI_META)
