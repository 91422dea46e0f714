"""
Groove document format.

A groove is persisted as a small SVG document:

    <svg viewBox="X Y W H" ...>
      <circle .../>                      outer disc edge (Rout + 8)
      <circle .../>                      label edge (max(12, Rin - 8))
      <polyline id="audioGroove" points="x,y x,y ..."/>
      <desc>Geometry-only spiral audio. v=2; sr=...; ...</desc>
    </svg>

All lengths inside the document are multiplied by the coordinate
scale recorded in the descriptor. Documents from older revisions
carry decimal coordinates and no scale; they read back with scale 1.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

import numpy as np

from spiral_groove.codec.descriptor import GeometryDescriptor
from spiral_groove.config import DISC_MARGIN, MIN_INNER_CIRCLE, DiscGeometry
from spiral_groove.errors import FormatError

GROOVE_ID = "audioGroove"

_SVG_NS = "http://www.w3.org/2000/svg"


@dataclass(frozen=True)
class Circle:
    """A circle element, in document (scaled) units."""

    cx: float
    cy: float
    r: float


@dataclass
class GrooveDocument:
    """A parsed groove document.

    Attributes:
        descriptor: Parsed descriptor (all fields optional).
        points: (N, 2) float array of coordinates exactly as stored.
        circles: Circle elements in document order.
    """

    descriptor: GeometryDescriptor
    points: np.ndarray
    circles: list[Circle] = field(default_factory=list)

    @property
    def vertices(self) -> int:
        """Number of groove points."""
        return len(self.points)


def render_svg(
    descriptor: GeometryDescriptor,
    points: np.ndarray,
    geometry: DiscGeometry,
) -> str:
    """
    Render a groove document.

    Args:
        descriptor: Descriptor to embed; its coordinate_scale applies to
            every length written
        points: (N, 2) integer coordinates, already scaled
        geometry: Disc layout in drawing units

    Returns:
        SVG text
    """
    scale = descriptor.coordinate_scale
    outer_r = geometry.r_out + DISC_MARGIN
    inner_r = max(MIN_INNER_CIRCLE, geometry.r_in - DISC_MARGIN)

    # The canvas spans 0..2*center, grown to contain an off-center disc.
    reach = outer_r + DISC_MARGIN
    left = min(0.0, geometry.cx - reach)
    top = min(0.0, geometry.cy - reach)
    width = max(2 * geometry.cx, geometry.cx + reach) - left
    height = max(2 * geometry.cy, geometry.cy + reach) - top

    def s(value: float) -> str:
        return str(int(round(value * scale)))

    pts = " ".join(f"{x},{y}" for x, y in np.asarray(points, dtype=np.int64).tolist())

    return (
        f'<svg xmlns="{_SVG_NS}" width="{width:g}" height="{height:g}" '
        f'viewBox="{s(left)} {s(top)} {s(width)} {s(height)}" role="img" '
        f'aria-label="Geometry-only spiral record">\n'
        f"  <defs>\n"
        f'    <radialGradient id="discGrad" r="60%">\n'
        f'      <stop offset="0%" stop-color="#0e1217"/>\n'
        f'      <stop offset="100%" stop-color="#0b0f14"/>\n'
        f"    </radialGradient>\n"
        f"  </defs>\n"
        f'  <circle cx="{s(geometry.cx)}" cy="{s(geometry.cy)}" r="{s(outer_r)}" '
        f'fill="url(#discGrad)" stroke="#233242" stroke-width="{s(2)}"/>\n'
        f'  <circle cx="{s(geometry.cx)}" cy="{s(geometry.cy)}" r="{s(inner_r)}" '
        f'fill="#0a0d11" stroke="#22303b" stroke-width="{s(2)}"/>\n'
        f'  <polyline id="{GROOVE_ID}" fill="none" stroke="#5ad8cf" '
        f'stroke-width="{s(0.8)}" stroke-linecap="round" points="{pts}" />\n'
        f"  <desc>{descriptor.to_text()}</desc>\n"
        f"</svg>"
    )


def parse_svg(text: str) -> GrooveDocument:
    """
    Parse a groove document.

    Raises:
        FormatError: If the document is not XML, has no groove polyline
            ("missing groove data"), or its point list is empty or malformed
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise FormatError(f"Unparsable groove document: {e}", element="svg") from e

    groove = None
    circles: list[Circle] = []
    desc_text = ""

    for element in root.iter():
        tag = _local_name(element.tag)
        if tag == "polyline" and element.get("id") == GROOVE_ID and groove is None:
            groove = element
        elif tag == "circle":
            circles.append(_parse_circle(element))
        elif tag == "desc" and not desc_text:
            desc_text = element.text or ""

    if groove is None:
        raise FormatError("missing groove data: no groove polyline found", element="polyline")

    points = parse_points(groove.get("points", ""))
    descriptor = GeometryDescriptor.parse(desc_text)

    return GrooveDocument(descriptor=descriptor, points=points, circles=circles)


def parse_points(points_attr: str) -> np.ndarray:
    """
    Parse a polyline `points` attribute into an (N, 2) float array.

    Integer and decimal coordinates are both accepted.
    """
    tokens = points_attr.replace(",", " ").split()
    if not tokens:
        raise FormatError("missing groove data: empty point list", element="polyline")
    if len(tokens) % 2:
        raise FormatError(
            f"Odd number of coordinates in point list ({len(tokens)})",
            element="polyline",
        )
    try:
        values = np.array(tokens, dtype=np.float64)
    except ValueError as e:
        raise FormatError(f"Unparsable coordinate in point list: {e}", element="polyline") from e
    return values.reshape(-1, 2)


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _parse_circle(element: ET.Element) -> Circle:
    try:
        return Circle(
            cx=float(element.get("cx", "0")),
            cy=float(element.get("cy", "0")),
            r=float(element.get("r", "0")),
        )
    except ValueError as e:
        raise FormatError(f"Unparsable circle attribute: {e}", element="circle") from e
