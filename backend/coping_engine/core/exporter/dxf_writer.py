"""DXF export engine for coping layouts.

Entity structure per element:
  Paver:      LWPOLYLINE (closed footprint) on its category layer
  Cut paver:  LWPOLYLINE + HATCH (ANSI31) + TEXT (cut size)
  Waterline:  LWPOLYLINE (closed)
  Boundary:   LWPOLYLINE (closed, dashed) + TEXT (boundary id)

Engine coordinates are millimetres; they are scaled to the export unit on
the way out and $INSUNITS is set to match.
"""

from __future__ import annotations

import io
import logging
from typing import Iterable, Sequence

import ezdxf
from ezdxf.enums import TextEntityAlignment

from coping_engine.core.exporter.dxf_layers import (
    CATEGORY_LAYERS,
    CUSTOM_LINETYPES,
    CUT_HATCH_LAYER,
    DXF_UNITS,
    EXTENSION_LAYER,
    LAYER_MAP,
    LAYERS,
    TEXT_STYLES,
)
from coping_engine.core.layout.paver import Paver, PaverCategory
from coping_engine.utils.units import UNIT_TO_MM

logger = logging.getLogger(__name__)

LABEL_HEIGHT_MM = 60.0


class DXFExporter:
    """Builds a DXF document from coping pavers, waterline and boundaries."""

    def __init__(self, unit: str = "mm"):
        if unit not in DXF_UNITS:
            raise ValueError(f"Unknown unit '{unit}'. Valid: {set(DXF_UNITS)}")
        self.doc = ezdxf.new("R2010", setup=True)
        self.msp = self.doc.modelspace()
        self.unit = unit
        self.scale = 1.0 / UNIT_TO_MM[unit]

        self._setup_linetypes()
        self._setup_layers()
        self._setup_text_styles()

        self.doc.header["$INSUNITS"] = DXF_UNITS[unit]
        self.doc.header["$LTSCALE"] = 1.0

    # ── Setup ───────────────────────────────────────────────────────────

    def _setup_linetypes(self):
        for lt in CUSTOM_LINETYPES:
            if lt["name"] not in self.doc.linetypes:
                self.doc.linetypes.add(
                    lt["name"],
                    pattern=lt["pattern"],
                    description=lt["description"],
                )

    def _setup_layers(self):
        for layer_def in LAYERS:
            if layer_def.name in self.doc.layers:
                continue

            layer = self.doc.layers.add(
                layer_def.name,
                color=layer_def.color,
                linetype=layer_def.linetype,
            )
            layer.dxf.lineweight = layer_def.lineweight

            if not layer_def.plot:
                layer.dxf.plot = 0

    def _setup_text_styles(self):
        for ts in TEXT_STYLES:
            if ts["name"] not in self.doc.styles:
                self.doc.styles.add(ts["name"], font=ts["font"])

    def _xy(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.scale, y * self.scale)

    # ── Pavers ──────────────────────────────────────────────────────────

    def add_paver(self, paver: Paver):
        """Export one paver footprint; cut pavers also get a hatch and a size label."""
        coords = [self._xy(p.x, p.y) for p in paver.corners()]
        layer = EXTENSION_LAYER if paver.row_index > 0 else CATEGORY_LAYERS[paver.category]

        self.msp.add_lwpolyline(coords, close=True, dxfattribs={"layer": layer})

        if paver.category is PaverCategory.STRIPE or paver.is_partial:
            hatch = self.msp.add_hatch(
                color=LAYER_MAP[CUT_HATCH_LAYER].color,
                dxfattribs={"layer": CUT_HATCH_LAYER},
            )
            hatch.set_pattern_fill("ANSI31", scale=10 * self.scale)
            hatch.paths.add_polyline_path(coords, is_closed=True)
            self.add_cut_label(paver)

    def add_pavers(self, pavers: Iterable[Paver]) -> int:
        count = 0
        for paver in pavers:
            self.add_paver(paver)
            count += 1
        return count

    def add_cut_label(self, paver: Paver):
        """Place the cut size at the paver centroid."""
        if paver.cut_width is not None:
            text = f"{paver.cut_width:.0f}"
        else:
            text = f"{paver.width:.0f}x{paver.height:.0f}"

        centroid = paver.footprint().centroid
        self.msp.add_text(
            text,
            height=LABEL_HEIGHT_MM * self.scale,
            dxfattribs={
                "layer": "C-ANNO-TEXT",
                "style": "COPING_LABEL",
                "rotation": paver.rotation,
            },
        ).set_placement(self._xy(centroid.x, centroid.y), align=TextEntityAlignment.MIDDLE_CENTER)

    # ── Outlines ────────────────────────────────────────────────────────

    def add_waterline(self, coords: Sequence[tuple[float, float]]):
        """Draw the pool waterline polyline on C-POOL-WTLN."""
        if len(coords) < 3:
            return
        self.msp.add_lwpolyline(
            [self._xy(x, y) for x, y in coords],
            close=True,
            dxfattribs={"layer": "C-POOL-WTLN"},
        )

    def add_boundary(self, coords: Sequence[tuple[float, float]], boundary_id: str = ""):
        """Draw a boundary polygon on C-BNDY, labelled with its id."""
        if len(coords) < 3:
            return
        points = [self._xy(x, y) for x, y in coords]
        self.msp.add_lwpolyline(
            points,
            close=True,
            dxfattribs={"layer": "C-BNDY", "linetype": "DASHED"},
        )
        if boundary_id:
            self.msp.add_text(
                boundary_id,
                height=LABEL_HEIGHT_MM * 2 * self.scale,
                dxfattribs={"layer": "C-ANNO-TEXT", "style": "COPING_LABEL"},
            ).set_placement(points[0], align=TextEntityAlignment.BOTTOM_LEFT)

    # ── Output ─────────────────────────────────────────────────────────

    def save(self, filepath: str):
        """Save DXF to a file on disk."""
        self.doc.saveas(filepath)

    def to_bytes(self) -> bytes:
        """Serialize DXF to bytes for HTTP response streaming."""
        stream = io.StringIO()
        self.doc.write(stream)
        stream.seek(0)
        return stream.read().encode("utf-8")


def export_layout(
    pavers: Iterable[Paver],
    outline: Sequence[tuple[float, float]] = (),
    boundaries: Iterable[tuple[str, Sequence[tuple[float, float]]]] = (),
    unit: str = "mm",
) -> bytes:
    """One-shot export: waterline, boundaries, then pavers."""
    exporter = DXFExporter(unit=unit)
    exporter.add_waterline(outline)
    for boundary_id, coords in boundaries:
        exporter.add_boundary(coords, boundary_id)
    count = exporter.add_pavers(pavers)
    logger.info("Exported %d pavers to DXF (%s)", count, unit)
    return exporter.to_bytes()
