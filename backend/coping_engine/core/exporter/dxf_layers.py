"""DXF layer, linetype and text style definitions for coping drawings.

Layer naming follows the AIA format used by site plans, with a C- (civil /
landscape) discipline prefix: C-<element>[-<modifier>].

ACI color index reference:
  1=red  2=yellow  3=green  4=cyan  5=blue  6=magenta  7=white
  8=dark grey  9=light grey  250=light grey  251-255=grey scale

Lineweight values are in 100ths of mm:
  13=0.13mm  18=0.18mm  25=0.25mm  35=0.35mm  50=0.50mm  70=0.70mm
"""

from __future__ import annotations

from dataclasses import dataclass

from coping_engine.core.layout.paver import PaverCategory


@dataclass(frozen=True)
class LayerDef:
    """Single layer definition with all AutoCAD properties."""
    name: str
    color: int
    linetype: str
    lineweight: int
    description: str
    plot: bool = True


# ── Layer definitions ───────────────────────────────────────────────────

LAYERS: list[LayerDef] = [
    # Pool
    LayerDef("C-POOL-WTLN",   5,   "Continuous",  50, "Pool waterline"),

    # Coping
    LayerDef("C-COPE-CRNR",   1,   "Continuous",  35, "Corner coping pavers"),
    LayerDef("C-COPE-FULL",   7,   "Continuous",  25, "Full coping pavers"),
    LayerDef("C-COPE-STRP",   6,   "Continuous",  25, "Stripe cut pavers"),
    LayerDef("C-COPE-EXTN",   4,   "Continuous",  25, "Extension row pavers"),
    LayerDef("C-COPE-CUT",    251, "Continuous",  -1, "Cut paver hatching"),

    # Annotations
    LayerDef("C-ANNO-TEXT",   2,   "Continuous",  -1, "Cut sizes and labels"),

    # Site
    LayerDef("C-BNDY",        3,   "DASHED",      35, "Boundaries (house, fence, property)"),
]

LAYER_MAP: dict[str, LayerDef] = {layer.name: layer for layer in LAYERS}

CATEGORY_LAYERS: dict[PaverCategory, str] = {
    PaverCategory.CORNER: "C-COPE-CRNR",
    PaverCategory.FULL: "C-COPE-FULL",
    PaverCategory.STRIPE: "C-COPE-STRP",
}
EXTENSION_LAYER = "C-COPE-EXTN"
CUT_HATCH_LAYER = "C-COPE-CUT"


# ── Linetype definitions ───────────────────────────────────────────────

CUSTOM_LINETYPES: list[dict] = [
    {
        "name": "DASHED",
        "pattern": "A,6.35,-3.175",  # ISO dash pattern
        "description": "Dashed __ __ __ __",
    },
]


# ── Text style definitions ─────────────────────────────────────────────

TEXT_STYLES: list[dict] = [
    {
        "name": "COPING_LABEL",
        "font": "Arial",
    },
]


# ── DXF unit mapping ───────────────────────────────────────────────────

DXF_UNITS = {
    "mm": 4,
    "cm": 5,
    "m": 6,
    "ft": 2,
    "in": 1,
}
