"""
Sheet geometry for RSC (regular slotted container) corrugated boxes.

Pure math. Turns box dimensions (mm) into the flat sheet that gets cut,
scored and folded into the box.

Sheet layout:
    width  = H + W                  (half flap / height / half flap)
    length = 2L + 2W + glue flap    (W / L / W / L / glue flap + trim)
    m2     = width * length / 1_000_000

Example: 600x400x400 box -> 800 mm x 2050 mm sheet = 1.64 m2
"""

import math
from dataclasses import dataclass

GLUE_FLAP_MM = 50           # glue flap + trim added to the sheet length
MAX_SHEET_WIDTH_MM = 1200   # widest sheet the corrugator line can cut

# Catalogue envelope; boxes beyond it need a special price
STANDARD_MAX_LENGTH_MM = 600
STANDARD_MAX_WIDTH_MM = 400
STANDARD_MAX_HEIGHT_MM = 400

M2_DECIMALS = 4


@dataclass(frozen=True)
class UnfoldedSheet:
    sheet_width_mm: int
    sheet_length_mm: int
    m2: float


def calculate_unfolded(length_mm, width_mm, height_mm) -> UnfoldedSheet:
    """Sheet dimensions and m2 for one box. Callers validate ranges first."""
    sheet_width = height_mm + width_mm
    sheet_length = 2 * length_mm + 2 * width_mm + GLUE_FLAP_MM
    m2 = round(sheet_width * sheet_length / 1_000_000, M2_DECIMALS)
    return UnfoldedSheet(sheet_width_mm=sheet_width, sheet_length_mm=sheet_length, m2=m2)


def is_oversized(length_mm, width_mm, height_mm) -> bool:
    """True when the sheet is wider than the production line can cut."""
    return (height_mm + width_mm) > MAX_SHEET_WIDTH_MM


def exceeds_standard_size(length_mm, width_mm, height_mm) -> bool:
    return (
        length_mm > STANDARD_MAX_LENGTH_MM
        or width_mm > STANDARD_MAX_WIDTH_MM
        or height_mm > STANDARD_MAX_HEIGHT_MM
    )


def calculate_total_m2(m2_per_box: float, quantity: int) -> float:
    return round(m2_per_box * quantity, M2_DECIMALS)


def minimum_quantity_for(m2_per_box: float, minimum_m2: float) -> int:
    """Smallest box count whose total area reaches minimum_m2."""
    return math.ceil(minimum_m2 / m2_per_box)


def box_warnings(length_mm, width_mm, height_mm, total_m2: float, minimum_m2: float) -> list:
    """Human-readable warnings for a single box model in a quote."""
    warnings = []
    if is_oversized(length_mm, width_mm, height_mm):
        warnings.append(
            f"Box {length_mm}x{width_mm}x{height_mm} needs a "
            f"{height_mm + width_mm} mm sheet, wider than the {MAX_SHEET_WIDTH_MM} mm "
            f"production limit. Requires a special quote."
        )
    elif exceeds_standard_size(length_mm, width_mm, height_mm):
        warnings.append(
            f"Box {length_mm}x{width_mm}x{height_mm} exceeds the standard size "
            f"({STANDARD_MAX_LENGTH_MM}x{STANDARD_MAX_WIDTH_MM}x{STANDARD_MAX_HEIGHT_MM} mm). "
            f"Price subject to confirmation."
        )
    if total_m2 < minimum_m2:
        sheet = calculate_unfolded(length_mm, width_mm, height_mm)
        warnings.append(
            f"Model {length_mm}x{width_mm}x{height_mm} is below the recommended minimum of "
            f"{minimum_m2:,.0f} m2. Suggested quantity: "
            f"{minimum_quantity_for(sheet.m2, minimum_m2):,} units."
        )
    return warnings
