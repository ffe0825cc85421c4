"""
Cover Page Building Blocks
==========================

Shared by all report variants:
- address resolution with a fallback chain
- meter readings (blank values skipped, optional unit)
- optional user sections, each a (predicate, renderer) pair
- evidence-handling disclosure derived from which phases are sealed
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models import CaseRecord, CustomSections
from .canvas import FONT_BOLD, FONT_REGULAR, PageSequence, TEXT_DARK, TEXT_MUTED
from .formatting import format_long_date

KeyValue = Tuple[str, str]


# =============================================================================
# CONTENT RULES
# =============================================================================

def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_address(case: CaseRecord) -> str:
    """
    Contract analysis address -> flat address -> placeholder naming the rental.

    Never returns an empty string.
    """
    analysis = case.contract_analysis or {}
    candidates = [analysis.get("property_address"), analysis.get("address")]
    property_info = analysis.get("property")
    if isinstance(property_info, dict):
        candidates.append(property_info.get("address"))
    candidates.append(case.address)

    for candidate in candidates:
        address = _clean(candidate)
        if address:
            return address
    return f"Address not provided (see rental: {case.label})"


def meter_label(name: str) -> str:
    label = name.replace("_", " ").strip()
    return label[:1].upper() + label[1:]


def format_meter_readings(readings: Optional[Dict[str, Any]]) -> List[KeyValue]:
    """
    Render readings that have a non-blank value.

    A reading is either a bare value or {"value", "unit", "photo_asset_id"}.
    """
    rows: List[KeyValue] = []
    for name, reading in (readings or {}).items():
        if isinstance(reading, dict):
            value = _clean(reading.get("value"))
            if not value:
                continue
            unit = _clean(reading.get("unit"))
            display = f"{value} {unit}" if unit else value
            if reading.get("photo_asset_id"):
                display += " (photo on file)"
        else:
            display = _clean(reading)
            if not display:
                continue
        rows.append((meter_label(name), display))
    return rows


def note_excerpt(notes: Optional[str], max_lines: int = 4, max_chars: int = 80) -> List[str]:
    """First few lines of free-text notes, each cut to fit one cover line"""
    if not notes or not notes.strip():
        return []
    lines = notes.strip().splitlines()[:max_lines]
    return [line[:max_chars] for line in lines]


def format_duration(seconds: Optional[int]) -> Optional[str]:
    if not seconds or seconds <= 0:
        return None
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s" if minutes else f"{secs}s"


@dataclass(frozen=True)
class DisclosurePhases:
    """How a variant names its two phases in the disclosure text"""
    before: str = "check-in"
    after: str = "handover"


def evidence_disclosure(case: CaseRecord, phases: DisclosurePhases = DisclosurePhases()) -> List[str]:
    """
    Evidence-handling statements.

    A phase is only described as sealed when its completion timestamp
    exists, and full before/after coverage is only claimed when both are.
    """
    lines: List[str] = []
    before_sealed = case.checkin_completed_at
    after_sealed = case.handover_completed_at

    if before_sealed and after_sealed:
        lines.append(
            f"This report documents the condition of the property at {phases.before} and {phases.after}."
        )
        lines.append(
            f"Both evidence sets are sealed ({phases.before}: {format_long_date(before_sealed)}, "
            f"{phases.after}: {format_long_date(after_sealed)}); sealed photos cannot be changed."
        )
    elif before_sealed:
        lines.append(
            f"The {phases.before} evidence set was sealed on {format_long_date(before_sealed)} and cannot be changed."
        )
        lines.append(f"The {phases.after} evidence set has not been sealed.")
    elif after_sealed:
        lines.append(
            f"The {phases.after} evidence set was sealed on {format_long_date(after_sealed)} and cannot be changed."
        )
        lines.append(f"The {phases.before} evidence set has not been sealed.")
    else:
        lines.append("No evidence set has been sealed yet; stored photos may still change.")

    lines.append("Photos are timestamped using system time (UTC) and stored securely.")
    lines.append("This report is a snapshot of stored records at the time of generation.")
    return lines


# =============================================================================
# DRAWING HELPERS
# =============================================================================

SECTION_GAP = 20


def draw_title(pages: PageSequence, brand: str, title: str, cursor_y: float) -> float:
    frame = pages.frame
    if brand:
        pages.text(frame.margin, cursor_y - 24, brand, font=FONT_BOLD, size=24, color=TEXT_DARK)
        cursor_y -= 40
    pages.text(frame.margin, cursor_y - 20, title, font=FONT_BOLD, size=20, color=TEXT_DARK)
    cursor_y -= 32
    pages.line(frame.margin, cursor_y, frame.width - frame.margin, cursor_y, thickness=1.5, color=TEXT_DARK)
    return cursor_y - SECTION_GAP


def draw_heading(pages: PageSequence, title: str, cursor_y: float, size: float = 14) -> float:
    cursor_y = pages.ensure_space(cursor_y, size + 30)
    pages.text(pages.frame.margin, cursor_y - size, title, font=FONT_BOLD, size=size, color=TEXT_DARK)
    return cursor_y - size - 10


def draw_key_values(pages: PageSequence, rows: Sequence[KeyValue], cursor_y: float,
                    value_x: float = 170) -> float:
    frame = pages.frame
    for label, value in rows:
        cursor_y = pages.ensure_space(cursor_y, 18)
        pages.text(frame.margin, cursor_y - 11, f"{label}:", font=FONT_BOLD, size=11)
        width = frame.width - frame.margin - value_x
        cursor_y = pages.paragraph(cursor_y, value, font=FONT_REGULAR, size=11, x=value_x,
                                   width=width, leading=18)
    return cursor_y


def draw_section(pages: PageSequence, title: str, rows: Sequence[KeyValue], cursor_y: float,
                 value_x: float = 170) -> float:
    cursor_y = draw_heading(pages, title, cursor_y)
    cursor_y = draw_key_values(pages, rows, cursor_y, value_x=value_x)
    return cursor_y - SECTION_GAP


def draw_notes(pages: PageSequence, title: str, lines: Sequence[str], cursor_y: float) -> float:
    if not lines:
        return cursor_y
    cursor_y = draw_heading(pages, title, cursor_y)
    for line in lines:
        cursor_y = pages.ensure_space(cursor_y, 14)
        pages.text(pages.frame.margin, cursor_y - 10, line, size=10)
        cursor_y -= 14
    return cursor_y - SECTION_GAP


def draw_disclosure(pages: PageSequence, lines: Sequence[str], cursor_y: float) -> float:
    cursor_y = draw_heading(pages, "Evidence handling", cursor_y, size=12)
    for line in lines:
        cursor_y = pages.paragraph(cursor_y, line, size=9, color=TEXT_MUTED, leading=13)
    return cursor_y - SECTION_GAP


# =============================================================================
# OPTIONAL SECTIONS
# =============================================================================

@dataclass(frozen=True)
class OptionalSection:
    """A cover block shown only when included and non-empty"""
    name: str
    predicate: Callable[[CustomSections], bool]
    renderer: Callable[[PageSequence, CustomSections, float], float]


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _valid_rating(rating: Optional[int]) -> bool:
    return rating is not None and 1 <= rating <= 5


def _render_personal_notes(pages: PageSequence, custom: CustomSections, cursor_y: float) -> float:
    cursor_y = draw_heading(pages, "Personal Notes", cursor_y)
    return pages.paragraph(cursor_y, custom.personal_notes.strip(), size=10)


def _render_property_review(pages: PageSequence, custom: CustomSections, cursor_y: float) -> float:
    cursor_y = draw_heading(pages, "Property Review", cursor_y)
    if _valid_rating(custom.property_rating):
        cursor_y = pages.paragraph(cursor_y, f"Rating: {custom.property_rating} out of 5 stars",
                                   font=FONT_BOLD, size=11)
    if _has_text(custom.property_review):
        cursor_y = pages.paragraph(cursor_y, custom.property_review.strip(), size=10)
    return cursor_y


def _render_custom_section(pages: PageSequence, custom: CustomSections, cursor_y: float) -> float:
    title = custom.custom_title.strip() if _has_text(custom.custom_title) else "Additional Information"
    cursor_y = draw_heading(pages, title, cursor_y)
    return pages.paragraph(cursor_y, custom.custom_content.strip(), size=10)


OPTIONAL_SECTIONS: List[OptionalSection] = [
    OptionalSection(
        name="personal_notes",
        predicate=lambda c: c.include_personal_notes and _has_text(c.personal_notes),
        renderer=_render_personal_notes,
    ),
    OptionalSection(
        name="property_review",
        predicate=lambda c: c.include_property_review and (
            _valid_rating(c.property_rating) or _has_text(c.property_review)
        ),
        renderer=_render_property_review,
    ),
    OptionalSection(
        name="custom_section",
        predicate=lambda c: c.include_custom_section and _has_text(c.custom_content),
        renderer=_render_custom_section,
    ),
]


def enabled_sections(custom: CustomSections) -> List[OptionalSection]:
    return [section for section in OPTIONAL_SECTIONS if section.predicate(custom)]


def draw_optional_sections(pages: PageSequence, custom: CustomSections, cursor_y: float) -> float:
    for section in enabled_sections(custom):
        cursor_y = section.renderer(pages, custom, cursor_y)
        cursor_y -= SECTION_GAP
    return cursor_y
