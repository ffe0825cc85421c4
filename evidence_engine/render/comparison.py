"""
Comparison Layout Engine
========================

Before/after presentation of one room.

Both phases present: two half-width grids sharing row bands, before on the
left, after on the right. One phase only: a full-width grid followed by a
neutral note that the other phase was not documented. Missing photos are
labelled, never hidden and never interpreted.
"""

import math
from dataclasses import dataclass
from typing import Sequence

from .canvas import FONT_BOLD, FONT_ITALIC, PageSequence, TEXT_DARK, TEXT_MUTED
from .grid import CAPTION_HEIGHT, GRID_COLUMNS, GridGeometry, draw_row, layout_grid
from .images import DecodedImage

BANNER = "Property Condition — Before vs After"
SIDE_COLUMNS = 2
COLUMN_GAP = 15
BANNER_HEIGHT = 24
ROOM_HEADING_HEIGHT = 20
COLUMN_HEADER_HEIGHT = 14
NOTE_HEIGHT = 18
ROOM_SPACING = 12


@dataclass(frozen=True)
class PhaseLabels:
    """Display names for the two phases"""
    before: str = "Move-In"
    after: str = "Move-Out"


def not_documented_note(phase_label: str) -> str:
    return f"{phase_label} photos were not documented for this room"


def _room_heading(pages: PageSequence, room_name: str, cursor_y: float) -> float:
    pages.text(pages.frame.margin, cursor_y - 13, room_name, font=FONT_BOLD, size=13, color=TEXT_DARK)
    return cursor_y - ROOM_HEADING_HEIGHT


def _column_headers(pages: PageSequence, left: GridGeometry, right: GridGeometry,
                    labels: PhaseLabels, counts, cursor_y: float) -> float:
    before_count, after_count = counts
    pages.text(left.x, cursor_y - 9, f"{labels.before} ({before_count})", font=FONT_BOLD, size=9, color=TEXT_MUTED)
    pages.text(right.x, cursor_y - 9, f"{labels.after} ({after_count})", font=FONT_BOLD, size=9, color=TEXT_MUTED)
    return cursor_y - COLUMN_HEADER_HEIGHT


def _side_by_side(pages: PageSequence, room_name: str, before: Sequence[DecodedImage],
                  after: Sequence[DecodedImage], cursor_y: float, labels: PhaseLabels) -> float:
    frame = pages.frame
    half = (frame.content_width - COLUMN_GAP) / 2
    left = GridGeometry(x=frame.margin, width=half, columns=SIDE_COLUMNS)
    right = GridGeometry(x=frame.margin + half + COLUMN_GAP, width=half, columns=SIDE_COLUMNS)
    counts = (len(before), len(after))

    bands = max(math.ceil(len(before) / SIDE_COLUMNS), math.ceil(len(after) / SIDE_COLUMNS))

    # Whole room when it fits on a page, otherwise at least two bands
    header_block = BANNER_HEIGHT + ROOM_HEADING_HEIGHT + COLUMN_HEADER_HEIGHT
    whole_room = header_block + bands * left.row_height
    if whole_room <= frame.top - frame.bottom:
        needed = whole_room
    else:
        needed = header_block + min(bands, 2) * left.row_height
    cursor_y = pages.ensure_space(cursor_y, needed)

    pages.text(frame.margin, cursor_y - 14, BANNER, font=FONT_BOLD, size=14, color=TEXT_DARK)
    cursor_y -= BANNER_HEIGHT
    cursor_y = _room_heading(pages, room_name, cursor_y)
    cursor_y = _column_headers(pages, left, right, labels, counts, cursor_y)

    for band in range(bands):
        if cursor_y - left.row_height < frame.bottom:
            cursor_y = pages.new_page()
            cursor_y = _room_heading(pages, f"{room_name} (cont.)", cursor_y)
            cursor_y = _column_headers(pages, left, right, labels, counts, cursor_y)
        start = band * SIDE_COLUMNS
        draw_row(pages, before[start:start + SIDE_COLUMNS], left, cursor_y)
        draw_row(pages, after[start:start + SIDE_COLUMNS], right, cursor_y)
        cursor_y -= left.row_height

    return cursor_y - ROOM_SPACING


def _single_phase(pages: PageSequence, room_name: str, images: Sequence[DecodedImage],
                  present_label: str, missing_label: str, cursor_y: float) -> float:
    frame = pages.frame
    full_row = GridGeometry(x=frame.margin, width=frame.content_width, columns=GRID_COLUMNS).row_height

    cursor_y = pages.ensure_space(cursor_y, ROOM_HEADING_HEIGHT + CAPTION_HEIGHT + full_row)
    cursor_y = _room_heading(pages, room_name, cursor_y)
    cursor_y = layout_grid(pages, images, f"{present_label} photos ({len(images)})", cursor_y)

    cursor_y = pages.ensure_space(cursor_y, NOTE_HEIGHT)
    pages.text(frame.margin, cursor_y - 11, not_documented_note(missing_label),
               font=FONT_ITALIC, size=10, color=TEXT_MUTED)
    return cursor_y - NOTE_HEIGHT - ROOM_SPACING


def layout_comparison(
    pages: PageSequence,
    room_name: str,
    before: Sequence[DecodedImage],
    after: Sequence[DecodedImage],
    cursor_y: float,
    labels: PhaseLabels = PhaseLabels(),
) -> float:
    """
    Lay out one room's before/after evidence.

    Returns:
        Cursor y below the room's block
    """
    if before and after:
        return _side_by_side(pages, room_name, before, after, cursor_y, labels)
    if before:
        return _single_phase(pages, room_name, before, labels.before, labels.after, cursor_y)
    if after:
        return _single_phase(pages, room_name, after, labels.after, labels.before, cursor_y)
    return cursor_y
