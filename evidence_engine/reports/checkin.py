"""
Check-in Report
===============

Single-phase evidence: the condition of the property at move-in, room by room.
"""

from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from ..models import Asset, CaseRecord, CustomSections, Issue, ReportType, Room, RoomGroup
from ..grouping import group_by_room
from ..render.canvas import FONT_BOLD, PageSequence, TEXT_DARK
from ..render.cover import (
    KeyValue,
    draw_notes,
    format_meter_readings,
    note_excerpt,
    resolve_address,
)
from ..render.formatting import format_long_date, plural
from ..render.grid import CAPTION_HEIGHT, GridGeometry, layout_grid
from ..render.images import DecodedImage
from .base import ReportComposer, ReportContent

ROOM_HEADING_HEIGHT = 22
ROOM_SPACING = 14


class CheckinReportComposer(ReportComposer):
    """Move-in photos grouped by room, hash-verified"""

    report_type = ReportType.CHECKIN_REPORT
    title = "Check-in Report"
    download_label = "Check-in_Report"
    verify_hashes = True
    stay_types = (None, "long_term")
    stay_type_error = "The check-in report is not available for short-stay rentals"
    pack_types = ("checkin", "bundle")

    def collect(
        self,
        case: CaseRecord,
        rooms: Sequence[Room],
        assets: Sequence[Asset],
        issues: Sequence[Issue],
        custom: CustomSections,
        generated_at: datetime,
    ) -> ReportContent:
        groups: List[RoomGroup] = []
        for group in group_by_room(rooms, assets):
            if group.checkin:
                groups.append(RoomGroup(group.room_id, group.room_name, checkin=list(group.checkin)))
        return ReportContent(case=case, generated_at=generated_at, custom=custom, groups=groups)

    def cover_sections(self, content: ReportContent) -> List[Tuple[str, List[KeyValue]]]:
        case = content.case
        details = [
            ("Rental", case.label),
            ("Address", resolve_address(case)),
            ("Lease Period", f"{format_long_date(case.lease_start)} to {format_long_date(case.lease_end)}"),
            ("Generated", format_long_date(content.generated_at)),
        ]
        summary = [
            ("Check-in photos", plural(content.photo_count, "photo")),
            ("Rooms documented", plural(content.rooms_count, "room")),
            ("Check-in completed", format_long_date(case.checkin_completed_at, missing="Not completed")),
        ]
        return [
            ("Property Details", details),
            ("Evidence Summary", summary),
            ("Meter Readings", format_meter_readings(case.meter_readings)),
        ]

    def draw_cover_notes(self, pages: PageSequence, content: ReportContent, cursor_y: float) -> float:
        return draw_notes(pages, "Check-in Notes", note_excerpt(content.case.checkin_notes), cursor_y)

    def draw_body(self, pages: PageSequence, content: ReportContent,
                  images: Dict[str, DecodedImage]) -> None:
        if not content.groups:
            return

        frame = pages.frame
        row_height = GridGeometry(x=frame.margin, width=frame.content_width).row_height
        cursor_y = pages.new_page()
        for group in content.groups:
            photos = self.decoded(images, group.checkin)
            cursor_y = pages.ensure_space(cursor_y, ROOM_HEADING_HEIGHT + CAPTION_HEIGHT + row_height)
            pages.text(pages.frame.margin, cursor_y - 14, group.room_name,
                       font=FONT_BOLD, size=14, color=TEXT_DARK)
            cursor_y -= ROOM_HEADING_HEIGHT
            cursor_y = layout_grid(pages, photos, f"Check-in photos ({len(photos)})", cursor_y)
            cursor_y -= ROOM_SPACING

    def manifest_payload(self, content: ReportContent) -> Dict[str, int]:
        return {"checkin_count": content.photo_count}
