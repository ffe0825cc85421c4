"""
Deposit Recovery Pack
=====================

Before/after comparison for the end of a tenancy. Each room shows its
check-in and handover photos side by side; a room documented in only one
phase says so explicitly. Reported issues follow the room pages.

Hash verification is off by default for this variant: the sealing timestamps
on both phases are treated as the integrity guarantee. DEPOSIT_PACK_VERIFY_HASHES
turns the gate on.
"""

from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from ..config import Settings
from ..grouping import group_by_room
from ..models import Asset, CaseRecord, CustomSections, Issue, ReportType, Room
from ..render.canvas import FONT_BOLD, PageSequence, TEXT_MUTED
from ..render.comparison import PhaseLabels, layout_comparison
from ..render.cover import (
    KeyValue,
    draw_heading,
    draw_notes,
    format_meter_readings,
    note_excerpt,
    resolve_address,
)
from ..render.formatting import format_long_date, format_short_date, plural
from ..render.images import DecodedImage
from .base import ReportComposer, ReportContent


class DepositPackComposer(ReportComposer):
    """Check-in vs handover comparison, room by room"""

    report_type = ReportType.DEPOSIT_PACK
    title = "Deposit Recovery Pack"
    download_label = "Deposit_Recovery_Pack"
    verify_hashes = False
    stay_types = (None, "long_term")
    stay_type_error = "The deposit recovery pack is not available for short-stay rentals"
    pack_types = ("deposit_pack", "moveout", "bundle")
    phase_labels = PhaseLabels(before="Check-in", after="Handover")

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.verify_hashes = settings.deposit_pack_verify_hashes

    def collect(
        self,
        case: CaseRecord,
        rooms: Sequence[Room],
        assets: Sequence[Asset],
        issues: Sequence[Issue],
        custom: CustomSections,
        generated_at: datetime,
    ) -> ReportContent:
        return ReportContent(
            case=case,
            generated_at=generated_at,
            custom=custom,
            groups=group_by_room(rooms, assets),
            issues=list(issues),
        )

    def _phase_totals(self, content: ReportContent) -> Tuple[int, int]:
        checkin = sum(len(g.checkin) for g in content.groups)
        handover = sum(len(g.handover) for g in content.groups)
        return checkin, handover

    def cover_sections(self, content: ReportContent) -> List[Tuple[str, List[KeyValue]]]:
        case = content.case
        checkin, handover = self._phase_totals(content)
        details = [
            ("Rental", case.label),
            ("Address", resolve_address(case)),
            ("Lease Period", f"{format_long_date(case.lease_start)} to {format_long_date(case.lease_end)}"),
            ("Generated", format_long_date(content.generated_at)),
        ]
        summary = [
            ("Check-in photos", plural(checkin, "photo")),
            ("Handover photos", plural(handover, "photo")),
            ("Rooms documented", plural(content.rooms_count, "room")),
            ("Handover completed", format_short_date(case.handover_completed_at, missing="Not completed")),
            ("Keys returned", format_short_date(case.keys_returned_at, missing="Not confirmed")),
        ]
        return [
            ("Property Details", details),
            ("Evidence Summary", summary),
            ("Final Meter Readings", format_meter_readings(case.meter_readings)),
        ]

    def draw_cover_notes(self, pages: PageSequence, content: ReportContent, cursor_y: float) -> float:
        return draw_notes(pages, "Handover Notes", note_excerpt(content.case.handover_notes), cursor_y)

    def draw_body(self, pages: PageSequence, content: ReportContent,
                  images: Dict[str, DecodedImage]) -> None:
        if not content.groups and not content.issues:
            return

        cursor_y = pages.new_page()
        for group in content.groups:
            cursor_y = layout_comparison(
                pages,
                group.room_name,
                self.decoded(images, group.checkin),
                self.decoded(images, group.handover),
                cursor_y,
                labels=self.phase_labels,
            )

        if content.issues:
            self._draw_issues(pages, content.issues, cursor_y)

    def _draw_issues(self, pages: PageSequence, issues: Sequence[Issue], cursor_y: float) -> float:
        cursor_y = draw_heading(pages, "Reported Issues", cursor_y)
        for issue in issues:
            where = issue.room_name or "General"
            when = format_short_date(issue.incident_date, missing="Date not recorded")
            cursor_y = pages.paragraph(cursor_y, f"{where} ({when})", font=FONT_BOLD, size=10)
            cursor_y = pages.paragraph(cursor_y, issue.description, size=10, color=TEXT_MUTED) - 8
        return cursor_y

    def manifest_payload(self, content: ReportContent) -> Dict[str, int]:
        checkin, handover = self._phase_totals(content)
        return {"checkin_count": checkin, "handover_count": handover}
