"""
Short-Stay Report
=================

Arrival and departure evidence for holiday lets. Photos are not grouped by
room: each phase is one chronological grid on its own page. Walkthrough
videos are listed on the cover but never embedded.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..grouping import find_video, split_by_phase
from ..models import Asset, CaseRecord, CustomSections, Issue, ReportType, Room
from ..render.canvas import FONT_BOLD, FONT_ITALIC, PageSequence, TEXT_DARK, TEXT_MUTED
from ..render.comparison import PhaseLabels
from ..render.cover import (
    DisclosurePhases,
    KeyValue,
    draw_heading,
    format_duration,
    resolve_address,
)
from ..render.formatting import format_long_date, plural
from ..render.grid import layout_grid
from ..render.images import DecodedImage
from .base import ReportComposer, ReportContent

VIDEO_NOTE = "Videos are available as downloadable files and are not embedded in this PDF."


class ShortStayReportComposer(ReportComposer):
    """Arrival and departure photos for a short stay, hash-verified"""

    report_type = ReportType.SHORT_STAY_REPORT
    title = "Short-Stay Evidence Report"
    download_label = "Short-Stay_Report"
    verify_hashes = True
    stay_types = ("short_stay",)
    stay_type_error = "This PDF is only for short-stay rentals"
    pack_types = ("short_stay",)
    phase_labels = PhaseLabels(before="Arrival", after="Departure")
    disclosure_phases = DisclosurePhases(before="arrival", after="departure")

    def collect(
        self,
        case: CaseRecord,
        rooms: Sequence[Room],
        assets: Sequence[Asset],
        issues: Sequence[Issue],
        custom: CustomSections,
        generated_at: datetime,
    ) -> ReportContent:
        arrival, departure = split_by_phase(assets)
        videos = [v for v in (find_video(assets, "check-in"), find_video(assets, "handover")) if v]
        return ReportContent(
            case=case,
            generated_at=generated_at,
            custom=custom,
            checkin=arrival,
            handover=departure,
            videos=videos,
        )

    def _video(self, content: ReportContent, phase: str) -> Optional[Asset]:
        return find_video(content.videos, phase)

    def cover_sections(self, content: ReportContent) -> List[Tuple[str, List[KeyValue]]]:
        case = content.case
        booking = [
            ("Property", case.label),
            ("Address", resolve_address(case)),
            ("Platform", case.platform_name or "Not specified"),
            ("Reservation ID", case.reservation_id or "Not specified"),
            ("Check-in", format_long_date(case.check_in_date)),
            ("Check-out", format_long_date(case.check_out_date)),
            ("Generated", format_long_date(content.generated_at)),
        ]
        if case.checkin_completed_at:
            booking.append(("Arrival Sealed", format_long_date(case.checkin_completed_at)))
        if case.handover_completed_at:
            booking.append(("Departure Sealed", format_long_date(case.handover_completed_at)))

        arrival_video = self._video(content, "check-in")
        departure_video = self._video(content, "handover")
        summary = [
            ("Arrival photos", plural(len(content.checkin), "photo")),
            ("Arrival video", "Recorded (timestamped)" if arrival_video else "Not recorded"),
            ("Departure photos", plural(len(content.handover), "photo")),
            ("Departure video", "Recorded (timestamped)" if departure_video else "Not recorded"),
        ]
        return [("Booking Details", booking), ("Evidence Summary", summary)]

    def draw_cover_notes(self, pages: PageSequence, content: ReportContent, cursor_y: float) -> float:
        if not content.videos:
            return cursor_y

        cursor_y = draw_heading(pages, "Walkthrough Videos", cursor_y)
        for phase, label in (("check-in", "Arrival"), ("handover", "Departure")):
            video = self._video(content, phase)
            if video is None:
                continue
            line = f"• {label} walkthrough video recorded"
            duration = format_duration(video.duration_seconds)
            if duration:
                line += f" ({duration})"
            cursor_y = pages.paragraph(cursor_y, line, size=10)
        cursor_y = pages.paragraph(cursor_y, VIDEO_NOTE, font=FONT_ITALIC, size=9, color=TEXT_MUTED)
        return cursor_y - 20

    def _draw_phase(self, pages: PageSequence, label: str, caption: str,
                    photos: List[DecodedImage]) -> None:
        cursor_y = pages.new_page()
        pages.text(pages.frame.margin, cursor_y - 16, f"{label} Evidence",
                   font=FONT_BOLD, size=16, color=TEXT_DARK)
        cursor_y -= 30
        if photos:
            layout_grid(pages, photos, caption, cursor_y)
        else:
            pages.text(pages.frame.margin, cursor_y - 11, f"{label} photos were not documented",
                       font=FONT_ITALIC, size=10, color=TEXT_MUTED)

    def draw_body(self, pages: PageSequence, content: ReportContent,
                  images: Dict[str, DecodedImage]) -> None:
        if not content.checkin and not content.handover:
            return

        arrival = self.decoded(images, content.checkin)
        departure = self.decoded(images, content.handover)
        self._draw_phase(pages, self.phase_labels.before,
                         f"{len(arrival)} photos uploaded at check-in", arrival)
        self._draw_phase(pages, self.phase_labels.after,
                         f"{len(departure)} photos uploaded at check-out", departure)

    def manifest_payload(self, content: ReportContent) -> Dict[str, int]:
        return {
            "arrival_photo_count": len(content.checkin),
            "departure_photo_count": len(content.handover),
        }
