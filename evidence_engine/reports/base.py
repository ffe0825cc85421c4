"""
Report Composer Base
====================

One composition pipeline shared by every report variant:

    COVER -> BODY (photo pages) -> INTEGRITY APPENDIX -> PAGINATION -> WATERMARK -> SERIALIZE

Variants supply cover content, the body layout and their inclusion policy
(which stay types and purchases they accept, and whether the hash gate runs).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..config import Settings
from ..errors import ForbiddenError, InvalidRequestError
from ..models import Asset, Caller, CaseRecord, CustomSections, Issue, ReportType, Room, RoomGroup
from ..render.canvas import FONT_BOLD, PageFrame, PageHandle, PageSequence, TEXT_DARK, TEXT_MUTED
from ..render.comparison import PhaseLabels
from ..render.cover import (
    DisclosurePhases,
    KeyValue,
    draw_disclosure,
    draw_optional_sections,
    draw_section,
    draw_title,
    evidence_disclosure,
)
from ..render.finishing import finishing_stages
from ..render.formatting import format_short_date, type_label
from ..render.images import DecodedImage

APPENDIX_TITLE = "Appendix — File Integrity"
APPENDIX_ROW_HEIGHT = 12
APPENDIX_COLUMNS = (0, 100, 180)  # x offsets from the margin: date, type, hash


@dataclass
class ReportContent:
    """Everything a composer draws, gathered before any drawing starts"""
    case: CaseRecord
    generated_at: datetime
    custom: CustomSections = field(default_factory=CustomSections)
    groups: List[RoomGroup] = field(default_factory=list)
    checkin: List[Asset] = field(default_factory=list)
    handover: List[Asset] = field(default_factory=list)
    videos: List[Asset] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)

    @property
    def photos(self) -> List[Asset]:
        """Photos embedded in the document, in drawing order"""
        if self.groups:
            ordered: List[Asset] = []
            for group in self.groups:
                ordered.extend(group.checkin)
                ordered.extend(group.handover)
            return ordered
        return list(self.checkin) + list(self.handover)

    @property
    def evidence(self) -> List[Asset]:
        """Assets the document vouches for: embedded photos plus referenced videos"""
        return self.photos + list(self.videos)

    @property
    def photo_count(self) -> int:
        return len(self.photos)

    @property
    def rooms_count(self) -> int:
        return sum(1 for g in self.groups if g.room_id is not None)


@dataclass
class ComposedDocument:
    """A finished, serialized document and what was laid out in it"""
    pdf_bytes: bytes
    pages: List[PageHandle]
    photo_count: int
    rooms_count: int
    payload: Dict[str, int] = field(default_factory=dict)

    @property
    def page_count(self) -> int:
        return len(self.pages)


class ReportComposer(ABC):
    """
    Abstract base class for report variants.

    Subclasses must set the class attributes and implement:
    - collect(): arrange the case's assets for this variant
    - cover_sections(): key/value blocks of the cover page
    - draw_body(): photo pages
    """

    report_type: ReportType
    title: str = ""
    download_label: str = ""
    verify_hashes: bool = True
    stay_types: Tuple[Optional[str], ...] = ()
    stay_type_error: str = "This report is not available for this rental"
    pack_types: Tuple[str, ...] = ()
    phase_labels: PhaseLabels = PhaseLabels()
    disclosure_phases: DisclosurePhases = DisclosurePhases()

    def __init__(self, settings: Settings):
        self.settings = settings
        self.brand = settings.brand_name

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def check_stay_type(self, case: CaseRecord) -> None:
        if case.stay_type not in self.stay_types:
            raise InvalidRequestError(self.stay_type_error, details={"stayType": case.stay_type})

    def is_entitled(self, caller: Caller, purchase_types: Sequence[str]) -> bool:
        if caller.is_admin:
            return True
        return any(pack in self.pack_types for pack in purchase_types)

    def check_entitlement(self, caller: Caller, purchase_types: Sequence[str], for_preview: bool) -> None:
        """Previews are open to the owner; final documents need a purchase"""
        if for_preview or self.is_entitled(caller, purchase_types):
            return
        raise ForbiddenError(f"A purchase is required to download the {self.title}")

    def download_name(self, case_id: str) -> str:
        return f"{self.brand}_{self.download_label}_{case_id[:8]}.pdf"

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    @abstractmethod
    def collect(
        self,
        case: CaseRecord,
        rooms: Sequence[Room],
        assets: Sequence[Asset],
        issues: Sequence[Issue],
        custom: CustomSections,
        generated_at: datetime,
    ) -> ReportContent:
        """Select and arrange the assets this variant includes"""
        pass

    @abstractmethod
    def cover_sections(self, content: ReportContent) -> List[Tuple[str, List[KeyValue]]]:
        """Titled key/value blocks drawn at the top of the cover"""
        pass

    def draw_cover_notes(self, pages: PageSequence, content: ReportContent, cursor_y: float) -> float:
        """Variant-specific cover content below the key/value blocks"""
        return cursor_y

    @abstractmethod
    def draw_body(self, pages: PageSequence, content: ReportContent,
                  images: Dict[str, DecodedImage]) -> None:
        pass

    def manifest_payload(self, content: ReportContent) -> Dict[str, int]:
        """Extra counts recorded with the output"""
        return {}

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw_cover(self, pages: PageSequence, content: ReportContent) -> None:
        cursor_y = pages.new_page(kind="cover")
        cursor_y = draw_title(pages, self.brand, self.title, cursor_y)
        for heading, rows in self.cover_sections(content):
            if rows:
                cursor_y = draw_section(pages, heading, rows, cursor_y)
        cursor_y = self.draw_cover_notes(pages, content, cursor_y)
        cursor_y = draw_optional_sections(pages, content.custom, cursor_y)
        draw_disclosure(pages, evidence_disclosure(content.case, self.disclosure_phases), cursor_y)

    def draw_appendix(self, pages: PageSequence, content: ReportContent) -> None:
        """Date, type and SHA-256 of every asset the document vouches for"""
        assets = content.evidence
        if not assets:
            return

        frame = pages.frame
        cursor_y = self._appendix_page(pages, APPENDIX_TITLE)
        cursor_y = pages.paragraph(
            cursor_y,
            "SHA-256 fingerprints recorded when each file was uploaded. "
            "A matching fingerprint shows the file has not changed since.",
            size=9, color=TEXT_MUTED,
        ) - 8
        cursor_y = self._appendix_header(pages, cursor_y)

        date_x, type_x, hash_x = (frame.margin + offset for offset in APPENDIX_COLUMNS)
        for asset in assets:
            if cursor_y - APPENDIX_ROW_HEIGHT < frame.bottom:
                cursor_y = self._appendix_page(pages, f"{APPENDIX_TITLE} (Cont.)")
                cursor_y = self._appendix_header(pages, cursor_y)
            baseline = cursor_y - 8
            pages.text(date_x, baseline, format_short_date(asset.created_at), size=8)
            pages.text(type_x, baseline, type_label(asset.type), size=8)
            pages.text(hash_x, baseline, asset.content_hash or "Not recorded", size=7, color=TEXT_MUTED)
            cursor_y -= APPENDIX_ROW_HEIGHT

    def _appendix_page(self, pages: PageSequence, heading: str) -> float:
        cursor_y = pages.new_page(kind="appendix")
        pages.text(pages.frame.margin, cursor_y - 16, heading, font=FONT_BOLD, size=16, color=TEXT_DARK)
        return cursor_y - 30

    def _appendix_header(self, pages: PageSequence, cursor_y: float) -> float:
        frame = pages.frame
        date_x, type_x, hash_x = (frame.margin + offset for offset in APPENDIX_COLUMNS)
        for x, label in ((date_x, "Date (UTC)"), (type_x, "Type"), (hash_x, "SHA-256 Hash")):
            pages.text(x, cursor_y - 9, label, font=FONT_BOLD, size=9)
        cursor_y -= 13
        pages.line(frame.margin, cursor_y, frame.width - frame.margin, cursor_y, thickness=0.5)
        return cursor_y - 4

    def decoded(self, images: Dict[str, DecodedImage], assets: Sequence[Asset]) -> List[DecodedImage]:
        return [images.get(a.asset_id) or DecodedImage(asset=a) for a in assets]

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def compose(
        self,
        content: ReportContent,
        images: Dict[str, DecodedImage],
        for_preview: bool,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> ComposedDocument:
        """
        Run the full pipeline and return the serialized document.

        Args:
            content: Output of collect()
            images: asset_id -> decoded photo
            for_preview: Watermark every page
            checkpoint: Called between stages; raises to abort

        Returns:
            ComposedDocument with bytes, page records and counts
        """
        check = checkpoint or (lambda: None)
        frame = PageFrame()
        pages = PageSequence(
            frame,
            header_text=self.brand,
            title=f"{self.brand} {self.title}".strip(),
            author=self.brand,
            invariant=self.settings.pdf_invariant,
        )

        self.draw_cover(pages, content)
        check()
        self.draw_body(pages, content, images)
        check()
        self.draw_appendix(pages, content)
        check()

        footer = f"{self.brand} {self.settings.footer_text}".strip()
        pdf_bytes = pages.finish(finishing_stages(frame, footer, for_preview))

        return ComposedDocument(
            pdf_bytes=pdf_bytes,
            pages=list(pages.pages),
            photo_count=content.photo_count,
            rooms_count=content.rooms_count,
            payload=self.manifest_payload(content),
        )
