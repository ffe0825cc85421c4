"""
Page Sequence
=============

The page provider every layout engine draws through.

Pages are kept in emission order as an append-only list of PageHandle
objects. The underlying reportlab canvas defers writing each page until
save(), so footers that need the total page count can be stamped in a
single finishing loop once all content exists.
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Callable, List, Optional, Sequence, Tuple

from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas


TEXT_DARK = Color(0.12, 0.14, 0.17)
TEXT_BODY = Color(0.0, 0.0, 0.0)
TEXT_MUTED = Color(0.4, 0.4, 0.4)
TEXT_FAINT = Color(0.5, 0.5, 0.5)
RULE_GRAY = Color(0.8, 0.8, 0.8)
BORDER_GRAY = Color(0.85, 0.85, 0.85)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"


@dataclass(frozen=True)
class PageFrame:
    """Geometry shared by all pages of a report"""
    width: float = A4[0]
    height: float = A4[1]
    margin: float = 40
    header_allowance: float = 60
    footer_reserve: float = 40

    @property
    def top(self) -> float:
        """First usable y on a fresh page, below the running header"""
        return self.height - self.header_allowance

    @property
    def bottom(self) -> float:
        """Content must stay above this y; the band below holds the footer"""
        return self.margin + self.footer_reserve

    @property
    def footer_y(self) -> float:
        return self.margin - 10

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin


@dataclass
class PageHandle:
    """
    Record of one emitted page.

    Tracks what was drawn so callers (and tests) can inspect a document
    without parsing the PDF.
    """
    index: int
    kind: str = "content"  # cover | content | appendix
    texts: List[str] = field(default_factory=list)
    thumbnails: List[Tuple[str, Optional[str]]] = field(default_factory=list)  # (asset_id, phase)
    footer: Optional[str] = None
    watermarks: int = 0

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def watermarked(self) -> bool:
        return self.watermarks > 0

    def contains(self, fragment: str) -> bool:
        return any(fragment in text for text in self.texts)


FinishingStage = Callable[["EvidenceCanvas", PageHandle, int], None]


class EvidenceCanvas(canvas.Canvas):
    """Canvas that holds every page back until save() so it can be finished."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []
        self.page_handles: List[PageHandle] = []
        self.finishing_stages: List[FinishingStage] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        handles = list(self.page_handles)
        stages = list(self.finishing_stages)
        total = len(self._saved_page_states)
        for index, state in enumerate(self._saved_page_states):
            self.__dict__.update(state)
            for stage in stages:
                stage(self, handles[index], total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


class PageSequence:
    """
    Ordered pages of one document plus the drawing helpers layouts use.

    new_page() is the page-provider callback: it closes the current page,
    opens the next one and returns the cursor at the top of its content area.
    """

    def __init__(
        self,
        frame: Optional[PageFrame] = None,
        header_text: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        invariant: bool = False,
    ):
        self.frame = frame or PageFrame()
        self.header_text = header_text
        self._buffer = BytesIO()
        self.canvas = EvidenceCanvas(
            self._buffer,
            pagesize=(self.frame.width, self.frame.height),
            invariant=1 if invariant else 0,
        )
        if title:
            self.canvas.setTitle(title)
        if author:
            self.canvas.setAuthor(author)
        self.pages: List[PageHandle] = []
        self._finished = False

    @property
    def current(self) -> PageHandle:
        if not self.pages:
            raise RuntimeError("No page has been started")
        return self.pages[-1]

    def new_page(self, kind: str = "content") -> float:
        if self.pages:
            self.canvas.showPage()
        handle = PageHandle(index=len(self.pages), kind=kind)
        self.pages.append(handle)
        self.canvas.page_handles.append(handle)

        if kind != "cover" and self.header_text:
            self.text(self.frame.margin, self.frame.height - 40, self.header_text,
                      font=FONT_BOLD, size=14, color=TEXT_FAINT)
        return self.frame.top

    def ensure_space(self, cursor_y: float, needed: float, kind: str = "content") -> float:
        """Start a new page unless `needed` points fit above the footer band"""
        if cursor_y - needed < self.frame.bottom:
            return self.new_page(kind=kind)
        return cursor_y

    # ------------------------------------------------------------------
    # Drawing primitives
    # ------------------------------------------------------------------

    def text(
        self,
        x: float,
        y: float,
        value: str,
        font: str = FONT_REGULAR,
        size: float = 11,
        color: Color = TEXT_BODY,
        align: str = "left",
    ) -> None:
        c = self.canvas
        c.setFont(font, size)
        c.setFillColor(color)
        if align == "right":
            c.drawRightString(x, y, value)
        elif align == "center":
            c.drawCentredString(x, y, value)
        else:
            c.drawString(x, y, value)
        self.current.texts.append(value)

    def line(self, x1: float, y1: float, x2: float, y2: float,
             thickness: float = 1, color: Color = RULE_GRAY) -> None:
        c = self.canvas
        c.setStrokeColor(color)
        c.setLineWidth(thickness)
        c.line(x1, y1, x2, y2)

    def rect(self, x: float, y: float, width: float, height: float,
             color: Color = BORDER_GRAY, thickness: float = 1) -> None:
        c = self.canvas
        c.setStrokeColor(color)
        c.setLineWidth(thickness)
        c.rect(x, y, width, height, stroke=1, fill=0)

    def image(self, reader, x: float, y: float, width: float, height: float,
              asset_id: str, phase: Optional[str] = None) -> None:
        self.canvas.drawImage(reader, x, y, width=width, height=height)
        self.current.thumbnails.append((asset_id, phase))

    def wrap(self, value: str, font: str, size: float, width: float) -> List[str]:
        lines: List[str] = []
        for raw in value.splitlines() or [""]:
            lines.extend(simpleSplit(raw, font, size, width) or [""])
        return lines

    def paragraph(
        self,
        cursor_y: float,
        value: str,
        font: str = FONT_REGULAR,
        size: float = 10,
        color: Color = TEXT_BODY,
        x: Optional[float] = None,
        width: Optional[float] = None,
        leading: Optional[float] = None,
    ) -> float:
        """Draw wrapped text, continuing on new pages as needed"""
        x = self.frame.margin if x is None else x
        width = self.frame.content_width if width is None else width
        leading = leading or size + 4
        for line in self.wrap(value, font, size, width):
            cursor_y = self.ensure_space(cursor_y, leading)
            self.text(x, cursor_y - size, line, font=font, size=size, color=color)
            cursor_y -= leading
        return cursor_y

    # ------------------------------------------------------------------
    # Finishing
    # ------------------------------------------------------------------

    def finish(self, stages: Sequence[FinishingStage]) -> bytes:
        """
        Run the finishing stages over every page, in order, and serialize.

        Stages run after all content, so the last stage is the last thing
        drawn on each page.
        """
        if self._finished:
            raise RuntimeError("Document already finished")
        if not self.pages:
            raise RuntimeError("Cannot finish a document with no pages")
        self.canvas.finishing_stages = list(stages)
        self.canvas.showPage()
        self.canvas.save()
        self._finished = True
        return self._buffer.getvalue()
