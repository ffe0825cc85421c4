"""
Pagination Finisher and Watermark Overlay
=========================================

Stages run once per page, after all content exists, in list order:

1. FooterStamp      - disclaimer + "Page N of TOTAL" in the footer band
2. WatermarkOverlay - diagonal PREVIEW marks (previews only)

The watermark is always the final stage, so nothing drawn afterwards can
cover it.
"""

from typing import List

from reportlab.lib.colors import Color

from .canvas import FONT_BOLD, FONT_REGULAR, EvidenceCanvas, PageFrame, PageHandle, FinishingStage, TEXT_FAINT

WATERMARK_TEXT = "PREVIEW"
WATERMARK_SIZE = 60
WATERMARK_ANGLE = 45
WATERMARK_COLOR = Color(0.75, 0.75, 0.75)
WATERMARK_ALPHA = 0.35


def page_label(number: int, total: int) -> str:
    return f"Page {number} of {total}"


class FooterStamp:
    """Footer disclaimer on the left, page number on the right"""

    def __init__(self, frame: PageFrame, footer_text: str):
        self.frame = frame
        self.footer_text = footer_text

    def __call__(self, canv: EvidenceCanvas, page: PageHandle, total: int) -> None:
        label = page_label(page.number, total)
        canv.saveState()
        canv.setFillColor(TEXT_FAINT)
        canv.setFont(FONT_REGULAR, 8)
        if self.footer_text:
            canv.drawString(self.frame.margin, self.frame.footer_y, self.footer_text)
        canv.setFont(FONT_REGULAR, 9)
        canv.drawRightString(self.frame.width - self.frame.margin, self.frame.footer_y, label)
        canv.restoreState()
        page.footer = label


class WatermarkOverlay:
    """Large, faint, rotated PREVIEW marks kept clear of the footer band"""

    def __init__(self, frame: PageFrame):
        self.frame = frame

    def positions(self):
        w, h = self.frame.width, self.frame.height
        return [
            (w / 2, h / 2),
            (w / 4, h * 2 / 3),
            (w * 3 / 4, h / 3),
        ]

    def __call__(self, canv: EvidenceCanvas, page: PageHandle, total: int) -> None:
        for x, y in self.positions():
            canv.saveState()
            canv.setFillColor(WATERMARK_COLOR)
            canv.setFillAlpha(WATERMARK_ALPHA)
            canv.setFont(FONT_BOLD, WATERMARK_SIZE)
            canv.translate(x, y)
            canv.rotate(WATERMARK_ANGLE)
            canv.drawCentredString(0, 0, WATERMARK_TEXT)
            canv.restoreState()
            page.watermarks += 1


def finishing_stages(frame: PageFrame, footer_text: str, for_preview: bool) -> List[FinishingStage]:
    stages: List[FinishingStage] = [FooterStamp(frame, footer_text)]
    if for_preview:
        stages.append(WatermarkOverlay(frame))
    return stages
