"""
Render Package
==============

Page drawing primitives and layout engines shared by every report variant.
"""

from .canvas import PageFrame, PageHandle, PageSequence
from .comparison import PhaseLabels, layout_comparison, not_documented_note
from .finishing import FooterStamp, WatermarkOverlay, finishing_stages, page_label
from .grid import layout_grid
from .images import DecodedImage, GenerationCancelled, decode_image, fetch_images

__all__ = [
    # Pages
    "PageFrame", "PageHandle", "PageSequence",
    # Layout
    "layout_grid", "layout_comparison", "PhaseLabels", "not_documented_note",
    # Finishing
    "FooterStamp", "WatermarkOverlay", "finishing_stages", "page_label",
    # Images
    "DecodedImage", "GenerationCancelled", "decode_image", "fetch_images",
]
