"""
Grid Layout Engine
==================

Tiles photos left-to-right, top-to-bottom in fixed-width 4:3 cells.

Rows never straddle the footer band: when a row does not fit, a new page is
requested from the page sequence and placement continues at its top. The
return value is the cursor just below the last row, so callers can keep
drawing on the same page.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .canvas import FONT_ITALIC, PageSequence, TEXT_FAINT, TEXT_MUTED
from .formatting import upload_label
from .images import DecodedImage

GRID_COLUMNS = 3
GUTTER = 10
CELL_RATIO = 0.75  # 4:3
CAPTION_HEIGHT = 15
TIMESTAMP_HEIGHT = 9
ROW_SPACING = 8


@dataclass(frozen=True)
class GridGeometry:
    """Cell positions for one column box"""
    x: float
    width: float
    columns: int = GRID_COLUMNS
    gutter: float = GUTTER

    @property
    def cell_width(self) -> float:
        return (self.width - self.gutter * (self.columns - 1)) / self.columns

    @property
    def cell_height(self) -> float:
        return self.cell_width * CELL_RATIO

    @property
    def row_height(self) -> float:
        return self.cell_height + TIMESTAMP_HEIGHT + ROW_SPACING

    def cell_x(self, column: int) -> float:
        return self.x + column * (self.cell_width + self.gutter)


def fit_within(img_width: float, img_height: float, box_width: float, box_height: float):
    """Scale to fit the box without distortion; returns (width, height, dx, dy)"""
    if img_width <= 0 or img_height <= 0:
        return 0.0, 0.0, 0.0, 0.0
    scale = min(box_width / img_width, box_height / img_height)
    width = img_width * scale
    height = img_height * scale
    return width, height, (box_width - width) / 2, (box_height - height) / 2


def draw_cell(pages: PageSequence, image: DecodedImage, x: float, top_y: float,
              width: float, height: float) -> None:
    bottom_y = top_y - height
    pages.rect(x, bottom_y, width, height)

    if image.ok:
        w, h, dx, dy = fit_within(image.width, image.height, width, height)
        pages.image(image.reader, x + dx, bottom_y + dy, w, h,
                    asset_id=image.asset.asset_id, phase=image.phase)
    else:
        pages.text(x + width / 2, bottom_y + height / 2, "Image could not be displayed",
                   font=FONT_ITALIC, size=7, color=TEXT_FAINT, align="center")

    pages.text(x, bottom_y - TIMESTAMP_HEIGHT + 1, upload_label(image.asset.created_at),
               size=6 if width < 120 else 7, color=TEXT_FAINT)


def draw_row(pages: PageSequence, images: Sequence[DecodedImage], geometry: GridGeometry,
             top_y: float) -> float:
    """Draw up to `geometry.columns` images in one row; returns the y below it"""
    for column, image in enumerate(images[:geometry.columns]):
        draw_cell(pages, image, geometry.cell_x(column), top_y,
                  geometry.cell_width, geometry.cell_height)
    return top_y - geometry.row_height


def _rows(images: Sequence[DecodedImage], columns: int) -> List[Sequence[DecodedImage]]:
    return [images[i:i + columns] for i in range(0, len(images), columns)]


def layout_grid(
    pages: PageSequence,
    images: Sequence[DecodedImage],
    caption: Optional[str],
    cursor_y: float,
    columns: int = GRID_COLUMNS,
    x: Optional[float] = None,
    width: Optional[float] = None,
) -> float:
    """
    Lay out a group of photos as a grid, spilling onto new pages as needed.

    Args:
        pages: Page sequence to draw on (also allocates new pages)
        images: Photos in the order they should appear
        caption: One-line label drawn once above the group
        cursor_y: Top of the free space on the current page
        columns: Cells per row
        x, width: Column box; defaults to the full content width

    Returns:
        Cursor y immediately below the last row drawn
    """
    if not images:
        return cursor_y

    frame = pages.frame
    geometry = GridGeometry(
        x=frame.margin if x is None else x,
        width=frame.content_width if width is None else width,
        columns=columns,
    )

    # Keep the caption on the same page as the first row
    caption_height = CAPTION_HEIGHT if caption else 0
    cursor_y = pages.ensure_space(cursor_y, caption_height + geometry.row_height)

    if caption:
        pages.text(geometry.x, cursor_y - 10, caption, size=11, color=TEXT_MUTED)
        cursor_y -= CAPTION_HEIGHT

    for row in _rows(images, columns):
        cursor_y = pages.ensure_space(cursor_y, geometry.row_height)
        cursor_y = draw_row(pages, row, geometry, cursor_y)

    return cursor_y
