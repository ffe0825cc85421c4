"""
Tests for the Layout Engines
============================

Grid tiling, before/after comparison and image decoding. Pages are inspected
through their PageHandle records rather than by parsing the PDF.
"""

import sys
import threading
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evidence_engine.errors import GenerationError
from evidence_engine.render import (
    GenerationCancelled,
    PageSequence,
    PhaseLabels,
    decode_image,
    fetch_images,
    layout_comparison,
    layout_grid,
    not_documented_note,
)
from evidence_engine.render.comparison import (
    BANNER,
    BANNER_HEIGHT,
    COLUMN_GAP,
    COLUMN_HEADER_HEIGHT,
    ROOM_HEADING_HEIGHT,
    SIDE_COLUMNS,
)
from evidence_engine.render.grid import GridGeometry
from evidence_engine.tests.support import make_jpeg, make_photo

MAX_PER_PAGE = 12  # 4 rows of 3 on A4


def decoded_photos(count, prefix="p", type="checkin_photo"):
    return [decode_image(make_photo(f"{prefix}{i}", type=type, minute=i), make_jpeg()) for i in range(count)]


@pytest.fixture
def pages():
    seq = PageSequence(header_text="RentVault", invariant=True)
    seq.new_page()
    return seq


def thumbnail_ids(pages):
    return [asset_id for page in pages.pages for asset_id, _ in page.thumbnails]


# =============================================================================
# Grid
# =============================================================================

class TestGridLayout:
    """Tests for layout_grid"""

    def test_small_group_fits_one_page(self, pages):
        images = decoded_photos(5)
        cursor = layout_grid(pages, images, "Check-in photos (5)", pages.frame.top)

        assert len(pages.pages) == 1
        assert thumbnail_ids(pages) == [f"p{i}" for i in range(5)]
        assert pages.current.contains("Check-in photos (5)")
        assert cursor < pages.frame.top

    def test_large_group_spills_in_order(self, pages):
        images = decoded_photos(30)
        layout_grid(pages, images, "Check-in photos (30)", pages.frame.top)

        assert len(pages.pages) >= 3
        assert thumbnail_ids(pages) == [f"p{i}" for i in range(30)]
        assert all(len(page.thumbnails) <= MAX_PER_PAGE for page in pages.pages)

    def test_caption_drawn_once(self, pages):
        layout_grid(pages, decoded_photos(30), "Kitchen photos", pages.frame.top)
        assert sum(1 for page in pages.pages if page.contains("Kitchen photos")) == 1

    def test_every_cell_has_upload_timestamp(self, pages):
        layout_grid(pages, decoded_photos(4), None, pages.frame.top)
        stamps = [t for t in pages.current.texts if t.startswith("Uploaded: ")]
        assert len(stamps) == 4
        assert stamps[0] == "Uploaded: 10 Jan 2025 09:00 (UTC)"

    def test_empty_group_draws_nothing(self, pages):
        cursor = layout_grid(pages, [], "Nothing", 500)
        assert cursor == 500
        assert not pages.current.contains("Nothing")

    def test_low_cursor_moves_caption_to_next_page(self, pages):
        layout_grid(pages, decoded_photos(2), "Late room", pages.frame.bottom + 20)

        assert len(pages.pages) == 2
        assert not pages.pages[0].contains("Late room")
        assert pages.pages[1].contains("Late room")
        assert pages.pages[1].contains("RentVault")

    def test_undecodable_photo_keeps_its_cell(self, pages):
        images = decoded_photos(2)
        images.insert(1, decode_image(make_photo("broken"), b"not an image"))

        layout_grid(pages, images, None, pages.frame.top)

        assert thumbnail_ids(pages) == ["p0", "p1"]
        assert pages.current.contains("Image could not be displayed")

    def test_page_allocation_is_deterministic(self):
        def allocate(count):
            seq = PageSequence(header_text="RentVault", invariant=True)
            seq.new_page()
            layout_grid(seq, decoded_photos(count), "Kitchen photos", seq.frame.top)
            return [len(page.thumbnails) for page in seq.pages]

        for count in (1, 12, 13, 30):
            first = allocate(count)
            assert allocate(count) == first
            assert sum(first) == count


# =============================================================================
# Comparison
# =============================================================================

class TestComparisonLayout:
    """Tests for layout_comparison"""

    def test_both_phases_side_by_side(self, pages):
        before = decoded_photos(3, prefix="in")
        after = decoded_photos(2, prefix="out", type="handover_photo")

        layout_comparison(pages, "Kitchen", before, after, pages.frame.top,
                          labels=PhaseLabels("Check-in", "Handover"))

        page = pages.current
        assert page.contains(BANNER)
        assert page.contains("Kitchen")
        assert page.contains("Check-in (3)")
        assert page.contains("Handover (2)")
        phases = {asset_id: phase for asset_id, phase in page.thumbnails}
        assert phases["in0"] == "checkin"
        assert phases["out0"] == "handover"

    def test_only_before_gets_note(self, pages):
        layout_comparison(pages, "Hall", decoded_photos(2), [], pages.frame.top)

        page = pages.current
        assert not page.contains(BANNER)
        assert page.contains("Move-In photos (2)")
        assert page.contains(not_documented_note("Move-Out"))

    def test_only_after_gets_note(self, pages):
        after = decoded_photos(1, type="handover_photo")
        layout_comparison(pages, "Hall", [], after, pages.frame.top,
                          labels=PhaseLabels("Check-in", "Handover"))

        assert pages.current.contains("Check-in photos were not documented for this room")

    def test_long_room_continues_with_headers(self, pages):
        before = decoded_photos(30, prefix="in")
        after = decoded_photos(1, prefix="out", type="handover_photo")

        layout_comparison(pages, "Lounge", before, after, pages.frame.top)

        assert len(pages.pages) > 1
        assert pages.pages[-1].contains("Lounge (cont.)")
        assert pages.pages[-1].contains("Move-In (30)")
        assert len(thumbnail_ids(pages)) == 31

    def test_room_that_fits_a_page_is_not_split(self, pages):
        half = (pages.frame.content_width - COLUMN_GAP) / 2
        band = GridGeometry(x=pages.frame.margin, width=half, columns=SIDE_COLUMNS).row_height
        header_block = BANNER_HEIGHT + ROOM_HEADING_HEIGHT + COLUMN_HEADER_HEIGHT
        # room for the headers and one band only
        start = pages.frame.bottom + header_block + band + 1

        before = decoded_photos(6, prefix="in")
        after = decoded_photos(6, prefix="out", type="handover_photo")
        layout_comparison(pages, "Kitchen", before, after, start)

        assert len(pages.pages) == 2
        assert pages.pages[0].thumbnails == []
        assert not pages.pages[0].contains("Kitchen")
        assert len(pages.pages[1].thumbnails) == 12
        assert not pages.pages[1].contains("Kitchen (cont.)")

    def test_no_photos_is_a_no_op(self, pages):
        assert layout_comparison(pages, "Empty", [], [], 400) == 400


# =============================================================================
# Images
# =============================================================================

class TestDecodeImage:
    """Tests for decode_image"""

    def test_decodes_jpeg(self):
        image = decode_image(make_photo("p"), make_jpeg(64, 48))
        assert image.ok
        assert (image.width, image.height) == (64, 48)
        assert image.phase == "checkin"

    def test_exif_orientation_applied(self):
        img = Image.new("RGB", (64, 48), (10, 20, 30))
        exif = img.getexif()
        exif[0x0112] = 6  # rotate 90 CW
        buf = BytesIO()
        img.save(buf, format="JPEG", exif=exif.tobytes())

        image = decode_image(make_photo("p"), buf.getvalue())

        assert (image.width, image.height) == (48, 64)

    def test_large_image_downscaled(self):
        image = decode_image(make_photo("p"), make_jpeg(3200, 2400))
        assert max(image.width, image.height) == 1600

    def test_garbage_gives_placeholder(self):
        image = decode_image(make_photo("p"), b"\x00\x01garbage")
        assert not image.ok


class TestFetchImages:
    """Tests for fetch_images"""

    def test_fetches_all(self):
        photos = [make_photo(f"p{i}") for i in range(6)]
        store = {p.storage_path: make_jpeg() for p in photos}

        images = fetch_images(photos, store.__getitem__, timeout=5, workers=3)

        assert set(images) == {p.asset_id for p in photos}
        assert all(img.ok for img in images.values())

    def test_fetch_failure_is_fatal(self):
        photos = [make_photo("p0"), make_photo("p1")]
        store = {photos[0].storage_path: make_jpeg()}

        with pytest.raises(GenerationError):
            fetch_images(photos, store.__getitem__, timeout=5, workers=2)

    def test_deadline(self):
        release = threading.Event()

        def slow(path):
            release.wait(5)
            return make_jpeg()

        try:
            with pytest.raises(GenerationError, match="Timed out"):
                fetch_images([make_photo("p")], slow, timeout=0.2, workers=1)
        finally:
            release.set()

    def test_cancelled(self):
        cancel = threading.Event()
        cancel.set()
        release = threading.Event()

        def slow(path):
            release.wait(5)
            return make_jpeg()

        try:
            with pytest.raises(GenerationCancelled):
                fetch_images([make_photo("p")], slow, timeout=5, workers=1, cancel_event=cancel)
        finally:
            release.set()

    def test_nothing_to_fetch(self):
        assert fetch_images([], lambda path: b"", timeout=1, workers=1) == {}
