"""
Evidence Image Loading
======================

Fetches and decodes photo bytes in parallel before any page is drawn.

Decoding is independent per asset, so it runs on a bounded thread pool.
All fetches share one deadline; if it passes, or the request is cancelled,
pending work is dropped and the whole generation fails.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Dict, Iterable, Optional

from PIL import Image, ImageOps, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

from ..errors import GenerationError
from ..models import Asset

logger = logging.getLogger(__name__)

# Longest edge kept for embedding; thumbnails are ~165pt wide
MAX_EMBED_EDGE = 1600


class GenerationCancelled(GenerationError):
    """The caller went away before the document was finished"""


@dataclass
class DecodedImage:
    """A photo ready to be placed in a grid cell"""
    asset: Asset
    reader: Optional[ImageReader] = None
    width: int = 0
    height: int = 0

    @property
    def ok(self) -> bool:
        return self.reader is not None

    @property
    def phase(self) -> Optional[str]:
        phase = self.asset.photo_phase
        return phase.value if phase else None


def decode_image(asset: Asset, data: bytes) -> DecodedImage:
    """
    Decode image bytes, honouring EXIF orientation.

    Unreadable data yields a DecodedImage without a reader; the grid draws a
    labelled placeholder for it instead of dropping the cell.
    """
    try:
        with Image.open(BytesIO(data)) as source:
            img = ImageOps.exif_transpose(source)
            if img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((MAX_EMBED_EDGE, MAX_EMBED_EDGE))
            img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Could not decode image for asset {asset.asset_id}: {e}")
        return DecodedImage(asset=asset)

    return DecodedImage(asset=asset, reader=ImageReader(img), width=img.width, height=img.height)


def fetch_images(
    assets: Iterable[Asset],
    fetch: Callable[[str], bytes],
    timeout: float,
    workers: int,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[str, DecodedImage]:
    """
    Fetch and decode every asset.

    Args:
        assets: Photos to load
        fetch: Returns the raw bytes stored at a storage path
        timeout: Seconds allowed for the whole batch
        workers: Thread pool size
        cancel_event: Set by the caller to abort

    Returns:
        asset_id -> DecodedImage

    Raises:
        GenerationError: a fetch failed or the deadline passed
        GenerationCancelled: cancel_event was set
    """
    assets = list(assets)
    if not assets:
        return {}

    def load(asset: Asset) -> DecodedImage:
        return decode_image(asset, fetch(asset.storage_path))

    deadline = time.monotonic() + timeout
    results: Dict[str, DecodedImage] = {}
    executor = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="evidence-img")
    try:
        futures = {executor.submit(load, asset): asset for asset in assets}
        pending = set(futures)
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                raise GenerationCancelled("Report generation was cancelled")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.error(f"Image fetch timed out with {len(pending)} of {len(assets)} images pending")
                raise GenerationError("Timed out fetching evidence images")
            done, pending = wait(pending, timeout=min(remaining, 0.25), return_when=FIRST_COMPLETED)
            for future in done:
                asset = futures[future]
                try:
                    results[asset.asset_id] = future.result()
                except Exception as e:
                    logger.error(f"Failed to fetch image for asset {asset.asset_id}: {e}")
                    raise GenerationError("Failed to fetch evidence images") from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return results
