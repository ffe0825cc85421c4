"""
Integrity Gate
==============

Checks that every asset going into a report carries a content hash.

The gate is all-or-nothing: one unhashed photo rejects the whole report, and
it runs before any image is fetched or drawn.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from .errors import HashVerificationError
from .models import Asset

logger = logging.getLogger(__name__)


@dataclass
class HashValidationResult:
    """Result of a hash validation check"""
    valid: bool
    missing_ids: List[str] = field(default_factory=list)
    total_assets: int = 0

    @property
    def missing_count(self) -> int:
        return len(self.missing_ids)


def validate_asset_hashes(assets: Iterable[Asset]) -> HashValidationResult:
    """Collect the ids of assets with no usable hash, in input order"""
    assets = list(assets)
    missing = [a.asset_id for a in assets if a.content_hash is None]
    return HashValidationResult(
        valid=not missing,
        missing_ids=missing,
        total_assets=len(assets),
    )


def require_hashes(assets: Iterable[Asset]) -> HashValidationResult:
    """
    Validate hashes and raise if any are missing.

    Raises:
        HashVerificationError: with the count and ids of unhashed assets
    """
    result = validate_asset_hashes(assets)
    if not result.valid:
        logger.warning(
            f"Hash gate rejected report: {result.missing_count}/{result.total_assets} assets unhashed"
        )
        raise HashVerificationError(result.missing_ids, result.total_assets)
    return result
