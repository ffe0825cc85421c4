"""
Tests for the Integrity Gate
============================
"""

import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evidence_engine.errors import ErrorKind, HashVerificationError
from evidence_engine.integrity import require_hashes, validate_asset_hashes
from evidence_engine.tests.support import make_photo


class TestContentHash:
    """Which recorded hash counts"""

    def test_server_hash_preferred(self):
        asset = replace(make_photo("p"), file_hash="c" * 64, file_hash_server="d" * 64)
        assert asset.content_hash == "d" * 64

    def test_client_hash_fallback(self):
        asset = replace(make_photo("p", hashed=False), file_hash="c" * 64)
        assert asset.content_hash == "c" * 64

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_counts_as_missing(self, value):
        asset = replace(make_photo("p", hashed=False), file_hash=value, file_hash_server=value)
        assert asset.content_hash is None


class TestValidateAssetHashes:
    """Tests for validate_asset_hashes"""

    def test_all_hashed(self):
        result = validate_asset_hashes([make_photo("a"), make_photo("b")])
        assert result.valid
        assert result.missing_count == 0
        assert result.total_assets == 2

    def test_missing_ids_in_input_order(self):
        assets = [
            make_photo("a", hashed=False),
            make_photo("b"),
            make_photo("c", hashed=False),
        ]

        result = validate_asset_hashes(assets)

        assert not result.valid
        assert result.missing_ids == ["a", "c"]
        assert result.total_assets == 3

    def test_empty_input_is_valid(self):
        assert validate_asset_hashes([]).valid


class TestRequireHashes:
    """The gate is all-or-nothing"""

    def test_single_unhashed_asset_rejects(self):
        assets = [make_photo(f"p{i}") for i in range(9)] + [make_photo("bad", hashed=False)]

        with pytest.raises(HashVerificationError) as exc_info:
            require_hashes(assets)

        error = exc_info.value
        assert error.kind == ErrorKind.HASH_VERIFICATION_INCOMPLETE
        assert error.status_code == 422
        assert error.missing_count == 1
        assert error.details == {"missingCount": 1, "missingAssetIds": ["bad"], "totalAssets": 10}
        assert "1 of 10" in error.message

    def test_passes_through_result(self):
        result = require_hashes([make_photo("a")])
        assert result.valid
