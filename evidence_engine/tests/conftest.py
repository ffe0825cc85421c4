"""
Shared pytest fixtures.
"""

import sys
from datetime import timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evidence_engine.config import Settings
from evidence_engine.models import Room
from evidence_engine.tests.support import BASE_TIME, make_photo


@pytest.fixture
def settings():
    return Settings(
        pdf_invariant=True,
        image_workers=2,
        fetch_timeout_seconds=5.0,
        admin_emails="admin@rentvault.test",
        storage_backend="local",
        deposit_pack_verify_hashes=False,
    )


@pytest.fixture
def two_rooms():
    return [
        Room(room_id="r-kitchen", name="Kitchen", created_at=BASE_TIME),
        Room(room_id="r-bedroom", name="Bedroom", created_at=BASE_TIME + timedelta(minutes=1)),
    ]


@pytest.fixture
def checkin_photos():
    """Two rooms, three hashed check-in photos each"""
    photos = []
    for i in range(3):
        photos.append(make_photo(f"k{i}", room_id="r-kitchen", minute=i))
        photos.append(make_photo(f"b{i}", room_id="r-bedroom", minute=10 + i))
    return photos
