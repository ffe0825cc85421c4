"""
Builders and in-memory collaborators shared by the tests.
"""

import sys
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evidence_engine.models import Asset, Caller, CaseRecord, Issue, Room
from evidence_engine.publisher import ManifestWriter
from evidence_engine.repository import CaseRepository
from evidence_engine.storage import ObjectStorage, StorageError


FIXED_NOW = datetime(2025, 3, 5, 12, 0, tzinfo=timezone.utc)
BASE_TIME = datetime(2025, 1, 10, 9, 0)
OWNER = Caller(user_id="user-1", email="tenant@example.com")
ADMIN = Caller(user_id="admin-1", email="admin@rentvault.test", is_admin=True)
STRANGER = Caller(user_id="user-2", email="someone@example.com")


def make_jpeg(width: int = 64, height: int = 48, color=(180, 120, 60)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="JPEG")
    return buf.getvalue()


def make_photo(asset_id: str, room_id: Optional[str] = None, type: str = "checkin_photo",
               minute: int = 0, hashed: bool = True) -> Asset:
    return Asset(
        asset_id=asset_id,
        storage_path=f"cases/case-1/photos/{asset_id}.jpg",
        type=type,
        created_at=BASE_TIME + timedelta(minutes=minute),
        room_id=room_id,
        file_hash_server=("a" * 64) if hashed else None,
    )


def make_case(**overrides) -> CaseRecord:
    values = dict(
        case_id="case-1",
        user_id=OWNER.user_id,
        label="Flat 3B",
        address="12 Harbour Street, Bristol",
        stay_type="long_term",
        checkin_completed_at=BASE_TIME + timedelta(days=1),
    )
    values.update(overrides)
    return CaseRecord(**values)


# =============================================================================
# In-memory collaborators
# =============================================================================

class InMemoryStorage(ObjectStorage):
    """Dict-backed storage that records every write"""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.puts: List[str] = []
        self.fail_put = False
        self.fail_get = False
        self.signed: List[tuple] = []

    def put(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise StorageError("bucket unavailable")
        self.puts.append(path)
        self.objects[path] = data

    def get(self, path: str) -> bytes:
        if self.fail_get or path not in self.objects:
            raise StorageError("Object not found")
        return self.objects[path]

    def signed_url(self, path: str, ttl_seconds: int, download_name: Optional[str] = None) -> str:
        self.signed.append((path, ttl_seconds, download_name))
        suffix = f"&download={download_name}" if download_name else ""
        return f"https://storage.test/{path}?ttl={ttl_seconds}{suffix}"


class InMemoryManifest(ManifestWriter):
    def __init__(self):
        self.records = []
        self.fail = False

    def record(self, output) -> None:
        if self.fail:
            raise RuntimeError("outputs table unavailable")
        self.records.append(output)


class InMemoryRepository(CaseRepository):
    def __init__(self, case: Optional[CaseRecord] = None, rooms=None, assets=None,
                 issues=None, purchases=None):
        self.cases = {case.case_id: case} if case else {}
        self.rooms: List[Room] = list(rooms or [])
        self.assets: List[Asset] = list(assets or [])
        self.issues: List[Issue] = list(issues or [])
        self.purchases: List[str] = list(purchases or [])

    def get_case(self, case_id, caller):
        case = self.cases.get(case_id)
        if case is None:
            return None
        if not caller.is_admin and case.user_id != caller.user_id:
            return None
        return case

    def list_rooms(self, case_id):
        return list(self.rooms)

    def list_assets(self, case_id):
        return list(self.assets)

    def list_issues(self, case_id):
        return list(self.issues)

    def list_purchase_types(self, case_id, user_id):
        return list(self.purchases)


def sequential_filenames():
    counter = {"n": 0}

    def factory(case_id: str) -> str:
        counter["n"] += 1
        return f"cases/{case_id}/generated/report-{counter['n']}.pdf"

    return factory


def storage_for(assets) -> InMemoryStorage:
    return InMemoryStorage({a.storage_path: make_jpeg() for a in assets})
