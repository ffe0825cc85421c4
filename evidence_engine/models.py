"""
Domain Models
=============

Read-only views of the case data a report is built from.

These are plain dataclasses: the repository converts database rows into them,
tests build them directly. Nothing here touches the database or storage.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# ENUMS
# =============================================================================

class Phase(str, Enum):
    """Evidentiary phase of a photo"""
    CHECKIN = "checkin"      # move-in / arrival
    HANDOVER = "handover"    # move-out / departure


class StayType(str, Enum):
    """Kind of rental a case documents"""
    LONG_TERM = "long_term"
    SHORT_STAY = "short_stay"


class ReportType(str, Enum):
    """Report variants the engine can produce"""
    CHECKIN_REPORT = "checkin_report"
    DEPOSIT_PACK = "deposit_pack"
    SHORT_STAY_REPORT = "short_stay_report"


# Asset type tag -> phase. Anything not listed is not a photo.
PHOTO_TYPES: Dict[str, Phase] = {
    "checkin_photo": Phase.CHECKIN,
    "photo": Phase.CHECKIN,
    "handover_photo": Phase.HANDOVER,
}

VIDEO_TYPE = "walkthrough_video"

UNGROUPED_ROOM_NAME = "(no room)"


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class Asset:
    """One piece of stored evidence"""
    asset_id: str
    storage_path: str
    type: str
    created_at: datetime
    room_id: Optional[str] = None
    phase: Optional[str] = None  # videos only: check-in / handover
    file_hash: Optional[str] = None
    file_hash_server: Optional[str] = None
    duration_seconds: Optional[int] = None

    @property
    def content_hash(self) -> Optional[str]:
        """Server hash wins over the client hash; blank counts as missing"""
        for value in (self.file_hash_server, self.file_hash):
            if value and value.strip():
                return value.strip()
        return None

    @property
    def photo_phase(self) -> Optional[Phase]:
        return PHOTO_TYPES.get(self.type)

    @property
    def is_photo(self) -> bool:
        return self.type in PHOTO_TYPES


@dataclass(frozen=True)
class Room:
    """A label grouping assets, e.g. 'Kitchen'"""
    room_id: str
    name: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Issue:
    """Incident recorded during the tenancy"""
    description: str
    room_name: Optional[str] = None
    incident_date: Optional[date] = None


@dataclass
class CaseRecord:
    """A rental / stay and everything the cover page needs to know about it"""
    case_id: str
    user_id: str
    label: str
    address: Optional[str] = None
    contract_analysis: Optional[Dict[str, Any]] = None
    stay_type: Optional[str] = None
    lease_start: Optional[date] = None
    lease_end: Optional[date] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    platform_name: Optional[str] = None
    reservation_id: Optional[str] = None
    checkin_completed_at: Optional[datetime] = None
    handover_completed_at: Optional[datetime] = None
    keys_returned_at: Optional[datetime] = None
    meter_readings: Dict[str, Any] = field(default_factory=dict)
    checkin_notes: Optional[str] = None
    handover_notes: Optional[str] = None
    pdf_customization: Optional[Dict[str, Any]] = None

    @property
    def checkin_sealed(self) -> bool:
        return self.checkin_completed_at is not None

    @property
    def handover_sealed(self) -> bool:
        return self.handover_completed_at is not None


def _parse_rating(value: Any) -> Optional[int]:
    """Star rating from a saved or submitted value; unusable values mean no rating"""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value) or None
    except (TypeError, ValueError):
        return None


@dataclass
class CustomSections:
    """
    User-authored content for the cover page.

    Each block has its own include flag; a flag that was never set counts as
    included.
    """
    personal_notes: Optional[str] = None
    property_rating: Optional[int] = None
    property_review: Optional[str] = None
    custom_title: Optional[str] = None
    custom_content: Optional[str] = None
    include_personal_notes: bool = True
    include_property_review: bool = True
    include_custom_section: bool = True

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "CustomSections":
        """Build from a saved customization (snake_case) or request payload (camelCase)"""
        if not data:
            return cls()

        def pick(snake: str, camel: str):
            if snake in data:
                return data[snake]
            return data.get(camel)

        def flag(snake: str, camel: str) -> bool:
            value = pick(snake, camel)
            return value is not False

        def text(snake: str, camel: str) -> Optional[str]:
            value = pick(snake, camel)
            if isinstance(value, str):
                return value
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)
            return None

        return cls(
            personal_notes=text("personal_notes", "personalNotes"),
            property_rating=_parse_rating(pick("property_rating", "propertyRating")),
            property_review=text("property_review", "propertyReview"),
            custom_title=text("custom_title", "customTitle"),
            custom_content=text("custom_content", "customContent"),
            include_personal_notes=flag("include_personal_notes", "includePersonalNotes"),
            include_property_review=flag("include_property_review", "includePropertyReview"),
            include_custom_section=flag("include_custom_section", "includeCustomSection"),
        )


@dataclass
class RoomGroup:
    """Photos of one room split by phase, chronological within each phase"""
    room_id: Optional[str]
    room_name: str
    checkin: List[Asset] = field(default_factory=list)
    handover: List[Asset] = field(default_factory=list)

    @property
    def photo_count(self) -> int:
        return len(self.checkin) + len(self.handover)

    @property
    def has_both_phases(self) -> bool:
        return bool(self.checkin) and bool(self.handover)


@dataclass
class Caller:
    """Already-authenticated identity of whoever asked for the report"""
    user_id: str
    email: Optional[str] = None
    is_admin: bool = False


@dataclass
class GeneratedOutput:
    """Manifest record of one published document. Written once."""
    case_id: str
    user_id: str
    type: str
    storage_path: str
    generated_at: datetime
    photo_count: int
    rooms_count: int
    page_count: int
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        data = {
            "generated_at": self.generated_at.isoformat(),
            "photo_count": self.photo_count,
            "rooms_count": self.rooms_count,
            "page_count": self.page_count,
        }
        data.update(self.payload)
        return data
