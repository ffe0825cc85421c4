"""
SQLAlchemy Models for Database
==============================

Schema of the rental evidence store:
- Cases (one rental or short stay) and their rooms
- Assets (photos, walkthrough videos) with content hashes
- Issues reported during the tenancy
- Purchases that unlock final (unwatermarked) reports
- Outputs: append-only manifest of generated documents

Supports both PostgreSQL and SQLite via SQLAlchemy.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Text, Integer, Date, DateTime, ForeignKey, Index, JSON
)
from sqlalchemy.orm import relationship, declarative_base

# Use JSON for cross-database compatibility (works with both PostgreSQL and SQLite)
JSONB = JSON

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


# =============================================================================
# CASES
# =============================================================================

class Case(Base):
    """A rental (long term) or a stay (short stay) owned by one user"""
    __tablename__ = "cases"

    case_id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    contract_analysis = Column(JSONB, nullable=True)
    stay_type = Column(String(32), nullable=True)  # long_term | short_stay

    lease_start = Column(Date, nullable=True)
    lease_end = Column(Date, nullable=True)
    check_in_date = Column(Date, nullable=True)
    check_out_date = Column(Date, nullable=True)
    platform_name = Column(String(100), nullable=True)
    reservation_id = Column(String(100), nullable=True)

    # Sealing timestamps: once set, that phase's assets are immutable
    checkin_completed_at = Column(DateTime, nullable=True)
    handover_completed_at = Column(DateTime, nullable=True)
    keys_returned_at = Column(DateTime, nullable=True)

    meter_readings = Column(JSONB, default=dict)
    checkin_notes = Column(Text, nullable=True)
    handover_notes = Column(Text, nullable=True)
    pdf_customization = Column(JSONB, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    rooms = relationship("Room", back_populates="case", cascade="all, delete-orphan")
    assets = relationship("Asset", back_populates="case", cascade="all, delete-orphan")
    issues = relationship("Issue", back_populates="case", cascade="all, delete-orphan")


class Room(Base):
    """Room label within a case, e.g. 'Kitchen'"""
    __tablename__ = "rooms"

    room_id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    case = relationship("Case", back_populates="rooms")

    __table_args__ = (
        Index("idx_rooms_case", "case_id", "created_at"),
    )


# =============================================================================
# EVIDENCE
# =============================================================================

class Asset(Base):
    """Uploaded evidence file"""
    __tablename__ = "assets"

    asset_id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    room_id = Column(String(36), nullable=True)  # no FK: stale ids fall into "(no room)"
    type = Column(String(50), nullable=False)  # checkin_photo | photo | handover_photo | walkthrough_video
    phase = Column(String(20), nullable=True)  # videos: check-in | handover
    storage_path = Column(String(1000), nullable=False)
    file_hash = Column(String(64), nullable=True)  # client-computed SHA-256
    file_hash_server = Column(String(64), nullable=True)  # server-computed SHA-256
    duration_seconds = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    case = relationship("Case", back_populates="assets")

    __table_args__ = (
        Index("idx_assets_case_created", "case_id", "created_at"),
    )


class Issue(Base):
    """Incident recorded during the tenancy"""
    __tablename__ = "issues"

    issue_id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    room_name = Column(String(255), nullable=True)
    incident_date = Column(Date, nullable=True)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    case = relationship("Case", back_populates="issues")


# =============================================================================
# ENTITLEMENT & OUTPUTS
# =============================================================================

class Purchase(Base):
    """Completed checkout for a case"""
    __tablename__ = "purchases"

    purchase_id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False)
    pack_type = Column(String(50), nullable=False)  # checkin | moveout | bundle | deposit_pack | short_stay
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_purchases_case_user", "case_id", "user_id"),
    )


class Output(Base):
    """Manifest record of one generated document. Never updated."""
    __tablename__ = "outputs"

    output_id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    type = Column(String(50), nullable=False)
    payload = Column(JSONB, default=dict)
    storage_path = Column(String(1000), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
