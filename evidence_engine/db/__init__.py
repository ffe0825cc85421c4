"""
Database Package - SQLAlchemy
=============================

Read models for cases and evidence, plus the output manifest table.
"""

from .models import (
    Base,
    Case, Room, Asset, Issue,
    Purchase, Output,
)
from .session import get_db, init_db, get_engine

__all__ = [
    # Base
    "Base",
    # Cases & evidence
    "Case", "Room", "Asset", "Issue",
    # Entitlement & manifest
    "Purchase", "Output",
    # Session
    "get_db", "init_db", "get_engine",
]
