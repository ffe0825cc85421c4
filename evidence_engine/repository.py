"""
Case Repository
===============

Read-only access to the case data a report is built from.

The service depends on the CaseRepository interface; SqlCaseRepository is the
SQLAlchemy implementation used by the API. Rows are converted into the plain
dataclasses of models.py so nothing downstream holds a session.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.orm import Session

from .db import models as db
from .models import Asset, Caller, CaseRecord, Issue, Room


class CaseRepository(ABC):
    """Abstract read API keyed by case id"""

    @abstractmethod
    def get_case(self, case_id: str, caller: Caller) -> Optional[CaseRecord]:
        """The case if it exists and the caller owns it (admins see every case)"""
        pass

    @abstractmethod
    def list_rooms(self, case_id: str) -> List[Room]:
        pass

    @abstractmethod
    def list_assets(self, case_id: str) -> List[Asset]:
        pass

    @abstractmethod
    def list_issues(self, case_id: str) -> List[Issue]:
        pass

    @abstractmethod
    def list_purchase_types(self, case_id: str, user_id: str) -> List[str]:
        """Pack types the user has bought for this case"""
        pass


class SqlCaseRepository(CaseRepository):
    """CaseRepository backed by the SQLAlchemy session"""

    def __init__(self, session: Session):
        self.session = session

    def get_case(self, case_id: str, caller: Caller) -> Optional[CaseRecord]:
        query = self.session.query(db.Case).filter(db.Case.case_id == case_id)
        if not caller.is_admin:
            query = query.filter(db.Case.user_id == caller.user_id)
        row = query.first()
        if row is None:
            return None
        return CaseRecord(
            case_id=row.case_id,
            user_id=row.user_id,
            label=row.label,
            address=row.address,
            contract_analysis=row.contract_analysis,
            stay_type=row.stay_type,
            lease_start=row.lease_start,
            lease_end=row.lease_end,
            check_in_date=row.check_in_date,
            check_out_date=row.check_out_date,
            platform_name=row.platform_name,
            reservation_id=row.reservation_id,
            checkin_completed_at=row.checkin_completed_at,
            handover_completed_at=row.handover_completed_at,
            keys_returned_at=row.keys_returned_at,
            meter_readings=row.meter_readings or {},
            checkin_notes=row.checkin_notes,
            handover_notes=row.handover_notes,
            pdf_customization=row.pdf_customization,
        )

    def list_rooms(self, case_id: str) -> List[Room]:
        rows = (
            self.session.query(db.Room)
            .filter(db.Room.case_id == case_id)
            .order_by(db.Room.created_at)
            .all()
        )
        return [Room(room_id=r.room_id, name=r.name, created_at=r.created_at) for r in rows]

    def list_assets(self, case_id: str) -> List[Asset]:
        rows = (
            self.session.query(db.Asset)
            .filter(db.Asset.case_id == case_id)
            .order_by(db.Asset.created_at)
            .all()
        )
        return [
            Asset(
                asset_id=r.asset_id,
                storage_path=r.storage_path,
                type=r.type,
                created_at=r.created_at,
                room_id=r.room_id,
                phase=r.phase,
                file_hash=r.file_hash,
                file_hash_server=r.file_hash_server,
                duration_seconds=r.duration_seconds,
            )
            for r in rows
        ]

    def list_issues(self, case_id: str) -> List[Issue]:
        rows = (
            self.session.query(db.Issue)
            .filter(db.Issue.case_id == case_id)
            .order_by(db.Issue.incident_date, db.Issue.created_at)
            .all()
        )
        return [
            Issue(description=r.description, room_name=r.room_name, incident_date=r.incident_date)
            for r in rows
        ]

    def list_purchase_types(self, case_id: str, user_id: str) -> List[str]:
        rows = (
            self.session.query(db.Purchase.pack_type)
            .filter(db.Purchase.case_id == case_id, db.Purchase.user_id == user_id)
            .all()
        )
        return [pack_type for (pack_type,) in rows]
