"""
Output Publisher
================

Last step of a generation: store the PDF, record it in the output manifest
and hand back a time-limited retrieval URL.

Upload failure is fatal and nothing is recorded. A manifest failure after a
successful upload is logged and the document stays retrievable.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import Settings
from .db import models as db
from .errors import GenerationError
from .models import GeneratedOutput
from .reports.base import ComposedDocument
from .storage import ObjectStorage, StorageError, generate_report_key

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class ManifestWriter(ABC):
    """Append-only record of generated documents"""

    @abstractmethod
    def record(self, output: GeneratedOutput) -> None:
        pass


class SqlManifestWriter(ManifestWriter):
    """Writes one row to the outputs table per document"""

    def __init__(self, session: Session):
        self.session = session

    def record(self, output: GeneratedOutput) -> None:
        row = db.Output(
            case_id=output.case_id,
            user_id=output.user_id,
            type=output.type,
            payload=output.to_payload(),
            storage_path=output.storage_path,
            created_at=output.generated_at,
        )
        self.session.add(row)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise


@dataclass
class PublishedReport:
    """Where a published document can be fetched from"""
    url: str
    storage_path: str
    manifest_recorded: bool = True


class OutputPublisher:
    """Stores a finished document and records it"""

    def __init__(
        self,
        storage: ObjectStorage,
        manifest: ManifestWriter,
        settings: Settings,
        filename_factory: Optional[Callable[[str], str]] = None,
    ):
        self.storage = storage
        self.manifest = manifest
        self.settings = settings
        self.filename_factory = filename_factory or generate_report_key

    def publish(
        self,
        case_id: str,
        user_id: str,
        report_type: str,
        document: ComposedDocument,
        generated_at: datetime,
        download_name: Optional[str] = None,
    ) -> PublishedReport:
        """
        Store, record and sign.

        Args:
            download_name: Attachment filename forced on the signed URL (final downloads only)

        Raises:
            GenerationError: upload or URL signing failed
        """
        storage_path = self.filename_factory(case_id)

        try:
            self.storage.put(storage_path, document.pdf_bytes, PDF_CONTENT_TYPE)
        except StorageError as e:
            logger.error(f"Upload failed for case {case_id} ({report_type}): {e}")
            raise GenerationError("Failed to store the generated report") from e

        output = GeneratedOutput(
            case_id=case_id,
            user_id=user_id,
            type=report_type,
            storage_path=storage_path,
            generated_at=generated_at,
            photo_count=document.photo_count,
            rooms_count=document.rooms_count,
            page_count=document.page_count,
            payload=dict(document.payload),
        )
        manifest_recorded = True
        try:
            self.manifest.record(output)
        except Exception as e:
            manifest_recorded = False
            logger.error(
                f"Manifest write failed for case {case_id} ({report_type}), "
                f"document kept at {storage_path}: {e}"
            )

        try:
            url = self.storage.signed_url(storage_path, self.settings.signed_url_ttl_seconds, download_name)
        except StorageError as e:
            logger.error(f"Could not sign URL for case {case_id} ({report_type}): {e}")
            raise GenerationError("Failed to create a download link") from e

        logger.info(
            f"Published {report_type} for case {case_id}: "
            f"{output.page_count} pages, {output.photo_count} photos"
        )
        return PublishedReport(url=url, storage_path=storage_path, manifest_recorded=manifest_recorded)
