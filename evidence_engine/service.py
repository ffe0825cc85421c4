"""
Report Service
==============

Runs one report generation from request to retrieval URL:

    identity -> ownership -> stay type -> entitlement -> integrity gate
    -> image fetch -> composition -> publish

Every failure surfaces as a ReportError subclass. Anything unexpected
(database, storage, imaging) becomes a GenerationError with a generic
message; details go to the log, never to the caller.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from .config import Settings, get_settings
from .errors import GenerationError, InvalidRequestError, NotFoundError, ReportError, UnauthorizedError
from .integrity import require_hashes
from .models import Caller, CustomSections, ReportType
from .publisher import ManifestWriter, OutputPublisher, PublishedReport
from .render.images import GenerationCancelled, fetch_images
from .reports import ComposedDocument, get_composer
from .repository import CaseRepository
from .storage import ObjectStorage

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GenerationResult:
    """A published report and the document behind it"""
    published: PublishedReport
    document: ComposedDocument

    @property
    def url(self) -> str:
        return self.published.url


class ReportService:
    """Generates, stores and signs evidence reports"""

    def __init__(
        self,
        repository: CaseRepository,
        storage: ObjectStorage,
        manifest: ManifestWriter,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        filename_factory: Optional[Callable[[str], str]] = None,
    ):
        self.repository = repository
        self.storage = storage
        self.settings = settings or get_settings()
        self.clock = clock or utc_now
        self.publisher = OutputPublisher(storage, manifest, self.settings, filename_factory)

    def generate(
        self,
        report_type: Union[ReportType, str],
        case_id: Optional[str],
        caller: Optional[Caller],
        for_preview: bool = False,
        custom_sections: Optional[CustomSections] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        """
        Generate one report.

        Args:
            report_type: Which variant to build
            case_id: Case to report on
            caller: Authenticated identity, None when unauthenticated
            for_preview: Watermark every page; entitlement not required
            custom_sections: Cover content; falls back to the case's saved customization
            cancel_event: Set to abort; nothing is stored after cancellation
            timeout: Deadline in seconds for fetching images; defaults to FETCH_TIMEOUT_SECONDS

        Raises:
            ReportError: see errors.py for the kinds
        """
        if caller is None or not caller.user_id:
            raise UnauthorizedError("Authentication required")
        if not case_id or not case_id.strip():
            raise InvalidRequestError("Missing case ID")
        case_id = case_id.strip()

        composer = get_composer(report_type, self.settings)
        kind = composer.report_type.value

        def checkpoint() -> None:
            if cancel_event is not None and cancel_event.is_set():
                raise GenerationCancelled("Report generation was cancelled")

        started = time.monotonic()
        logger.info(f"Generating {kind} for case {case_id} (preview={for_preview})")

        try:
            case = self.repository.get_case(case_id, caller)
            if case is None:
                raise NotFoundError("Rental not found")

            composer.check_stay_type(case)
            purchases = self.repository.list_purchase_types(case.case_id, case.user_id)
            composer.check_entitlement(caller, purchases, for_preview)

            rooms = self.repository.list_rooms(case.case_id)
            assets = self.repository.list_assets(case.case_id)
            issues = self.repository.list_issues(case.case_id)
            custom = custom_sections or CustomSections.from_mapping(case.pdf_customization)

            generated_at = self.clock()
            content = composer.collect(case, rooms, assets, issues, custom, generated_at)

            if composer.verify_hashes:
                require_hashes(content.evidence)
            checkpoint()

            images = fetch_images(
                content.photos,
                self.storage.get,
                timeout=timeout if timeout is not None else self.settings.fetch_timeout_seconds,
                workers=self.settings.worker_count,
                cancel_event=cancel_event,
            )
            checkpoint()

            document = composer.compose(content, images, for_preview, checkpoint=checkpoint)
            checkpoint()

            download_name = None if for_preview else composer.download_name(case.case_id)
            published = self.publisher.publish(
                case_id=case.case_id,
                user_id=caller.user_id,
                report_type=kind,
                document=document,
                generated_at=generated_at,
                download_name=download_name,
            )
        except ReportError as e:
            logger.info(f"{kind} for case {case_id} refused: {e.kind.value} ({e.message})")
            raise
        except Exception as e:
            logger.exception(f"{kind} for case {case_id} failed: {e}")
            raise GenerationError("Failed to generate report") from e

        elapsed = time.monotonic() - started
        logger.info(
            f"Generated {kind} for case {case_id} in {elapsed:.2f}s "
            f"({document.page_count} pages, {document.photo_count} photos)"
        )
        return GenerationResult(published=published, document=document)
