"""
Report error types.

Every failure a caller can see is one of these. Kept in a separate module so
the service, the API layer and tests share the same classes.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    """Machine-readable error codes returned to callers"""
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    HASH_VERIFICATION_INCOMPLETE = "HASH_VERIFICATION_INCOMPLETE"
    GENERATION_FAILED = "GENERATION_FAILED"


_STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.HASH_VERIFICATION_INCOMPLETE: 422,
    ErrorKind.GENERATION_FAILED: 500,
}


class ReportError(Exception):
    """Base exception for report generation errors"""

    kind: ErrorKind = ErrorKind.GENERATION_FAILED

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class UnauthorizedError(ReportError):
    """No verified caller"""
    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(ReportError):
    """Caller lacks entitlement and the request is not a preview"""
    kind = ErrorKind.FORBIDDEN


class NotFoundError(ReportError):
    """Case does not resolve for this caller"""
    kind = ErrorKind.NOT_FOUND


class InvalidRequestError(ReportError):
    """Missing identifier or a variant precondition failed"""
    kind = ErrorKind.VALIDATION


class HashVerificationError(ReportError):
    """One or more assets lack a content hash"""
    kind = ErrorKind.HASH_VERIFICATION_INCOMPLETE

    def __init__(self, missing_ids: List[str], total_assets: int):
        self.missing_ids = list(missing_ids)
        self.missing_count = len(self.missing_ids)
        super().__init__(
            f"{self.missing_count} of {total_assets} evidence files are missing integrity hashes. "
            "Hash verification must complete before a report can be generated.",
            details={
                "missingCount": self.missing_count,
                "missingAssetIds": self.missing_ids,
                "totalAssets": total_assets,
            },
        )


class GenerationError(ReportError):
    """Any downstream composer, storage or query fault"""
    kind = ErrorKind.GENERATION_FAILED
