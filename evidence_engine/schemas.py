"""
Pydantic Schemas for Evidence Report Service
============================================

Request/response bodies of the report endpoints.
Field names follow the JSON the web client already sends (camelCase),
with snake_case accepted as well.
"""

from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from .models import CustomSections


# =============================================================================
# INPUT SCHEMAS
# =============================================================================

class CustomSectionsPayload(BaseModel):
    """User-authored cover page content, each block independently toggled"""
    model_config = ConfigDict(populate_by_name=True)

    personal_notes: Optional[str] = Field(None, alias="personalNotes", max_length=5000)
    property_rating: Optional[int] = Field(None, alias="propertyRating", ge=0, le=5)
    property_review: Optional[str] = Field(None, alias="propertyReview", max_length=5000)
    custom_title: Optional[str] = Field(None, alias="customTitle", max_length=200)
    custom_content: Optional[str] = Field(None, alias="customContent", max_length=5000)
    include_personal_notes: Optional[bool] = Field(None, alias="includePersonalNotes")
    include_property_review: Optional[bool] = Field(None, alias="includePropertyReview")
    include_custom_section: Optional[bool] = Field(None, alias="includeCustomSection")

    def to_sections(self) -> CustomSections:
        return CustomSections.from_mapping(self.model_dump(exclude_none=True))


class GenerateReportRequest(BaseModel):
    """Body of POST /api/pdf/*"""
    model_config = ConfigDict(populate_by_name=True)

    case_id: Optional[str] = Field(None, alias="caseId", description="Case to report on")
    for_preview: bool = Field(False, alias="forPreview", description="Watermarked preview")
    custom_sections: Optional[CustomSectionsPayload] = Field(None, alias="customSections")
    timeout_seconds: Optional[float] = Field(
        None, alias="timeoutSeconds", gt=0, le=300, description="Image fetch deadline for this request"
    )


# =============================================================================
# OUTPUT SCHEMAS
# =============================================================================

class ReportResponse(BaseModel):
    """Successful generation"""
    url: str = Field(..., description="Time-limited retrieval URL")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    storage_backend: str = Field(..., description="Configured object storage backend")
    timestamp: datetime = Field(..., description="Current timestamp")


class ErrorDetail(BaseModel):
    """Structured error detail"""
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(None, description="Optional error details")


class ErrorResponse(BaseModel):
    """Structured error response"""
    error: ErrorDetail
