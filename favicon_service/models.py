"""
Markstash v1 - Favicon Service Pydantic Models

API request/response models for the favicon service.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ResolveRequest(BaseModel):
    """Request model for /resolve endpoint"""
    url: str = Field(..., min_length=1, description="Bookmark URL, scheme optional")

    model_config = ConfigDict(json_schema_extra={
        "example": {"url": "example.com/some/page"}
    })


class ResolveResponse(BaseModel):
    """Response model for a resolved favicon"""
    url: str = Field(..., description="URL that was resolved")
    origin: str = Field(..., description="Origin the favicon is cached under")
    favicon: str = Field(..., description="Favicon as a data URI")
    source: Optional[str] = Field(None, description="Cascade step that produced the favicon")


class BatchResolveRequest(BaseModel):
    """Request model for /resolve_batch endpoint"""
    urls: list[str] = Field(..., description="Bookmark URLs; empty entries are skipped")


class BatchResolveItem(BaseModel):
    """One entry of a batch response; favicon is empty when none was found"""
    url: str
    favicon: str = ""


class Bookmark(BaseModel):
    """Bookmark as exchanged by the import/export endpoints"""
    url: str
    title: Optional[str] = None
    favicon: str = ""
    show_text: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImportRequest(BaseModel):
    """Request model for /bookmarks/import"""
    file: str = Field(..., description="Base64-encoded Netscape bookmarks file")
    keep_existing_icons: bool = Field(
        default=False,
        description="Keep ICON_URI values from the file instead of resolving every icon",
    )


class ImportResponse(BaseModel):
    """Response model for /bookmarks/import"""
    bookmarks: list[Bookmark]


class ExportRequest(BaseModel):
    """Request model for /bookmarks/export"""
    bookmarks: list[Bookmark]


class ExportResponse(BaseModel):
    """Response model for /bookmarks/export"""
    file: str = Field(..., description="Base64-encoded Netscape bookmarks file")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    url: Optional[str] = Field(None, description="URL that caused the error")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    cache: str = Field(..., description="Cache backend status")
