"""Pydantic request/response schemas for scrape jobs.

Used by the generic ingress routes for validation, serialisation, and
OpenAPI documentation.  ``callback_token`` is write-only: it is accepted on
create and never echoed back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScrapeJobCreate(BaseModel):
    """Payload for submitting a scrape job through the generic API.

    Attributes:
        url: Absolute http(s) URL of the game page.  Checked by the
            dispatcher, which answers 422 with a readable message.
        channel: Opaque routing info for the completion message.
        token: Opaque, possibly short-lived callback credential.
        requested_by: Optional requester identity for audit and throttling.
    """

    url: str = Field(max_length=2048)
    channel: Optional[str] = Field(default=None, max_length=255)
    token: Optional[str] = None
    requested_by: Optional[str] = Field(default=None, max_length=255)


class ScrapeJobAccepted(BaseModel):
    """Immediate acknowledgment returned once the job row is committed."""

    job_id: int
    status: str
    message: str


class ScrapeJobRead(BaseModel):
    """Representation of a persisted scrape job."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    status: str
    platform: str
    callback_channel: Optional[str]
    requested_by: Optional[str]
    created_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    error_message: Optional[str]
    result_payload: Optional[dict[str, Any]]
