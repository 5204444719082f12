"""Response envelopes shared by the routers."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness probe response."""
    status: str
    timestamp: str
    version: str
    configuration_version: Optional[str] = None


class ErrorResponse(BaseModel):
    """Structured error response."""
    error: str
    code: str
    details: Optional[dict[str, Any]] = None
    request_id: str
