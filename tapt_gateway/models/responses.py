"""
Gateway Response Models
======================

Pydantic models for API responses.
"""

from pydantic import BaseModel
from typing import List, Optional, Dict


class ErrorResponse(BaseModel):
    """
    Body of every failed request.

    `error` is always client-safe (sanitized); `errors` is only present for
    field validation failures.
    """

    success: bool = False
    error: str
    errors: Optional[List[Dict[str, str]]] = None


class HealthResponse(BaseModel):
    """Health check response"""

    service: str
    status: str
    build_id: str
    github_commit: str
    timestamp: str
