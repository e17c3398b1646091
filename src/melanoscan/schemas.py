"""Response models for the HTTP API."""
from __future__ import annotations

from pydantic import BaseModel


class ScanResponse(BaseModel):
    responCode: str = "200"
    responMessage: str = "Success"
    id: str
    userId: str
    fileName: str
    uploadedAt: str
    url: str
    confidence: float
    explanation: str
    suggestion: str


class ScanRecordOut(BaseModel):
    id: str
    userId: str
    fileName: str
    uploadedAt: str
    url: str
    confidence: float
    explanation: str
    suggestion: str


class ErrorResponse(BaseModel):
    error: str


class StatusResponse(BaseModel):
    responCode: str
    responMessage: str


class HealthResponse(BaseModel):
    status: str
    model: str
