"""Pydantic models for API I/O."""

from .integrity import IntegrityResponse, RebuildResponse, RepairResponse, TeamWriteFailureResponse
from .keepers import StackRequest, StackResponse, TeamSummaryResponse, ValidationIssueResponse
from .trades import CapImpactRequest, CapImpactResponse

__all__ = [
    "CapImpactRequest",
    "CapImpactResponse",
    "IntegrityResponse",
    "RebuildResponse",
    "RepairResponse",
    "StackRequest",
    "StackResponse",
    "TeamSummaryResponse",
    "TeamWriteFailureResponse",
    "ValidationIssueResponse",
]
