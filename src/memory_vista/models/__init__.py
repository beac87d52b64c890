"""Central exports for Memory Vista SQLAlchemy models."""

from .audit import AuditLogEntry
from .editor_request import EditorRequestRecord, EditorRequestStatsRecord
from .profile import ProfileCollaborator, ProfileRecord
from .university import UniversityAdmin, UniversityRecord

__all__ = [
    "AuditLogEntry",
    "EditorRequestRecord",
    "EditorRequestStatsRecord",
    "ProfileCollaborator",
    "ProfileRecord",
    "UniversityAdmin",
    "UniversityRecord",
]
