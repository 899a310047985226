from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class ProjectStatus(str, enum.Enum):
    POSSIBLE = "Possible"
    SCOPING = "Scoping"
    PROCUREMENT = "Procurement"
    EXECUTION = "Execution"
    COMPLETED = "Completed"
    CLOSED = "Closed"


class LogAction(str, enum.Enum):
    CREATED = "PROJECT_CREATED"
    FIELDS_UPDATED = "PROJECT_UPDATED"
    STATUS_CHANGED = "STATUS_CHANGE"
    SUB_STATUS_CHANGED = "SUBSTATUS_CHANGE"
    NOTE_ADDED = "NOTE_ADDED"


# Actions whose records must carry a non-empty changes mapping.
DIFF_ACTIONS = frozenset({LogAction.FIELDS_UPDATED, LogAction.STATUS_CHANGED, LogAction.SUB_STATUS_CHANGED})
