"""
Conversions between the old archived/on_hold boolean pairs and the per-department
activity cycle, plus the legacy-to-column mapping for project updates.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from constants.statuses import ACTIVE, ARCHIVED, ON_HOLD

# legacy update key -> projects column
_PROJECT_COLUMN_ALIASES = {
    "title": "project_name",
    "due_date": "est_due_date",
    "assign_to": "assigned_to",
    "general_contractor": "old_general_contractor",
}

_ESTIMATING_COLUMNS = (
    "project_name",
    "project_email",
    "project_address",
    "project_description",
    "est_due_date",
    "status",
    "priority",
    "estimated_value",
    "notes",
    "department",
    "assigned_to",
    "created_by",
    "old_general_contractor",
    "file_location",
    "archived_at",
    "archived_by",
    "on_hold_at",
    "on_hold_by",
    "sent_to_apm",
    "sent_to_apm_at",
)

_APM_COLUMNS = (
    "gc_system",
    "gc_contact_id",
    "added_to_procore",
    "made_by_apm",
    "project_start_date",
    "apm_archived_at",
    "apm_on_hold_at",
)


def activity_cycle_from_flags(archived: Optional[bool], on_hold: Optional[bool]) -> Optional[str]:
    """
    Archived wins over on hold. Returns None when neither flag was supplied,
    meaning "leave the cycle alone".
    """
    if archived is None and on_hold is None:
        return None
    if archived:
        return ARCHIVED
    if on_hold:
        return ON_HOLD
    return ACTIVE


def flags_from_activity_cycle(cycle: Optional[str]) -> Tuple[bool, bool]:
    """
    (archived, on_hold) for a stored cycle; unknown or missing cycles are active.
    """
    return cycle == ARCHIVED, cycle == ON_HOLD


def build_project_update(
    updates: Dict[str, Any],
    include_apm: bool = True,
    now: Optional[datetime] = None,
    include_estimating: bool = True,
) -> Dict[str, Any]:
    """
    Translate a legacy-shaped partial project update into column values.

    Only keys present in ``updates`` are written. When a cycle moves to
    Archived / On Hold without an explicit timestamp, the timestamp is stamped
    with ``now``; moving back to Active clears it.
    """
    now = now or datetime.now(timezone.utc)
    allowed = (_ESTIMATING_COLUMNS if include_estimating else ()) + (_APM_COLUMNS if include_apm else ())
    data: Dict[str, Any] = {}

    for key, value in updates.items():
        column = _PROJECT_COLUMN_ALIASES.get(key, key)
        if column in allowed:
            # project_name wins over title when both are sent
            if key == "title" and "project_name" in updates:
                continue
            data[column] = value

    est_cycle = activity_cycle_from_flags(updates.get("archived"), updates.get("on_hold")) if include_estimating else None
    if est_cycle is not None:
        data["est_activity_cycle"] = est_cycle
        _stamp(data, updates, est_cycle, "archived_at", "on_hold_at", now)

    if include_apm:
        apm_cycle = activity_cycle_from_flags(updates.get("apm_archived"), updates.get("apm_on_hold"))
        if apm_cycle is not None:
            data["apm_activity_cycle"] = apm_cycle
            _stamp(data, updates, apm_cycle, "apm_archived_at", "apm_on_hold_at", now)

    if include_estimating and updates.get("sent_to_apm") and "sent_to_apm_at" not in updates:
        data["sent_to_apm_at"] = now

    return data


def _stamp(data: Dict[str, Any], updates: Dict[str, Any], cycle: str, archived_col: str, on_hold_col: str, now: datetime) -> None:
    if cycle == ARCHIVED:
        if archived_col not in updates:
            data[archived_col] = now
    elif cycle == ON_HOLD:
        if on_hold_col not in updates:
            data[on_hold_col] = now
    else:
        data.setdefault(archived_col, None)
        data.setdefault(on_hold_col, None)
