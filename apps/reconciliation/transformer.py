"""
Shape transformer between the legacy flat bid-vendor row and the normalized
relationship / phases / financial / follow-up records.

``to_legacy(to_normalized(x))`` reproduces ``x`` on every field in
``fields.ROUND_TRIP_FIELDS``. Derived fields (current phase, next follow-up,
submittals status) are recomputed on the way back, and fields the normalized
schema has no column for come back as None.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from apps.reconciliation.activity import flags_from_activity_cycle
from apps.reconciliation.fields import (
    FINANCIAL_FIELDS,
    FOLLOW_UP_FIELDS,
    LEGACY_PHASE_FIELDS,
    PHASE_FIELDS,
    RELATIONSHIP_FIELDS,
    UNREPRESENTED_FIELDS,
)
from apps.reconciliation.phases import (
    effective_follow_up_date,
    normalize_phase_type,
    normalize_status,
    resolve_current_phase,
)
from apps.reconciliation.records import (
    FinancialRecord,
    FollowUpRecord,
    LegacyBidVendor,
    NormalizedBidVendor,
    PhaseRecord,
    RelationshipRecord,
    parse_bid_vendor_record,
)
from constants.statuses import (
    APPROVED,
    COMPLETED,
    PENDING,
    PHASE_ORDER,
    PHASE_STATUSES,
    RECEIVED,
    REQUESTED,
    SUBMITTALS,
)

logger = logging.getLogger(__name__)

_REQUESTED_ATTRS = ("requested_date", "sent_date")
_DONE_ATTRS = ("approved_date", "completed_date")
PHASE_DATE_ATTRS = _REQUESTED_ATTRS + _DONE_ATTRS


# ---------- legacy -> normalized ----------

def _phase_populated(legacy: LegacyBidVendor, mapping: Dict[str, str]) -> bool:
    for attr, legacy_field in mapping.items():
        value = getattr(legacy, legacy_field)
        if attr == "revision_count":
            if value and value > 0:
                return True
        elif value is not None:
            return True
    return False


def derive_phase_status(values: Mapping[str, Any]) -> str:
    """Status implied by a phase's dates: done, requested or pending."""
    if any(values.get(a) is not None for a in _DONE_ATTRS):
        return COMPLETED
    if any(values.get(a) is not None for a in _REQUESTED_ATTRS):
        return REQUESTED
    return PENDING


def touches_phase_dates(values: Mapping[str, Any]) -> bool:
    return any(a in values for a in PHASE_DATE_ATTRS)


def to_normalized(legacy: Union[LegacyBidVendor, Dict[str, Any]]) -> NormalizedBidVendor:
    """
    Split one legacy row into its normalized parts.

    A phase is created for phase types whose legacy fields carry data, and
    for the phase named by ``apm_phase`` whenever ``apm_status`` is past
    pending. That phase keeps the legacy ``apm_status``; other phases get a
    status derived from their dates. A financial record exists
    only when a money/number field is set. There is always exactly one
    follow-up record.
    """
    if not isinstance(legacy, LegacyBidVendor):
        legacy = LegacyBidVendor.model_validate(legacy)

    relationship = RelationshipRecord(**{
        attr: getattr(legacy, legacy_field) for attr, legacy_field in RELATIONSHIP_FIELDS.items()
    })

    current_type = normalize_phase_type(legacy.apm_phase)
    current_status = normalize_status(legacy.apm_status)
    phases: List[PhaseRecord] = []
    for phase_type in PHASE_ORDER:
        mapping = PHASE_FIELDS[phase_type]
        is_current = phase_type == current_type
        if not _phase_populated(legacy, mapping) and not (is_current and current_status != PENDING):
            continue
        values = {attr: getattr(legacy, legacy_field) for attr, legacy_field in mapping.items()}
        if is_current:
            status = current_status
        else:
            status = derive_phase_status(values)
        phases.append(PhaseRecord(
            project_vendor_id=legacy.id,
            phase_type=phase_type,
            status=status,
            **values,
        ))

    financial_values = {
        attr: getattr(legacy, legacy_field) for attr, legacy_field in FINANCIAL_FIELDS.items()
    }
    financial = None
    if any(v is not None for v in financial_values.values()):
        financial = FinancialRecord(project_vendor_id=legacy.id, **financial_values)

    follow_up = FollowUpRecord(project_vendor_id=legacy.id, **{
        attr: getattr(legacy, legacy_field) for attr, legacy_field in FOLLOW_UP_FIELDS.items()
    })

    return NormalizedBidVendor(
        relationship=relationship,
        phases=phases,
        financial=financial,
        follow_ups=[follow_up],
    )


# ---------- normalized -> legacy ----------

def _as_record(model, obj):
    if obj is None or isinstance(obj, model):
        return obj
    return model.model_validate(obj)


def _latest(records: Sequence[Any]) -> Optional[Any]:
    if not records:
        return None
    # stable sort: equal ids keep input order, so the last one given wins
    return sorted(records, key=lambda r: r.id or 0)[-1]


def _submittals_status(phase: Optional[PhaseRecord]) -> str:
    if phase is None:
        return PENDING
    if phase.status in (RECEIVED, APPROVED):
        return phase.status
    if phase.approved_date is not None:
        return APPROVED
    if phase.completed_date is not None:
        return RECEIVED
    return PENDING


def to_legacy(
    relationship: Any,
    phases: Iterable[Any] = (),
    financial: Any = None,
    follow_ups: Iterable[Any] = (),
    *,
    today: Optional[date] = None,
    vendor_name: Optional[str] = None,
    synthesize: bool = True,
) -> LegacyBidVendor:
    """
    Flatten a relationship and its children into one legacy row.

    Accepts ORM rows, dicts or records. ``follow_ups`` may hold several rows;
    the latest (highest id) supplies the response fields. When a phase type
    appears more than once the latest row wins.
    """
    today = today or date.today()
    relationship = _as_record(RelationshipRecord, relationship)
    phase_records = [_as_record(PhaseRecord, p) for p in phases]
    financial = _as_record(FinancialRecord, financial)
    follow_up = _latest([_as_record(FollowUpRecord, f) for f in follow_ups])

    by_type: Dict[str, PhaseRecord] = {}
    for phase in sorted(phase_records, key=lambda p: p.id or 0):
        by_type[phase.phase_type] = phase

    data: Dict[str, Any] = {
        legacy_field: getattr(relationship, attr)
        for attr, legacy_field in RELATIONSHIP_FIELDS.items()
    }
    for attr, legacy_field in FOLLOW_UP_FIELDS.items():
        data[legacy_field] = getattr(follow_up, attr) if follow_up is not None else None
    if data["status"] is None:
        data["status"] = PENDING
    for attr, legacy_field in FINANCIAL_FIELDS.items():
        data[legacy_field] = getattr(financial, attr) if financial is not None else None

    for phase_type, mapping in PHASE_FIELDS.items():
        phase = by_type.get(phase_type)
        for attr, legacy_field in mapping.items():
            data[legacy_field] = getattr(phase, attr) if phase is not None else None

    for name in UNREPRESENTED_FIELDS:
        data[name] = None

    resolved = resolve_current_phase(phase_records)
    data.update(
        vendor_name=vendor_name,
        submittals_status=_submittals_status(by_type.get(SUBMITTALS)),
        apm_phase=resolved.phase_type,
        apm_status=resolved.status,
        next_follow_up_date=effective_follow_up_date(resolved.phase, today, synthesize),
        apm_phase_updated_at=resolved.phase.updated_at if resolved.phase is not None else None,
        apm_phases=phase_records,
    )
    return LegacyBidVendor(**data)


# ---------- partial updates ----------

@dataclass
class LegacyUpdateSplit:
    relationship: Dict[str, Any] = field(default_factory=dict)
    follow_up: Dict[str, Any] = field(default_factory=dict)
    financial: Dict[str, Any] = field(default_factory=dict)
    phases: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    ignored: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.relationship or self.follow_up or self.financial or self.phases)


_RELATIONSHIP_BY_LEGACY = {v: k for k, v in RELATIONSHIP_FIELDS.items() if k not in ("id", "project_id", "vendor_id")}
_FOLLOW_UP_BY_LEGACY = {v: k for k, v in FOLLOW_UP_FIELDS.items()}
_FINANCIAL_BY_LEGACY = {v: k for k, v in FINANCIAL_FIELDS.items()}


def split_legacy_updates(updates: Dict[str, Any]) -> LegacyUpdateSplit:
    """
    Distribute a partial legacy-shaped update across the normalized tables.

    ``apm_phase`` + ``apm_status`` set the status of that phase, and
    ``submittals_status`` sets the submittals phase status when it is a phase
    status. Keys with no normalized home are reported in ``ignored``.
    """
    split = LegacyUpdateSplit()
    for key, value in updates.items():
        if key in _RELATIONSHIP_BY_LEGACY:
            split.relationship[_RELATIONSHIP_BY_LEGACY[key]] = value
        elif key in _FOLLOW_UP_BY_LEGACY:
            split.follow_up[_FOLLOW_UP_BY_LEGACY[key]] = value
        elif key in _FINANCIAL_BY_LEGACY:
            split.financial[_FINANCIAL_BY_LEGACY[key]] = value
        elif key in LEGACY_PHASE_FIELDS:
            phase_type, attr = LEGACY_PHASE_FIELDS[key]
            split.phases.setdefault(phase_type, {})[attr] = value
        elif key == "apm_status" and updates.get("apm_phase"):
            phase_type = normalize_phase_type(updates["apm_phase"])
            split.phases.setdefault(phase_type, {})["status"] = normalize_status(value)
        elif key == "submittals_status" and normalize_status(value) in PHASE_STATUSES:
            split.phases.setdefault(SUBMITTALS, {})["status"] = normalize_status(value)
        elif key == "apm_phase" and "apm_status" in updates:
            continue
        elif key in ("id", "bid_id", "vendor_id", "schema_version"):
            continue
        else:
            split.ignored.append(key)

    if split.ignored:
        logger.debug("Legacy update keys without a normalized column: %s", split.ignored)
    return split


# ---------- projects ----------

_PROJECT_COLUMNS = (
    "id", "project_name", "project_email", "project_address", "old_general_contractor",
    "project_description", "est_due_date", "status", "priority", "estimated_value", "notes",
    "created_by", "assigned_to", "file_location", "department", "est_activity_cycle",
    "apm_activity_cycle", "archived_at", "archived_by", "on_hold_at", "on_hold_by",
    "sent_to_apm", "sent_to_apm_at", "apm_archived_at", "apm_on_hold_at", "gc_system",
    "gc_contact_id", "added_to_procore", "made_by_apm", "project_start_date",
    "created_at", "updated_at",
)


def project_to_legacy_bid(project: Any) -> Dict[str, Any]:
    """
    Flatten a projects row into the legacy bid dict the board reads,
    exposing each activity cycle as its archived/on_hold pair.
    Accepts an ORM row or a plain column dict (a change notification record).
    """
    if isinstance(project, Mapping):
        project = SimpleNamespace(**{c: project.get(c) for c in _PROJECT_COLUMNS})
    archived, on_hold = flags_from_activity_cycle(project.est_activity_cycle)
    apm_archived, apm_on_hold = flags_from_activity_cycle(project.apm_activity_cycle)
    return {
        "id": project.id,
        "title": project.project_name,
        "project_name": project.project_name,
        "project_email": project.project_email,
        "project_address": project.project_address,
        "general_contractor": project.old_general_contractor,
        "project_description": project.project_description,
        "due_date": project.est_due_date,
        "status": project.status,
        "priority": bool(project.priority),
        "estimated_value": project.estimated_value,
        "notes": project.notes,
        "created_by": project.created_by,
        "assign_to": project.assigned_to,
        "file_location": project.file_location,
        "department": project.department,
        "est_activity_cycle": project.est_activity_cycle,
        "apm_activity_cycle": project.apm_activity_cycle,
        "archived": archived,
        "archived_at": project.archived_at,
        "archived_by": project.archived_by,
        "on_hold": on_hold,
        "on_hold_at": project.on_hold_at,
        "on_hold_by": project.on_hold_by,
        "sent_to_apm": bool(project.sent_to_apm),
        "sent_to_apm_at": project.sent_to_apm_at,
        "apm_archived": apm_archived,
        "apm_archived_at": project.apm_archived_at,
        "apm_on_hold": apm_on_hold,
        "apm_on_hold_at": project.apm_on_hold_at,
        "gc_system": project.gc_system,
        "gc_contact_id": project.gc_contact_id,
        "added_to_procore": bool(project.added_to_procore),
        "made_by_apm": bool(project.made_by_apm),
        "project_start_date": project.project_start_date,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


# ---------- tagged union adapters ----------

def as_legacy(
    record: Union[LegacyBidVendor, NormalizedBidVendor, Dict[str, Any]],
    *,
    today: Optional[date] = None,
    vendor_name: Optional[str] = None,
    synthesize: bool = True,
) -> LegacyBidVendor:
    if isinstance(record, dict):
        record = parse_bid_vendor_record(record)
    if isinstance(record, LegacyBidVendor):
        return record
    return to_legacy(
        record.relationship,
        record.phases,
        record.financial,
        record.follow_ups,
        today=today,
        vendor_name=vendor_name,
        synthesize=synthesize,
    )


def as_normalized(record: Union[LegacyBidVendor, NormalizedBidVendor, Dict[str, Any]]) -> NormalizedBidVendor:
    if isinstance(record, dict):
        record = parse_bid_vendor_record(record)
    if isinstance(record, NormalizedBidVendor):
        return record
    return to_normalized(record)


def legacy_dict(record: LegacyBidVendor) -> Dict[str, Any]:
    """
    Plain dict of a legacy row, without the schema tag.
    """
    return record.model_dump(exclude={"schema_version"})
