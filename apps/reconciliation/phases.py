"""
Current-phase resolution for a project vendor's APM phases.

Two schema eras resolved the current phase differently: one took the first
non-completed phase in insertion order, the other ranked phases by status and
workflow position. This module implements the ranked policy only:

1. a phase that is ``in_progress`` is current;
2. otherwise, for each status in ``STATUS_PRIORITY``, the most advanced phase
   (latest in ``PHASE_ORDER``) carrying that status is current;
3. otherwise the first phase as given;
4. no phases at all means ``quote_confirmed`` / ``pending``.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional, Sequence

from constants.statuses import (
    APPROVED,
    COMPLETED,
    IN_PROGRESS,
    PENDING,
    PHASE_DISPLAY_NAMES,
    PHASE_ORDER,
    QUOTE_CONFIRMED,
    STATUS_PRIORITY,
)


_PHASE_ALIASES = {name.lower(): key for key, name in PHASE_DISPLAY_NAMES.items()}
_PHASE_ALIASES.update({
    "closeout": "closeouts",
    "purchase_order": "po",
    "buy#": "buy_number",
    "buy_#": "buy_number",
})

_STATUS_ALIASES = {
    "complete": COMPLETED,
    "done": COMPLETED,
    "inprogress": IN_PROGRESS,
    "approve": APPROVED,
}


@dataclass(frozen=True)
class ResolvedPhase:
    phase_type: str
    status: str
    phase: Optional[Any] = None


def normalize_phase_type(value: Optional[str]) -> Optional[str]:
    """
    Map a stored phase name onto its canonical key.

    Older rows store display names ("Purchase Order", "Buy Number"); newer
    ones store the key itself. Unknown names are snake-cased and returned
    as-is so they still round-trip.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if raw in PHASE_ORDER:
        return raw
    lowered = raw.lower()
    if lowered in _PHASE_ALIASES:
        return _PHASE_ALIASES[lowered]
    snake = "_".join(lowered.replace("-", " ").split())
    return _PHASE_ALIASES.get(snake, snake)


def normalize_status(value: Optional[str]) -> str:
    if value is None:
        return PENDING
    snake = "_".join(str(value).strip().lower().replace("-", " ").split())
    if not snake:
        return PENDING
    return _STATUS_ALIASES.get(snake, snake)


def phase_index(phase_type: str) -> int:
    """
    Position in the workflow, -1 for types outside PHASE_ORDER.
    """
    try:
        return PHASE_ORDER.index(phase_type)
    except ValueError:
        return -1


def resolve_current_phase(phases: Sequence[Any]) -> ResolvedPhase:
    if not phases:
        return ResolvedPhase(QUOTE_CONFIRMED, PENDING, None)

    for phase in phases:
        if normalize_status(phase.status) == IN_PROGRESS:
            return _resolved(phase)

    for status in STATUS_PRIORITY:
        for phase_type in reversed(PHASE_ORDER):
            for phase in phases:
                if normalize_phase_type(phase.phase_type) == phase_type and normalize_status(phase.status) == status:
                    return _resolved(phase)

    return _resolved(phases[0])


def synthesized_follow_up_date(phase_type: str, today: date) -> date:
    """
    Display-staggering heuristic for pending phases with no follow-up date:
    the first two phases are due tomorrow, later ones spread three days apart.
    """
    index = phase_index(phase_type)
    if index < 2:
        return today + timedelta(days=1)
    return today + timedelta(days=(index - 1) * 3 + 1)


def effective_follow_up_date(phase: Optional[Any], today: date, synthesize: bool = True) -> Optional[date]:
    if phase is None:
        return None
    if phase.follow_up_date is not None:
        return phase.follow_up_date
    if synthesize and normalize_status(phase.status) == PENDING:
        return synthesized_follow_up_date(normalize_phase_type(phase.phase_type), today)
    return None


def _resolved(phase: Any) -> ResolvedPhase:
    return ResolvedPhase(normalize_phase_type(phase.phase_type), normalize_status(phase.status), phase)
