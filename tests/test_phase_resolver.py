from datetime import date
from types import SimpleNamespace

from apps.reconciliation.phases import (
    effective_follow_up_date,
    normalize_phase_type,
    normalize_status,
    resolve_current_phase,
    synthesized_follow_up_date,
)

TODAY = date(2024, 3, 1)


def phase(phase_type, status, follow_up_date=None):
    return SimpleNamespace(phase_type=phase_type, status=status, follow_up_date=follow_up_date)


class TestResolveCurrentPhase:
    def test_no_phases_defaults_to_quote_confirmed_pending(self):
        resolved = resolve_current_phase([])
        assert (resolved.phase_type, resolved.status) == ("quote_confirmed", "pending")
        assert resolved.phase is None

    def test_most_advanced_non_pending_wins(self):
        resolved = resolve_current_phase([phase("po", "completed"), phase("submittals", "pending")])
        assert (resolved.phase_type, resolved.status) == ("po", "completed")

    def test_in_progress_wins_regardless_of_order(self):
        phases = [phase("buy_number", "in_progress"), phase("po", "pending")]
        assert resolve_current_phase(phases).phase_type == "buy_number"
        assert resolve_current_phase(list(reversed(phases))).phase_type == "buy_number"

    def test_same_status_picks_most_advanced(self):
        phases = [phase("closeouts", "requested"), phase("buy_number", "requested"), phase("po", "requested")]
        assert resolve_current_phase(phases).phase_type == "closeouts"

    def test_completed_outranks_requested_on_later_phase(self):
        phases = [phase("buy_number", "completed"), phase("closeouts", "requested")]
        assert resolve_current_phase(phases).phase_type == "buy_number"

    def test_unranked_statuses_fall_back_to_first_phase(self):
        phases = [phase("submittals", "approved"), phase("po", "approved")]
        resolved = resolve_current_phase(phases)
        assert resolved.phase_type == "submittals"
        assert resolved.status == "approved"

    def test_display_names_are_normalized(self):
        resolved = resolve_current_phase([phase("Purchase Order", "In Progress")])
        assert (resolved.phase_type, resolved.status) == ("po", "in_progress")

    def test_deterministic(self):
        phases = [phase("po", "received"), phase("submittals", "requested"), phase("closeouts", "pending")]
        results = {resolve_current_phase(phases).phase_type for _ in range(5)}
        assert results == {"po"}


def test_normalize_phase_type_aliases():
    assert normalize_phase_type("Buy Number") == "buy_number"
    assert normalize_phase_type("closeout") == "closeouts"
    assert normalize_phase_type("po") == "po"
    assert normalize_phase_type(None) is None


def test_normalize_status_defaults_to_pending():
    assert normalize_status(None) == "pending"
    assert normalize_status("  ") == "pending"
    assert normalize_status("Complete") == "completed"


class TestFollowUpDates:
    def test_explicit_date_is_kept(self):
        p = phase("po", "pending", follow_up_date=date(2024, 4, 1))
        assert effective_follow_up_date(p, TODAY) == date(2024, 4, 1)

    def test_pending_without_date_is_synthesized(self):
        assert effective_follow_up_date(phase("quote_confirmed", "pending"), TODAY) == date(2024, 3, 2)
        assert effective_follow_up_date(phase("buy_number", "pending"), TODAY) == date(2024, 3, 2)
        assert effective_follow_up_date(phase("po", "pending"), TODAY) == date(2024, 3, 5)
        assert synthesized_follow_up_date("closeouts", TODAY) == date(2024, 3, 17)

    def test_synthesis_can_be_turned_off(self):
        assert effective_follow_up_date(phase("po", "pending"), TODAY, synthesize=False) is None

    def test_non_pending_phase_gets_no_synthesized_date(self):
        assert effective_follow_up_date(phase("po", "requested"), TODAY) is None

    def test_no_phase(self):
        assert effective_follow_up_date(None, TODAY) is None
