from datetime import date
from decimal import Decimal

import pytest

from apps.reconciliation.fields import ROUND_TRIP_FIELDS
from apps.reconciliation.records import LegacyBidVendor, NormalizedBidVendor, parse_bid_vendor_record
from apps.reconciliation.transformer import (
    as_legacy,
    as_normalized,
    legacy_dict,
    project_to_legacy_bid,
    split_legacy_updates,
    to_legacy,
    to_normalized,
)

TODAY = date(2024, 3, 1)


def d(day):
    return date(2024, 1, day)


@pytest.fixture
def full_legacy():
    """A legacy row with every round-trip field populated."""
    return LegacyBidVendor(
        id=11,
        bid_id=3,
        vendor_id=7,
        vendor_name="Acme Mechanical",
        due_date=d(2),
        response_received_date=d(3),
        status="yes bid",
        follow_up_count=2,
        last_follow_up_date=d(4),
        response_notes="Will quote",
        responded_by="Sam",
        is_priority=True,
        cost_amount=Decimal("1250.50"),
        assigned_apm_user="apm-1",
        assigned_date=d(5),
        final_quote_amount=Decimal("1300.00"),
        final_quote_confirmed_date=d(6),
        final_quote_notes="Confirmed by phone",
        buy_number="B-100",
        buy_number_requested_date=d(7),
        buy_number_follow_up_date=d(8),
        buy_number_received_date=d(9),
        buy_number_notes="buy",
        po_number="PO-55",
        po_requested_date=d(10),
        po_sent_date=d(11),
        po_follow_up_date=d(12),
        po_received_date=d(13),
        po_confirmed_date=d(14),
        po_notes="po",
        submittals_requested_date=d(15),
        submittals_follow_up_date=d(16),
        submittals_received_date=d(17),
        submittals_status="received",
        submittals_approved_date=d(18),
        submittals_rejected_date=d(19),
        submittals_rejection_reason="Wrong model",
        submittals_revision_count=2,
        submittals_last_revision_date=d(20),
        submittals_notes="subs",
        revised_plans_requested_date=d(21),
        revised_plans_sent_date=d(22),
        revised_plans_follow_up_date=d(23),
        revised_plans_confirmed_date=d(24),
        revised_plans_notes="plans",
        equipment_release_requested_date=d(25),
        equipment_release_follow_up_date=d(26),
        equipment_released_date=d(27),
        equipment_release_notes="released",
        closeout_requested_date=d(28),
        closeout_follow_up_date=d(29),
        closeout_received_date=d(30),
        closeout_approved_date=d(31),
        closeout_notes="closed",
        apm_phase="closeouts",
        apm_status="in_progress",
        apm_priority=True,
    )


class TestRoundTrip:
    def test_round_trip_preserves_every_mapped_field(self, full_legacy):
        normalized = to_normalized(full_legacy)
        back = to_legacy(
            normalized.relationship,
            normalized.phases,
            normalized.financial,
            normalized.follow_ups,
            today=TODAY,
        )
        for name in ROUND_TRIP_FIELDS:
            assert getattr(back, name) == getattr(full_legacy, name), name

    def test_rejection_fields_read_back_as_none(self, full_legacy):
        back = as_legacy(to_normalized(full_legacy), today=TODAY)
        assert back.submittals_rejected_date is None
        assert back.submittals_rejection_reason is None

    def test_current_phase_is_recomputed(self, full_legacy):
        back = as_legacy(to_normalized(full_legacy), today=TODAY)
        assert (back.apm_phase, back.apm_status) == ("closeouts", "in_progress")
        assert back.next_follow_up_date == d(29)
        assert back.submittals_status == "approved"

    def test_current_phase_without_phase_fields_survives(self):
        normalized = to_normalized({"id": 1, "apm_phase": "Submittals", "apm_status": "In Progress"})
        assert [(p.phase_type, p.status) for p in normalized.phases] == [("submittals", "in_progress")]

        back = as_legacy(normalized, today=TODAY)
        assert (back.apm_phase, back.apm_status) == ("submittals", "in_progress")

    def test_pending_current_phase_without_fields_adds_nothing(self):
        normalized = to_normalized({"id": 1, "apm_phase": "po", "apm_status": "pending"})
        assert normalized.phases == []


class TestToNormalized:
    def test_every_populated_phase_is_created(self, full_legacy):
        normalized = to_normalized(full_legacy)
        assert [p.phase_type for p in normalized.phases] == [
            "quote_confirmed", "buy_number", "po", "submittals", "revised_plans", "equipment_release", "closeouts",
        ]
        statuses = {p.phase_type: p.status for p in normalized.phases}
        assert statuses["closeouts"] == "in_progress"
        assert statuses["po"] == "completed"

    def test_empty_row_has_only_relationship_and_follow_up(self):
        normalized = to_normalized({"id": 1, "bid_id": 2, "vendor_id": 3})
        assert normalized.phases == []
        assert normalized.financial is None
        assert len(normalized.follow_ups) == 1
        assert normalized.follow_ups[0].status == "pending"
        assert normalized.relationship.project_id == 2

    def test_requested_only_phase_is_requested(self):
        normalized = to_normalized({"id": 1, "po_requested_date": d(2)})
        assert [(p.phase_type, p.status) for p in normalized.phases] == [("po", "requested")]

    def test_empty_phases_read_back_as_defaults(self):
        back = to_legacy({"id": 1, "project_id": 2, "vendor_id": 3}, today=TODAY, synthesize=False)
        assert (back.apm_phase, back.apm_status) == ("quote_confirmed", "pending")
        assert back.next_follow_up_date is None
        assert back.status == "pending"


class TestToLegacy:
    def test_latest_follow_up_wins(self):
        back = to_legacy(
            {"id": 1, "project_id": 2, "vendor_id": 3},
            follow_ups=[{"id": 5, "status": "no bid"}, {"id": 9, "status": "yes bid"}, {"id": 7, "status": "pending"}],
            today=TODAY,
        )
        assert back.status == "yes bid"

    def test_latest_phase_of_a_type_wins(self):
        back = to_legacy(
            {"id": 1},
            phases=[
                {"id": 2, "phase_type": "po", "status": "pending", "notes": "old"},
                {"id": 4, "phase_type": "po", "status": "requested", "notes": "new"},
            ],
            today=TODAY,
        )
        assert back.po_notes == "new"

    def test_pending_phase_follow_up_is_synthesized(self):
        back = to_legacy({"id": 1}, phases=[{"phase_type": "po", "status": "pending"}], today=TODAY)
        assert back.apm_phase == "po"
        assert back.next_follow_up_date == date(2024, 3, 5)


class TestTaggedRecords:
    def test_untagged_payload_is_legacy(self):
        assert isinstance(parse_bid_vendor_record({"id": 1}), LegacyBidVendor)

    def test_normalized_tag(self):
        record = parse_bid_vendor_record({"schema_version": "normalized", "relationship": {"id": 1}})
        assert isinstance(record, NormalizedBidVendor)
        assert isinstance(as_normalized(record), NormalizedBidVendor)

    def test_legacy_dict_drops_tag(self, full_legacy):
        data = legacy_dict(full_legacy)
        assert "schema_version" not in data
        assert data["bid_id"] == 3


class TestSplitLegacyUpdates:
    def test_fields_go_to_their_tables(self):
        split = split_legacy_updates({
            "is_priority": True,
            "due_date": d(2),
            "cost_amount": Decimal("10"),
            "po_notes": "sent",
            "made_up_field": 1,
        })
        assert split.relationship == {"is_priority": True}
        assert split.follow_up == {"response_due_date": d(2)}
        assert split.financial == {"cost_estimate": Decimal("10")}
        assert split.phases == {"po": {"notes": "sent"}}
        assert split.ignored == ["made_up_field"]

    def test_apm_phase_and_status_set_that_phase(self):
        split = split_legacy_updates({"apm_phase": "Purchase Order", "apm_status": "In Progress"})
        assert split.phases == {"po": {"status": "in_progress"}}
        assert split.ignored == []

    def test_submittals_status(self):
        assert split_legacy_updates({"submittals_status": "approved"}).phases == {"submittals": {"status": "approved"}}
        assert split_legacy_updates({"submittals_status": "rejected"}).ignored == ["submittals_status"]

    def test_empty(self):
        assert split_legacy_updates({"id": 4}).is_empty()


def test_project_to_legacy_bid_from_change_record():
    bid = project_to_legacy_bid({
        "id": 8,
        "project_name": "Library",
        "est_due_date": "2024-05-01",
        "est_activity_cycle": "On Hold",
        "apm_activity_cycle": "Archived",
        "assigned_to": "u1",
        "old_general_contractor": "BuildCo",
    })
    assert bid["title"] == "Library"
    assert bid["due_date"] == "2024-05-01"
    assert bid["assign_to"] == "u1"
    assert bid["general_contractor"] == "BuildCo"
    assert (bid["archived"], bid["on_hold"]) == (False, True)
    assert (bid["apm_archived"], bid["apm_on_hold"]) == (True, False)
    assert bid["priority"] is False
