from datetime import datetime, timezone

import pytest

from apps.reconciliation.activity import (
    activity_cycle_from_flags,
    build_project_update,
    flags_from_activity_cycle,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "archived, on_hold, expected",
    [
        (None, None, None),
        (True, False, "Archived"),
        (True, True, "Archived"),
        (False, True, "On Hold"),
        (None, True, "On Hold"),
        (False, False, "Active"),
        (False, None, "Active"),
    ],
)
def test_activity_cycle_from_flags(archived, on_hold, expected):
    assert activity_cycle_from_flags(archived, on_hold) == expected


def test_flags_from_activity_cycle():
    assert flags_from_activity_cycle("Archived") == (True, False)
    assert flags_from_activity_cycle("On Hold") == (False, True)
    assert flags_from_activity_cycle("Active") == (False, False)
    assert flags_from_activity_cycle(None) == (False, False)


class TestBuildProjectUpdate:
    def test_legacy_names_map_to_columns(self):
        data = build_project_update(
            {"title": "Library", "due_date": "2024-05-01", "assign_to": "u1", "general_contractor": "BuildCo"},
            now=NOW,
        )
        assert data == {
            "project_name": "Library",
            "est_due_date": "2024-05-01",
            "assigned_to": "u1",
            "old_general_contractor": "BuildCo",
        }

    def test_project_name_wins_over_title(self):
        data = build_project_update({"title": "Old", "project_name": "New"}, now=NOW)
        assert data["project_name"] == "New"

    def test_archiving_stamps_timestamp(self):
        data = build_project_update({"archived": True, "archived_by": "u1"}, now=NOW)
        assert data["est_activity_cycle"] == "Archived"
        assert data["archived_at"] == NOW
        assert data["archived_by"] == "u1"

    def test_back_to_active_clears_timestamps(self):
        data = build_project_update({"archived": False, "on_hold": False}, now=NOW)
        assert data["est_activity_cycle"] == "Active"
        assert data["archived_at"] is None
        assert data["on_hold_at"] is None

    def test_apm_cycle(self):
        data = build_project_update({"apm_on_hold": True}, now=NOW)
        assert data == {"apm_activity_cycle": "On Hold", "apm_on_hold_at": NOW}

    def test_estimating_update_leaves_apm_columns_alone(self):
        data = build_project_update({"gc_system": "Procore", "apm_archived": True, "notes": "x"}, include_apm=False, now=NOW)
        assert data == {"notes": "x"}

    def test_apm_update_leaves_estimating_columns_alone(self):
        data = build_project_update(
            {"gc_system": "Procore", "archived": True, "notes": "x"},
            include_estimating=False,
            now=NOW,
        )
        assert data == {"gc_system": "Procore"}

    def test_sent_to_apm_is_stamped(self):
        data = build_project_update({"sent_to_apm": True}, now=NOW)
        assert data == {"sent_to_apm": True, "sent_to_apm_at": NOW}

    def test_unknown_keys_are_dropped(self):
        assert build_project_update({"bid_vendors": [], "id": 3}, now=NOW) == {}
