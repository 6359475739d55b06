"""
Field maps between the flat legacy bid-vendor row and the normalized tables.
Each map is ``normalized attribute -> legacy field``.
"""

from constants.statuses import (
    BUY_NUMBER,
    CLOSEOUTS,
    EQUIPMENT_RELEASE,
    PO,
    QUOTE_CONFIRMED,
    REVISED_PLANS,
    SUBMITTALS,
)

RELATIONSHIP_FIELDS = {
    "id": "id",
    "project_id": "bid_id",
    "vendor_id": "vendor_id",
    "is_priority": "is_priority",
    "apm_priority": "apm_priority",
    "assigned_apm_user": "assigned_apm_user",
    "assigned_date": "assigned_date",
}

FOLLOW_UP_FIELDS = {
    "status": "status",
    "response_due_date": "due_date",
    "response_received_date": "response_received_date",
    "follow_up_count": "follow_up_count",
    "last_follow_up_date": "last_follow_up_date",
    "response_notes": "response_notes",
    "responded_by": "responded_by",
}

FINANCIAL_FIELDS = {
    "cost_estimate": "cost_amount",
    "final_quote_amount": "final_quote_amount",
    "buy_number": "buy_number",
    "po_number": "po_number",
}

PHASE_FIELDS = {
    QUOTE_CONFIRMED: {
        "completed_date": "final_quote_confirmed_date",
        "notes": "final_quote_notes",
    },
    BUY_NUMBER: {
        "requested_date": "buy_number_requested_date",
        "follow_up_date": "buy_number_follow_up_date",
        "completed_date": "buy_number_received_date",
        "notes": "buy_number_notes",
    },
    PO: {
        "requested_date": "po_requested_date",
        "sent_date": "po_sent_date",
        "follow_up_date": "po_follow_up_date",
        "completed_date": "po_received_date",
        "approved_date": "po_confirmed_date",
        "notes": "po_notes",
    },
    SUBMITTALS: {
        "requested_date": "submittals_requested_date",
        "follow_up_date": "submittals_follow_up_date",
        "completed_date": "submittals_received_date",
        "approved_date": "submittals_approved_date",
        "notes": "submittals_notes",
        "revision_count": "submittals_revision_count",
        "last_revision_date": "submittals_last_revision_date",
    },
    REVISED_PLANS: {
        "requested_date": "revised_plans_requested_date",
        "sent_date": "revised_plans_sent_date",
        "follow_up_date": "revised_plans_follow_up_date",
        "completed_date": "revised_plans_confirmed_date",
        "notes": "revised_plans_notes",
    },
    EQUIPMENT_RELEASE: {
        "requested_date": "equipment_release_requested_date",
        "follow_up_date": "equipment_release_follow_up_date",
        "completed_date": "equipment_released_date",
        "notes": "equipment_release_notes",
    },
    CLOSEOUTS: {
        "requested_date": "closeout_requested_date",
        "follow_up_date": "closeout_follow_up_date",
        "completed_date": "closeout_received_date",
        "approved_date": "closeout_approved_date",
        "notes": "closeout_notes",
    },
}

# Legacy field -> (phase_type, phase attribute)
LEGACY_PHASE_FIELDS = {
    legacy: (phase_type, attr)
    for phase_type, mapping in PHASE_FIELDS.items()
    for attr, legacy in mapping.items()
}

# Computed from the phase list on every read
DERIVED_FIELDS = frozenset({
    "apm_phase",
    "apm_status",
    "next_follow_up_date",
    "apm_phase_updated_at",
    "submittals_status",
    "apm_phases",
    "vendor_name",
})

# No column for these in the normalized schema; they read back as None
UNREPRESENTED_FIELDS = frozenset({
    "submittals_rejected_date",
    "submittals_rejection_reason",
})

ROUND_TRIP_FIELDS = frozenset(
    set(RELATIONSHIP_FIELDS.values())
    | set(FOLLOW_UP_FIELDS.values())
    | set(FINANCIAL_FIELDS.values())
    | set(LEGACY_PHASE_FIELDS)
)
