"""
Status vocabularies shared by the estimating and APM workflows.
Phase types and phase statuses are stored lower snake_case; activity cycles
and departments use the display casing the database enums use.
"""

# APM phase types, in workflow order
QUOTE_CONFIRMED = "quote_confirmed"
BUY_NUMBER = "buy_number"
PO = "po"
SUBMITTALS = "submittals"
REVISED_PLANS = "revised_plans"
EQUIPMENT_RELEASE = "equipment_release"
CLOSEOUTS = "closeouts"

PHASE_ORDER = (
    QUOTE_CONFIRMED,
    BUY_NUMBER,
    PO,
    SUBMITTALS,
    REVISED_PLANS,
    EQUIPMENT_RELEASE,
    CLOSEOUTS,
)

PHASE_DISPLAY_NAMES = {
    QUOTE_CONFIRMED: "Quote Confirmed",
    BUY_NUMBER: "Buy Number",
    PO: "Purchase Order",
    SUBMITTALS: "Submittals",
    REVISED_PLANS: "Revised Plans",
    EQUIPMENT_RELEASE: "Equipment Release",
    CLOSEOUTS: "Closeouts",
}

# Phase statuses
PENDING = "pending"
REQUESTED = "requested"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
RECEIVED = "received"
APPROVED = "approved"

PHASE_STATUSES = (PENDING, REQUESTED, IN_PROGRESS, COMPLETED, RECEIVED, APPROVED)

# Most significant first when picking the current phase
STATUS_PRIORITY = (IN_PROGRESS, COMPLETED, RECEIVED, REQUESTED, PENDING)

# Legacy submittals_status values
SUBMITTALS_REJECTED = "rejected"
SUBMITTALS_REJECTED_REVISED = "rejected_revised"
SUBMITTALS_RESUBMITTED = "resubmitted"

# Activity cycle (per department)
ACTIVE = "Active"
ON_HOLD = "On Hold"
ARCHIVED = "Archived"

ACTIVITY_CYCLES = (ACTIVE, ON_HOLD, ARCHIVED)

# Departments
ESTIMATING = "Estimating"
APM = "APM"

DEFAULT_PROJECT_STATUS = "Gathering Costs"
DEFAULT_RESPONSE_STATUS = PENDING

VENDOR_TYPES = ("Vendor", "Subcontractor", "General Contractor")
CONTACT_TYPES = ("Office", "General Contractor", "Sales", "Billing")
