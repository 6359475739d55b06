"""initial schema: projects, vendors, contacts, normalized bid vendor tables,
legacy bid_vendors, notes; table change notifications

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


NOTIFY_CHANNEL = "table_changes"

# Tables whose changes are pushed to the realtime listener
NOTIFY_TABLES = (
    "projects",
    "vendors",
    "vendor_contacts",
    "project_vendors",
    "apm_phases",
    "project_financials",
    "est_responses",
    "project_notes",
    "bid_vendors",
)

# NOTIFY payloads are capped at 8000 bytes; oversized rows are sent with only
# these columns and "truncated": true so the listener re-reads them.
NOTIFY_FUNCTION = f"""
CREATE OR REPLACE FUNCTION notify_table_change() RETURNS trigger AS $$
DECLARE
    new_row jsonb := CASE WHEN TG_OP = 'DELETE' THEN NULL ELSE to_jsonb(NEW) END;
    old_row jsonb := CASE WHEN TG_OP = 'INSERT' THEN NULL ELSE to_jsonb(OLD) END;
    keys text[] := ARRAY['id', 'project_id', 'vendor_id', 'bid_id', 'project_vendor_id',
                         'is_primary', 'primary_contact_id'];
    payload jsonb;
BEGIN
    payload := jsonb_build_object(
        'table', TG_TABLE_NAME,
        'schema', TG_TABLE_SCHEMA,
        'type', TG_OP,
        'record', new_row,
        'old_record', old_row
    );
    IF octet_length(payload::text) > 7900 THEN
        payload := jsonb_build_object(
            'table', TG_TABLE_NAME,
            'schema', TG_TABLE_SCHEMA,
            'type', TG_OP,
            'record', (SELECT jsonb_object_agg(key, value) FROM jsonb_each(new_row) WHERE key = ANY(keys)),
            'old_record', (SELECT jsonb_object_agg(key, value) FROM jsonb_each(old_row) WHERE key = ANY(keys)),
            'truncated', true
        );
    END IF;
    PERFORM pg_notify('{NOTIFY_CHANNEL}', payload::text);
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("color_preference", sa.String(length=32), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("project_email", sa.String(length=255), nullable=True),
        sa.Column("project_address", sa.String(length=500), nullable=True),
        sa.Column("old_general_contractor", sa.String(length=255), nullable=True),
        sa.Column("project_description", sa.Text(), nullable=True),
        sa.Column("est_due_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="Gathering Costs"),
        sa.Column("priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("estimated_value", sa.Numeric(14, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("assigned_to", sa.String(length=64), nullable=True),
        sa.Column("file_location", sa.String(length=500), nullable=True),
        sa.Column("department", sa.String(length=32), nullable=False, server_default="Estimating"),
        sa.Column("est_activity_cycle", sa.String(length=16), nullable=False, server_default="Active"),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_by", sa.String(length=64), nullable=True),
        sa.Column("on_hold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("on_hold_by", sa.String(length=64), nullable=True),
        sa.Column("sent_to_apm", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("sent_to_apm_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("apm_activity_cycle", sa.String(length=16), nullable=False, server_default="Active"),
        sa.Column("apm_on_hold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("apm_archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("gc_system", sa.String(length=32), nullable=True),
        sa.Column("gc_contact_id", sa.Integer(), nullable=True),
        sa.Column("added_to_procore", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("made_by_apm", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("project_start_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_project_name", "projects", ["project_name"], unique=False)
    op.create_index("ix_projects_assigned_to", "projects", ["assigned_to"], unique=False)
    op.create_index("ix_projects_est_activity_cycle", "projects", ["est_activity_cycle"], unique=False)
    op.create_index("ix_projects_apm_activity_cycle", "projects", ["apm_activity_cycle"], unique=False)

    # vendors <-> vendor_contacts reference each other; the primary contact
    # foreign key is added once both tables exist
    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("contact_person", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("specialty", sa.String(length=255), nullable=True),
        sa.Column("is_priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("vendor_type", sa.String(length=50), nullable=False, server_default="Vendor"),
        sa.Column("insurance_expiry_date", sa.Date(), nullable=True),
        sa.Column("insurance_notes", sa.Text(), nullable=True),
        sa.Column("primary_contact_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_vendors_company_name", "vendors", ["company_name"], unique=False)

    op.create_table(
        "vendor_contacts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("contact_name", sa.String(length=255), nullable=False),
        sa.Column("contact_title", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("contact_type", sa.String(length=50), nullable=False, server_default="Office"),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_emergency_contact", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_vendor_contacts_vendor_id", "vendor_contacts", ["vendor_id"], unique=False)
    op.create_index("ix_vendor_contacts_is_primary", "vendor_contacts", ["is_primary"], unique=False)
    op.create_foreign_key(
        "fk_vendors_primary_contact_id_vendor_contacts",
        "vendors",
        "vendor_contacts",
        ["primary_contact_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "project_vendors",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("apm_priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("assigned_apm_user", sa.String(length=64), nullable=True),
        sa.Column("assigned_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "vendor_id", name="uq_project_vendors_project_vendor"),
    )
    op.create_index("ix_project_vendors_project_id", "project_vendors", ["project_id"], unique=False)
    op.create_index("ix_project_vendors_vendor_id", "project_vendors", ["vendor_id"], unique=False)
    op.create_index("ix_project_vendors_assigned_apm_user", "project_vendors", ["assigned_apm_user"], unique=False)

    op.create_table(
        "apm_phases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_vendor_id", sa.Integer(), sa.ForeignKey("project_vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("phase_type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("requested_date", sa.Date(), nullable=True),
        sa.Column("sent_date", sa.Date(), nullable=True),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("completed_date", sa.Date(), nullable=True),
        sa.Column("approved_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("revision_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_revision_date", sa.Date(), nullable=True),
        sa.Column("is_priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_apm_phases_project_vendor_id", "apm_phases", ["project_vendor_id"], unique=False)
    op.create_index("ix_apm_phases_vendor_type", "apm_phases", ["project_vendor_id", "phase_type"], unique=False)

    op.create_table(
        "project_financials",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_vendor_id", sa.Integer(), sa.ForeignKey("project_vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("cost_estimate", sa.Numeric(14, 2), nullable=True),
        sa.Column("final_quote_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("buy_number", sa.String(length=100), nullable=True),
        sa.Column("po_number", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("project_vendor_id", name="uq_project_financials_project_vendor_id"),
    )
    op.create_index("ix_project_financials_project_vendor_id", "project_financials", ["project_vendor_id"], unique=False)

    op.create_table(
        "est_responses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_vendor_id", sa.Integer(), sa.ForeignKey("project_vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("response_due_date", sa.Date(), nullable=True),
        sa.Column("response_received_date", sa.Date(), nullable=True),
        sa.Column("follow_up_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_follow_up_date", sa.Date(), nullable=True),
        sa.Column("response_notes", sa.Text(), nullable=True),
        sa.Column("responded_by", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_est_responses_project_vendor_id", "est_responses", ["project_vendor_id"], unique=False)

    op.create_table(
        "project_notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_project_notes_project_id", "project_notes", ["project_id"], unique=False)
    op.create_index("ix_project_notes_user_id", "project_notes", ["user_id"], unique=False)

    # legacy single-row table, read in SCHEMA_MODE=legacy and by the import
    phase_dates = {
        "buy_number": ["requested_date", "follow_up_date", "received_date"],
        "po": ["requested_date", "sent_date", "follow_up_date", "received_date", "confirmed_date"],
        "submittals": ["requested_date", "follow_up_date", "received_date", "approved_date",
                       "rejected_date", "last_revision_date"],
        "revised_plans": ["requested_date", "sent_date", "follow_up_date", "confirmed_date"],
        "equipment_release": ["requested_date", "follow_up_date"],
        "closeout": ["requested_date", "follow_up_date", "received_date", "approved_date"],
    }
    phase_columns = []
    for prefix, dates in phase_dates.items():
        phase_columns.extend(sa.Column(f"{prefix}_{d}", sa.Date(), nullable=True) for d in dates)
        phase_columns.append(sa.Column(f"{prefix}_notes", sa.Text(), nullable=True))

    op.create_table(
        "bid_vendors",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("bid_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("response_received_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("follow_up_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_follow_up_date", sa.Date(), nullable=True),
        sa.Column("response_notes", sa.Text(), nullable=True),
        sa.Column("responded_by", sa.String(length=255), nullable=True),
        sa.Column("is_priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cost_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("assigned_apm_user", sa.String(length=64), nullable=True),
        sa.Column("assigned_date", sa.Date(), nullable=True),
        sa.Column("final_quote_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("final_quote_confirmed_date", sa.Date(), nullable=True),
        sa.Column("final_quote_notes", sa.Text(), nullable=True),
        sa.Column("buy_number", sa.String(length=100), nullable=True),
        sa.Column("po_number", sa.String(length=100), nullable=True),
        sa.Column("submittals_status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("submittals_rejection_reason", sa.Text(), nullable=True),
        sa.Column("submittals_revision_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("equipment_released_date", sa.Date(), nullable=True),
        *phase_columns,
        sa.Column("apm_phase", sa.String(length=32), nullable=False, server_default="quote_confirmed"),
        sa.Column("apm_status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("next_follow_up_date", sa.Date(), nullable=True),
        sa.Column("apm_priority", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("apm_phase_updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_bid_vendors_bid_id", "bid_vendors", ["bid_id"], unique=False)
    op.create_index("ix_bid_vendors_vendor_id", "bid_vendors", ["vendor_id"], unique=False)

    op.execute(NOTIFY_FUNCTION)
    for table in NOTIFY_TABLES:
        op.execute(
            f"CREATE TRIGGER {table}_notify_change "
            f"AFTER INSERT OR UPDATE OR DELETE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION notify_table_change()"
        )


def downgrade():
    for table in NOTIFY_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_notify_change ON {table}")
    op.execute("DROP FUNCTION IF EXISTS notify_table_change()")

    op.drop_table("bid_vendors")
    op.drop_table("project_notes")
    op.drop_table("est_responses")
    op.drop_table("project_financials")
    op.drop_table("apm_phases")
    op.drop_table("project_vendors")
    op.drop_constraint("fk_vendors_primary_contact_id_vendor_contacts", "vendors", type_="foreignkey")
    op.drop_table("vendor_contacts")
    op.drop_table("vendors")
    op.drop_table("projects")
    op.drop_table("users")
