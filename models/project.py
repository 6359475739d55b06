from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, Numeric, func

from constants.statuses import ACTIVE, DEFAULT_PROJECT_STATUS, ESTIMATING
from models.base import Base, utcnow


class Project(Base):
    """
    A bid / project. Lifecycle per department is a single activity cycle
    (Active | On Hold | Archived) instead of separate archived/on_hold flags.
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_name = Column(String(255), nullable=False, index=True)
    project_email = Column(String(255), nullable=True)
    project_address = Column(String(500), nullable=True)
    old_general_contractor = Column(String(255), nullable=True)
    project_description = Column(Text, nullable=True)
    est_due_date = Column(Date, nullable=True)
    status = Column(String(50), nullable=False, default=DEFAULT_PROJECT_STATUS, server_default=DEFAULT_PROJECT_STATUS)
    priority = Column(Boolean, nullable=False, default=False, server_default="false")
    estimated_value = Column(Numeric(14, 2), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(64), nullable=True)
    assigned_to = Column(String(64), nullable=True, index=True)
    file_location = Column(String(500), nullable=True)
    department = Column(String(32), nullable=False, default=ESTIMATING, server_default=ESTIMATING)

    # Estimating lifecycle
    est_activity_cycle = Column(String(16), nullable=False, default=ACTIVE, server_default=ACTIVE, index=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    archived_by = Column(String(64), nullable=True)
    on_hold_at = Column(DateTime(timezone=True), nullable=True)
    on_hold_by = Column(String(64), nullable=True)

    # Hand-off to APM
    sent_to_apm = Column(Boolean, nullable=False, default=False, server_default="false")
    sent_to_apm_at = Column(DateTime(timezone=True), nullable=True)

    # APM lifecycle
    apm_activity_cycle = Column(String(16), nullable=False, default=ACTIVE, server_default=ACTIVE, index=True)
    apm_on_hold_at = Column(DateTime(timezone=True), nullable=True)
    apm_archived_at = Column(DateTime(timezone=True), nullable=True)

    gc_system = Column(String(32), nullable=True)  # Procore | AutoDesk | Email | Other
    gc_contact_id = Column(Integer, nullable=True)
    added_to_procore = Column(Boolean, nullable=False, default=False, server_default="false")
    made_by_apm = Column(Boolean, nullable=False, default=False, server_default="false")
    project_start_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)
