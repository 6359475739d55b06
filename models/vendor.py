from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, func
from sqlalchemy.orm import relationship

from models.base import Base, utcnow


class Vendor(Base):
    """
    Vendor (supplier or subcontractor) that can be attached to projects.
    primary_contact_id points at the one contact flagged is_primary.
    """
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(255), nullable=False, index=True)
    address = Column(String(500), nullable=True)
    # Kept for older screens; contacts live in vendor_contacts
    contact_person = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    specialty = Column(String(255), nullable=True)
    is_priority = Column(Boolean, nullable=False, default=False, server_default="false")
    vendor_type = Column(String(50), nullable=False, default="Vendor", server_default="Vendor")
    insurance_expiry_date = Column(Date, nullable=True)
    insurance_notes = Column(Text, nullable=True)
    primary_contact_id = Column(
        Integer,
        ForeignKey("vendor_contacts.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    )
    created_by = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    primary_contact = relationship(
        "VendorContact",
        foreign_keys=[primary_contact_id],
        post_update=True,
        lazy="joined",
    )

    def to_dict(self) -> dict:
        contact = self.primary_contact
        return {
            "id": self.id,
            "company_name": self.company_name,
            "address": self.address,
            "contact_person": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "notes": self.notes,
            "specialty": self.specialty,
            "is_priority": bool(self.is_priority),
            "vendor_type": self.vendor_type,
            "insurance_expiry_date": self.insurance_expiry_date,
            "insurance_notes": self.insurance_notes,
            "primary_contact_id": self.primary_contact_id,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "primary_contact": contact.to_summary_dict() if contact is not None else None,
        }


class VendorContact(Base):
    """
    A person at a vendor. At most one contact per vendor is primary.
    """
    __tablename__ = "vendor_contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_name = Column(String(255), nullable=False)
    contact_title = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    contact_type = Column(String(50), nullable=False, default="Office", server_default="Office")
    is_primary = Column(Boolean, nullable=False, default=False, server_default="false", index=True)
    is_emergency_contact = Column(Boolean, nullable=False, default=False, server_default="false")
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    def to_summary_dict(self) -> dict:
        """
        The primary_contact sub-object embedded in vendor payloads.
        """
        return {
            "id": self.id,
            "contact_name": self.contact_name,
            "contact_title": self.contact_title,
            "phone": self.phone,
            "email": self.email,
            "contact_type": self.contact_type,
        }
