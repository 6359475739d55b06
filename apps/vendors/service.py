import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from apps.vendors.schemas import ContactCreate, ContactUpdate, VendorCreate, VendorUpdate
from common.exceptions import bad_request, not_found
from constants.statuses import CONTACT_TYPES, VENDOR_TYPES
from models.vendor import Vendor, VendorContact

logger = logging.getLogger(__name__)


class VendorService:
    @staticmethod
    async def _load_vendor(db: AsyncSession, vendor_id: int) -> Optional[Vendor]:
        # populate_existing so primary_contact reflects the last commit
        stmt = select(Vendor).where(Vendor.id == vendor_id).execution_options(populate_existing=True)
        res = await db.execute(stmt)
        return res.scalar_one_or_none()

    @staticmethod
    async def get_vendor(db: AsyncSession, vendor_id: int) -> Vendor:
        vendor = await VendorService._load_vendor(db, vendor_id)
        if not vendor:
            raise not_found("Vendor")
        return vendor

    @staticmethod
    async def list_vendors(db: AsyncSession) -> List[Vendor]:
        res = await db.execute(select(Vendor).order_by(Vendor.company_name, Vendor.id))
        return list(res.scalars().all())

    @staticmethod
    async def create_vendor_with_contacts(db: AsyncSession, payload: VendorCreate) -> Vendor:
        """
        Create a vendor and its contacts. The first contact flagged primary
        becomes the primary contact; when none is flagged the first contact is.
        """
        if payload.vendor_type not in VENDOR_TYPES:
            raise bad_request(f"vendor_type must be one of {', '.join(VENDOR_TYPES)}.")
        for contact_payload in payload.contacts:
            _check_contact_type(contact_payload.contact_type)

        vendor = Vendor(**payload.model_dump(exclude={"contacts"}))
        db.add(vendor)
        await db.commit()
        await db.refresh(vendor)

        if payload.contacts:
            flagged = [i for i, c in enumerate(payload.contacts) if c.is_primary]
            primary_index = flagged[0] if flagged else 0
            contacts = []
            for i, contact_payload in enumerate(payload.contacts):
                data = contact_payload.model_dump()
                data["is_primary"] = i == primary_index
                contact = VendorContact(vendor_id=vendor.id, **data)
                db.add(contact)
                contacts.append(contact)
            await db.flush()
            vendor.primary_contact = contacts[primary_index]
            await db.commit()

        logger.info("Created vendor %s with %d contacts", vendor.id, len(payload.contacts))
        return await VendorService.get_vendor(db, vendor.id)

    @staticmethod
    async def update_vendor(db: AsyncSession, vendor_id: int, payload: VendorUpdate) -> Vendor:
        vendor = await VendorService.get_vendor(db, vendor_id)
        updates = payload.model_dump(exclude_unset=True)
        if "vendor_type" in updates and updates["vendor_type"] not in VENDOR_TYPES:
            raise bad_request(f"vendor_type must be one of {', '.join(VENDOR_TYPES)}.")
        for key, value in updates.items():
            setattr(vendor, key, value)
        await db.commit()
        return await VendorService.get_vendor(db, vendor_id)

    @staticmethod
    async def delete_vendor(db: AsyncSession, vendor_id: int) -> None:
        """
        Contacts and project links go with the vendor through ON DELETE CASCADE.
        """
        await VendorService.get_vendor(db, vendor_id)
        await db.execute(delete(Vendor).where(Vendor.id == vendor_id))
        await db.commit()
        logger.info("Deleted vendor %s", vendor_id)

    # ---------- contacts ----------

    @staticmethod
    async def get_contact(db: AsyncSession, contact_id: int) -> VendorContact:
        contact = await db.get(VendorContact, contact_id)
        if not contact:
            raise not_found("Contact")
        return contact

    @staticmethod
    async def list_contacts(db: AsyncSession, vendor_id: int) -> List[VendorContact]:
        await VendorService.get_vendor(db, vendor_id)
        stmt = (
            select(VendorContact)
            .where(VendorContact.vendor_id == vendor_id)
            .order_by(VendorContact.is_primary.desc(), VendorContact.contact_name, VendorContact.id)
        )
        res = await db.execute(stmt)
        return list(res.scalars().all())

    @staticmethod
    async def list_all_contacts(db: AsyncSession) -> List[VendorContact]:
        stmt = select(VendorContact).order_by(VendorContact.vendor_id, VendorContact.is_primary.desc(), VendorContact.id)
        res = await db.execute(stmt)
        return list(res.scalars().all())

    @staticmethod
    async def create_contact(db: AsyncSession, vendor_id: int, payload: ContactCreate) -> VendorContact:
        vendor = await VendorService.get_vendor(db, vendor_id)
        _check_contact_type(payload.contact_type)
        data = payload.model_dump()
        make_primary = data.pop("is_primary")
        contact = VendorContact(vendor_id=vendor_id, is_primary=False, **data)
        db.add(contact)
        await db.flush()
        if make_primary:
            await _make_primary(db, vendor, contact)
        await db.commit()
        await db.refresh(contact)
        return contact

    @staticmethod
    async def update_contact(db: AsyncSession, contact_id: int, payload: ContactUpdate) -> VendorContact:
        contact = await VendorService.get_contact(db, contact_id)
        updates = payload.model_dump(exclude_unset=True)
        make_primary = updates.pop("is_primary", None)
        if "contact_type" in updates:
            _check_contact_type(updates["contact_type"])
        for key, value in updates.items():
            setattr(contact, key, value)

        if make_primary is True and not contact.is_primary:
            vendor = await VendorService.get_vendor(db, contact.vendor_id)
            await _make_primary(db, vendor, contact)
        elif make_primary is False and contact.is_primary:
            vendor = await VendorService.get_vendor(db, contact.vendor_id)
            contact.is_primary = False
            vendor.primary_contact = None

        await db.commit()
        await db.refresh(contact)
        return contact

    @staticmethod
    async def delete_contact(db: AsyncSession, contact_id: int) -> Optional[int]:
        """
        Delete a contact. If it was the primary, the vendor's oldest remaining
        contact takes over; with none left the primary is cleared. Returns the
        new primary contact id.
        """
        contact = await VendorService.get_contact(db, contact_id)
        vendor = await VendorService.get_vendor(db, contact.vendor_id)
        was_primary = contact.is_primary or vendor.primary_contact_id == contact.id

        successor = None
        if was_primary:
            stmt = (
                select(VendorContact)
                .where(VendorContact.vendor_id == vendor.id, VendorContact.id != contact.id)
                .order_by(VendorContact.id)
                .limit(1)
            )
            successor = (await db.execute(stmt)).scalar_one_or_none()
            vendor.primary_contact = successor
            if successor is not None:
                successor.is_primary = True
            await db.flush()

        await db.delete(contact)
        await db.commit()
        if was_primary:
            logger.info("Primary contact of vendor %s moved to %s", vendor.id, successor.id if successor else None)
        return successor.id if successor is not None else vendor.primary_contact_id

    @staticmethod
    async def set_primary_contact(db: AsyncSession, vendor_id: int, contact_id: int) -> Vendor:
        """
        Make one contact the vendor's only primary, in a single commit.
        """
        vendor = await VendorService.get_vendor(db, vendor_id)
        contact = await db.get(VendorContact, contact_id)
        if not contact or contact.vendor_id != vendor_id:
            raise not_found("Contact")
        await _make_primary(db, vendor, contact)
        await db.commit()
        return await VendorService.get_vendor(db, vendor_id)

    @staticmethod
    async def sync_primary_contact(db: AsyncSession, vendor_id: int, contact_id: Optional[int] = None) -> Vendor:
        """
        Repair a vendor whose is_primary flags and primary_contact_id disagree.
        With ``contact_id`` this is set_primary_contact. Otherwise the
        referenced contact wins, then the lowest-id flagged contact, then the
        vendor's first contact; a vendor without contacts has its primary
        cleared.
        """
        if contact_id is not None:
            return await VendorService.set_primary_contact(db, vendor_id, contact_id)
        vendor = await VendorService.get_vendor(db, vendor_id)
        res = await db.execute(
            select(VendorContact).where(VendorContact.vendor_id == vendor_id).order_by(VendorContact.id)
        )
        contacts = list(res.scalars().all())
        chosen = next((c for c in contacts if c.id == vendor.primary_contact_id), None)
        if chosen is None:
            chosen = next((c for c in contacts if c.is_primary), None)
        if chosen is None and contacts:
            chosen = contacts[0]

        if chosen is None:
            vendor.primary_contact = None
            for c in contacts:
                c.is_primary = False
        else:
            await _make_primary(db, vendor, chosen)
        await db.commit()
        return await VendorService.get_vendor(db, vendor_id)


async def _make_primary(db: AsyncSession, vendor: Vendor, contact: VendorContact) -> None:
    await db.execute(
        update(VendorContact)
        .where(VendorContact.vendor_id == vendor.id, VendorContact.id != contact.id)
        .values(is_primary=False)
    )
    contact.is_primary = True
    vendor.primary_contact = contact


def _check_contact_type(contact_type: Optional[str]) -> None:
    if contact_type is not None and contact_type not in CONTACT_TYPES:
        raise bad_request(f"contact_type must be one of {', '.join(CONTACT_TYPES)}.")
