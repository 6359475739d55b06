import pytest
from fastapi import HTTPException
from sqlalchemy import select

from apps.vendors.schemas import ContactCreate, ContactUpdate, VendorCreate
from apps.vendors.service import VendorService
from models.vendor import VendorContact


async def primary_ids(db, vendor_id):
    res = await db.execute(
        select(VendorContact.id).where(VendorContact.vendor_id == vendor_id, VendorContact.is_primary.is_(True))
    )
    return sorted(res.scalars().all())


async def contact_ids(db, vendor_id):
    res = await db.execute(select(VendorContact.id).where(VendorContact.vendor_id == vendor_id).order_by(VendorContact.id))
    return list(res.scalars().all())


def vendor_payload(*flags):
    return VendorCreate(
        company_name="Acme Mechanical",
        contacts=[ContactCreate(contact_name=f"Contact {i}", is_primary=flag) for i, flag in enumerate(flags)],
    )


class TestCreateVendor:
    @pytest.mark.asyncio
    async def test_flagged_contact_becomes_primary(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(False, True, True))
        ids = await contact_ids(db, vendor.id)
        assert await primary_ids(db, vendor.id) == [ids[1]]
        assert vendor.primary_contact_id == ids[1]
        assert vendor.to_dict()["primary_contact"]["contact_name"] == "Contact 1"

    @pytest.mark.asyncio
    async def test_first_contact_is_primary_when_none_flagged(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(False, False))
        ids = await contact_ids(db, vendor.id)
        assert vendor.primary_contact_id == ids[0]
        assert await primary_ids(db, vendor.id) == [ids[0]]

    @pytest.mark.asyncio
    async def test_vendor_without_contacts(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload())
        assert vendor.primary_contact_id is None
        assert vendor.to_dict()["primary_contact"] is None

    @pytest.mark.asyncio
    async def test_unknown_vendor_type_is_rejected(self, db):
        with pytest.raises(HTTPException) as exc:
            await VendorService.create_vendor_with_contacts(db, VendorCreate(company_name="X", vendor_type="Alien"))
        assert exc.value.status_code == 400


class TestSetPrimaryContact:
    @pytest.mark.asyncio
    async def test_exactly_one_primary_matching_vendor(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(True, False, False))
        ids = await contact_ids(db, vendor.id)

        vendor = await VendorService.set_primary_contact(db, vendor.id, ids[2])

        assert await primary_ids(db, vendor.id) == [ids[2]]
        assert vendor.primary_contact_id == ids[2]
        assert vendor.primary_contact.id == ids[2]

    @pytest.mark.asyncio
    async def test_contact_of_another_vendor_is_not_found(self, db):
        first = await VendorService.create_vendor_with_contacts(db, vendor_payload(True))
        second = await VendorService.create_vendor_with_contacts(db, vendor_payload(True))
        other_contact = (await contact_ids(db, second.id))[0]

        with pytest.raises(HTTPException) as exc:
            await VendorService.set_primary_contact(db, first.id, other_contact)
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_new_primary_contact_takes_over(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(True))
        contact = await VendorService.create_contact(db, vendor.id, ContactCreate(contact_name="New", is_primary=True))

        vendor = await VendorService.get_vendor(db, vendor.id)
        assert await primary_ids(db, vendor.id) == [contact.id]
        assert vendor.primary_contact_id == contact.id

    @pytest.mark.asyncio
    async def test_unflagging_primary_clears_it(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(True, False))
        ids = await contact_ids(db, vendor.id)

        await VendorService.update_contact(db, ids[0], ContactUpdate(is_primary=False))

        vendor = await VendorService.get_vendor(db, vendor.id)
        assert await primary_ids(db, vendor.id) == []
        assert vendor.primary_contact_id is None


class TestDeleteContact:
    @pytest.mark.asyncio
    async def test_deleting_primary_promotes_oldest_remaining(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(False, True, False))
        ids = await contact_ids(db, vendor.id)

        new_primary = await VendorService.delete_contact(db, ids[1])

        assert new_primary == ids[0]
        vendor = await VendorService.get_vendor(db, vendor.id)
        assert vendor.primary_contact_id == ids[0]
        assert await primary_ids(db, vendor.id) == [ids[0]]

    @pytest.mark.asyncio
    async def test_deleting_last_contact_clears_primary(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(True))
        (only,) = await contact_ids(db, vendor.id)

        assert await VendorService.delete_contact(db, only) is None
        vendor = await VendorService.get_vendor(db, vendor.id)
        assert vendor.primary_contact_id is None

    @pytest.mark.asyncio
    async def test_deleting_other_contact_keeps_primary(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(True, False))
        ids = await contact_ids(db, vendor.id)

        assert await VendorService.delete_contact(db, ids[1]) == ids[0]
        assert await primary_ids(db, vendor.id) == [ids[0]]


class TestSyncPrimaryContact:
    @pytest.mark.asyncio
    async def test_lowest_flagged_contact_wins_when_reference_missing(self, db, make_vendor):
        vendor = await make_vendor()
        contacts = [VendorContact(vendor_id=vendor.id, contact_name=f"C{i}", is_primary=i > 0) for i in range(3)]
        db.add_all(contacts)
        await db.commit()

        vendor = await VendorService.sync_primary_contact(db, vendor.id)

        assert vendor.primary_contact_id == contacts[1].id
        assert await primary_ids(db, vendor.id) == [contacts[1].id]

    @pytest.mark.asyncio
    async def test_first_contact_when_nothing_flagged(self, db, make_vendor):
        vendor = await make_vendor()
        contacts = [VendorContact(vendor_id=vendor.id, contact_name=f"C{i}") for i in range(2)]
        db.add_all(contacts)
        await db.commit()

        vendor = await VendorService.sync_primary_contact(db, vendor.id)
        assert vendor.primary_contact_id == contacts[0].id

    @pytest.mark.asyncio
    async def test_explicit_contact(self, db):
        vendor = await VendorService.create_vendor_with_contacts(db, vendor_payload(True, False))
        ids = await contact_ids(db, vendor.id)

        vendor = await VendorService.sync_primary_contact(db, vendor.id, ids[1])
        assert vendor.primary_contact_id == ids[1]
        assert await primary_ids(db, vendor.id) == [ids[1]]
