from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from apps.bid_vendors.schemas import BidVendorCreate
from apps.bid_vendors.service import BidVendorService
from apps.bids.assembler import BidQueryAssembler
from models.apm_phase import ApmPhase
from models.bid_vendor import BidVendorRow
from models.est_response import EstResponse
from models.project_financial import ProjectFinancial
from models.project_vendor import ProjectVendor

TODAY = date(2024, 3, 1)


async def count(db, model, **where):
    stmt = select(func.count()).select_from(model)
    for column, value in where.items():
        stmt = stmt.where(getattr(model, column) == value)
    return (await db.execute(stmt)).scalar_one()


class TestAddVendorToProject:
    @pytest.mark.asyncio
    async def test_creates_relationship_response_financial_and_phases(self, db, make_project, make_vendor):
        project, vendor = await make_project(), await make_vendor()
        payload = BidVendorCreate(
            project_id=project.id,
            vendor_id=vendor.id,
            due_date=date(2024, 3, 10),
            is_priority=True,
            cost_amount=Decimal("500.00"),
            po_requested_date="2024-03-02",
        )

        rel = await BidVendorService.add_vendor_to_project(db, payload)

        assert rel.is_priority is True
        assert await count(db, EstResponse, project_vendor_id=rel.id) == 1
        assert await count(db, ProjectFinancial, project_vendor_id=rel.id) == 1
        phases = (await db.execute(select(ApmPhase).where(ApmPhase.project_vendor_id == rel.id))).scalars().all()
        assert [(p.phase_type, p.status) for p in phases] == [("po", "requested")]

        row = await BidVendorService.get_bid_vendor(db, BidQueryAssembler(today=TODAY), rel.id)
        assert row.due_date == date(2024, 3, 10)
        assert row.cost_amount == Decimal("500.00")
        assert row.apm_phase == "po"

    @pytest.mark.asyncio
    async def test_rerun_fills_in_missing_parts_only(self, db, make_project, make_vendor):
        project, vendor = await make_project(), await make_vendor()
        # a previous attempt stopped after the relationship row
        db.add(ProjectVendor(project_id=project.id, vendor_id=vendor.id))
        await db.commit()

        payload = BidVendorCreate(project_id=project.id, vendor_id=vendor.id, cost_amount=Decimal("1.00"))
        await BidVendorService.add_vendor_to_project(db, payload)
        await BidVendorService.add_vendor_to_project(db, payload)

        assert await count(db, ProjectVendor, project_id=project.id) == 1
        assert await count(db, EstResponse) == 1
        assert await count(db, ProjectFinancial) == 1

    @pytest.mark.asyncio
    async def test_unknown_project(self, db, make_vendor):
        vendor = await make_vendor()
        with pytest.raises(HTTPException) as exc:
            await BidVendorService.add_vendor_to_project(db, BidVendorCreate(project_id=999, vendor_id=vendor.id))
        assert exc.value.status_code == 404


class TestUpdateBidVendor:
    @pytest.mark.asyncio
    async def test_updates_are_distributed(self, db, make_project, make_vendor, make_bid_vendor):
        project, vendor = await make_project(), await make_vendor()
        rel = await make_bid_vendor(project, vendor, follow_up={"status": "pending"})

        ignored = await BidVendorService.update_bid_vendor(db, rel.id, {
            "status": "yes bid",
            "po_number": "PO-9",
            "apm_phase": "submittals",
            "apm_status": "in_progress",
            "assigned_apm_user": "apm-2",
            "submittals_rejection_reason": "wrong model",
        })

        assert ignored == ["submittals_rejection_reason"]
        row = await BidVendorService.get_bid_vendor(db, BidQueryAssembler(today=TODAY), rel.id)
        assert row.status == "yes bid"
        assert row.po_number == "PO-9"
        assert (row.apm_phase, row.apm_status) == ("submittals", "in_progress")
        assert row.assigned_apm_user == "apm-2"

    @pytest.mark.asyncio
    async def test_existing_phase_is_updated_not_duplicated(self, db, make_project, make_vendor, make_bid_vendor):
        rel = await make_bid_vendor(await make_project(), await make_vendor(), phases=[("po", "pending")])
        await BidVendorService.update_bid_vendor(db, rel.id, {"po_notes": "sent", "po_sent_date": date(2024, 3, 3)})
        assert await count(db, ApmPhase, project_vendor_id=rel.id) == 1

    @pytest.mark.asyncio
    async def test_phase_dates_set_status_like_import(self, db, make_project, make_vendor, make_bid_vendor):
        rel = await make_bid_vendor(await make_project(), await make_vendor(), phases=[("buy_number", "completed")])

        await BidVendorService.update_bid_vendor(db, rel.id, {"po_received_date": date(2024, 1, 5)})

        po = (await db.execute(
            select(ApmPhase).where(ApmPhase.project_vendor_id == rel.id, ApmPhase.phase_type == "po")
        )).scalar_one()
        assert po.status == "completed"
        row = await BidVendorService.get_bid_vendor(db, BidQueryAssembler(today=TODAY), rel.id)
        assert (row.apm_phase, row.apm_status) == ("po", "completed")

    @pytest.mark.asyncio
    async def test_explicit_status_beats_dates(self, db, make_project, make_vendor, make_bid_vendor):
        rel = await make_bid_vendor(await make_project(), await make_vendor(), phases=[("po", "pending")])

        await BidVendorService.update_bid_vendor(db, rel.id, {
            "po_sent_date": date(2024, 3, 3),
            "apm_phase": "po",
            "apm_status": "in_progress",
        })

        row = await BidVendorService.get_bid_vendor(db, BidQueryAssembler(today=TODAY), rel.id)
        assert (row.apm_phase, row.apm_status) == ("po", "in_progress")

    @pytest.mark.asyncio
    async def test_notes_only_update_keeps_status(self, db, make_project, make_vendor, make_bid_vendor):
        rel = await make_bid_vendor(await make_project(), await make_vendor(), phases=[("po", "in_progress")])
        await BidVendorService.update_bid_vendor(db, rel.id, {"po_notes": "chasing"})
        row = await BidVendorService.get_bid_vendor(db, BidQueryAssembler(today=TODAY), rel.id)
        assert row.apm_status == "in_progress"


class TestRemoveVendorFromProject:
    @pytest.mark.asyncio
    async def test_children_go_first(self, db, make_project, make_vendor, make_bid_vendor):
        rel = await make_bid_vendor(
            await make_project(),
            await make_vendor(),
            phases=[("po", "pending")],
            financial={"po_number": "1"},
            follow_up={"status": "pending"},
        )
        deleted = await BidVendorService.remove_vendor_from_project(db, rel.id)
        assert deleted == ["apm_phases", "project_financials", "est_responses", "project_vendors"]
        assert await count(db, ApmPhase) == 0
        assert await count(db, ProjectVendor) == 0


class TestImportLegacyRows:
    @pytest.mark.asyncio
    async def test_import_is_repeatable(self, db, make_project, make_vendor):
        project, vendor = await make_project(), await make_vendor()
        db.add(BidVendorRow(
            bid_id=project.id,
            vendor_id=vendor.id,
            status="yes bid",
            cost_amount=Decimal("10.00"),
            buy_number="B-1",
            buy_number_received_date=date(2024, 2, 1),
            po_requested_date=date(2024, 2, 5),
            apm_phase="po",
            apm_status="requested",
        ))
        await db.commit()

        first = await BidVendorService.import_legacy_rows(db)
        assert first.rows == 1
        assert (first.relationships, first.follow_ups, first.financials, first.phases) == (1, 1, 1, 2)

        second = await BidVendorService.import_legacy_rows(db, project.id)
        assert second.rows == 1
        assert (second.relationships, second.follow_ups, second.financials, second.phases) == (0, 0, 0, 0)

        rows = await BidQueryAssembler(today=TODAY).assemble(db, [project.id])
        row = rows[0]["bid_vendors"][0]
        assert row["buy_number"] == "B-1"
        assert row["status"] == "yes bid"
        # the completed buy number outranks the requested PO
        assert row["apm_phase"] == "buy_number"
        assert row["po_requested_date"] == date(2024, 2, 5)
