import asyncio

import httpx
import pytest
import pytest_asyncio

from apps.realtime.events import DeltaEvent
from apps.realtime.fetcher import DatabaseFetcher
from apps.realtime.router import pump_events
from main import create_app
from models.base import get_db


@pytest.fixture
def app(session_factory):
    app = create_app()

    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def create_vendor(client, *contacts):
    res = await client.post("/api/vendors", json={
        "company_name": "Acme Mechanical",
        "contacts": [{"contact_name": name, "is_primary": i == 0} for i, name in enumerate(contacts)],
    })
    assert res.status_code == 201, res.text
    return res.json()


class TestBidRoutes:
    @pytest.mark.asyncio
    async def test_create_list_and_get(self, client):
        res = await client.post("/api/bids", json={"title": "Library", "due_date": "2024-05-01", "assign_to": "u1"})
        assert res.status_code == 201, res.text
        bid = res.json()
        assert bid["title"] == "Library"
        assert bid["due_date"] == "2024-05-01"
        assert bid["bid_vendors"] == []

        res = await client.get("/api/bids")
        assert [b["id"] for b in res.json()] == [bid["id"]]

        res = await client.get(f"/api/bids/{bid['id']}")
        assert res.json()["assign_to"] == "u1"

    @pytest.mark.asyncio
    async def test_missing_bid(self, client):
        res = await client.get("/api/bids/999")
        assert res.status_code == 404

    @pytest.mark.asyncio
    async def test_archive_through_estimating_patch(self, client):
        bid = (await client.post("/api/bids", json={"title": "Library"})).json()
        res = await client.patch(f"/api/bids/{bid['id']}/estimating", json={"archived": True})
        assert res.json()["archived"] is True
        assert res.json()["est_activity_cycle"] == "Archived"

        res = await client.post(f"/api/bids/{bid['id']}/unarchive")
        assert res.json()["archived"] is False

    @pytest.mark.asyncio
    async def test_full_bid_vendor_flow(self, client):
        bid = (await client.post("/api/bids", json={"title": "Library"})).json()
        vendor = await create_vendor(client, "Jo")

        res = await client.post("/api/bid-vendors", json={
            "project_id": bid["id"],
            "vendor_id": vendor["id"],
            "cost_amount": "250.00",
            "po_requested_date": "2024-03-02",
        })
        assert res.status_code == 201, res.text
        row = res.json()
        assert row["vendor_name"] == "Acme Mechanical"
        assert row["apm_phase"] == "po"

        res = await client.patch(f"/api/bid-vendors/{row['id']}", json={"status": "yes bid", "nonsense": 1})
        body = res.json()
        assert body["bid_vendor"]["status"] == "yes bid"
        assert body["ignored"] == ["nonsense"]

        res = await client.get(f"/api/bids/{bid['id']}")
        assert [bv["id"] for bv in res.json()["bid_vendors"]] == [row["id"]]

        res = await client.delete(f"/api/bids/{bid['id']}")
        assert res.status_code == 200
        assert res.json()["deleted"][-1] == "projects"
        assert (await client.get(f"/api/bids/{bid['id']}")).status_code == 404


class TestVendorRoutes:
    @pytest.mark.asyncio
    async def test_primary_contact_routes(self, client):
        vendor = await create_vendor(client, "Jo", "Sam")
        assert vendor["primary_contact"]["contact_name"] == "Jo"

        contacts = (await client.get(f"/api/vendors/{vendor['id']}/contacts")).json()
        sam = next(c for c in contacts if c["contact_name"] == "Sam")

        res = await client.post(f"/api/vendors/{vendor['id']}/primary-contact/{sam['id']}")
        assert res.json()["primary_contact_id"] == sam["id"]

        res = await client.post(f"/api/vendors/{vendor['id']}/primary-contact/sync")
        assert res.status_code == 200
        assert res.json()["primary_contact"]["contact_name"] == "Sam"

        res = await client.delete(f"/api/vendors/contacts/{sam['id']}")
        jo = next(c for c in contacts if c["contact_name"] == "Jo")
        assert res.json()["primary_contact_id"] == jo["id"]


class TestNotesAndAdmin:
    @pytest.mark.asyncio
    async def test_notes_are_keyed_by_bid(self, client):
        bid = (await client.post("/api/bids", json={"title": "Library"})).json()
        res = await client.post("/api/project-notes", json={"bid_id": bid["id"], "content": "Call GC"})
        assert res.status_code == 201, res.text
        assert res.json()["bid_id"] == bid["id"]

        notes = (await client.get("/api/project-notes", params={"bid_id": bid["id"]})).json()
        assert [n["content"] for n in notes] == ["Call GC"]

    @pytest.mark.asyncio
    async def test_normalize_and_usage(self, client):
        res = await client.post("/api/admin/normalize-bid-vendors")
        assert res.status_code == 200
        assert res.json()["rows"] == 0

        await client.get("/api/bids")
        await client.get("/api/bids")
        usage = (await client.get("/api/admin/api-usage")).json()["data"]
        assert usage["calls"]["GET /api/bids"] == 2
        assert usage["calls"]["POST /api/admin/normalize-bid-vendors"] == 1

    @pytest.mark.asyncio
    async def test_health_and_security_headers(self, client):
        res = await client.get("/health")
        assert res.json() == {"status": "ok", "realtime": False}
        assert res.headers["X-Content-Type-Options"] == "nosniff"


class TestRealtimeRoutes:
    @pytest.mark.asyncio
    async def test_snapshot_needs_running_realtime(self, client):
        res = await client.get("/api/realtime/snapshot")
        assert res.status_code == 503

    @pytest.mark.asyncio
    async def test_snapshot_after_start(self, app, client, session_factory):
        await client.post("/api/bids", json={"title": "Library"})

        ctx = app.state.realtime
        ctx.fetcher = DatabaseFetcher(session_factory, app.state.assembler)
        ctx.reconciler.fetcher = ctx.fetcher
        await ctx.start()
        try:
            res = await client.get("/api/realtime/snapshot")
        finally:
            await ctx.stop()

        assert res.status_code == 200
        data = res.json()
        assert [b["title"] for b in data["bids"]] == ["Library"]
        assert data["bid_vendors"] == []


class RecordingSocket:
    def __init__(self):
        self.sent = []
        self.close_code = None

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000):
        self.close_code = code


class TestRealtimeStream:
    @pytest.mark.asyncio
    async def test_overflowed_client_is_closed_with_1013(self):
        socket = RecordingSocket()
        queue = asyncio.Queue()
        queue.put_nowait(DeltaEvent("bids", "delete", 7, source_table="projects"))
        queue.put_nowait(None)

        await asyncio.wait_for(pump_events(socket, queue), timeout=1)

        assert [(m["type"], m["kind"], m["id"]) for m in socket.sent] == [("delta", "delete", 7)]
        assert socket.close_code == 1013
