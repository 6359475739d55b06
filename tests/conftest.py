import os
import sys
from pathlib import Path

# Settings are read once at import; point them at SQLite before any app import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./bid_board_test.db")
os.environ.setdefault("ENABLE_RATE_LIMITER", "false")
os.environ.setdefault("REALTIME_ENABLED", "false")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.apm_phase import ApmPhase
from models.base import make_engine
from models.est_response import EstResponse
from models.project import Project
from models.project_financial import ProjectFinancial
from models.project_vendor import ProjectVendor
from models.registry import Base
from models.vendor import Vendor



class QueryCounter:
    """Counts statements sent to the database."""

    def __init__(self):
        self.statements = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self) -> None:
        self.statements.clear()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, autoflush=False, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def query_counter(engine):
    counter = QueryCounter()
    event.listen(engine.sync_engine, "before_cursor_execute", counter)
    yield counter
    event.remove(engine.sync_engine, "before_cursor_execute", counter)


@pytest.fixture
def make_project(db):
    async def _make(**values) -> Project:
        values.setdefault("project_name", "Riverside Clinic")
        project = Project(**values)
        db.add(project)
        await db.commit()
        await db.refresh(project)
        return project
    return _make


@pytest.fixture
def make_vendor(db):
    async def _make(**values) -> Vendor:
        values.setdefault("company_name", "Acme Mechanical")
        vendor = Vendor(**values)
        db.add(vendor)
        await db.commit()
        await db.refresh(vendor)
        return vendor
    return _make


@pytest.fixture
def make_bid_vendor(db):
    """
    A relationship row with optional phases ((phase_type, status) pairs or
    dicts), a financial row and one estimating response.
    """
    async def _make(project, vendor, phases=(), financial=None, follow_up=None, **values) -> ProjectVendor:
        rel = ProjectVendor(project_id=project.id, vendor_id=vendor.id, **values)
        db.add(rel)
        await db.commit()
        await db.refresh(rel)
        for phase in phases:
            if isinstance(phase, tuple):
                phase = {"phase_type": phase[0], "status": phase[1]}
            db.add(ApmPhase(project_vendor_id=rel.id, **phase))
        if financial is not None:
            db.add(ProjectFinancial(project_vendor_id=rel.id, **financial))
        if follow_up is not None:
            db.add(EstResponse(project_vendor_id=rel.id, **follow_up))
        await db.commit()
        return rel
    return _make
