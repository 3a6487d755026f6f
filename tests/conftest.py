import os
import pathlib
import sys
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(REPO_ROOT))

# 2026-03-18 12:00 in Sydney (AEDT, UTC+11)
NOW_UTC = datetime(2026, 3, 18, 1, 0)


def pytest_configure():
    temp_dir = tempfile.mkdtemp(prefix="spendsense-tests-")
    os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{pathlib.Path(temp_dir) / 'app.db'}")
    os.environ.setdefault("LOG_DIR", str(pathlib.Path(temp_dir) / "logs"))
    os.environ["FCM_ACCESS_TOKEN"] = "stub"
    os.environ["SCHEDULER_ENABLED"] = "false"
    os.environ["INSIGHTS_TIMEZONE"] = "Australia/Sydney"


class FakeTransport:
    """Collects pushes instead of sending them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, token, title, body, data):
        if self.fail:
            raise RuntimeError("push gateway unavailable")
        self.sent.append({"token": token, "title": title, "body": body, "data": dict(data)})


@pytest.fixture()
async def db_engine(tmp_path):
    from spendsense.core.database import create_engine_for, init_db

    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'insights.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    from spendsense.core.database import create_session_factory

    return create_session_factory(db_engine)


@pytest.fixture()
def clock():
    from spendsense.core.clock import Clock

    return Clock.fixed(NOW_UTC, "Australia/Sydney")


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def failing_transport():
    return FakeTransport(fail=True)


@pytest.fixture()
def insight_engine(session_factory, clock, transport):
    from spendsense.domain.insights.engine import InsightEngine
    from spendsense.services.push_client import PushNotifier

    return InsightEngine(
        session_factory,
        clock=clock,
        notifier=PushNotifier(session_factory, transport),
    )


@pytest.fixture()
def add_user(session_factory):
    from spendsense.domain.users.models import User

    async def _add(owner_id="alice", device_token="device-alice"):
        async with session_factory() as db:
            user = User(id=owner_id, name=owner_id.title(), device_token=device_token)
            db.add(user)
            await db.commit()
            return user

    return _add


@pytest.fixture()
def add_record(session_factory):
    from spendsense.domain.records.models import FinancialRecord

    async def _add(owner_id, record_type, amount, occurred_at, category=None):
        async with session_factory() as db:
            record = FinancialRecord(
                owner_id=owner_id,
                record_type=record_type,
                amount=Decimal(str(amount)),
                category=category,
                occurred_at=occurred_at,
            )
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return record

    return _add


@pytest.fixture()
def delete_record(session_factory):
    from spendsense.domain.records.models import FinancialRecord

    async def _delete(record):
        async with session_factory() as db:
            stored = await db.get(FinancialRecord, record.id)
            await db.delete(stored)
            await db.commit()

    return _delete


@pytest.fixture()
def stored_insights(session_factory):
    from spendsense.domain.insights import services

    async def _list(owner_id="alice", kind=None):
        async with session_factory() as db:
            return list(await services.list_insights(db, owner_id=owner_id, kind=kind))

    return _list
