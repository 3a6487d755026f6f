from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from spendsense.domain.insights import catalog, services
from spendsense.domain.insights.facts import negative_balance_selector
from spendsense.domain.insights.models import InsightKind
from spendsense.services.analytics import month_range

NOW = datetime(2026, 3, 18, 1, 0, tzinfo=timezone.utc)
SYDNEY = ZoneInfo("Australia/Sydney")


def _negative_draft(day=date(2026, 3, 1)):
    return catalog.NEGATIVE_BALANCE.render(date_bucket=day, income="100.00", expense="200.00")


async def test_try_emit_deduplicates_by_fingerprint(session_factory, add_user):
    await add_user()
    draft = _negative_draft()

    async with session_factory() as db:
        first = await services.try_emit(db, owner_id="alice", draft=draft, created_at=NOW)
        second = await services.try_emit(db, owner_id="alice", draft=draft, created_at=NOW)

    assert isinstance(first, services.Created)
    assert first.insight.fingerprint == draft.fingerprint
    assert first.insight.created_at == datetime(2026, 3, 18, 1, 0)
    assert second == services.Deduplicated(draft.fingerprint)


async def test_same_draft_for_another_owner_is_stored(session_factory, add_user):
    await add_user("alice")
    await add_user("bob")
    draft = _negative_draft()

    async with session_factory() as db:
        alice = await services.try_emit(db, owner_id="alice", draft=draft)
        bob = await services.try_emit(db, owner_id="bob", draft=draft)

    assert isinstance(alice, services.Created)
    assert isinstance(bob, services.Created)


async def test_retract_is_idempotent_and_scoped(session_factory, add_user, stored_insights):
    await add_user("alice")
    await add_user("bob")
    march = month_range(NOW, SYDNEY)

    async with session_factory() as db:
        await services.try_emit(db, owner_id="alice", draft=_negative_draft(), created_at=NOW)
        await services.try_emit(db, owner_id="bob", draft=_negative_draft(), created_at=NOW)
        # Last month's alert is outside the selector window
        await services.try_emit(
            db,
            owner_id="alice",
            draft=_negative_draft(date(2026, 2, 1)),
            created_at=NOW - timedelta(days=30),
        )

        assert await services.retract(db, owner_id="alice", selector=negative_balance_selector(march)) == 1
        assert await services.retract(db, owner_id="alice", selector=negative_balance_selector(march)) == 0

    assert len(await stored_insights("alice")) == 1
    assert len(await stored_insights("bob")) == 1


async def test_exists_matches_selector(session_factory, add_user):
    await add_user()
    march = month_range(NOW, SYDNEY)

    async with session_factory() as db:
        assert not await services.exists(db, owner_id="alice", selector=negative_balance_selector(march))
        await services.try_emit(db, owner_id="alice", draft=_negative_draft(), created_at=NOW)
        assert await services.exists(db, owner_id="alice", selector=negative_balance_selector(march))


async def test_list_latest_and_acknowledge(session_factory, add_user):
    await add_user()
    advice = catalog.BALANCE_RESTORED.render(date_bucket=date(2026, 3, 1), income="10.00", expense="5.00")

    async with session_factory() as db:
        older = await services.try_emit(db, owner_id="alice", draft=_negative_draft(), created_at=NOW)
        newer = await services.try_emit(
            db, owner_id="alice", draft=advice, created_at=NOW + timedelta(minutes=5)
        )

        listed = await services.list_insights(db, owner_id="alice")
        assert [insight.id for insight in listed] == [newer.insight.id, older.insight.id]

        latest_alert = await services.latest_insight(db, owner_id="alice", kind=InsightKind.ALERT)
        assert latest_alert.id == older.insight.id

        assert await services.count_unread(db, owner_id="alice") == 2
        acknowledged = await services.acknowledge_insight(db, owner_id="alice", insight_id=older.insight.id)
        assert acknowledged.acknowledged is True
        assert await services.count_unread(db, owner_id="alice") == 1
        assert await services.acknowledge_insight(db, owner_id="bob", insight_id=older.insight.id) is None


async def test_concurrent_duplicate_is_reported_as_deduplicated(session_factory, add_user, monkeypatch, stored_insights):
    await add_user()
    draft = _negative_draft()

    async with session_factory() as db:
        await services.try_emit(db, owner_id="alice", draft=draft, created_at=NOW)

    async def _not_seen_yet(db, *, owner_id, key):
        return None

    # Simulates a second invocation that checked before the first one committed
    monkeypatch.setattr(services, "_get_by_fingerprint", _not_seen_yet)
    async with session_factory() as db:
        outcome = await services.try_emit(db, owner_id="alice", draft=draft, created_at=NOW)

    assert outcome == services.Deduplicated(draft.fingerprint)
    assert len(await stored_insights("alice")) == 1
