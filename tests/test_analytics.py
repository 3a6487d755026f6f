from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from spendsense.domain.records.models import FinancialRecord
from spendsense.services import analytics

SYDNEY = ZoneInfo("Australia/Sydney")


def _record(amount):
    return FinancialRecord(amount=Decimal(str(amount)))


class TestMonthRange:
    def test_previous_month_across_year_boundary(self):
        month = analytics.month_range(datetime(2026, 1, 15, tzinfo=timezone.utc), SYDNEY, -1)

        assert month.key == "2025-12"
        assert month.first_day.isoformat() == "2025-12-01"
        # Sydney midnight on 1 December is 13:00 UTC the day before (AEDT)
        assert month.storage_start == datetime(2025, 11, 30, 13, 0)
        assert month.storage_end == datetime(2025, 12, 31, 13, 0)

    def test_month_follows_local_calendar(self):
        # 14:00 UTC on 31 March is already 1 April in Sydney
        month = analytics.month_range(datetime(2026, 3, 31, 14, 0, tzinfo=timezone.utc), SYDNEY)

        assert month.key == "2026-04"

    def test_forward_offset(self):
        month = analytics.month_range(datetime(2026, 12, 10, tzinfo=timezone.utc), SYDNEY, 1)

        assert month.key == "2027-01"

    def test_trailing_start_counts_absolute_days_across_daylight_saving_end(self):
        # 11:00 AEST on 10 April; Sydney left AEDT on 5 April
        now = datetime(2026, 4, 10, 11, 0, tzinfo=SYDNEY)

        start = analytics.trailing_start(now, 14)

        assert start == datetime(2026, 3, 27, 1, 0, tzinfo=timezone.utc)
        assert now - start == timedelta(days=14)


class TestAverages:
    def test_average_of_empty_is_none(self):
        assert analytics.average([]) is None

    def test_average_and_sum(self):
        records = [_record("50.00"), _record("100.00"), _record("0.01")]

        assert analytics.sum_amounts(records) == Decimal("150.01")
        assert analytics.average(records[:2]) == Decimal("75")


class TestQueries:
    async def test_window_filter_excludes_trigger_and_old_records(self, session_factory, add_user, add_record):
        await add_user()
        old = await add_record("alice", "expense", 10, datetime(2026, 1, 1), "Food")
        recent = await add_record("alice", "expense", 20, datetime(2026, 3, 10), "Food")
        trigger = await add_record("alice", "expense", 30, datetime(2026, 3, 17), "Food")
        await add_record("alice", "expense", 40, datetime(2026, 3, 12), "Travel")

        async with session_factory() as db:
            found = await analytics.window_filter(
                db,
                owner_id="alice",
                record_type="expense",
                category="Food",
                from_time=datetime(2026, 2, 1, tzinfo=timezone.utc),
                exclude_id=trigger.id,
            )

        assert [record.id for record in found] == [recent.id]
        assert old.id not in [record.id for record in found]

    async def test_latest_records_skips_excluded_id(self, session_factory, add_user, add_record):
        await add_user()
        ids = []
        for day in (1, 2, 3, 4):
            record = await add_record("alice", "income", 100 * day, datetime(2026, 3, day))
            ids.append(record.id)

        async with session_factory() as db:
            latest = await analytics.latest_records(
                db, owner_id="alice", record_type="income", limit=3, exclude_id=ids[-1]
            )

        assert [record.id for record in latest] == [ids[2], ids[1], ids[0]]

    async def test_count_records_stops_at_limit(self, session_factory, add_user, add_record):
        await add_user()
        for day in (1, 2, 3, 4):
            await add_record("alice", "expense", 5, datetime(2026, 3, day), "Coffee")

        async with session_factory() as db:
            limited = await analytics.count_records(
                db, owner_id="alice", record_type="expense", category="Coffee", limit=2
            )
            total = await analytics.count_records(
                db, owner_id="alice", record_type="expense", category="Coffee"
            )

        assert limited == 2
        assert total == 4

    async def test_month_totals_respect_local_boundaries(self, session_factory, add_user, add_record):
        await add_user()
        month = analytics.month_range(datetime(2026, 3, 18, 1, 0, tzinfo=timezone.utc), SYDNEY)

        await add_record("alice", "income", "1000.00", month.storage_start)
        await add_record("alice", "expense", "250.50", datetime(2026, 3, 5))
        # Belongs to April in Sydney
        await add_record("alice", "expense", "999.00", month.storage_end)

        async with session_factory() as db:
            totals = await analytics.month_totals(db, owner_id="alice", month=month)

        assert totals.income == Decimal("1000.00")
        assert totals.expense == Decimal("250.50")
        assert totals.net == Decimal("749.50")

    async def test_month_totals_empty_month(self, session_factory, add_user):
        await add_user()
        month = analytics.month_range(datetime(2026, 3, 18, tzinfo=timezone.utc), SYDNEY)

        async with session_factory() as db:
            totals = await analytics.month_totals(db, owner_id="alice", month=month)

        assert totals.income == analytics.ZERO
        assert totals.expense == analytics.ZERO
