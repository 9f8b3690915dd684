"""
Tests for the visit store and the visitor analytics query.
"""

import json
import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from app.visitor_analytics.errors import StoreUnavailableError
from app.visitor_analytics.models import VisitEvent
from app.visitor_analytics.services import VisitorAnalyticsService
from app.visitor_analytics.store import JsonVisitStore


NOW = datetime(2025, 3, 30, 15, 0, tzinfo=timezone.utc)
DAY_ONE = date(2025, 3, 1)


def at(day: date, hour: int = 10) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


class TestJsonVisitStore:
    """Test the JSON-backed visit store."""

    @pytest.fixture
    def store(self, tmp_path):
        """Create a store in a temporary directory."""
        return JsonVisitStore(tmp_path / "user_data")

    def test_missing_files_mean_empty_store(self, store):
        """Test that a store with no files is empty."""
        assert store.fetch_events(DAY_ONE, NOW.date()) == []
        assert store.fetch_known_visitors(DAY_ONE) == set()
        assert store.count() == 0

    def test_append_and_fetch_in_window(self, store):
        """Test appending visits and fetching those inside a window."""
        store.append(VisitEvent(at(DAY_ONE - timedelta(days=1)), "home", "u1"))
        store.append(VisitEvent(at(DAY_ONE), "product", "u2"))

        events = store.fetch_events(DAY_ONE, NOW.date())
        assert [e.visitor_key for e in events] == ["u2"]
        assert events[0].page_type == "product"
        assert store.count() == 2

    def test_first_seen_index(self, store):
        """Test the first-seen index used for known visitors."""
        store.append(VisitEvent(at(DAY_ONE - timedelta(days=3)), "home", "old"))
        store.append(VisitEvent(at(DAY_ONE), "home", "fresh"))
        store.append(VisitEvent(at(DAY_ONE - timedelta(days=5)), "home", "fresh"))
        store.append(VisitEvent(at(DAY_ONE), "home", None))

        assert store.fetch_known_visitors(DAY_ONE) == {"old", "fresh"}
        assert store.fetch_known_visitors(DAY_ONE - timedelta(days=4)) == {"fresh"}

    def test_corrupt_file_is_unavailable(self, store):
        """Test that a corrupt visits file makes the store unavailable."""
        store.data_dir.mkdir(parents=True)
        store.visits_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreUnavailableError):
            store.fetch_events(DAY_ONE, NOW.date())

    def test_wrong_shape_is_unavailable(self, store):
        """Test that a visits file with the wrong shape is unavailable."""
        store.data_dir.mkdir(parents=True)
        store.first_seen_file.write_text("[]", encoding="utf-8")

        with pytest.raises(StoreUnavailableError):
            store.fetch_known_visitors(DAY_ONE)

    def test_malformed_records_are_skipped(self, store):
        """Test that malformed visit records are skipped."""
        store.data_dir.mkdir(parents=True)
        store.visits_file.write_text(json.dumps([
            {"page_type": "home"},
            {"timestamp": "yesterday"},
            {"timestamp": "2025-03-02T08:00:00", "visitor_key": ""},
        ]), encoding="utf-8")

        events = store.fetch_events(DAY_ONE, NOW.date())
        assert len(events) == 1
        assert events[0].visitor_key is None
        assert events[0].page_type == "unknown"
        assert events[0].timestamp.tzinfo is not None

    def test_fetch_window_reads_one_snapshot(self, store):
        """Test that fetch_window returns window events and earlier visitors together."""
        store.append(VisitEvent(at(DAY_ONE - timedelta(days=2)), "home", "u1"))
        store.append(VisitEvent(at(DAY_ONE), "home", "u2"))

        events, known = store.fetch_window(DAY_ONE, NOW.date())
        assert [e.visitor_key for e in events] == ["u2"]
        assert known == {"u1"}

    def test_writes_leave_no_temporary_files(self, store):
        """Test that atomic writes clean up after themselves."""
        for i in range(3):
            store.append(VisitEvent(at(DAY_ONE), "home", f"u{i}"))

        names = sorted(p.name for p in store.data_dir.iterdir())
        assert names == ["visitor_first_seen.json", "visits.json"]

    def test_queries_during_appends_never_fail(self, store):
        """Test that reads running alongside appends always see a complete file."""
        service = VisitorAnalyticsService(store, clock=lambda: NOW)
        done = threading.Event()

        def writer():
            try:
                for i in range(150):
                    store.append(VisitEvent(at(DAY_ONE + timedelta(days=i % 30)), "home", f"u{i % 7}"))
            finally:
                done.set()

        thread = threading.Thread(target=writer)
        thread.start()
        failures = 0
        queries = 0
        while not done.is_set() or queries < 20:
            try:
                summary = service.get_visitor_statistics()
            except StoreUnavailableError:
                failures += 1
            else:
                assert summary.total_visitors == summary.new_visitors + summary.return_visitors
            queries += 1
        thread.join()

        assert failures == 0
        assert store.count() == 150

    def test_failed_index_write_keeps_history(self, store, monkeypatch):
        """Test that a visit whose index update failed still counts as history."""
        original_write = store._write

        def failing_index_write(path, data):
            if path == store.first_seen_file:
                raise StoreUnavailableError("disk full")
            original_write(path, data)

        monkeypatch.setattr(store, "_write", failing_index_write)
        store.append(VisitEvent(at(DAY_ONE - timedelta(days=40)), "home", "u1"))
        monkeypatch.setattr(store, "_write", original_write)

        store.append(VisitEvent(at(DAY_ONE + timedelta(days=3)), "home", "u1"))

        assert store.count() == 2
        assert store.fetch_known_visitors(DAY_ONE) == {"u1"}
        summary = VisitorAnalyticsService(store, clock=lambda: NOW).get_visitor_statistics()
        assert summary.new_visitors == 0
        assert summary.return_visitors == 1


class TestVisitorAnalyticsService:
    """Test the end-to-end analytics query."""

    @pytest.fixture
    def store(self, tmp_path):
        """Create a store in a temporary directory."""
        return JsonVisitStore(tmp_path / "user_data")

    @pytest.fixture
    def service(self, store):
        """Create a service with a fixed clock."""
        return VisitorAnalyticsService(store, clock=lambda: NOW)

    def test_empty_store(self, service):
        """Test statistics over an empty store."""
        summary = service.get_visitor_statistics()

        assert summary.total_visitors == 0
        assert summary.today_visitors == 0
        assert summary.page_visitors == {}
        assert len(summary.daily_stats) == 30
        assert all(stat.total_visitors == 0 for stat in summary.daily_stats)
        assert all(stat.cumulative_total_visitors == 0 for stat in summary.daily_stats)
        assert summary.insights.has_data is False
        assert summary.window_start == DAY_ONE
        assert summary.window_end == NOW.date()

    def test_single_visit_on_first_day(self, store, service):
        """Test a single visit on the first day of the window."""
        store.append(VisitEvent(at(DAY_ONE), "home", "u1"))

        summary = service.get_visitor_statistics()
        first = summary.daily_stats[0]
        assert (first.total_visitors, first.new_visitors, first.return_visitors) == (1, 1, 0)
        assert all(stat.cumulative_total_visitors == 1 for stat in summary.daily_stats)

    def test_return_visit_on_day_five(self, store, service):
        """Test a visitor returning on day five."""
        store.append(VisitEvent(at(DAY_ONE), "home", "u1"))
        store.append(VisitEvent(at(DAY_ONE + timedelta(days=4)), "home", "u1"))

        summary = service.get_visitor_statistics()
        assert summary.daily_stats[0].new_visitors == 1
        assert summary.daily_stats[4].return_visitors == 1
        assert summary.new_visitors == 1
        assert summary.return_visitors == 1
        assert summary.insights.return_visitor_rate_percent == 50

    def test_peak_day_and_average(self, store, service):
        """Test the peak day and average daily visitors."""
        busy, quieter = DAY_ONE + timedelta(days=9), DAY_ONE + timedelta(days=19)
        for _ in range(10):
            store.append(VisitEvent(at(busy), "home"))
        for _ in range(7):
            store.append(VisitEvent(at(quieter), "home"))

        insights = service.get_visitor_statistics().insights
        assert insights.peak_day == busy
        assert insights.peak_day_visitors == 10
        assert insights.average_daily_visitors == 1
        assert insights.total_page_views == 17

    def test_page_visitors(self, store, service):
        """Test the per-page breakdown."""
        for page in ("home", "home", "product"):
            store.append(VisitEvent(at(DAY_ONE), page))

        assert service.get_visitor_statistics().page_visitors == {"home": 2, "product": 1}

    def test_visitor_seen_before_window_is_returning(self, store, service):
        """Test that a visitor seen before the window counts as returning."""
        store.append(VisitEvent(at(DAY_ONE - timedelta(days=40)), "home", "u1"))
        store.append(VisitEvent(at(DAY_ONE + timedelta(days=2)), "home", "u1"))

        summary = service.get_visitor_statistics()
        assert summary.total_visitors == 1
        assert summary.return_visitors == 1
        assert summary.new_visitors == 0
        assert summary.insights.new_vs_returning is None

    def test_today_visitors(self, store, service):
        """Test the count of today's visitors."""
        store.append(VisitEvent(at(NOW.date(), hour=9), "home", "u1"))
        store.append(VisitEvent(at(NOW.date() - timedelta(days=1)), "home", "u2"))

        summary = service.get_visitor_statistics()
        assert summary.today_visitors == 1
        assert summary.total_visitors == 2

    def test_window_size_parameter(self, store, service):
        """Test querying a custom window size."""
        store.append(VisitEvent(at(NOW.date() - timedelta(days=10)), "home", "u1"))

        summary = service.get_visitor_statistics(7)
        assert summary.window_size_days == 7
        assert len(summary.daily_stats) == 7
        assert summary.total_visitors == 0

    def test_query_is_idempotent(self, store, service):
        """Test that repeated queries return the same summary."""
        store.append(VisitEvent(at(DAY_ONE), "home", "u1"))
        store.append(VisitEvent(at(DAY_ONE + timedelta(days=3)), "blog", "u1"))

        assert service.get_visitor_statistics() == service.get_visitor_statistics()
        assert service.get_visitor_statistics().to_dict() == service.get_visitor_statistics().to_dict()

    def test_track_visit_uses_clock(self, store, service):
        """Test that tracked visits are stamped by the service clock."""
        event = service.track_visit("home", "u9")

        assert event.timestamp == NOW
        assert service.get_visitor_statistics().today_visitors == 1

    def test_zero_window_is_rejected(self, service):
        """Test that an explicit zero-day window raises instead of using the default."""
        with pytest.raises(ValueError):
            service.get_visitor_statistics(0)

    def test_store_failure_propagates(self, store, service):
        """Test that store failures reach the caller."""
        store.data_dir.mkdir(parents=True)
        store.visits_file.write_text("garbage", encoding="utf-8")

        with pytest.raises(StoreUnavailableError):
            service.get_visitor_statistics()

    def test_summary_to_dict(self, store, service):
        """Test the JSON form of the summary."""
        store.append(VisitEvent(at(DAY_ONE), "home", "u1"))

        data = service.get_visitor_statistics().to_dict()
        assert data["total_visitors"] == 1
        assert data["window_start"] == "2025-03-01"
        assert data["daily_stats"][0]["date"] == "2025-03-01"
        assert data["daily_stats"][-1]["cumulative_total_visitors"] == 1
        assert data["insights"]["has_data"] is True
        json.dumps(data)
