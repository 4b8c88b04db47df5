from __future__ import annotations

from datetime import date

from parkito.services.series_lookup import (
    current_recurrence_tag,
    future_series_ids,
    legacy_series_ids_by_signature,
    series_ids_by_rule,
)


class TestSeriesLookup:
    """Resolution of "this day and all future occurrences"."""

    def test_current_tag_is_first_tagged_row(self, record):
        rows = [
            record("2025-06-02", "08:00", "10:00", id=1),
            record("2025-06-02", "10:00", "12:00", rule=" ogni_settimana ", id=2),
        ]

        assert current_recurrence_tag(rows) == "ogni_settimana"
        assert current_recurrence_tag(rows[:1]) is None

    def test_by_rule_only_matches_tag_from_date(self, record):
        rows = [
            record("2025-05-26", rule="ogni_settimana", id=1),
            record("2025-06-02", rule="ogni_settimana", id=2),
            record("2025-06-09", rule="ogni_settimana", id=3),
            record("2025-06-10", rule="ogni_mese", id=4),
            record("2025-06-16", id=5),
            record("2025-06-23", rule="ogni_settimana"),
        ]

        assert series_ids_by_rule(rows, date(2025, 6, 2), "ogni_settimana") == [2, 3]

    def test_legacy_signature_match(self, record):
        day_rows = [record("2025-06-02", "09:00", "12:00", available=False, id=10)]
        rows = day_rows + [
            record("2025-05-26", "09:00", "12:00", available=False, id=9),
            record("2025-06-09", "09:00", "12:00", available=False, id=11),
            record("2025-06-09", "09:00", "12:00", available=True, id=12),
            record("2025-06-16", "09:00", "13:00", available=False, id=13),
        ]

        assert legacy_series_ids_by_signature(rows, date(2025, 6, 2), day_rows) == [10, 11]

    def test_dispatch_prefers_tag(self, record):
        day_rows = [record("2025-06-02", "09:00", "12:00", rule="ogni_settimana", id=1)]
        rows = day_rows + [
            record("2025-06-09", "09:00", "12:00", rule="ogni_settimana", id=2),
            record("2025-06-16", "09:00", "12:00", id=3),
        ]

        assert future_series_ids(rows, date(2025, 6, 2), day_rows) == [1, 2]

    def test_dispatch_falls_back_to_signature(self, record):
        day_rows = [record("2025-06-02", "09:00", "12:00", id=1)]
        rows = day_rows + [record("2025-06-16", "09:00", "12:00", id=3)]

        assert future_series_ids(rows, date(2025, 6, 2), day_rows) == [1, 3]
