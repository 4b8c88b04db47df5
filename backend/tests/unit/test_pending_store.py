from __future__ import annotations

from datetime import date, time
import json
import logging
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from parkito.core.enums import RecurrenceFrequency
from parkito.schemas.pending import PendingAvailability, PendingDayUpdate, PendingSlot
from parkito.services.pending_store import PendingAvailabilityStore

PARKING = "42"


@pytest.fixture
def day_update() -> PendingDayUpdate:
    return PendingDayUpdate(
        whole_day_available=False,
        whole_day_hourly_price=None,
        whole_day_recurrence=RecurrenceFrequency.NEVER,
    )


class TestReadDraft:
    """Reads never raise and treat anything unreadable as no draft."""

    def test_missing_draft(self, store):
        assert store.get_pending(PARKING) is None
        assert store.has_pending(PARKING) is False

    def test_corrupt_json_is_no_draft(self, store, storage, caplog):
        storage.set(store.key_for(PARKING), "{not json")

        with caplog.at_level(logging.WARNING):
            assert store.get_pending(PARKING) is None

        assert "unreadable availability draft" in caplog.text

    def test_non_object_json_is_no_draft(self, store, storage):
        storage.set(store.key_for(PARKING), "[1, 2, 3]")

        assert store.get_pending(PARKING) is None

    def test_storage_failure_is_no_draft(self):
        broken = MagicMock()
        broken.get.side_effect = RedisConnectionError("down")
        store = PendingAvailabilityStore(broken)

        assert store.get_pending(PARKING) is None

    def test_legacy_blob_with_form_values(self, store, storage):
        storage.set(
            store.key_for(PARKING),
            json.dumps(
                {
                    "updates": {
                        "2025-06-01": {
                            "wholeDayAvailable": True,
                            "wholeDayHourlyPrice": "",
                            "wholeDayRipetizione": "mai",
                            "slots": [
                                {
                                    "startTime": "09:00",
                                    "endTime": "10:00",
                                    "isAvailable": True,
                                    "hourlyPrice": "7",
                                    "ripetizione": "ogni_settimana",
                                }
                            ],
                        }
                    },
                    "deleteDates": None,
                    "deleteIds": [3],
                }
            ),
        )

        draft = store.get_pending(PARKING)

        assert draft is not None
        update = draft.updates[date(2025, 6, 1)]
        assert update.whole_day_hourly_price is None
        assert update.slots[0].hourly_price == 7.0
        assert update.slots[0].start_time == time(9, 0)
        assert update.slots[0].recurrence is RecurrenceFrequency.WEEKLY
        assert draft.delete_dates == []
        assert draft.delete_ids == [3]


class TestMergeOperations:
    """Merges keep a date out of updates and deleteDates at the same time."""

    def test_merge_update_stores_camel_case_blob(self, store, storage, june_first):
        update = PendingDayUpdate(
            whole_day_available=True,
            whole_day_hourly_price=6.5,
            slots=[PendingSlot(start_time=time(9, 0), end_time=time(10, 0))],
        )

        store.merge_update(PARKING, june_first, update)

        blob = json.loads(storage.get(store.key_for(PARKING)))
        assert set(blob) == {"updates", "deleteDates", "deleteIds"}
        stored = blob["updates"]["2025-06-01"]
        assert stored["wholeDayHourlyPrice"] == 6.5
        assert stored["wholeDayRipetizione"] == "mai"
        assert stored["slots"][0] == {
            "startTime": "09:00",
            "endTime": "10:00",
            "isAvailable": True,
            "hourlyPrice": None,
            "ripetizione": "mai",
        }

    def test_update_then_delete_same_day(self, store, day_update, june_first):
        store.merge_update(PARKING, june_first, day_update)
        store.merge_delete_one_day(PARKING, june_first)

        draft = store.get_pending(PARKING)
        assert june_first not in draft.updates
        assert draft.delete_dates == [june_first]

    def test_delete_then_update_same_day(self, store, day_update, june_first):
        store.merge_delete_one_day(PARKING, june_first)
        store.merge_update(PARKING, june_first, day_update)

        draft = store.get_pending(PARKING)
        assert june_first in draft.updates
        assert june_first not in draft.delete_dates

    def test_interleaved_merges_never_overlap(self, store, day_update, june_first):
        other = date(2025, 6, 2)
        for step in range(6):
            if step % 2:
                store.merge_delete_one_day(PARKING, june_first)
                store.merge_update(PARKING, other, day_update)
            else:
                store.merge_update(PARKING, june_first, day_update)
                store.merge_delete_one_day(PARKING, other)

            draft = store.get_pending(PARKING)
            assert not set(draft.updates) & set(draft.delete_dates)

    def test_delete_one_day_is_idempotent(self, store, june_first):
        store.merge_delete_one_day(PARKING, june_first)
        store.merge_delete_one_day(PARKING, june_first)

        assert store.get_pending(PARKING).delete_dates == [june_first]

    def test_merge_delete_ids_dedupes_and_unstages(self, store, day_update, june_first):
        store.merge_update(PARKING, june_first, day_update)
        store.merge_delete_ids(PARKING, [5, 6])
        store.merge_delete_ids(PARKING, [6, 7], date_to_unstage=june_first)

        draft = store.get_pending(PARKING)
        assert draft.delete_ids == [5, 6, 7]
        assert draft.updates == {}

    def test_has_pending_and_clear(self, store):
        store.merge_delete_ids(PARKING, [1])
        assert store.has_pending(PARKING) is True

        store.clear_pending(PARKING)

        assert store.get_pending(PARKING) is None
        assert store.has_pending(PARKING) is False

    def test_empty_draft_is_not_pending(self, store):
        store.set_pending(PARKING, PendingAvailability())

        assert store.get_pending(PARKING) is not None
        assert store.has_pending(PARKING) is False

    def test_drafts_are_kept_per_parking(self, store, day_update, june_first):
        store.merge_update("1", june_first, day_update)

        assert store.get_pending("2") is None
        assert june_first in store.get_pending("1").updates


class TestMissingContextAndCallbacks:
    def test_empty_parking_id_is_noop(self, store, storage, day_update, june_first):
        store.merge_update("", june_first, day_update)
        store.merge_delete_one_day(None, june_first)
        store.merge_delete_ids("", [1])
        store.clear_pending(None)

        assert len(storage) == 0
        assert store.get_pending("") is None
        assert store.has_pending(None) is False

    def test_on_changed_called_after_each_mutation(self, store, day_update, june_first):
        on_changed = MagicMock()

        store.merge_update(PARKING, june_first, day_update, on_changed)
        store.merge_delete_one_day(PARKING, june_first, on_changed)
        store.merge_delete_ids(PARKING, [1], on_changed=on_changed)
        store.clear_pending(PARKING, on_changed)

        assert on_changed.call_count == 4

    def test_failed_write_is_logged_and_dropped(self, day_update, june_first, caplog):
        broken = MagicMock()
        broken.get.return_value = None
        broken.set.side_effect = RedisConnectionError("down")
        store = PendingAvailabilityStore(broken)
        on_changed = MagicMock()

        with caplog.at_level(logging.WARNING):
            store.merge_update(PARKING, june_first, day_update, on_changed)

        on_changed.assert_not_called()
        assert "Could not write availability draft" in caplog.text
