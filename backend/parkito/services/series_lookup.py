# backend/parkito/services/series_lookup.py
"""
Resolution of "this day and all future occurrences" deletions.

Records created by a repeating edit carry the same recurrence tag, so the
primary lookup matches on that tag. Older rows were written without a tag;
for those, ``legacy_series_ids_by_signature`` matches on the start/end/
availability signature of the selected day's rows. It is kept separate so it
can be removed once legacy rows are migrated.
"""

from datetime import date
from typing import List, Optional, Sequence, Set

from ..schemas.availability import AvailabilityRecord
from ..utils.time_helpers import time_to_string


def current_recurrence_tag(day_records: Sequence[AvailabilityRecord]) -> Optional[str]:
    """Tag of the first record of the day that has one."""
    for record in day_records:
        if record.recurrence_tag:
            return record.recurrence_tag
    return None


def series_ids_by_rule(
    records: Sequence[AvailabilityRecord],
    from_date: date,
    tag: str,
) -> List[int]:
    """Ids of records on or after ``from_date`` carrying the recurrence tag."""
    return [
        record.id
        for record in records
        if record.id is not None
        and record.record_date >= from_date
        and record.recurrence_tag == tag
    ]


def record_signature(record: AvailabilityRecord) -> str:
    return (
        f"{time_to_string(record.start_time)}_{time_to_string(record.end_time)}"
        f"_{str(record.is_available).lower()}"
    )


def legacy_series_ids_by_signature(
    records: Sequence[AvailabilityRecord],
    from_date: date,
    day_records: Sequence[AvailabilityRecord],
) -> List[int]:
    """Ids of records on or after ``from_date`` shaped like one of the day's rows."""
    signatures: Set[str] = {record_signature(r) for r in day_records}
    return [
        record.id
        for record in records
        if record.id is not None
        and record.record_date >= from_date
        and record_signature(record) in signatures
    ]


def future_series_ids(
    records: Sequence[AvailabilityRecord],
    from_date: date,
    day_records: Sequence[AvailabilityRecord],
) -> List[int]:
    tag = current_recurrence_tag(day_records)
    if tag:
        return series_ids_by_rule(records, from_date, tag)
    return legacy_series_ids_by_signature(records, from_date, day_records)
