"""Summary statistics over the uploads currently resident in a store."""

from collections import Counter
from collections.abc import Iterable
from datetime import date

from medisys.domain.shared.model.value import ValueObject
from medisys.domain.upload.model.upload import UploadRecord
from medisys.domain.upload.service.list_store import UploadListStore


class ClinicCount(ValueObject):
    clinic_id: str
    count: int


class DayCount(ValueObject):
    day: date
    count: int


class UploadSummary(ValueObject):
    total_uploads: int = 0
    total_rows: int = 0
    clinic_count: int = 0
    status_counts: dict[str, int] = {}
    per_clinic: list[ClinicCount] = []  # First-seen order
    per_day: list[DayCount] = []  # Ascending by day


def summarize(records: Iterable[UploadRecord]) -> UploadSummary:
    """Counts and groupings over ``records``. Reports only what is given."""
    records = list(records)
    statuses: Counter[str] = Counter(r.status for r in records)
    clinics: Counter[str] = Counter(r.clinic_id for r in records)
    days: Counter[date] = Counter(r.uploaded_at.date() for r in records)
    return UploadSummary(
        total_uploads=len(records),
        total_rows=sum(r.row_count for r in records),
        clinic_count=len(clinics),
        status_counts=dict(statuses),
        per_clinic=[ClinicCount(clinic_id=c, count=n) for c, n in clinics.items()],
        per_day=[DayCount(day=d, count=days[d]) for d in sorted(days)],
    )


class AggregationView:
    """Memoized ``summarize`` over a list store.

    Recomputed lazily whenever the store's revision changes. Never loads
    further pages: a partially loaded listing yields a partial summary.
    """

    def __init__(self, store: UploadListStore) -> None:
        self._store = store
        self._revision: int | None = None
        self._summary = UploadSummary()

    @property
    def summary(self) -> UploadSummary:
        if self._revision != self._store.revision:
            self._summary = summarize(self._store.items)
            self._revision = self._store.revision
        return self._summary
