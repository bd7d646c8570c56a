"""Search and facet filtering of resident uploads."""

from collections.abc import Iterable

from medisys.domain.shared.model.value import ValueObject
from medisys.domain.upload.model.upload import UploadRecord

ALL = "all"


class UploadFilter(ValueObject):
    """Filename search plus clinic and status facets; ``"all"`` disables a facet."""

    search: str = ""
    clinic: str = ALL
    status: str = ALL

    def matches(self, record: UploadRecord) -> bool:
        if self.search and self.search.lower() not in record.filename.lower():
            return False
        if self.clinic != ALL and record.clinic_id != self.clinic:
            return False
        if self.status != ALL and record.status != self.status:
            return False
        return True

    def apply(self, records: Iterable[UploadRecord]) -> list[UploadRecord]:
        return [r for r in records if self.matches(r)]


def clinic_options(records: Iterable[UploadRecord]) -> list[str]:
    return sorted({r.clinic_id for r in records})


def status_options(records: Iterable[UploadRecord]) -> list[str]:
    return sorted({r.status for r in records})
