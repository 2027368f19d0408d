"""
Personal data records produced by the extractors.
"""

from dataclasses import dataclass
from enum import Enum


class PersonalDataKind(str, Enum):
    """Kinds of contact data the extractors recognise."""

    PHONE = "phone"
    NAME = "name"
    ADDRESS = "address"
    SOCIAL_HANDLE = "social_handle"


@dataclass(frozen=True)
class PersonalDataRecord:
    """A single piece of contact data found on a page."""

    kind: PersonalDataKind
    value: str
    source_url: str

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return (self.kind.value, self.value.casefold())

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "value": self.value,
            "source_url": self.source_url,
        }
