"""
Dataset — immutable ordered record collection produced by the merger.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from .schema import TEST, TRAIN


@dataclass(frozen=True)
class Dataset:
    records: Tuple[Mapping[str, Any], ...]
    provenance_field: str = "DataSource"

    @classmethod
    def from_records(cls, records, provenance_field: str = "DataSource") -> "Dataset":
        # Read-only views so downstream components cannot mutate rows
        frozen = tuple(MappingProxyType(dict(r)) for r in records)
        return cls(records=frozen, provenance_field=provenance_field)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        return iter(self.records)

    def __getitem__(self, index):
        return self.records[index]

    def by_source(self, source: str) -> List[Mapping[str, Any]]:
        return [r for r in self.records if r.get(self.provenance_field) == source]

    def training(self) -> List[Mapping[str, Any]]:
        return self.by_source(TRAIN)

    def holdout(self) -> List[Mapping[str, Any]]:
        return self.by_source(TEST)

    @property
    def train_rows(self) -> int:
        return sum(1 for r in self.records if r.get(self.provenance_field) == TRAIN)

    @property
    def test_rows(self) -> int:
        return sum(1 for r in self.records if r.get(self.provenance_field) == TEST)

    def field_names(self) -> List[str]:
        """Union of field names across records, in first-seen order."""
        seen: Dict[str, None] = {}
        for r in self.records:
            for key in r:
                seen.setdefault(key, None)
        return list(seen)

    def head(self, n: int = 10) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.records[:n]]
