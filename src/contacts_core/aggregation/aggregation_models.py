# src/contacts_core/aggregation/aggregation_models.py

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class RawContactName:
    raw_contact_id: int
    contact_id: int | None
    display_name: str | None


@dataclass(slots=True, frozen=True)
class AggregationResult:
    # Raw contact ids per cluster, in first-seen order.
    clusters: list[list[int]]
    interrupted: bool = False
    # Most complex display name of each cluster (parallel to clusters).
    display_names: list[str | None] = field(default_factory=list)

    @property
    def cluster_count(self) -> int:
        return len(self.clusters)
