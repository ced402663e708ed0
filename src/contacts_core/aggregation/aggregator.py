# src/contacts_core/aggregation/aggregator.py

from __future__ import annotations

"""
Name-based aggregator.

One pass reads every raw contact name, and assigns each raw contact to the best
earlier cluster whose score reaches the primary threshold, or starts a new cluster.

Lookup keys per raw contact:
- NAME_COLLATION_KEY: the normalized display name,
- NAME_VARIANT: normalized given+family and family+given orders of the split name,
  so "John Smith" and "Smith, John" land in the same cluster.

Cancellation is cooperative: interrupt() sets an Event that run() polls per raw contact.
The Event is reset when a pass ends, so an interrupt that lands before a pass starts
still stops that pass.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from ..core.ports import RawContactSource
from ..names.matcher import NameMatcher
from .aggregation_models import AggregationResult, RawContactName
from .scoring import SCORE_THRESHOLD_PRIMARY, MatchingAlgorithm, MatchScorer, NameLookupType

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Cluster:
    index: int
    raw_contact_ids: list[int] = field(default_factory=list)
    display_names: list[str | None] = field(default_factory=list)
    # (raw_contact_id, lookup type, normalized key)
    keys: list[tuple[int, NameLookupType, str]] = field(default_factory=list)


class NameAggregator:
    def __init__(
        self,
        source: RawContactSource,
        matcher: NameMatcher,
        *,
        on_result: Callable[[AggregationResult], None] | None = None,
        algorithm: MatchingAlgorithm = MatchingAlgorithm.APPROXIMATE,
    ) -> None:
        self._source = source
        self._matcher = matcher
        self._on_result = on_result
        self._algorithm = algorithm
        self._cancel = threading.Event()
        self._last_result: AggregationResult | None = None

    @property
    def last_result(self) -> AggregationResult | None:
        return self._last_result

    def interrupt(self) -> None:
        """Ask the running (or the next) pass to stop early. Safe from any thread."""
        self._cancel.set()

    def clear_interrupt(self) -> None:
        self._cancel.clear()

    def run(self) -> AggregationResult:
        try:
            return self._run_pass()
        finally:
            # An interrupt only ever applies to one pass.
            self._cancel.clear()

    def _run_pass(self) -> AggregationResult:
        names = list(self._source.iter_raw_contact_names())
        logger.debug("Aggregation pass over %d raw contacts.", len(names))

        scorer = MatchScorer()
        clusters: list[_Cluster] = []
        interrupted = False

        for raw in names:
            if self._cancel.is_set():
                interrupted = True
                break

            keys = self._lookup_keys(raw)
            cluster = self._best_cluster(scorer, clusters, raw, keys) if keys else None
            if cluster is None:
                cluster = _Cluster(index=len(clusters))
                clusters.append(cluster)

            cluster.raw_contact_ids.append(raw.raw_contact_id)
            cluster.display_names.append(raw.display_name)
            cluster.keys.extend((raw.raw_contact_id, t, k) for t, k in keys)

        result = AggregationResult(
            clusters=[list(c.raw_contact_ids) for c in clusters],
            interrupted=interrupted,
            display_names=[self._matcher.most_complex(c.display_names) for c in clusters],
        )
        self._last_result = result

        if interrupted:
            logger.info("Aggregation pass interrupted after %d clusters.", len(clusters))
        else:
            logger.info("Aggregation pass done: %d raw contacts, %d clusters.", len(names), len(clusters))

        if self._on_result is not None:
            self._on_result(result)
        return result

    # ---- internals ----

    def _lookup_keys(self, raw: RawContactName) -> list[tuple[NameLookupType, str]]:
        normalized = self._matcher.normalize(raw.display_name)
        if not normalized:
            return []

        keys = [(NameLookupType.NAME_COLLATION_KEY, normalized)]

        structured = self._matcher.split(raw.display_name)
        given = self._matcher.normalize(structured.given_names)
        family = self._matcher.normalize(structured.family_name)
        if given and family:
            for variant in dict.fromkeys((given + family, family + given)):
                keys.append((NameLookupType.NAME_VARIANT, variant))
        return keys

    def _best_cluster(
        self,
        scorer: MatchScorer,
        clusters: list[_Cluster],
        raw: RawContactName,
        keys: list[tuple[NameLookupType, str]],
    ) -> _Cluster | None:
        scorer.clear()
        by_raw_id: dict[int, _Cluster] = {}

        for cluster in clusters:
            for candidate_id, candidate_type, candidate_key in cluster.keys:
                by_raw_id[candidate_id] = cluster
                for name_type, key in keys:
                    scorer.match_name(
                        candidate_id,
                        cluster.index,
                        candidate_type,
                        candidate_key,
                        name_type,
                        key,
                        self._algorithm,
                    )

        best = scorer.pick_best_matches(SCORE_THRESHOLD_PRIMARY)
        if not best:
            return None
        return by_raw_id[best[0].raw_contact_id]
