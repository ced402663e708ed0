"""
Contact aggregation.

Components:
- aggregation_models.py: RawContactName, AggregationResult
- scoring.py: MatchScore, MatchScorer, thresholds and score ranges
- aggregator.py: NameAggregator (interruptible clustering pass)
- scheduler.py: AggregationScheduler (debounced, interruptible triggering)
"""
