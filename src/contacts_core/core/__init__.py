"""
Core wiring types.

Components:
- ports.py: Protocols (Aggregator, TaskConsumer, RawContactSource)
- state.py: AppState (composition result)
"""
