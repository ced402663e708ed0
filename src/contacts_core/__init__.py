"""
contacts_core: contact aggregation scheduling, background maintenance tasks,
fuzzy name matching and derived photo storage.
"""

__version__ = "0.1.0"
