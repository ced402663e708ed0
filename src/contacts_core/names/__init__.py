"""
Pure name utilities (no I/O, no threads).

Components:
- normalizer.py: normalize(), compare_complexity(), most_complex()
- distance.py: NameDistance (mismatch/transposition similarity)
- splitter.py: NameSplitter, StructuredName
- matcher.py: NameMatcher (configured bundle of the above)
"""
