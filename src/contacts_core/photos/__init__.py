"""
Contact photos.

Components:
- processor.py: PhotoProcessor (Pillow renditions), PhotoProcessingError
- store.py: PhotoStore, PhotoEntry (file + photo_files row per display photo)
"""
