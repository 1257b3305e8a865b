"""Data models and pure helpers.

This package contains:
- types: TypedDicts for bridge JSON, EntertainmentArea, SyncParameters
- frames: Entertainment streaming frame construction
- colors: Colour transforms used by the sync engines
- utils: Logging helpers, devicetype, fuzzy matching
"""
