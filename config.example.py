# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "CONTACTS_APP_NAME": "App display name (default: contacts-core).",
    "CONTACTS_LOG_LEVEL": "Console logging level (default: INFO).",
    "CONTACTS_CONSOLE_ENABLED": "Run the maintenance console (true/false, default: true).",
    # Paths (gitignored)
    "CONTACTS_DATA_DIR": "Local data directory (default: .local/contacts).",
    "CONTACTS_DATABASE_PATH": "SQLite path (default: <data_dir>/contacts.sqlite3).",
    "CONTACTS_PHOTO_DIR": "Derived photo directory (default: <data_dir>/photos).",
    # Background work
    "CONTACTS_TASK_SHUTDOWN_TIMEOUT_SECONDS": "Idle time before the maintenance worker exits (default: 60).",
    "CONTACTS_AGGREGATION_DELAY_MS": "Delay used to coalesce aggregation requests (default: 1000).",
    "CONTACTS_MAX_AGGREGATION_DELAY_MS": "Cap on delay from the first request (default: 10000).",
    "CONTACTS_DELAYED_EXECUTION_TIMEOUT_MS": (
        "A request this soon after a pass ended is delayed instead of run now (default: 500)."
    ),
    # Photos
    "CONTACTS_MAX_DISPLAY_PHOTO_DIM": "Longest side of stored display photos (default: 720).",
    "CONTACTS_MAX_THUMBNAIL_DIM": "Longest side of thumbnails (default: 96).",
    # Name matching
    "CONTACTS_NAME_DISTANCE_MAX_LENGTH": "Characters considered by name distance (default: 30).",
    "CONTACTS_NAME_PREFIXES": "Comma-separated name prefixes (Mr, Ms, ...).",
    "CONTACTS_NAME_FAMILY_NAME_PREFIXES": "Comma-separated family-name prefixes (von, st., d', ...).",
    "CONTACTS_NAME_SUFFIXES": "Comma-separated name suffixes (Jr, M.D., ...).",
    "CONTACTS_NAME_CONJUNCTIONS": "Comma-separated conjunctions joining given names (&, and, ...).",
}
