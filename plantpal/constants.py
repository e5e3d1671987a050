"""
Shared constants used across the application.

This module contains constants that need to be consistent across the
client sync layer, the local store and the mock API server.
"""

# Local storage keys (one JSON-serialized list per collection)
PLANTS_KEY = "plantpal_plants"
GROWTH_LOGS_KEY = "plantpal_growth_logs"
CARE_NOTES_KEY = "plantpal_care_notes"

# REST endpoints, relative to the configured base URL
PLANTS_ENDPOINT = "/plants"
GROWTH_LOGS_ENDPOINT = "/growth-logs"
CARE_NOTES_ENDPOINT = "/care-notes"
HEALTH_ENDPOINT = "/health"

