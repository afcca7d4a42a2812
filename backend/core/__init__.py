"""Core infrastructure for the postcode layer cache backend.

Configuration, logging, database, typed errors, and FastAPI dependency helpers
used by the application entrypoint, the hydration pipeline, and the sync job.
"""
