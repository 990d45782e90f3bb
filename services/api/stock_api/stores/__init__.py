"""Data stores for persistence and locking.

Stores handle:
- PostgreSQL: DB session, availability records, product flags
- Redis: sweep lock

No orchestration logic in stores - that belongs in services.
"""
