"""Infrastructure Layer — database access, the SQL ledger, and logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - SQLAlchemy failures surface as DependencyError, never as raw driver errors
"""
