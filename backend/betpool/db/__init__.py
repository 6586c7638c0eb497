"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - All ORM models share one Base (db/base.py)
"""
