"""
Database layer — checkpoint store and investor directory.

SQLite by default via Database(url); any SQLAlchemy URL (e.g. PostgreSQL) works.
"""

from payment_tracker.database.checkpoints import CheckpointStore, SqlCheckpointStore
from payment_tracker.database.connection import Database
from payment_tracker.database.investors import InvestorDirectory, SqlInvestorDirectory
from payment_tracker.database.models import Base, Checkpoint, InvestorAddress

__all__ = [
    "Base",
    "Checkpoint",
    "CheckpointStore",
    "Database",
    "InvestorAddress",
    "InvestorDirectory",
    "SqlCheckpointStore",
    "SqlInvestorDirectory",
]
