"""Retail data slice: tenant-owned records and read-only stores."""

# Import models to register with SQLAlchemy metadata
from app.features.retail import models  # noqa: F401
from app.features.retail.stores import RetailStore, SqlRetailStore

__all__ = ["RetailStore", "SqlRetailStore", "models"]
