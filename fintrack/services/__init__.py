"""Services for bill settlement, expense allocation and reporting."""

from fintrack.services.db import SessionLocal, engine, get_db

__all__ = ["engine", "SessionLocal", "get_db"]
