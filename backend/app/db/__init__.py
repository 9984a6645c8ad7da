# backend/app/db/__init__.py

"""
Persistence layer: engine and session factory, ORM models, request schemas.
"""

from app.db.database import Base, SessionLocal, engine, get_db, init_db

__all__ = ["Base", "SessionLocal", "engine", "get_db", "init_db"]
