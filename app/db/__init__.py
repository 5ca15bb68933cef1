"""Persistence layer: engine, session factory, declarative base and lifecycle hooks."""

from .session import AsyncSessionLocal, Base, close_db, engine, get_db, init_db

__all__ = ["AsyncSessionLocal", "Base", "close_db", "engine", "get_db", "init_db"]
