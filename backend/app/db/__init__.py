"""
Database module for UniPortal

Contains seed data and database utilities.
"""
from app.db.seed_data import seed_all, seed_defaults, clear_all

__all__ = ["seed_all", "seed_defaults", "clear_all"]
