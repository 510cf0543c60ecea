#!/usr/bin/env python3
"""
Create the meal-plan tables in the database named by DATABASE_URL.

Existing tables are left untouched, so the script is safe to run repeatedly.

Usage:
    DATABASE_URL=sqlite:///meal_tracker.db python init_db.py
"""

import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError

from app import config
from app.database import engine, init_database
from app.logging_config import configure_logging


def main():
    """Create all tables and report the outcome."""
    configure_logging(config.LOG_LEVEL)

    print("=" * 60)
    print("Database Initialization")
    print("=" * 60)
    print(f"Target: {engine.url.render_as_string(hide_password=True)}")

    try:
        init_database(engine)
    except SQLAlchemyError as e:
        print(f"Error: Failed to create tables: {e}")
        sys.exit(1)

    print("✓ Tables created")


if __name__ == "__main__":
    main()
