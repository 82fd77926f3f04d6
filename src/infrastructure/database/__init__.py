# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

Example:
    from src.infrastructure.database import get_session

    async with get_session() as session:
        user = await session.get(User, user_id)
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    SessionFactory,
    check_database_connection,
    close_database,
    create_all_tables,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "SessionFactory",
    "check_database_connection",
    "close_database",
    "create_all_tables",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
]
