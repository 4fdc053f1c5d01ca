"""Database package - all database-related code."""
from dinobot.db.connection import init_db, get_db_session, session_scope, close_db
from dinobot.db.models import Base, BotRegistrationModel

__all__ = [
    "init_db",
    "get_db_session",
    "session_scope",
    "close_db",
    "Base",
    "BotRegistrationModel",
]
