"""
SQLAlchemy ORM models for database tables.

One table: feed bot registrations, keyed by the GroupMe bot ID.
"""
from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class BotRegistrationModel(Base):
    """
    Feed bot registrations.

    Each row is one bot posting search results for ``search_term`` into
    ``group_id``. ``most_recent_item_id`` is the search cursor.
    """
    __tablename__ = "bot_registrations"

    bot_id = Column(String(50), primary_key=True)  # GroupMe bot ID
    user_id = Column(String(50), nullable=False)  # GroupMe user who created the bot
    group_id = Column(String(50), nullable=False)  # Group the bot posts into
    search_term = Column(String(500), nullable=False)
    most_recent_item_id = Column(String(50), nullable=True)  # Newest relayed tweet ID
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_bot_registrations_user_id', 'user_id'),
    )
