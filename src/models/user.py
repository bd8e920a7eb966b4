"""User model."""

from sqlalchemy import Column, Integer, String, Text

from src.database import Base
from src.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User account, including the single refresh token currently in force."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    age = Column(Integer, nullable=True)
    # Overwritten on every login/refresh, cleared on logout
    refresh_token = Column(Text, nullable=True)
