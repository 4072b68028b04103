"""User model."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


USER_ROLES = ("user", "admin")
MAX_OPEN_ID_LENGTH = 64


class User(Base):
    """Identity anchor keyed by the external open identity."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    open_id = Column(String(MAX_OPEN_ID_LENGTH), unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    email = Column(String(320), nullable=True)
    login_method = Column(String(64), nullable=True)
    role = Column(String(16), nullable=False, default="user", server_default="user")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_signed_in = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    artifacts = relationship("Artifact", back_populates="user", cascade="all, delete-orphan")
