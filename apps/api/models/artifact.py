"""Artifact model for persisted AI generation results."""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class ArtifactKind(str, enum.Enum):
    """Closed set of creator operations that produce artifacts."""

    HOOK_ANALYSIS = "hook_analysis"
    CONTENT_IDEA = "content_idea"
    SCRIPT = "script"
    REPURPOSE = "repurpose"
    MONETIZATION = "monetization"
    SPONSORSHIP = "sponsorship"
    THUMBNAIL = "thumbnail"


class Artifact(Base):
    """Stored result of one generation, owned by exactly one user."""

    __tablename__ = "artifacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    kind = Column(
        Enum(
            ArtifactKind,
            name="artifact_kind",
            native_enum=False,
            length=32,
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    input_text = Column(Text, nullable=False)
    result_json = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="artifacts")
