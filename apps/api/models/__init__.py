"""Models package."""

from .user import User
from .artifact import Artifact, ArtifactKind
