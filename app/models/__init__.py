"""SQLAlchemy ORM models for Story Studio.

All models are exported from this module for convenient imports:
    from app.models import User, Project, UsageRecord, ...

- user.py: User (identity, verification and subscription state)
- project.py: Project (ownership for project-scoped usage)
- usage.py: UsageRecord (append-only token/image ledger)
- verification_token.py: VerificationToken (composite PK)
"""

from app.models.base import Base, TimestampMixin
from app.models.project import Project
from app.models.usage import UsageKind, UsageRecord
from app.models.user import User
from app.models.verification_token import VerificationToken

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "VerificationToken",
    "Project",
    "UsageKind",
    "UsageRecord",
]
