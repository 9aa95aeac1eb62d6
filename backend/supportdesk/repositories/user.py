"""Users looked up by login email."""

from __future__ import annotations

from sqlalchemy import select

from supportdesk.models.user import User
from supportdesk.repositories.base import BaseRepository


def _email_key(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Persistence for :class:`User`; credentials and sessions live elsewhere."""

    model = User

    def get_by_email(self, email: str) -> User | None:
        """The user registered under ``email`` (compared case-insensitively)."""
        return self.find_one(email=_email_key(email))

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == _email_key(email)).limit(1)
        return self.session.execute(stmt).first() is not None
