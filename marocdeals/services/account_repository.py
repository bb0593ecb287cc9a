from typing import Callable, Protocol

from sqlalchemy.orm import Session

from marocdeals.models.user_model import User
from marocdeals.services.auth_service import authenticate_user, register_account


class AccountRepository(Protocol):
    def create(self, email: str, username: str, password: str) -> User:
        """Persist a verified account; raise AlreadyExists on a duplicate email."""

    def authenticate(self, email: str, password: str) -> User | None:
        ...


class SqlAlchemyAccountRepository:
    """Accounts table accessed through one short-lived session per call."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def create(self, email: str, username: str, password: str) -> User:
        db = self._session_factory()
        try:
            user = register_account(db, email, username, password)
            db.refresh(user)
            db.expunge(user)
            return user
        finally:
            db.close()

    def authenticate(self, email: str, password: str) -> User | None:
        db = self._session_factory()
        try:
            user = authenticate_user(db, email, password)
            if user is not None:
                db.expunge(user)
            return user
        finally:
            db.close()
