import sys
import os
from datetime import datetime, timedelta, timezone
# Make 'marocdeals' importable when running pytest from a source checkout
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marocdeals.models.base import Base
from marocdeals.services.account_repository import SqlAlchemyAccountRepository
from marocdeals.services.auth_flow import AuthFlow
from marocdeals.services.verification_store import VerificationStore


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSender:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send_code(self, identity, code):
        if self.fail:
            raise ConnectionError("SMTP unavailable")
        self.sent.append((identity, code))

    def last_code(self, identity):
        return [code for sent_to, code in self.sent if sent_to == identity][-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return VerificationStore(clock=clock)


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def failing_sender():
    return FakeSender(fail=True)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def accounts(session_factory):
    return SqlAlchemyAccountRepository(session_factory)


@pytest.fixture
def flow(store, sender, accounts):
    return AuthFlow(store=store, sender=sender, accounts=accounts)
