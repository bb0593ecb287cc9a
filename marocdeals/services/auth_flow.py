"""
Signup and login flow built on email verification codes.

Each identity moves through AWAITING_CODE -> AWAITING_VERIFICATION -> VERIFIED.
A fatal verification failure (expired, exhausted or missing code) sends it back
to AWAITING_CODE; the caller must request a new code. Account creation is only
allowed from VERIFIED and consumes that state.
"""
import enum
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Tuple

from marocdeals.models.user_model import User
from marocdeals.services.account_repository import AccountRepository
from marocdeals.services.auth_service import create_session_token
from marocdeals.services.email_service import CodeSender
from marocdeals.services.errors import (
    AccountNotVerified,
    CodeMismatch,
    DeliveryFailed,
    InvalidCredentials,
    NotVerified,
    VerificationError,
)
from marocdeals.services.verification_store import VerificationStore

logger = logging.getLogger(__name__)


class FlowState(str, enum.Enum):
    AWAITING_CODE = "awaiting_code"
    AWAITING_VERIFICATION = "awaiting_verification"
    VERIFIED = "verified"


@dataclass
class LoginSession:
    user: User
    token: str


class AuthFlow:
    def __init__(
        self,
        store: VerificationStore,
        sender: CodeSender,
        accounts: AccountRepository,
        token_factory=create_session_token,
    ):
        self.store = store
        self._sender = sender
        self._accounts = accounts
        self._token_factory = token_factory
        # identity -> (state, time of the transition)
        self._states: Dict[str, Tuple[FlowState, datetime]] = {}
        self._lock = threading.Lock()

    def state(self, identity: str) -> FlowState:
        """Current state; anything older than the code TTL reads as AWAITING_CODE."""
        with self._lock:
            entry = self._states.get(identity)
        if entry is None or entry[1] < self.store.now() - self.store.ttl:
            return FlowState.AWAITING_CODE
        return entry[0]

    def _set_state(self, identity: str, state: FlowState) -> None:
        # caller holds self._lock
        if state is FlowState.AWAITING_CODE:
            self._states.pop(identity, None)
        else:
            self._states[identity] = (state, self.store.now())

    async def request_code(self, identity: str) -> None:
        """
        Issue a code and deliver it.

        The code is stored before delivery is attempted and stays stored if
        delivery fails; DeliveryFailed is raised in that case.
        """
        with self._lock:
            code = self.store.issue(identity)
            self._set_state(identity, FlowState.AWAITING_VERIFICATION)
        try:
            await self._sender.send_code(identity, code)
        except Exception as e:
            logger.error(f"Error sending verification code to {identity}: {e}")
            raise DeliveryFailed() from e

    def submit_code(self, identity: str, code: str) -> None:
        # check and transition together so a concurrent request_code is not overwritten
        with self._lock:
            try:
                self.store.check(identity, code)
            except CodeMismatch:
                raise
            except VerificationError:
                self._set_state(identity, FlowState.AWAITING_CODE)
                raise
            self._set_state(identity, FlowState.VERIFIED)

    def create_account(self, identity: str, username: str, password: str) -> LoginSession:
        """
        Persist the account of a verified identity and open a session for it.

        Raises:
            NotVerified: the identity has not passed code verification
            AlreadyExists: the email is already registered
        """
        if self.state(identity) is not FlowState.VERIFIED:
            raise NotVerified()

        user = self._accounts.create(identity, username, password)
        with self._lock:
            self._set_state(identity, FlowState.AWAITING_CODE)
        return LoginSession(user=user, token=self._token_factory(user))

    def login(self, identity: str, password: str) -> LoginSession:
        user = self._accounts.authenticate(identity, password)
        if user is None:
            raise InvalidCredentials()
        if not user.is_verified:
            raise AccountNotVerified()
        logger.info(f"Login: {identity}")
        return LoginSession(user=user, token=self._token_factory(user))

    def sweep(self) -> int:
        """Evict expired codes and flow states older than the code TTL."""
        removed = self.store.sweep_expired()
        cutoff = self.store.now() - self.store.ttl
        with self._lock:
            stale = [identity for identity, (_, since) in self._states.items() if since < cutoff]
            for identity in stale:
                del self._states[identity]
        return removed + len(stale)
