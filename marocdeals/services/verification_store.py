"""
In-memory store of pending email verification codes.

One code per identity (email). Codes expire after a fixed TTL and tolerate a
bounded number of wrong submissions. State lives for the lifetime of the
process only; a multi-instance deployment needs a shared backing store.
"""
import secrets
import threading
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from marocdeals.core.config import VERIFICATION_CODE_TTL_MINUTES, VERIFICATION_MAX_ATTEMPTS
from marocdeals.services.errors import CodeExpired, CodeMismatch, CodeNotFound, TooManyAttempts

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    # uniform over [100000, 999999]
    return str(100000 + secrets.randbelow(900000))


@dataclass
class PendingVerification:
    code: str
    expires_at: datetime
    attempts: int = 0


class VerificationStore:
    """
    Holds one short-lived verification code per identity.

    Args:
        clock: callable returning the current aware datetime
        ttl: validity window of an issued code
        max_attempts: wrong submissions tolerated before the code is revoked
        code_factory: callable producing a fresh code
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        ttl: timedelta = timedelta(minutes=VERIFICATION_CODE_TTL_MINUTES),
        max_attempts: int = VERIFICATION_MAX_ATTEMPTS,
        code_factory: Callable[[], str] = generate_code,
    ):
        self._clock = clock
        self._ttl = ttl
        self._max_attempts = max_attempts
        self._code_factory = code_factory
        self._entries: Dict[str, PendingVerification] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def now(self) -> datetime:
        return self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def pending(self, identity: str) -> Optional[PendingVerification]:
        with self._lock:
            entry = self._entries.get(identity)
            return replace(entry) if entry is not None else None

    def issue(self, identity: str) -> str:
        """Generate a fresh code for ``identity``, replacing any previous one."""
        code = self._code_factory()
        with self._lock:
            self._entries[identity] = PendingVerification(
                code=code,
                expires_at=self._clock() + self._ttl,
            )
        logger.info(f"Verification code issued for: {identity}")
        return code

    def check(self, identity: str, submitted_code: str) -> None:
        """
        Validate ``submitted_code`` against the pending code of ``identity``.

        Returns None on success and removes the entry. Raises CodeNotFound,
        CodeExpired, TooManyAttempts or CodeMismatch otherwise; only a mismatch
        keeps the entry around for another try.
        """
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None:
                raise CodeNotFound()

            # Expiry wins over everything else, even a correct code
            if self._clock() > entry.expires_at:
                del self._entries[identity]
                logger.warning(f"Expired verification code for: {identity}")
                raise CodeExpired()

            if entry.attempts >= self._max_attempts:
                del self._entries[identity]
                logger.warning(f"Too many verification attempts for: {identity}")
                raise TooManyAttempts()

            if not secrets.compare_digest(entry.code.encode(), submitted_code.encode()):
                entry.attempts += 1
                logger.warning(f"Wrong verification code for: {identity} (attempt {entry.attempts}/{self._max_attempts})")
                raise CodeMismatch()

            del self._entries[identity]

        logger.info(f"Verification code validated and deleted for: {identity}")

    def sweep_expired(self) -> int:
        """Drop every entry whose expiry has passed. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [identity for identity, entry in self._entries.items() if now > entry.expires_at]
            for identity in expired:
                del self._entries[identity]
        if expired:
            logger.info(f"Swept {len(expired)} expired verification code(s)")
        return len(expired)
