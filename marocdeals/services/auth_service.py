"""
Password hashing, session tokens and account persistence
"""
import jwt
import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from passlib.context import CryptContext

from marocdeals.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from marocdeals.db.transactions import atomic_transaction
from marocdeals.models.user_model import User
from marocdeals.services.errors import AlreadyExists

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = expire
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str):
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])

def create_session_token(user: User) -> str:
    return create_access_token(data={"id": user.id, "sub": user.email, "username": user.username})


def find_account(db: Session, email: str) -> User | None:
    return db.query(User).filter_by(email=email).first()


@atomic_transaction
def register_account(db: Session, email: str, username: str, password: str) -> User:
    """
    Persist a verified account.

    Args:
        db: Database session
        email: Account email, unique
        username: Display name
        password: Plain password, stored as a bcrypt hash

    Returns:
        User: Created user object

    Raises:
        AlreadyExists: If the email is already registered
    """
    if find_account(db, email):
        raise AlreadyExists()

    db_user = User(
        username=username,
        email=email,
        password=get_password_hash(password),
        is_verified=True,
    )
    db.add(db_user)
    try:
        # Flush to surface a concurrent duplicate before the decorator commits
        db.flush()
    except IntegrityError as e:
        raise AlreadyExists() from e
    db.refresh(db_user)

    logger.info(f"Account created: {email}")
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Read-only: the user when the password matches, None otherwise."""
    user = find_account(db, email)
    if not user:
        return None
    if not verify_password(password, user.password):
        return None
    return user
