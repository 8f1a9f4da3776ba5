"""
Login, signup, logout and password changes.

An ``AuthService`` is built per request with the caller's session (if any).
Operations return the user / ``True`` on success and ``None`` / ``False`` on
failure, leaving the reason in ``error``.
"""
import logging
from datetime import timedelta
from typing import Optional

from storespark.database import Database, new_id
from storespark.errors import DuplicateEmailError, ErrorKind, ServiceError
from storespark.schemas import NewUser, Role, Session, User, utcnow
from storespark.security import Security
from storespark.validation import validate_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


class AuthService:
    def __init__(self, db: Database, security: Security,
                 current_user: Optional[User] = None, session_id: Optional[str] = None):
        self.db = db
        self.security = security
        self.current_user = current_user
        self.session_id = session_id
        self.error: Optional[ServiceError] = None

    def _fail(self, kind: ErrorKind, message: str):
        self.error = ServiceError(kind=kind, message=message)

    def login(self, email: str, password: str) -> Optional[User]:
        self.error = None
        user = self.db.find_user_by_email(email)
        if not user or not self.security.verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", email)
            self._fail(ErrorKind.AUTHORIZATION, INVALID_CREDENTIALS)
            return None
        self.current_user = user
        logger.info("User %s logged in", user.id)
        return user

    def _create_user(self, data: NewUser, role: Role, duplicate_message: str) -> Optional[User]:
        if self.db.find_user_by_email(data.email):
            self._fail(ErrorKind.DUPLICATE, duplicate_message)
            return None
        user = User(
            id=new_id(),
            name=data.name,
            email=data.email,
            address=data.address,
            role=role,
            password_hash=self.security.hash_password(data.password),
        )
        try:
            self.db.insert_user(user)
        except DuplicateEmailError:
            self._fail(ErrorKind.DUPLICATE, duplicate_message)
            return None
        return user

    def signup(self, data: NewUser) -> Optional[User]:
        """Registers a user (Normal User unless a role is given) and logs them in."""
        self.error = None
        user = self._create_user(data, data.role or Role.USER, "Email already exists.")
        if user is None:
            return None
        self.current_user = user
        logger.info("New signup %s (%s)", user.id, user.role.value)
        return user

    def add_user_by_admin(self, data: NewUser) -> Optional[User]:
        """Creates a user with the requested role; the caller's session is untouched."""
        self.error = None
        user = self._create_user(data, data.role or Role.USER, "Email already exists for new user.")
        if user is not None:
            logger.info("Administrator added user %s (%s)", user.id, user.role.value)
        return user

    def logout(self) -> None:
        if self.session_id:
            self.db.delete_session(self.session_id)
        self.current_user = None
        self.session_id = None

    def update_password(self, old_password: str, new_password: str) -> bool:
        self.error = None
        if self.current_user is None:
            self._fail(ErrorKind.AUTHORIZATION, "No user logged in.")
            return False
        message = validate_password(new_password)
        if message:
            self._fail(ErrorKind.VALIDATION, message)
            return False
        # Re-read so a stale session copy cannot validate an old credential
        stored = self.db.get_user(self.current_user.id)
        if stored is None:
            self._fail(ErrorKind.NOT_FOUND, "User not found.")
            return False
        if not self.security.verify_password(old_password, stored.password_hash):
            self._fail(ErrorKind.FORBIDDEN, "Incorrect old password.")
            return False
        new_hash = self.security.hash_password(new_password)
        self.db.update_password(stored.id, new_hash)
        self.current_user = stored.model_copy(update={"password_hash": new_hash})
        logger.info("Password updated for user %s", stored.id)
        return True

    # Sessions

    def open_session(self) -> Optional[str]:
        """Persists a session for the current user and returns its access token."""
        self.error = None
        if self.current_user is None:
            self._fail(ErrorKind.AUTHORIZATION, "No user logged in.")
            return None
        now = utcnow()
        session = self.db.insert_session(Session(
            id=new_id(),
            user_id=self.current_user.id,
            created_at=now,
            expires_at=now + timedelta(minutes=self.security.expire_minutes),
        ))
        self.session_id = session.id
        return self.security.create_access_token({"sub": self.current_user.id, "sid": session.id})

    def resume(self, token: str) -> Optional[User]:
        """Restores ``current_user`` from an access token issued by ``open_session``."""
        self.error = None
        payload = self.security.decode_access_token(token)
        session = None
        if payload and payload.get("sid"):
            session = self.db.get_session(payload["sid"])
        if session is not None and session.is_expired():
            self.db.delete_session(session.id)
            session = None
        if session is None or session.user_id != payload.get("sub"):
            self._fail(ErrorKind.AUTHORIZATION, "Could not validate credentials")
            return None
        user = self.db.get_user(session.user_id)
        if user is None:
            self._fail(ErrorKind.AUTHORIZATION, "Could not validate credentials")
            return None
        self.current_user = user
        self.session_id = session.id
        return user
