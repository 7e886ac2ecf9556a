"""
User accounts: registration, credential checks and profile updates.
"""
import uuid
from typing import List, Optional

from passlib.context import CryptContext

from .auth import current_identity, get_username
from .config import config
from .errors import NotFound, Unauthenticated, ValidationError
from .logging import logger
from .models import Identity, Role, User
from .policy import Operation, decide, require_identity
from .schemas import RegisterRequest, UpdateProfileRequest
from .store import EntityStore


def basic_username_check(username: str):
    """Sanity check for potential usernames.

    Returns:
        tuple: (True, "") if valid, (False, msg) otherwise.
    """
    if len(username) < 3:
        return False, "Username too short, should be at least 3 chars"
    if any(c.isspace() for c in username):
        return False, "Username should not contain whitespace"
    return True, ""


class UserManager:
    """Registers users, verifies credentials and serves profile reads and updates."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    def create_password_hash(self, password: str) -> str:
        return self.ctx.hash(password)

    def generate_candidate_id(self) -> str:
        return f"{config.CANDIDATE_ID_PREFIX}{uuid.uuid4().hex[:6].upper()}"

    def register(self, request: RegisterRequest, caller: Optional[Identity] = None,
                 subject: Optional[str] = None) -> User:
        """
        Create an account.

        Anyone may register a candidate; only an admin may create another admin.
        Candidates without a candidate id get a generated one.

        Args:
            request: validated registration body
            caller: resolved identity of the caller, if signed in
            subject: the caller's token subject. A signed-in, non-admin caller
                with no record yet is completing their own sign-up, and the new
                record is keyed by this subject so later requests resolve to it.
        """
        if request.role == Role.ADMIN:
            decide(caller, Operation.REGISTER_ADMIN)

        ok, msg = basic_username_check(request.username)
        if not ok:
            raise ValidationError(msg, field='username')

        candidate_id = request.candidate_id
        if request.role == Role.CANDIDATE and not candidate_id:
            candidate_id = self.generate_candidate_id()

        # Self sign-up: keyed by the identity provider's subject
        keys = {}
        if (subject and caller is not None and caller.id == subject and not caller.is_admin
                and self.store.get_user(subject) is None):
            keys['id'] = subject

        user = User(
            **keys,
            username=request.username,
            password_hash=self.create_password_hash(request.password),
            role=request.role,
            candidate_id=candidate_id,
            full_name=request.full_name,
            mobile_number=request.mobile_number,
            date_of_birth=request.date_of_birth,
            profile_photo=request.profile_photo,
        )
        user = self.store.insert_user(user)
        logger.info(f"Registered {user.role} {user.username} as {user.id}")
        return user

    def authenticate(self, username: str, password: str) -> User:
        """Check a username/password pair and return the matching user."""
        user = self.store.get_user_by_username(username)
        if user is None or not self.ctx.verify(password, user.password_hash):
            logger.info(f"Failed login for {username}")
            raise Unauthenticated("Invalid credentials")
        return user

    def identify(self, event: dict) -> Optional[Identity]:
        """
        Resolve the caller's token claims to a stored user.

        Records created by self sign-up are keyed by the token subject; others
        (e.g. accounts an admin registered) are found through the username
        claim. The stored role takes precedence over group membership. A caller
        with no record keeps the claims-only identity.
        """
        claimed = current_identity(event)
        if claimed is None:
            return None
        user = self.store.get_user(claimed.id)
        if user is None:
            username = get_username(event)
            user = self.store.get_user_by_username(username) if username else None
        if user is None:
            return claimed
        return Identity(id=user.id, role=user.role)

    def current(self, identity: Optional[Identity]) -> User:
        identity = require_identity(identity)
        user = self.store.get_user(identity.id)
        if user is None:
            raise Unauthenticated("Unknown user")
        return user

    def list(self, identity: Optional[Identity], role: Optional[str] = None) -> List[User]:
        decide(identity, Operation.LIST_USERS)
        if role is not None and role not in Role.ALL:
            raise ValidationError(f"Unknown role {role}", field='role')
        return self.store.list_users(role)

    def get(self, identity: Optional[Identity], user_id: str) -> User:
        decide(identity, Operation.GET_USER, user_id)
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    def update_profile(self, identity: Optional[Identity], user_id: str,
                       patch: UpdateProfileRequest) -> User:
        decide(identity, Operation.UPDATE_USER, user_id)
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        user = self.store.update_user(user.model_copy(update=patch.provided()))
        logger.info(f"Updated profile of {user_id}")
        return user
