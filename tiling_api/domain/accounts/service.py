"""Account service - exchanges a Google ID token for a local session"""

import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import verify_google_id_token
from ...config import ADMIN_EMAILS
from ...models import User
from ...security_utils import issue_session_token
from .repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "USER"
ADMIN_ROLE = "ADMIN"


class AccountService:
    """Service layer for sign-in"""

    def __init__(
        self,
        db: Session,
        verifier: Callable[[str], Awaitable[dict]] = verify_google_id_token,
        admin_emails: Optional[list[str]] = None,
    ):
        self.db = db
        self.repo = UserRepository()
        self.verifier = verifier
        self.admin_emails = admin_emails if admin_emails is not None else ADMIN_EMAILS

    async def sign_in_with_google(self, id_token: str) -> tuple[str, User]:
        """Verify the ID token, find or create the user, and issue a session token"""
        identity = await self.verifier(id_token)
        user = self.find_or_create_user(identity)
        token = issue_session_token(user.id, user.email, user.name)
        logger.info(f"✅ User authenticated successfully: {user.email}")
        return token, user

    def find_or_create_user(self, identity: dict) -> User:
        email = identity["email"].strip().lower()
        is_admin = email in self.admin_emails

        user = self.repo.get_by_email(self.db, email)
        if user:
            updated = False
            for attr, key in (("name", "name"), ("picture_url", "picture"), ("locale", "locale")):
                if getattr(user, attr) != identity.get(key):
                    setattr(user, attr, identity.get(key))
                    updated = True
            if is_admin and user.role != ADMIN_ROLE:
                user.role = ADMIN_ROLE
                updated = True
            if updated:
                self.db.commit()
                logger.debug(f"Updated user info for: {email}")
            return user

        logger.info(f"🆕 Creating new user: {email}")
        try:
            user = self.repo.create(
                self.db,
                email=email,
                name=identity.get("name"),
                picture_url=identity.get("picture"),
                locale=identity.get("locale"),
                role=ADMIN_ROLE if is_admin else DEFAULT_ROLE,
            )
            self.db.commit()
        except IntegrityError:
            # Another request created the same email first
            self.db.rollback()
            user = self.repo.get_by_email(self.db, email)
            if user is None:
                raise
        return user
