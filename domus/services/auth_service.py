"""
Registration, login and password recovery.
"""

import logging
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from domus.core.config import settings
from domus.core.exceptions import NotFound, Unauthorized
from domus.models.user import User
from domus.schemas.user import AuthUser, TokenResponse
from domus.services.user_service import UserService
from domus.utils.auth import (
    create_access_token, create_recovery_token, get_password_hash,
    recovery_codec, verify_password,
)
from domus.utils.email import EmailSender

logger = logging.getLogger(__name__)

RECOVERY_SENT_MESSAGE = "If the email is registered, a recovery link has been sent"


class AuthService:
    def __init__(self, db: Session, email_sender: EmailSender):
        self.db = db
        self.users = UserService(db)
        self.email_sender = email_sender

    def register(self, email: str, password: str) -> User:
        return self.users.create(email, password)

    def login(self, email: str, password: str) -> TokenResponse:
        user = self.users.find_by_email(email)
        active = user is not None and not user.is_deleted

        # verify_password runs a dummy hash when there is no account
        if not verify_password(password, user.password_hash if active else None) or not active:
            logger.info("Failed login attempt")
            raise Unauthorized("Incorrect email or password")

        roles = user.role_names
        access_token = create_access_token(user.id, user.email, roles)
        return TokenResponse(
            access_token=access_token,
            user=AuthUser(id=user.id, email=user.email, roles=roles),
        )

    async def forgot_password(self, email: str) -> str:
        user = self.users.find_by_email(email)
        if user is None or user.is_deleted:
            if settings.FORGOT_PASSWORD_REVEALS_UNKNOWN_EMAIL:
                raise NotFound("User not found")
            logger.info("Password recovery requested for an unknown email")
            return RECOVERY_SENT_MESSAGE

        token = create_recovery_token(user.id, user.email)
        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/recovery-password?{urlencode({'token': token})}"
        await self.email_sender.send_password_recovery(user.email, reset_url)
        logger.info(f"Password recovery link issued for user {user.id}")
        return RECOVERY_SENT_MESSAGE

    def reset_password(self, token: str, password: str) -> str:
        claims = recovery_codec.verify(token)
        user = self.users.find(claims["sub"])
        if user is None:
            raise NotFound("User not found")

        user.password_hash = get_password_hash(password)
        self.db.commit()
        logger.info(f"Password reset for user {user.id}")
        return "Password updated successfully"
