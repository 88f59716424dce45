from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wcag_audit.features.auth.models.user import MagicLinkToken, User
from wcag_audit.features.auth.schemas.auth import TokenResponse
from wcag_audit.features.auth.utils.security import create_access_token, generate_magic_token, hash_token
from wcag_audit.platform.config import settings
from wcag_audit.platform.logger import get_logger

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_or_create_user(self, email: str) -> User:
        email = email.lower()
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user:
            return user

        user = User(email=email)
        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError:
            # Concurrent first login for the same address
            await self.db.rollback()
            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalar_one()

        logger.info(f"Created account for {email}")
        return user

    async def issue_magic_link(self, email: str) -> Tuple[User, str]:
        """Create a single-use login token; returns the user and the raw token to email."""
        user = await self.get_or_create_user(email)
        token = generate_magic_token()

        self.db.add(
            MagicLinkToken(
                user_id=user.id,
                token_hash=hash_token(token),
                expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES),
            )
        )
        await self.db.commit()

        logger.info(f"Issued magic link for user {user.id}")
        return user, token

    async def consume_magic_link(self, token: str) -> TokenResponse:
        result = await self.db.execute(
            select(MagicLinkToken).where(MagicLinkToken.token_hash == hash_token(token))
        )
        magic_link = result.scalar_one_or_none()

        now = datetime.now(timezone.utc)
        if magic_link is None or magic_link.used_at is not None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Lien de connexion invalide ou déjà utilisé",
            )
        if _as_utc(magic_link.expires_at) < now:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Lien de connexion expiré",
            )

        user = await self.get_user_by_id(magic_link.user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

        magic_link.used_at = now
        user.last_login_at = now
        await self.db.commit()

        access_token = create_access_token(data={"sub": str(user.id), "email": user.email})
        logger.info(f"User {user.id} signed in with a magic link")

        return TokenResponse(
            access_token=access_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
