# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for learner lookup and creation.

Users are created on the first inbound message from an unknown platform
id, starting at level A0 with onboarding enabled.

Example:
    >>> user_service = UserService(get_session)
    >>> user, created = await user_service.get_or_create_by_platform(
    ...     "telegram", "123456", first_name="Ana"
    ... )
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.infrastructure.database.connection import DatabaseError, SessionFactory
from src.infrastructure.database.models import SUPPORTED_PLATFORMS, User

logger = logging.getLogger(__name__)

_PLATFORM_COLUMNS = {
    "telegram": User.telegram_id,
    "whatsapp": User.whatsapp_id,
}


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when a user is not found.

    Attributes:
        user_id: The id that was looked up.
    """

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class UnsupportedPlatformError(UserServiceError):
    """Raised for a platform other than telegram or whatsapp."""

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"Unsupported platform: {platform}")


class UserService:
    """Service for loading and creating learners.

    Attributes:
        _session_factory: Callable returning a transactional session.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by id.

        Returns:
            The user, or None if not found.

        Raises:
            DatabaseError: If the query fails.
        """
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def require(self, user_id: str) -> User:
        """Get a user by id or raise.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_platform_id(self, platform: str, external_id: str) -> Optional[User]:
        """Get a user by their external id on a platform.

        Raises:
            UnsupportedPlatformError: If the platform is not supported.
        """
        column = _PLATFORM_COLUMNS.get(platform)
        if column is None:
            raise UnsupportedPlatformError(platform)

        async with self._session_factory() as session:
            result = await session.execute(select(User).where(column == external_id))
            return result.scalar_one_or_none()

    async def get_or_create_by_platform(
        self,
        platform: str,
        external_id: str,
        first_name: Optional[str] = None,
    ) -> tuple[User, bool]:
        """Resolve the user bound to a platform id, creating one if needed.

        New users start at level A0, onboarding on, step "welcome".

        Args:
            platform: "telegram" or "whatsapp".
            external_id: Chat id or phone number on the platform.
            first_name: Display name reported by the platform.

        Returns:
            Tuple of (user, created).

        Raises:
            UnsupportedPlatformError: If the platform is not supported.
            DatabaseError: If the user cannot be created.
        """
        if platform not in SUPPORTED_PLATFORMS:
            raise UnsupportedPlatformError(platform)

        existing = await self.get_by_platform_id(platform, external_id)
        if existing is not None:
            return existing, False

        user = User(
            first_name=first_name,
            level="A0",
            xp=0,
            streak=0,
            interests=[],
            is_onboarding=True,
            onboarding_step="welcome",
        )
        setattr(user, f"{platform}_id", external_id)

        try:
            async with self._session_factory() as session:
                session.add(user)
                await session.flush()
        except DatabaseError as e:
            # Lost a race with a concurrent first message from the same id
            if isinstance(e.original_error, IntegrityError):
                existing = await self.get_by_platform_id(platform, external_id)
                if existing is not None:
                    return existing, False
            raise

        logger.info("User created: id=%s, platform=%s", user.id, platform)
        return user, True
