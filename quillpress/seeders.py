import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quillpress.core.settings import Settings
from quillpress.models.users import User
from quillpress.services.account_service import UserService
from quillpress.utils.accounts import get_password_hash

logger = logging.getLogger(__name__)


async def register_super_admin(db: AsyncSession, settings: Settings) -> Optional[User]:
    """username 또는 email 이 같은 사용자가 없을 때만 super admin 을 만든다.

    seed 값은 Settings 에서만 받는다. 값이 비어 있으면 아무것도 하지 않는다.
    """
    if not settings.super_admin_configured:
        logger.info("super admin seed skipped: credentials not configured")
        return None

    user_service = UserService(db)
    existing = await user_service.get_user_by_username_or_email(settings.SUPER_ADMIN_USERNAME,
                                                                settings.SUPER_ADMIN_EMAIL)
    if existing is not None:
        return existing

    admin, created = await user_service.find_or_create_by_email(
        settings.SUPER_ADMIN_EMAIL,
        username=settings.SUPER_ADMIN_USERNAME,
        name=settings.SUPER_ADMIN_NAME,
        password=await get_password_hash(settings.SUPER_ADMIN_PASSWORD),
        role=settings.SUPER_ADMIN_ROLE,
    )
    if created:
        logger.info("super admin registered: %s", admin.username)
    return admin
