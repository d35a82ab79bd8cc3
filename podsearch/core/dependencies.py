import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.config import Configs
from podsearch.core.container import Container
from podsearch.core.exceptions import AuthError, PermissionDeniedError
from podsearch.models.orm import User
from podsearch.models.status import UserRole
from podsearch.repository.auth_repo import get_user_by_id
from podsearch.services.clip_service import ClipBuilder
from podsearch.services.job_service import JobService
from podsearch.services.search_service import SearchService
from podsearch.services.storage_service import StorageService
from podsearch.utils.jwt import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_configs(container: Container = Depends(get_container)) -> Configs:
    return container.config()


async def get_db(container: Container = Depends(get_container)) -> AsyncIterator[AsyncSession]:
    async with container.db().session() as session:
        yield session


def get_storage(container: Container = Depends(get_container)) -> StorageService:
    return container.storage()


def get_job_service(container: Container = Depends(get_container)) -> JobService:
    return container.job_service()


def get_clip_builder(container: Container = Depends(get_container)) -> ClipBuilder:
    return container.clip_builder()


def get_search_service(container: Container = Depends(get_container)) -> SearchService:
    return container.search_service()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    cfg: Configs = Depends(get_configs),
) -> User:
    """
    Resolve the bearer token to a stored user.
    """
    if not credentials:
        raise AuthError(detail="Authorization token required")

    try:
        payload = decode_token(credentials.credentials, secret_key=cfg.SECRET_KEY)
    except JWTError as e:
        logger.warning(f"JWT decode error: {str(e)}")
        raise AuthError(detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Token missing 'sub' field")
        raise AuthError(detail="Invalid token")

    user = await get_user_by_id(db, user_id)
    if not user:
        logger.warning(f"User not found for id: {user_id}")
        raise AuthError(detail="Invalid token")

    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError(detail="Access denied. Admin privileges required")
    return current_user
