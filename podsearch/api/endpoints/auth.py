import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.core.config import Configs
from podsearch.core.dependencies import get_configs, get_current_admin, get_db
from podsearch.core.exceptions import AuthError, UpstreamError, ValidationError
from podsearch.models.orm import User
from podsearch.repository.auth_repo import (
    create_user_with_password,
    get_user_by_email,
    verify_user_password,
)
from podsearch.schemas.auth_schema import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from podsearch.utils.jwt import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("[REGISTER] email=%s", payload.email)

    try:
        existing = await get_user_by_email(db, payload.email)
        if existing:
            raise ValidationError(detail="User already exists")

        user = await create_user_with_password(
            db=db,
            email=payload.email,
            password=payload.password,
        )
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))
    except Exception as e:
        logger.error(f"[REGISTER] Registration error: {str(e)}")
        raise HTTPException(status_code=500, detail="Registration failed")

    return RegisterResponse(
        message="User registered successfully",
        user=UserInfo.model_validate(user),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    cfg: Configs = Depends(get_configs),
):
    """
    Login endpoint - authenticate user and return a JWT token
    """
    try:
        user = await verify_user_password(db, payload.email, payload.password)
    except SQLAlchemyError as e:
        raise UpstreamError(detail=str(e))

    if not user:
        raise AuthError(detail="Invalid credentials")

    token = create_access_token(
        str(user.id),
        email=user.email,
        role=user.role.value,
        expires_delta=timedelta(minutes=cfg.ACCESS_TOKEN_EXPIRE_MINUTES),
        secret_key=cfg.SECRET_KEY,
    )

    return LoginResponse(token=token, user=UserInfo.model_validate(user))


@router.get("/me", response_model=UserInfo)
async def get_current_user_info(current_user: User = Depends(get_current_admin)):
    return UserInfo.model_validate(current_user)
