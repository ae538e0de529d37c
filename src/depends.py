from functools import lru_cache
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.demo_gateway import DemoPaymentGateway
from src.adapter.services.hitpay_gateway import HitPayGateway
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.payment_gateway import IPaymentGateway
from src.app.services.read_cache import ReadThroughCache

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()

CUSTOMER_ROLE = "customer"


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_payment_gateway() -> IPaymentGateway:
    """Process-wide payment gateway selected by PAYMENT_GATEWAY_BACKEND"""
    redirect_url = f"{ApplicationConfig.FRONTEND_URL}/membership/success"
    if ApplicationConfig.PAYMENT_GATEWAY_BACKEND == "hitpay":
        return HitPayGateway(
            base_url=ApplicationConfig.HITPAY_BASE_URL,
            api_key=ApplicationConfig.HITPAY_API_KEY,
            salt=ApplicationConfig.HITPAY_SALT,
            redirect_url=redirect_url,
            webhook_url=ApplicationConfig.WEBHOOK_URL or None,
            timeout=ApplicationConfig.PAYMENT_GATEWAY_TIMEOUT,
            max_attempts=ApplicationConfig.PAYMENT_GATEWAY_MAX_ATTEMPTS,
        )
    return DemoPaymentGateway(
        frontend_url=ApplicationConfig.FRONTEND_URL,
        salt=ApplicationConfig.HITPAY_SALT,
    )


@lru_cache
def get_read_cache() -> ReadThroughCache:
    """Process-wide read-through cache for tiers and current memberships"""
    return ReadThroughCache(
        maxsize=ApplicationConfig.CACHE_MAXSIZE,
        ttl=ApplicationConfig.CACHE_TTL_SECONDS,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id and role

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


async def get_current_customer(current_user: dict = Depends(get_current_user)) -> dict:
    """Only customers can access membership features"""
    if current_user.get("role") != CUSTOMER_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Customer role required",
        )

    try:
        current_user["customer_id"] = UUID(str(current_user.get("user_id")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )
    return current_user
