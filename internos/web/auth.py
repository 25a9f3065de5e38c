"""
Authentication routes: register and login.

Both are rate limited per client IP.
"""

import logging

from fastapi import APIRouter, Request, Response

from config import settings
from ..middleware.slowapi_limiter import limiter
from ..models.api_validation import RegisterRequest, LoginRequest
from ..services.auth import get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register")
@limiter.limit(settings.auth_rate_limit)
async def register(request: Request, response: Response, data: RegisterRequest):
    """Create an account. 409 if the email is taken."""
    user = await get_auth_service().register(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        role=data.role,
    )
    return {
        "message": "User registered successfully!",
        "id": user.id,
        "role": user.role,
    }


@router.post("/login")
@limiter.limit(settings.auth_rate_limit)
async def login(request: Request, response: Response, data: LoginRequest):
    """Exchange credentials for a bearer token."""
    result = await get_auth_service().login(data.email, data.password)
    return {
        "id": result["id"],
        "token": result["token"],
        "fullName": result["full_name"],
        "role": result["role"],
    }
