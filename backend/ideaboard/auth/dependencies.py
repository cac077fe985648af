"""
FastAPI dependencies for authentication.
Provides get_current_user dependency that verifies Firebase JWT tokens.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.database import get_db
from ideaboard.models.profile import UserProfile
from ideaboard.auth.firebase import verify_firebase_token

logger = logging.getLogger(__name__)

# HTTPBearer scheme for extracting Authorization header
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> UserProfile:
    """
    FastAPI dependency that verifies Firebase JWT token and returns the profile.

    Flow:
    1. Extract Bearer token from Authorization header
    2. Verify token with Firebase Admin SDK
    3. Lookup profile by Firebase uid
    4. Create the profile on first request (free plan, no usage yet)

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded_token = verify_firebase_token(token)
    except ValueError as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = decoded_token.get("uid")
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing uid"
        )

    profile = await db.get(UserProfile, uid)

    if not profile:
        profile = UserProfile(
            id=uid,
            email=decoded_token.get("email"),
            full_name=decoded_token.get("name"),
            generation_count=0,
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info(f"Created profile for user {uid}")

    return profile
