import json
from datetime import timedelta
from typing import Optional

import jwt

from swasthya.core.config import settings
from swasthya.core.utils import utcnow

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = utcnow() + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

async def issue_session_token(subject_id: str, token_type: str) -> str:
    """
    Create an access token and register it in Redis. A token is only
    honoured while its Redis entry exists, so deleting the entry revokes it.
    """
    from swasthya.core.redis import redis_client

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": subject_id, "type": token_type}, expires_delta=expires
    )
    token_data = {"user_id": subject_id, "type": token_type}
    await redis_client.set_token(
        access_token,
        json.dumps(token_data),
        settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
    return access_token
