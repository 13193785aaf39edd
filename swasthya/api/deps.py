import json
from typing import AsyncGenerator
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from swasthya.core.config import settings
from swasthya.core.redis import redis_client
from swasthya.core.security import decode_access_token
from swasthya.db.models import Doctor, Worker
from swasthya.db.session import async_session, get_session
from swasthya.services.ai_service import AIService
from swasthya.services.storage_service import StorageService
from swasthya.services.sync_service import SyncService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/doctors/login")

async def get_token_data(token: str = Depends(oauth2_scheme)) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        if payload.get("sub") is None:
            raise credentials_exception
    except PyJWTError:
        raise credentials_exception

    # Tokens removed from Redis (logout) are no longer honoured
    stored = await redis_client.get_token(token)
    if stored is None:
        raise credentials_exception
    token_data = json.loads(stored)
    token_data["token"] = token
    return token_data

def _subject_id(token_data: dict, expected_type: str) -> UUID:
    if token_data.get("type") != expected_type:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this account type")
    try:
        return UUID(token_data["user_id"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")

async def get_current_doctor(
    token_data: dict = Depends(get_token_data),
    session: AsyncSession = Depends(get_session)
) -> Doctor:
    doctor = await session.get(Doctor, _subject_id(token_data, "doctor"))
    if doctor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return doctor

async def get_current_worker(
    token_data: dict = Depends(get_token_data),
    session: AsyncSession = Depends(get_session)
) -> Worker:
    worker = await session.get(Worker, _subject_id(token_data, "worker"))
    if worker is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return worker

def get_storage_service() -> StorageService:
    return StorageService()

def get_sync_service() -> SyncService:
    return SyncService(async_session)

async def get_ai_service(
    storage: StorageService = Depends(get_storage_service)
) -> AsyncGenerator[AIService, None]:
    service = AIService(storage)
    try:
        yield service
    finally:
        await service.close()
