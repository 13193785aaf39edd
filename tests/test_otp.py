import asyncio
import logging
from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from swasthya.core.config import settings
from swasthya.core.utils import utcnow
from swasthya.db.models import Worker, WorkerOTP
from swasthya.schemas.worker import OTPRequest, OTPVerify, WorkerRegister
from swasthya.services.otp_service import OTPService
from swasthya.services.worker_service import WorkerService


async def test_request_otp_for_registered_number(client, registered_worker):
    response = await client.post("/api/v1/workers/otp/request", json={"mobileNumber": "9876543210"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["otp"]) == 6 and data["otp"].isdigit()


async def test_request_otp_for_unregistered_number(client):
    response = await client.post("/api/v1/workers/otp/request", json={"mobile_number": "9000000000"})
    assert response.status_code == 404
    assert "register first" in response.json()["detail"]


async def test_request_otp_requires_mobile_number(client):
    response = await client.post("/api/v1/workers/otp/request", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "Mobile number is required"


async def test_otp_not_echoed_outside_dev(client, registered_worker, monkeypatch):
    monkeypatch.setattr(settings, "OTP_DEV_ECHO", False)
    response = await client.post("/api/v1/workers/otp/request", json={"mobileNumber": "9876543210"})
    assert response.status_code == 200
    assert response.json()["otp"] is None


async def test_verify_otp_logs_worker_in_once(client, registered_worker):
    issued = await client.post("/api/v1/workers/otp/request", json={"mobileNumber": "9876543210"})
    otp = issued.json()["otp"]

    response = await client.post("/api/v1/workers/otp/verify", json={"mobileNumber": "9876543210", "otp": otp})
    assert response.status_code == 200
    data = response.json()
    assert data["worker"]["id"] == registered_worker["id"]
    assert data["access_token"]

    replay = await client.post("/api/v1/workers/otp/verify", json={"mobileNumber": "9876543210", "otp": otp})
    assert replay.status_code == 400
    assert replay.json()["detail"] == "Invalid or expired OTP"


async def test_new_request_replaces_previous_code(client, registered_worker, session):
    await client.post("/api/v1/workers/otp/request", json={"mobileNumber": "9876543210"})
    second = await client.post("/api/v1/workers/otp/request", json={"mobileNumber": "9876543210"})

    result = await session.execute(select(WorkerOTP).where(WorkerOTP.mobile_number == "9876543210"))
    codes = result.scalars().all()
    assert len(codes) == 1
    assert codes[0].otp_code == second.json()["otp"]


async def test_verify_rejects_wrong_code(client, registered_worker):
    issued = await client.post("/api/v1/workers/otp/request", json={"mobileNumber": "9876543210"})
    wrong = "000000" if issued.json()["otp"] != "000000" else "111111"
    response = await client.post("/api/v1/workers/otp/verify", json={"mobileNumber": "9876543210", "otp": wrong})
    assert response.status_code == 400


async def test_verify_requires_both_fields(client):
    response = await client.post("/api/v1/workers/otp/verify", json={"mobileNumber": "9876543210"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Mobile number and OTP are required"


async def test_expired_code_is_rejected(client, registered_worker, session):
    session.add(WorkerOTP(
        mobile_number="9876543210",
        otp_code="123456",
        expires_at=utcnow() - timedelta(minutes=1),
    ))
    await session.commit()

    service = OTPService(session)
    with pytest.raises(HTTPException) as exc:
        await service.verify_otp(OTPVerify(mobile_number="9876543210", otp="123456"))
    assert exc.value.status_code == 400


async def test_cleanup_removes_used_and_expired_codes(client, registered_worker, session):
    service = OTPService(session)
    await service.issue_otp(OTPRequest(mobile_number="9876543210"))
    session.add(WorkerOTP(
        mobile_number="9123456789",
        otp_code="654321",
        expires_at=utcnow() - timedelta(minutes=5),
    ))
    session.add(WorkerOTP(
        mobile_number="9223456789",
        otp_code="111111",
        expires_at=utcnow() + timedelta(minutes=5),
        is_used=True,
    ))
    await session.commit()

    removed = await service.cleanup_expired()
    assert removed == 2

    remaining = (await session.execute(select(WorkerOTP))).scalars().all()
    assert [otp.mobile_number for otp in remaining] == ["9876543210"]


async def verify_in_own_session(session_factory, otp):
    async with session_factory() as session:
        return await OTPService(session).verify_otp(OTPVerify(mobile_number="9876543210", otp=otp))


async def test_concurrent_verifications_accept_code_once(file_session_factory, worker_payload):
    async with file_session_factory() as session:
        await WorkerService(session).register(WorkerRegister(**worker_payload))
        otp = await OTPService(session).issue_otp(OTPRequest(mobile_number="9876543210"))

    results = await asyncio.gather(
        verify_in_own_session(file_session_factory, otp),
        verify_in_own_session(file_session_factory, otp),
        return_exceptions=True,
    )
    accepted = [r for r in results if isinstance(r, Worker)]
    rejected = [r for r in results if isinstance(r, HTTPException)]
    assert len(accepted) == 1
    assert len(rejected) == 1
    assert rejected[0].status_code == 400
    assert rejected[0].detail == "Invalid or expired OTP"


async def test_valid_code_without_worker_row(session):
    session.add(WorkerOTP(
        mobile_number="9555555555",
        otp_code="246810",
        expires_at=utcnow() + timedelta(minutes=5),
    ))
    await session.commit()

    with pytest.raises(HTTPException) as exc:
        await OTPService(session).verify_otp(OTPVerify(mobile_number="9555555555", otp="246810"))
    assert exc.value.status_code == 404
    assert exc.value.detail == "Worker not found"


async def test_cleanup_failure_does_not_fail_verification(client, registered_worker, session, monkeypatch):
    service = OTPService(session)
    otp = await service.issue_otp(OTPRequest(mobile_number="9876543210"))

    async def broken_cleanup():
        raise OperationalError("DELETE FROM worker_otp", {}, Exception("database is locked"))

    monkeypatch.setattr(service, "cleanup_expired", broken_cleanup)
    worker = await service.verify_otp(OTPVerify(mobile_number="9876543210", otp=otp))
    assert str(worker.id) == registered_worker["id"]


async def test_code_is_not_logged_outside_dev(client, registered_worker, session, monkeypatch, caplog):
    monkeypatch.setattr(settings, "OTP_DEV_ECHO", False)
    monkeypatch.setattr("swasthya.services.otp_service.generate_otp_code", lambda: "424242")
    with caplog.at_level(logging.INFO, logger="swasthya"):
        otp = await OTPService(session).issue_otp(OTPRequest(mobile_number="9876543210"))
    assert otp == "424242"
    assert "OTP issued for 9876543210" in caplog.text
    assert "424242" not in caplog.text
