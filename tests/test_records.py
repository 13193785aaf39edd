import io
from datetime import date
from uuid import UUID

import pytest
from fastapi import BackgroundTasks, HTTPException, UploadFile
from sqlalchemy.exc import OperationalError
from sqlmodel import func, select
from starlette.datastructures import Headers

from swasthya.core.utils import DoctorType
from swasthya.db.models import Appointment, Doctor, MedicalDocument, MedicalRecord
from swasthya.schemas.record import EncounterCreate
from swasthya.services.record_service import RecordService
from swasthya.services.sync_service import SyncService


async def count(session, model):
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def test_encounter_without_followup_or_file(client, session, registered_worker, doctor_headers):
    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": registered_worker["id"], "diagnosis": "Flu"},
        headers=doctor_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["appointment"] is None
    assert data["document"] is None

    record = data["record"]
    assert record["diagnosis"] == "Flu"
    assert record["doctor_name"] == "Asha Menon"
    assert record["hospital_name"] == "General Hospital Kochi"
    assert record["doctor_type"] == "government"

    assert await count(session, MedicalRecord) == 1
    assert await count(session, Appointment) == 0
    assert await count(session, MedicalDocument) == 0


async def test_followup_date_schedules_appointment(client, registered_worker, doctor_headers):
    response = await client.post(
        "/api/v1/records/",
        data={
            "worker_id": registered_worker["id"],
            "diagnosis": "Hypertension",
            "notes": "Check BP weekly",
            "next_appointment_date": "2024-06-01",
            "next_appointment_time": "10:30",
        },
        headers=doctor_headers,
    )
    assert response.status_code == 200
    appointment = response.json()["appointment"]
    assert appointment["purpose"] == "Hypertension"
    assert appointment["status"] == "scheduled"
    assert appointment["appointment_date"] == "2024-06-01"
    assert appointment["notes"] == "Check BP weekly"
    assert appointment["medical_record_id"] == response.json()["record"]["id"]


async def test_uploaded_file_is_linked_to_record(client, storage, registered_worker, doctor_headers):
    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": registered_worker["id"], "diagnosis": "Fracture"},
        files={"file": ("xray.png", b"\x89PNG fake", "image/png")},
        headers=doctor_headers,
    )
    assert response.status_code == 200
    data = response.json()
    document = data["document"]
    assert document["medical_record_id"] == data["record"]["id"]
    assert document["file_name"] == "xray.png"
    assert document["file_type"] == "image/png"
    assert document["file_size"] == len(b"\x89PNG fake")
    assert document["uploaded_by"] == "Asha Menon"
    assert document["file_path"].startswith("RA1234/")
    assert document["file_path"].endswith("_xray.png")
    assert await storage.download(document["file_path"]) == b"\x89PNG fake"


async def test_diagnosis_is_required(client, session, registered_worker, doctor_headers):
    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": registered_worker["id"], "diagnosis": "   "},
        headers=doctor_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Diagnosis is required"
    assert await count(session, MedicalRecord) == 0


async def test_only_doctors_can_add_records(client, registered_worker):
    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": registered_worker["id"], "diagnosis": "Flu"},
    )
    assert response.status_code == 401


async def test_unknown_worker(client, doctor_headers):
    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": "00000000-0000-0000-0000-000000000000", "diagnosis": "Flu"},
        headers=doctor_headers,
    )
    assert response.status_code == 404


async def test_failed_upload_keeps_saved_record(client, session, storage, registered_worker, doctor_headers, monkeypatch):
    async def broken_upload(path, data):
        raise OSError("bucket unavailable")

    monkeypatch.setattr(storage, "upload", broken_upload)
    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": registered_worker["id"], "diagnosis": "Flu"},
        files={"file": ("report.pdf", b"%PDF", "application/pdf")},
        headers=doctor_headers,
    )
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to upload document"
    assert await count(session, MedicalRecord) == 1
    assert await count(session, MedicalDocument) == 0


async def test_oversized_upload_is_rejected(client, session, registered_worker, doctor_headers, monkeypatch):
    from swasthya.core.config import settings
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)

    response = await client.post(
        "/api/v1/records/",
        data={"worker_id": registered_worker["id"], "diagnosis": "Flu"},
        files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")},
        headers=doctor_headers,
    )
    assert response.status_code == 413
    assert await count(session, MedicalRecord) == 0


async def test_encounter_schedules_sync(client, session, session_factory, storage, registered_worker):
    doctor = Doctor(
        name="Dr. Joseph",
        hospital_name="Lakeshore Clinic",
        doctor_type=DoctorType.PRIVATE,
        unique_doctor_id="PVTHPTL-0341",
    )
    session.add(doctor)
    await session.commit()

    sync_service = SyncService(session_factory)
    service = RecordService(session, storage, sync_service)
    background_tasks = BackgroundTasks()

    result = await service.add_encounter(
        UUID(registered_worker["id"]), doctor, EncounterCreate(diagnosis="Malaria"), None, background_tasks
    )
    assert result.record.doctor_type == DoctorType.PRIVATE
    assert len(background_tasks.tasks) == 1
    task = background_tasks.tasks[0]
    assert task.func == sync_service.notify
    assert task.args == (str(result.record.id),)


async def test_add_encounter_without_diagnosis_raises(session, storage, session_factory):
    service = RecordService(session, storage, SyncService(session_factory))
    doctor = Doctor(name="X", hospital_name="Y", doctor_type=DoctorType.GOVERNMENT, unique_doctor_id="KL/1/2020")
    with pytest.raises(HTTPException) as exc:
        await service.add_encounter(None, doctor, EncounterCreate(diagnosis=""))
    assert exc.value.status_code == 400


@pytest.fixture
async def doctor(session):
    doctor = Doctor(
        name="Asha Menon",
        hospital_name="General Hospital Kochi",
        doctor_type=DoctorType.GOVERNMENT,
        unique_doctor_id="KL/12345/2021",
    )
    session.add(doctor)
    await session.commit()
    return doctor


def fail_nth_commit(session, monkeypatch, n):
    """Make the n-th commit on the session raise, as a failed insert would."""
    real_commit = session.commit
    calls = {"count": 0}

    async def commit():
        calls["count"] += 1
        if calls["count"] == n:
            raise OperationalError("INSERT", {}, Exception("connection lost"))
        await real_commit()

    monkeypatch.setattr(session, "commit", commit)


async def test_failed_appointment_keeps_saved_record(session, storage, session_factory, registered_worker, doctor, monkeypatch):
    service = RecordService(session, storage, SyncService(session_factory))
    fail_nth_commit(session, monkeypatch, 2)

    with pytest.raises(HTTPException) as exc:
        await service.add_encounter(
            UUID(registered_worker["id"]),
            doctor,
            EncounterCreate(diagnosis="Hypertension", next_appointment_date=date(2024, 6, 1)),
        )
    assert exc.value.status_code == 500
    assert exc.value.detail == "Failed to schedule appointment"
    assert await count(session, MedicalRecord) == 1
    assert await count(session, Appointment) == 0


async def test_failed_document_row_keeps_record_and_upload(session, storage, session_factory, registered_worker, doctor, monkeypatch):
    service = RecordService(session, storage, SyncService(session_factory))
    fail_nth_commit(session, monkeypatch, 2)
    upload = UploadFile(
        file=io.BytesIO(b"%PDF-1.4"),
        filename="report.pdf",
        headers=Headers({"content-type": "application/pdf"}),
    )

    with pytest.raises(HTTPException) as exc:
        await service.add_encounter(UUID(registered_worker["id"]), doctor, EncounterCreate(diagnosis="Flu"), upload)
    assert exc.value.status_code == 500
    assert exc.value.detail == "Failed to save document details"
    assert await count(session, MedicalRecord) == 1
    assert await count(session, MedicalDocument) == 0
    stored = [p for p in storage.base_path.rglob("*") if p.is_file()]
    assert len(stored) == 1
    assert stored[0].name.endswith("_report.pdf")


async def test_failed_later_step_still_syncs_record(session, storage, session_factory, registered_worker, doctor, monkeypatch):
    sync_service = SyncService(session_factory)
    notified = []

    async def notify(record_id):
        notified.append(record_id)

    monkeypatch.setattr(sync_service, "notify", notify)

    async def broken_upload(path, data):
        raise OSError("bucket unavailable")

    monkeypatch.setattr(storage, "upload", broken_upload)
    service = RecordService(session, storage, sync_service)
    upload = UploadFile(file=io.BytesIO(b"%PDF"), filename="report.pdf")

    with pytest.raises(HTTPException) as exc:
        await service.add_encounter(
            UUID(registered_worker["id"]), doctor, EncounterCreate(diagnosis="Flu"), upload, BackgroundTasks()
        )
    assert exc.value.status_code == 502

    record = (await session.execute(select(MedicalRecord))).scalars().one()
    assert notified == [str(record.id)]
