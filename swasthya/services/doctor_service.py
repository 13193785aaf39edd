from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from swasthya.core.logger import logger, mask_aadhar
from swasthya.core.utils import (
    DoctorType,
    classify_doctor_id,
    generate_private_doctor_id,
    validate_aadhar_number,
)
from swasthya.db.models import Doctor
from swasthya.schemas.doctor import PrivateDoctorRegister

class DoctorService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_unique_id(self, unique_doctor_id: str) -> Doctor | None:
        stmt = select(Doctor).where(Doctor.unique_doctor_id == unique_doctor_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def resolve_login(
        self,
        doctor_id: str,
        name: Optional[str] = None,
        hospital_name: Optional[str] = None
    ) -> Doctor:
        """
        Government (NMR) IDs log in directly and are registered on first use
        when a name and hospital are supplied. Private IDs must have been
        registered through register_private beforehand.
        """
        doctor_id = doctor_id.strip()
        try:
            doctor_type = classify_doctor_id(doctor_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        doctor = await self.get_by_unique_id(doctor_id)
        if doctor:
            logger.info(f"Doctor {doctor.unique_doctor_id} logged in")
            return doctor

        if doctor_type == DoctorType.PRIVATE:
            raise HTTPException(
                status_code=404,
                detail="Doctor not found. Please check your ID or register first."
            )

        name = (name or "").strip()
        hospital_name = (hospital_name or "").strip()
        if not name or not hospital_name:
            raise HTTPException(
                status_code=400,
                detail="Registration incomplete: name and hospital are required for first-time login."
            )

        doctor = Doctor(
            name=name,
            hospital_name=hospital_name,
            doctor_type=DoctorType.GOVERNMENT,
            unique_doctor_id=doctor_id,
            nmr_id=doctor_id,
        )
        self.session.add(doctor)
        try:
            await self.session.commit()
        except IntegrityError:
            # Another first login for the same ID won the insert
            await self.session.rollback()
            doctor = await self.get_by_unique_id(doctor_id)
            if doctor is None:
                raise HTTPException(status_code=409, detail="Doctor ID is already registered")
            return doctor
        await self.session.refresh(doctor)
        logger.info(f"Government doctor {doctor_id} registered on first login")
        return doctor

    async def register_private(self, data: PrivateDoctorRegister) -> Doctor:
        aadhar_number = data.aadhar_number.strip()
        try:
            validate_aadhar_number(aadhar_number)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        unique_doctor_id = generate_private_doctor_id(aadhar_number)

        stmt = select(Doctor).where(or_(
            Doctor.aadhar_number == aadhar_number,
            Doctor.unique_doctor_id == unique_doctor_id
        ))
        result = await self.session.execute(stmt)
        existing = result.scalars().first()
        if existing:
            raise HTTPException(
                status_code=409,
                detail=f"You are already registered with ID: {existing.unique_doctor_id}. Please use login."
            )

        doctor = Doctor(
            name=data.name.strip(),
            hospital_name=data.hospital_name.strip(),
            doctor_type=DoctorType.PRIVATE,
            unique_doctor_id=unique_doctor_id,
            aadhar_number=aadhar_number,
            mobile_number=data.mobile_number,
        )
        self.session.add(doctor)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning(f"Private doctor registration conflict for {unique_doctor_id}")
            raise HTTPException(
                status_code=409,
                detail=f"You are already registered with ID: {unique_doctor_id}. Please use login."
            )
        await self.session.refresh(doctor)
        logger.info(f"Private doctor {unique_doctor_id} registered (Aadhar {mask_aadhar(aadhar_number)})")
        return doctor
