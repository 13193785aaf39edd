from datetime import timedelta
from fastapi import HTTPException
from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from swasthya.core.config import settings
from swasthya.core.logger import logger
from swasthya.core.utils import generate_otp_code, utcnow
from swasthya.db.models import Worker, WorkerOTP
from swasthya.schemas.worker import OTPRequest, OTPVerify

class OTPService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def issue_otp(self, data: OTPRequest) -> str:
        mobile_number = (data.mobile_number or "").strip()
        if not mobile_number:
            raise HTTPException(status_code=400, detail="Mobile number is required")

        # OTP login is only offered to registered workers
        stmt = select(Worker).where(Worker.mobile_number == mobile_number)
        result = await self.session.execute(stmt)
        if not result.scalars().first():
            logger.info(f"OTP requested for unregistered number {mobile_number}")
            raise HTTPException(
                status_code=404,
                detail="Number not registered. Please register first to use OTP login."
            )

        otp = generate_otp_code()

        # Drop earlier codes for this number. Not atomic with the insert below.
        await self.session.execute(
            delete(WorkerOTP).where(WorkerOTP.mobile_number == mobile_number)
        )
        self.session.add(WorkerOTP(
            mobile_number=mobile_number,
            otp_code=otp,
            expires_at=utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        ))
        await self.session.commit()

        # TODO: dispatch through an SMS gateway instead of logging the code
        if settings.OTP_DEV_ECHO:
            logger.info(
                f"SMS to {mobile_number}: Your SwasthyaID OTP is: {otp}. "
                f"Valid for {settings.OTP_EXPIRE_MINUTES} minutes."
            )
        else:
            logger.info(f"OTP issued for {mobile_number}")
        return otp

    async def verify_otp(self, data: OTPVerify) -> Worker:
        mobile_number = (data.mobile_number or "").strip()
        otp = (data.otp or "").strip()
        if not mobile_number or not otp:
            raise HTTPException(status_code=400, detail="Mobile number and OTP are required")

        stmt = select(WorkerOTP).where(
            WorkerOTP.mobile_number == mobile_number,
            WorkerOTP.otp_code == otp,
            WorkerOTP.is_used == False,
            WorkerOTP.expires_at > utcnow()
        )
        result = await self.session.execute(stmt)
        otp_record = result.scalars().first()

        # Wrong, expired, used and missing codes all get the same answer
        invalid = HTTPException(status_code=400, detail="Invalid or expired OTP")
        if not otp_record:
            logger.info(f"Invalid or expired OTP for {mobile_number}")
            raise invalid

        # Only one concurrent verification can flip is_used
        claimed = await self.session.execute(
            update(WorkerOTP)
            .where(WorkerOTP.id == otp_record.id, WorkerOTP.is_used == False)
            .values(is_used=True)
        )
        await self.session.commit()
        if claimed.rowcount != 1:
            logger.info(f"OTP for {mobile_number} was already used")
            raise invalid

        try:
            await self.cleanup_expired()
        except Exception:
            await self.session.rollback()
            logger.warning("OTP cleanup failed", exc_info=True)

        stmt = select(Worker).where(Worker.mobile_number == mobile_number)
        result = await self.session.execute(stmt)
        worker = result.scalars().first()
        if not worker:
            logger.error(f"Valid OTP for {mobile_number} but no worker row")
            raise HTTPException(status_code=404, detail="Worker not found")

        logger.info(f"OTP verified for worker {worker.unique_worker_id}")
        return worker

    async def cleanup_expired(self) -> int:
        stmt = delete(WorkerOTP).where(
            or_(WorkerOTP.is_used == True, WorkerOTP.expires_at <= utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount
