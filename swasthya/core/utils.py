import re
import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import List

WORKER_ID_FALLBACK_PREFIX = "WK"
PRIVATE_DOCTOR_PREFIX = "PVTHPTL-"
MAX_WORKER_ID_SUFFIX = 9

AADHAR_PATTERN = re.compile(r"^\d{12}$")
GOVERNMENT_ID_PATTERN = re.compile(r"^[A-Z]{2}/\d+/\d{4}$")
PRIVATE_ID_PATTERN = re.compile(r"^PVTHPTL-\d{4}$")


class DoctorType(str, Enum):
    GOVERNMENT = "government"
    PRIVATE = "private"


def utcnow() -> datetime:
    # Timestamp columns are DateTime(timezone=True)
    return datetime.now(timezone.utc)


def validate_aadhar_number(aadhar_number: str) -> str:
    if not aadhar_number or not AADHAR_PATTERN.match(aadhar_number):
        raise ValueError("Aadhar number must be exactly 12 digits")
    return aadhar_number


def generate_worker_id(name: str, aadhar_number: str) -> str:
    """
    First two letters of the name plus the last four digits of the Aadhar
    number, e.g. "Ravi Kumar" + "...1234" -> "RA1234". Names with fewer than
    two letters fall back to the "WK" prefix.
    """
    letters = re.sub(r"[^A-Z]", "", name.strip().upper())[:2]
    last_four = aadhar_number[-4:]
    if len(letters) < 2:
        return WORKER_ID_FALLBACK_PREFIX + last_four
    return letters + last_four


def worker_id_candidates(name: str, aadhar_number: str, attempts: int) -> List[str]:
    """
    The 6-character base code, then collision alternates with a single-digit
    suffix ("RA1234" -> "RA12342" ... "RA12349"). IDs are never longer than
    7 characters.
    """
    base = generate_worker_id(name, aadhar_number)
    last = min(attempts, MAX_WORKER_ID_SUFFIX)
    return [base] + [f"{base}{n}" for n in range(2, last + 1)]


def generate_private_doctor_id(aadhar_number: str) -> str:
    return f"{PRIVATE_DOCTOR_PREFIX}{aadhar_number[-4:]}"


def classify_doctor_id(doctor_id: str) -> DoctorType:
    if GOVERNMENT_ID_PATTERN.match(doctor_id):
        return DoctorType.GOVERNMENT
    if PRIVATE_ID_PATTERN.match(doctor_id):
        return DoctorType.PRIVATE
    raise ValueError(
        "Invalid ID format. Please use NMR ID (e.g., KL/12345/2021) "
        "or Private ID (e.g., PVTHPTL-0341)"
    )


def format_otp_code(value: int) -> str:
    return f"{value:06d}"


def generate_otp_code() -> str:
    return format_otp_code(secrets.randbelow(1_000_000))
