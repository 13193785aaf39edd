import logging
import sys

def setup_logging():
    """
    Configure logging for the application.
    """
    logger = logging.getLogger("swasthya")
    logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(handler)

    return logger

def mask_aadhar(aadhar_number: str | None) -> str:
    if not aadhar_number:
        return "N/A"
    return f"XXXX-XXXX-{aadhar_number[-4:]}"

logger = setup_logging()
