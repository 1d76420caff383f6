"""
Contact Form - enquiry validation and hand-off.

Accepts the fields posted by the website's contact page, checks that the
required ones are present and records the enquiry in the log with a
submission timestamp. Mail delivery is not wired up; the log line is the
record of the enquiry.
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from src.contact.rate_limiter import RateLimiter
from src.models.review import utc_now_iso
from src.utils.storage import StoreError

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Thank you for your message. We will get back to you soon!"
MISSING_FIELDS_MESSAGE = "Please fill in all required fields"
RATE_LIMITED_MESSAGE = "Too many messages. Please try again later."
ERROR_MESSAGE = "There was an error sending your message. Please try again later."

REQUIRED_FIELDS = ("name", "email", "message")


@dataclass
class ContactSubmission:
    name: str
    email: str
    message: str
    phone: Optional[str] = None
    service: Optional[str] = None
    timestamp: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ContactSubmission":
        def text(name):
            value = data.get(name)
            return value.strip() if isinstance(value, str) else ""

        return cls(
            name=text("name"),
            email=text("email"),
            message=text("message"),
            phone=text("phone") or None,
            service=text("service") or None,
            timestamp=utc_now_iso()
        )

    def missing_fields(self) -> list:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ContactResult:
    success: bool
    message: str
    status: int = 200  # HTTP-style status for the calling page

    def to_dict(self) -> dict:
        return {"success": self.success, "message": self.message}


def submit_contact(
    data,
    client_id: Optional[str] = None,
    limiter: Optional[RateLimiter] = None
) -> ContactResult:
    """
    Validate and record one contact form submission.

    Args:
        data: Posted form fields (name, email, message, optional phone/service)
        client_id: Caller identifier for rate limiting (e.g. client IP)
        limiter: RateLimiter to apply; no limiting when None

    Returns:
        ContactResult; status 400 for missing fields, 429 when rate
        limited, 500 when the submission could not be processed
    """
    if not isinstance(data, dict):
        logger.error(f"Contact form error: expected an object, got {type(data).__name__}")
        return ContactResult(success=False, message=ERROR_MESSAGE, status=500)

    submission = ContactSubmission.from_dict(data)
    missing = submission.missing_fields()
    if missing:
        logger.info(f"Rejected contact form, missing {', '.join(missing)}")
        return ContactResult(success=False, message=MISSING_FIELDS_MESSAGE, status=400)

    if limiter is not None:
        try:
            allowed = limiter.hit(client_id)
        except StoreError as e:
            logger.error(f"Contact form error: {e}")
            return ContactResult(success=False, message=ERROR_MESSAGE, status=500)
        if not allowed:
            return ContactResult(success=False, message=RATE_LIMITED_MESSAGE, status=429)

    logger.info(f"Contact form submission: {json.dumps(submission.to_dict())}")
    return ContactResult(success=True, message=SUCCESS_MESSAGE)
