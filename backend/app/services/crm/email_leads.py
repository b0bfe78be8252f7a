"""
Inbound e-mail to lead.

Mail providers post parsed messages to the public webhook; this module checks
the HMAC signature, normalises the provider payload into an ``InboundEmail``
and creates a Lead in the public tenant, assigned to a random sales or admin
user.
"""

import base64
import hashlib
import hmac
import json
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import parse_qs

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import authentication_error, internal_error, validation_error
from app.models.lead import Lead
from app.models.user import User
from app.services.notification_service import build_notification

logger = logging.getLogger("bizabode.crm.email_leads")

PROVIDERS = ("sendgrid", "mailgun", "postmark")
DEFAULT_PROVIDER = "sendgrid"
DEFAULT_COMPANY_NAME = "Unknown Company"
LEAD_SOURCE = "Email Inquiry"
ASSIGNABLE_ROLES = ("sales", "admin")
NOTES_EXCERPT_CHARS = 500

_ADDRESS = re.compile(r"<(.+?)>")
_DISPLAY_NAME = re.compile(r"^(.+?)\s*<.+?>$")
_HTML_TAG = re.compile(r"<[^>]*>")
_PHONE_FORMATTING = re.compile(r"[-.\s()]")

PHONE_PATTERNS = (
    re.compile(r"(\+?1[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})"),
    re.compile(r"(\+?[0-9]{1,4}[-.\s]?)?\(?([0-9]{2,4})\)?[-.\s]?([0-9]{2,4})[-.\s]?([0-9]{2,4})"),
    re.compile(r"(\+?[0-9]{10,15})"),
)

COMPANY_PATTERNS = tuple(
    re.compile(rf"{indicator}[:\s]+(.+?)(?:\n|$)", re.IGNORECASE | re.MULTILINE)
    for indicator in ("company", "business", "organization", "firm", "corp", "inc", "ltd", "llc")
)

# First match wins
CATEGORY_KEYWORDS = (
    ("Hotel", ("hotel", "hospitality")),
    ("Supermarket", ("supermarket", "grocery")),
    ("Restaurant", ("restaurant", "food service")),
    ("Contractor", ("contractor", "construction")),
)

PRODUCT_KEYWORDS = (
    ("Containers", ("container", "box")),
    ("Cups", ("cup", "mug")),
    ("Paper Products", ("paper", "tissue")),
    ("Bags", ("bag", "shopping")),
    ("Plates", ("plate", "dish")),
    ("Utensils", ("utensil", "fork", "spoon")),
)


@dataclass
class InboundEmail:
    from_email: str
    from_name: str
    subject: str
    text: str = ""
    html: str = ""

    @property
    def plain_text(self) -> str:
        return strip_html(f"{self.text} {self.html}")


@dataclass
class LeadDetails:
    phone: Optional[str]
    company: str
    category: str
    product_interest: list = field(default_factory=list)


def extract_email_address(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    match = _ADDRESS.search(value)
    return match.group(1) if match else value


def extract_display_name(value: Optional[str]) -> str:
    if not value:
        return ""
    match = _DISPLAY_NAME.match(value)
    return match.group(1).strip() if match else ""


def strip_html(value: str) -> str:
    return _HTML_TAG.sub(" ", value)


def extract_phone(text: str) -> Optional[str]:
    for pattern in PHONE_PATTERNS:
        match = pattern.search(text)
        if match:
            return _PHONE_FORMATTING.sub("", match.group(0))
    return None


def extract_company(text: str) -> Optional[str]:
    for pattern in COMPANY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def categorize_inquiry(text: str) -> str:
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "Other"


def extract_product_interest(text: str) -> list[str]:
    lowered = text.lower()
    return [
        product for product, keywords in PRODUCT_KEYWORDS
        if any(keyword in lowered for keyword in keywords)
    ]


def analyse_email(email: InboundEmail) -> LeadDetails:
    text = email.plain_text
    return LeadDetails(
        phone=extract_phone(text),
        company=extract_company(text) or DEFAULT_COMPANY_NAME,
        category=categorize_inquiry(text),
        product_interest=extract_product_interest(text),
    )


def _hmac(secret: str, message: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def _matches(received: str, expected: str) -> bool:
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


def verify_signature(body: bytes, signature: str, secret: str, provider: str = DEFAULT_PROVIDER) -> bool:
    """
    Check a provider's HMAC-SHA256 webhook signature.

    sendgrid signs the raw body (base64 digest), postmark the raw body (hex
    digest); mailgun sends ``"<timestamp>,<token>"`` where token is the hex
    digest of timestamp + body.
    """
    if provider == "sendgrid":
        expected = base64.b64encode(_hmac(secret, body)).decode("ascii")
        return _matches(signature, expected)
    if provider == "mailgun":
        timestamp, _, token = signature.partition(",")
        if not token:
            return False
        expected = _hmac(secret, timestamp.encode("utf-8") + body).hex()
        return _matches(token, expected)
    if provider == "postmark":
        return _matches(signature, _hmac(secret, body).hex())
    return False


def decode_body(body: bytes) -> Any:
    """JSON payloads as-is; anything else is read as a form post."""
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError):
        form = {key: values[0] for key, values in parse_qs(body.decode("utf-8", errors="replace")).items()}
        return {
            "from": form.get("from"),
            "to": form.get("to"),
            "subject": form.get("subject"),
            "text": form.get("text") or form.get("body-plain"),
            "html": form.get("html") or form.get("body-html"),
        }


def _sender(value: Any) -> tuple[Optional[str], str]:
    if isinstance(value, dict):
        address = value.get("email")
        return extract_email_address(address), value.get("name") or extract_display_name(address)
    return extract_email_address(value), extract_display_name(value)


def parse_inbound_email(data: Any, provider: str = DEFAULT_PROVIDER) -> InboundEmail:
    """
    Normalise a provider payload.

    Raises:
        AppError: VALIDATION_ERROR when the sender or subject is missing
    """
    if provider == "sendgrid" and isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        data = {}

    if provider == "sendgrid":
        from_email, from_name = _sender(data.get("from"))
        subject = data.get("subject")
        text, html = data.get("text"), data.get("html")
    elif provider == "mailgun":
        from_email, from_name = _sender(data.get("sender") or data.get("from"))
        subject = data.get("subject")
        text = data.get("body-plain") or data.get("text")
        html = data.get("body-html") or data.get("html")
    elif provider == "postmark":
        from_email, from_name = _sender(data.get("From") or data.get("from"))
        subject = data.get("Subject") or data.get("subject")
        text = data.get("TextBody") or data.get("text")
        html = data.get("HtmlBody") or data.get("html")
    else:
        from_email, from_name = _sender(data.get("from"))
        subject = data.get("subject")
        text, html = data.get("text"), data.get("html")

    if not from_email or not subject:
        raise validation_error("Missing required email fields", code="MISSING_EMAIL_FIELDS")

    return InboundEmail(
        from_email=from_email,
        from_name=from_name,
        subject=subject,
        text=text or "",
        html=html or "",
    )


def lead_notes(email: InboundEmail) -> str:
    return f"Email Subject: {email.subject}\n\nContent: {email.plain_text[:NOTES_EXCERPT_CHARS]}..."


async def pick_assignee(db: AsyncSession, company_id: int) -> Optional[int]:
    result = await db.execute(
        select(User.id).where(
            User.company_id == company_id,
            User.role.in_(ASSIGNABLE_ROLES),
            User.is_active.is_(True),
        )
    )
    candidates = list(result.scalars().all())
    return random.choice(candidates) if candidates else None


async def ingest_email(
    db: AsyncSession,
    body: bytes,
    provider: Optional[str] = None,
    signature: Optional[str] = None,
) -> Lead:
    """
    Verify, parse and store an inbound e-mail as a new lead.

    Raises:
        AppError: AUTHENTICATION_ERROR on a signature mismatch,
            VALIDATION_ERROR for an unusable payload,
            INTERNAL_SERVER_ERROR when no public tenant is configured
    """
    provider = provider or DEFAULT_PROVIDER
    secret = settings.EMAIL_WEBHOOK_SECRET
    if secret and signature and not verify_signature(body, signature, secret, provider):
        raise authentication_error("Invalid signature")

    email = parse_inbound_email(decode_body(body), provider)
    details = analyse_email(email)

    company_id = settings.DEFAULT_PUBLIC_COMPANY_ID
    if not company_id:
        raise internal_error("Company ID not configured")

    assigned_to = await pick_assignee(db, company_id)
    lead = Lead(
        company_id=company_id,
        name=email.from_name or email.from_email.split("@")[0],
        email=email.from_email,
        phone=details.phone or "",
        company=details.company,
        source=LEAD_SOURCE,
        category=details.category,
        product_interest=details.product_interest,
        status="new",
        notes=lead_notes(email),
        assigned_to=assigned_to,
        tags=[],
        custom_fields={},
    )
    db.add(lead)
    await db.flush()

    if assigned_to is not None:
        db.add(build_notification(
            company_id,
            assigned_to,
            "New Lead from Email",
            f'New lead "{lead.name}" from {lead.company} via email inquiry',
            type="new_lead",
            data={"lead_id": lead.id, "lead_name": lead.name, "lead_company": lead.company, "source": "Email"},
            related_lead_id=lead.id,
        ))

    await db.commit()
    await db.refresh(lead)
    logger.info(f"Lead created from email: {lead.name} ({lead.email})")
    return lead
