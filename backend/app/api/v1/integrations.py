from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.responses import success_response
from app.core.rate_limiter import limiter, RateLimits
from app.services.crm.email_leads import ingest_email

router = APIRouter()

SIGNATURE_HEADERS = ("x-signature", "x-hub-signature-256")


@router.post("/email-webhook")
@limiter.limit(RateLimits.WEBHOOK)
async def email_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> Any:
    """
    Public inbound-mail webhook. Each accepted message becomes a new lead.
    """
    body = await request.body()
    signature: Optional[str] = next(
        (request.headers[name] for name in SIGNATURE_HEADERS if name in request.headers),
        None,
    )
    lead = await ingest_email(db, body, provider=request.headers.get("x-provider"), signature=signature)
    return success_response({"lead_id": lead.id}, message="Lead created successfully")


@router.get("/email-webhook")
async def verify_email_webhook(challenge: Optional[str] = None) -> Any:
    # Providers confirm the endpoint by having their challenge echoed back
    if challenge:
        return PlainTextResponse(challenge)
    return success_response(message="Email webhook endpoint is active")
