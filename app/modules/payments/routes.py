import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from app.config.settings import Settings
from app.core.dependencies import get_current_user, get_settings, require_super_user
from app.core.rate_limit import limiter
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.mailer import Mailer, get_mailer
from app.modules.payments.schemas import WebhookResult, DirectUpdateResponse, PaymentPlan, PaymentStatusResponse
from app.modules.payments.service import PaymentService
from app.modules.payments.signature import verify_signature
from supabase import Client
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])

SIGNATURE_HEADER = "x-razorpay-signature"


def get_payment_service(
    supabase: Client = Depends(get_service_supabase),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings)
) -> PaymentService:
    return PaymentService(supabase, mailer, settings)


@router.post("/razorpay-webhook", response_model=WebhookResult)
@limiter.exempt
async def razorpay_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings)
):
    """Signed payment event from Razorpay"""
    secret = settings.razorpay_webhook_secret
    if not secret:
        logger.error("Razorpay webhook secret is not configured")
        raise HTTPException(status_code=500, detail="Webhook configuration error")

    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No signature found")
    if not verify_signature(secret, raw_body, signature):
        logger.warning("Rejected webhook with invalid signature")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    return await service.handle_event(event)


@router.get("/direct-update", response_model=DirectUpdateResponse)
async def direct_update(
    user_id: Optional[str] = None,
    admin: Dict = Depends(require_super_user),
    service: PaymentService = Depends(get_payment_service)
):
    """Mark a profile as paid (super users only)"""
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing user_id parameter")
    profile = service.mark_paid(user_id)
    logger.info(f"Profile {user_id} marked paid by {admin['id']}")
    return DirectUpdateResponse(message="Profile updated successfully", data=profile)


@router.get("/payments/status", response_model=PaymentStatusResponse)
async def payment_status(
    current_user: Dict = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service)
):
    """Payment state for the payments page"""
    return service.payment_status(current_user["id"])


@router.get("/payments/plans", response_model=List[PaymentPlan])
async def payment_plans(settings: Settings = Depends(get_settings)):
    """Plans offered on the payments page, cheapest first"""
    plans = [PaymentPlan(**plan) for plan in settings.payment_plans]
    return sorted(plans, key=lambda plan: plan.price)
