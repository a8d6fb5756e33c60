import asyncio
import time
from supabase import Client
from app.config.settings import Settings
from app.modules.notifications.mailer import Mailer
from app.modules.payments.schemas import WebhookResult, PaymentStatusResponse
from app.modules.profiles.service import ProfileService
from typing import Any, Awaitable, Callable, Dict, Optional
from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool
import logging

logger = logging.getLogger(__name__)

PAYMENT_CAPTURED = "payment.captured"


class PaymentService:
    def __init__(
        self,
        supabase: Client,
        mailer: Mailer,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.supabase = supabase
        self.mailer = mailer
        self.settings = settings
        self.sleep = sleep
        self.profiles = ProfileService(supabase)

    async def handle_event(self, event: Dict[str, Any]) -> WebhookResult:
        """Dispatch a verified Razorpay webhook event"""
        if event.get("event") != PAYMENT_CAPTURED:
            return WebhookResult(status="ignored")
        try:
            entity = event["payload"]["payment"]["entity"]
        except (KeyError, TypeError):
            raise HTTPException(status_code=400, detail="Malformed payment event")
        if not isinstance(entity, dict):
            raise HTTPException(status_code=400, detail="Malformed payment event")
        return await self.handle_payment_captured(entity)

    async def handle_payment_captured(self, entity: Dict[str, Any]) -> WebhookResult:
        notes = entity.get("notes") or {}
        if not isinstance(notes, dict):
            notes = {}
        user_email = entity.get("email")
        user_name = notes.get("name") or entity.get("contact")
        user_phone = notes.get("phone") or entity.get("contact")
        user_age = notes.get("age") or None
        payment_id = entity.get("id")

        if not user_email:
            logger.error(f"Email not found in payment data: {payment_id}")
            raise HTTPException(status_code=400, detail="Email not found in payment data")

        logger.info(f"Processing captured payment {payment_id} for {user_email}")
        try:
            profile = self.profiles.find_profile_by_email(user_email)
        except Exception as e:
            logger.error(f"Error looking up profile for {user_email}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to process webhook: {str(e)}")

        if profile is None:
            user_id = self._provision_user(user_email, user_name, user_phone)
            profile = await self.wait_for_profile(user_id)

        if payment_id and profile.get("payment_id") == payment_id and profile.get("payment_done"):
            logger.info(f"Duplicate delivery of payment {payment_id} for {profile['id']}, skipping")
            return WebhookResult(status="duplicate", user_id=profile["id"])

        # SMTP blocks; keep it off the event loop
        email_sent = await run_in_threadpool(
            self.mailer.send_welcome_email, user_email, profile.get("name") or user_name or ""
        )

        amount = entity.get("amount")
        update_data = {
            "name": user_name,
            "phone_number": user_phone,
            "age": user_age,
            "payment_done": True,
            "payment_id": payment_id,
            "amount_paid": amount / 100 if isinstance(amount, (int, float)) else None,  # paise to rupees
            "welcome_email_sent": email_sent,
        }
        try:
            self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", profile["id"])\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile {profile['id']}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to process webhook: {str(e)}")

        logger.info(f"Profile updated successfully for user: {profile['id']}")
        return WebhookResult(status="success", user_id=profile["id"], welcome_email_sent=email_sent)

    def _provision_user(self, email: str, name: Optional[str], phone: Optional[str]) -> str:
        """Create an auth user for a payer who never signed up; the signup trigger creates the profile"""
        logger.info(f"User not found, creating new user with email: {email}")
        try:
            response = self.supabase.auth.admin.create_user({
                "email": email,
                "email_confirm": True,
                "user_metadata": {"name": name or "", "phone": phone or ""},
            })
        except Exception as e:
            logger.error(f"Error creating new user {email}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to create new user: {str(e)}")
        if not response or not response.user:
            raise HTTPException(status_code=500, detail="Failed to create new user")
        logger.info(f"New user created successfully: {response.user.id}")
        return response.user.id

    async def wait_for_profile(self, user_id: str) -> Dict[str, Any]:
        """Poll with exponential backoff until the trigger-created profile row appears or the deadline passes"""
        deadline = time.monotonic() + self.settings.profile_poll_timeout_seconds
        delay = self.settings.profile_poll_initial_delay_seconds
        attempts = 0
        while True:
            attempts += 1
            try:
                profile = self.profiles.find_profile(user_id)
            except Exception as e:
                logger.warning(f"Profile lookup for {user_id} failed (attempt {attempts}): {e}")
                profile = None
            if profile:
                return profile
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await self.sleep(min(delay, remaining))
            delay = min(delay * 2, self.settings.profile_poll_max_delay_seconds)
        logger.error(f"Profile for new user {user_id} did not appear after {attempts} attempts")
        raise HTTPException(status_code=500, detail="Failed to create new user: profile was not created in time")

    def mark_paid(self, user_id: str) -> Dict[str, Any]:
        """Administrative mark-paid by user id"""
        try:
            return self.profiles.mark_paid(user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def payment_status(self, user_id: str) -> PaymentStatusResponse:
        profile = self.profiles.get_profile(user_id)
        return PaymentStatusResponse(
            payment_done=profile.payment_done,
            coupon_code=profile.coupon_code,
            redirect_to="/" if profile.payment_done else None,
        )
