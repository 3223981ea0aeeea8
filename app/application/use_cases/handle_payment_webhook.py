import logging
from typing import Any

from fastapi import HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from app.api.schemas.bookings import WebhookEnvelope
from app.application.use_cases.booking_lifecycle import BookingLifecycleCoordinator
from app.domain.errors import DomainError, ReservationNotFoundError
from app.infrastructure.webhooks.signature import verify_signature

PAYMENT_SUCCEEDED_EVENTS = frozenset(
    {"payment.succeeded", "checkout.session.completed", "payment_intent.succeeded"}
)
PAYMENT_FAILED_EVENTS = frozenset({"payment.failed", "payment_intent.payment_failed"})

RESERVATION_ID_KEYS = ("localBookingId", "bookingId", "reservation_id")


def extract_reservation_id(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    candidates = [data.get("metadata")]
    if isinstance(data.get("object"), dict):
        candidates.append(data["object"].get("metadata"))
    for metadata in candidates:
        if not isinstance(metadata, dict):
            continue
        for key in RESERVATION_ID_KEYS:
            if metadata.get(key):
                return str(metadata[key])
    return None


def extract_payment_ref(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    ref = data.get("id") or data.get("paymentId")
    if not ref and isinstance(data.get("object"), dict):
        ref = data["object"].get("id")
    return str(ref) if ref else None


class HandlePaymentWebhookUseCase:
    def __init__(self, coordinator: BookingLifecycleCoordinator, webhook_secret: str | None) -> None:
        self._coordinator = coordinator
        self._webhook_secret = webhook_secret
        self._logger = logging.getLogger(__name__)

    async def execute(self, raw_body: bytes, signature: str | None) -> dict:
        if not verify_signature(raw_body, signature, self._webhook_secret, source="payment"):
            self._logger.error("Payment webhook signature rejected")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")
        if not raw_body:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty webhook body")
        try:
            envelope = WebhookEnvelope.model_validate_json(raw_body)
        except PydanticValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event payload") from exc

        if envelope.event in PAYMENT_SUCCEEDED_EVENTS:
            reservation_id = extract_reservation_id(envelope.data)
            if not reservation_id:
                self._logger.error(
                    "Payment webhook missing reservation id metadata",
                    extra={"event": envelope.event},
                )
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST, detail="Missing reservation id in metadata"
                )
            payment_ref = extract_payment_ref(envelope.data)
            try:
                outcome = await self._coordinator.confirm_payment(reservation_id, payment_ref)
            except ReservationNotFoundError:
                self._logger.warning(
                    "Payment webhook for unknown reservation",
                    extra={"reservation_id": reservation_id, "payment_ref": payment_ref},
                )
                return {"ok": True}
            except DomainError as exc:
                self._logger.error(
                    "Payment webhook could not be applied",
                    extra={"reservation_id": reservation_id, "error_code": exc.code},
                )
                return {"ok": True}
            self._logger.info(
                "Payment webhook processed",
                extra={"reservation_id": reservation_id, "payment_ref": payment_ref, "outcome": outcome.value},
            )
        elif envelope.event in PAYMENT_FAILED_EVENTS:
            self._logger.warning(
                "Payment failed notification acknowledged",
                extra={"reservation_id": extract_reservation_id(envelope.data), "event": envelope.event},
            )
        else:
            self._logger.info("Payment webhook event ignored", extra={"event": envelope.event})
        return {"ok": True}
