import logging

from fastapi import HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from app.api.schemas.bookings import WebhookEnvelope
from app.application.interfaces.supplier_gateway import is_terminal_status
from app.application.use_cases.booking_lifecycle import BookingLifecycleCoordinator
from app.domain.errors import DomainError
from app.infrastructure.webhooks.signature import verify_signature


class HandleEtgWebhookUseCase:
    """Applies order status pushed by the supplier, exactly as poll reconciliation would."""

    def __init__(self, coordinator: BookingLifecycleCoordinator, webhook_secret: str | None) -> None:
        self._coordinator = coordinator
        self._webhook_secret = webhook_secret
        self._logger = logging.getLogger(__name__)

    async def execute(self, raw_body: bytes, signature: str | None) -> dict:
        if not verify_signature(raw_body, signature, self._webhook_secret, source="etg"):
            self._logger.error("ETG webhook signature rejected")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")
        if not raw_body:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty webhook body")
        try:
            envelope = WebhookEnvelope.model_validate_json(raw_body)
        except PydanticValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event payload") from exc

        data = envelope.data if isinstance(envelope.data, dict) else {}
        order_id = data.get("order_id")
        order_status = data.get("status")
        if not order_id or not is_terminal_status(order_status):
            self._logger.info(
                "ETG webhook without terminal order status",
                extra={"event": envelope.event, "order_id": order_id, "status": order_status},
            )
            return {"ok": True}

        try:
            await self._coordinator.apply_order_status(str(order_id), str(order_status))
        except DomainError as exc:
            self._logger.error(
                "ETG webhook could not be applied",
                extra={"order_id": order_id, "error_code": exc.code},
            )
        return {"ok": True}
