import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def sign_body(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, "sha256").hexdigest()


def verify_signature(body: bytes, signature_header: str | None, secret: str | None, source: str) -> bool:
    """
    Hex HMAC-SHA256 of the raw body, optionally prefixed with `sha256=`.

    Without a configured secret every body is accepted (unsigned mode).
    """
    if not secret:
        logger.warning("No webhook secret configured; accepting unsigned body", extra={"webhook_source": source})
        return True

    if not signature_header:
        return False

    signature = signature_header.strip()
    if signature.lower().startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX):]

    return hmac.compare_digest(sign_body(body, secret), signature.lower())
