"""Interaction Signing — Ed25519 verification for the Discord-to-webhook channel.

Invariants:
    - Message is timestamp.encode() + raw_body, over the bytes exactly as received
      (callers must verify BEFORE parsing JSON)
    - verify_interaction never raises: missing headers, bad hex, bad key or bad
      signature all return False
"""

import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

logger = logging.getLogger(__name__)


def verify_interaction(
    raw_body: bytes,
    signature: str | None,
    timestamp: str | None,
    public_key: str | None,
) -> bool:
    """Ed25519-Verify(public_key, timestamp || raw_body, signature)."""
    if not signature or not timestamp:
        logger.info("Interaction rejected: missing signature headers")
        return False
    if not public_key:
        logger.error("Interaction public key not configured")
        return False

    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key))
        key.verify(bytes.fromhex(signature), timestamp.encode("utf-8") + raw_body)
    except InvalidSignature:
        logger.info("Interaction rejected: signature mismatch")
        return False
    except Exception as e:
        logger.warning(f"Interaction rejected: verification error: {e}")
        return False
    return True
