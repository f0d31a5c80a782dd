"""
botgraph.platform.signature

Ed25519 verification of inbound interaction webhooks.
"""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey


def verify_signature(*, public_key_hex: str, signature_hex: str, timestamp: str, body: bytes) -> bool:
    # The signed message is the timestamp header followed by the raw request body.
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
        key.verify(bytes.fromhex(signature_hex), timestamp.encode() + body)
    except (InvalidSignature, ValueError):
        return False
    return True
