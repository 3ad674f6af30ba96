"""
Preview identifiers and privacy-preserving visitor hashes.

Visitor hashes are one-way: the SHA-256 digest of the client IP, truncated
to 16 hex characters. Raw IPs are never stored or logged.
"""
import hashlib
import uuid
from typing import Mapping

UNKNOWN_IP = "unknown"
VISITOR_HASH_LENGTH = 16

# Checked in order; X-Forwarded-For may hold a comma-separated chain
IP_HEADERS = ("cf-connecting-ip", "x-real-ip", "x-forwarded-for")


def generate_preview_id() -> str:
    """Return a random UUID v4 string (122 random bits)."""
    return str(uuid.uuid4())


def hash_visitor(ip: str | None) -> str:
    """Hash a client IP into a pseudonymous visitor identifier."""
    value = ip or UNKNOWN_IP
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:VISITOR_HASH_LENGTH]


def client_ip(headers: Mapping[str, str], peer: str | None = None) -> str:
    """Extract the client IP from proxy headers, then the socket peer.

    Args:
        headers: Request headers (case-insensitive mapping)
        peer: Socket peer address, if the server knows it

    Returns:
        The best-guess client IP, or "unknown"
    """
    for name in IP_HEADERS:
        value = headers.get(name, "")
        ip = value.split(",")[0].strip()
        if ip:
            return ip
    return peer or UNKNOWN_IP
