"""
Referrer normalization for view statistics.

A Referer header is reduced to its bare host so that counts aggregate per
site rather than per page:

    https://www.google.com/search?q=x  ->  google.com
    (no header)                        ->  direct
"""

from urllib.parse import urlparse

DIRECT = "direct"


def _normalize_domain(domain: str) -> str:
    """Remove www. prefix and lowercase."""
    domain = domain.lower().strip().rstrip(".")
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def _extract_domain(referrer: str) -> str | None:
    """
    Extract and normalize the host from a referrer URL.

    Returns None if referrer is empty or unparseable.
    """
    if not referrer or not referrer.strip():
        return None

    referrer = referrer.strip()
    # Handle URLs without scheme
    if "://" not in referrer:
        referrer = "https://" + referrer

    try:
        host = urlparse(referrer).hostname
    except ValueError:
        return None

    if not host:
        return None

    return _normalize_domain(host) or None


def referrer_domain(referrer: str | None) -> str:
    """
    Map a Referer header value to the key used in referrer counts.

    Examples:
        >>> referrer_domain("https://www.google.com/search?q=test")
        'google.com'

        >>> referrer_domain("https://t.co/abc123")
        't.co'

        >>> referrer_domain(None)
        'direct'
    """
    return _extract_domain(referrer or "") or DIRECT
