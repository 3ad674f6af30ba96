"""
User-Agent classification for view statistics.

Every browser claims to be several others (Edge says Chrome and Safari,
Chrome says Safari), so labels are checked in a fixed order and the first
substring match wins. Only a coarse label is kept, never the raw string.
"""

UNKNOWN = "unknown"
OTHER = "Other"

# =============================================================================
# LABEL PATTERNS
# =============================================================================
# Order matters! Each tuple: (substrings, label, substrings that veto the match)

UA_LABELS = [
    (("Edg",), "Edge", ()),
    (("Chrome",), "Chrome", ()),
    (("Firefox",), "Firefox", ()),
    (("Safari",), "Safari", ("Chrome",)),
    (("Opera",), "Opera", ()),
    (("Mobile",), "Mobile", ()),
    (("Android",), "Android", ()),
    (("iPhone", "iPad"), "iOS", ()),
]


def classify_user_agent(user_agent: str | None) -> str:
    """
    Reduce a User-Agent header to a browser or platform label.

    Args:
        user_agent: The User-Agent header value, or None if absent

    Returns:
        One of Edge, Chrome, Firefox, Safari, Opera, Mobile, Android, iOS,
        Other, or "unknown" when no header was sent

    Examples:
        >>> classify_user_agent("Mozilla/5.0 ... Chrome/119.0.0.0 Safari/537.36 Edg/119.0.0.0")
        'Edge'

        >>> classify_user_agent("Mozilla/5.0 (iPhone; ...) Version/17.0 Mobile/15E148 Safari/604.1")
        'Safari'
    """
    if not user_agent:
        return UNKNOWN

    for needles, label, vetoes in UA_LABELS:
        if any(n in user_agent for n in needles) and not any(v in user_agent for v in vetoes):
            return label

    return OTHER
