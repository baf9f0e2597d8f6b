"""Heuristics for content that extracted fine but isn't worth trusting."""

from .models import ContentQuality, ExtractedContent

MIN_WORD_COUNT = 10

BOT_PROTECTION_PATTERNS = (
    "checking your browser",
    "attention required",
    "ddos protection by",
    "cf-browser-verification",
    "please verify you are a human",
    "just a moment",
    "enable javascript and cookies",
    "hcaptcha",
    "recaptcha",
)

LOGIN_WALL_PATTERNS = (
    "sign in to continue",
    "log in to continue",
    "please sign in",
    "please log in",
    "create an account",
    "subscribe to continue reading",
    "this content is for subscribers",
    "you must be logged in",
    "members only",
)

SOFT_404_PATTERNS = (
    "page not found",
    "404 not found",
    "this page doesn't exist",
    "no longer available",
    "has been removed",
)

# Social platforms only
DELETED_CONTENT_PATTERNS = (
    "this tweet has been deleted",
    "this post has been deleted",
    "this account has been suspended",
    "content not available",
)

ERROR_PAGE_PATTERNS = (
    "something went wrong",
    "this post is from a suspended account",
    "rate limit",
)


def _first_match(text: str, patterns: tuple[str, ...]) -> str | None:
    lower = text.lower()
    for pattern in patterns:
        if pattern in lower:
            return pattern
    return None


def assess_content_quality(content: ExtractedContent) -> ContentQuality:
    """Flag thin, blocked, or error-page content for manual review."""
    if content.word_count < MIN_WORD_COUNT:
        return ContentQuality(
            is_low_quality=True,
            reason="insufficient-content",
            detail=f"Only {content.word_count} words extracted (minimum {MIN_WORD_COUNT})",
        )

    # Bot checks first: Cloudflare interstitials often contain login-like text
    checks = [
        ("bot-protection", "Detected bot protection", BOT_PROTECTION_PATTERNS),
        ("login-wall", "Detected login wall", LOGIN_WALL_PATTERNS),
        ("soft-404", "Detected soft 404", SOFT_404_PATTERNS),
    ]
    if content.platform != "web":
        checks += [
            ("deleted-content", "Detected deleted content", DELETED_CONTENT_PATTERNS),
            ("error-page", "Detected error page", ERROR_PAGE_PATTERNS),
        ]

    for reason, label, patterns in checks:
        match = _first_match(content.content, patterns)
        if match:
            return ContentQuality(
                is_low_quality=True, reason=reason, detail=f'{label}: "{match}"'
            )

    return ContentQuality()
