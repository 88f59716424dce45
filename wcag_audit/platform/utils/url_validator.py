from typing import Tuple
from urllib.parse import urlparse, urlunparse

ALLOWED_SCHEMES = ("http", "https")


def normalize_url(url: str) -> str:
    """Lower-case scheme and host so the same page always maps to the same scans."""
    parsed = urlparse(url.strip())
    return urlunparse(parsed._replace(scheme=parsed.scheme.lower(), netloc=parsed.netloc.lower()))


def validate_url(url) -> Tuple[bool, str, str]:
    """
    Returns (is_valid, normalized_url, error_message).

    Only absolute http/https URLs with a host are accepted; a missing
    scheme is an error rather than something to guess.
    """
    if not isinstance(url, str) or not url.strip():
        return False, "", "URL cannot be empty"

    try:
        parsed = urlparse(url.strip())
        # Accessing .port validates it
        parsed.port
    except ValueError as e:
        return False, url.strip(), f"URL parsing error: {str(e)}"

    if not parsed.scheme:
        return False, url.strip(), "Invalid URL format: missing scheme (http:// or https://)"

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False, url.strip(), f"Invalid URL scheme: {parsed.scheme} (must be http or https)"

    if not parsed.netloc or not parsed.hostname:
        return False, url.strip(), "Invalid URL format: missing domain"

    if any(ch.isspace() for ch in url.strip()):
        return False, url.strip(), "Invalid URL format: contains whitespace"

    return True, normalize_url(url), ""
