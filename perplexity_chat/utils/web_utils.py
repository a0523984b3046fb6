"""URL helpers"""

from urllib.parse import urlparse

WEB_SCHEMES = ("http", "https")


def is_web_url(url: str) -> bool:
    """True for absolute http(s) urls with a host"""
    if not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in WEB_SCHEMES and bool(parsed.netloc)


def is_safe_href(url: str) -> bool:
    """Allow web urls, mailto and relative links; reject other schemes such as javascript:"""
    if not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    if parsed.scheme == "mailto":
        return True
    if parsed.scheme:
        return is_web_url(url)
    # Relative link: nothing scheme-like before the first slash
    return ":" not in url.split("/", 1)[0]
