"""
Link resolution and filtering.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urldefrag, urlsplit, urlunsplit

from route_crawler.config import SKIP_EXTENSIONS, SKIP_SCHEMES


def resolve_url(base: str, href: str) -> str:
    """
    Turn an href found on page *base* into an absolute URL.

    - ``http://`` and ``https://`` hrefs are returned unchanged
    - protocol-relative ``//host/path`` hrefs get ``https:``
    - root-relative ``/path`` hrefs are joined to base's scheme and host
    - anything else is joined to base's directory, with ``/./`` collapsed

    ``..`` segments are left as they are.
    """
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("//"):
        return "https:" + href

    parsed = urlsplit(base)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    if href.startswith("/"):
        return origin + href

    # Drop the last path segment (and any query/fragment) of the base
    directory = parsed.path.rsplit("/", 1)[0] if "/" in parsed.path else ""
    resolved = f"{origin}{directory}/{href}"
    while "/./" in resolved:
        resolved = resolved.replace("/./", "/")
    return resolved


def canonical_url(url: str) -> Optional[str]:
    """
    Drop the fragment and lower-case scheme and host; path and query are kept verbatim.

    Returns None if *url* cannot be parsed (e.g. an unterminated ``[`` IPv6 host).
    """
    try:
        url, _ = urldefrag(url)
        parsed = urlsplit(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return url
    return urlunsplit((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        parsed.path,
        parsed.query,
        "",
    ))


def extract_host(url: str) -> Optional[str]:
    """Return the lower-cased host of *url*, or None if it has none."""
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def is_followable(href: str) -> bool:
    """False for in-page anchors and mailto/tel/javascript/ftp/data links."""
    if not href or href.startswith("#"):
        return False
    scheme, sep, _ = href.partition(":")
    return not (sep and scheme.lower() in SKIP_SCHEMES)


def is_valid_link(url: str, seed_host: str) -> bool:
    """
    Decide whether *url* should be looked up and crawled.

    Rejects in-page anchors, non-web schemes (mailto, tel, javascript, ftp,
    data), other hosts and links to documents, images, scripts and the like.
    """
    if not is_followable(url):
        return False

    host = extract_host(url)
    if not host or host != seed_host.lower():
        return False

    path_lower = urlsplit(url).path.lower()
    if any(path_lower.endswith(ext) for ext in SKIP_EXTENSIONS):
        return False

    return True
