"""Deterministic article identifiers."""
import hashlib
from typing import Optional
from urllib.parse import urlsplit


def compute_article_id(url: str) -> str:
    """
    Fingerprint an article URL.

    The id is the lowercase SHA-256 hex digest of the trimmed URL, so any
    client can compute it before the article exists.

    Args:
        url: Canonical article URL

    Returns:
        64-character hex string
    """
    return hashlib.sha256(url.strip().encode("utf-8")).hexdigest()


def extract_source_domain(url: str) -> Optional[str]:
    """Host part of a URL without a leading ``www.``, or None if there is none."""
    host = urlsplit(url.strip()).hostname
    if not host:
        return None
    if host.startswith("www."):
        host = host[4:]
    return host[:255]
