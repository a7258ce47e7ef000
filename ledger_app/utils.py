"""
Utility functions shared across the blueprints:
- safe_next_url: only allow local redirect targets.
- parse_optional_date: read an optional YYYY-MM-DD query/form value.
"""

from __future__ import annotations

from datetime import date
from urllib.parse import urlparse

from flask import request, url_for

from .ledger import parse_date


def safe_next_url(raw_next: str | None, fallback_endpoint: str, **values) -> str:
    """
    Return a safe local next URL.

    Rules:
    - Only allow relative URLs (no scheme/netloc).
    - Fall back to an internal endpoint if invalid/empty.
    """
    fallback = url_for(fallback_endpoint, **values)
    if not raw_next:
        return fallback

    parsed = urlparse(raw_next)
    if parsed.scheme or parsed.netloc:
        return fallback
    if not raw_next.startswith("/") or raw_next.startswith("//"):
        return fallback

    return raw_next


def get_next_from_request(fallback_endpoint: str, **values) -> str:
    """Read next from args/form and return safe local URL."""
    raw = request.args.get("next") or request.form.get("next")
    return safe_next_url(raw, fallback_endpoint, **values)


def parse_optional_date(value: str | None) -> date | None:
    """Parse an optional date filter; raises ValidationError on garbage."""
    return parse_date(value, required=False)
