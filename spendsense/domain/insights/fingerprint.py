"""Deduplication key for insights."""
from __future__ import annotations

import hashlib
from datetime import date

FINGERPRINT_LENGTH = 16


def fingerprint(title: str, body: str, date_bucket: date) -> str:
    """Return a stable 16-hex-char key for ``(title, body, date_bucket)``.

    The digest is only used to deduplicate insights per owner and day, not
    for anything security related.
    """
    payload = f"{title}{body}{date_bucket.isoformat()}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
