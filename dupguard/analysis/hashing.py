from __future__ import annotations
import hashlib

def content_hash(canonical_form: str) -> str:
    """SHA-256 hex digest of a canonical form. Unsalted, so stable across runs."""
    return hashlib.sha256(canonical_form.encode("utf-8")).hexdigest()
