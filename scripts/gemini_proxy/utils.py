"""Miscellaneous helpers used across proxy modules."""

from __future__ import annotations

import secrets
import string
from typing import List, Optional


_ID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def mask_secret(value: Optional[str]) -> str:
    """Render a credential as ``first8...last4`` for logs and listings."""
    if not value:
        return ""
    if len(value) <= 12:
        return f"{value[:4]}..."
    return f"{value[:8]}...{value[-4:]}"


def generate_chatcmpl_id() -> str:
    """Generate an OpenAI-style completion id: chatcmpl-<29 alphanumerics>."""
    return "chatcmpl-" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(29))


def split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


__all__ = ["mask_secret", "generate_chatcmpl_id", "split_csv"]
