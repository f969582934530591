"""EVM wallet address helpers."""

from __future__ import annotations

import re

_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_wallet(w: str) -> bool:
    """Return True if w is a 0x-prefixed 20-byte hex address (any checksum casing)."""
    return bool(_EVM_ADDRESS_RE.match((w or "").strip()))


def normalize_address(w: str | None) -> str:
    """Lower-case and strip an address; explorer and stored addresses compare in this form."""
    return (w or "").strip().lower()


def short(w: str) -> str:
    """Shorten an address for log lines."""
    return w[:10] + "..." if len(w) > 12 else w
