"""
Data models for explorer API output.

Three raw shapes come back from an Etherscan-compatible explorer: native
transfers (txlist), internal transfers (txlistinternal) and token
transfers (tokentx). Each is parsed from the explorer's string-valued JSON
into a frozen dataclass; nothing here is persisted as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CATEGORY_NATIVE = "native"
CATEGORY_INTERNAL = "internal"
CATEGORY_TOKEN = "token"
CATEGORIES = (CATEGORY_NATIVE, CATEGORY_INTERNAL, CATEGORY_TOKEN)


def _int(value: Any, default: int | None = None) -> int:
    """Parse explorer numerics: decimal strings, hex strings, ints. Empty -> default."""
    if value is None or value == "":
        if default is None:
            raise ValueError("missing integer field")
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return _int(value)


def _int_str(value: Any) -> str:
    """Normalize a uint256 amount to its decimal string; empty -> "0"."""
    return str(_int(value, 0))


@dataclass(frozen=True)
class RawTransaction:
    """Fields shared by all three shapes."""

    hash: str
    block_number: int
    timestamp: int
    from_address: str
    to_address: str
    value: str
    gas_used: int | None = None
    gas_price: int | None = None
    category: str = field(default=CATEGORY_NATIVE, compare=False)

    @property
    def fee(self) -> int:
        """gas_used * gas_price, or 0 when either is unknown."""
        if self.gas_used is None or self.gas_price is None:
            return 0
        return self.gas_used * self.gas_price


@dataclass(frozen=True)
class NativeTransfer(RawTransaction):
    """txlist item: a top-level transaction carrying native value."""

    is_error: bool = False

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "NativeTransfer":
        return cls(
            hash=item["hash"],
            block_number=_int(item["blockNumber"]),
            timestamp=_int(item.get("timeStamp"), 0),
            from_address=item.get("from") or "",
            to_address=item.get("to") or "",
            value=_int_str(item.get("value")),
            gas_used=_opt_int(item.get("gasUsed")),
            gas_price=_opt_int(item.get("gasPrice")),
            is_error=str(item.get("isError", "0")) == "1",
            category=CATEGORY_NATIVE,
        )


@dataclass(frozen=True)
class InternalTransfer(RawTransaction):
    """txlistinternal item: value moved by contract execution. Usually no gasPrice."""

    is_error: bool = False

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "InternalTransfer":
        return cls(
            hash=item["hash"],
            block_number=_int(item["blockNumber"]),
            timestamp=_int(item.get("timeStamp"), 0),
            from_address=item.get("from") or "",
            to_address=item.get("to") or "",
            value=_int_str(item.get("value")),
            gas_used=_opt_int(item.get("gasUsed")),
            gas_price=_opt_int(item.get("gasPrice")),
            is_error=str(item.get("isError", "0")) == "1",
            category=CATEGORY_INTERNAL,
        )


@dataclass(frozen=True)
class TokenTransfer(RawTransaction):
    """tokentx item: ERC-20/BEP-20 Transfer event."""

    contract_address: str = ""
    token_symbol: str = ""
    token_decimals: int = 0

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "TokenTransfer":
        return cls(
            hash=item["hash"],
            block_number=_int(item["blockNumber"]),
            timestamp=_int(item.get("timeStamp"), 0),
            from_address=item.get("from") or "",
            to_address=item.get("to") or "",
            value=_int_str(item.get("value")),
            gas_used=_opt_int(item.get("gasUsed")),
            gas_price=_opt_int(item.get("gasPrice")),
            contract_address=item.get("contractAddress") or "",
            token_symbol=item.get("tokenSymbol") or "",
            token_decimals=_int(item.get("tokenDecimal"), 0),
            category=CATEGORY_TOKEN,
        )


@dataclass
class FetchResult:
    """Output of one fetch: the three categories plus any that degraded to empty."""

    native: list[NativeTransfer] = field(default_factory=list)
    internal: list[InternalTransfer] = field(default_factory=list)
    token: list[TokenTransfer] = field(default_factory=list)
    degraded: dict[str, str] = field(default_factory=dict)
    """category -> explorer message for categories that returned a non-success status."""

    @property
    def total(self) -> int:
        return len(self.native) + len(self.internal) + len(self.token)

    @property
    def is_partial(self) -> bool:
        return bool(self.degraded)
