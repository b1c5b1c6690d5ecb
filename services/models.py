"""Data model shared by the scanner, relay, executor and scheduler."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from wallet.accounts import WalletCredential


class AssetClass(Enum):
    NATIVE = "native"
    FUNGIBLE = "erc-20"
    NONFUNGIBLE = "nft"

    @classmethod
    def parse(cls, text: str) -> "AssetClass":
        """Accept the selector value ("erc-20") or the member name ("FUNGIBLE")."""
        key = (text or "").strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown asset class: {text!r}")

    @property
    def label(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class DiscoveredAsset:
    wallet: "WalletCredential"
    contract_address: str
    asset_class: AssetClass
    # raw base units for fungible tokens, owned-item count for NFTs
    quantity: int

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError("DiscoveredAsset quantity must be positive")


@dataclass(frozen=True)
class GasPlan:
    wallet: "WalletCredential"
    required_native: int
    current_native: int

    @property
    def shortfall(self) -> int:
        return self.required_native - self.current_native

    @property
    def needs_funding(self) -> bool:
        return self.shortfall > 0


@dataclass(frozen=True)
class TransferResult:
    tx_handle: Optional[str]
    confirmed: bool
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.confirmed and self.error is None


@dataclass
class RoundSummary:
    """Counters for one sweep round."""
    discovered: int = 0
    submitted: int = 0
    confirmed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def record(self, result: Optional[TransferResult]):
        if result is None:
            self.skipped += 1
            return
        if result.tx_handle:
            self.submitted += 1
        if result.ok:
            self.confirmed += 1
        else:
            self.failed += 1
            if result.error:
                self.errors.append(result.error)

    def describe(self) -> str:
        return (
            f"discovered={self.discovered} submitted={self.submitted} "
            f"confirmed={self.confirmed} failed={self.failed} skipped={self.skipped}"
        )
