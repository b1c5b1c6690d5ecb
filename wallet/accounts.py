"""
Source and relayer accounts.

Signing material stays in process memory for the lifetime of the run and is
never written anywhere by the sweeper.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from services.errors import ConfigurationError


@dataclass(frozen=True)
class WalletCredential:
    address: str
    account: LocalAccount = field(repr=False, compare=False)

    def sign_transaction(self, tx: dict) -> bytes:
        """Sign a transaction dict and return the raw bytes ready to broadcast."""
        signed = self.account.sign_transaction(tx)
        raw_tx = getattr(signed, "raw_transaction", getattr(signed, "rawTransaction", None))
        if raw_tx is None:
            raise ValueError("Unable to extract raw transaction")
        return raw_tx


def load_wallet(private_key: str) -> WalletCredential:
    account = Account.from_key(private_key)
    return WalletCredential(address=account.address, account=account)


def load_wallets(private_keys: Iterable[str]) -> List[WalletCredential]:
    """Build credentials for every source key, failing on the first bad one."""
    wallets = []
    for index, key in enumerate(private_keys):
        try:
            wallets.append(load_wallet(key))
        except Exception as e:
            raise ConfigurationError(f"Invalid source private key at position {index}: {e}") from e
    return wallets


def load_relayer(private_key: Optional[str], log) -> Optional[WalletCredential]:
    """
    Build the relayer credential.

    A bad relayer key is not fatal: it is logged and the run continues
    without a relayer, so gas top-ups are skipped.
    """
    if not private_key:
        return None
    try:
        relayer = load_wallet(private_key)
    except Exception as e:
        log.error(f"[ERROR] Invalid relayer private key: {e}")
        return None
    log.info(f"Relayer wallet set up: {relayer.address}")
    return relayer
