"""Wallet Credentials Module"""

from .accounts import (
    WalletCredential,
    load_wallet,
    load_wallets,
    load_relayer
)

__all__ = [
    'WalletCredential',
    'load_wallet',
    'load_wallets',
    'load_relayer'
]
