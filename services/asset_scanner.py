"""
Asset Scanner

Walks every (wallet, contract) pair, one balanceOf call at a time, and keeps
the pairs with a nonzero balance. Order is wallet-major, contract-minor.
"""

import asyncio
from typing import List, Sequence

from services.errors import NetworkQueryError
from services.models import AssetClass, DiscoveredAsset


class AssetScanner:
    def __init__(self, client, log, delay: float = 0.5):
        self.client = client
        self.log = log
        self.delay = delay

    async def scan(self, wallets: Sequence, contracts: Sequence[str],
                   asset_class: AssetClass) -> List[DiscoveredAsset]:
        if asset_class is AssetClass.NATIVE:
            raise ValueError("Native balances are not scanned per contract")

        found = []
        for wallet in wallets:
            self.log.info(f"[Check] Checking wallet: {wallet.address}")
            for contract_address in contracts:
                try:
                    balance = await self.client.read_contract(
                        contract_address, "balanceOf", [wallet.address]
                    )
                    if balance > 0:
                        self.log.info(
                            f"[Check] Found {asset_class.value} with balance/count {balance} "
                            f"in wallet {wallet.address}."
                        )
                        found.append(DiscoveredAsset(
                            wallet=wallet,
                            contract_address=contract_address,
                            asset_class=asset_class,
                            quantity=int(balance),
                        ))
                except NetworkQueryError as e:
                    self.log.error(
                        f"[Check] Failed to check contract {contract_address} "
                        f"on wallet {wallet.address}: {e}"
                    )
                except Exception as e:
                    self.log.error(
                        f"[Check] Unexpected error checking contract {contract_address} "
                        f"on wallet {wallet.address}: {e}"
                    )
                await asyncio.sleep(self.delay)
        return found
