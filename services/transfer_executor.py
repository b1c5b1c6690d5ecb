"""
Transfer Executor

One strategy per asset class, all sharing the same shape: fixed gas limit,
fresh gas price, relay top-up when the wallet is short, submit, then wait for
one confirmation. Failures are logged and returned as TransferResult errors;
they never escape a single wallet or item.
"""

import asyncio
from typing import Dict, List, Optional

import config
from services.chain_client import ContractCall
from services.errors import ConfirmationError, SweepError
from services.models import AssetClass, DiscoveredAsset, TransferResult


class TransferStrategy:
    """Common contract for moving one asset class out of a wallet."""
    asset_class: AssetClass = None
    gas_limit: int = 0
    tag = ""

    def __init__(self, client, relay, log):
        self.client = client
        self.relay = relay
        self.log = log

    async def transfer(self, wallet, destination, asset: Optional[DiscoveredAsset] = None) -> List[TransferResult]:
        raise NotImplementedError

    async def _send_and_confirm(self, wallet, to, value, fee_rate, call=None, what="Transaction") -> TransferResult:
        tx_handle = await self.client.submit_transfer(wallet, to, value, self.gas_limit, fee_rate, call=call)
        self.log.success(f"{self.tag}Transaction sent! Hash: {tx_handle}")
        try:
            await self.client.wait_for_confirmation(tx_handle)
        except ConfirmationError as e:
            self.log.error(f"{self.tag}{what} was not confirmed: {e}")
            return TransferResult(tx_handle=tx_handle, confirmed=False, error=str(e))
        self.log.success(f"{self.tag}{what} successfully confirmed!")
        return TransferResult(tx_handle=tx_handle, confirmed=True)

    async def _fund_for_transfer(self, wallet) -> int:
        fee_rate = await self.client.get_fee_rate()
        await self.relay.ensure_gas(wallet, self.gas_limit * fee_rate)
        return fee_rate


class NativeTransfer(TransferStrategy):
    asset_class = AssetClass.NATIVE
    gas_limit = config.NATIVE_GAS_LIMIT

    async def transfer(self, wallet, destination, asset=None):
        self.log.info(f"--- Processing native wallet: {wallet.address} ---")
        try:
            balance = await self.client.get_balance(wallet.address)
            fee_rate = await self.client.get_fee_rate()
            gas_cost = fee_rate * self.gas_limit

            if balance <= gas_cost:
                self.log.info(f"Insufficient native balance for gas. Balance: {balance} wei")
                return []

            amount = balance - gas_cost
            self.log.info(f"Sufficient balance. Sweeping {amount} wei...")
            return [await self._send_and_confirm(wallet, destination, amount, fee_rate)]
        except SweepError as e:
            self.log.error(f"Failed to sweep native balance of {wallet.address}: {e}")
            return [TransferResult(tx_handle=None, confirmed=False, error=str(e))]
        except Exception as e:
            self.log.error(f"Unexpected error sweeping native balance of {wallet.address}: {e}")
            return [TransferResult(tx_handle=None, confirmed=False, error=str(e))]


class FungibleTransfer(TransferStrategy):
    asset_class = AssetClass.FUNGIBLE
    gas_limit = config.FUNGIBLE_GAS_LIMIT
    tag = "[ERC-20] "

    async def transfer(self, wallet, destination, asset=None):
        try:
            fee_rate = await self._fund_for_transfer(wallet)
            self.log.info(f"{self.tag}Sweeping balance of {asset.quantity} base units...")
            call = ContractCall("transfer", [destination, asset.quantity])
            result = await self._send_and_confirm(
                wallet, asset.contract_address, 0, fee_rate, call=call,
                what=f"Token transaction for {asset.contract_address}",
            )
            return [result]
        except SweepError as e:
            self.log.error(f"{self.tag}Failed to sweep token: {e}")
            return [TransferResult(tx_handle=None, confirmed=False, error=str(e))]
        except Exception as e:
            self.log.error(f"{self.tag}Unexpected error sweeping token {asset.contract_address}: {e}")
            return [TransferResult(tx_handle=None, confirmed=False, error=str(e))]


class NonFungibleTransfer(TransferStrategy):
    asset_class = AssetClass.NONFUNGIBLE
    gas_limit = config.NONFUNGIBLE_GAS_LIMIT
    tag = "[NFT] "

    def __init__(self, client, relay, log, item_delay: float = 1.0):
        super().__init__(client, relay, log)
        self.item_delay = item_delay

    async def transfer(self, wallet, destination, asset=None):
        results = []
        for _ in range(asset.quantity):
            results.append(await self._transfer_first_item(wallet, destination, asset.contract_address))
            await asyncio.sleep(self.item_delay)
        return results

    async def _transfer_first_item(self, wallet, destination, contract_address) -> TransferResult:
        try:
            # index 0 every time: each transfer shifts the owner's enumeration
            token_id = await self.client.read_contract(
                contract_address, "tokenOfOwnerByIndex", [wallet.address, 0]
            )
            fee_rate = await self._fund_for_transfer(wallet)
            self.log.info(f"{self.tag}Sweeping NFT with ID #{token_id} from contract {contract_address}...")
            call = ContractCall("safeTransferFrom", [wallet.address, destination, token_id])
            return await self._send_and_confirm(
                wallet, contract_address, 0, fee_rate, call=call,
                what=f"NFT with ID #{token_id}",
            )
        except SweepError as e:
            self.log.error(f"{self.tag}Failed to sweep NFT: {e}")
            return TransferResult(tx_handle=None, confirmed=False, error=str(e))
        except Exception as e:
            self.log.error(f"{self.tag}Unexpected error sweeping NFT from {contract_address}: {e}")
            return TransferResult(tx_handle=None, confirmed=False, error=str(e))


class TransferExecutor:
    def __init__(self, client, relay, log, nft_item_delay: float = 1.0):
        self.strategies: Dict[AssetClass, TransferStrategy] = {
            AssetClass.NATIVE: NativeTransfer(client, relay, log),
            AssetClass.FUNGIBLE: FungibleTransfer(client, relay, log),
            AssetClass.NONFUNGIBLE: NonFungibleTransfer(client, relay, log, item_delay=nft_item_delay),
        }

    async def transfer_native(self, wallet, destination) -> Optional[TransferResult]:
        """Send everything above the gas cost. None when there is nothing to send."""
        results = await self.strategies[AssetClass.NATIVE].transfer(wallet, destination)
        return results[0] if results else None

    async def transfer_fungible(self, wallet, destination, contract_address, quantity) -> TransferResult:
        asset = DiscoveredAsset(wallet, contract_address, AssetClass.FUNGIBLE, quantity)
        results = await self.strategies[AssetClass.FUNGIBLE].transfer(wallet, destination, asset)
        return results[0]

    async def transfer_nonfungible(self, wallet, destination, contract_address, count) -> List[TransferResult]:
        asset = DiscoveredAsset(wallet, contract_address, AssetClass.NONFUNGIBLE, count)
        return await self.strategies[AssetClass.NONFUNGIBLE].transfer(wallet, destination, asset)

    async def sweep_asset(self, asset: DiscoveredAsset, destination) -> List[TransferResult]:
        return await self.strategies[asset.asset_class].transfer(asset.wallet, destination, asset)
