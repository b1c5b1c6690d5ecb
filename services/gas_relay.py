"""
Gas Relay

Tops up a source wallet's native balance from the relayer account so it can
pay for a planned transfer. The top-up is awaited to confirmation before
ensure_gas() returns, so the dependent transfer never goes out unfunded.
"""

import config
from services.errors import InsufficientRelayerFundsError, RelayerUnavailableError
from services.models import GasPlan


class GasRelay:
    def __init__(self, client, log, relayer=None):
        self.client = client
        self.log = log
        self.relayer = relayer

    async def plan(self, wallet, required_native: int) -> GasPlan:
        current = await self.client.get_balance(wallet.address)
        return GasPlan(wallet=wallet, required_native=required_native, current_native=current)

    async def ensure_gas(self, wallet, required_native: int) -> bool:
        """
        Make sure `wallet` holds at least `required_native` wei.

        Returns True once the balance is sufficient. Raises
        RelayerUnavailableError, InsufficientRelayerFundsError,
        SubmissionError or ConfirmationError when it cannot be made so.
        """
        gas_plan = await self.plan(wallet, required_native)
        if not gas_plan.needs_funding:
            return True

        self.log.warning(
            f"Wallet {wallet.address} does not have enough native tokens for gas "
            f"(has {gas_plan.current_native}, needs {required_native}). Attempting to use a relayer..."
        )
        if self.relayer is None:
            raise RelayerUnavailableError(
                f"Relayer private key not provided. Cannot add gas to {wallet.address}."
            )

        shortfall = gas_plan.shortfall
        relayer_balance = await self.client.get_balance(self.relayer.address)
        fee_rate = await self.client.get_fee_rate()
        relay_cost = shortfall + fee_rate * config.NATIVE_GAS_LIMIT
        if relayer_balance < relay_cost:
            raise InsufficientRelayerFundsError(
                f"Relayer wallet does not have enough native tokens. "
                f"Required: {relay_cost} wei, available: {relayer_balance} wei"
            )

        self.log.info(
            f"Relayer ({self.relayer.address}) is sending {shortfall} wei to wallet {wallet.address}..."
        )
        tx_handle = await self.client.submit_transfer(
            self.relayer, wallet.address, shortfall, config.NATIVE_GAS_LIMIT, fee_rate
        )
        self.log.success(f"Relay transaction sent! Hash: {tx_handle}")
        await self.client.wait_for_confirmation(tx_handle)
        self.log.success("Relay transaction confirmed. Target wallet now has enough gas.")
        return True
