"""
Sweep Scheduler

Drives one round at a time: scan every wallet/contract pair first, then
fund and transfer what was found (native sweeps skip the scan). A round
always runs to the end, and the next one starts a fixed interval after it.
"""

import asyncio
import logging
from typing import Optional

import config
from services.asset_scanner import AssetScanner
from services.chain_client import ChainClient
from services.errors import ConfigurationError
from services.gas_relay import GasRelay
from services.models import AssetClass, RoundSummary
from services.transfer_executor import TransferExecutor
from utils.sweep_log import SweepLog
from wallet.accounts import load_relayer, load_wallets

logger = logging.getLogger("SweepScheduler")


class SweepScheduler:
    def __init__(self, sweep_config, asset_class: AssetClass, client, log,
                 wallets, relayer=None):
        self.config = sweep_config
        self.asset_class = asset_class
        self.client = client
        self.log = log
        self.wallets = list(wallets)
        self.delays = sweep_config.delays
        self.relay = GasRelay(client, log, relayer=relayer)
        self.scanner = AssetScanner(client, log, delay=self.delays.scan)
        self.executor = TransferExecutor(client, self.relay, log, nft_item_delay=self.delays.nft_item)
        self.state = "idle"
        self.rounds_completed = 0

    @property
    def interval_seconds(self) -> float:
        return self.config.polling_interval_ms / 1000

    async def run_round(self) -> RoundSummary:
        summary = RoundSummary()
        try:
            if self.asset_class is AssetClass.NATIVE:
                await self._sweep_native(summary)
            else:
                await self._sweep_tokens(summary)
        except Exception as e:
            # a round must never take the scheduler down with it
            logger.exception("Unexpected error during sweep round")
            self.log.error(f"Sweep round aborted by unexpected error: {e}")
        finally:
            self.state = "idle"
            self.rounds_completed += 1

        self.log.info(f"Sweep process finished for this round. ({summary.describe()})")
        return summary

    async def _sweep_native(self, summary):
        self.state = "transferring"
        for wallet in self.wallets:
            result = await self.executor.transfer_native(wallet, self.config.destination_address)
            summary.record(result)
            await asyncio.sleep(self.delays.native)

    async def _sweep_tokens(self, summary):
        self.state = "scanning"
        self.log.info(f"--- Starting {self.asset_class.label} balance check on all wallets... ---")
        found = await self.scanner.scan(self.wallets, self.config.contract_addresses, self.asset_class)
        summary.discovered = len(found)

        if not found:
            self.log.info(f"No {self.asset_class.label} assets found. Stopping process.")
            return

        self.state = "transferring"
        self.log.info("--- Balance check complete. Starting sweep process... ---")
        for asset in found:
            self.log.info(f"--- Processing {asset.asset_class.label} asset in wallet {asset.wallet.address} ---")
            for result in await self.executor.sweep_asset(asset, self.config.destination_address):
                summary.record(result)
            await asyncio.sleep(self.delays.asset)

    async def run_forever(self, max_rounds: Optional[int] = None):
        """Run rounds back to back, waiting the polling interval after each one."""
        while True:
            await self.run_round()
            if max_rounds is not None and self.rounds_completed >= max_rounds:
                return
            await asyncio.sleep(self.interval_seconds)
            self.log.info("--- Starting next sweep round ---")


async def start_sweep(asset_class, network_name, sweep_config=None, log=None,
                      client=None, max_rounds=None):
    """
    Build everything a sweep needs and run it.

    Raises ConfigurationError or ProviderConnectionError before the first
    round; after that only an outside cancellation stops it.
    """
    log = log or SweepLog()
    if not isinstance(asset_class, AssetClass):
        try:
            asset_class = AssetClass.parse(asset_class)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    if sweep_config is None:
        log.info("Loading configuration from config file...")
        sweep_config = config.validate_config(config.load_config())

    network = sweep_config.network(network_name)
    if asset_class is not AssetClass.NATIVE and not sweep_config.contract_addresses:
        raise ConfigurationError(
            f"CONTRACT_ADDRESSES must not be empty for {asset_class.value} sweeps"
        )

    wallets = load_wallets(sweep_config.source_wallet_keys)
    relayer = load_relayer(sweep_config.relayer_key, log)

    if client is None:
        client = ChainClient(
            network,
            confirmation_timeout=sweep_config.confirmation_timeout,
            poll_interval=sweep_config.confirmation_poll_interval,
        )
    await client.connect()

    log.info(
        f"Starting sweeper for asset type: {asset_class.value} on network: {network.name}. "
        f"Checking every {network.polling_interval_ms / 1000} seconds..."
    )
    scheduler = SweepScheduler(sweep_config, asset_class, client, log, wallets, relayer=relayer)
    await scheduler.run_forever(max_rounds=max_rounds)
    return scheduler
