"""
Chain Client

Async read/write access to one EVM network through web3's AsyncWeb3:
balances, gas price, contract view calls, signed transaction submission and
confirmation waiting. Every transport failure is re-raised as one of the
sweeper error types so callers only deal with services.errors.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from web3 import AsyncWeb3, AsyncHTTPProvider, Web3

import config
from services.errors import (
    ConfirmationError,
    NetworkQueryError,
    ProviderConnectionError,
    SubmissionError,
)
from services.nonce_manager import nonce_manager as default_nonce_manager
from utils.confirmation_utils import wait_for_confirmations

logger = logging.getLogger("ChainClient")


@dataclass(frozen=True)
class ContractCall:
    """A state-changing contract function to encode into a transaction."""
    method: str
    args: Sequence


class ChainClient:
    def __init__(self, network, w3=None, nonces=None,
                 confirmation_timeout=config.CONFIRMATION_TIMEOUT,
                 poll_interval=config.CONFIRMATION_POLL_INTERVAL):
        self.network = network
        self.w3 = w3 or AsyncWeb3(
            AsyncHTTPProvider(network.rpc_endpoint, request_kwargs={"timeout": config.RPC_TIMEOUT})
        )
        self.nonces = nonces or default_nonce_manager
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.chain_id = None

    async def connect(self):
        """Check the provider is reachable and remember its chain id."""
        try:
            connected = await self.w3.is_connected()
            if connected:
                self.chain_id = await self.w3.eth.chain_id
        except Exception as e:
            raise ProviderConnectionError(
                f"Could not reach {self.network.name} RPC at {self.network.rpc_endpoint}: {e}"
            ) from e
        if not connected:
            raise ProviderConnectionError(
                f"Could not reach {self.network.name} RPC at {self.network.rpc_endpoint}"
            )
        logger.info(f"Connected to {self.network.name} (chain id {self.chain_id})")
        return self.chain_id

    def _contract(self, address):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=config.TOKEN_ABI)

    async def get_balance(self, address) -> int:
        try:
            return await self.w3.eth.get_balance(Web3.to_checksum_address(address))
        except Exception as e:
            raise NetworkQueryError(f"Balance query failed for {address}: {e}") from e

    async def get_fee_rate(self) -> int:
        try:
            return await self.w3.eth.gas_price
        except Exception as e:
            raise NetworkQueryError(f"Gas price query failed: {e}") from e

    async def read_contract(self, contract_address, method, args=()):
        try:
            fn = getattr(self._contract(contract_address).functions, method)
            return await fn(*args).call()
        except Exception as e:
            raise NetworkQueryError(f"{method} call on {contract_address} failed: {e}") from e

    async def submit_transfer(self, sender, to, value, gas_limit, fee_rate,
                              call: Optional[ContractCall] = None) -> str:
        """
        Sign and broadcast a legacy (gasPrice) transaction from `sender`.

        With `call`, `to` is the contract and the call is encoded as the
        transaction data. Returns the transaction hash as a 0x hex string.
        """
        if self.chain_id is None:
            await self.connect()

        try:
            nonce = await self.nonces.get_next_nonce(self.w3, sender.address)
            tx = {
                "from": sender.address,
                "nonce": nonce,
                "value": value,
                "gas": gas_limit,
                "gasPrice": fee_rate,
                "chainId": self.chain_id,
            }
            if call is None:
                tx["to"] = Web3.to_checksum_address(to)
            else:
                fn = getattr(self._contract(to).functions, call.method)
                tx = await fn(*call.args).build_transaction(tx)

            raw_tx = sender.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(raw_tx)
        except Exception as e:
            self.nonces.release(sender.address)
            raise SubmissionError(f"Transaction from {sender.address} failed: {e}") from e

        return Web3.to_hex(tx_hash)

    async def wait_for_confirmation(self, tx_handle):
        try:
            receipt = await wait_for_confirmations(
                self.w3, tx_handle, required=1,
                timeout=self.confirmation_timeout, poll_interval=self.poll_interval,
            )
        except Exception as e:
            raise ConfirmationError(f"Confirmation check for {tx_handle} failed: {e}") from e

        if receipt is None:
            raise ConfirmationError(
                f"Transaction {tx_handle} not confirmed after {self.confirmation_timeout}s"
            )
        if receipt.get("status") == 0:
            raise ConfirmationError(f"Transaction {tx_handle} reverted")
        return receipt
