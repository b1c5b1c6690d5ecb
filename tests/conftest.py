import sys
from pathlib import Path

import pytest

# Add project root so `import services`, `import config` work in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Delays, validate_config  # noqa: E402
from services.errors import ConfirmationError, NetworkQueryError, SubmissionError  # noqa: E402
from utils.sweep_log import SweepLog  # noqa: E402
from wallet.accounts import load_wallet  # noqa: E402

DESTINATION = "0x000000000000000000000000000000000000dead"
CONTRACT_1 = "0x" + "c1" * 20
CONTRACT_2 = "0x" + "c2" * 20
KEY_1 = "0x" + "11" * 32
KEY_2 = "0x" + "22" * 32
RELAYER_KEY = "0x" + "33" * 32


class FakeChainClient:
    """In-memory chain: native balances, token balances and owned NFT ids."""

    def __init__(self, fee_rate=10):
        self.fee_rate = fee_rate
        self.native = {}
        self.tokens = {}
        self.nfts = {}
        self.failing_reads = set()
        self.failing_senders = set()
        self.unconfirmed = set()
        self.calls = []
        self.submissions = []
        self.confirmed = []

    @staticmethod
    def _key(*parts):
        return tuple(p.lower() for p in parts)

    def set_native(self, address, amount):
        self.native[address.lower()] = amount

    def set_tokens(self, contract, address, amount):
        self.tokens[self._key(contract, address)] = amount

    def set_nfts(self, contract, address, token_ids):
        self.nfts[self._key(contract, address)] = list(token_ids)

    def native_of(self, address):
        return self.native.get(address.lower(), 0)

    def tokens_of(self, contract, address):
        return self.tokens.get(self._key(contract, address), 0)

    def nfts_of(self, contract, address):
        return self.nfts.get(self._key(contract, address), [])

    async def connect(self):
        self.calls.append(("connect",))
        return 1

    async def get_balance(self, address):
        self.calls.append(("get_balance", address))
        return self.native_of(address)

    async def get_fee_rate(self):
        self.calls.append(("get_fee_rate",))
        return self.fee_rate

    async def read_contract(self, contract, method, args=()):
        self.calls.append(("read_contract", contract, method, tuple(args)))
        if self._key(contract, args[0]) in self.failing_reads:
            raise NetworkQueryError(f"{method} call on {contract} failed: boom")
        if method == "balanceOf":
            key = self._key(contract, args[0])
            if key in self.nfts:
                return len(self.nfts[key])
            return self.tokens.get(key, 0)
        if method == "tokenOfOwnerByIndex":
            owned = self.nfts_of(contract, args[0])
            if args[1] >= len(owned):
                raise NetworkQueryError("owner index out of bounds")
            return owned[args[1]]
        raise NetworkQueryError(f"unknown method {method}")

    async def submit_transfer(self, sender, to, value, gas_limit, fee_rate, call=None):
        self.calls.append(("submit_transfer", sender.address, to))
        if sender.address.lower() in self.failing_senders:
            raise SubmissionError(f"Transaction from {sender.address} failed: rejected")
        self.submissions.append({
            "sender": sender.address, "to": to, "value": value,
            "gas_limit": gas_limit, "fee_rate": fee_rate, "call": call,
        })
        self.set_native(sender.address, self.native_of(sender.address) - value - gas_limit * fee_rate)
        if call is None:
            self.set_native(to, self.native_of(to) + value)
        elif call.method == "transfer":
            dest, amount = call.args
            self.set_tokens(to, sender.address, self.tokens_of(to, sender.address) - amount)
            self.set_tokens(to, dest, self.tokens_of(to, dest) + amount)
        elif call.method == "safeTransferFrom":
            owner, dest, token_id = call.args
            self.nfts_of(to, owner).remove(token_id)
            self.nfts.setdefault(self._key(to, dest), []).append(token_id)
        return "0x%064x" % len(self.submissions)

    async def wait_for_confirmation(self, tx_handle):
        self.calls.append(("wait_for_confirmation", tx_handle))
        if tx_handle in self.unconfirmed:
            raise ConfirmationError(f"Transaction {tx_handle} reverted")
        self.confirmed.append(tx_handle)
        return {"status": 1}


@pytest.fixture
def chain():
    return FakeChainClient()


@pytest.fixture
def events():
    return []


@pytest.fixture
def log(events):
    return SweepLog(sink=events.append)


@pytest.fixture
def w1():
    return load_wallet(KEY_1)


@pytest.fixture
def w2():
    return load_wallet(KEY_2)


@pytest.fixture
def relayer():
    return load_wallet(RELAYER_KEY)


@pytest.fixture
def zero_delays():
    return Delays(scan=0, native=0, nft_item=0, asset=0)


@pytest.fixture
def raw_config():
    return {
        "NETWORKS": {"testnet": {"rpcUrl": "http://127.0.0.1:8545"}},
        "POLLING_INTERVAL": 1,
        "PRIVATE_KEYS": [KEY_1, KEY_2],
        "TO_ADDRESS": DESTINATION,
        "CONTRACT_ADDRESSES": [CONTRACT_1],
    }


@pytest.fixture
def sweep_config(raw_config, zero_delays):
    return validate_config(raw_config, delays=zero_delays)
