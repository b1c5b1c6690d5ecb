import json
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
from web3 import Web3

from services.errors import ConfigurationError

load_dotenv()

# =====================================================
# SWEEPER CONFIGURATION
# =====================================================

# JSON file holding networks, keys, destination and contracts
SWEEP_CONFIG_FILE = os.getenv("SWEEP_CONFIG_FILE", "config.json")

# Default round interval when the file does not define POLLING_INTERVAL;
# parsed in validate_config so a bad value raises ConfigurationError
POLLING_INTERVAL_MS = os.getenv("POLLING_INTERVAL_MS", "60000")

# Rate-limit pauses (seconds)
SCAN_DELAY = float(os.getenv("SCAN_DELAY", "0.5"))
NATIVE_DELAY = float(os.getenv("NATIVE_DELAY", "1.0"))
NFT_ITEM_DELAY = float(os.getenv("NFT_ITEM_DELAY", "1.0"))
ASSET_DELAY = float(os.getenv("ASSET_DELAY", "2.0"))

# Confirmation waiting
CONFIRMATION_TIMEOUT = float(os.getenv("CONFIRMATION_TIMEOUT", "180"))
CONFIRMATION_POLL_INTERVAL = float(os.getenv("CONFIRMATION_POLL_INTERVAL", "2"))
RPC_TIMEOUT = int(os.getenv("RPC_TIMEOUT", "10"))

# Fixed gas limits per asset class (no estimate_gas calls)
NATIVE_GAS_LIMIT = 21000
FUNGIBLE_GAS_LIMIT = 60000
NONFUNGIBLE_GAS_LIMIT = 200000

# ABIs
# ERC-20 and ERC-721 share balanceOf(address); only the 3-arg
# safeTransferFrom is listed so the function name is not overloaded.
TOKEN_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}, {"name": "index", "type": "uint256"}],
        "name": "tokenOfOwnerByIndex",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
        ],
        "name": "safeTransferFrom",
        "outputs": [],
        "type": "function",
    },
]


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    rpc_endpoint: str
    polling_interval_ms: int


@dataclass(frozen=True)
class Delays:
    scan: float = SCAN_DELAY
    native: float = NATIVE_DELAY
    nft_item: float = NFT_ITEM_DELAY
    asset: float = ASSET_DELAY


@dataclass(frozen=True)
class SweepConfig:
    networks: Dict[str, NetworkConfig]
    polling_interval_ms: int
    source_wallet_keys: Tuple[str, ...] = field(repr=False)
    destination_address: str
    contract_addresses: Tuple[str, ...] = ()
    relayer_key: Optional[str] = field(default=None, repr=False)
    delays: Delays = Delays()
    confirmation_timeout: float = CONFIRMATION_TIMEOUT
    confirmation_poll_interval: float = CONFIRMATION_POLL_INTERVAL

    def network(self, name: str) -> NetworkConfig:
        if name not in self.networks:
            raise ConfigurationError(
                f"Unknown network '{name}'. Available: {', '.join(sorted(self.networks))}"
            )
        return self.networks[name]


def _split_env_list(value):
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(path: Optional[str] = None, environ=None) -> dict:
    """
    Read the JSON config file and apply environment overrides.

    Returns the raw dictionary; pass it to validate_config().
    """
    environ = os.environ if environ is None else environ
    path = path or SWEEP_CONFIG_FILE

    raw = {}
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to read or parse {path}: {e}") from e
    elif not environ.get("PRIVATE_KEYS"):
        raise ConfigurationError(f"Config file {path} not found")

    if environ.get("PRIVATE_KEYS"):
        raw["PRIVATE_KEYS"] = _split_env_list(environ["PRIVATE_KEYS"])
    if environ.get("CONTRACT_ADDRESSES"):
        raw["CONTRACT_ADDRESSES"] = _split_env_list(environ["CONTRACT_ADDRESSES"])
    for key in ("RELAYER_PRIVATE_KEY", "TO_ADDRESS"):
        if environ.get(key):
            raw[key] = environ[key]
    if environ.get("POLLING_INTERVAL_MS"):
        try:
            raw["POLLING_INTERVAL"] = int(environ["POLLING_INTERVAL_MS"])
        except ValueError as e:
            raise ConfigurationError(f"POLLING_INTERVAL_MS must be an integer: {e}") from e

    return raw


def validate_config(raw: dict, delays: Optional[Delays] = None) -> SweepConfig:
    """Turn the raw dictionary into a SweepConfig or raise ConfigurationError."""
    keys = [k for k in (raw.get("PRIVATE_KEYS") or []) if k]
    destination = raw.get("TO_ADDRESS")
    if not keys or not destination:
        raise ConfigurationError(
            "Please fill in all configuration data: PRIVATE_KEYS and TO_ADDRESS are required."
        )
    if not Web3.is_address(destination):
        raise ConfigurationError(f"TO_ADDRESS is not a valid address: {destination}")

    contracts = []
    for address in raw.get("CONTRACT_ADDRESSES") or []:
        if not Web3.is_address(address):
            raise ConfigurationError(f"Invalid contract address: {address}")
        contracts.append(Web3.to_checksum_address(address))

    try:
        interval = int(raw.get("POLLING_INTERVAL", POLLING_INTERVAL_MS))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"POLLING_INTERVAL must be an integer: {e}") from e
    if interval <= 0:
        raise ConfigurationError("POLLING_INTERVAL must be positive")

    networks = {}
    for name, entry in (raw.get("NETWORKS") or {}).items():
        rpc_url = (entry or {}).get("rpcUrl")
        if not rpc_url:
            raise ConfigurationError(f"Network '{name}' has no rpcUrl")
        networks[name] = NetworkConfig(name=name, rpc_endpoint=rpc_url, polling_interval_ms=interval)
    if not networks:
        raise ConfigurationError("No NETWORKS configured")

    return SweepConfig(
        networks=networks,
        polling_interval_ms=interval,
        source_wallet_keys=tuple(keys),
        destination_address=Web3.to_checksum_address(destination),
        contract_addresses=tuple(contracts),
        relayer_key=raw.get("RELAYER_PRIVATE_KEY") or None,
        delays=delays or Delays(),
    )
