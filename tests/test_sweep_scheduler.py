"""Round orchestration: discover first, then fund and transfer, then re-arm."""

import asyncio
from dataclasses import replace

import pytest

from services.errors import ConfigurationError, ProviderConnectionError
from services.models import AssetClass
from services.sweep_scheduler import SweepScheduler, start_sweep
from tests.conftest import CONTRACT_1, DESTINATION


def _scheduler(sweep_config, asset_class, chain, log, wallets, relayer=None):
    return SweepScheduler(sweep_config, asset_class, chain, log, wallets, relayer=relayer)


def test_two_wallet_fungible_round(sweep_config, chain, log, w1, w2):
    chain.set_native(w1.address, 10**18)
    chain.set_tokens(CONTRACT_1, w1.address, 100)
    chain.set_tokens(CONTRACT_1, w2.address, 0)
    scheduler = _scheduler(sweep_config, AssetClass.FUNGIBLE, chain, log, [w1, w2])

    summary = asyncio.run(scheduler.run_round())

    assert summary.discovered == 1
    assert summary.confirmed == 1
    assert len(chain.submissions) == 1
    sent = chain.submissions[0]
    assert sent["sender"] == w1.address
    assert sent["call"].args[1] == 100
    assert sent["call"].args[0].lower() == DESTINATION
    assert scheduler.state == "idle"


def test_discovery_finishes_before_any_transfer(sweep_config, chain, log, w1, w2):
    for wallet in (w1, w2):
        chain.set_native(wallet.address, 10**18)
        chain.set_tokens(CONTRACT_1, wallet.address, 1)
    scheduler = _scheduler(sweep_config, AssetClass.FUNGIBLE, chain, log, [w1, w2])

    asyncio.run(scheduler.run_round())

    names = [c[0] for c in chain.calls]
    last_balance_of = max(
        i for i, c in enumerate(chain.calls) if c[0] == "read_contract" and c[2] == "balanceOf"
    )
    assert last_balance_of < names.index("submit_transfer")
    assert [s["sender"] for s in chain.submissions] == [w1.address, w2.address]


def test_empty_discovery_ends_round(sweep_config, chain, log, events, w1, w2):
    scheduler = _scheduler(sweep_config, AssetClass.NONFUNGIBLE, chain, log, [w1, w2])

    summary = asyncio.run(scheduler.run_round())

    assert summary.discovered == 0
    assert chain.submissions == []
    assert not [c for c in chain.calls if c[0] == "get_fee_rate"]
    assert any("No NFT assets found" in e.message for e in events)


def test_native_round_sweeps_wallets_in_order(sweep_config, chain, log, w1, w2):
    chain.set_native(w1.address, 500_000)
    chain.set_native(w2.address, 900_000)
    scheduler = _scheduler(sweep_config, AssetClass.NATIVE, chain, log, [w1, w2])

    summary = asyncio.run(scheduler.run_round())

    assert [s["sender"] for s in chain.submissions] == [w1.address, w2.address]
    assert [s["value"] for s in chain.submissions] == [500_000 - 210_000, 900_000 - 210_000]
    assert not [c for c in chain.calls if c[0] == "read_contract"]
    assert summary.confirmed == 2


def test_round_with_only_failures_still_completes(sweep_config, chain, log, events, w1, w2):
    for wallet in (w1, w2):
        chain.set_tokens(CONTRACT_1, wallet.address, 10)
    scheduler = _scheduler(sweep_config, AssetClass.FUNGIBLE, chain, log, [w1, w2])

    summary = asyncio.run(scheduler.run_round())

    assert summary.failed == 2
    assert chain.submissions == []
    assert events[-1].message.startswith("Sweep process finished for this round.")


def test_unexpected_error_does_not_break_the_schedule(sweep_config, chain, log, w1):
    async def broken_read(*args, **kwargs):
        raise RuntimeError("provider exploded")

    chain.read_contract = broken_read
    scheduler = _scheduler(sweep_config, AssetClass.FUNGIBLE, chain, log, [w1])

    asyncio.run(scheduler.run_forever(max_rounds=2))

    assert scheduler.rounds_completed == 2
    assert scheduler.state == "idle"


def test_start_sweep_runs_rounds_with_injected_client(sweep_config, chain, log, events):
    scheduler = asyncio.run(start_sweep(
        "native", "testnet", sweep_config=sweep_config, log=log, client=chain, max_rounds=1,
    ))

    assert scheduler.asset_class is AssetClass.NATIVE
    assert chain.calls[0] == ("connect",)
    assert any("Starting sweeper for asset type: native" in e.message for e in events)


def test_start_sweep_unknown_network_is_fatal(sweep_config, chain, log):
    with pytest.raises(ConfigurationError):
        asyncio.run(start_sweep("native", "mainnet", sweep_config=sweep_config, log=log, client=chain))


def test_start_sweep_unknown_asset_class_is_fatal(sweep_config, chain, log):
    with pytest.raises(ConfigurationError):
        asyncio.run(start_sweep("erc-1155", "testnet", sweep_config=sweep_config, log=log, client=chain))


def test_start_sweep_token_class_needs_contracts(sweep_config, chain, log):
    no_contracts = replace(sweep_config, contract_addresses=())

    with pytest.raises(ConfigurationError):
        asyncio.run(start_sweep("erc-20", "testnet", sweep_config=no_contracts, log=log, client=chain))


def test_start_sweep_unreachable_provider_is_fatal(sweep_config, chain, log):
    async def refuse():
        raise ProviderConnectionError("Could not reach testnet RPC")

    chain.connect = refuse

    with pytest.raises(ProviderConnectionError):
        asyncio.run(start_sweep("native", "testnet", sweep_config=sweep_config, log=log, client=chain))


def test_bad_relayer_key_is_logged_and_ignored(sweep_config, chain, log, events):
    bad_relayer = replace(sweep_config, relayer_key="not-a-key")

    scheduler = asyncio.run(start_sweep(
        "native", "testnet", sweep_config=bad_relayer, log=log, client=chain, max_rounds=1,
    ))

    assert scheduler.relay.relayer is None
    assert any("Invalid relayer private key" in e.message for e in events)


def test_unexpected_error_on_one_wallet_does_not_skip_the_next(sweep_config, chain, log, w1, w2):
    chain.set_native(w2.address, 900_000)
    real_get_balance = chain.get_balance

    async def flaky_get_balance(address):
        if address == w1.address:
            raise RuntimeError("connection dropped")
        return await real_get_balance(address)

    chain.get_balance = flaky_get_balance
    scheduler = _scheduler(sweep_config, AssetClass.NATIVE, chain, log, [w1, w2])

    summary = asyncio.run(scheduler.run_round())

    assert [s["sender"] for s in chain.submissions] == [w2.address]
    assert summary.failed == 1
    assert summary.confirmed == 1
