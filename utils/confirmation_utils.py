import asyncio
import logging
import time

logger = logging.getLogger("Confirmations")


async def get_evm_confirmations(w3, tx_hash):
    """
    Return (confirmations, receipt) for a transaction.

    Confirmations is 0 while the transaction is pending or unknown.
    """
    if isinstance(tx_hash, str) and not tx_hash.startswith("0x"):
        tx_hash = "0x" + tx_hash

    try:
        receipt = await w3.eth.get_transaction_receipt(tx_hash)
    except Exception as e:
        # web3 raises TransactionNotFound while the tx is still in the mempool
        logger.debug(f"Receipt not available for {tx_hash}: {e}")
        return 0, None

    if not receipt or receipt.get("blockNumber") is None:
        return 0, None

    current_block = await w3.eth.block_number
    return max(0, current_block - receipt["blockNumber"] + 1), receipt


async def wait_for_confirmations(w3, tx_hash, required=1, timeout=180, poll_interval=2):
    """
    Poll until the transaction has `required` confirmations.

    Returns the receipt, or None when the timeout expires first.
    """
    deadline = time.monotonic() + timeout
    while True:
        confirmations, receipt = await get_evm_confirmations(w3, tx_hash)
        if confirmations >= required:
            return receipt
        if time.monotonic() >= deadline:
            return None
        await asyncio.sleep(poll_interval)
