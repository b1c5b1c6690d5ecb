import asyncio


class NonceManager:
    """
    Hands out nonces per sender address so a wallet never reuses or skips one.

    The on-chain pending count is consulted on every call; the local counter
    only wins when it is ahead because of transactions sent from this process.
    """
    def __init__(self):
        self._locks = {}
        self._nonces = {}

    def _get_lock(self, address):
        """Get or create an async lock for a specific address"""
        if address not in self._locks:
            self._locks[address] = asyncio.Lock()
        return self._locks[address]

    async def get_next_nonce(self, w3, address):
        lock = self._get_lock(address)
        async with lock:
            chain_nonce = await w3.eth.get_transaction_count(address, "pending")

            if address not in self._nonces or self._nonces[address] < chain_nonce:
                self._nonces[address] = chain_nonce

            nonce_to_use = self._nonces[address]
            self._nonces[address] += 1
            return nonce_to_use

    def release(self, address):
        """Forget the local counter after a failed broadcast so the next call resyncs."""
        self._nonces.pop(address, None)


# Global instance
nonce_manager = NonceManager()
