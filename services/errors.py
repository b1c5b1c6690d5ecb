"""
Sweeper error taxonomy.

Only ConfigurationError and ProviderConnectionError are fatal; they are raised
before the first round. Everything else is caught around a single scan pair,
transfer or item and turned into a log line.
"""


class SweepError(Exception):
    """Base class for every error raised by the sweeper."""


class ConfigurationError(SweepError):
    """Mandatory configuration is missing or malformed."""


class ProviderConnectionError(SweepError):
    """The RPC endpoint could not be reached at startup."""


class NetworkQueryError(SweepError):
    """A read call (balance, fee rate, contract view) failed."""


class InsufficientFundsError(SweepError):
    """A wallet cannot pay for the transaction it is about to send."""


class InsufficientRelayerFundsError(InsufficientFundsError):
    """The relayer cannot cover the shortfall plus its own fee."""


class RelayerUnavailableError(SweepError):
    """Gas top-up was needed but no relayer account is configured."""


class SubmissionError(SweepError):
    """Signing or broadcasting a transaction failed."""


class ConfirmationError(SweepError):
    """A transaction was not confirmed in time or was reverted."""
