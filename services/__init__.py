"""Services Module - sweep engine and chain access"""

from .errors import (
    SweepError,
    ConfigurationError,
    ProviderConnectionError,
    NetworkQueryError,
    InsufficientFundsError,
    InsufficientRelayerFundsError,
    RelayerUnavailableError,
    SubmissionError,
    ConfirmationError
)

from .models import (
    AssetClass,
    DiscoveredAsset,
    GasPlan,
    TransferResult,
    RoundSummary
)

__all__ = [
    'SweepError',
    'ConfigurationError',
    'ProviderConnectionError',
    'NetworkQueryError',
    'InsufficientFundsError',
    'InsufficientRelayerFundsError',
    'RelayerUnavailableError',
    'SubmissionError',
    'ConfirmationError',
    # Data model
    'AssetClass',
    'DiscoveredAsset',
    'GasPlan',
    'TransferResult',
    'RoundSummary',
]
