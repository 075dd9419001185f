"""
Mochimo Rosetta construction pipeline.

Public API:

    Pure layer (no I/O):
        - Memo codec: ``is_valid_memo``, ``format_memo``, ``format_memo_strict``.
        - Raw transaction: ``encode_transaction`` (2304-byte record).
        - Operations: ``build_operations`` (source, destination, fee).

    Impure layer (network I/O):
        - ``ConstructionClient``: Rosetta Construction + Data API calls.
        - ``ConstructionOrchestrator``: preprocess → metadata → payloads →
          combine → submit → monitor, as an explicit state machine.
        - ``MempoolMonitor``: deadline-bounded mempool polling.

    Protocols (for dependency injection):
        - ``JsonTransport``: HTTP boundary (``HttpxTransport`` by default).
        - ``WalletSigner`` / ``Hasher``: secrets and hashing boundary.
"""

from mochimo_construction.client import ConstructionClient
from mochimo_construction.config import ClientConfig, MonitorPolicy
from mochimo_construction.errors import (
    ConstructionError,
    InvalidMemoError,
    MalformedResponseError,
    MempoolTimeoutError,
    MissingTransactionHashError,
    PipelineStateError,
    RosettaApiError,
    TransactionNotFoundError,
)
from mochimo_construction.memo import (
    MEMO_FIELD_SIZE,
    format_memo,
    format_memo_strict,
    is_valid_memo,
)
from mochimo_construction.models import (
    MCM_CURRENCY,
    WOTSP,
    Amount,
    Currency,
    MempoolTransaction,
    NetworkIdentifier,
    Operation,
    OperationType,
    PayloadsResult,
    PreprocessOptions,
    PublicKey,
    Signature,
    SigningPayload,
    TransactionIdentifier,
    TransferIntent,
)
from mochimo_construction.monitor import MempoolMonitor
from mochimo_construction.operations import build_operations, operations_to_wire
from mochimo_construction.orchestrator import (
    BuildResult,
    BuildState,
    ConstructionOrchestrator,
)
from mochimo_construction.signer import Hasher, WalletSigner, build_signature
from mochimo_construction.transport import HttpxTransport, JsonTransport
from mochimo_construction.tx import TX_SIZE, encode_transaction

__all__ = [
    "Amount",
    "BuildResult",
    "BuildState",
    "ClientConfig",
    "ConstructionClient",
    "ConstructionError",
    "ConstructionOrchestrator",
    "Currency",
    "Hasher",
    "HttpxTransport",
    "InvalidMemoError",
    "JsonTransport",
    "MCM_CURRENCY",
    "MEMO_FIELD_SIZE",
    "MalformedResponseError",
    "MempoolMonitor",
    "MempoolTimeoutError",
    "MempoolTransaction",
    "MissingTransactionHashError",
    "MonitorPolicy",
    "NetworkIdentifier",
    "Operation",
    "OperationType",
    "PayloadsResult",
    "PipelineStateError",
    "PreprocessOptions",
    "PublicKey",
    "RosettaApiError",
    "Signature",
    "SigningPayload",
    "TX_SIZE",
    "TransactionIdentifier",
    "TransactionNotFoundError",
    "TransferIntent",
    "WOTSP",
    "WalletSigner",
    "build_operations",
    "build_signature",
    "encode_transaction",
    "format_memo",
    "format_memo_strict",
    "is_valid_memo",
    "operations_to_wire",
]
