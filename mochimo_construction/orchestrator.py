"""
Construction orchestrator: the build-and-sign pipeline as a state machine.

States, strictly sequential:

    NEW
     └─ build_operations()   → BUILT_OPERATIONS
         └─ preprocess()      → PREPROCESSED
             └─ fetch_metadata()  → METADATA_FETCHED
                 └─ fetch_payloads()  → PAYLOADS_FETCHED
                     └─ attach_signature()  → SIGNED      (external wallet)
                         └─ combine()   → COMBINED
                             └─ submit()    → SUBMITTED
                                 └─ monitor()   → MONITORED

Each transition checks the current state first and raises
PipelineStateError (without any network I/O) when called out of order.
Any exception inside a transition moves the pipeline to FAILED, records
``failed_step`` and re-raises the original exception. FAILED is
terminal: nothing is retried here. To recover, the caller starts a new
orchestrator and replays up to ``failed_step``.

Every step's output is the next step's input:
    - preprocess ``options`` are forwarded verbatim to metadata;
    - metadata ``metadata`` is forwarded verbatim to payloads;
    - payloads ``unsigned_transaction`` is the signing payload and the
      combine input; combine ``signed_transaction`` is the submit input;
    - submit's transaction hash is the monitor key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Awaitable, Callable, TypeVar

from mochimo_construction.client import ConstructionClient
from mochimo_construction.errors import (
    ConstructionError,
    MissingTransactionHashError,
    PipelineStateError,
)
from mochimo_construction.models import (
    MempoolTransaction,
    MetadataResult,
    Operation,
    PayloadsResult,
    PreprocessResult,
    PublicKey,
    Signature,
    TransactionIdentifier,
    TransferIntent,
)
from mochimo_construction.operations import build_operations
from mochimo_construction.signer import Hasher, WalletSigner, build_signature
from mochimo_construction.tx import encode_transaction

T = TypeVar("T")


class BuildState(StrEnum):
    """Where a single transaction build currently stands."""

    NEW = "NEW"
    BUILT_OPERATIONS = "BUILT_OPERATIONS"
    PREPROCESSED = "PREPROCESSED"
    METADATA_FETCHED = "METADATA_FETCHED"
    PAYLOADS_FETCHED = "PAYLOADS_FETCHED"
    SIGNED = "SIGNED"
    COMBINED = "COMBINED"
    SUBMITTED = "SUBMITTED"
    MONITORED = "MONITORED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class BuildResult:
    """Outcome of build_and_sign().

    Attributes:
        payloads: Unsigned transaction and signing payloads.
        signed_transaction: Hex signed transaction from combine.
        transaction_identifier: Hash reported by submit.
    """

    payloads: PayloadsResult
    signed_transaction: str
    transaction_identifier: TransactionIdentifier


class ConstructionOrchestrator:
    """Drives one transfer through the Rosetta construction flow.

    One instance per transaction build. Not reusable after MONITORED or
    FAILED.

    Args:
        client: Construction client (shared across builds is fine).
        intent: What to transfer.
        logger: Logger for pipeline diagnostics.
    """

    def __init__(
        self,
        client: ConstructionClient,
        intent: TransferIntent,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._intent = intent
        self._log = logger or logging.getLogger(__name__)

        self._state = BuildState.NEW
        self._failed_step: BuildState | None = None

        self._operations: list[Operation] | None = None
        self._raw_transaction: bytes | None = None
        self._preprocess: PreprocessResult | None = None
        self._metadata: MetadataResult | None = None
        self._payloads: PayloadsResult | None = None
        self._signature: Signature | None = None
        self._signed_transaction: str | None = None
        self._transaction_identifier: TransactionIdentifier | None = None
        self._mempool_transaction: MempoolTransaction | None = None

    # -----------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def failed_step(self) -> BuildState | None:
        """The state the pipeline was trying to reach when it failed."""
        return self._failed_step

    @property
    def intent(self) -> TransferIntent:
        return self._intent

    @property
    def operations(self) -> list[Operation] | None:
        return list(self._operations) if self._operations is not None else None

    @property
    def raw_transaction(self) -> bytes | None:
        """The 2304-byte raw transaction record, once operations are built."""
        return self._raw_transaction

    @property
    def preprocess_result(self) -> PreprocessResult | None:
        return self._preprocess

    @property
    def metadata_result(self) -> MetadataResult | None:
        return self._metadata

    @property
    def payloads_result(self) -> PayloadsResult | None:
        return self._payloads

    @property
    def signature(self) -> Signature | None:
        return self._signature

    @property
    def signed_transaction(self) -> str | None:
        return self._signed_transaction

    @property
    def transaction_identifier(self) -> TransactionIdentifier | None:
        return self._transaction_identifier

    @property
    def mempool_transaction(self) -> MempoolTransaction | None:
        return self._mempool_transaction

    # -----------------------------------------------------------------
    # Transition plumbing
    # -----------------------------------------------------------------

    def _expect(self, expected: BuildState, target: BuildState) -> None:
        if self._state != expected:
            raise PipelineStateError(
                f"cannot move to {target} from {self._state} (requires {expected})",
                details={
                    "state": str(self._state),
                    "expected": str(expected),
                    "target": str(target),
                },
            )

    def _fail(self, target: BuildState, exc: BaseException) -> None:
        self._state = BuildState.FAILED
        self._failed_step = target
        self._log.error("Construction step %s failed: %s", target, exc)

    async def _run(
        self,
        expected: BuildState,
        target: BuildState,
        step: Callable[[], Awaitable[T]],
    ) -> T:
        self._expect(expected, target)
        try:
            result = await step()
        except Exception as exc:
            self._fail(target, exc)
            raise
        self._state = target
        self._log.debug("Construction state -> %s", target)
        return result

    def _public_keys(self) -> list[PublicKey]:
        return [PublicKey(self._intent.public_key)]

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def build_operations(self) -> list[Operation]:
        """NEW → BUILT_OPERATIONS. Builds the operation list and raw record."""
        target = BuildState.BUILT_OPERATIONS
        self._expect(BuildState.NEW, target)
        intent = self._intent
        self._log.info(
            "Building transaction: source_tag=%s destination_tag=%s amount=%d fee=%d",
            intent.source_tag,
            intent.destination_tag,
            intent.amount,
            intent.fee,
        )
        try:
            raw = encode_transaction(
                source_address=intent.source_address,
                destination_tag=intent.destination_tag,
                amount=intent.amount,
                fee=intent.fee,
                change_pk=intent.change_pk,
                block_to_live=intent.block_to_live,
                memo=intent.memo,
            )
            operations = build_operations(
                source_tag=intent.source_tag,
                destination_tag=intent.destination_tag,
                amount=intent.amount,
                fee=intent.fee,
                memo=intent.memo,
            )
        except Exception as exc:
            self._fail(target, exc)
            raise

        self._log.debug("Created transaction bytes: length=%d hex=%s", len(raw), raw.hex())
        self._raw_transaction = raw
        self._operations = operations
        self._state = target
        return list(operations)

    async def preprocess(self) -> PreprocessResult:
        """BUILT_OPERATIONS → PREPROCESSED."""
        intent = self._intent
        metadata: dict[str, Any] = {
            "block_to_live": str(intent.block_to_live),
            "change_pk": intent.change_pk,
            "change_addr": intent.change_pk,
            "source_balance": str(intent.effective_source_balance),
        }

        async def step() -> PreprocessResult:
            assert self._operations is not None
            return await self._client.preprocess(self._operations, metadata)

        self._preprocess = await self._run(
            BuildState.BUILT_OPERATIONS, BuildState.PREPROCESSED, step
        )
        return self._preprocess

    async def fetch_metadata(self) -> MetadataResult:
        """PREPROCESSED → METADATA_FETCHED. Forwards preprocess options verbatim."""

        async def step() -> MetadataResult:
            assert self._preprocess is not None
            return await self._client.metadata(self._preprocess.options, self._public_keys())

        self._metadata = await self._run(
            BuildState.PREPROCESSED, BuildState.METADATA_FETCHED, step
        )
        return self._metadata

    async def fetch_payloads(self) -> PayloadsResult:
        """METADATA_FETCHED → PAYLOADS_FETCHED. Expects exactly one payload."""

        async def step() -> PayloadsResult:
            assert self._operations is not None and self._metadata is not None
            result = await self._client.payloads(
                self._operations, self._metadata.metadata, self._public_keys()
            )
            if len(result.payloads) != 1:
                raise ConstructionError(
                    f"expected exactly one signing payload, got {len(result.payloads)}",
                    error_code="UNEXPECTED_PAYLOADS",
                    details={"payload_count": len(result.payloads)},
                )
            return result

        self._payloads = await self._run(
            BuildState.METADATA_FETCHED, BuildState.PAYLOADS_FETCHED, step
        )
        return self._payloads

    def attach_signature(self, signature: bytes, public_key: bytes) -> Signature:
        """PAYLOADS_FETCHED → SIGNED. Wraps externally produced signature bytes.

        Args:
            signature: Raw signature bytes over the unsigned transaction hash.
            public_key: Raw public key bytes identifying the signer.
        """
        target = BuildState.SIGNED
        self._expect(BuildState.PAYLOADS_FETCHED, target)
        assert self._payloads is not None
        self._signature = build_signature(
            self._payloads.unsigned_transaction, public_key, signature
        )
        self._state = target
        return self._signature

    def sign_with(self, signer: WalletSigner, hasher: Hasher) -> Signature:
        """PAYLOADS_FETCHED → SIGNED using a wallet and hash function.

        Signs ``hasher(bytes.fromhex(unsigned_transaction))`` and attaches
        the result with the wallet's address as the public key field.
        """
        target = BuildState.SIGNED
        self._expect(BuildState.PAYLOADS_FETCHED, target)
        assert self._payloads is not None
        try:
            digest = hasher(bytes.fromhex(self._payloads.unsigned_transaction))
            signature = signer.sign(digest)
        except Exception as exc:
            self._fail(target, exc)
            raise
        return self.attach_signature(signature, signer.address)

    async def combine(self) -> str:
        """SIGNED → COMBINED. Returns the signed transaction hex."""

        async def step() -> str:
            assert self._payloads is not None and self._signature is not None
            result = await self._client.combine(
                self._payloads.unsigned_transaction, [self._signature]
            )
            return result.signed_transaction

        self._signed_transaction = await self._run(
            BuildState.SIGNED, BuildState.COMBINED, step
        )
        return self._signed_transaction

    async def submit(self) -> TransactionIdentifier:
        """COMBINED → SUBMITTED.

        Raises:
            MissingTransactionHashError: If the node returned no hash.
        """

        async def step() -> TransactionIdentifier:
            assert self._signed_transaction is not None
            identifier = await self._client.submit(self._signed_transaction)
            if identifier is None:
                raise MissingTransactionHashError()
            return identifier

        self._transaction_identifier = await self._run(
            BuildState.COMBINED, BuildState.SUBMITTED, step
        )
        self._log.info("Transaction submitted: %s", self._transaction_identifier.hash)
        return self._transaction_identifier

    async def monitor(
        self,
        timeout_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> MempoolTransaction:
        """SUBMITTED → MONITORED. Waits for the hash to reach the mempool.

        Raises:
            MempoolTimeoutError: If the transaction never appeared.
        """

        async def step() -> MempoolTransaction:
            assert self._transaction_identifier is not None
            return await self._client.wait_for_transaction(
                self._transaction_identifier.hash,
                timeout_ms=timeout_ms,
                interval_ms=interval_ms,
            )

        self._mempool_transaction = await self._run(
            BuildState.SUBMITTED, BuildState.MONITORED, step
        )
        return self._mempool_transaction

    # -----------------------------------------------------------------
    # Composite runs
    # -----------------------------------------------------------------

    async def build(self) -> PayloadsResult:
        """Run NEW → PAYLOADS_FETCHED and return what the wallet must sign."""
        self.build_operations()
        await self.preprocess()
        await self.fetch_metadata()
        return await self.fetch_payloads()

    async def submit_and_monitor(
        self,
        timeout_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> MempoolTransaction:
        """Run SIGNED → MONITORED."""
        await self.combine()
        await self.submit()
        return await self.monitor(timeout_ms=timeout_ms, interval_ms=interval_ms)

    async def build_and_sign(self, signer: WalletSigner, hasher: Hasher) -> BuildResult:
        """Run NEW → SUBMITTED with a wallet signer."""
        payloads = await self.build()
        self.sign_with(signer, hasher)
        signed = await self.combine()
        identifier = await self.submit()
        return BuildResult(
            payloads=payloads,
            signed_transaction=signed,
            transaction_identifier=identifier,
        )
