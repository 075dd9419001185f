"""
Wallet signer protocol: the secrets boundary.

The construction pipeline never sees private keys. An external WOTS+
wallet exposes its public identity (address, tag, public key) and signs
a digest; the hash function that produces the digest is injected
separately as a plain callable.

Concrete implementations live outside this package:
    - a WOTS+ wallet (production)
    - FakeSigner (tests)

``build_signature`` turns raw signature bytes into the Signature record
expected by ``/construction/combine`` without interpreting them.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from mochimo_construction.models import WOTSP, Signature

# Digest function applied to the unsigned transaction bytes before signing.
Hasher = Callable[[bytes], bytes]


@runtime_checkable
class WalletSigner(Protocol):
    """Interface for an external WOTS+ wallet.

    Properties:
        address: Raw WOTS+ address bytes of the signing key.
        tag: Raw tag bytes of the account.
        public_key: Raw public key bytes sent to the node as ``public_keys``.
    """

    @property
    def address(self) -> bytes: ...

    @property
    def tag(self) -> bytes: ...

    @property
    def public_key(self) -> bytes: ...

    def sign(self, digest: bytes) -> bytes:
        """Sign a message digest and return the full signature bytes."""
        ...


def build_signature(
    unsigned_transaction: str,
    public_key: bytes,
    signature: bytes,
) -> Signature:
    """Assemble the combine-step Signature record.

    Args:
        unsigned_transaction: Hex unsigned transaction (the signing payload).
        public_key: Raw public key bytes of the signer.
        signature: Raw signature bytes from the wallet.

    Returns:
        Signature with all types set to "wotsp".
    """
    return Signature(
        signing_payload_hex=unsigned_transaction,
        public_key_hex=public_key.hex(),
        hex_bytes=signature.hex(),
        signature_type=WOTSP,
    )
