"""
Crypto provider - the signing capability used for every distributed archive.

Manifesto:
    Key material is process-wide and read-only for the duration of a build.
    The provider loads the private key once (lazily, thread-safe) and signs
    whatever bytes it is handed. It never logs key material.

Features:
    - **Ed25519:** Deterministic signatures, reruns produce identical output
    - **ECDSA P-256 / SHA-256:** Randomized signatures, verify-only idempotence
    - **PEM keys:** PKCS#8 private keys, SubjectPublicKeyInfo public keys
    - **verify_signature():** Stand-alone verification for consumers and tests

Examples:
    >>> private_pem, public_pem = generate_key_pair("ed25519")
    >>> provider = CryptoProvider.from_pem(private_pem, "ed25519")
    >>> signature = provider.sign(b"payload")
    >>> verify_signature(public_pem, b"payload", signature)
    True

Guardrails:
    - Unreadable or wrong-type keys raise ``SigningError``; no configured key
      raises ``MissingConfigError`` in the SIGNING category
    - No retries: a signing failure aborts the bucket being signed

Tags:
    crypto, signing, ed25519, ecdsa, cryptography, assembly
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from assembly.core.errors import ErrorCategory, MissingConfigError, SigningError
from assembly.core.logging import get_logger

logger = get_logger(__name__)

PrivateKey = Union[ed25519.Ed25519PrivateKey, ec.EllipticCurvePrivateKey]
PublicKey = Union[ed25519.Ed25519PublicKey, ec.EllipticCurvePublicKey]

ALGORITHM_OIDS = {
    "ed25519": "1.3.101.112",
    "ecdsa-p256": "1.2.840.10045.4.3.2",
}


def _check_key_type(key: object, algorithm: str) -> None:
    if algorithm == "ed25519":
        ok = isinstance(key, (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey))
    elif algorithm == "ecdsa-p256":
        ok = isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)) and isinstance(
            key.curve, ec.SECP256R1
        )
    else:
        raise SigningError(f"Unsupported signature algorithm: {algorithm!r}")
    if not ok:
        raise SigningError(f"Key of type {type(key).__name__} does not match algorithm {algorithm!r}")


def _load_private_key(data: bytes, algorithm: str) -> PrivateKey:
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError("Private key could not be parsed", cause=e)
    _check_key_type(key, algorithm)
    return key


class CryptoProvider:
    """Signs bytes with a process-wide private key.

    The key comes from a PEM file (loaded on first use) or is handed in
    directly. ``sign`` is safe to call from several threads.
    """

    def __init__(
        self,
        private_key_path: Path | None = None,
        algorithm: str = "ed25519",
        *,
        private_key: PrivateKey | None = None,
    ):
        if algorithm not in ALGORITHM_OIDS:
            raise SigningError(f"Unsupported signature algorithm: {algorithm!r}")
        if private_key is not None:
            _check_key_type(private_key, algorithm)
        self._path = Path(private_key_path) if private_key_path is not None else None
        self._algorithm = algorithm
        self._key = private_key
        self._lock = threading.Lock()

    @classmethod
    def from_pem(cls, pem: bytes, algorithm: str = "ed25519") -> CryptoProvider:
        return cls(algorithm=algorithm, private_key=_load_private_key(pem, algorithm))

    @classmethod
    def from_settings(cls, settings) -> CryptoProvider:
        return cls(settings.private_key_path, settings.signature_algorithm)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def algorithm_oid(self) -> str:
        return ALGORITHM_OIDS[self._algorithm]

    def private_key(self) -> PrivateKey:
        """Return the private key, loading it from disk on first use."""
        with self._lock:
            if self._key is None:
                if self._path is None:
                    raise MissingConfigError(
                        "private_key_path",
                        "No private key configured (set ASSEMBLY_PRIVATE_KEY_PATH)",
                        category=ErrorCategory.SIGNING,
                    )
                try:
                    data = self._path.read_bytes()
                except OSError as e:
                    raise SigningError(f"Private key unavailable: {self._path}", cause=e)
                self._key = _load_private_key(data, self._algorithm)
                logger.info("assembly.crypto.key_loaded", algorithm=self._algorithm)
            return self._key

    def sign(self, data: bytes) -> bytes:
        key = self.private_key()
        try:
            if self._algorithm == "ed25519":
                return key.sign(data)
            return key.sign(data, ec.ECDSA(hashes.SHA256()))
        except (ValueError, TypeError) as e:
            raise SigningError("Signature computation failed", cause=e)

    def public_key_pem(self) -> bytes:
        return self.private_key().public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def verify(self, data: bytes, signature: bytes) -> bool:
        return verify_signature(self.public_key_pem(), data, signature)


def verify_signature(public_key_pem: bytes, data: bytes, signature: bytes) -> bool:
    """Check ``signature`` over ``data``. The algorithm follows the key type."""
    try:
        key = serialization.load_pem_public_key(public_key_pem)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise SigningError("Public key could not be parsed", cause=e)
    try:
        if isinstance(key, ed25519.Ed25519PublicKey):
            key.verify(signature, data)
        elif isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(signature, data, ec.ECDSA(hashes.SHA256()))
        else:
            raise SigningError(f"Unsupported public key type: {type(key).__name__}")
    except InvalidSignature:
        return False
    return True


def generate_key_pair(algorithm: str = "ed25519") -> tuple[bytes, bytes]:
    """Generate a fresh key pair as ``(private_pem, public_pem)``."""
    if algorithm == "ed25519":
        key: PrivateKey = ed25519.Ed25519PrivateKey.generate()
    elif algorithm == "ecdsa-p256":
        key = ec.generate_private_key(ec.SECP256R1())
    else:
        raise SigningError(f"Unsupported signature algorithm: {algorithm!r}")
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


__all__ = [
    "ALGORITHM_OIDS",
    "CryptoProvider",
    "generate_key_pair",
    "verify_signature",
]
