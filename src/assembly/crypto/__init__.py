"""Signing capability (key loading, signing, verification)."""

from assembly.crypto.provider import (
    ALGORITHM_OIDS,
    CryptoProvider,
    generate_key_pair,
    verify_signature,
)

__all__ = ["ALGORITHM_OIDS", "CryptoProvider", "generate_key_pair", "verify_signature"]
