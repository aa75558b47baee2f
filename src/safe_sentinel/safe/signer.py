"""Owner key loading and Safe-compatible hash signing using eth-account."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.messages import encode_defunct

from safe_sentinel.config import is_unresolved
from safe_sentinel.errors import SignerError

if TYPE_CHECKING:
    from safe_sentinel.config import SignerConfig

# Safe marks eth_sign signatures by shifting v from 27/28 to 31/32
_ETH_SIGN_V_OFFSET = 4


def decrypt_key(keystore_path: Path, password: str) -> bytes:
    """Decrypt the private key from an encrypted JSON keystore.

    Raises
    ------
    SignerError
        If the keystore is missing or the password is incorrect.
    """
    if not keystore_path.exists():
        raise SignerError(f"No keystore found at {keystore_path}")

    data = json.loads(keystore_path.read_text(encoding="utf-8"))
    try:
        return Account.decrypt(data, password)
    except ValueError as exc:
        raise SignerError(f"Failed to decrypt keystore: {exc}") from exc


def _hash_bytes(safe_tx_hash: str) -> bytes:
    try:
        raw = bytes.fromhex(safe_tx_hash.removeprefix("0x"))
    except ValueError as exc:
        raise SignerError(f"Invalid transaction hash '{safe_tx_hash}'") from exc
    if len(raw) != 32:
        raise SignerError(f"Transaction hash must be 32 bytes, got {len(raw)}")
    return raw


class SafeSigner:
    """Signs Safe transaction hashes with one owner key."""

    def __init__(self, private_key: bytes | str):
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise SignerError(f"Invalid signer private key: {exc}") from exc

    @classmethod
    def from_config(cls, config: SignerConfig) -> SafeSigner:
        if not is_unresolved(config.private_key):
            return cls(config.private_key)
        if config.keystore_path:
            return cls(decrypt_key(Path(config.keystore_path), config.password))
        raise SignerError(
            "No signer key configured. Set signer.private_key "
            "(e.g. ${SIGNER_PRIVATE_KEY}) or signer.keystore_path."
        )

    @property
    def address(self) -> str:
        return self._account.address

    def sign_hash(self, safe_tx_hash: str) -> str:
        """Return a 65-byte ``eth_sign`` signature over *safe_tx_hash* as hex."""
        message = encode_defunct(primitive=_hash_bytes(safe_tx_hash))
        signed = self._account.sign_message(message)
        v = signed.v + _ETH_SIGN_V_OFFSET
        return "0x" + (
            signed.r.to_bytes(32, "big")
            + signed.s.to_bytes(32, "big")
            + v.to_bytes(1, "big")
        ).hex()
