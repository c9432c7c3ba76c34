"""Reversible obfuscation of secrets stored in configuration documents.

WebSphere keeps passwords as ``{xor}`` followed by the base64 encoding of
the secret with every byte XORed against ``_`` (0x5F). This is not
encryption; it only keeps plaintext out of the documents.
"""
import base64
import binascii
from typing import Union

from ..errors import MalformedSecretError


class CredentialCodec:
    """Encode and decode ``{xor}`` secrets."""

    PREFIX = "{xor}"
    XOR_KEY = 0x5F

    @classmethod
    def _xor(cls, data: bytes) -> bytes:
        return bytes(b ^ cls.XOR_KEY for b in data)

    @classmethod
    def is_obfuscated(cls, value: str) -> bool:
        return value.startswith(cls.PREFIX)

    @classmethod
    def obfuscate(cls, secret: Union[str, bytes]) -> str:
        """Return the stored form of a plaintext secret."""
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        return cls.PREFIX + base64.b64encode(cls._xor(secret)).decode("ascii")

    @classmethod
    def deobfuscate_bytes(cls, stored: str) -> bytes:
        """
        Decode a stored secret back to its raw bytes.

        Raises:
            MalformedSecretError: If the value lacks the {xor} prefix or the
                remainder is not valid base64
        """
        if not stored.startswith(cls.PREFIX):
            raise MalformedSecretError(
                f"Stored secret does not start with {cls.PREFIX}"
            )
        try:
            raw = base64.b64decode(stored[len(cls.PREFIX):], validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedSecretError(f"Stored secret is not valid base64: {e}") from e
        return cls._xor(raw)

    @classmethod
    def deobfuscate(cls, stored: str) -> str:
        """Decode a stored secret to text.

        Raises:
            MalformedSecretError: If the decoded bytes are not UTF-8 text.
        """
        try:
            return cls.deobfuscate_bytes(stored).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedSecretError(f"Stored secret is not UTF-8 text: {e}") from e
