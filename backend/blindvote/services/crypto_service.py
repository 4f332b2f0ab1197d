"""
Blindvote Crypto Service
RSA blind signature verification (RSABSSA, RFC 9474) over DER public keys
"""

import logging
from typing import Optional, Union
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from blindvote.config import settings
from blindvote.errors import InvalidPublicKey

logger = logging.getLogger(__name__)


HASH_ALGORITHMS = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


@dataclass
class SignatureVerificationResult:
    """Result of signature verification"""
    is_valid: bool
    error: Optional[str] = None

    def __bool__(self):
        return self.is_valid


class CryptoService:
    """
    Verifies finalized RSA blind signatures

    A finalized blind signature is an RSASSA-PSS signature over
    `randomizer || message`; the randomizer is omitted when the signer was
    asked to sign without one.
    """

    def __init__(self, hash_name: Optional[str] = None, salt_length: Optional[int] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        hash_name = (hash_name or settings.BLIND_SIGNATURE_HASH).lower()
        if hash_name not in HASH_ALGORITHMS:
            raise ValueError(f"Unsupported blind signature hash: {hash_name}")
        self.hash_name = hash_name
        self.salt_length = settings.BLIND_SIGNATURE_SALT_LENGTH if salt_length is None else salt_length

    def _hash(self) -> hashes.HashAlgorithm:
        return HASH_ALGORITHMS[self.hash_name]()

    def load_public_key(self, public_key_der: bytes) -> rsa.RSAPublicKey:
        """
        Parse a DER encoded RSA public key

        Raises:
            InvalidPublicKey: key is empty, malformed or not RSA
        """
        if not public_key_der:
            raise InvalidPublicKey("public key is empty")
        try:
            key = serialization.load_der_public_key(bytes(public_key_der))
        except (ValueError, UnsupportedAlgorithm) as e:
            raise InvalidPublicKey(f"public key could not be parsed: {e}") from e
        if not isinstance(key, rsa.RSAPublicKey):
            raise InvalidPublicKey("public key is not an RSA key")
        return key

    def verify_blind_signature(
        self,
        signature: bytes,
        message_randomizer: Optional[bytes],
        message: bytes,
        public_key: Union[bytes, rsa.RSAPublicKey],
    ) -> SignatureVerificationResult:
        """
        Verify a blind signature

        Args:
            signature: Finalized (unblinded) signature bytes
            message_randomizer: 32-byte prefix mixed into the message, or None
            message: The signed message
            public_key: Signer key, DER bytes or an already parsed key

        Returns:
            SignatureVerificationResult with is_valid

        Raises:
            InvalidPublicKey: when DER bytes are given and do not parse
        """
        if isinstance(public_key, (bytes, bytearray)):
            public_key = self.load_public_key(public_key)

        signed = (message_randomizer or b"") + bytes(message)
        hash_algorithm = self._hash()
        try:
            public_key.verify(
                bytes(signature),
                signed,
                padding.PSS(mgf=padding.MGF1(hash_algorithm), salt_length=self.salt_length),
                hash_algorithm,
            )
        except InvalidSignature:
            self.logger.debug(f"Blind signature rejected ({len(signature)} bytes)")
            return SignatureVerificationResult(
                is_valid=False,
                error=f"PSS-{self.hash_name.upper()} check failed over {len(signed)}-byte message",
            )

        return SignatureVerificationResult(is_valid=True)


# Global crypto service instance
_crypto_service: Optional[CryptoService] = None


def get_crypto_service() -> CryptoService:
    """Get global crypto service instance"""
    global _crypto_service
    if _crypto_service is None:
        _crypto_service = CryptoService()
    return _crypto_service
