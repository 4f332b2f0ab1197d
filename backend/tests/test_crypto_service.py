"""
Tests for RSA blind signature verification
"""

import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from blindvote.errors import InvalidPublicKey
from blindvote.services.crypto_service import CryptoService
from blindvote.utils.security import encode_identity

from conftest import der_public_key, pss_sign


@pytest.fixture
def crypto():
    return CryptoService()


@pytest.fixture
def signer(candidate_keys):
    return candidate_keys["outsider"]


class TestVerifyBlindSignature:

    def test_without_randomizer(self, crypto, signer):
        signature = pss_sign(signer, b"message")
        assert crypto.verify_blind_signature(signature, None, b"message", der_public_key(signer)).is_valid

    def test_with_randomizer(self, crypto, signer):
        randomizer = os.urandom(32)
        signature = pss_sign(signer, b"message", randomizer)

        assert crypto.verify_blind_signature(signature, randomizer, b"message", der_public_key(signer))
        assert not crypto.verify_blind_signature(signature, None, b"message", der_public_key(signer))
        assert not crypto.verify_blind_signature(signature, os.urandom(32), b"message", der_public_key(signer))

    def test_wrong_message(self, crypto, signer):
        signature = pss_sign(signer, b"message")
        result = crypto.verify_blind_signature(signature, None, b"other", der_public_key(signer))
        assert not result.is_valid
        assert result.error == "PSS-SHA384 check failed over 5-byte message"

    def test_accepts_parsed_key(self, crypto, signer):
        signature = pss_sign(signer, encode_identity("voter"))
        assert crypto.verify_blind_signature(signature, None, b"voter", signer.public_key())

    def test_truncated_signature(self, crypto, signer):
        signature = pss_sign(signer, b"message")
        assert not crypto.verify_blind_signature(signature[:-1], None, b"message", der_public_key(signer))


class TestLoadPublicKey:

    def test_empty_key(self, crypto):
        with pytest.raises(InvalidPublicKey):
            crypto.load_public_key(b"")

    def test_garbage_key(self, crypto):
        with pytest.raises(InvalidPublicKey):
            crypto.load_public_key(bytes([1, 2, 3]))

    def test_non_rsa_key(self, crypto):
        ec_key = ec.generate_private_key(ec.SECP256R1()).public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        with pytest.raises(InvalidPublicKey):
            crypto.load_public_key(ec_key)

    def test_unsupported_hash(self):
        with pytest.raises(ValueError):
            CryptoService(hash_name="md5")
