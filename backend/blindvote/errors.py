"""
Election error kinds

Every rejected call raises one of these; the facade rolls the
transaction back before the exception reaches the caller.
"""

from typing import Optional

from blindvote.schemas import ErrorResponse


class ElectionError(Exception):
    """Base class for all protocol failures"""

    error_code = "ElectionError"
    default_message = "election call rejected"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(detail=self.message, error_code=self.error_code)


# Authorization

class SenderNotCA(ElectionError):
    error_code = "SenderNotCA"
    default_message = "caller is not the central authority"


class BadSender(ElectionError):
    error_code = "BadSender"
    default_message = "caller is not allowed to act for this identity"


# Configuration

class InternalError(ElectionError):
    """The election is mis-configured (CA unset, key pair missing)"""
    error_code = "InternalError"
    default_message = "election state is not configured"


class GenesisAlreadyBuilt(ElectionError):
    error_code = "GenesisAlreadyBuilt"
    default_message = "genesis state already exists"


# Phases

class InvalidPhase(ElectionError):
    error_code = "InvalidPhase"
    default_message = "call not allowed in the current phase"


class InvalidPhaseChange(ElectionError):
    error_code = "InvalidPhaseChange"
    default_message = "phase exit conditions are not met"


# Verification / integrity

class VoterDoesNotExist(ElectionError):
    error_code = "VoterDoesNotExist"
    default_message = "voter does not exist"


class MissingCandidateCount(ElectionError):
    error_code = "MissingCandidateCount"
    default_message = "candidate count is not recorded"


class RSAStorageNotFound(ElectionError):
    error_code = "RSAStorageNotFound"
    default_message = "candidate public key not found"


class InvalidPublicKey(ElectionError):
    error_code = "InvalidPublicKey"
    default_message = "stored public key is not a valid RSA key"


class RSAInvalidSignature(ElectionError):
    error_code = "RSAInvalidSignature"
    default_message = "blind signature does not verify"


class SignatureTooLong(ElectionError):
    error_code = "SignatureTooLong"
    default_message = "signature exceeds the maximum length"


class InvalidBlindSignatures(ElectionError):
    error_code = "InvalidBlindSignatures"
    default_message = "ballot signature set is invalid"


class BallotDoesNotExist(ElectionError):
    error_code = "BallotDoesNotExist"
    default_message = "no ballot to change"


class InvalidCandidateInfo(ElectionError):
    error_code = "InvalidCandidateInfo"
    default_message = "candidate info is invalid"
