"""
Caller identity helpers
"""

from dataclasses import dataclass
from typing import Optional
import hmac


@dataclass(frozen=True)
class Origin:
    """
    Authenticated caller of a single election call

    The host builds one per call after it has verified the caller;
    handlers only ever compare the identity it carries.
    """
    identity: str

    def is_identity(self, other: Optional[str]) -> bool:
        return other is not None and same_identity(self.identity, other)


def encode_identity(identity: str) -> bytes:
    """Canonical byte encoding of an identity, used as the ballot's signed message"""
    return identity.encode("utf-8")


def same_identity(a: str, b: str) -> bool:
    """Constant-time identity comparison"""
    return hmac.compare_digest(encode_identity(a), encode_identity(b))
