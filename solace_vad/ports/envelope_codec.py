from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Envelope:
    """Authenticated-encryption output, each field base64 encoded."""

    iv: str
    ciphertext: str
    auth_tag: str

    def to_dict(self) -> dict[str, str]:
        return {"iv": self.iv, "ciphertext": self.ciphertext, "authTag": self.auth_tag}


class IEnvelopeCodec(ABC):
    @abstractmethod
    def seal(self, plaintext: bytes) -> Envelope: ...
