"""
Entropy pipeline errors.

This module defines a small, typed hierarchy of exceptions raised by the
beacon pipeline (collect → digest → assemble → sign/verify → index). Callers
can catch the base `EntropyError` to handle every failure of the core, or
catch the concrete subclasses for more granular control.

The CLI maps any `EntropyError` to a one-line message naming the failed phase
and a non-zero exit status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class EntropyError(Exception):
    """Base class for all entropy pipeline errors."""
    pass


@dataclass(eq=False)
class ArtifactIOError(EntropyError):
    """
    Raised when a filesystem read, write or directory listing fails.

    Attributes:
        path: The file or directory the operation targeted.
        reason: Human-readable cause (usually the underlying OSError text).
    """
    path: str
    reason: str

    def __str__(self) -> str:
        return f"I/O failure on {self.path!r}: {self.reason}"


class ConfigurationError(EntropyError):
    """A required secret or setting is missing/invalid, or a hash primitive is unavailable."""
    pass


@dataclass(eq=False)
class KeyRetrievalError(EntropyError):
    """
    Raised when the public key could not be fetched within the retry budget.

    Attributes:
        url: The public key distribution endpoint.
        attempts: Number of attempts made.
        reason: The last failure observed.
    """
    url: str
    attempts: int
    reason: Optional[str] = None

    def __str__(self) -> str:
        base = f"unable to retrieve public key from {self.url} after {self.attempts} attempt(s)"
        return f"{base}: {self.reason}" if self.reason else base


@dataclass(eq=False)
class InvalidSignatureError(EntropyError):
    """
    Raised when a Round signature does not verify against its digest.

    Attributes:
        digest: The final digest the signature was checked against.
        reason: Optional explanation (e.g. 'missing-signature', 'malformed-key', 'mismatch').
    """
    digest: str
    reason: Optional[str] = None

    def __str__(self) -> str:
        base = f"invalid hash signature for digest {self.digest}"
        return f"{base} ({self.reason})" if self.reason else base


@dataclass(eq=False)
class IntegrityMismatchError(EntropyError):
    """
    Raised when a recomputed Round differs from the persisted one.

    Attributes:
        fields: Wire keys whose values differ (or are absent from the persisted record).
        expected_digest: Final digest of the persisted Round.
        actual_digest: Final digest of the recomputed Round.
    """
    fields: List[str] = field(default_factory=list)
    expected_digest: Optional[str] = None
    actual_digest: Optional[str] = None

    def __str__(self) -> str:
        keys = ", ".join(self.fields) or "<none>"
        return (
            f"recomputed round does not match persisted round: fields=[{keys}] "
            f"persisted={self.expected_digest} recomputed={self.actual_digest}"
        )


@dataclass(eq=False)
class ValidationError(EntropyError):
    """
    Raised when an external identifier or digest has the wrong format.

    Attributes:
        name: What was validated (e.g. 'commit id', 'entropy hash').
        value: The offending value.
        expected: Description of the accepted format.
    """
    name: str
    value: str
    expected: str

    def __str__(self) -> str:
        return f"invalid {self.name} {self.value!r}: expected {self.expected}"


@dataclass(eq=False)
class MissingArtifactError(EntropyError):
    """Raised when a required prior artifact (current or previous round) is absent."""
    path: str

    def __str__(self) -> str:
        return f"required file {self.path!r} not found"


@dataclass(eq=False)
class FetchError(EntropyError):
    """
    Raised by the HTTP helpers for transport failures, HTTP error statuses and
    undecodable bodies.
    """
    url: str
    reason: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        status = f" status={self.status_code}" if self.status_code is not None else ""
        return f"failed to fetch {self.url}{status}: {self.reason}"


@dataclass(eq=False)
class TooManyTries(EntropyError):
    """Raised by the retry combinator once every attempt has failed."""
    label: str
    attempts: int
    last_error: Optional[str] = None

    def __str__(self) -> str:
        base = f"{self.label}: gave up after {self.attempts} attempt(s)"
        return f"{base}: {self.last_error}" if self.last_error else base


__all__ = [
    "EntropyError",
    "ArtifactIOError",
    "ConfigurationError",
    "KeyRetrievalError",
    "InvalidSignatureError",
    "IntegrityMismatchError",
    "ValidationError",
    "MissingArtifactError",
    "FetchError",
    "TooManyTries",
]
