"""
Data Models for the Troubleshooting Submission Pipeline

Dataclass-based models shared by the validator, compressor, request builder,
response resolver and submission controller.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import aiofiles
import aiohttp


class SubmissionState(Enum):
    """Submission lifecycle states"""
    IDLE = "idle"
    VALIDATING = "validating"
    COMPRESSING = "compressing"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_busy(self) -> bool:
        """True while an attempt is in flight"""
        return self in _BUSY_STATES

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionState.SUCCEEDED, SubmissionState.FAILED)


_BUSY_STATES = frozenset({
    SubmissionState.VALIDATING,
    SubmissionState.COMPRESSING,
    SubmissionState.SENDING,
    SubmissionState.AWAITING_RESPONSE,
})


class ValidationReason(Enum):
    """Why a pre-flight check rejected its input"""
    INVALID_EXTENSION = "invalid_extension"
    TOO_LARGE = "too_large"
    DESCRIPTION_TOO_SHORT = "description_too_short"


@dataclass
class SubmissionConfig:
    """Configuration for troubleshooting submissions"""
    api_url: str
    endpoint: str = "/api/troubleshooting"
    max_file_size_mb: int = 20
    required_extension: str = ".gcode"
    min_description_words: int = 3
    request_timeout: float = 120.0
    max_retries: int = 1
    compression_level: int = 6

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def submit_url(self) -> str:
        """Full URL of the troubleshooting endpoint"""
        return self.api_url.rstrip("/") + "/" + self.endpoint.lstrip("/")


@dataclass(frozen=True)
class ArtifactCandidate:
    """A file handed over by a selection channel, not yet validated"""
    name: str
    size_bytes: int
    path: Optional[str] = None
    data: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: str) -> "ArtifactCandidate":
        """Candidate for a file on disk; only its metadata is read"""
        return cls(
            name=os.path.basename(path),
            size_bytes=os.path.getsize(path),
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "ArtifactCandidate":
        """Candidate for content already held in memory (e.g. a drop)"""
        return cls(name=name, size_bytes=len(data), data=data)


@dataclass(frozen=True)
class Artifact:
    """An accepted G-code file"""
    name: str
    size_bytes: int
    path: Optional[str] = None
    data: Optional[bytes] = field(default=None, repr=False)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    async def read(self) -> bytes:
        """Return the artifact bytes, reading them from disk if path-backed"""
        if self.data is not None:
            return self.data
        async with aiofiles.open(self.path, "rb") as f:
            return await f.read()


@dataclass(frozen=True)
class ProblemDescription:
    """Free-text description of the print problem, kept verbatim"""
    text: str = ""

    @property
    def words(self) -> list:
        return [w for w in self.text.strip().split() if w]

    @property
    def word_count(self) -> int:
        return len(self.words)


@dataclass(frozen=True)
class CompressedPayload:
    """Compressed artifact bytes plus the filename they travel under"""
    content: bytes = field(repr=False)
    original_name: str

    @classmethod
    def for_artifact(cls, artifact: Artifact, compressed: bytes) -> "CompressedPayload":
        return cls(content=compressed, original_name=f"{artifact.name}.gz")


@dataclass(frozen=True)
class SubmissionRequest:
    """Wire-level request: a binary `file` part and a text `description` part"""
    file_name: str
    file_bytes: bytes = field(repr=False)
    description: str

    FILE_FIELD = "file"
    DESCRIPTION_FIELD = "description"

    def to_form_data(self) -> aiohttp.FormData:
        """Build the multipart/form-data body for aiohttp"""
        data = aiohttp.FormData()
        data.add_field(
            self.FILE_FIELD,
            self.file_bytes,
            filename=self.file_name,
            content_type="application/gzip",
        )
        data.add_field(self.DESCRIPTION_FIELD, self.description)
        return data


@dataclass(frozen=True)
class RawResponse:
    """HTTP response with its body buffered exactly once"""
    status: int
    reason: Optional[str] = None
    body: Optional[bytes] = None
    read_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class Success:
    """Successful attempt carrying the returned guidance"""
    guidance: str

    @property
    def message(self) -> str:
        return self.guidance


@dataclass(frozen=True)
class Failure:
    """Failed attempt carrying one displayable message"""
    message: str
    error: Optional[Exception] = field(default=None, compare=False, repr=False)


SubmissionOutcome = Union[Success, Failure]


@dataclass
class ValidationResult:
    """Pre-flight validation result"""
    is_valid: bool
    reason: Optional[ValidationReason] = None
    error_message: Optional[str] = None
    artifact: Optional[Artifact] = None
