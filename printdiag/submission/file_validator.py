"""
File Validator for Troubleshooting Submissions

Validates a selected artifact against the naming and size policy, and a
problem description against the minimum word count. Only metadata is
inspected; artifact contents are never read here.
"""

import logging
from typing import Optional

from .models import (
    Artifact,
    ArtifactCandidate,
    ProblemDescription,
    SubmissionConfig,
    ValidationReason,
    ValidationResult,
)
from .exceptions import (
    DescriptionTooShortError,
    FileTooLargeError,
    InvalidExtensionError,
    ValidationError,
)


def count_words(text: Optional[str]) -> int:
    """Whitespace-tokenised, empty-filtered word count"""
    return ProblemDescription(text or "").word_count


class FileValidator:
    """Validates artifacts and descriptions before submission"""

    MAX_FILE_SIZE_MB = 20
    REQUIRED_EXTENSION = ".gcode"
    MIN_DESCRIPTION_WORDS = 3

    def __init__(self, config: Optional[SubmissionConfig] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        if config is not None:
            self.max_file_size_mb = config.max_file_size_mb
            self.required_extension = config.required_extension
            self.min_description_words = config.min_description_words
        else:
            self.max_file_size_mb = self.MAX_FILE_SIZE_MB
            self.required_extension = self.REQUIRED_EXTENSION
            self.min_description_words = self.MIN_DESCRIPTION_WORDS

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def validate_file_format(self, candidate: ArtifactCandidate) -> ValidationResult:
        """Case-sensitive check of the literal extension suffix"""
        if not candidate.name.endswith(self.required_extension):
            return ValidationResult(
                is_valid=False,
                reason=ValidationReason.INVALID_EXTENSION,
                error_message=f"Please select a valid {self.required_extension} file",
            )
        return ValidationResult(is_valid=True)

    def validate_file_size(self, candidate: ArtifactCandidate) -> ValidationResult:
        """Ensure file size is within limits"""
        if candidate.size_bytes > self.max_file_size_bytes:
            return ValidationResult(
                is_valid=False,
                reason=ValidationReason.TOO_LARGE,
                error_message=(
                    f"File size exceeds {self.max_file_size_mb}MB limit. "
                    "Please select a smaller file."
                ),
            )
        return ValidationResult(is_valid=True)

    def validate(self, candidate: ArtifactCandidate) -> ValidationResult:
        """Accept the candidate as an Artifact or reject it with a reason"""
        format_result = self.validate_file_format(candidate)
        if not format_result.is_valid:
            self.logger.info(f"Rejected {candidate.name}: invalid extension")
            return format_result

        size_result = self.validate_file_size(candidate)
        if not size_result.is_valid:
            self.logger.info(
                f"Rejected {candidate.name}: {candidate.size_bytes} bytes exceeds "
                f"{self.max_file_size_bytes} byte limit"
            )
            return size_result

        artifact = Artifact(
            name=candidate.name,
            size_bytes=candidate.size_bytes,
            path=candidate.path,
            data=candidate.data,
        )
        return ValidationResult(is_valid=True, artifact=artifact)

    def validate_description(self, text: Optional[str]) -> ValidationResult:
        """Require at least the minimum number of words"""
        if count_words(text) < self.min_description_words:
            return ValidationResult(
                is_valid=False,
                reason=ValidationReason.DESCRIPTION_TOO_SHORT,
                error_message=(
                    f"Please describe the problem in at least "
                    f"{self.min_description_words} words"
                ),
            )
        return ValidationResult(is_valid=True)

    def require_valid(self, result: ValidationResult):
        """Raise the matching ValidationError for a rejected result"""
        if result.is_valid:
            return
        error_types = {
            ValidationReason.INVALID_EXTENSION: InvalidExtensionError,
            ValidationReason.TOO_LARGE: FileTooLargeError,
            ValidationReason.DESCRIPTION_TOO_SHORT: DescriptionTooShortError,
        }
        error_type = error_types.get(result.reason, ValidationError)
        raise error_type(result.error_message)
