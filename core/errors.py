"""Error kinds surfaced by Consensus.

Every failure that reaches a caller is a :class:`ConsensusError` carrying a
short ``kind`` string. The HTTP layer and the CLI map kinds to status codes
and user-facing messages; nothing below them swallows errors into defaults.
"""

from __future__ import annotations

from typing import Any, Optional


class ConsensusError(Exception):
    """Base exception for every Consensus failure."""

    kind: str = "internal"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(ConsensusError):
    """The generation credential is missing or still the placeholder."""

    kind = "configuration"


class InputValidationError(ConsensusError):
    """Caller input was rejected before any network call."""

    kind = "validation"


class SchemaValidationError(ConsensusError):
    """Model output parsed as JSON but is not a decision package."""

    kind = "schema"


class ImportFormatError(ConsensusError):
    """Imported text is not a recognised project export."""

    kind = "format"
