"""Domain-specific errors for errgotrace."""

from __future__ import annotations


class ErrGoTraceError(Exception):
    """Base error for errgotrace."""


class ConfigurationError(ErrGoTraceError):
    """Raised when a filter/exclude pattern cannot be compiled."""


class ToolchainError(ErrGoTraceError):
    """Raised when `gofmt`/`go` is missing or the parser helper cannot be built."""


class SourceIOError(ErrGoTraceError):
    """Raised when a source file cannot be read or written."""


class AnalysisError(ErrGoTraceError):
    """Raised when a source file cannot be analyzed."""


class ParseError(AnalysisError):
    """Raised when Go source fails to parse."""


class FormatError(AnalysisError):
    """Raised when Go source fails to canonicalize with gofmt."""


class AlreadyProcessedError(ErrGoTraceError):
    """Raised when a file already carries tracing code."""


class GenerationError(ErrGoTraceError):
    """Raised when instrumented output does not re-format cleanly."""


class UnterminatedBlockError(AnalysisError):
    """Raised when a begin marker has no matching end marker."""
