"""errgotrace: instrument Go source so returned errors are logged with their origin."""

from __future__ import annotations

from . import errors
from .annotate import annotate, annotate_file
from .config import Config
from .goparse import GoToolchain, SourceBackend
from .reverse import reverse_file, strip_markers
from .signature import FunctionSignature, Param, extract_signature

__all__ = [
    "Config",
    "FunctionSignature",
    "GoToolchain",
    "Param",
    "SourceBackend",
    "annotate",
    "annotate_file",
    "errors",
    "extract_signature",
    "reverse_file",
    "strip_markers",
]
