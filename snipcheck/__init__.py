"""Verification of expected-output annotations in documentation code examples."""

__version__ = "0.1.0"

from .config import Config, VerifyOptions, get_config, reset_config
from .exceptions import MalformedAnnotation, RuntimeFault, SandboxError, SnipcheckError, Timeout
from .models import (
    Document,
    ErrorResult,
    MismatchReport,
    RunReport,
    Snippet,
    ValueResult,
)

__all__ = [
    "Config",
    "VerifyOptions",
    "get_config",
    "reset_config",
    "MalformedAnnotation",
    "RuntimeFault",
    "SandboxError",
    "SnipcheckError",
    "Timeout",
    "Document",
    "ErrorResult",
    "MismatchReport",
    "RunReport",
    "Snippet",
    "ValueResult",
]
