"""Exception types raised by snipcheck."""

from typing import Optional


class SnipcheckError(Exception):
    """Base class for all snipcheck errors."""


class MalformedAnnotation(SnipcheckError):
    """An expected-output comment is present but cannot be parsed.

    Raised at extraction time. The whole document is considered invalid.
    """

    def __init__(self, reason: str, source: str = "<unknown>", line: Optional[int] = None):
        self.reason = reason
        self.source = source
        self.line = line
        location = f"{source}:{line}" if line is not None else source
        super().__init__(f"{location}: malformed annotation: {reason}")


class SandboxError(SnipcheckError):
    """The sandbox itself failed, independent of the snippet under test."""


class Timeout(SnipcheckError):
    """A snippet ran past its execution bound and was terminated."""


class RuntimeFault(SnipcheckError):
    """The engine failed while running a snippet (outside the snippet's own try/catch)."""

    def __init__(self, kind: str, message: str = ""):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind}: {message}" if message else kind)
