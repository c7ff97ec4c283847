"""Exceptions raised by the prefixing pipeline."""

from typing import Optional


class PrefixSmithError(Exception):
    """Base class for PrefixSmith errors."""
    pass


class TransformError(PrefixSmithError):
    """The transformation library rejected the input or failed."""

    def __init__(self, message: str, name: str = "TransformError"):
        super().__init__(message)
        self.name = name
        self.message = message

    def __str__(self) -> str:
        return self.message


class CssSyntaxError(TransformError):
    """The input could not be parsed.

    ``message`` already carries the source excerpt when one was available.
    """

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source_excerpt: str = "",
    ):
        if source_excerpt:
            message += source_excerpt
        super().__init__(message, name="CssSyntaxError")
        self.reason = reason
        self.line = line
        self.column = column
        self.source_excerpt = source_excerpt

    def show_source_code(self) -> str:
        return self.source_excerpt


class BridgeError(TransformError):
    """The Node.js helper could not be run or answered garbage."""

    def __init__(self, message: str):
        super().__init__(message, name="BridgeError")
