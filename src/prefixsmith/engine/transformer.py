"""Prefixing transformation backed by postcss and autoprefixer."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import CssSyntaxError, TransformError
from .bridge import NodeBridge
from .models import Dialect, TransformResult, TransformWarning

logger = logging.getLogger(__name__)


@dataclass
class PrefixOptions:
    """Options forwarded to autoprefixer."""

    browsers: list[str] = field(default_factory=list)
    cascade: bool = True
    remove: bool = True

    def to_autoprefixer(self) -> dict[str, Any]:
        options: dict[str, Any] = {"cascade": self.cascade, "remove": self.remove}
        # An empty list leaves autoprefixer on its own browserslist defaults
        if self.browsers:
            options["overrideBrowserslist"] = list(self.browsers)
        return options


class Transformer(ABC):
    """Abstract base class for prefixing backends."""

    @abstractmethod
    async def transform(
        self, text: str, dialect: Dialect, options: PrefixOptions
    ) -> TransformResult:
        """Prefix ``text`` parsed with ``dialect``.

        Raises:
            CssSyntaxError: The input could not be parsed
            TransformError: Any other failure
        """
        pass


class NodeTransformer(Transformer):
    """Runs postcss through the Node.js helper script."""

    def __init__(self, bridge: Optional[NodeBridge] = None):
        self.bridge = bridge or NodeBridge()

    async def transform(
        self, text: str, dialect: Dialect, options: PrefixOptions
    ) -> TransformResult:
        payload = {
            "text": text,
            "dialect": dialect.value,
            "options": options.to_autoprefixer(),
        }
        logger.debug(f"Transforming {len(text)} chars as {dialect.value}")
        response = await self.bridge.call(payload)

        if response.get("ok"):
            return TransformResult(
                output_text=response.get("output", ""),
                warnings=[TransformWarning(str(w)) for w in response.get("warnings", [])],
            )
        raise error_from_response(response.get("error") or {})


def error_from_response(error: dict[str, Any]) -> TransformError:
    """Build the exception described by a helper error payload."""
    name = error.get("name") or "Error"
    message = error.get("message") or "Unknown error"
    if name == "CssSyntaxError":
        return CssSyntaxError(
            message,
            reason=error.get("reason"),
            line=error.get("line"),
            column=error.get("column"),
            source_excerpt=error.get("source") or "",
        )
    return TransformError(message, name=name)
