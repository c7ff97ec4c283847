"""Pytest configuration and shared fixtures."""

import asyncio
import re
from typing import Optional

import pytest

from prefixsmith.config import ConfigStore, Settings
from prefixsmith.engine.models import Dialect, TransformResult, TransformWarning
from prefixsmith.engine.transformer import PrefixOptions, Transformer
from prefixsmith.errors import TransformError
from prefixsmith.extension import activate, deactivate
from prefixsmith.host import MemoryBuffer, MemoryEditor, create_memory_host

FLEX_PATTERN = re.compile(r"(?<!-ms-flexbox;)display:\s*flex\b")


def fake_prefix(text: str) -> str:
    """A tiny idempotent stand-in for autoprefixer targeting IE 10."""
    return FLEX_PATTERN.sub("display:-ms-flexbox;display:flex", text)


class FakeTransformer(Transformer):
    """Transformer double that records calls and prefixes flexbox."""

    def __init__(
        self,
        error: Optional[TransformError] = None,
        warnings: Optional[list[str]] = None,
        output: Optional[str] = None,
    ):
        self.error = error
        self.warnings = warnings or []
        self.output = output
        self.calls: list[tuple[str, Dialect, PrefixOptions]] = []
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()

    async def transform(
        self, text: str, dialect: Dialect, options: PrefixOptions
    ) -> TransformResult:
        self.calls.append((text, dialect, options))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        output = self.output if self.output is not None else fake_prefix(text)
        return TransformResult(
            output_text=output,
            warnings=[TransformWarning(w) for w in self.warnings],
        )


@pytest.fixture
def settings() -> Settings:
    """Create settings with test values."""
    return Settings(
        browsers=["IE 10"],
        cascade=True,
        remove=True,
        run_on_save=False,
        html_enabled=False,
        node_path="node",
        log_level="DEBUG",
    )


@pytest.fixture
def config(settings: Settings) -> ConfigStore:
    return ConfigStore(settings)


@pytest.fixture
def transformer() -> FakeTransformer:
    return FakeTransformer()


@pytest.fixture
def host():
    return create_memory_host()


@pytest.fixture
def activation(host, config, transformer):
    """An activated extension over the in-memory host."""
    activation = activate(host, config, transformer=transformer)
    yield activation
    deactivate(activation)


@pytest.fixture
def open_editor(host):
    """Factory adding an editor with the given text and scope to the workspace."""

    def _open(text: str, scope_name: str = "source.css", **kwargs) -> MemoryEditor:
        editor = MemoryEditor(MemoryBuffer(text), scope_name, **kwargs)
        return host.workspace.add_editor(editor)

    return _open
