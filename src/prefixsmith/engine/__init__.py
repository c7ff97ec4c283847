"""Scope resolution, transformation and buffer reconciliation."""

from .bridge import NodeBridge
from .differ import TextDiff, TextDiffer, TextEdit
from .models import (
    Dialect,
    DocumentScope,
    Granularity,
    InvocationContext,
    InvocationOutcome,
    OutcomeStatus,
    ResolvedScope,
    TransformResult,
    TransformWarning,
    Trigger,
    ViewportSnapshot,
)
from .reconciler import BufferReconciler
from .scope import ScopeResolver
from .transformer import NodeTransformer, PrefixOptions, Transformer

__all__ = [
    "NodeBridge",
    "TextDiff",
    "TextDiffer",
    "TextEdit",
    "Dialect",
    "DocumentScope",
    "Granularity",
    "InvocationContext",
    "InvocationOutcome",
    "OutcomeStatus",
    "ResolvedScope",
    "TransformResult",
    "TransformWarning",
    "Trigger",
    "ViewportSnapshot",
    "BufferReconciler",
    "ScopeResolver",
    "NodeTransformer",
    "PrefixOptions",
    "Transformer",
]
