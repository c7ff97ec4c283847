"""Extension wiring: command, save hook and the per-invocation pipeline."""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from typing import Optional

from .config import ConfigStore
from .engine.models import (
    InvocationContext,
    InvocationOutcome,
    OutcomeStatus,
    Trigger,
)
from .engine.reconciler import BufferReconciler
from .engine.bridge import NodeBridge
from .engine.scope import ScopeResolver
from .engine.transformer import NodeTransformer, Transformer
from .errors import TransformError
from .host.base import CompositeDisposable, Host, TextBuffer, TextEditor

logger = logging.getLogger(__name__)

COMMAND_TARGET = "atom-workspace"
COMMAND_NAME = "autoprefixer"
NOTIFICATION_TITLE = "Autoprefixer"


class PrefixerExtension:
    """
    Runs the prefixing pipeline on editors of a host.

    Invocations on the same buffer are serialized: a command issued while a
    save-triggered run is still waiting on the transformer starts only after
    that run has been applied, and so transforms the already-prefixed text.
    """

    def __init__(
        self,
        host: Host,
        config: Optional[ConfigStore] = None,
        transformer: Optional[Transformer] = None,
        reconciler: Optional[BufferReconciler] = None,
    ):
        self.host = host
        self.config = config or ConfigStore()
        self.transformer = transformer or self._default_transformer()
        self.reconciler = reconciler or BufferReconciler()
        self._locks: "weakref.WeakKeyDictionary[TextBuffer, asyncio.Lock]" = (
            weakref.WeakKeyDictionary()
        )

    def _default_transformer(self) -> Transformer:
        settings = self.config.get()
        return NodeTransformer(NodeBridge(settings.node_path, settings.script_path))

    def _lock_for(self, buffer: TextBuffer) -> asyncio.Lock:
        lock = self._locks.get(buffer)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[buffer] = lock
        return lock

    async def run_command(self) -> Optional[InvocationOutcome]:
        """The user command: prefix the active editor, if any."""
        editor = self.host.workspace.get_active_text_editor()
        if editor is None:
            logger.debug("No active editor; command ignored")
            return None
        return await self.run(editor, Trigger.MANUAL)

    async def on_will_save(self, editor: TextEditor) -> InvocationOutcome:
        """Save hook, gated by configuration and the document scope."""
        settings = self.config.get()
        scope_name = editor.get_grammar_scope()
        resolver = ScopeResolver(html_enabled=settings.html_enabled)
        if not settings.run_on_save or not resolver.is_supported(scope_name):
            logger.debug(f"Save hook skipped for scope {scope_name}")
            return InvocationOutcome(status=OutcomeStatus.SKIPPED)
        return await self.run(editor, Trigger.ON_SAVE)

    async def run(self, editor: TextEditor, trigger: Trigger) -> InvocationOutcome:
        """Run one invocation. Never raises; failures are reported instead."""
        async with self._lock_for(editor.get_buffer()):
            try:
                return await self._run(editor, trigger)
            except TransformError as e:
                logger.error(f"Autoprefixer failed: {e.message}")
                self.host.notifications.add_error(NOTIFICATION_TITLE, e.message)
                return InvocationOutcome(status=OutcomeStatus.FAILED, error=e.message)
            except Exception as e:
                logger.error(f"Unexpected error while prefixing: {e}", exc_info=True)
                self.host.notifications.add_error(NOTIFICATION_TITLE, str(e))
                return InvocationOutcome(status=OutcomeStatus.FAILED, error=str(e))

    async def _run(self, editor: TextEditor, trigger: Trigger) -> InvocationOutcome:
        settings = self.config.get()
        resolver = ScopeResolver(html_enabled=settings.html_enabled)

        context = self._capture(editor, trigger, resolver)
        resolved = resolver.resolve(context.scope_name, context.has_selection, trigger)
        logger.info(
            f"Prefixing {resolved.granularity.value} of {context.scope_name} "
            f"as {resolved.dialect.value} ({trigger.value})"
        )

        result = await self.transformer.transform(
            context.target_text, resolved.dialect, settings.prefix_options()
        )

        warnings = [str(w) for w in result.warnings]
        for warning in warnings:
            logger.warning(warning)
            self.host.notifications.add_warning(NOTIFICATION_TITLE, warning)

        changed = result.output_text != context.target_text
        snapshot = self.reconciler.snapshot(editor)
        self.reconciler.apply(editor, context, result.output_text, snapshot)

        return InvocationOutcome(
            status=OutcomeStatus.APPLIED,
            resolved=resolved,
            warnings=warnings,
            changed=changed,
        )

    def _capture(
        self, editor: TextEditor, trigger: Trigger, resolver: ScopeResolver
    ) -> InvocationContext:
        scope_name = editor.get_grammar_scope()
        selection_text = None
        selection_range = None
        if trigger is Trigger.MANUAL:
            selection_text = editor.get_selected_text() or None
            if selection_text:
                selection_range = editor.get_selected_buffer_range()
        return InvocationContext(
            scope=resolver.classify(scope_name),
            scope_name=scope_name,
            trigger=trigger,
            full_text=editor.get_text(),
            selection_text=selection_text,
            selection_range=selection_range,
        )

    def watch_editor(self, editor: TextEditor, subscriptions: CompositeDisposable) -> None:
        subscriptions.add(
            editor.get_buffer().on_will_save(lambda: self.on_will_save(editor))
        )


@dataclass
class Activation:
    """Everything one activation owns; released by :func:`deactivate`."""

    extension: PrefixerExtension
    subscriptions: CompositeDisposable = field(default_factory=CompositeDisposable)


def activate(
    host: Host,
    config: Optional[ConfigStore] = None,
    transformer: Optional[Transformer] = None,
) -> Activation:
    """Register the command and save hooks with ``host``."""
    extension = PrefixerExtension(host, config=config, transformer=transformer)
    activation = Activation(extension=extension)
    subscriptions = activation.subscriptions

    subscriptions.add(
        host.workspace.observe_text_editors(
            lambda editor: extension.watch_editor(editor, subscriptions)
        )
    )
    subscriptions.add(
        host.commands.add(COMMAND_TARGET, COMMAND_NAME, extension.run_command)
    )
    logger.info("Autoprefixer activated")
    return activation


def deactivate(activation: Activation) -> None:
    """Release every subscription made by :func:`activate`."""
    activation.subscriptions.dispose()
    logger.info("Autoprefixer deactivated")
