"""Editing Session - generation passes, live preview, edits and history."""

from collections.abc import AsyncIterator, Callable, Mapping
from enum import Enum
from typing import Any

from returns.result import Failure

from .core import LogContext, Settings, get_logger, get_settings, new_pass_id, new_session_id, validate_tree
from .editor import DropZone, History, Position, classify_for_node, move_node, patch_node, set_text_transform
from .export import export_tree
from .models import GenerationConfig, GenerationSource
from .monitoring import metrics_collector
from .tree import GenerationError, Node, NodePatch, TreeBuilder, build_settled_tree, build_tree_from_array, find_node

logger = get_logger(__name__)

Exporter = Callable[[Node], str]
PreviewCallback = Callable[[Node], None]


class Phase(str, Enum):
    """Workflow phase of a session."""

    IDLE = "IDLE"
    BUILDING = "BUILDING"
    REFINING = "REFINING"
    COMPLETE = "COMPLETE"


class SessionBusyError(RuntimeError):
    """A pass is already running on this session."""


class EditingSession:
    """
    One editing session: a single writer over one history.

    A generation pass seeds the history; a refinement pass pushes onto it.
    Preview snapshots produced while a pass streams are exposed through
    ``preview`` and never enter the history.
    """

    def __init__(self, settings: Settings | None = None, exporter: Exporter = export_tree) -> None:
        self.settings = settings or get_settings()
        self.session_id = new_session_id()
        self.history = History(max_entries=self.settings.history_limit)
        self.phase = Phase.IDLE
        self.preview: Node | None = None
        self.selected_id: str | None = None
        self._exporter = exporter

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self.phase in (Phase.BUILDING, Phase.REFINING)

    async def generate(
        self, fragments: AsyncIterator[str], on_preview: PreviewCallback | None = None
    ) -> Node:
        """
        Run a generation pass and seed the history with its settled tree.

        Raises:
            EmptyGenerationError: If the stream never produced a root
            SessionBusyError: If another pass is running
        """
        self._begin(Phase.BUILDING)
        self.history.clear()
        self.selected_id = None

        settled: Node | None = None
        try:
            settled = await self._run_pass("generate", fragments, on_preview)
        finally:
            if settled is None:
                self.phase = Phase.IDLE

        self.history.reset(settled)
        return self._complete()

    async def refine(
        self, fragments: AsyncIterator[str], on_preview: PreviewCallback | None = None
    ) -> Node:
        """
        Run a refinement pass and push its settled tree onto the history.

        On failure the history is left as it was.
        """
        if self.history.current() is None:
            raise ValueError("Nothing to refine: no settled tree")

        self._begin(Phase.REFINING)
        self.preview = self.history.current()

        settled: Node | None = None
        try:
            settled = await self._run_pass("refine", fragments, on_preview)
        finally:
            if settled is None:
                self.phase = Phase.COMPLETE
                self.preview = None

        self.history.push(settled)
        return self._complete()

    def generate_from_array(self, text: str) -> Node:
        """Seed the history from a provider that answers with one JSON array."""
        self._begin(Phase.BUILDING)
        self.history.clear()
        self.selected_id = None

        settled: Node | None = None
        try:
            with LogContext(session_id=self.session_id, pass_id=new_pass_id()):
                try:
                    settled = build_tree_from_array(text, self._new_builder())
                except GenerationError:
                    metrics_collector.record_pass("generate", "failed")
                    raise
                metrics_collector.record_pass("generate", "settled")
        finally:
            if settled is None:
                self.phase = Phase.IDLE

        self.history.reset(settled)
        return self._complete()

    async def generate_with(
        self,
        source: GenerationSource,
        prompt: str,
        config: GenerationConfig,
        on_preview: PreviewCallback | None = None,
        refine: bool = False,
    ) -> Node:
        """Drive a pass through the generation collaborator chosen by config."""
        if config.is_streaming:
            fragments = source.stream(prompt, config)
            if refine:
                return await self.refine(fragments, on_preview)
            return await self.generate(fragments, on_preview)

        if refine:
            raise ValueError(f"Provider '{config.provider}' does not support refinement")
        text = await source.complete(prompt, config)
        return self.generate_from_array(text)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def current(self) -> Node | None:
        """Tree shown to the editor."""
        return self.history.current()

    def patch(self, node_id: str, fields: Mapping[str, Any] | NodePatch) -> Node | None:
        return self._apply("patch", lambda tree: patch_node(tree, node_id, fields))

    def move(self, dragged_id: str, target_id: str, position: Position | str) -> Node | None:
        return self._apply("move", lambda tree: move_node(tree, dragged_id, target_id, position))

    def drop_zone(self, target_id: str, height: float, offset_y: float) -> DropZone:
        """Classify a pointer over a node of the current tree."""
        tree = self.current()
        node = find_node(tree, target_id) if tree is not None else None
        if node is None:
            return DropZone.NONE
        return classify_for_node(node, height, offset_y, self.settings.zone_edge_ratio)

    def drop(self, dragged_id: str, target_id: str, zone: DropZone | str) -> Node | None:
        """Apply a drop using the last zone the classifier reported."""
        position = DropZone(zone).as_position()
        if position is None:
            return self.current()
        return self.move(dragged_id, target_id, position)

    def set_text_transform(self, node_id: str, transform: str) -> Node | None:
        return self._apply("patch", lambda tree: set_text_transform(tree, node_id, transform))

    def undo(self) -> Node | None:
        self._ensure_idle()
        tree = self.history.undo()
        self._refresh_selection()
        return tree

    def redo(self) -> Node | None:
        self._ensure_idle()
        tree = self.history.redo()
        self._refresh_selection()
        return tree

    def select(self, node_id: str | None) -> Node | None:
        """Mark a node as selected for the renderer."""
        tree = self.current()
        node = find_node(tree, node_id) if tree is not None and node_id is not None else None
        self.selected_id = node.id if node is not None else None
        return node

    @property
    def selected_node(self) -> Node | None:
        tree = self.current()
        if tree is None or self.selected_id is None:
            return None
        return find_node(tree, self.selected_id)

    def export(self) -> str:
        """Hand the current tree to the persistence collaborator."""
        tree = self.current()
        if tree is None:
            raise ValueError("Nothing to export: no settled tree")
        return self._exporter(tree)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin(self, phase: Phase) -> None:
        if self.busy:
            raise SessionBusyError(f"Session {self.session_id} is {self.phase.value}")
        self.phase = phase
        self.preview = None

    def _complete(self) -> Node:
        self.phase = Phase.COMPLETE
        self.preview = None
        self._refresh_selection()
        return self.history.current()

    def _ensure_idle(self) -> None:
        if self.busy:
            raise SessionBusyError(f"Session {self.session_id} is {self.phase.value}")

    def _new_builder(self) -> TreeBuilder:
        # One builder per pass, so nothing from an earlier pass leaks in
        return TreeBuilder(max_record_size=self.settings.max_record_size)

    async def _run_pass(
        self, kind: str, fragments: AsyncIterator[str], on_preview: PreviewCallback | None
    ) -> Node:
        def _preview(snapshot: Node) -> None:
            self.preview = snapshot
            if on_preview:
                on_preview(snapshot)

        with LogContext(session_id=self.session_id, pass_id=new_pass_id()):
            builder = self._new_builder()
            logger.info("pass_started", kind=kind)
            try:
                settled = await build_settled_tree(fragments, _preview, builder)
            except GenerationError:
                metrics_collector.record_pass(kind, "failed")
                raise

            metrics_collector.record_pass(kind, "settled")
            return settled

    def _apply(self, operation: str, edit: Callable[[Node], Node]) -> Node | None:
        self._ensure_idle()
        tree = self.current()
        if tree is None:
            return None

        result = edit(tree)
        if result is tree or result == tree:
            return tree

        if self.settings.validate_edits:
            outcome = validate_tree(result, self.settings.max_tree_depth)
            if isinstance(outcome, Failure):
                logger.error("edit_invalid", operation=operation, error=outcome.failure().message)
                return tree

        self.history.push(result)
        self._refresh_selection()
        return self.history.current()

    def _refresh_selection(self) -> None:
        if self.selected_id is not None and self.selected_node is None:
            self.selected_id = None
