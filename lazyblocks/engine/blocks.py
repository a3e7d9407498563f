"""Block-mode engine keeping a text buffer and its block tree in sync.

Every committed change goes through the buffer; the buffer's change
notification re-parses and re-renders the whole tree. Engine state that
still points at elements from an older render is dropped afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..buffer import Position, Span, TextBuffer, TextChange
from ..errors import ParseError
from ..input import DEFAULT_KEYMAP, KeymapEntry, build_keymap_registry, is_printable_key
from ..render import BlockRenderer, RenderOptions
from ..render.elements import (
    DRAGGING_CLASS,
    EDITING_CLASS,
    ERROR_CLASS,
    OVER_TARGET_CLASS,
    BlockElement,
)
from ..tree_model import EDITABLE_TYPES, Node, SExpressionParser, Tree
from .clipboard import TransferBuffer, copy_text_to_clipboard
from .dragdrop import (
    ID_MIME,
    TEXT_MIME,
    DragState,
    DidInsertHook,
    WillInsertHook,
    drop_is_inside_source,
    is_drop_target,
    plan_drop,
)
from .editing import EDITING, ERRORING, VIEWING, WHITESPACE_EDIT, EditSession, handle_session_key
from .events import ClipboardEvent, DragEvent, Event, KeyEvent, PointerEvent
from .marks import BlockMarker, BlockMarkerRegistry
from .quarantine import COMMITTED, IDLE, PROVISIONAL, SEPARATOR, Quarantine, create_quarantine
from .scheduler import DeferredCallbacks

logger = logging.getLogger(__name__)

MODE_CLASS_PREFIX = "blocks-language-"


@dataclass(frozen=True)
class EditorTimings:
    """Delays (seconds) of the deferred focus handoffs."""

    edit_entry_delay: float = 0.05
    error_refocus_delay: float = 0.05
    copy_refocus_delay: float = 0.2


def _consume(event: Event | None) -> None:
    if event is None:
        return
    event.prevent_default()
    event.stop_propagation()


class BlockEditor:
    """Block view over one ``TextBuffer``.

    All interaction state (mode, focus, edit session, quarantine, drag) lives
    on the instance, so several editors can run side by side.
    """

    def __init__(
        self,
        buffer: TextBuffer,
        parser: SExpressionParser,
        *,
        will_insert_node: WillInsertHook | None = None,
        did_insert_node: DidInsertHook | None = None,
        render_options: RenderOptions | None = None,
        renderer: BlockRenderer | None = None,
        keymap: Mapping[str, KeymapEntry] | None = None,
        scheduler: DeferredCallbacks | None = None,
        timings: EditorTimings | None = None,
        copy_to_clipboard: Callable[[str], bool] = copy_text_to_clipboard,
    ) -> None:
        self.buffer = buffer
        self.parser = parser
        self.will_insert_node = will_insert_node
        self.did_insert_node = did_insert_node
        self.render_options = render_options or RenderOptions()
        self.renderer = renderer or BlockRenderer()
        self.keymap: dict[str, KeymapEntry] = dict(DEFAULT_KEYMAP if keymap is None else keymap)
        self.scheduler = scheduler or DeferredCallbacks()
        self.timings = timings or EditorTimings()
        self._copy_to_clipboard = copy_to_clipboard

        self.block_mode: str | None = None
        self.tree: Tree | None = None
        self.active_element: BlockElement | None = None
        self.edit: EditSession | None = None
        self.quarantine: Quarantine | None = None
        self.drag: DragState | None = None
        self.transfer: TransferBuffer | None = None
        self.has_invalid_edit = False

        self._hover_element: BlockElement | None = None
        self._key_registry = build_keymap_registry(self.keymap, buffer)
        self._markers = BlockMarkerRegistry()
        self._unsubscribe = buffer.on_change(self.handle_change)

    def close(self) -> None:
        """Stop listening to buffer changes."""
        self._unsubscribe()

    # Mode and rendering

    def set_block_mode(self, mode: str | None) -> None:
        """Switch between text mode (``None``) and a named block mode."""
        if mode == self.block_mode:
            return
        self._abandon_interaction()
        previous = self.block_mode

        if mode is None:
            for mark in self.buffer.get_all_marks():
                mark.clear()
            self._markers.clear()
            self._swap_mode_class(previous, None)
            self.block_mode = None
            self.tree = None
            self.active_element = None
            self._hover_element = None
            logger.debug("block mode off")
            return

        if previous is not None:
            snapshot = self.renderer.prepare_transition(self.tree, self.buffer)
            self._swap_mode_class(previous, mode)
            self.block_mode = mode
            tree = self.render()
            self.renderer.render_transition(snapshot, tree, self.buffer, self.render_options)
        else:
            self._swap_mode_class(None, mode)
            self.block_mode = mode
            self.render()
        logger.debug("block mode %s -> %s", previous, mode)

    def _swap_mode_class(self, previous: str | None, mode: str | None) -> None:
        if previous is not None:
            self.buffer.wrapper_classes.discard(MODE_CLASS_PREFIX + previous)
        if mode is not None:
            self.buffer.wrapper_classes.add(MODE_CLASS_PREFIX + mode)

    def handle_change(self, buffer: TextBuffer, changes: list[TextChange]) -> None:
        if self.block_mode is not None:
            self.render()

    def render(self) -> Tree:
        """Re-parse the buffer and rebuild every block element."""
        tree = self.parser.parse(self.buffer.get_value())
        for mark in self.buffer.find_marks(Position(0, 0), self.buffer.last_position()):
            mark.clear()
        self._markers.clear()
        self.tree = tree
        for root in tree.roots:
            self.renderer.render(root, self.buffer, self.render_options)
        self._drop_detached_state()
        return tree

    def _drop_detached_state(self) -> None:
        if self.active_element is not None and not self.active_element.attached:
            self.active_element = None
        if self.edit is not None and not self.edit.element.attached:
            self.edit = None
            self.has_invalid_edit = False
        if self.quarantine is not None and not self.quarantine.element.attached:
            self._abandon_quarantine(self.quarantine)
        if self._hover_element is not None and not self._hover_element.attached:
            self._hover_element = None

    def _abandon_interaction(self) -> None:
        """Cancel any edit or quarantine without touching the buffer."""
        if self.edit is not None or self.quarantine is not None:
            self.cancel_edit()
        self.has_invalid_edit = False
        self.drag = None

    # Focus and selection

    def _focus(self, element: BlockElement | None) -> None:
        previous = self.active_element
        if previous is element:
            return
        self.active_element = element
        if previous is not None:
            self._on_blur(previous)
        if self.active_element is not None and not self.active_element.attached:
            self.active_element = None

    def blur(self) -> None:
        """Move focus away from the active element, committing an edit in it."""
        self._focus(None)

    def find_node_from_element(self, element: BlockElement | None) -> Node | None:
        if element is None or self.tree is None:
            return None
        node_element = element.nearest_node_element()
        if node_element is None or node_element.node_id is None:
            return None
        node = self.tree.node_map.get(node_element.node_id)
        if node is None or node.element is not node_element:
            return None
        return node

    def selected_node(self) -> Node | None:
        return self.find_node_from_element(self.active_element)

    def is_node_hidden(self, node: Node) -> bool:
        element = node.element
        return element is None or element.is_hidden()

    def _traversal_start(self, start: Node | Position | None) -> Node | Position:
        if start is not None:
            return start
        selected = self.selected_node()
        if selected is not None:
            return selected
        return self.buffer.get_cursor()

    def next_visible_node(self, start: Node | Position | None = None) -> Node | None:
        """Return the next non-hidden node in preorder, or ``None`` past the end."""
        if self.tree is None:
            return None
        node = self.tree.node_after(self._traversal_start(start))
        while node is not None and self.is_node_hidden(node):
            node = self.tree.node_after(node)
        return node

    def previous_visible_node(self, start: Node | Position | None = None) -> Node | None:
        """Return the previous non-hidden node in preorder, or ``None`` before the start."""
        if self.tree is None:
            return None
        node = self.tree.node_before(self._traversal_start(start))
        while node is not None and self.is_node_hidden(node):
            node = self.tree.node_before(node)
        return node

    def select_node(self, node: Node, event: Event | None = None) -> None:
        if event is not None:
            event.stop_propagation()
        self._focus(node.element)
        self.buffer.scroll_into_view(node.start)

    def select_next_node(self, event: Event | None = None) -> Node | None:
        node = self.next_visible_node()
        if node is not None:
            self.select_node(node, event)
        return node

    def select_prev_node(self, event: Event | None = None) -> Node | None:
        node = self.previous_visible_node()
        if node is not None:
            self.select_node(node, event)
        return node

    def toggle_node_selection(self, node: Node) -> None:
        """Select ``node``, or clear the selection when it is already selected."""
        if self.selected_node() is node:
            self._focus(None)
        else:
            self.select_node(node)

    def delete_selected_nodes(self) -> bool:
        node = self.selected_node()
        if node is None:
            return False
        self.buffer.replace_range("", node.start, node.end)
        return True

    # In-place editing

    def _is_editable(self, node: Node) -> bool:
        return (
            node.type in EDITABLE_TYPES
            and node.type not in self.render_options.locked_types
            and node.element is not None
        )

    def edit_literal(self, node: Node, event: Event | None = None) -> bool:
        """Open an editor over a literal or blank node, selecting its text."""
        if not self._is_editable(node):
            return False
        if event is not None:
            event.stop_propagation()
        element = node.element
        session = EditSession(element=element, node=node, target=node.span, old_text=element.text)
        self._begin_edit(session)
        session.select_all()
        return True

    def edit_whitespace(self, element: BlockElement, event: Event | None = None) -> bool:
        """Open an insertion editor in the whitespace gap ``element``."""
        if element.location is None:
            return False
        if event is not None:
            event.stop_propagation()
        session = EditSession(
            element=element,
            node=None,
            target=Span(element.location, element.location),
            old_text=element.text,
            prefix=" ",
            kind=WHITESPACE_EDIT,
        )
        self._begin_edit(session)
        session.move_caret_to_end()
        return True

    def _begin_edit(self, session: EditSession, *, focus: bool = True) -> None:
        if self.edit is not None and self.edit is not session:
            self.cancel_edit()
        session.state = EDITING
        session.element.editable = True
        session.element.add_class(EDITING_CLASS)
        self.edit = session
        if focus:
            self._focus(session.element)

    def _end_session(self, session: EditSession) -> None:
        element = session.element
        element.editable = False
        element.remove_class(EDITING_CLASS)
        element.remove_class(ERROR_CLASS)
        session.state = VIEWING
        if self.edit is session:
            self.edit = None
        self.has_invalid_edit = False

    def _save_edit(self) -> bool:
        """Validate the open edit and splice it into the buffer when it lexes."""
        session = self.edit
        if session is None:
            return False
        try:
            self.parser.lex(session.fragment)
        except ParseError as exc:
            self._mark_invalid(session, exc)
            return False

        if session.kind == WHITESPACE_EDIT and not session.text:
            self._end_session(session)
            return True

        text = session.fragment
        start, end = session.target.start, session.target.end
        quarantine = self.quarantine
        if quarantine is not None and quarantine.element is session.element:
            text += SEPARATOR
            start = end = quarantine.release()
            quarantine.state = COMMITTED
            self.quarantine = None
        self._end_session(session)
        session.element.title = ""
        self.buffer.replace_range(text, start, end)
        return True

    def _mark_invalid(self, session: EditSession, exc: ParseError) -> None:
        session.state = ERRORING
        element = session.element
        element.add_class(ERROR_CLASS)
        try:
            element.title = self.parser.error_message(exc)
        except Exception:
            logger.exception("could not describe invalid edit")
            element.title = ""
        logger.error("edited text does not parse: %r (%s)", session.fragment, exc)
        self.has_invalid_edit = True
        self.scheduler.call_later(self.timings.error_refocus_delay, lambda: self._retry_edit(session))

    def _retry_edit(self, session: EditSession) -> None:
        if self.edit is not session or not session.element.attached:
            return
        session.state = EDITING
        self._focus(session.element)
        session.select_all()

    def cancel_edit(self) -> bool:
        """Drop the open edit (or quarantine) and restore the original text."""
        session = self.edit
        if session is not None:
            session.restore()
            self._end_session(session)
        quarantine = self.quarantine
        if quarantine is not None and (session is None or quarantine.element is session.element):
            self._abandon_quarantine(quarantine)
        return session is not None or quarantine is not None

    def _on_blur(self, element: BlockElement) -> None:
        session = self.edit
        if session is not None and session.element is element:
            if session.state == EDITING:
                self._save_edit()
            return
        quarantine = self.quarantine
        if session is None and quarantine is not None and quarantine.element is element:
            self._enter_quarantine_edit(quarantine, focus=False)
            self._save_edit()

    # Quarantine

    @property
    def quarantine_state(self) -> str:
        """``IDLE`` while no typed text is held back, else the quarantine's state."""
        return IDLE if self.quarantine is None else self.quarantine.state

    def insertion_quarantine(self, text: str, event: Event | None = None) -> Quarantine:
        """Hold typed or pasted ``text`` in a provisional node at the cursor."""
        if event is not None:
            event.prevent_default()
        quarantine = create_quarantine(self.buffer, self.parser, self.renderer, text, self.render_options)
        self.quarantine = quarantine
        quarantine.pending_entry = self.scheduler.call_later(
            self.timings.edit_entry_delay,
            lambda: self._enter_quarantine_edit(quarantine),
        )
        self._focus(quarantine.element)
        logger.debug("quarantined %r at %s", text, quarantine.bookmark.position)
        return quarantine

    def _enter_quarantine_edit(self, quarantine: Quarantine, *, focus: bool = True) -> None:
        if self.quarantine is not quarantine or self.edit is not None:
            return
        if quarantine.pending_entry is not None:
            quarantine.pending_entry.cancel()
            quarantine.pending_entry = None
        position = quarantine.bookmark.position
        session = EditSession(
            element=quarantine.element,
            node=quarantine.node,
            target=Span(position, position),
            old_text="",
        )
        self._begin_edit(session, focus=focus)
        session.move_caret_to_end()

    def _abandon_quarantine(self, quarantine: Quarantine) -> None:
        self.quarantine = None
        quarantine.abandon()
        if self.active_element is quarantine.element:
            self.active_element = None

    # Keyboard and text input

    def handle_key_down(self, event: KeyEvent) -> bool:
        """Dispatch a key press; returns whether the engine consumed it."""
        if self.quarantine_state == PROVISIONAL and self.edit is None:
            self._enter_quarantine_edit(self.quarantine)
        if self.edit is not None:
            return self._handle_edit_key(event)
        if self.block_mode is None:
            return False

        key = event.key
        selected = self.selected_node()
        if key == "ENTER" and selected is not None and self._is_editable(selected):
            self.edit_literal(selected, event)
        elif key == "BACKSPACE" and selected is not None:
            self.delete_selected_nodes()
        elif key == "TAB":
            self.select_next_node(event)
        elif key == "SHIFT_TAB":
            self.select_prev_node(event)
        elif self._key_registry.is_bound(key):
            logger.debug("key %s runs %s", key, self._key_registry.label_for(key))
            self._key_registry.dispatch(key)
        else:
            return False
        _consume(event)
        return True

    def _handle_edit_key(self, event: KeyEvent) -> bool:
        session = self.edit
        assert session is not None
        key = event.key
        if is_printable_key(key):
            return False
        _consume(event)
        if self.active_element is not session.element:
            return True
        if key == "ESC":
            self.cancel_edit()
        elif key in ("ENTER", "TAB"):
            self.blur()
        else:
            handle_session_key(session, key)
        return True

    def handle_key_press(self, event: KeyEvent) -> bool:
        """Route a printable character into the edit, quarantine, or a new quarantine."""
        if not is_printable_key(event.key):
            return False
        return self._handle_text_input(event.key, event)

    def handle_paste(self, event: ClipboardEvent) -> bool:
        return self._handle_text_input(event.text, event)

    def _handle_text_input(self, text: str, event: Event) -> bool:
        if self.block_mode is None or not text:
            return False
        session = self.edit
        if session is not None:
            event.prevent_default()
            if self.active_element is session.element:
                session.insert(text)
            return True
        if self.quarantine is not None:
            event.prevent_default()
            self.quarantine.element.text += text
            return True
        self.insertion_quarantine(text, event)
        return True

    def type_text(self, text: str) -> None:
        for char in text:
            self.handle_key_press(KeyEvent(type="keypress", key=char))

    def paste_text(self, text: str) -> None:
        self.handle_paste(ClipboardEvent(type="paste", text=text))

    # Pointer events

    def _cancel_if_error_exists(self, event: Event) -> bool:
        if self.has_invalid_edit:
            _consume(event)
            return True
        return False

    def handle_mouse_down(self, event: PointerEvent) -> bool:
        return self._cancel_if_error_exists(event)

    def handle_click(self, event: PointerEvent) -> bool:
        if self._cancel_if_error_exists(event):
            return True
        if self.block_mode is None:
            return False
        target = event.target
        if self.edit is not None and target is self.edit.element:
            return False
        if self.quarantine is not None and target is self.quarantine.element:
            return False
        node = self.find_node_from_element(target)
        if node is None:
            self._focus(None)
            return False
        self.select_node(node, event)
        return True

    def handle_double_click(self, event: PointerEvent) -> bool:
        if self._cancel_if_error_exists(event):
            return True
        target = event.target
        if self.block_mode is None or target is None:
            return False
        if target.kind == "whitespace":
            handled = self.edit_whitespace(target, event)
        else:
            node = self.find_node_from_element(target)
            handled = node is not None and self.edit_literal(node, event)
        if handled:
            event.prevent_default()
        return handled

    # Drag and drop

    def handle_drag_start(self, event: DragEvent) -> bool:
        target = event.target
        node = self.find_node_from_element(target) if target is not None and target.kind == "node" else None
        if node is None or node.type == "blank" or not node.element.draggable:
            event.stop_propagation()
            return False
        event.stop_propagation()
        element = node.element
        element.add_class(DRAGGING_CLASS)
        text = self.buffer.get_range(node.start, node.end)
        transfer = event.data_transfer
        transfer.effect_allowed = "move"
        transfer.drag_image = element
        transfer.set_data(TEXT_MIME, text)
        transfer.set_data(ID_MIME, node.id)
        self.drag = DragState(node_id=node.id)
        return True

    def handle_drag_end(self, event: DragEvent) -> None:
        if event.target is not None:
            event.target.remove_class(DRAGGING_CLASS)
        if self.drag is not None and self.tree is not None:
            node = self.tree.node_map.get(self.drag.node_id)
            if node is not None and node.element is not None:
                node.element.remove_class(DRAGGING_CLASS)
        self._set_hover(None)
        self.drag = None

    def _drop_target_element(self, element: BlockElement | None) -> BlockElement | None:
        while element is not None:
            node = self.find_node_from_element(element) if element.kind == "node" else None
            if is_drop_target(element, node):
                return element
            element = element.parent
        return None

    def _set_hover(self, element: BlockElement | None) -> None:
        if self._hover_element is element:
            return
        if self._hover_element is not None:
            self._hover_element.remove_class(OVER_TARGET_CLASS)
        self._hover_element = element
        if element is not None:
            element.add_class(OVER_TARGET_CLASS)

    def handle_drag_enter(self, event: DragEvent) -> bool:
        """Highlight the innermost eligible drop target under the pointer."""
        element = self._drop_target_element(event.target)
        self._set_hover(element)
        if element is None:
            return False
        event.stop_propagation()
        event.prevent_default()
        return True

    def handle_drag_leave(self, event: DragEvent) -> None:
        hovered = self._hover_element
        target = event.target
        if hovered is None or target is None:
            return
        if target is hovered or self._drop_target_element(target) is hovered:
            event.stop_propagation()
            self._set_hover(None)

    def handle_drop(self, event: DragEvent) -> bool:
        target = event.target
        node = self.find_node_from_element(target)
        if not is_drop_target(target, node):
            return False
        return self.drop_onto_node(node, event)

    def drop_onto_node(self, destination_node: Node | None, event: DragEvent) -> bool:
        """Move the dragged node's text onto ``destination_node`` or the drop position."""
        _consume(event)
        self._set_hover(None)
        if self.tree is None:
            return False
        node_id = event.data_transfer.get_data(ID_MIME)
        if not node_id:
            logger.error("drop carries no node id")
            return False
        source = self.tree.node_map.get(node_id)
        if source is None:
            logger.warning("dropped node %s is not in the current tree", node_id)
            return False
        text = self.buffer.get_range(source.start, source.end)

        replacing = destination_node is not None and destination_node.type in EDITABLE_TYPES
        target = event.target
        if replacing:
            assert destination_node is not None
            destination = destination_node.start
        elif target is not None and target.location is not None:
            destination = target.location
        else:
            destination, outside = self.buffer.coords_char(event.x, event.y)
            if outside:
                text = "\n" + text

        if destination in (source.start, source.end):
            return False
        if drop_is_inside_source(source, destination, destination_node):
            logger.warning("refusing to drop node %s inside itself", source.id)
            return False

        if not replacing and self.will_insert_node is not None:
            text = self.will_insert_node(text, source, destination, destination_node)
        try:
            self.parser.lex(text)
        except ParseError as exc:
            logger.warning("refusing to drop node %s: %s", source.id, exc)
            return False

        with self.buffer.operation():
            if replacing:
                assert destination_node is not None
                for splice in plan_drop(source.span, text, destination_node.span):
                    splice.apply(self.buffer)
            else:
                for splice in plan_drop(source.span, text, Span(destination, destination)):
                    splice.apply(self.buffer)
                if self.did_insert_node is not None:
                    self.did_insert_node(text, source, destination, destination_node)
        return True

    # Copy and cut

    def handle_copy_cut(self, event: ClipboardEvent) -> bool:
        """Copy (or cut) the selected node's text through a transfer buffer."""
        node = self.selected_node()
        if node is None or self.edit is not None:
            return False
        event.stop_propagation()
        previous = self.active_element
        text = self.buffer.get_range(node.start, node.end)
        transfer = TransferBuffer(text)
        self.transfer = transfer
        # The transfer buffer holds focus until _finish_copy hands it back.
        self.blur()
        transfer.select()
        try:
            copied = self._copy_to_clipboard(text)
        except Exception:
            logger.exception("clipboard copy failed")
        else:
            if not copied:
                logger.warning("no clipboard tool accepted the copied text")
        self.scheduler.call_later(
            self.timings.copy_refocus_delay,
            lambda: self._finish_copy(previous, transfer),
        )
        if event.type == "cut":
            self.buffer.replace_range("", node.start, node.end)
        return True

    def _finish_copy(self, previous: BlockElement | None, transfer: TransferBuffer) -> None:
        if previous is not None and previous.attached:
            self._focus(previous)
        transfer.remove()
        if self.transfer is transfer:
            self.transfer = None

    # Decorations

    def mark_text(self, start: Position, end: Position, **options: str) -> BlockMarker | None:
        """Decorate the block rendering ``[start, end)`` with css, class_name or title."""
        return self._markers.mark_text(self.buffer, start, end, options)

    def find_marks(self, start: Position, end: Position) -> list[BlockMarker]:
        return self._markers.markers_for(self.buffer.find_marks(start, end), start, end)

    def find_marks_at(self, pos: Position) -> list[BlockMarker]:
        return self._markers.markers_for(self.buffer.find_marks_at(pos), pos, pos)

    def get_all_marks(self) -> list[BlockMarker]:
        return self._markers.markers_for(self.buffer.get_all_marks())
