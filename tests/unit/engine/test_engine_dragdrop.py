"""Tests for drag-and-drop relocation of blocks.

Covers offset-safe edit ordering, no-op drops, replacement of literal
targets, insertion hooks, stale ids, and hover highlighting.
"""

from __future__ import annotations

import unittest

from lazyblocks.buffer import Position, Span, TextBuffer
from lazyblocks.engine import BlockEditor, DataTransfer, DeferredCallbacks, DragEvent, Splice, plan_drop
from lazyblocks.render import DRAGGING_CLASS, OVER_TARGET_CLASS
from lazyblocks.tree_model import SExpressionParser


def _editor(source: str, **kwargs) -> BlockEditor:
    editor = BlockEditor(
        TextBuffer(source),
        SExpressionParser(),
        scheduler=DeferredCallbacks(monotonic=lambda: 0.0),
        copy_to_clipboard=lambda _text: True,
        **kwargs,
    )
    editor.set_block_mode("scheme")
    return editor


def _find(editor: BlockEditor, text: str):
    for node in editor.tree.nodes():
        if editor.buffer.get_range(node.start, node.end) == text:
            return node
    raise AssertionError(f"no node with text {text!r}")


def _drag(editor: BlockEditor, text: str) -> DataTransfer:
    transfer = DataTransfer()
    event = DragEvent(type="dragstart", target=_find(editor, text).element, data_transfer=transfer)
    assert editor.handle_drag_start(event)
    return transfer


class PlanDropTests(unittest.TestCase):
    def test_source_before_destination_edits_destination_first(self) -> None:
        source = Span(Position(0, 1), Position(0, 2))
        destination = Span(Position(0, 5), Position(0, 5))
        self.assertEqual(
            plan_drop(source, "a", destination),
            [Splice("a", Position(0, 5), Position(0, 5)), Splice("", Position(0, 1), Position(0, 2))],
        )

    def test_source_after_destination_clears_source_first(self) -> None:
        source = Span(Position(0, 5), Position(0, 6))
        destination = Span(Position(0, 1), Position(0, 1))
        plan = plan_drop(source, "c", destination)
        self.assertEqual([splice.text for splice in plan], ["", "c"])


class DragStartEndTests(unittest.TestCase):
    def test_drag_start_fills_transfer_and_marks_element(self) -> None:
        editor = _editor("(f x)")
        transfer = _drag(editor, "x")
        node = _find(editor, "x")
        self.assertEqual(transfer.get_data("text/plain"), "x")
        self.assertEqual(transfer.get_data("text/id"), node.id)
        self.assertEqual(transfer.effect_allowed, "move")
        self.assertIs(transfer.drag_image, node.element)
        self.assertIn(DRAGGING_CLASS, node.element.classes)
        self.assertEqual(editor.drag.node_id, node.id)

        editor.handle_drag_end(DragEvent(type="dragend", target=node.element))
        self.assertNotIn(DRAGGING_CLASS, node.element.classes)
        self.assertIsNone(editor.drag)

    def test_blank_nodes_refuse_to_drag(self) -> None:
        editor = _editor("(f ...)")
        event = DragEvent(type="dragstart", target=_find(editor, "...").element)
        self.assertFalse(editor.handle_drag_start(event))
        self.assertIsNone(editor.drag)
        self.assertEqual(event.data_transfer.get_data("text/id"), "")


    def test_comments_refuse_to_drag(self) -> None:
        editor = _editor("; note\n(f x)")
        event = DragEvent(type="dragstart", target=_find(editor, "; note").element)
        self.assertFalse(editor.handle_drag_start(event))
        self.assertIsNone(editor.drag)


class DropTests(unittest.TestCase):
    def test_drop_into_later_gap_moves_text(self) -> None:
        editor = _editor("(a b c)")
        transfer = _drag(editor, "a")
        gap = _find(editor, "c").element.parent.children[-1]

        self.assertTrue(editor.handle_drop(DragEvent(target=gap, data_transfer=transfer)))

        self.assertEqual(editor.buffer.get_value(), "( b ca)")

    def test_drop_into_earlier_gap_moves_text(self) -> None:
        editor = _editor("(a b c)")
        transfer = _drag(editor, "c")
        gap = _find(editor, "a").element.parent.children[1]

        editor.handle_drop(DragEvent(target=gap, data_transfer=transfer))

        self.assertEqual(editor.buffer.get_value(), "(ac b )")

    def test_drop_is_one_undoable_change(self) -> None:
        editor = _editor("(a b c)")
        batches = []
        editor.buffer.on_change(lambda _buffer, changes: batches.append(len(changes)))
        transfer = _drag(editor, "a")
        gap = _find(editor, "c").element.parent.children[-1]
        editor.handle_drop(DragEvent(target=gap, data_transfer=transfer))
        self.assertEqual(batches, [2])
        editor.buffer.undo()
        self.assertEqual(editor.buffer.get_value(), "(a b c)")

    def test_drop_at_source_boundary_is_a_no_op(self) -> None:
        editor = _editor("(a b)")
        seen = []
        editor.buffer.on_change(lambda _buffer, changes: seen.append(changes))
        transfer = _drag(editor, "a")
        gap_after_a = _find(editor, "a").element.parent.children[1]

        self.assertFalse(editor.handle_drop(DragEvent(target=gap_after_a, data_transfer=transfer)))
        self.assertEqual(seen, [])

    def test_drop_onto_literal_replaces_it(self) -> None:
        calls = []
        editor = _editor(
            "(a b c)",
            will_insert_node=lambda text, *_args: calls.append("will") or text,
            did_insert_node=lambda *_args: calls.append("did"),
        )
        transfer = _drag(editor, "a")
        target = _find(editor, "c").element

        editor.handle_drop(DragEvent(target=target, data_transfer=transfer))

        self.assertEqual(editor.buffer.get_value(), "( b a)")
        self.assertEqual(calls, [])

    def test_insert_hooks_run_around_insertion(self) -> None:
        calls = []

        def will_insert(text, source, destination, destination_node):
            calls.append(("will", text, destination))
            return text.upper()

        def did_insert(text, source, destination, destination_node):
            calls.append(("did", text, destination_node.type))

        editor = _editor("(a b)", will_insert_node=will_insert, did_insert_node=did_insert)
        transfer = _drag(editor, "a")
        gap = _find(editor, "b").element.parent.children[-1]

        editor.handle_drop(DragEvent(target=gap, data_transfer=transfer))

        self.assertEqual(editor.buffer.get_value(), "( bA)")
        self.assertEqual(calls, [("will", "a", Position(0, 4)), ("did", "A", "expression")])

    def test_drop_below_last_line_prepends_newline(self) -> None:
        editor = _editor("(a b)")
        transfer = _drag(editor, "b")
        editor.handle_drop(DragEvent(target=None, x=0, y=3, data_transfer=transfer))
        self.assertEqual(editor.buffer.get_value(), "(a )\nb")

    def test_drop_inside_own_subtree_is_rejected(self) -> None:
        editor = _editor("(f (g x))")
        transfer = _drag(editor, "(g x)")
        inner_gap = _find(editor, "x").element.parent.children[-1]
        with self.assertLogs("lazyblocks.engine.blocks", level="WARNING"):
            self.assertFalse(editor.handle_drop(DragEvent(target=inner_gap, data_transfer=transfer)))
        self.assertEqual(editor.buffer.get_value(), "(f (g x))")

    def test_stale_and_missing_ids_are_logged_no_ops(self) -> None:
        editor = _editor("(a b)")
        stale = DataTransfer()
        stale.set_data("text/id", "does-not-exist")
        gap = _find(editor, "b").element.parent.children[-1]
        with self.assertLogs("lazyblocks.engine.blocks", level="WARNING"):
            self.assertFalse(editor.handle_drop(DragEvent(target=gap, data_transfer=stale)))
        with self.assertLogs("lazyblocks.engine.blocks", level="ERROR"):
            self.assertFalse(editor.handle_drop(DragEvent(target=gap, data_transfer=DataTransfer())))
        self.assertEqual(editor.buffer.get_value(), "(a b)")

    def test_id_from_previous_render_is_stale(self) -> None:
        editor = _editor("(a b)")
        transfer = _drag(editor, "a")
        editor.buffer.replace_range(" ", Position(0, 0))
        gap = _find(editor, "b").element.parent.children[-1]
        with self.assertLogs("lazyblocks.engine.blocks", level="WARNING"):
            self.assertFalse(editor.handle_drop(DragEvent(target=gap, data_transfer=transfer)))
        self.assertEqual(editor.buffer.get_value(), " (a b)")

    def test_comment_dropped_mid_line_is_rejected(self) -> None:
        editor = _editor("(a b)\n; note\n")
        transfer = DataTransfer()
        transfer.set_data("text/id", _find(editor, "; note").id)
        target = _find(editor, "a").element

        with self.assertLogs("lazyblocks.engine.blocks", level="WARNING"):
            self.assertFalse(editor.handle_drop(DragEvent(target=target, data_transfer=transfer)))

        self.assertEqual(editor.buffer.get_value(), "(a b)\n; note\n")
        roots = [editor.buffer.get_range(root.start, root.end) for root in editor.tree.roots]
        self.assertEqual(roots, ["(a b)", "; note"])

    def test_rewritten_text_that_cannot_lex_is_rejected(self) -> None:
        editor = _editor("(a b)", will_insert_node=lambda text, *_args: "(" + text)
        transfer = _drag(editor, "a")
        gap = _find(editor, "b").element.parent.children[-1]
        with self.assertLogs("lazyblocks.engine.blocks", level="WARNING"):
            self.assertFalse(editor.handle_drop(DragEvent(target=gap, data_transfer=transfer)))
        self.assertEqual(editor.buffer.get_value(), "(a b)")

    def test_drop_on_expression_element_is_ignored(self) -> None:
        editor = _editor("(a (b))")
        transfer = _drag(editor, "a")
        target = _find(editor, "(b)").element
        self.assertFalse(editor.handle_drop(DragEvent(target=target, data_transfer=transfer)))
        self.assertEqual(editor.buffer.get_value(), "(a (b))")


class HoverTests(unittest.TestCase):
    def test_drag_enter_highlights_one_target_at_a_time(self) -> None:
        editor = _editor("(a b)")
        a_element = _find(editor, "a").element
        b_element = _find(editor, "b").element

        self.assertTrue(editor.handle_drag_enter(DragEvent(type="dragenter", target=a_element)))
        self.assertIn(OVER_TARGET_CLASS, a_element.classes)

        editor.handle_drag_enter(DragEvent(type="dragenter", target=b_element))
        self.assertNotIn(OVER_TARGET_CLASS, a_element.classes)
        self.assertIn(OVER_TARGET_CLASS, b_element.classes)

        editor.handle_drag_leave(DragEvent(type="dragleave", target=b_element))
        self.assertNotIn(OVER_TARGET_CLASS, b_element.classes)

    def test_expression_without_eligible_ancestor_is_not_highlighted(self) -> None:
        editor = _editor("(a)")
        root_element = editor.tree.roots[0].element
        self.assertFalse(editor.handle_drag_enter(DragEvent(type="dragenter", target=root_element)))
        self.assertNotIn(OVER_TARGET_CLASS, root_element.classes)


if __name__ == "__main__":
    unittest.main()
