"""Tests for block-mode switching and the re-render pipeline.

Covers wrapper class swaps, decoration cleanup when leaving block mode,
transitions between two block modes, and state dropped after re-render.
"""

from __future__ import annotations

import unittest

from lazyblocks.buffer import Position, TextBuffer
from lazyblocks.engine import MODE_CLASS_PREFIX, BlockEditor, DeferredCallbacks
from lazyblocks.errors import ParseError
from lazyblocks.tree_model import SExpressionParser


def _editor(source: str, mode: str | None = "scheme") -> BlockEditor:
    editor = BlockEditor(
        TextBuffer(source),
        SExpressionParser(),
        scheduler=DeferredCallbacks(monotonic=lambda: 0.0),
        copy_to_clipboard=lambda _text: True,
    )
    if mode is not None:
        editor.set_block_mode(mode)
    return editor


class SetBlockModeTests(unittest.TestCase):
    def test_first_activation_renders_every_root(self) -> None:
        editor = _editor("(a b) c", mode=None)
        self.assertIsNone(editor.tree)

        editor.set_block_mode("scheme")

        self.assertEqual(len(editor.tree.roots), 2)
        self.assertIn(MODE_CLASS_PREFIX + "scheme", editor.buffer.wrapper_classes)
        self.assertEqual(len(editor.buffer.get_all_marks()), 2)
        self.assertTrue(all(root.element.attached for root in editor.tree.roots))

    def test_same_mode_is_a_no_op(self) -> None:
        editor = _editor("(a)")
        tree = editor.tree
        editor.set_block_mode("scheme")
        self.assertIs(editor.tree, tree)

    def test_turning_off_clears_marks_focus_and_tree(self) -> None:
        editor = _editor("(a)")
        root = editor.tree.roots[0]
        editor.select_node(root)

        editor.set_block_mode(None)

        self.assertEqual(editor.buffer.get_all_marks(), [])
        self.assertFalse(root.element.attached)
        self.assertIsNone(editor.tree)
        self.assertIsNone(editor.active_element)
        self.assertNotIn(MODE_CLASS_PREFIX + "scheme", editor.buffer.wrapper_classes)

    def test_switching_between_block_modes_records_transition(self) -> None:
        editor = _editor("(a b)")
        editor.set_block_mode("racket")

        self.assertIn(MODE_CLASS_PREFIX + "racket", editor.buffer.wrapper_classes)
        self.assertNotIn(MODE_CLASS_PREFIX + "scheme", editor.buffer.wrapper_classes)
        self.assertEqual(len(editor.renderer.last_transition), 3)
        self.assertEqual(len(editor.buffer.get_all_marks()), 1)

    def test_mode_switch_cancels_open_edit_without_mutation(self) -> None:
        editor = _editor("(a b)")
        editor.edit_literal(editor.tree.roots[0].children[0])
        editor.edit.insert("zzz")

        editor.set_block_mode(None)

        self.assertIsNone(editor.edit)
        self.assertEqual(editor.buffer.get_value(), "(a b)")


class RenderPipelineTests(unittest.TestCase):
    def test_buffer_change_rebuilds_tree_in_block_mode(self) -> None:
        editor = _editor("(a b)")
        old_root = editor.tree.roots[0]
        editor.buffer.replace_range(" c", Position(0, 4))

        self.assertIsNot(editor.tree.roots[0], old_root)
        self.assertFalse(old_root.element.attached)
        self.assertEqual(len(editor.tree.roots[0].children), 3)

    def test_buffer_change_in_text_mode_does_not_render(self) -> None:
        editor = _editor("(a b)", mode=None)
        editor.buffer.replace_range(" c", Position(0, 4))
        self.assertIsNone(editor.tree)
        self.assertEqual(editor.buffer.get_all_marks(), [])

    def test_selection_on_replaced_element_is_dropped(self) -> None:
        editor = _editor("(a b)")
        editor.select_node(editor.tree.roots[0].children[1])
        editor.buffer.replace_range("x", Position(0, 0))
        self.assertIsNone(editor.active_element)
        self.assertIsNone(editor.selected_node())

    def test_parser_errors_propagate(self) -> None:
        editor = _editor("(a b)")
        with self.assertRaises(ParseError):
            editor.buffer.replace_range("(", Position(0, 0))

    def test_close_stops_rendering(self) -> None:
        editor = _editor("(a b)")
        tree = editor.tree
        editor.close()
        editor.buffer.replace_range(" c", Position(0, 4))
        self.assertIs(editor.tree, tree)


if __name__ == "__main__":
    unittest.main()
