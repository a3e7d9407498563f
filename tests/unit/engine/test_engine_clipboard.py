from __future__ import annotations

import unittest
from unittest import mock

from lazyblocks.buffer import TextBuffer
from lazyblocks.engine import BlockEditor, ClipboardEvent, DeferredCallbacks, copy_text_to_clipboard
from lazyblocks.engine.clipboard import clipboard_commands
from lazyblocks.tree_model import SExpressionParser


def _editor(source: str, copy=None) -> tuple[BlockEditor, list[str]]:
    copied: list[str] = []

    def fake_copy(text: str) -> bool:
        copied.append(text)
        return True

    editor = BlockEditor(
        TextBuffer(source),
        SExpressionParser(),
        scheduler=DeferredCallbacks(monotonic=lambda: 0.0),
        copy_to_clipboard=copy or fake_copy,
    )
    editor.set_block_mode("scheme")
    return editor, copied


class CopyCutTests(unittest.TestCase):
    def test_copy_sends_selected_text_and_refocuses_later(self) -> None:
        editor, copied = _editor("(f (g x))")
        node = editor.tree.roots[0].children[1]
        editor.select_node(node)
        event = ClipboardEvent(type="copy")

        self.assertTrue(editor.handle_copy_cut(event))

        self.assertEqual(copied, ["(g x)"])
        self.assertTrue(event.propagation_stopped)
        transfer = editor.transfer
        self.assertTrue(transfer.selected)
        self.assertIsNone(editor.active_element)
        self.assertIsNone(editor.selected_node())
        self.assertEqual(editor.buffer.get_value(), "(f (g x))")

        editor.scheduler.run_all()
        self.assertFalse(transfer.attached)
        self.assertIsNone(editor.transfer)
        self.assertIs(editor.selected_node(), node)

    def test_cut_removes_node_text(self) -> None:
        editor, copied = _editor("(f x y)")
        editor.select_node(editor.tree.roots[0].children[1])
        editor.handle_copy_cut(ClipboardEvent(type="cut"))
        self.assertEqual(copied, ["x"])
        self.assertEqual(editor.buffer.get_value(), "(f  y)")

        editor.scheduler.run_all()
        self.assertIsNone(editor.active_element)

    def test_nothing_selected_means_no_copy(self) -> None:
        editor, copied = _editor("(f x)")
        event = ClipboardEvent(type="copy")
        self.assertFalse(editor.handle_copy_cut(event))
        self.assertEqual(copied, [])
        self.assertFalse(event.propagation_stopped)

    def test_copy_while_editing_is_left_to_the_edit(self) -> None:
        editor, copied = _editor("(f x)")
        editor.edit_literal(editor.tree.roots[0].children[1])
        self.assertFalse(editor.handle_copy_cut(ClipboardEvent(type="copy")))
        self.assertEqual(copied, [])
        self.assertIsNone(editor.transfer)

    def test_clipboard_failure_is_logged(self) -> None:
        def broken(_text: str) -> bool:
            raise RuntimeError("no display")

        editor, _copied = _editor("(f x)", copy=broken)
        editor.select_node(editor.tree.roots[0])
        with self.assertLogs("lazyblocks.engine.blocks", level="ERROR"):
            self.assertTrue(editor.handle_copy_cut(ClipboardEvent(type="copy")))

    def test_unavailable_clipboard_tool_warns(self) -> None:
        editor, _copied = _editor("(f x)", copy=lambda _text: False)
        editor.select_node(editor.tree.roots[0])
        with self.assertLogs("lazyblocks.engine.blocks", level="WARNING"):
            editor.handle_copy_cut(ClipboardEvent(type="copy"))


class NativeClipboardTests(unittest.TestCase):
    def test_empty_text_is_not_copied(self) -> None:
        self.assertFalse(copy_text_to_clipboard(""))

    def test_first_available_linux_tool_is_used(self) -> None:
        completed = mock.Mock(returncode=0)
        with mock.patch("lazyblocks.engine.clipboard.sys.platform", "linux"), mock.patch(
            "lazyblocks.engine.clipboard.os.name", "posix"
        ), mock.patch(
            "lazyblocks.engine.clipboard.shutil.which",
            side_effect=lambda name: "/usr/bin/xclip" if name == "xclip" else None,
        ), mock.patch("lazyblocks.engine.clipboard.subprocess.run", return_value=completed) as run:
            self.assertTrue(copy_text_to_clipboard("(a b)"))

        command = run.call_args.args[0]
        self.assertEqual(command, ["xclip", "-selection", "clipboard"])
        self.assertEqual(run.call_args.kwargs["input"], "(a b)")

    def test_macos_uses_pbcopy(self) -> None:
        with mock.patch("lazyblocks.engine.clipboard.sys.platform", "darwin"):
            self.assertEqual(clipboard_commands(), [["pbcopy"]])

    def test_failing_tool_falls_through_to_next(self) -> None:
        results = [OSError("broken pipe"), mock.Mock(returncode=0)]
        with mock.patch("lazyblocks.engine.clipboard.sys.platform", "linux"), mock.patch(
            "lazyblocks.engine.clipboard.os.name", "posix"
        ), mock.patch(
            "lazyblocks.engine.clipboard.shutil.which", return_value="/usr/bin/tool"
        ), mock.patch("lazyblocks.engine.clipboard.subprocess.run", side_effect=results) as run:
            with self.assertLogs("lazyblocks.engine.clipboard", level="WARNING"):
                self.assertTrue(copy_text_to_clipboard("x"))

        self.assertEqual(run.call_count, 2)
        self.assertEqual(run.call_args.args[0][0], "xclip")

    def test_no_tool_available_returns_false(self) -> None:
        with mock.patch("lazyblocks.engine.clipboard.sys.platform", "linux"), mock.patch(
            "lazyblocks.engine.clipboard.os.name", "posix"
        ), mock.patch("lazyblocks.engine.clipboard.shutil.which", return_value=None):
            self.assertFalse(copy_text_to_clipboard("x"))


if __name__ == "__main__":
    unittest.main()
