"""Command-line front door for lazyblocks.

Loads a source file into a block editor, replays scripted key presses and
text input, then prints the block outline and the resulting text.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .buffer import TextBuffer
from .config import (
    load_default_mode,
    load_editor_timings,
    load_keymap_overrides,
    load_render_options,
    save_default_mode,
)
from .engine import BlockEditor, KeyEvent
from .errors import ParseError
from .input import DEFAULT_KEYMAP, is_printable_key
from .render import format_outline, read_text
from .render.highlighting import DEFAULT_STYLE
from .tree_model import SExpressionParser

logger = logging.getLogger(__name__)

FALLBACK_MODE = "scheme"


def _key_tokens(value: str) -> list[str]:
    """argparse type for comma-separated key tokens such as ``TAB,TAB,ENTER``."""
    tokens = [token.strip() for token in value.split(",")]
    if any(not token for token in tokens):
        raise argparse.ArgumentTypeError(f"empty key token in {value!r}")
    return tokens


def build_editor(source: str) -> BlockEditor:
    """Create a block editor over ``source`` using persisted configuration."""
    keymap = dict(DEFAULT_KEYMAP)
    keymap.update(load_keymap_overrides())
    return BlockEditor(
        TextBuffer(source),
        SExpressionParser(),
        render_options=load_render_options(),
        keymap=keymap,
        timings=load_editor_timings(),
    )


def replay(editor: BlockEditor, keys: list[str], typed: str, pasted: str) -> None:
    """Feed scripted input to ``editor`` and settle every deferred handoff."""
    for token in keys:
        if is_printable_key(token):
            editor.type_text(token)
        elif not editor.handle_key_down(KeyEvent(key=token)):
            logger.info("key %s was not handled in block mode", token)
        editor.scheduler.run_all()
    if typed:
        editor.type_text(typed)
    if pasted:
        editor.paste_text(pasted)
    editor.scheduler.run_all()
    editor.blur()


def main() -> None:
    """Parse CLI arguments and run one scripted block-editing session."""
    parser = argparse.ArgumentParser(
        description="Edit s-expression source as blocks from the command line."
    )
    parser.add_argument("path", help="Source file to load.")
    parser.add_argument("--mode", default=None, help="Block mode name (remembered for later runs).")
    parser.add_argument(
        "--keys",
        type=_key_tokens,
        default=[],
        help="Comma-separated key tokens to replay, e.g. TAB,TAB,BACKSPACE.",
    )
    parser.add_argument("--type", dest="typed", default="", help="Text typed after the key tokens.")
    parser.add_argument("--paste", default="", help="Text pasted after typing.")
    parser.add_argument("--write", action="store_true", help="Write the edited text back to PATH.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored block labels.")
    parser.add_argument("--style", default=DEFAULT_STYLE, help="Pygments style name for block labels.")
    parser.add_argument("--verbose", action="store_true", help="Log engine activity to stderr.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.path)
    if not path.is_file():
        raise SystemExit(f"File not found: {path}")

    mode = args.mode or load_default_mode() or FALLBACK_MODE
    if args.mode:
        save_default_mode(args.mode)

    source = read_text(path)
    editor = build_editor(source)
    try:
        editor.set_block_mode(mode)
        replay(editor, args.keys, args.typed, args.paste)
    except ParseError as exc:
        raise SystemExit(f"Cannot parse {path}: {editor.parser.error_message(exc)}") from exc

    rejected = editor.has_invalid_edit and editor.edit is not None
    if rejected:
        sys.stderr.write(f"Edit rejected: {editor.edit.element.title or editor.edit.text}\n")

    selected = editor.selected_node()
    rows = format_outline(
        editor.tree,
        editor.buffer,
        selected_id=selected.id if selected is not None else None,
        no_color=args.no_color,
        style=args.style,
    )
    text = editor.buffer.get_value()
    sys.stdout.write("".join(row + "\n" for row in rows))
    sys.stdout.write("\n")
    sys.stdout.write(text if text.endswith("\n") else text + "\n")

    if args.write and not rejected and text != source:
        path.write_text(text, encoding="utf-8")
    editor.close()
