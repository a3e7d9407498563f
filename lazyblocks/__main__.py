"""Module entrypoint for ``python -m lazyblocks``.

All argument parsing and session setup happen in ``lazyblocks.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
