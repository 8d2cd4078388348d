"""Command-line argument construction.

Two rules cover every external tool the pipeline runs:

- :func:`options_to_args` turns a recipe option map into flags.
- :func:`flatten_args` turns nested argument groups into one argv.

Examples:
    >>> options_to_args({"mono": True, "o": "x"})
    ['--mono', '-o', 'x']
    >>> options_to_args({"term": False})
    []
    >>> flatten_args("otfccbuild", ["-o", "out.ttf"], [["-k", "-s"]], None)
    ['otfccbuild', '-o', 'out.ttf', '-k', '-s']
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


def options_to_args(options: Mapping[str, Any]) -> list[str]:
    """Translate an option map into command-line flags.

    Keys are emitted in mapping order. ``False`` and ``None`` values are
    omitted; ``True`` becomes a bare flag; anything else becomes the flag
    followed by ``str(value)``. One-character keys use ``-``, longer keys
    ``--``.
    """
    args: list[str] = []
    for key, value in options.items():
        if value is False or value is None:
            continue
        args.append(("-" if len(key) == 1 else "--") + key)
        if value is not True:
            args.append(str(value))
    return args


def _walk(parts: Any) -> Iterator[str]:
    for part in parts:
        if part is None:
            continue
        if isinstance(part, (list, tuple)):
            yield from _walk(part)
        else:
            yield str(part)


def flatten_args(*parts: Any) -> list[str]:
    """Flatten nested lists/tuples into a string argv, dropping ``None``."""
    return list(_walk(parts))


__all__ = ["options_to_args", "flatten_args"]
