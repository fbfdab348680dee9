"""Rewrite a compiler dependency file into per-option config dependencies."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

CONFIG_PREFIX = "CONFIG_"
CONFIG_DIR = "include/config"
_MODULE_SUFFIX = "_MODULE"
_IGNORED_SUFFIXES = (
    "include/generated/autoconf.h",
    "include/generated/autoksyms.h",
)
_WORD = re.compile(r"[A-Za-z0-9_]*", re.ASCII)
_SEPARATORS = re.compile(r"[ \\\n]+")
_USAGE = "Usage: fixdep <depfile> <target> <cmdline>\n"


class FixdepError(Exception):
    """Raised when the dependency file cannot be processed."""


def config_dep_line(symbol: str, directory: str = CONFIG_DIR) -> str:
    """The make line that depends on the marker file of one config symbol."""
    path: List[str] = []
    prev = "/"
    for ch in symbol:
        ch = "/" if ch == "_" else ch.lower()
        if ch != "/" or prev != "/":
            path.append(ch)
        prev = ch
    return f"    $(wildcard {directory}/{''.join(path)}.h) \\\n"


def _is_word_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def scan_config_symbols(text: str) -> List[str]:
    """Names following each standalone CONFIG_ in text, in order, with repeats.

    A trailing _MODULE is dropped from a name.
    """
    symbols: List[str] = []
    pos = text.find(CONFIG_PREFIX)
    while pos != -1:
        start = pos + len(CONFIG_PREFIX)
        if pos > 0 and _is_word_char(text[pos - 1]):
            pos = text.find(CONFIG_PREFIX, start)
            continue
        end = _WORD.match(text, start).end()
        name = text[start:end]
        if name.endswith(_MODULE_SUFFIX):
            name = name[: -len(_MODULE_SUFFIX)]
        if name:
            symbols.append(name)
        pos = text.find(CONFIG_PREFIX, end)
    return symbols


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="latin-1")


def _is_ignored(name: str) -> bool:
    return name.endswith(_IGNORED_SUFFIXES)


def fix_dependencies(
    depfile_text: str,
    target: str,
    cmdline: str,
    read_file: Callable[[str], str] = _read_text,
) -> str:
    """Return the rewritten dependency snippet for target.

    read_file returns the contents of each listed prerequisite; its errors
    propagate. Raises FixdepError if the dependency file names no target.
    """
    out: List[str] = [f"cmd_{target} := {cmdline}\n\n"]
    seen: set = set()
    saw_any_target = False
    is_first_dep = False

    for name in filter(None, _SEPARATORS.split(depfile_text)):
        if name.endswith(":"):
            is_first_dep = True
            continue
        if _is_ignored(name):
            continue
        if is_first_dep:
            if not saw_any_target:
                saw_any_target = True
                out.append(f"source_{target} := {name}\n\n")
                out.append(f"deps_{target} := \\\n")
            is_first_dep = False
        else:
            out.append(f"  {name} \\\n")
        for symbol in scan_config_symbols(read_file(name)):
            if symbol not in seen:
                seen.add(symbol)
                out.append(config_dep_line(symbol))

    if not saw_any_target:
        raise FixdepError("parse error; no targets found")

    out.append(f"\n{target}: $(deps_{target})\n\n")
    out.append(f"$(deps_{target}):\n")
    return "".join(out)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command entry: fixdep <depfile> <target> <cmdline>."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 3:
        sys.stderr.write(_USAGE)
        return 1
    depfile, target, cmdline = args
    try:
        text = _read_text(depfile)
        result = fix_dependencies(text, target, cmdline)
    except FixdepError as error:
        sys.stderr.write(f"fixdep: {error}\n")
        return 1
    except OSError as error:
        sys.stderr.write(f"fixdep: error opening file: {error.filename}: {error.strerror}\n")
        return 2
    try:
        sys.stdout.write(result)
        sys.stdout.flush()
    except OSError as error:
        sys.stderr.write(f"fixdep: {error}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())