"""Command-line options, image loading and the start-up banner."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

BUILTIN_IMAGE_SIZE = 4096
DEFAULT_DIFFTEST_PORT = 1234

_ANSI_FG_RED = "\33[1;31m"
_ANSI_FG_GREEN = "\33[1;32m"
_ANSI_FG_YELLOW = "\33[1;33m"
_ANSI_BG_RED = "\33[1;41m"
_ANSI_NONE = "\33[0m"

_LONG_OPTIONS = {
    "batch": ("b", False),
    "log": ("l", True),
    "diff": ("d", True),
    "port": ("p", True),
    "help": ("h", False),
}
_SHORT_WITH_ARGUMENT = "ldp"
_SHORT_FLAGS = "bh"


@dataclass
class MonitorOptions:
    """Settings taken from the command line."""

    batch: bool = False
    log_file: Optional[str] = None
    diff_so_file: Optional[str] = None
    image: Optional[str] = None
    port: int = DEFAULT_DIFFTEST_PORT


def _usage(prog: str) -> None:
    print(f"Usage: {prog} [OPTION...] IMAGE [args]\n")
    print("\t-b,--batch              run with batch mode")
    print("\t-l,--log=FILE           output log to FILE")
    print("\t-d,--diff=REF_SO        run DiffTest with reference REF_SO")
    print("\t-p,--port=PORT          run DiffTest with port PORT")
    print()
    raise SystemExit(0)


def _apply(options: MonitorOptions, letter: str, value: Optional[str], prog: str) -> None:
    if letter == "b":
        options.batch = True
    elif letter == "l":
        options.log_file = value
    elif letter == "d":
        options.diff_so_file = value
    elif letter == "p":
        match = re.match(r"\s*[+-]?\d+", value or "")
        if match:
            options.port = int(match.group())
    else:
        _usage(prog)


def parse_args(argv: Optional[Sequence[str]] = None) -> MonitorOptions:
    """Parse argv (program name first); the first non-option is the image."""
    if argv is None:
        argv = sys.argv
    prog = argv[0] if argv else "nemu"
    args: List[str] = list(argv[1:])
    options = MonitorOptions()
    i = 0
    while i < len(args):
        arg = args[i]
        i += 1
        if arg == "--":
            break
        if arg.startswith("--"):
            name, has_value, value = arg[2:].partition("=")
            if name in _LONG_OPTIONS:
                matches = [name]
            else:
                matches = [key for key in _LONG_OPTIONS if name and key.startswith(name)]
            if len(matches) != 1:
                _usage(prog)
            letter, needs_value = _LONG_OPTIONS[matches[0]]
            if needs_value:
                if not has_value:
                    if i >= len(args):
                        _usage(prog)
                    value = args[i]
                    i += 1
            elif has_value:
                _usage(prog)
            _apply(options, letter, value if needs_value else None, prog)
        elif arg.startswith("-") and arg != "-":
            j = 1
            while j < len(arg):
                letter = arg[j]
                j += 1
                if letter in _SHORT_WITH_ARGUMENT:
                    value = arg[j:]
                    if not value:
                        if i >= len(args):
                            _usage(prog)
                        value = args[i]
                        i += 1
                    _apply(options, letter, value, prog)
                    break
                if letter in _SHORT_FLAGS:
                    _apply(options, letter, None, prog)
                else:
                    _usage(prog)
        else:
            options.image = arg
            break
    return options


def load_image(path: Optional[str], memory: bytearray, offset: int = 0) -> int:
    """Copy an image file into memory at offset; return its size.

    Without a path the built-in image already in memory is used.
    """
    if path is None:
        logger.info("No image is given. Use the default build-in image.")
        return BUILTIN_IMAGE_SIZE
    data = Path(path).read_bytes()
    if offset < 0 or offset + len(data) > len(memory):
        raise ValueError(f"image '{path}' of {len(data)} bytes does not fit in memory")
    memory[offset:offset + len(data)] = data
    logger.info("The image is %s, size = %d", path, len(data))
    return len(data)


def welcome(isa: str = "riscv32", trace: bool = False) -> str:
    """The banner shown once the monitor is ready."""
    trace_text = (
        f"{_ANSI_FG_GREEN}ON{_ANSI_NONE}" if trace else f"{_ANSI_FG_RED}OFF{_ANSI_NONE}"
    )
    lines = [f"Trace: {trace_text}"]
    if trace:
        lines.append(
            "If trace is enabled, a log file will be generated to record the trace. "
            "This may lead to a large log file. "
            "If it is not necessary, you can disable it in menuconfig"
        )
    lines.append(f"Welcome to {_ANSI_FG_YELLOW}{_ANSI_BG_RED}{isa}{_ANSI_NONE}-NEMU!")
    lines.append('For help, type "help"')
    return "\n".join(lines) + "\n"