"""Random arithmetic expressions with reference results from a C compiler."""

from __future__ import annotations

import random
import re
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

COMPILER = "gcc"
MAX_LENGTH = 65536
MAX_DEPTH = 30
WORD_MASK = 0xFFFF_FFFF

_CODE_FORMAT = (
    "#include <stdio.h>\n"
    "int main() { "
    "  unsigned result = {expr}; "
    '  printf("%u", result); '
    "  return 0; "
    "}"
)
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_OPERATORS = "+-*/"


class _Overflow(Exception):
    pass


class ExprGenerator:
    """Builds random expressions whose numbers carry a 'u' suffix."""

    def __init__(
        self,
        seed: Optional[int] = None,
        max_length: int = MAX_LENGTH,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self._rng = random.Random(seed)
        self.max_length = max_length
        self.max_depth = max_depth
        self._parts: List[str] = []
        self._length = 0

    def generate(self) -> str:
        """Return one expression shorter than max_length, retrying on overflow."""
        while True:
            self._parts = []
            self._length = 0
            try:
                self._expr(0)
            except _Overflow:
                continue
            return "".join(self._parts)

    def _rand(self) -> int:
        return self._rng.getrandbits(31)

    def _emit(self, text: str) -> None:
        if self._length + len(text) >= self.max_length:
            raise _Overflow
        self._parts.append(text)
        self._length += len(text)

    def _number(self) -> None:
        self._emit(f"{self._rand()}u")

    def _spaces(self) -> None:
        roll = self._rand() % 10000
        count = next((i - 1 for i in range(10, 1, -1) if roll % i == 0), 0)
        if count:
            self._emit(" " * count)

    def _expr(self, depth: int) -> None:
        if depth > self.max_depth:
            self._number()
            return
        choice = self._rng.randrange(3) + (depth == 0)
        if choice == 0:
            self._number()
        elif choice == 1:
            self._emit("(")
            self._spaces()
            self._expr(depth + 1)
            self._spaces()
            self._emit(")")
        else:
            self._expr(depth + 1)
            self._spaces()
            self._emit(_OPERATORS[self._rng.randrange(4)])
            self._spaces()
            self._expr(depth + 1)


def strip_unsigned_suffix(expression: str) -> str:
    """Drop every 'u' from the expression."""
    return expression.replace("u", "")


def evaluate_with_compiler(expression: str, workdir: Union[str, Path]) -> Optional[int]:
    """Compile and run a C program printing the expression as unsigned.

    Returns None if compilation fails or the program prints no number.
    """
    workdir = Path(workdir)
    source = workdir / ".code.c"
    binary = workdir / ".expr"
    source.write_text(_CODE_FORMAT.replace("{expr}", expression))
    built = subprocess.run(
        [COMPILER, "-Werror", str(source), "-o", str(binary)],
        capture_output=True,
    )
    if built.returncode != 0:
        return None
    ran = subprocess.run([str(binary)], capture_output=True, text=True)
    match = _INT_PREFIX.match(ran.stdout or "")
    if match is None:
        return None
    return int(match.group(1)) & WORD_MASK


def _parse_count(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print COUNT lines of '<result> <expression>' (default one)."""
    args = list(sys.argv[1:] if argv is None else argv)
    count = _parse_count(args[0]) if args else 1
    generator = ExprGenerator(seed=int(time.time()))
    with tempfile.TemporaryDirectory() as workdir:
        produced = 0
        while produced < count:
            expression = generator.generate()
            result = evaluate_with_compiler(expression, workdir)
            if result is None:
                continue
            print(f"{result} {strip_unsigned_suffix(expression)}")
            produced += 1
    return 0


if __name__ == "__main__":
    sys.exit(main())