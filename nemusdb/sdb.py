"""The interactive simple debugger: command parsing and execution control."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, TextIO, Tuple

from .expr import WORD_MASK, evaluate
from .state import EmulatorState, RunState
from .watchpoint import NR_WP, NoFreeWatchpoint, WatchpointPool

DEFAULT_MEMORY_BASE = 0x8000_0000
DEFAULT_MEMORY_SIZE = 0x10_0000
PROMPT = "(nemu) "

_DIGITS = "0123456789"
_ENDED_MESSAGE = (
    "Program execution has ended. To restart the program, exit NEMU and run again."
)


@dataclass
class Machine:
    """Guest registers, physical memory and the function that runs one instruction.

    A machine without a program halts as soon as it is asked to run.
    """

    registers: Dict[str, int] = field(default_factory=dict)
    memory: bytearray = field(default_factory=lambda: bytearray(DEFAULT_MEMORY_SIZE))
    memory_base: int = DEFAULT_MEMORY_BASE
    program: Optional[Callable[["Machine"], None]] = None
    status: EmulatorState = field(default_factory=EmulatorState)


class Debugger:
    """Reads debugger commands and drives a Machine."""

    def __init__(
        self,
        machine: Optional[Machine] = None,
        out: Optional[TextIO] = None,
        watchpoints: int = NR_WP,
    ) -> None:
        self.machine = machine if machine is not None else Machine()
        self.out = out if out is not None else sys.stdout
        self.watchpoints = WatchpointPool(self.evaluate, watchpoints)
        self.batch_mode = False
        self._commands: List[Tuple[str, str, Callable[[Optional[str]], bool]]] = [
            ("help", "Display information about all supported commands", self._cmd_help),
            ("c", "Continue the execution of the program", self._cmd_c),
            ("q", "Exit NEMU", self._cmd_q),
            ("si", "Single-step execution", self._cmd_si),
            ("info", "Print register status and watchpoint information", self._cmd_info),
            ("x", "Output consecutive N 4 bytes in the address in hexadecimal", self._cmd_x),
            ("p", "Find the value of the expression EXPR", self._cmd_p),
            ("w", "Suspend program execution when the value of expression EXPR changes", self._cmd_w),
            ("d", "Deletes the watchpoint with ID N", self._cmd_d),
        ]

    def set_batch_mode(self) -> None:
        """Run the program to completion instead of reading commands."""
        self.batch_mode = True

    def evaluate(self, text: str) -> int:
        """Evaluate an expression against the machine's registers and memory."""
        return evaluate(text, self.machine.registers.get, self._read_memory)

    def execute(self, line: str) -> bool:
        """Run one command line; return False when the debugger should quit."""
        stripped = line.lstrip(" ")
        if not stripped:
            return True
        name, _, rest = stripped.partition(" ")
        args = rest or None
        for command, _, handler in self._commands:
            if command == name:
                return handler(args)
        self._write(f"Unknown command '{name}'\n")
        return True

    def mainloop(self, lines: Optional[Iterable[str]] = None) -> None:
        """Process command lines (read from the terminal by default) until quit or EOF."""
        if self.batch_mode:
            self._run(-1)
            return
        for line in lines if lines is not None else _prompt_lines():
            if not self.execute(line):
                self.machine.status.state = RunState.QUIT
                return

    def _write(self, text: str) -> None:
        self.out.write(text)

    def _read_memory(self, address: int, length: int) -> int:
        offset = address - self.machine.memory_base
        if offset < 0 or offset + length > len(self.machine.memory):
            raise ValueError(f"address 0x{address:08x} is out of bound")
        return int.from_bytes(self.machine.memory[offset:offset + length], "little")

    def _run(self, steps: int) -> None:
        status = self.machine.status
        if status.state in (RunState.END, RunState.ABORT, RunState.QUIT):
            self._write(_ENDED_MESSAGE + "\n")
            return
        status.state = RunState.RUNNING
        done = 0
        while status.state is RunState.RUNNING and (steps < 0 or done < steps):
            if self.machine.program is None:
                status.state = RunState.END
                break
            self.machine.program(self.machine)
            done += 1
            hit = self.watchpoints.check()
            if hit is not None:
                watchpoint, old_value = hit
                self._write(
                    f"watchpoint {watchpoint.number}: {watchpoint.expression}\n"
                    f"  old value = {old_value}\n"
                    f"  new value = {watchpoint.value}\n"
                )
                if status.state is RunState.RUNNING:
                    status.state = RunState.STOP
                break
        if status.state is RunState.RUNNING:
            status.state = RunState.STOP

    def _cmd_help(self, args: Optional[str]) -> bool:
        wanted = args.split()[0] if args and args.split() else None
        for name, description, _ in self._commands:
            if wanted is None or wanted == name:
                self._write(f"{name} - {description}\n")
                if wanted is not None:
                    return True
        if wanted is not None:
            self._write(f"Unknown command '{wanted}'\n")
        return True

    def _cmd_c(self, args: Optional[str]) -> bool:
        self._run(-1)
        return True

    def _cmd_q(self, args: Optional[str]) -> bool:
        return False

    def _cmd_si(self, args: Optional[str]) -> bool:
        if args is None:
            self._run(1)
            return True
        if any(ch not in _DIGITS for ch in args):
            self._write("si: args error: not a number\n")
            return True
        self._run(int(args) if args else 0)
        return True

    def _cmd_info(self, args: Optional[str]) -> bool:
        if args is None:
            self._write("info: need an argument\n")
        elif args in ("r", "register"):
            for name, value in self.machine.registers.items():
                self._write(f"{name:<15}0x{value & WORD_MASK:08x}\t{value & WORD_MASK}\n")
        elif args in ("w", "watchpoint"):
            for line in self.watchpoints.display():
                self._write(line + "\n")
        else:
            self._write(f"info: invalid option '{args}'\n")
        return True

    def _cmd_x(self, args: Optional[str]) -> bool:
        if args is None:
            self._write("x: need an argument\n")
            return True
        count_text, _, rest = args.lstrip(" ").partition(" ")
        if any(ch not in _DIGITS for ch in count_text):
            self._write("x: args error: not a number\n")
            return True
        count = int(count_text) if count_text else 0
        try:
            address = self.evaluate(rest)
        except ValueError as error:
            self._write(f"{error}\nx: invalid expression\n")
            return True
        for i in range(count):
            if i % 4 == 0:
                self._write(f"\033[1;32m0x{address:08x}:\033[0m\t")
            try:
                word = self._read_memory(address, 4)
            except ValueError as error:
                self._write(f"\nx: {error}\n")
                return True
            self._write(f"0x{word:08x}\t")
            address = (address + 4) & WORD_MASK
            if i % 4 == 3:
                self._write("\n")
        if count % 4 != 0:
            self._write("\n")
        return True

    def _cmd_p(self, args: Optional[str]) -> bool:
        if args is None:
            self._write("p: need an argument\n")
            return True
        try:
            value = self.evaluate(args)
        except ValueError as error:
            self._write(f"{error}\np: failed for previous error\n")
            return True
        self._write(f"{value}\n")
        return True

    def _cmd_w(self, args: Optional[str]) -> bool:
        if args is None:
            self._write("w: need an argument\n")
            return True
        try:
            self.watchpoints.add(args)
        except NoFreeWatchpoint:
            self._write("w: too much watchpoints existing\n")
        except ValueError:
            self._write("w: invalid expression\n")
        return True

    def _cmd_d(self, args: Optional[str]) -> bool:
        if args is None:
            self._write("d: need an argument\n")
            return True
        try:
            number = self.evaluate(args)
        except ValueError:
            self._write("d: invalid expression\n")
            return True
        try:
            self.watchpoints.delete(number)
        except KeyError:
            self._write("d: watchpoint not found\n")
        return True


def _prompt_lines() -> Iterator[str]:
    while True:
        try:
            yield input(PROMPT)
        except EOFError:
            return