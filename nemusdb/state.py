"""Emulator run state, a microsecond timer, the random seed and the log stream."""

from __future__ import annotations

import random
import sys
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, TextIO


class RunState(Enum):
    """Lifecycle states of the emulator."""

    RUNNING = auto()
    STOP = auto()
    END = auto()
    ABORT = auto()
    QUIT = auto()


@dataclass
class EmulatorState:
    """Current run state plus where and how the guest halted."""

    state: RunState = RunState.STOP
    halt_pc: int = 0
    halt_ret: int = 0

    def is_exit_status_bad(self) -> bool:
        """True unless the guest ended with status 0 or the user quit."""
        good = (self.state is RunState.END and self.halt_ret == 0) or (
            self.state is RunState.QUIT
        )
        return not good


def _monotonic_us() -> int:
    return time.monotonic_ns() // 1000


class Timer:
    """Microseconds elapsed since the first reading."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _monotonic_us
        self._boot_time: Optional[int] = None

    def get_time(self) -> int:
        """Return microseconds since the first call to this method."""
        if self._boot_time is None:
            self._boot_time = self._clock()
        return self._clock() - self._boot_time


def init_rand(seed: Optional[int] = None) -> int:
    """Seed the global random generator; default seed is the current time in us."""
    if seed is None:
        seed = time.time_ns() // 1000
    random.seed(seed)
    return seed


def open_log(log_file: Optional[str]) -> TextIO:
    """Return the stream log lines go to: standard output or a new file."""
    stream: TextIO = sys.stdout if log_file is None else open(log_file, "w")
    stream.write(f"Log is written to {log_file if log_file is not None else 'stdout'}\n")
    stream.flush()
    return stream


def log_enable(
    nr_guest_inst: int, trace_start: Optional[int], trace_end: Optional[int]
) -> bool:
    """Whether tracing is on for this instruction count; None bounds mean tracing is off."""
    if trace_start is None or trace_end is None:
        return False
    return trace_start <= nr_guest_inst <= trace_end