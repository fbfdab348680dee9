"""Monitor-side debugger toolkit: expressions, watchpoints, command loop, monitor and build helpers."""

__version__ = "0.1.0"
__all__ = ["expr", "fixdep", "genexpr", "monitor", "sdb", "state", "watchpoint"]