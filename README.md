# nemusdb

A small toolkit for the monitor side of an instruction-set emulator:

- `nemusdb.expr` – a tokenizer and evaluator for debugger expressions on
  unsigned 32-bit words;
- `nemusdb.watchpoint` – a fixed-size watchpoint pool;
- `nemusdb.sdb` – a line-oriented debugger command loop driving a `Machine`;
- `nemusdb.monitor` – command-line option parsing, image loading and the
  start-up banner;
- `nemusdb.state` – emulator run state, a microsecond timer, random seeding
  and log helpers;
- `nemusdb.fixdep` and `nemusdb.genexpr` – two build helpers, also installed
  as commands.

No third-party libraries are needed.

## Installing

```
pip install .
```

Run the tests with:

```
pip install ".[test]"
pytest
```

## Evaluating expressions

`evaluate(text, read_register=None, read_memory=None)` understands decimal
and `0x` hexadecimal numbers, `$name` register references, unary `*`
(reads a 4-byte word from memory) and unary `-`, `+ - * /`, `== !=` and
`&& ||`, with parentheses. Every result is wrapped to 32 bits.

`read_register(name)` returns a register's value, or `None` (or raises
`KeyError`) for an unknown name; `read_memory(address, length)` returns the
word at a guest address.

```python
from nemusdb.expr import ExprError, evaluate

registers = {"pc": 0x80000000, "sp": 0x80001000}
memory = {0x80000000: 0x00000297}

assert evaluate("(1 + 2) * 3") == 9
assert evaluate("$pc + 4", read_register=registers.get) == 0x80000004
assert evaluate(
    "*$pc",
    read_register=registers.get,
    read_memory=lambda address, length: memory.get(address, 0),
) == 0x297

try:
    evaluate("1 / 0")
except ExprError as error:
    print("bad expression:", error)
```

Tokenizing errors, unknown registers, unbalanced parentheses, division by
zero and a dereference with no `read_memory` all raise `ExprError` (a
subclass of `ValueError`). `tokenize(text)` returns the list of `Token`
objects (`type` is a `TokenType`, `text` holds digits or a register name),
with unary `*` and `-` already marked as `DEREF` and `NEG`.

## Watchpoints

`WatchpointPool(evaluate, size=32)` hands out `Watchpoint` objects
(`number`, `expression`, `value`), numbered from 0:

- `add(expression)` evaluates the expression and stores it; it raises
  `NoFreeWatchpoint` when the pool is full and lets the evaluator's error
  through when the expression is bad;
- `delete(number)` releases a watchpoint, raising `KeyError` if none with
  that number is active; the freed number is the next one handed out;
- `check()` re-evaluates the watchpoints in creation order and returns
  `(watchpoint, old_value)` for the first whose value changed, or `None`;
- `display()` returns one `"watchpoint N: EXPR"` line per active watchpoint,
  in number order.

## The debugger

`Machine` holds a register dictionary, a `bytearray` of guest memory (1 MiB
at `0x80000000` by default), an optional `program` callable that executes one
instruction on the machine, and an `EmulatorState`. `Debugger(machine, out,
watchpoints)` writes its output to `out` (standard output by default) and
understands:

| command       | meaning                                                      |
|---------------|--------------------------------------------------------------|
| `help [CMD]`  | describe all commands, or one                                |
| `c`           | continue execution                                           |
| `q`           | quit                                                         |
| `si [N]`      | execute N instructions (default 1)                           |
| `info r`/`w`  | show registers or watchpoints                                |
| `x N EXPR`    | dump N little-endian 4-byte words starting at EXPR           |
| `p EXPR`      | print the value of EXPR                                      |
| `w EXPR`      | stop when the value of EXPR changes                          |
| `d N`         | delete watchpoint N                                          |

```python
import io
from nemusdb.sdb import Debugger, Machine

out = io.StringIO()
debugger = Debugger(Machine(registers={"pc": 0x80000000}), out=out)
debugger.execute("p $pc + 8")
debugger.mainloop(["w $pc", "info w", "q"])
print(out.getvalue())
```

`execute(line)` runs one command and returns `False` for `q`.
`mainloop(lines)` runs lines until `q` (which sets the state to `QUIT`) or
the end of input; with no lines it prompts `(nemu) ` on the terminal.
After `set_batch_mode()`, `mainloop` just continues execution to the end.
After each executed instruction the watchpoints are checked, and a change
stops execution and prints the old and new value. `evaluate(text)` evaluates
an expression against the machine's registers and memory.

## Monitor helpers

- `parse_args(argv)` reads `-b/--batch`, `-l/--log=FILE`,
  `-d/--diff=REF_SO`, `-p/--port=PORT` and the first non-option argument as
  the image into a `MonitorOptions`; `-h/--help` or an unknown option prints
  the usage and raises `SystemExit(0)`.
- `load_image(path, memory, offset=0)` copies an image file into memory and
  returns its size; with no path it returns 4096, the size of the built-in
  image. An image that does not fit raises `ValueError`.
- `welcome(isa="riscv32", trace=False)` returns the start-up banner.

## State, timer and log

`EmulatorState.is_exit_status_bad()` is false only when the state is `END`
with `halt_ret == 0`, or `QUIT`. `Timer().get_time()` returns microseconds
since its first call. `init_rand(seed=None)` seeds `random` (by default from
the current time) and returns the seed. `open_log(log_file)` returns standard
output or a new file, after writing a line saying where the log goes.
`log_enable(nr_guest_inst, trace_start, trace_end)` tells whether an
instruction count lies inside the trace window.

## Build helpers

### nemusdb-fixdep

Rewrites a compiler-generated `.d` dependency file so that a target depends
on one `include/config/...h` file for each `CONFIG_` symbol its
prerequisites mention, instead of on the generated `autoconf.h`:

```
nemusdb-fixdep build/obj/foo.d build/obj/foo.o "gcc -c foo.c" > build/obj/foo.d.tmp
```

It exits with 1 on wrong arguments or a dependency file with no target, and
with 2 when a file cannot be read. The same work is available as
`fix_dependencies(depfile_text, target, cmdline, read_file)`, together with
`scan_config_symbols(text)` and `config_dep_line(symbol)`.

### nemusdb-gen-expr

Prints COUNT (default 1) random arithmetic expressions, each preceded by its
unsigned 32-bit value, as test input for the evaluator. Each expression is
checked by compiling and running it with `gcc`, so a C compiler must be on
the `PATH`; expressions that fail to compile are replaced by new ones:

```
nemusdb-gen-expr 100 > input
```

`ExprGenerator(seed).generate()` builds one expression whose numbers carry a
`u` suffix, `strip_unsigned_suffix` removes those suffixes, and
`evaluate_with_compiler(expression, workdir)` returns the compiled program's
result or `None`.

## What this package does not do

It contains no instruction-set emulator: there is no CPU, instruction
decoder, device model, disassembler or differential testing, and no command
that starts an emulator. A `Machine` only runs what its `program` callable
does; without one, `c` and `si` simply end the run. `info r` prints whatever
is in the register dictionary.