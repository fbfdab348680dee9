import re
import subprocess
from unittest import mock

from nemusdb.genexpr import (
    ExprGenerator,
    evaluate_with_compiler,
    main,
    strip_unsigned_suffix,
)


def _fake_run(compile_code=0, output="42"):
    def run(args, **kwargs):
        if args[0] == "gcc":
            return subprocess.CompletedProcess(args, compile_code, b"", b"")
        return subprocess.CompletedProcess(args, 0, output, "")

    return run


def test_same_seed_same_expression():
    first = ExprGenerator(seed=7).generate()
    second = ExprGenerator(seed=7).generate()
    assert len(first) > 0
    assert first == second


def test_alphabet_and_suffixes():
    gen = ExprGenerator(seed=1)
    for _ in range(20):
        expression = gen.generate()
        assert set(expression) <= set("0123456789u+-*/() ")
        assert all(n.endswith("u") for n in re.findall(r"\d+u?", expression))
        assert all(int(n) < 2**31 for n in re.findall(r"\d+", expression))


def test_parentheses_balanced():
    gen = ExprGenerator(seed=3)
    for _ in range(20):
        depth = 0
        for ch in gen.generate():
            depth += ch == "("
            depth -= ch == ")"
            assert depth >= 0
        assert depth == 0


def test_never_a_bare_number():
    gen = ExprGenerator(seed=5)
    for _ in range(30):
        expression = gen.generate()
        assert any(ch in expression for ch in "()+-*/")


def test_max_length_respected():
    gen = ExprGenerator(seed=11, max_length=60)
    for _ in range(20):
        assert len(gen.generate()) < 60


def test_strip_unsigned_suffix():
    assert strip_unsigned_suffix("12u + (3u)") == "12 + (3)"


def test_strip_round_trip_length():
    expression = ExprGenerator(seed=9).generate()
    stripped = strip_unsigned_suffix(expression)
    assert "u" not in stripped
    assert len(stripped) == len(expression) - expression.count("u")


def test_evaluate_with_compiler_writes_program(tmp_path):
    with mock.patch("nemusdb.genexpr.subprocess.run", side_effect=_fake_run()):
        assert evaluate_with_compiler("1u + 41u", tmp_path) == 42
    assert "unsigned result = 1u + 41u;" in (tmp_path / ".code.c").read_text()


def test_evaluate_with_compiler_compile_failure(tmp_path):
    with mock.patch("nemusdb.genexpr.subprocess.run", side_effect=_fake_run(compile_code=1)):
        assert evaluate_with_compiler("1u / 0u", tmp_path) is None


def test_evaluate_with_compiler_negative_wraps(tmp_path):
    with mock.patch("nemusdb.genexpr.subprocess.run", side_effect=_fake_run(output="-1")):
        assert evaluate_with_compiler("0u - 1u", tmp_path) == 4294967295


def test_evaluate_with_compiler_no_output(tmp_path):
    with mock.patch("nemusdb.genexpr.subprocess.run", side_effect=_fake_run(output="")):
        assert evaluate_with_compiler("1u", tmp_path) is None


def test_main_prints_requested_lines(capsys):
    with mock.patch("nemusdb.genexpr.subprocess.run", side_effect=_fake_run()):
        assert main(["3"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    for line in lines:
        assert line.startswith("42 ")
        assert "u" not in line