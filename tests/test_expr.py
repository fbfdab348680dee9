import pytest

from nemusdb.expr import ExprError, Token, TokenType, evaluate, tokenize


def test_tokenize_register():
    assert tokenize("$t0") == [Token(TokenType.REG, "t0")]


def test_tokenize_marks_unary_operators():
    types = [t.type for t in tokenize("-1 * *2")]
    assert types == [
        TokenType.NEG,
        TokenType.NUMBER,
        TokenType.MULTI,
        TokenType.DEREF,
        TokenType.NUMBER,
    ]


def test_tokenize_space_splits_numbers():
    assert [t.text for t in tokenize("12 34")] == ["12", "34"]


def test_tokenize_hex_prefix():
    assert tokenize("0x10") == [Token(TokenType.NUMBER, "0x10")]


def test_tokenize_double_operators():
    types = [t.type for t in tokenize("1==2!=3&&4||5")]
    assert types[1::2] == [TokenType.EQ, TokenType.NEQ, TokenType.AND, TokenType.OR]


@pytest.mark.parametrize("text", ["0x1f", "a", "#", "1 = 2", "1 & 2"])
def test_tokenize_rejects(text):
    with pytest.raises(ExprError):
        tokenize(text)


def test_number_literal():
    assert evaluate("42") == 42


def test_hex_equals_decimal():
    assert evaluate("0x10") == evaluate("16")


def test_multiplication_binds_tighter():
    assert evaluate("2+3*4") == evaluate("2+(3*4)")
    assert evaluate("(2+3)*4") == evaluate("5*4")


def test_subtraction_is_left_associative():
    assert evaluate("8-3-2") == evaluate("(8-3)-2")
    assert evaluate("8-3-2") != evaluate("8-(3-2)")


def test_negation_wraps_to_word():
    assert evaluate("-1") == 0xFFFFFFFF
    assert evaluate("1 - 2") == evaluate("-1")


def test_addition_wraps_to_word():
    assert evaluate("4294967295 + 1") == evaluate("0")


def test_double_negation():
    assert evaluate("--5") == evaluate("5")


def test_negative_operand():
    assert evaluate("4 * -2") == evaluate("-8")


def test_unsigned_division_truncates():
    assert evaluate("7/2") == evaluate("3")


def test_comparisons():
    assert evaluate("3==3") == evaluate("1")
    assert evaluate("3!=3") == evaluate("0")


def test_logical_operators_share_precedence_rightmost_first():
    assert evaluate("1 || 0 && 0") == evaluate("(1 || 0) && 0")
    assert evaluate("0 && 5") == evaluate("0")


def test_commutative_addition():
    assert evaluate("12 + 30") == evaluate("30 + 12")


def test_register_value():
    registers = {"a0": 41}
    assert evaluate("$a0 + 1", read_register=registers.get) == evaluate("42")


def test_register_lookup_with_mapping_indexing():
    registers = {"sp": 100}
    assert evaluate("$sp", read_register=registers.__getitem__) == 100


def test_unknown_register():
    with pytest.raises(ExprError):
        evaluate("$zz", read_register={}.get)


def test_dereference_reads_four_bytes():
    calls = []

    def read_memory(address, length):
        calls.append((address, length))
        return 7

    assert evaluate("*0x80000000 + 1", read_memory=read_memory) == evaluate("8")
    assert calls == [(0x80000000, 4)]


def test_dereference_without_memory():
    with pytest.raises(ExprError):
        evaluate("*4")


@pytest.mark.parametrize(
    "text",
    ["", "1/0", "(1", "1)", "1 2", "()", "-", "$", "5x10", "(1)(2)"],
)
def test_invalid_expressions(text):
    with pytest.raises(ExprError):
        evaluate(text, read_register={}.get)


def test_parenthesised_value():
    assert evaluate("((9))") == evaluate("9")