"""Tokenizer and evaluator for debugger expressions over 32-bit unsigned words."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional

WORD_MASK = 0xFFFF_FFFF
MAX_TOKENS = 65536

_DIGITS = "0123456789"
_REGISTER_LETTERS = "arptgs"


class ExprError(ValueError):
    """Raised when an expression cannot be tokenized or evaluated."""


class TokenType(Enum):
    NUMBER = auto()
    PLUS = auto()
    MINUS = auto()
    MULTI = auto()
    DIVIDE = auto()
    EQ = auto()
    NEQ = auto()
    AND = auto()
    OR = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    REG = auto()
    DEREF = auto()
    NEG = auto()


@dataclass
class Token:
    type: TokenType
    text: str = ""


_DOUBLE = {
    "==": TokenType.EQ,
    "!=": TokenType.NEQ,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

_SINGLE = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTI,
    "/": TokenType.DIVIDE,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
}

_UNARY_CONTEXT = {
    TokenType.LEFT_PAREN,
    TokenType.PLUS,
    TokenType.MINUS,
    TokenType.MULTI,
    TokenType.DIVIDE,
    TokenType.AND,
    TokenType.OR,
    TokenType.EQ,
    TokenType.NEQ,
    TokenType.NEG,
}

_LEVEL = {
    TokenType.AND: 0,
    TokenType.OR: 0,
    TokenType.EQ: 1,
    TokenType.NEQ: 1,
    TokenType.PLUS: 2,
    TokenType.MINUS: 2,
    TokenType.MULTI: 3,
    TokenType.DIVIDE: 3,
}


def _no_match(text: str, pos: int) -> ExprError:
    return ExprError(f"no match at position {pos}\n{text}\n{' ' * pos}^")


def _scan(text: str) -> List[Token]:
    tokens: List[Token] = []
    num_len = 0
    reg_len = 0
    pos = 0
    while pos < len(text):
        if len(tokens) >= MAX_TOKENS:
            raise ExprError("too many tokens")
        ch = text[pos]
        last = tokens[-1] if tokens else None

        if ch == " ":
            while pos < len(text) and text[pos] == " ":
                pos += 1
            num_len = reg_len = 0
            continue

        pair = text[pos:pos + 2]
        if pair in _DOUBLE or ch in _SINGLE:
            kind = _DOUBLE.get(pair)
            if kind is None:
                kind = _SINGLE[ch]
                pos += 1
            else:
                pos += 2
            tokens.append(Token(kind))
            num_len = reg_len = 0
            continue

        pos += 1
        if ch == "$":
            tokens.append(Token(TokenType.REG))
            num_len = reg_len = 0
        elif ch in _DIGITS:
            if last is not None and last.type is TokenType.REG:
                last.text = last.text[:reg_len] + ch
                reg_len += 1
            else:
                if num_len == 0:
                    last = Token(TokenType.NUMBER)
                    tokens.append(last)
                if last is not None and last.type is TokenType.NUMBER:
                    last.text = last.text[:num_len] + ch
                    num_len += 1
        elif ch in _REGISTER_LETTERS:
            if last is None or last.type is not TokenType.REG:
                raise ExprError(f"invalid token '{ch}'")
            last.text = last.text[:reg_len] + ch
            reg_len += 1
        elif ch == "x":
            if last is not None and last.type is TokenType.REG:
                last.text = last.text[:reg_len] + ch
                reg_len += 1
            elif last is not None and last.type is TokenType.NUMBER and num_len == 1:
                last.text = last.text[:num_len] + ch
                num_len += 1
        else:
            raise _no_match(text, pos - 1)
    return tokens


def tokenize(text: str) -> List[Token]:
    """Split an expression into tokens, marking unary '*' and '-'."""
    tokens = _scan(text)
    prev: Optional[TokenType] = None
    for token in tokens:
        if prev is None or prev in _UNARY_CONTEXT:
            if token.type is TokenType.MULTI:
                token.type = TokenType.DEREF
            elif token.type is TokenType.MINUS:
                token.type = TokenType.NEG
        prev = token.type
    return tokens


def _parse_number(text: str) -> int:
    if text.startswith("0x"):
        digits = text[2:]
        if "x" in digits:
            raise ExprError(f"invalid number '{text}'")
        return int(digits, 16) & WORD_MASK if digits else 0
    if "x" in text:
        raise ExprError(f"invalid number '{text}'")
    return int(text) & WORD_MASK


def _surrounded(tokens: List[Token]) -> bool:
    depth = 0
    last = len(tokens) - 1
    for i, token in enumerate(tokens):
        if token.type is TokenType.LEFT_PAREN:
            depth += 1
        elif token.type is TokenType.RIGHT_PAREN:
            depth -= 1
        if 0 < i < last and depth == 0:
            return False
    return (
        depth == 0
        and tokens[0].type is TokenType.LEFT_PAREN
        and tokens[-1].type is TokenType.RIGHT_PAREN
    )


def _main_operator(tokens: List[Token]) -> Optional[int]:
    depth = 0
    index: Optional[int] = None
    best = len(_LEVEL)
    for i, token in enumerate(tokens):
        if token.type is TokenType.LEFT_PAREN:
            depth += 1
        elif token.type is TokenType.RIGHT_PAREN:
            depth -= 1
        if depth < 0:
            raise ExprError("invalid expression: unbalanced parentheses")
        level = _LEVEL.get(token.type)
        if depth == 0 and level is not None and level <= best:
            index, best = i, level
    if depth != 0:
        raise ExprError("invalid expression: unbalanced parentheses")
    return index


class _Evaluator:
    def __init__(
        self,
        read_register: Optional[Callable[[str], Optional[int]]],
        read_memory: Optional[Callable[[int, int], int]],
    ) -> None:
        self._read_register = read_register
        self._read_memory = read_memory

    def register(self, name: str) -> int:
        value = None
        if self._read_register is not None:
            try:
                value = self._read_register(name)
            except KeyError:
                value = None
        if value is None:
            raise ExprError(f"register not found: '{name}'")
        return value & WORD_MASK

    def memory(self, address: int) -> int:
        if self._read_memory is None:
            raise ExprError("memory is not available")
        return self._read_memory(address, 4) & WORD_MASK

    def leaf(self, token: Token) -> int:
        if token.type is TokenType.NUMBER:
            return _parse_number(token.text)
        if token.type is TokenType.REG:
            return self.register(token.text)
        raise ExprError("bad expression")

    def eval(self, tokens: List[Token]) -> int:
        if not tokens:
            raise ExprError("bad expression")
        if len(tokens) == 1:
            return self.leaf(tokens[0])
        if _surrounded(tokens):
            return self.eval(tokens[1:-1])

        index = _main_operator(tokens)
        if index is None:
            head = tokens[0].type
            if head is TokenType.DEREF:
                return self.memory(self.eval(tokens[1:]))
            if head is TokenType.NEG:
                return -self.eval(tokens[1:]) & WORD_MASK
            if head is TokenType.REG:
                raise ExprError("invalid expression (invalid '$')")
            raise ExprError("bad expression")

        left = self.eval(tokens[:index])
        right = self.eval(tokens[index + 1:])
        op = tokens[index].type
        if op is TokenType.PLUS:
            return (left + right) & WORD_MASK
        if op is TokenType.MINUS:
            return (left - right) & WORD_MASK
        if op is TokenType.MULTI:
            return (left * right) & WORD_MASK
        if op is TokenType.DIVIDE:
            if right == 0:
                raise ExprError("divide by zero")
            return left // right
        if op is TokenType.AND:
            return int(bool(left) and bool(right))
        if op is TokenType.OR:
            return int(bool(left) or bool(right))
        if op is TokenType.EQ:
            return int(left == right)
        return int(left != right)


def evaluate(
    text: str,
    read_register: Optional[Callable[[str], Optional[int]]] = None,
    read_memory: Optional[Callable[[int, int], int]] = None,
) -> int:
    """Evaluate an expression to an unsigned 32-bit value.

    read_register maps a register name to its value (None if unknown);
    read_memory(address, length) returns the word at a guest address.
    """
    tokens = tokenize(text)
    if not tokens:
        raise ExprError("empty expression")
    return _Evaluator(read_register, read_memory).eval(tokens)