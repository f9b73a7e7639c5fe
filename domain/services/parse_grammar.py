from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from domain.errors import GrammarSyntaxError
from domain.models import (
    Choice,
    Empty,
    NonTerminal,
    RuleNode,
    Sequence,
    Statement,
    Terminal,
    TerminalStyle,
    one_or_more,
    optional,
    zero_or_more,
)

BLANKS = " \t\r\n"
TERMINATOR = ";"

_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9_]*")

# Tried in this order; the first delimiter that opens the text wins.
_QUOTES: tuple[tuple[str, TerminalStyle], ...] = (
    ('"', TerminalStyle.NORMAL),
    ("'", TerminalStyle.NORMAL),
    ("?", TerminalStyle.SPECIAL),
)
_QUOTE_CHARS = frozenset(delimiter for delimiter, _ in _QUOTES)

_REPETITIONS: dict[str, Callable[[RuleNode], RuleNode]] = {
    "?": optional,
    "+": one_or_more,
    "*": zero_or_more,
}
_OPERATORS: dict[str, Callable[[tuple[RuleNode, ...]], RuleNode]] = {
    ",": Sequence,
    "|": Choice,
}


@dataclass(frozen=True)
class IdentifierMatch:
    name: str
    rest: str


@dataclass(frozen=True)
class QuotedMatch:
    content: str
    style: TerminalStyle
    delimiter: str
    rest: str

    @property
    def literal(self) -> str:
        return f"{self.delimiter}{self.content}{self.delimiter}"


@dataclass(frozen=True)
class ParseStep:
    node: RuleNode
    literal_text: str
    rest: str


def skip_blanks(text: str) -> str:
    return text.lstrip(BLANKS)


def parse_identifier(text: str) -> IdentifierMatch | None:
    match = _IDENTIFIER_RE.match(text)
    if match is None:
        return None
    return IdentifierMatch(name=match.group(0), rest=text[match.end() :])


def parse_quoted(text: str) -> QuotedMatch | None:
    for delimiter, style in _QUOTES:
        if not text.startswith(delimiter):
            continue
        closing = text.find(delimiter, 1)
        if closing <= 1:
            # Unterminated, or nothing between the delimiters.
            return None
        return QuotedMatch(
            content=text[1:closing],
            style=style,
            delimiter=delimiter,
            rest=text[closing + 1 :],
        )
    return None


class EbnfParser:
    """Recursive-descent parser for the grammar notation.

    Every method takes the unparsed remainder of ``source`` and hands back
    what it built together with the new remainder. Remainders are always
    suffixes of ``source``, so the offset of any failure is recovered from
    the length of the text that was left.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def parse_grammar(self) -> list[Statement]:
        statements: list[Statement] = []
        text = skip_blanks(self.source)
        while text:
            statement, rest = self.parse_statement(text)
            statements.append(statement)
            text = self.expect_terminator(rest)
        return statements

    def parse_statement(self, text: str) -> tuple[Statement, str]:
        text = skip_blanks(text)
        start = self.offset(text)
        lhs = parse_identifier(text)
        if lhs is None:
            raise GrammarSyntaxError("left side identifier expected", start)
        rest = skip_blanks(lhs.rest)
        if not rest.startswith("="):
            raise GrammarSyntaxError("'=' expected", self.offset(rest))
        body = skip_blanks(rest[1:])
        try:
            rhs = self.parse_rule(body)
        except RecursionError as exc:
            raise GrammarSyntaxError("grammar nested too deeply", self.offset(body)) from exc
        statement = Statement(
            symbol_name=lhs.name,
            rule=rhs.node,
            literal_rule_text=rhs.literal_text,
            position=start,
        )
        return statement, rhs.rest

    def expect_terminator(self, text: str) -> str:
        text = skip_blanks(text)
        if not text.startswith(TERMINATOR):
            raise GrammarSyntaxError(f"'{TERMINATOR}' expected", self.offset(text))
        return skip_blanks(text[1:])

    def parse_rule(self, text: str) -> ParseStep:
        steps: list[ParseStep] = []
        operator: str | None = None
        rest = text
        while True:
            step = self.parse_term(rest)
            steps.append(step)
            rest = skip_blanks(step.rest)
            head = rest[:1]
            if head not in _OPERATORS:
                break
            if operator is None:
                operator = head
            elif head != operator:
                # Mixing operators needs parentheses; the caller sees the rest.
                break
            rest = rest[1:]

        if operator is None:
            return ParseStep(steps[0].node, steps[0].literal_text, rest)
        node = _OPERATORS[operator](tuple(step.node for step in steps))
        literal = operator.join(step.literal_text for step in steps)
        return ParseStep(node, literal, rest)

    def parse_term(self, text: str) -> ParseStep:
        text = skip_blanks(text)
        if not text:
            raise GrammarSyntaxError("unexpected end of grammar", self.offset(text))
        head = text[0]

        if head in _QUOTE_CHARS:
            quoted = parse_quoted(text)
            if quoted is None:
                raise GrammarSyntaxError("syntax error", self.offset(text))
            return ParseStep(Terminal(quoted.content, quoted.style), quoted.literal, quoted.rest)

        identifier = parse_identifier(text)
        if identifier is not None:
            return ParseStep(NonTerminal(identifier.name), identifier.name, identifier.rest)

        if head == "_":
            return ParseStep(Empty(), "_", text[1:])

        if head == "(":
            return self._parse_enclosed(text)

        raise GrammarSyntaxError("syntax error", self.offset(text))

    def _parse_enclosed(self, text: str) -> ParseStep:
        inner = self.parse_rule(text[1:])
        rest = skip_blanks(inner.rest)
        if not rest.startswith(")"):
            raise GrammarSyntaxError("unmatched '('", self.offset(text))
        rest = skip_blanks(rest[1:])
        suffix = rest[:1]
        wrap = _REPETITIONS.get(suffix)
        if wrap is None:
            return ParseStep(inner.node, f"({inner.literal_text})", rest)
        return ParseStep(wrap(inner.node), f"({inner.literal_text}){suffix}", rest[1:])

    def offset(self, text: str) -> int:
        return len(self.source) - len(text)


def skip_statement(text: str) -> str:
    """Drop everything up to and including the next top-level terminator.

    Quoted strings are stepped over so a ``;`` inside a terminal does not end
    the statement. A ``?`` right after ``)`` is a repetition suffix, not a
    quote.
    """
    index = 0
    previous = ""
    while index < len(text):
        char = text[index]
        if char == TERMINATOR:
            return skip_blanks(text[index + 1 :])
        if char in _QUOTE_CHARS and not (char == "?" and previous == ")"):
            closing = text.find(char, index + 1)
            if closing != -1:
                index = closing
        if char not in BLANKS:
            previous = char
        index += 1
    return ""


def parse_term(text: str) -> ParseStep:
    return EbnfParser(text).parse_term(text)


def parse_rule(text: str) -> ParseStep:
    return EbnfParser(text).parse_rule(text)


def parse_statement(text: str) -> Statement:
    parser = EbnfParser(text)
    statement, _ = parser.parse_statement(text)
    return statement


def parse_grammar(text: str) -> list[Statement]:
    return EbnfParser(text).parse_grammar()
