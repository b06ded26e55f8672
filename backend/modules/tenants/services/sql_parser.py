# backend/modules/tenants/services/sql_parser.py

"""
Tokenizer and parser for the ``INSERT ... VALUES`` subset of SQL.

Only data statements are understood; anything else is reported back so the
caller can surface it as a warning instead of executing it.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional, Tuple


class SQLParseError(ValueError):
    def __init__(self, message: str, line: int):
        super().__init__(f"Line {line}: {message}")
        self.line = line


@dataclass
class Token:
    kind: str  # IDENT, STRING, NUMBER, PUNCT
    value: Any
    line: int
    quoted: bool = False


@dataclass
class InsertStatement:
    table: str
    columns: List[str]
    rows: List[List[Any]]
    line: int


@dataclass
class ParsedSQL:
    inserts: List[InsertStatement] = field(default_factory=list)
    skipped: List[Tuple[int, str]] = field(default_factory=list)


_PUNCT = "(),;.*="


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    i = 0
    line = 1
    length = len(text)

    while i < length:
        ch = text[i]

        if ch == "\n":
            line += 1
            i += 1
        elif ch.isspace():
            i += 1
        elif text.startswith("--", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise SQLParseError("Unterminated block comment", line)
            line += text.count("\n", i, end)
            i = end + 2
        elif ch == "'":
            start_line = line
            i += 1
            chunks = []
            while True:
                if i >= length:
                    raise SQLParseError("Unterminated string literal", start_line)
                if text[i] == "'":
                    if i + 1 < length and text[i + 1] == "'":
                        chunks.append("'")
                        i += 2
                        continue
                    i += 1
                    break
                if text[i] == "\n":
                    line += 1
                chunks.append(text[i])
                i += 1
            tokens.append(Token("STRING", "".join(chunks), start_line))
        elif ch in ('"', "`"):
            end = text.find(ch, i + 1)
            if end == -1:
                raise SQLParseError("Unterminated quoted identifier", line)
            tokens.append(Token("IDENT", text[i + 1:end], line, quoted=True))
            i = end + 1
        elif ch.isdigit() or (
            ch in "-+." and i + 1 < length and text[i + 1].isdigit()
        ):
            start = i
            i += 1
            while i < length and (text[i].isdigit() or text[i] in ".eE"):
                i += 1
            raw = text[start:i]
            try:
                value = Decimal(raw) if any(c in raw for c in ".eE") else int(raw)
            except ArithmeticError:
                raise SQLParseError(f"Invalid number '{raw}'", line)
            tokens.append(Token("NUMBER", value, line))
        elif ch.isalpha() or ch == "_":
            start = i
            while i < length and (text[i].isalnum() or text[i] in "_$"):
                i += 1
            tokens.append(Token("IDENT", text[start:i], line))
        elif text.startswith("::", i):
            tokens.append(Token("PUNCT", "::", line))
            i += 2
        elif ch in _PUNCT:
            tokens.append(Token("PUNCT", ch, line))
            i += 1
        else:
            raise SQLParseError(f"Unexpected character '{ch}'", line)

    return tokens


class _Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            last_line = self.tokens[-1].line if self.tokens else 1
            raise SQLParseError("Unexpected end of input", last_line)
        self.pos += 1
        return token

    def is_keyword(self, token: Optional[Token], word: str) -> bool:
        return (
            token is not None
            and token.kind == "IDENT"
            and not token.quoted
            and token.value.upper() == word
        )

    def expect_punct(self, value: str) -> Token:
        token = self.next()
        if token.kind != "PUNCT" or token.value != value:
            raise SQLParseError(f"Expected '{value}' but found '{token.value}'", token.line)
        return token

    def expect_keyword(self, word: str) -> Token:
        token = self.next()
        if not self.is_keyword(token, word):
            raise SQLParseError(f"Expected {word} but found '{token.value}'", token.line)
        return token

    def skip_statement(self) -> None:
        while True:
            token = self.peek()
            if token is None:
                return
            self.pos += 1
            if token.kind == "PUNCT" and token.value == ";":
                return

    def parse(self) -> ParsedSQL:
        result = ParsedSQL()
        while self.peek() is not None:
            token = self.peek()
            if token.kind == "PUNCT" and token.value == ";":
                self.pos += 1
                continue
            if self.is_keyword(token, "INSERT"):
                result.inserts.append(self.parse_insert())
            else:
                result.skipped.append((token.line, str(token.value).upper()))
                self.skip_statement()
        return result

    def parse_name(self) -> str:
        token = self.next()
        if token.kind != "IDENT":
            raise SQLParseError(f"Expected a name but found '{token.value}'", token.line)
        name = token.value
        # schema-qualified names keep only the table part
        while self.peek() is not None and self.peek().value == ".":
            self.pos += 1
            name = self.parse_name()
        return name

    def parse_insert(self) -> InsertStatement:
        start = self.expect_keyword("INSERT")
        self.expect_keyword("INTO")
        table = self.parse_name()

        if self.peek() is None or self.peek().value != "(":
            raise SQLParseError("INSERT statements must list their columns", start.line)
        self.expect_punct("(")
        columns = [self.parse_name()]
        while self.peek() is not None and self.peek().value == ",":
            self.pos += 1
            columns.append(self.parse_name())
        self.expect_punct(")")

        self.expect_keyword("VALUES")
        rows = [self.parse_row(len(columns))]
        while self.peek() is not None and self.peek().value == ",":
            self.pos += 1
            rows.append(self.parse_row(len(columns)))

        token = self.peek()
        if token is not None:
            if self.is_keyword(token, "ON"):
                # ON CONFLICT / ON DUPLICATE KEY clauses are ignored
                self.skip_statement()
                return InsertStatement(table.lower(), columns, rows, start.line)
            self.expect_punct(";")
        return InsertStatement(table.lower(), columns, rows, start.line)

    def parse_row(self, width: int) -> List[Any]:
        open_paren = self.expect_punct("(")
        values = [self.parse_value()]
        while self.peek() is not None and self.peek().value == ",":
            self.pos += 1
            values.append(self.parse_value())
        self.expect_punct(")")
        if len(values) != width:
            raise SQLParseError(
                f"Expected {width} values but found {len(values)}", open_paren.line
            )
        return values

    def parse_value(self) -> Any:
        token = self.next()
        if token.kind in ("STRING", "NUMBER"):
            value = token.value
        elif token.kind == "IDENT" and not token.quoted:
            word = token.value.upper()
            if word == "NULL":
                value = None
            elif word == "TRUE":
                value = True
            elif word == "FALSE":
                value = False
            else:
                raise SQLParseError(f"Unsupported expression '{token.value}'", token.line)
        else:
            raise SQLParseError(f"Unexpected '{token.value}' in VALUES", token.line)

        # Casts such as '{}'::jsonb carry no data of their own
        while self.peek() is not None and self.peek().value == "::":
            self.pos += 1
            self.parse_name()
        return value


def parse_sql(text: str) -> ParsedSQL:
    """Parse SQL text into INSERT statements and a list of skipped statements."""
    return _Parser(tokenize(text)).parse()
