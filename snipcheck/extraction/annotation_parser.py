"""Parsing of expected-output comments and the literals inside them.

An annotation is a ``//`` line comment that starts with a marker::

    const [a, b = 3] = [1] // => a = 1, b = 3
    sum(...nums)           // => 6
    user = {}              // throws TypeError: Assignment to constant variable.
    console.log(x)         // logs: 1 2 3

Literals follow JavaScript syntax as printed by Node: bare or quoted object
keys, single/double/backtick strings, trailing commas, array holes,
``NaN``/``Infinity``/``undefined`` and ``[Function: name]``.
"""

import math
import re
from typing import Optional

from snipcheck.comparison.values import render_number
from snipcheck.exceptions import MalformedAnnotation
from snipcheck.models import (
    Annotation,
    ArrayValue,
    BindingsAnnotation,
    BoolValue,
    ErrorAnnotation,
    LogsAnnotation,
    NullValue,
    NumberValue,
    ObjectValue,
    OpaqueValue,
    StringValue,
    UndefinedValue,
    Value,
    ValueAnnotation,
)

VALUE_MARKER = re.compile(r"^(?:=>|->|→)\s*(.*)$", re.DOTALL)
THROWS_MARKER = re.compile(r"^throws\b\s*(.*)$", re.DOTALL)
LOGS_MARKER = re.compile(r"^(?:logs|prints)\s*:\s?(.*)$", re.DOTALL)

ERROR_DESCRIPTION = re.compile(r"^([A-Za-z_$][\w$]*)\s*(?::\s*(.*))?$", re.DOTALL)
BARE_ERROR = re.compile(r"^(?:[A-Za-z_$][\w$]*)?Error\b\s*(?::|$)")
BINDING_START = re.compile(r"^[A-Za-z_$][\w$]*\s*=(?![=>])")

IDENT = re.compile(r"[A-Za-z_$][\w$]*")
NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+n?"
    r"|0[oO][0-7_]+n?"
    r"|0[bB][01_]+n?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?"
)
OPAQUE = re.compile(
    r"\[(?:Function(?:: [\w$]+| \(anonymous\))?|class [\w$]+|Circular|Getter/Setter|Getter|Setter)\]"
)

# A "/" after one of these (or at line start) opens a regex literal, not a division
REGEX_PRECEDERS = frozenset("(,=:[!&|?{};+-*%<>~^")
REGEX_KEYWORDS = frozenset(
    {"return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw", "case", "do", "else", "yield", "await"}
)
TRAILING_WORD = re.compile(r"[A-Za-z_$][\w$]*$")

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
ESCAPE_SEQUENCE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\n|.)", re.DOTALL)


class LiteralSyntaxError(ValueError):
    """Raised when annotation text is not a valid literal."""


def _unescape(body: str) -> str:
    def replace(match: re.Match) -> str:
        seq = match.group(1)
        if seq.startswith("u{"):
            return chr(int(seq[2:-1], 16))
        if seq.startswith("u") and len(seq) == 5:
            return chr(int(seq[1:], 16))
        if seq.startswith("x") and len(seq) == 3:
            return chr(int(seq[1:], 16))
        if seq == "\n":
            return ""
        return ESCAPES.get(seq, seq)

    return ESCAPE_SEQUENCE.sub(replace, body)


def number_key(value: float) -> str:
    """Property key a numeric literal key is converted to."""
    return render_number(value)


class LiteralParser:
    """Recursive descent parser over a single annotation string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    # -- helpers -----------------------------------------------------------

    def _skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _peek(self) -> str:
        self._skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            found = self._peek() or "end of text"
            raise LiteralSyntaxError(f"expected '{char}' at column {self.pos + 1}, found {found!r}")
        self.pos += 1

    def _match(self, pattern: re.Pattern) -> Optional[re.Match]:
        self._skip_ws()
        match = pattern.match(self.text, self.pos)
        if match:
            self.pos = match.end()
        return match

    def at_end(self) -> bool:
        return self._peek() == ""

    # -- grammar -----------------------------------------------------------

    def parse_value(self) -> Value:
        char = self._peek()
        if not char:
            raise LiteralSyntaxError("expected a value, found end of text")

        if char == "[":
            opaque = self._match(OPAQUE)
            if opaque:
                return OpaqueValue(description=opaque.group(0))
            return self._parse_array()
        if char == "{":
            return self._parse_object()
        if char in "'\"`":
            return StringValue(value=self._parse_string())
        if char in "+-":
            self.pos += 1
            operand = self.parse_value()
            if not isinstance(operand, NumberValue):
                raise LiteralSyntaxError(f"sign '{char}' must precede a number")
            return NumberValue(value=-operand.value if char == "-" else operand.value)
        if char.isdigit() or char == ".":
            return self._parse_number()

        ident = self._match(IDENT)
        if ident:
            word = ident.group(0)
            keywords = {
                "null": NullValue(),
                "undefined": UndefinedValue(),
                "true": BoolValue(value=True),
                "false": BoolValue(value=False),
                "NaN": NumberValue(value=math.nan),
                "Infinity": NumberValue(value=math.inf),
            }
            if word in keywords:
                return keywords[word]
            raise LiteralSyntaxError(f"'{word}' is not a literal")

        raise LiteralSyntaxError(f"unexpected character {char!r} at column {self.pos + 1}")

    def _parse_number(self) -> Value:
        match = self._match(NUMBER)
        if not match:
            raise LiteralSyntaxError(f"bad number at column {self.pos + 1}")

        token = match.group(0)
        if token.endswith("n"):
            return OpaqueValue(description=token)

        digits = token.replace("_", "")
        prefix = digits[:2].lower()
        try:
            if prefix == "0x":
                return NumberValue(value=float(int(digits[2:], 16)))
            if prefix == "0o":
                return NumberValue(value=float(int(digits[2:], 8)))
            if prefix == "0b":
                return NumberValue(value=float(int(digits[2:], 2)))
            return NumberValue(value=float(digits))
        except ValueError as e:
            raise LiteralSyntaxError(f"bad number {token!r}") from e

    def _parse_string(self) -> str:
        quote = self.text[self.pos]
        end = self.pos + 1
        while end < len(self.text):
            char = self.text[end]
            if char == "\\":
                end += 2
                continue
            if char == quote:
                break
            if quote == "`" and self.text.startswith("${", end):
                raise LiteralSyntaxError("template substitutions are not literals")
            end += 1
        else:
            raise LiteralSyntaxError("unterminated string")

        body = self.text[self.pos + 1:end]
        self.pos = end + 1
        return _unescape(body)

    def _parse_array(self) -> ArrayValue:
        self._expect("[")
        items: list[Value] = []
        while True:
            char = self._peek()
            if char == "]":
                self.pos += 1
                return ArrayValue(items=items)
            if char == ",":
                # Hole
                items.append(UndefinedValue())
                self.pos += 1
                continue

            items.append(self.parse_value())
            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != "]":
                self._expect("]")

    def _parse_object(self) -> ObjectValue:
        self._expect("{")
        entries: dict[str, Value] = {}
        while True:
            char = self._peek()
            if char == "}":
                self.pos += 1
                return ObjectValue(entries=entries)

            key = self._parse_key()
            self._expect(":")
            entries[key] = self.parse_value()

            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != "}":
                self._expect("}")

    def _parse_key(self) -> str:
        char = self._peek()
        if char in "'\"":
            return self._parse_string()
        if char.isdigit() or char == ".":
            number = self._parse_number()
            if not isinstance(number, NumberValue):
                raise LiteralSyntaxError("bigint keys are not supported")
            return number_key(number.value)

        ident = self._match(IDENT)
        if not ident:
            raise LiteralSyntaxError(f"expected a property key at column {self.pos + 1}")
        return ident.group(0)

    def parse_bindings(self) -> dict[str, Value]:
        bindings: dict[str, Value] = {}
        while True:
            ident = self._match(IDENT)
            if not ident:
                raise LiteralSyntaxError(f"expected a binding name at column {self.pos + 1}")
            name = ident.group(0)
            if name in bindings:
                raise LiteralSyntaxError(f"binding '{name}' listed twice")

            self._expect("=")
            bindings[name] = self.parse_value()

            if self.at_end():
                return bindings
            self._expect(",")


def parse_literal(text: str) -> Value:
    """Parse a complete literal.

    Raises:
        LiteralSyntaxError: If the text is not exactly one literal
    """
    parser = LiteralParser(text)
    value = parser.parse_value()
    if not parser.at_end():
        raise LiteralSyntaxError(f"unexpected text after value: {text[parser.pos:].strip()!r}")
    return value


def parse_bindings(text: str) -> dict[str, Value]:
    """Parse ``name = literal, name = literal``."""
    return LiteralParser(text).parse_bindings()


def _parse_error(text: str, raw: str) -> ErrorAnnotation:
    match = ERROR_DESCRIPTION.match(text.strip())
    if not match:
        raise MalformedAnnotation(f"expected an error description, got {text.strip()!r}")
    message = (match.group(2) or "").strip() or None
    return ErrorAnnotation(error_kind=match.group(1), message=message, raw=raw)


def parse_annotation(comment: str) -> Optional[Annotation]:
    """Parse the text of a line comment (without the leading ``//``).

    Returns:
        The annotation, or None when the comment carries no marker

    Raises:
        MalformedAnnotation: If a marker is present but the rest is unparseable
    """
    raw = comment.strip()

    logs = LOGS_MARKER.match(raw)
    if logs:
        return LogsAnnotation(text=logs.group(1).strip(), raw=raw)

    throws = THROWS_MARKER.match(raw)
    if throws:
        if not throws.group(1).strip():
            raise MalformedAnnotation("'throws' needs an error kind")
        return _parse_error(throws.group(1), raw)

    marker = VALUE_MARKER.match(raw)
    if not marker:
        return None

    body = marker.group(1).strip()
    if not body:
        raise MalformedAnnotation("missing expected value after marker")

    nested_throws = THROWS_MARKER.match(body)
    if nested_throws:
        if not nested_throws.group(1).strip():
            raise MalformedAnnotation("'throws' needs an error kind")
        return _parse_error(nested_throws.group(1), raw)
    if BARE_ERROR.match(body):
        return _parse_error(body, raw)

    try:
        if BINDING_START.match(body):
            return BindingsAnnotation(bindings=parse_bindings(body), raw=raw)
        return ValueAnnotation(expected=parse_literal(body), raw=raw)
    except LiteralSyntaxError as e:
        raise MalformedAnnotation(str(e)) from e


def _regex_can_start(before: str) -> bool:
    """Whether a ``/`` after ``before`` opens a regular expression literal."""
    before = before.rstrip()
    if not before:
        return True
    if before[-1] in REGEX_PRECEDERS:
        return True
    word = TRAILING_WORD.search(before)
    return bool(word) and word.group(0) in REGEX_KEYWORDS


def _regex_end(line: str, start: int) -> Optional[int]:
    """Index just past the regex literal opening at ``start``, flags included."""
    in_class = False
    i = start + 1
    while i < len(line):
        char = line[i]
        if char == "\\":
            i += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "/":
            i += 1
            while i < len(line) and (line[i].isalnum() or line[i] in "_$"):
                i += 1
            return i
        i += 1
    return None


def split_trailing_comment(line: str) -> tuple[str, Optional[str]]:
    """Split a source line into code and the text of a trailing ``//`` comment.

    String and regular expression literals are skipped, so neither
    ``'http://x'`` nor ``/\\//g`` is taken as a comment.
    """
    quote: Optional[str] = None
    i = 0
    while i < len(line):
        char = line[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "'\"`":
            quote = char
        elif line.startswith("//", i):
            return line[:i].rstrip(), line[i + 2:]
        elif line.startswith("/*", i):
            close = line.find("*/", i + 2)
            if close == -1:
                break
            i = close + 2
            continue
        elif char == "/" and _regex_can_start(line[:i]):
            end = _regex_end(line, i)
            if end is not None:
                i = end
                continue
        i += 1
    return line, None
