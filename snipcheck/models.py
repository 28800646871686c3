"""Pydantic models for domain objects."""

from typing import Annotated, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


class NullValue(BaseModel):
    """JavaScript ``null``."""

    kind: Literal["null"] = "null"


class UndefinedValue(BaseModel):
    """JavaScript ``undefined``."""

    kind: Literal["undefined"] = "undefined"


class BoolValue(BaseModel):
    kind: Literal["bool"] = "bool"
    value: bool


class NumberValue(BaseModel):
    """A JavaScript number. NaN and the infinities are allowed."""

    kind: Literal["number"] = "number"
    value: float


class StringValue(BaseModel):
    kind: Literal["string"] = "string"
    value: str


class ArrayValue(BaseModel):
    """Ordered sequence of values."""

    kind: Literal["array"] = "array"
    items: list["Value"] = Field(default_factory=list)


class ObjectValue(BaseModel):
    """Mapping of string keys to values. Key order is not significant."""

    kind: Literal["object"] = "object"
    entries: dict[str, "Value"] = Field(default_factory=dict)


class OpaqueValue(BaseModel):
    """Anything without a literal form (functions, symbols, cycles, Map, Date...)."""

    kind: Literal["opaque"] = "opaque"
    description: str


Value = Annotated[
    Union[
        NullValue,
        UndefinedValue,
        BoolValue,
        NumberValue,
        StringValue,
        ArrayValue,
        ObjectValue,
        OpaqueValue,
    ],
    Field(discriminator="kind"),
]

ArrayValue.model_rebuild()
ObjectValue.model_rebuild()


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


class ValueAnnotation(BaseModel):
    """Expected completion value of the snippet."""

    kind: Literal["value"] = "value"
    expected: Value
    raw: str


class BindingsAnnotation(BaseModel):
    """Expected values of named top-level bindings (``a = 1, b = 3``)."""

    kind: Literal["bindings"] = "bindings"
    bindings: dict[str, Value]
    raw: str


class ErrorAnnotation(BaseModel):
    """Expected uncaught error."""

    kind: Literal["error"] = "error"
    error_kind: str
    message: Optional[str] = None
    raw: str


class LogsAnnotation(BaseModel):
    """Expected last line written to the console."""

    kind: Literal["logs"] = "logs"
    text: str
    raw: str


Annotation = Annotated[
    Union[ValueAnnotation, BindingsAnnotation, ErrorAnnotation, LogsAnnotation],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class CodeBlock(BaseModel):
    """A fenced code block as found in the document."""

    language: str
    flags: list[str] = Field(default_factory=list)
    lines: list[str] = Field(default_factory=list)
    start_line: int  # line of the opening fence (1-based)
    end_line: int  # line of the closing fence, or last line if unclosed
    body_start_line: int
    section: str = ""

    @property
    def code(self) -> str:
        return "\n".join(self.lines)


class Section(BaseModel):
    """A heading and the code blocks under it."""

    title: str = ""
    level: int = 0  # 0 = preamble before the first heading
    blocks: list[CodeBlock] = Field(default_factory=list)


class Document(BaseModel):
    """A parsed documentation source."""

    source: str
    title: str
    sections: list[Section] = Field(default_factory=list)

    def iter_blocks(self) -> Iterator[CodeBlock]:
        """Yield every code block in document order."""
        for section in self.sections:
            yield from section.blocks


class Snippet(BaseModel):
    """A code block paired with its expected-output annotation."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    code: str
    annotation: Annotation
    language: str
    start_line: int
    end_line: int
    annotation_line: int
    section: str = ""

    @property
    def position(self) -> tuple[int, int]:
        """Line range of the block in the document."""
        return (self.start_line, self.end_line)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

Fault = Literal["runtime_fault", "timeout"]


class ValueResult(BaseModel):
    """The snippet completed and produced a value."""

    outcome: Literal["value"] = "value"
    value: Value
    console: list[str] = Field(default_factory=list)
    elapsed: float = 0.0


class ErrorResult(BaseModel):
    """The snippet raised an uncaught error or ran out of time."""

    outcome: Literal["error"] = "error"
    fault: Fault
    kind: str
    message: str = ""
    console: list[str] = Field(default_factory=list)
    elapsed: float = 0.0


EvaluationResult = Annotated[
    Union[ValueResult, ErrorResult],
    Field(discriminator="outcome"),
]


class MismatchReport(BaseModel):
    """Pass/fail verdict for one snippet."""

    snippet: Snippet
    expected: Annotation
    actual: EvaluationResult
    passed: bool
    reason: str = ""


class RunReport(BaseModel):
    """Aggregate outcome of verifying one document."""

    source: str
    reports: list[MismatchReport] = Field(default_factory=list)
    skipped: int = 0
    cancelled: int = 0
    partial: bool = False

    @property
    def total(self) -> int:
        return len(self.reports)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.reports if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.reports if not r.passed)

    @property
    def ok(self) -> bool:
        """True when no verified snippet failed."""
        return self.failed == 0
