"""Token vocabulary shared by the token sources and the formatters.

Markup tokens are flat: they carry no positions or tree pointers and are
consumed exactly once, in document order.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Optional, Tuple, Union

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class TokenType(Enum):
    """Markup and JSON token kinds."""

    START_TAG = auto()                # <name attrs>
    END_TAG = auto()                  # </name>
    TEXT = auto()                     # Character data, CDATA merged in
    COMMENT = auto()                  # <!-- ... -->
    PROCESSING_INSTRUCTION = auto()   # <?target ...?>
    DIRECTIVE = auto()                # <!DOCTYPE ...> and other XML bang directives
    DOCTYPE = auto()                  # HTML <!doctype ...>

    JSON_DELIMITER = auto()           # { } [ ]
    JSON_STRING = auto()
    JSON_NUMBER = auto()
    JSON_LITERAL = auto()             # true, false, null


class JSONPosition(Enum):
    """Where the JSON tokenizer stands after a token, i.e. what it expects next."""

    TOP_VALUE = auto()
    ARRAY_START = auto()      # After '[': value or ']'
    ARRAY_VALUE = auto()      # After ',': value
    ARRAY_COMMA = auto()      # After an element: ',' or ']'
    OBJECT_START = auto()     # After '{': key or '}'
    OBJECT_KEY = auto()       # After ',': key
    OBJECT_COLON = auto()     # After a key: ':'
    OBJECT_VALUE = auto()     # After ':': value
    OBJECT_COMMA = auto()     # After a value: ',' or '}'


@dataclass(frozen=True)
class QName:
    """Qualified name. ``space`` is a namespace URI, or a literal prefix when unbound."""

    space: str = ""
    local: str = ""

    def __str__(self) -> str:
        return f"{self.space}:{self.local}" if self.space else self.local


@dataclass(frozen=True)
class Attribute:
    name: QName
    value: str


@dataclass(frozen=True)
class StartTag:
    name: QName
    attributes: Tuple[Attribute, ...] = ()
    self_closing: bool = False    # HTML only; XML emits a separate EndTag

    type: ClassVar[TokenType] = TokenType.START_TAG


@dataclass(frozen=True)
class EndTag:
    name: QName

    type: ClassVar[TokenType] = TokenType.END_TAG


@dataclass(frozen=True)
class Text:
    data: str

    type: ClassVar[TokenType] = TokenType.TEXT


@dataclass(frozen=True)
class Comment:
    data: str

    type: ClassVar[TokenType] = TokenType.COMMENT


@dataclass(frozen=True)
class ProcessingInstruction:
    """``<?target instruction?>``. HTML sources leave ``target`` empty and keep the raw body."""

    target: str
    instruction: str = ""

    type: ClassVar[TokenType] = TokenType.PROCESSING_INSTRUCTION


@dataclass(frozen=True)
class Directive:
    data: str

    type: ClassVar[TokenType] = TokenType.DIRECTIVE


@dataclass(frozen=True)
class Doctype:
    data: str

    type: ClassVar[TokenType] = TokenType.DOCTYPE


@dataclass(frozen=True)
class JSONDelimiter:
    char: str
    position: JSONPosition

    type: ClassVar[TokenType] = TokenType.JSON_DELIMITER

    @property
    def opens(self) -> bool:
        return self.char in "{["


@dataclass(frozen=True)
class JSONString:
    value: str
    position: JSONPosition

    type: ClassVar[TokenType] = TokenType.JSON_STRING

    @property
    def is_key(self) -> bool:
        return self.position is JSONPosition.OBJECT_COLON


@dataclass(frozen=True)
class JSONNumber:
    """Number kept in its source spelling so big values round-trip exactly."""

    lexeme: str
    position: JSONPosition

    type: ClassVar[TokenType] = TokenType.JSON_NUMBER


@dataclass(frozen=True)
class JSONLiteral:
    value: Optional[bool]
    position: JSONPosition

    type: ClassVar[TokenType] = TokenType.JSON_LITERAL

    @property
    def lexeme(self) -> str:
        if self.value is None:
            return "null"
        return "true" if self.value else "false"


MarkupToken = Union[
    StartTag, EndTag, Text, Comment, ProcessingInstruction, Directive, Doctype
]
JSONToken = Union[JSONDelimiter, JSONString, JSONNumber, JSONLiteral]
