"""Symbol data structures for the KRL LSP."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SymbolKind(Enum):
    VARIABLE = 'variable'
    FUNCTION = 'function'
    STRUCT = 'struct'
    ENUM_MEMBER = 'enumMember'
    SIGNAL = 'signal'
    PARAMETER = 'parameter'


class Scope(Enum):
    GLOBAL = 'GLOBAL'
    LOCAL = 'LOCAL'


class Severity(Enum):
    # Values match the LSP DiagnosticSeverity numbering
    ERROR = 1
    WARNING = 2
    INFO = 3
    HINT = 4


@dataclass
class Range:
    start_line: int  # 0-indexed
    start_col: int
    end_line: int
    end_col: int


@dataclass
class Location:
    file: str  # Absolute file path
    range: Range


@dataclass
class Symbol:
    name: str  # Original case; compare with name.upper()
    kind: SymbolKind
    type: Optional[str]  # INT, REAL, FRAME, a struct name... None for enum members
    range: Optional[Range]  # None when synthesized without offsets
    scope: Scope = Scope.LOCAL
    value: Optional[str] = None
    file: Optional[str] = None
    doc: Optional[str] = None

    @property
    def key(self) -> str:
        return self.name.upper()


@dataclass
class Parameter:
    name: str  # Direction marker stripped
    direction: Optional[str] = None  # 'IN', 'OUT' or None

    def display(self) -> str:
        if self.direction:
            return f'{self.name}:{self.direction}'
        return self.name


@dataclass
class FunctionSignature(Symbol):
    params: list[Parameter] = field(default_factory=list)
    return_type: Optional[str] = None  # Only for DEFFCT
    keyword: str = 'DEF'  # 'DEF' or 'DEFFCT'

    def param_list(self) -> str:
        return ', '.join(p.display() for p in self.params)

    def signature(self) -> str:
        return f'{self.name}({self.param_list()})'


@dataclass
class SymbolTable:
    """Result of one collection pass over a document."""

    variables: list[Symbol] = field(default_factory=list)
    functions: list[FunctionSignature] = field(default_factory=list)
    # struct name -> member names
    structs: dict[str, list[str]] = field(default_factory=dict)

    def find_variable(self, name: str) -> Optional[Symbol]:
        key = name.upper()
        for var in self.variables:
            if var.key == key:
                return var
        return None

    def find_function(self, name: str) -> Optional[FunctionSignature]:
        key = name.upper()
        for func in self.functions:
            if func.key == key:
                return func
        return None


@dataclass
class Diagnostic:
    range: Range
    message: str
    severity: Severity
    code: str  # Locale-independent discriminator for quick fixes
    data: Optional[dict[str, Any]] = None
    unnecessary: bool = False  # Rendered faded (unreachable code)


@dataclass
class TextEdit:
    range: Range
    new_text: str


@dataclass
class FoldRegion:
    start_line: int
    end_line: int
    kind: str  # 'region' for ;FOLD markers, 'block' for DEF/DEFFCT/DEFDAT
