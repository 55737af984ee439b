"""Workspace-wide symbol tables built from per-file collection results."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from .collector import collect_symbols
from .resolver import find_source_files, read_source
from .symbols import FunctionSignature, Symbol, SymbolKind, SymbolTable

log = logging.getLogger(__name__)


@dataclass
class SymbolIndex:
    """Index of all KRL symbols in the workspace.

    Each file's table is replaced with a single dict assignment, so a
    reader sees either the old or the new table for that file. The merged
    views are recomputed from the union after every replacement.
    """

    # file path -> symbol table of that file
    by_file: dict[str, SymbolTable] = field(default_factory=dict)
    # Merged views, first declaration in file order wins
    merged_variables: list[Symbol] = field(default_factory=list)
    functions: list[FunctionSignature] = field(default_factory=list)
    struct_definitions: dict[str, list[str]] = field(default_factory=dict)
    # upper-cased variable name -> struct type name
    variable_struct_types: dict[str, str] = field(default_factory=dict)

    def set_file(self, filepath: str, table: SymbolTable) -> None:
        self.by_file[filepath] = table
        self._rebuild()

    def update_files(self, tables: dict[str, SymbolTable]) -> None:
        """Replace several files at once with a single rebuild."""
        merged = dict(self.by_file)
        merged.update(tables)
        self.by_file = merged
        self._rebuild()

    def remove_file(self, filepath: str) -> None:
        """Remove all symbols from a file."""
        if self.by_file.pop(filepath, None) is not None:
            self._rebuild()

    def clear(self) -> None:
        self.by_file = {}
        self._rebuild()

    def _rebuild(self) -> None:
        variables: dict[str, Symbol] = {}
        functions: dict[str, FunctionSignature] = {}
        structs: dict[str, list[str]] = {}
        for path in sorted(self.by_file):
            table = self.by_file[path]
            for var in table.variables:
                variables.setdefault(var.key, var)
            for func in table.functions:
                functions.setdefault(func.key, func)
            for name, members in table.structs.items():
                structs.setdefault(name, members)
        struct_keys = {name.upper(): name for name in structs}
        # Field types declared in another file are only known once merged
        structs = {
            name: [m for m in members if m.upper() not in struct_keys]
            for name, members in structs.items()
        }
        struct_types = {}
        for var in variables.values():
            if var.type and var.type.upper() in struct_keys:
                struct_types[var.key] = struct_keys[var.type.upper()]
        self.merged_variables = list(variables.values())
        self.functions = list(functions.values())
        self.struct_definitions = structs
        self.variable_struct_types = struct_types

    def find_function(self, name: str) -> Optional[FunctionSignature]:
        key = name.upper()
        for func in self.functions:
            if func.key == key:
                return func
        return None

    def find_variable(self, name: str) -> Optional[Symbol]:
        key = name.upper()
        for var in self.merged_variables:
            if var.key == key:
                return var
        return None

    def find_struct(self, name: str) -> Optional[tuple[str, list[str]]]:
        key = name.upper()
        for struct_name, members in self.struct_definitions.items():
            if struct_name.upper() == key:
                return struct_name, members
        return None

    def declared_names(self) -> set[str]:
        """Upper-cased names of every variable-like symbol."""
        return {var.key for var in self.merged_variables}

    def function_names(self) -> set[str]:
        return {func.key for func in self.functions}

    def symbol_count(self) -> int:
        return sum(
            len(t.variables) + len(t.functions) for t in self.by_file.values()
        )

    def global_variables(self) -> list[Symbol]:
        return [
            v for v in self.merged_variables
            if v.kind != SymbolKind.PARAMETER
        ]


class Indexer:
    """Indexes .src/.dat/.sub files in a workspace."""

    def __init__(self) -> None:
        self.index = SymbolIndex()

    def index_workspace(self, root_path: str) -> None:
        """Recursively find and index all KRL sources under root_path."""
        tables = {}
        for filepath in find_source_files(root_path):
            filepath = os.path.abspath(filepath)
            source = read_source(filepath)
            if source is not None:
                tables[filepath] = collect_symbols(source, filepath)
        self.index.update_files(tables)
        log.info(
            'Indexed %d symbols in %d files',
            self.index.symbol_count(),
            len(self.index.by_file),
        )

    def index_file(self, filepath: str) -> None:
        """Read and index a single file from disk."""
        filepath = os.path.abspath(filepath)
        source = read_source(filepath)
        if source is None:
            self.index.remove_file(filepath)
            return
        self.index_source(filepath, source)

    def index_source(self, filepath: str, source: str) -> SymbolTable:
        """Index from source text (for open documents)."""
        filepath = os.path.abspath(filepath)
        table = collect_symbols(source, filepath)
        self.index.set_file(filepath, table)
        return table

    def remove_file(self, filepath: str) -> None:
        self.index.remove_file(os.path.abspath(filepath))
