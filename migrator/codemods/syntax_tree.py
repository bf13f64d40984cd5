#!/usr/bin/env python3
# CUI // SP-CTI
"""Syntax-tree project built on tree-sitter.

Parses JavaScript/TypeScript sources into concrete syntax trees and exposes
the structural queries the rewrite pipeline needs: import declarations with
their bindings, call expressions, and the directive prologue.

tree-sitter trees are immutable, so mutation is modelled as an edit buffer
per module. Each edit is a (byte span, replacement) pair recorded against the
original source. ``text_of(node)`` returns a node's text with any edits that
lie inside it already applied; a replacement built from ``text_of`` of child
nodes absorbs those nested edits. Rendering applies all edits in one pass
ordered by position, so no replacement can shift the offsets of another.
"""

import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

logger = logging.getLogger("migrator.codemods.syntax_tree")

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

# .js/.jsx may contain JSX; the tsx grammar is a superset that accepts both.
_GRAMMAR_BY_SUFFIX = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}

_NON_STATEMENT_TYPES = {"comment", "hash_bang_line"}
_REFERENCE_TYPES = {"identifier", "shorthand_property_identifier"}


def grammar_for(path) -> str:
    return _GRAMMAR_BY_SUFFIX.get(Path(path).suffix.lower(), "tsx")


def decode_source(data: bytes) -> str:
    """Decode source bytes; bytes that are not UTF-8 survive a round trip."""
    return data.decode("utf-8", "surrogateescape")


def encode_source(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def node_text(node: Node) -> str:
    return decode_source(node.text)


def string_literal_value(node: Optional[Node]) -> Optional[str]:
    """Return the value of a plain string literal node, else None."""
    if node is None or node.type != "string":
        return None
    raw = node_text(node)
    return raw[1:-1]


def named_arguments(call: Node) -> List[Node]:
    """Argument nodes of a call expression (comments excluded)."""
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return [c for c in args.named_children if c.type != "comment"]


def member_parts(node: Optional[Node]):
    """Split ``obj.prop`` into ``(object_node, property_name)``, else ``(None, None)``."""
    if node is None or node.type != "member_expression":
        return None, None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None:
        return None, None
    return obj, node_text(prop)


# ---------------------------------------------------------------------------
# Import declarations
# ---------------------------------------------------------------------------
@dataclass
class ImportBinding:
    """A named import, ``imported as local``."""

    imported: str
    local: str


@dataclass
class ImportDeclaration:
    node: Node
    specifier: str
    default: Optional[str] = None
    namespace: Optional[str] = None
    named: List[ImportBinding] = field(default_factory=list)
    type_only: bool = False

    @property
    def start(self) -> int:
        return self.node.start_byte

    def imported_names(self) -> List[str]:
        """Names in declaration order: named (imported name), default, namespace."""
        names = [b.imported for b in self.named]
        if self.default:
            names.append(self.default)
        if self.namespace:
            names.append(self.namespace)
        return names

    def local_names(self) -> List[str]:
        names = [b.local for b in self.named]
        if self.default:
            names.append(self.default)
        if self.namespace:
            names.append(self.namespace)
        return names

    def default_node(self) -> Optional[Node]:
        clause = _import_clause(self.node)
        if clause is None:
            return None
        for child in clause.named_children:
            if child.type == "identifier":
                return child
        return None

    def named_imports_node(self) -> Optional[Node]:
        clause = _import_clause(self.node)
        if clause is None:
            return None
        for child in clause.named_children:
            if child.type == "named_imports":
                return child
        return None


def _import_clause(node: Node) -> Optional[Node]:
    for child in node.named_children:
        if child.type == "import_clause":
            return child
    return None


def _parse_import(node: Node) -> Optional[ImportDeclaration]:
    source = node.child_by_field_name("source")
    specifier = string_literal_value(source)
    if specifier is None:
        # import x = require('y') and other non-declaration forms
        return None

    decl = ImportDeclaration(node=node, specifier=specifier)
    decl.type_only = any(c.type == "type" for c in node.children)
    clause = _import_clause(node)
    if clause is None:
        return decl

    for child in clause.named_children:
        if child.type == "identifier":
            decl.default = node_text(child)
        elif child.type == "namespace_import":
            ident = [c for c in child.named_children if c.type == "identifier"]
            if ident:
                decl.namespace = node_text(ident[-1])
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name_node = spec.child_by_field_name("name")
                alias_node = spec.child_by_field_name("alias")
                if name_node is None:
                    continue
                imported = node_text(name_node)
                if name_node.type == "string":
                    imported = imported[1:-1]
                local = node_text(alias_node) if alias_node is not None else imported
                decl.named.append(ImportBinding(imported=imported, local=local))
    return decl


# ---------------------------------------------------------------------------
# Edit buffer
# ---------------------------------------------------------------------------
@dataclass
class _Edit:
    start: int
    end: int
    text: bytes
    seq: int
    priority: int = 0

    @property
    def is_insert(self) -> bool:
        return self.start == self.end

    def sort_key(self):
        # Inserts precede a replacement that starts at the same offset.
        return (self.start, 0 if self.is_insert else 1, self.priority, self.seq)


def _inside(edit: _Edit, start: int, end: int) -> bool:
    """True when *edit* lies within [start, end); boundary inserts are outside."""
    if edit.is_insert:
        return start < edit.start < end
    return start <= edit.start and edit.end <= end


def _overlaps(edit: _Edit, start: int, end: int) -> bool:
    if edit.is_insert or start == end:
        return False
    return edit.start < end and start < edit.end


class SourceModule:
    """One parsed source file plus its pending edits."""

    def __init__(self, path, source, parser: Parser):
        self.path = Path(path)
        self.source = source if isinstance(source, bytes) else encode_source(source)
        self.newline = "\r\n" if b"\r\n" in self.source else "\n"
        self.tree = parser.parse(self.source)
        self._edits: List[_Edit] = []
        self._seq = itertools.count()
        self._removed = set()

    # -- queries ----------------------------------------------------------
    @property
    def root(self) -> Node:
        return self.tree.root_node

    def statements(self, include_removed: bool = False) -> List[Node]:
        """Top-level statements (comments excluded)."""
        return [
            c for c in self.root.named_children
            if c.type not in _NON_STATEMENT_TYPES
            and (include_removed or _key(c) not in self._removed)
        ]

    def imports(self) -> List[ImportDeclaration]:
        """Top-level import declarations not yet removed."""
        out = []
        for node in self.root.named_children:
            if node.type != "import_statement" or _key(node) in self._removed:
                continue
            decl = _parse_import(node)
            if decl is not None:
                out.append(decl)
        return out

    def call_expressions(self) -> List[Node]:
        """Every call expression in the file, in source order."""
        return self._collect("call_expression")

    def identifier_references(self) -> List[Node]:
        """Identifier nodes outside import declarations, in source order."""
        stack = [self.root]
        found = []
        while stack:
            node = stack.pop()
            if node.type == "import_statement":
                continue
            if node.type in _REFERENCE_TYPES:
                found.append(node)
            stack.extend(node.children)
        found.sort(key=lambda n: n.start_byte)
        return found

    def _collect(self, node_type: str) -> List[Node]:
        stack = [self.root]
        found = []
        while stack:
            node = stack.pop()
            if node.type == node_type:
                found.append(node)
            stack.extend(node.children)
        found.sort(key=lambda n: (n.start_byte, -n.end_byte))
        return found

    def directive_prologue_end(self) -> Optional[int]:
        """Byte offset just past the last leading directive statement, if any."""
        end = None
        for stmt in self.statements():
            if not _is_directive(stmt):
                break
            end = stmt.end_byte
        return end

    def full_text(self) -> str:
        return decode_source(self.source)

    def text_of(self, node: Node) -> str:
        """Source text of *node* with nested pending edits applied."""
        start, end = node.start_byte, node.end_byte
        inner = sorted((e for e in self._edits if _inside(e, start, end)), key=_Edit.sort_key)
        return decode_source(_assemble(self.source, inner, start, end))

    # -- mutation ---------------------------------------------------------
    @property
    def modified(self) -> bool:
        return bool(self._edits)

    def is_replaced(self, node: Node) -> bool:
        """True when a pending replacement or removal covers *node*."""
        return any(
            not e.is_insert and e.start <= node.start_byte and node.end_byte <= e.end
            for e in self._edits
        )

    def replace(self, node: Node, text: str) -> None:
        """Replace *node* with *text*, absorbing edits nested inside it."""
        self._replace_span(node.start_byte, node.end_byte, text)

    def _replace_span(self, start: int, end: int, text: str) -> None:
        for edit in self._edits:
            if _overlaps(edit, start, end) and not _inside(edit, start, end):
                raise ValueError(
                    f"{self.path}: bytes {start}-{end} overlap a pending edit"
                )
        self._edits = [e for e in self._edits if not _inside(e, start, end)]
        self._edits.append(_Edit(start, end, encode_source(text), next(self._seq)))

    def remove(self, node: Node) -> None:
        """Delete *node* and the line break that follows it."""
        end = node.end_byte
        if self.source[end:end + 2] == b"\r\n":
            end += 2
        elif self.source[end:end + 1] == b"\n":
            end += 1
        self._removed.add(_key(node))
        self._replace_span(node.start_byte, end, "")

    def insert(self, offset: int, text: str, priority: int = 0) -> None:
        """Insert *text* at *offset*. Lower priority sorts first at equal offsets."""
        self._edits.append(
            _Edit(offset, offset, encode_source(text), next(self._seq), priority)
        )

    def render_bytes(self) -> bytes:
        edits = sorted(self._edits, key=_Edit.sort_key)
        return _assemble(self.source, edits, 0, len(self.source))

    def render(self) -> str:
        return decode_source(self.render_bytes())

    def save(self) -> bool:
        """Write the edited bytes back; untouched regions keep their exact bytes."""
        if not self.modified:
            return False
        self.path.write_bytes(self.render_bytes())
        return True


def _key(node: Node):
    return (node.start_byte, node.end_byte, node.type)


def _is_directive(stmt: Node) -> bool:
    if stmt.type != "expression_statement":
        return False
    inner = [c for c in stmt.named_children if c.type != "comment"]
    if len(inner) != 1:
        return False
    expr = inner[0]
    if expr.type == "string":
        return True
    if expr.type == "template_string":
        return not any(c.type == "template_substitution" for c in expr.named_children)
    return False


def _assemble(source: bytes, edits: List[_Edit], start: int, end: int) -> bytes:
    """Apply position-sorted *edits* to ``source[start:end]`` in one pass."""
    out = []
    cursor = start
    for edit in edits:
        if edit.start < cursor:
            raise ValueError("edits overlap")
        out.append(source[cursor:edit.start])
        out.append(edit.text)
        cursor = edit.end
    out.append(source[cursor:end])
    return b"".join(out)


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------
class SyntaxTreeProject:
    """A set of parsed modules persisted together in one batch."""

    def __init__(self):
        self._parsers = {
            "typescript": Parser(TS_LANGUAGE),
            "tsx": Parser(TSX_LANGUAGE),
        }
        self.modules: List[SourceModule] = []

    def add_source_file(self, path) -> SourceModule:
        module = self.parse_text(path, Path(path).read_bytes())
        self.modules.append(module)
        return module

    def parse_text(self, path, source) -> SourceModule:
        """Parse *source* (str or bytes) as if it were the content of *path* (not added to the project)."""
        return SourceModule(path, source, self._parsers[grammar_for(path)])

    def __iter__(self):
        return iter(self.modules)

    def save(self) -> List[Path]:
        """Write every modified module to disk. Returns the written paths."""
        written = [m.path for m in self.modules if m.save()]
        logger.debug("Persisted %d modified module(s)", len(written))
        return written
