#!/usr/bin/env python3
# CUI // SP-CTI
"""Best-effort schema inference from legacy SDK usage.

EntityInferencer          - collection name + field set from mutation calls
ServerFunctionInferencer  - names passed to ``.invoke('x')`` / ``.rpc('x')``
EnvVarInferencer          - process.env / import.meta.env accesses

Results accumulate in an InferenceAccumulator that each file-processing
step extends; ``finalize()`` produces sorted report objects once at the end.
"""

import re
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from migrator.codemods.syntax_tree import (
    SourceModule,
    member_parts,
    named_arguments,
    node_text,
    string_literal_value,
)
from migrator.schemas.report import Evidence, InferredEntity, InferredServerFunction

SNIPPET_LIMIT = 200

_MUTATION_CALLEE_RE = re.compile(r"(create|update|insert|set)\b", re.IGNORECASE)
_COLLECTION_CHAIN_RE = re.compile(r"collections?\((['\"])(?P<name>[^'\"]+)\1\)")
_SERVER_FUNCTION_METHODS = ("invoke", "rpc")

_ENV_PATTERNS = (
    re.compile(r"\bprocess\.env\.(?P<name>[A-Z0-9_]+)\b"),
    re.compile(r"\bprocess\.env\[(?:'|\")(?P<name>[A-Z0-9_]+)(?:'|\")\]"),
    re.compile(r"\bimport\.meta\.env\.(?P<name>[A-Z0-9_]+)\b"),
    re.compile(r"\bimport\.meta\.env\[(?:'|\")(?P<name>[A-Z0-9_]+)(?:'|\")\]"),
)


class InferenceAccumulator:
    """Explicit accumulator for entities, server functions and env vars."""

    def __init__(self):
        self.entities: Dict[str, InferredEntity] = {}
        self.server_functions: Dict[str, InferredServerFunction] = {}
        self.env_vars: Set[str] = set()

    def add_entity(self, name: str, fields: List[str], file: str) -> None:
        entity = self.entities.setdefault(name, InferredEntity(name=name))
        entity.merge(fields, Evidence(file=file))

    def add_server_function(self, name: str, file: str, snippet: Optional[str] = None) -> None:
        fn = self.server_functions.setdefault(name, InferredServerFunction(name=name))
        fn.merge(Evidence(file=file, snippet=snippet))

    def add_env_vars(self, names) -> None:
        self.env_vars.update(names)

    def finalize(self) -> Tuple[List[InferredEntity], List[InferredServerFunction], List[str]]:
        entities = [self.entities[k] for k in sorted(self.entities)]
        functions = [self.server_functions[k] for k in sorted(self.server_functions)]
        return entities, functions, sorted(self.env_vars)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
def object_field_names(node: Optional[Node]) -> List[str]:
    """Property names of an object literal: plain, quoted and shorthand keys."""
    if node is None or node.type != "object":
        return []
    fields = []
    for prop in node.named_children:
        if prop.type == "pair":
            key = prop.child_by_field_name("key")
            if key is None or key.type == "computed_property_name":
                continue
            name = string_literal_value(key)
            fields.append(name if name is not None else node_text(key))
        elif prop.type == "shorthand_property_identifier":
            fields.append(node_text(prop))
    return fields


class EntityInferencer:
    """Infers ``(entity, fields)`` from mutation-like calls."""

    @staticmethod
    def is_mutation_call(module: SourceModule, call: Node) -> bool:
        callee = call.child_by_field_name("function")
        return callee is not None and bool(_MUTATION_CALLEE_RE.search(module.text_of(callee)))

    @staticmethod
    def infer(call: Node) -> Tuple[Optional[str], List[str]]:
        args = named_arguments(call)

        # db.collection('todos').update(id, { ... })
        receiver, _method = member_parts(call.child_by_field_name("function"))
        if receiver is not None:
            match = _COLLECTION_CHAIN_RE.search(node_text(receiver))
            if match:
                payload = next((a for a in args if a.type == "object"), None)
                return match.group("name"), object_field_names(payload)

        # create('todos', { title })
        literal = string_literal_value(args[0]) if args else None
        if literal is not None:
            return literal, object_field_names(args[1] if len(args) > 1 else None)
        return None, []

    def collect(self, module: SourceModule, calls: List[Node], rel: str,
                acc: InferenceAccumulator) -> None:
        for call in calls:
            if not self.is_mutation_call(module, call):
                continue
            entity, fields = self.infer(call)
            if not entity or not fields:
                continue
            acc.add_entity(entity, fields, rel)


# ---------------------------------------------------------------------------
# Server functions
# ---------------------------------------------------------------------------
class ServerFunctionInferencer:
    """Infers function names from ``x.invoke('name')`` and ``x.rpc('name')``."""

    def collect(self, module: SourceModule, calls: List[Node], rel: str,
                acc: InferenceAccumulator) -> None:
        for call in calls:
            _receiver, method = member_parts(call.child_by_field_name("function"))
            if method not in _SERVER_FUNCTION_METHODS:
                continue
            args = named_arguments(call)
            name = string_literal_value(args[0]) if args else None
            if not name:
                continue
            acc.add_server_function(name, rel, module.text_of(call)[:SNIPPET_LIMIT])


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------
class EnvVarInferencer:
    """Finds env var names read through process.env or import.meta.env."""

    @staticmethod
    def infer(text: str) -> List[str]:
        names = set()
        for pattern in _ENV_PATTERNS:
            for match in pattern.finditer(text):
                names.add(match.group("name"))
        return sorted(names)
