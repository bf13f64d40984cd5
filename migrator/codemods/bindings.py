#!/usr/bin/env python3
# CUI // SP-CTI
"""Binding resolution for legacy SDK imports.

Maps the local identifiers introduced by a file's legacy import
declarations onto the roles the call rewriter understands:

    import sdk from 'base44'                  -> namespace  (sdk.auth.signIn)
    import * as Sdk from '@base44/sdk'        -> namespace  (Sdk.storage.upload)
    import { auth as a } from 'base44'        -> auth       (a.signIn)
    import { collections } from 'base44'      -> collections (collections('todos'))
    import { storage } from 'base44'          -> storage
    import { entities } from 'base44'         -> other      (never rewritten)

Bindings exist only while one file is being converted.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from tree_sitter import Node

from migrator.codemods.syntax_tree import ImportDeclaration, member_parts, node_text

_COLLECTION_MEMBERS = ("collections", "collection")


@dataclass
class Bindings:
    namespace_like: List[str] = field(default_factory=list)
    auth: List[str] = field(default_factory=list)
    collections: List[str] = field(default_factory=list)
    storage: List[str] = field(default_factory=list)
    # Named imports with no rewritable role (e.g. `entities`, `functions`).
    other: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.namespace_like or self.auth or self.collections or self.storage)

    def local_names(self) -> List[str]:
        """Every local name the legacy imports introduced."""
        return self.namespace_like + self.auth + self.collections + self.storage + self.other

    # -- role checks ------------------------------------------------------
    def _is_namespace_member(self, node: Optional[Node], members) -> bool:
        obj, prop = member_parts(node)
        if obj is None or obj.type != "identifier":
            return False
        return node_text(obj) in self.namespace_like and prop in members

    def _is_role(self, node: Optional[Node], locals_: List[str], members) -> bool:
        if node is None:
            return False
        if node.type == "identifier" and node_text(node) in locals_:
            return True
        return self._is_namespace_member(node, members)

    def is_auth_receiver(self, node: Optional[Node]) -> bool:
        return self._is_role(node, self.auth, ("auth",))

    def is_storage_receiver(self, node: Optional[Node]) -> bool:
        return self._is_role(node, self.storage, ("storage",))

    def is_collections_callee(self, node: Optional[Node]) -> bool:
        return self._is_role(node, self.collections, _COLLECTION_MEMBERS)


def _append_unique(values: List[str], value: str) -> None:
    if value not in values:
        values.append(value)


def resolve_bindings(imports: Iterable[ImportDeclaration]) -> Bindings:
    """Derive Bindings from a file's legacy import declarations."""
    bindings = Bindings()
    for decl in imports:
        if decl.default:
            _append_unique(bindings.namespace_like, decl.default)
        if decl.namespace:
            _append_unique(bindings.namespace_like, decl.namespace)
        for named in decl.named:
            role = named.imported.lower()
            if role == "auth":
                _append_unique(bindings.auth, named.local)
            elif role in _COLLECTION_MEMBERS:
                _append_unique(bindings.collections, named.local)
            elif role == "storage":
                _append_unique(bindings.storage, named.local)
            else:
                _append_unique(bindings.other, named.local)
    return bindings
