#!/usr/bin/env python3
# CUI // SP-CTI
"""Call-site rewriter: legacy SDK call shapes -> ``backend.*`` calls.

Recognized shapes (receivers resolved through Bindings):

    auth.signIn(...) / signOut / getUser        -> backend.auth.<method>(...)
    storage.upload(...) / download               -> backend.storage.<method>(...)
    collections('e').create(data)                -> backend.data.create('e', data)
    collections('e').update(id, data)            -> backend.data.update('e', id, data)
    collections('e').delete(id) / remove(id)     -> backend.data.delete('e', id)
    collections('e').get(id) / read(id)          -> backend.data.read('e', { id: id })
    collections('e').get() / read()              -> backend.data.read('e')
    collections('e').list() / all()              -> backend.data.read('e')
    collections('e').list(f) / all(f) / find(f)  -> backend.data.read('e', { filter: f })

Anything else that hangs off a legacy binding is counted, never rewritten.
After the rewrite, any identifier still naming a legacy binding is counted
as an unresolved reference: its import is about to be removed.
Calls are visited from the end of the file backward; arguments are taken
with nested rewrites already applied.
"""

from dataclasses import dataclass
from typing import List, Tuple

from tree_sitter import Node

from migrator.codemods.bindings import Bindings
from migrator.codemods.syntax_tree import SourceModule, member_parts, named_arguments, node_text

AUTH_METHODS = ("signIn", "signOut", "getUser")
STORAGE_METHODS = ("upload", "download")


@dataclass
class RewriteStats:
    auth_rewritten: int = 0
    data_rewritten: int = 0
    storage_rewritten: int = 0
    unknown_auth: int = 0
    unknown_crud: int = 0
    unknown_entities: int = 0
    unknown_storage: int = 0
    unresolved_references: int = 0

    @property
    def rewritten(self) -> int:
        return self.auth_rewritten + self.data_rewritten + self.storage_rewritten

    @property
    def unknown(self) -> int:
        return (
            self.unknown_auth + self.unknown_crud + self.unknown_entities
            + self.unknown_storage + self.unresolved_references
        )


def calls_in_reverse(module: SourceModule) -> List[Node]:
    """Calls sorted so later-starting (and, at equal start, inner) calls come first."""
    return sorted(module.call_expressions(), key=lambda n: (-n.start_byte, n.end_byte))


class CallSiteRewriter:
    """Rewrites one module's recognized call shapes in place."""

    def __init__(self, module: SourceModule, bindings: Bindings):
        self.module = module
        self.bindings = bindings
        self.stats = RewriteStats()
        self._flagged: List[Tuple[int, int]] = []

    def _args(self, call: Node) -> List[str]:
        return [self.module.text_of(a) for a in named_arguments(call)]

    def rewrite(self) -> RewriteStats:
        if not self.bindings.local_names():
            return self.stats
        for call in calls_in_reverse(self.module):
            receiver, method = member_parts(call.child_by_field_name("function"))
            if receiver is None:
                continue
            if self.bindings.is_auth_receiver(receiver):
                self._rewrite_auth(call, method)
            elif self.bindings.is_storage_receiver(receiver):
                self._rewrite_storage(call, method)
            elif receiver.type == "call_expression" and self.bindings.is_collections_callee(
                receiver.child_by_field_name("function")
            ):
                self._rewrite_crud(call, receiver, method)
        self._count_unresolved()
        return self.stats

    def _flag(self, call: Node) -> None:
        self._flagged.append((call.start_byte, call.end_byte))

    def _count_unresolved(self) -> None:
        names = set(self.bindings.local_names())
        for node in self.module.identifier_references():
            if node_text(node) not in names or self.module.is_replaced(node):
                continue
            if any(s <= node.start_byte and node.end_byte <= e for s, e in self._flagged):
                continue
            self.stats.unresolved_references += 1

    # -- auth -------------------------------------------------------------
    def _rewrite_auth(self, call: Node, method: str) -> None:
        if method not in AUTH_METHODS:
            self.stats.unknown_auth += 1
            self._flag(call)
            return
        self.module.replace(call, f"backend.auth.{method}({', '.join(self._args(call))})")
        self.stats.auth_rewritten += 1

    # -- storage ----------------------------------------------------------
    def _rewrite_storage(self, call: Node, method: str) -> None:
        if method not in STORAGE_METHODS:
            self.stats.unknown_storage += 1
            self._flag(call)
            return
        self.module.replace(call, f"backend.storage.{method}({', '.join(self._args(call))})")
        self.stats.storage_rewritten += 1

    # -- collections CRUD -------------------------------------------------
    def _rewrite_crud(self, call: Node, inner: Node, method: str) -> None:
        inner_args = named_arguments(inner)
        if not inner_args or inner_args[0].type != "string":
            self.stats.unknown_entities += 1
            self._flag(call)
            return

        entity = node_text(inner_args[0])
        replacement = _crud_replacement(entity, method, self._args(call))
        if replacement is None:
            self.stats.unknown_crud += 1
            self._flag(call)
            return
        self.module.replace(call, replacement)
        self.stats.data_rewritten += 1


def _crud_replacement(entity: str, method: str, args: List[str]):
    """Map one CRUD method call onto the data API, or None when unsupported."""
    if method == "create":
        if len(args) < 1:
            return None
        return f"backend.data.create({entity}, {args[0]})"
    if method == "update":
        if len(args) != 2:
            return None
        return f"backend.data.update({entity}, {args[0]}, {args[1]})"
    if method in ("delete", "remove"):
        if len(args) < 1:
            return None
        return f"backend.data.delete({entity}, {args[0]})"
    if method in ("get", "read"):
        if args:
            return f"backend.data.read({entity}, {{ id: {args[0]} }})"
        return f"backend.data.read({entity})"
    if method in ("list", "all"):
        if args:
            return f"backend.data.read({entity}, {{ filter: {args[0]} }})"
        return f"backend.data.read({entity})"
    if method == "find":
        if len(args) < 1:
            return None
        return f"backend.data.read({entity}, {{ filter: {args[0]} }})"
    return None
