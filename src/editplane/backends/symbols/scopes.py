"""Scope and binding resolution for TypeScript/JavaScript parse trees.

Each file is walked once. Scope-creating nodes push a ``Scope``; declarations
bind names into the nearest scope, with ``var`` and function declarations
hoisted to the enclosing function scope. Identifier uses are resolved
through the scope chain after the walk, so hoisted names and uses that
precede their declaration resolve too.

Cross-file links follow relative imports to the exporting file's binding,
through ``export { x } from`` re-exports and ``export *`` barrels.

Properties have no lexical binding. Their references are every
property-position identifier with the same name anywhere in the project.
This is a name-based approximation of type-directed resolution.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from editplane.core.logging import get_logger

if TYPE_CHECKING:
    from editplane.backends.symbols.project import Project, SourceFile
    from editplane.editset.models import SymbolKind

log = get_logger(__name__)

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
        "function_signature",
    }
)
HOISTED_FUNCTION_TYPES = frozenset(
    {"function_declaration", "generator_function_declaration", "function_signature"}
)
# Parameter lists in type positions get their own scope so they never leak
SIGNATURE_TYPES = frozenset(
    {
        "function_type",
        "constructor_type",
        "method_signature",
        "abstract_method_signature",
        "call_signature",
        "construct_signature",
    }
)
CLASS_DECLARATION_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})
BLOCK_TYPES = frozenset({"statement_block", "for_statement", "switch_body"})

REFERENCE_TYPES = frozenset({"identifier", "type_identifier", "shorthand_property_identifier"})
PROPERTY_TYPES = frozenset(
    {
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)
IDENTIFIER_TYPES = REFERENCE_TYPES | PROPERTY_TYPES

RESOLVE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")
_JS_TO_TS = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",), ".cjs": (".cts",)}

_KIND_BY_PARENT: dict[str, SymbolKind] = {
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_signature": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "class": "class",
    "method_definition": "method",
    "method_signature": "method",
    "abstract_method_signature": "method",
    "property_signature": "property",
    "public_field_definition": "property",
    "required_parameter": "parameter",
    "optional_parameter": "parameter",
    "variable_declarator": "variable",
}


@dataclass(eq=False)
class Binding:
    """A declared name and everything that resolves to it."""

    name: str
    kind: SymbolKind
    file: str
    node: Any
    statement_id: int | None = None
    symbol: bool = False
    is_property: bool = False
    uses: list[Any] = field(default_factory=list)

    # Import bindings
    import_source: str | None = None
    imported_name: str | None = None
    import_name_node: Any = None
    linked: bool = False
    target: Binding | None = None
    namespace_file: str | None = None

    # Filled in on the exporting side
    importers: list[Binding] = field(default_factory=list)
    linked_nodes: list[tuple[str, Any]] = field(default_factory=list)

    @property
    def is_import(self) -> bool:
        return self.import_source is not None

    @property
    def is_alias(self) -> bool:
        return self.is_import and self.name != self.imported_name


class Scope:
    __slots__ = ("parent", "is_function", "bindings")

    def __init__(self, parent: Scope | None, is_function: bool) -> None:
        self.parent = parent
        self.is_function = is_function
        self.bindings: dict[str, Binding] = {}

    def function_scope(self) -> Scope:
        scope = self
        while not scope.is_function and scope.parent is not None:
            scope = scope.parent
        return scope

    def lookup(self, name: str) -> Binding | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None


@dataclass
class ExportEntry:
    binding: Binding | None = None
    source: str | None = None
    imported_name: str | None = None
    name_node: Any = None


@dataclass
class FileIndex:
    """Bindings, exports and property positions of one file."""

    source: SourceFile
    bindings: list[Binding] = field(default_factory=list)
    symbols: list[Binding] = field(default_factory=list)
    imports: list[Binding] = field(default_factory=list)
    by_node: dict[int, Binding] = field(default_factory=dict)
    linked_at: dict[int, Binding] = field(default_factory=dict)
    exports: dict[str, ExportEntry] = field(default_factory=dict)
    star_exports: list[str] = field(default_factory=list)
    properties: dict[str, list[Any]] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return self.source.path


def _unquote(text: str) -> str:
    return text[1:-1] if len(text) >= 2 and text[0] in "'\"`" else text


class _FileBuilder:
    """Single walk over one tree collecting scopes, bindings and uses."""

    def __init__(self, source: SourceFile) -> None:
        self.source = source
        self.index = FileIndex(source=source)
        self._decl_nodes: set[int] = set()
        self._pending: list[tuple[Any, Scope]] = []
        self._exports: list[Any] = []

    def text(self, node: Any) -> str:
        return self.source.node_text(node)

    def build(self) -> FileIndex:
        stack: list[tuple[Any, Scope]] = [(self.source.root, Scope(None, is_function=True))]
        while stack:
            node, scope = stack.pop()
            inner = self._visit(node, scope)
            for child in reversed(node.children):
                stack.append((child, inner))
        self._resolve_uses()
        self._collect_exports()
        return self.index

    def _declare(
        self,
        scope: Scope,
        node: Any,
        kind: SymbolKind,
        *,
        statement: Any = None,
        symbol: bool = False,
        **import_fields: Any,
    ) -> Binding:
        name = self.text(node)
        self._decl_nodes.add(node.start_byte)
        existing = scope.bindings.get(name)
        if existing is not None:
            # Redeclaration, overload or declaration merge
            existing.uses.append(node)
            self.index.by_node[node.start_byte] = existing
            return existing
        binding = Binding(
            name=name,
            kind=kind,
            file=self.source.path,
            node=node,
            statement_id=statement.id if statement is not None else None,
            symbol=symbol,
            **import_fields,
        )
        scope.bindings[name] = binding
        self.index.bindings.append(binding)
        self.index.by_node[node.start_byte] = binding
        if symbol:
            self.index.symbols.append(binding)
        return binding

    def _bind_pattern(
        self,
        scope: Scope,
        node: Any,
        kind: SymbolKind,
        *,
        statement: Any = None,
        symbol: bool = False,
    ) -> None:
        """Bind every identifier inside a (possibly nested) destructuring pattern."""
        if node is None:
            return
        t = node.type
        if t in ("identifier", "shorthand_property_identifier_pattern"):
            self._declare(scope, node, kind, statement=statement, symbol=symbol)
            return
        if t == "pair_pattern":
            children = [node.child_by_field_name("value")]
        elif t in ("object_assignment_pattern", "assignment_pattern"):
            children = [node.child_by_field_name("left")]
        elif t in ("object_pattern", "array_pattern", "rest_pattern"):
            children = node.named_children
        else:
            return
        for child in children:
            self._bind_pattern(scope, child, kind, statement=statement, symbol=symbol)

    def _visit(self, node: Any, scope: Scope) -> Scope:
        t = node.type

        if t in PROPERTY_TYPES:
            self.index.properties.setdefault(self.text(node), []).append(node)
        if t in REFERENCE_TYPES:
            self._pending.append((node, scope))

        if t in FUNCTION_TYPES:
            inner = Scope(scope, is_function=True)
            name = node.child_by_field_name("name")
            if name is not None and t in HOISTED_FUNCTION_TYPES:
                self._declare(
                    scope.function_scope(), name, "function", statement=node, symbol=True
                )
            elif name is not None and t != "method_definition":
                self._declare(inner, name, "function", statement=node)
            # Arrow function with a single unparenthesized parameter
            param = node.child_by_field_name("parameter")
            if param is not None:
                self._bind_pattern(inner, param, "parameter", symbol=True)
            return inner
        if t in SIGNATURE_TYPES:
            return Scope(scope, is_function=True)
        parent = node.parent
        if t == "statement_block" and parent is not None and parent.type in FUNCTION_TYPES:
            return scope
        if t in CLASS_DECLARATION_TYPES:
            name = node.child_by_field_name("name")
            if name is not None:
                self._declare(scope, name, "class", statement=node, symbol=True)
            return Scope(scope, is_function=False)
        if t == "class":
            inner = Scope(scope, is_function=False)
            name = node.child_by_field_name("name")
            if name is not None:
                self._declare(inner, name, "class", statement=node)
            return inner
        if t in BLOCK_TYPES:
            return Scope(scope, is_function=False)
        if t == "for_in_statement":
            inner = Scope(scope, is_function=False)
            kind = node.child_by_field_name("kind")
            if kind is not None:
                target = inner.function_scope() if kind.type == "var" else inner
                left = node.child_by_field_name("left")
                self._bind_pattern(target, left, "variable", statement=node, symbol=True)
            return inner
        if t == "catch_clause":
            inner = Scope(scope, is_function=False)
            self._bind_pattern(inner, node.child_by_field_name("parameter"), "variable")
            return inner

        if t == "variable_declarator":
            is_var = parent is not None and parent.type == "variable_declaration"
            self._bind_pattern(
                scope.function_scope() if is_var else scope,
                node.child_by_field_name("name"),
                "variable",
                statement=parent,
                symbol=True,
            )
        elif t in ("required_parameter", "optional_parameter"):
            self._bind_pattern(scope, node.child_by_field_name("pattern"), "parameter", symbol=True)
        elif t == "interface_declaration":
            self._declare_named(scope, node, "interface", symbol=True)
            self._collect_interface_properties(node)
            return Scope(scope, is_function=False)
        elif t == "type_alias_declaration":
            self._declare_named(scope, node, "type", symbol=True)
            return Scope(scope, is_function=False)
        elif t == "enum_declaration":
            self._declare_named(scope, node, "type")
        elif t == "type_parameter":
            self._declare_named(scope, node, "type")
        elif t == "import_statement":
            self._bind_imports(scope, node)
        elif t == "export_statement":
            self._exports.append(node)
        return scope

    def _declare_named(
        self, scope: Scope, node: Any, kind: SymbolKind, *, symbol: bool = False
    ) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(scope, name, kind, statement=node, symbol=symbol)

    def _collect_interface_properties(self, node: Any) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            if member.type != "property_signature":
                continue
            name = member.child_by_field_name("name")
            if name is None or name.type != "property_identifier":
                continue
            self.index.symbols.append(
                Binding(
                    name=self.text(name),
                    kind="property",
                    file=self.source.path,
                    node=name,
                    symbol=True,
                    is_property=True,
                )
            )

    def _bind_imports(self, scope: Scope, node: Any) -> None:
        source_node = node.child_by_field_name("source")
        source = _unquote(self.text(source_node)) if source_node is not None else None
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "identifier":
                    self._import(scope, child, source, "default")
                elif child.type == "namespace_import":
                    for ident in child.named_children:
                        if ident.type == "identifier":
                            self._import(scope, ident, source, "*")
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        name = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias")
                        if name is None:
                            continue
                        self._import(
                            scope, alias or name, source, _unquote(self.text(name)), name_node=name
                        )

    def _import(
        self,
        scope: Scope,
        local: Any,
        source: str | None,
        imported_name: str,
        name_node: Any = None,
    ) -> None:
        binding = self._declare(
            scope,
            local,
            "variable",
            import_source=source,
            imported_name=imported_name,
            import_name_node=name_node,
        )
        if binding.node.start_byte == local.start_byte and source is not None:
            self.index.imports.append(binding)

    def _is_reference(self, node: Any) -> bool:
        parent = node.parent
        if parent is None:
            return True
        if parent.type == "import_specifier":
            return False
        if parent.type == "nested_type_identifier":
            return False
        if parent.type == "export_specifier":
            statement = parent.parent.parent if parent.parent is not None else None
            if statement is not None and statement.child_by_field_name("source") is not None:
                return False
            alias = parent.child_by_field_name("alias")
            return alias is None or alias.start_byte != node.start_byte
        return True

    def _resolve_uses(self) -> None:
        for node, scope in self._pending:
            if node.start_byte in self._decl_nodes or not self._is_reference(node):
                continue
            binding = scope.lookup(self.text(node))
            if binding is not None:
                binding.uses.append(node)
                self.index.by_node[node.start_byte] = binding

    def _collect_exports(self) -> None:
        for node in self._exports:
            source_node = node.child_by_field_name("source")
            source = _unquote(self.text(source_node)) if source_node is not None else None
            is_default = any(c.type == "default" for c in node.children)
            declaration = node.child_by_field_name("declaration")

            if declaration is not None:
                bound = [b for b in self.index.bindings if b.statement_id == declaration.id]
                if is_default:
                    if bound:
                        self.index.exports["default"] = ExportEntry(binding=bound[0])
                else:
                    for b in bound:
                        self.index.exports[b.name] = ExportEntry(binding=b)
                continue

            if is_default:
                value = node.child_by_field_name("value")
                if value is not None and (b := self.index.by_node.get(value.start_byte)):
                    self.index.exports["default"] = ExportEntry(binding=b)
                continue

            clause = next((c for c in node.named_children if c.type == "export_clause"), None)
            if clause is None:
                if source is not None and not any(
                    c.type == "namespace_export" for c in node.named_children
                ):
                    self.index.star_exports.append(source)
                continue

            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = spec.child_by_field_name("name")
                if name is None:
                    continue
                alias = spec.child_by_field_name("alias")
                exported = _unquote(self.text(alias or name))
                if source is not None:
                    self.index.exports[exported] = ExportEntry(
                        source=source, imported_name=_unquote(self.text(name)), name_node=name
                    )
                elif b := self.index.by_node.get(name.start_byte):
                    self.index.exports[exported] = ExportEntry(binding=b)


class ProjectIndex:
    """Binding index across every file of a project."""

    def __init__(self, files: dict[str, FileIndex]) -> None:
        self.files = files

    @classmethod
    def build(cls, project: Project) -> ProjectIndex:
        files = {s.path: _FileBuilder(s).build() for s in project.sources()}
        index = cls(files)
        index._link()
        log.debug(
            "index_built",
            files=len(files),
            bindings=sum(len(f.bindings) for f in files.values()),
        )
        return index

    def resolve_module(self, from_file: str, specifier: str) -> str | None:
        """Resolve a relative module specifier to a project file."""
        if not specifier.startswith("."):
            return None
        base = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), specifier))
        stem, ext = posixpath.splitext(base)
        candidates = [base]
        candidates += [stem + e for e in _JS_TO_TS.get(ext, ())]
        candidates += [base + e for e in RESOLVE_EXTENSIONS]
        candidates += [f"{base}/index{e}" for e in RESOLVE_EXTENSIONS]
        return next((c for c in candidates if c in self.files), None)

    def resolve_export(
        self, file: str, name: str, seen: set[tuple[str, str]] | None = None
    ) -> Binding | None:
        """Find the binding a module exports under ``name``."""
        seen = seen if seen is not None else set()
        if (file, name) in seen or file not in self.files:
            return None
        seen.add((file, name))
        index = self.files[file]

        entry = index.exports.get(name)
        if entry is None:
            if name == "default":
                return None
            for source in index.star_exports:
                target = self.resolve_module(file, source)
                if target and (found := self.resolve_export(target, name, seen)):
                    return found
            return None
        if entry.binding is not None:
            return self._canonical(entry.binding)
        if entry.source is not None and entry.imported_name is not None:
            target = self.resolve_module(file, entry.source)
            if target is not None:
                return self.resolve_export(target, entry.imported_name, seen)
        return None

    def _canonical(self, binding: Binding) -> Binding:
        self._link_import(binding)
        while binding.target is not None and not binding.is_alias:
            binding = binding.target
        return binding

    def _link_import(self, binding: Binding) -> None:
        if binding.linked or binding.import_source is None:
            return
        binding.linked = True
        target_file = self.resolve_module(binding.file, binding.import_source)
        if target_file is None:
            return
        if binding.imported_name == "*":
            binding.namespace_file = target_file
            return
        target = self.resolve_export(target_file, binding.imported_name or "")
        if target is None or target is binding:
            return
        binding.target = target
        target.importers.append(binding)
        if binding.is_alias and binding.import_name_node is not None:
            self.files[binding.file].linked_at[binding.import_name_node.start_byte] = target

    def _link_node(self, target: Binding, file: str, node: Any) -> None:
        target.linked_nodes.append((file, node))
        self.files[file].linked_at[node.start_byte] = target

    def _link(self) -> None:
        for index in self.files.values():
            for binding in index.imports:
                self._link_import(binding)

        for index in self.files.values():
            for entry in index.exports.values():
                if entry.source is None or entry.name_node is None:
                    continue
                target_file = self.resolve_module(index.path, entry.source)
                if target_file is None:
                    continue
                target = self.resolve_export(target_file, entry.imported_name or "")
                if target is not None and target.name == entry.imported_name:
                    self._link_node(target, index.path, entry.name_node)

            for binding in index.imports:
                if binding.namespace_file is not None:
                    self._link_namespace_members(index, binding)

    def _link_namespace_members(self, index: FileIndex, binding: Binding) -> None:
        """Link ``ns.member`` accesses through ``import * as ns``."""
        for use in binding.uses:
            parent = use.parent
            if parent is None or parent.type != "member_expression":
                continue
            obj = parent.child_by_field_name("object")
            prop = parent.child_by_field_name("property")
            if obj is None or prop is None or obj.start_byte != use.start_byte:
                continue
            name = index.source.node_text(prop)
            target = self.resolve_export(binding.namespace_file or "", name)
            if target is not None and target.name == name:
                self._link_node(target, index.path, prop)

    def binding_at(self, file: str, node: Any) -> Binding | None:
        index = self.files.get(file)
        if index is None:
            return None
        return index.by_node.get(node.start_byte) or index.linked_at.get(node.start_byte)

    def occurrences(self, binding: Binding) -> list[tuple[str, Any]]:
        """Every (file, node) that must change when ``binding`` is renamed."""
        if binding.is_property:
            return self.property_occurrences(binding.name)

        root = self._canonical(binding)
        found: list[tuple[str, Any]] = [(root.file, root.node)]
        found += [(root.file, use) for use in root.uses]
        found += root.linked_nodes
        for importer in root.importers:
            if importer.imported_name != root.name:
                continue
            if importer.import_name_node is not None:
                found.append((importer.file, importer.import_name_node))
            if not importer.is_alias:
                found.append((importer.file, importer.node))
                found += [(importer.file, use) for use in importer.uses]
                found += importer.linked_nodes

        unique: dict[tuple[str, int], tuple[str, Any]] = {}
        for file, node in found:
            unique.setdefault((file, node.start_byte), (file, node))
        return [unique[k] for k in sorted(unique)]

    def property_occurrences(self, name: str) -> list[tuple[str, Any]]:
        return [
            (path, node)
            for path in sorted(self.files)
            for node in self.files[path].properties.get(name, [])
        ]

    def symbols(self) -> list[Binding]:
        return [b for path in sorted(self.files) for b in self.files[path].symbols]


def classify(node: Any, binding: Binding | None) -> SymbolKind:
    """Syntactic kind of the identifier ``node``."""
    parent = node.parent
    if parent is not None and (kind := _KIND_BY_PARENT.get(parent.type)):
        named = parent.child_by_field_name("name") or parent.child_by_field_name("pattern")
        if named is not None and named.start_byte == node.start_byte:
            return kind
    if binding is not None:
        return binding.kind
    return "property" if node.type in PROPERTY_TYPES else "variable"
