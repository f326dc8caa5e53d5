"""Tree-sitter powered definition provider for PHP source trees."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

import tree_sitter_php
from tree_sitter import Language, Node, Parser

from ..errors import DiscoveryError
from ..logging import get_logger
from .base import DefinitionProvider
from .builtins import builtin_declaration
from .evaluator import ExpressionEvaluator
from .models import (
    CaseDeclaration,
    ClassDeclaration,
    ClassKind,
    ConstantDeclaration,
    MethodDeclaration,
    NativeType,
    ParameterDeclaration,
    PropertyDeclaration,
    Visibility,
)
from .names import NameScope, parse_native_type, split_name_list, strip_comments

logger = get_logger("reflection")

_SKIP_DIRS = {".git", ".hg", ".svn", ".idea", ".vscode", "node_modules"}

_CLASS_NODES = {
    "class_declaration": ClassKind.CLASS,
    "interface_declaration": ClassKind.INTERFACE,
    "trait_declaration": ClassKind.TRAIT,
    "enum_declaration": ClassKind.ENUM,
}

# Nodes whose bodies never contain named class-like declarations.
_OPAQUE_NODES = {
    "function_definition",
    "anonymous_function",
    "anonymous_function_creation_expression",
    "arrow_function",
    "object_creation_expression",
}

_PARAMETER_NODES = {"simple_parameter", "variadic_parameter", "property_promotion_parameter"}

_TYPE_NODES = {
    "primitive_type",
    "named_type",
    "optional_type",
    "union_type",
    "intersection_type",
    "disjunctive_normal_form_type",
    "bottom_type",
}

_NULLABLE_EXEMPT = {"mixed", "null"}


def php_language() -> Language:
    return Language(tree_sitter_php.language_php())


class TreeSitterDefinitionProvider(DefinitionProvider):
    """Enumerates class-like definitions under a directory without executing PHP."""

    def __init__(
        self,
        directory: os.PathLike | str,
        reference_paths: Sequence[os.PathLike | str] = (),
        parser: Optional[Parser] = None,
    ) -> None:
        self._directory = Path(directory)
        if not self._directory.exists():
            raise DiscoveryError(f"Directory not found: {self._directory}")
        if not self._directory.is_dir():
            raise DiscoveryError(f"Not a directory: {self._directory}")
        self._reference_paths = [Path(path) for path in reference_paths]
        self._parser = parser or Parser(php_language())
        self._declarations: Optional[List[ClassDeclaration]] = None
        self._index: Dict[str, ClassDeclaration] = {}
        self._reference_index: Optional[Dict[str, ClassDeclaration]] = None

    def definitions(self) -> Iterable[ClassDeclaration]:
        if self._declarations is None:
            self._declarations = []
            for path in _php_files(self._directory):
                for declaration in self._parse_file(path):
                    self._declarations.append(declaration)
                    self._index.setdefault(declaration.name.lower(), declaration)
            logger.debug(
                "Discovered %d definitions under %s", len(self._declarations), self._directory
            )
        return list(self._declarations)

    def resolve(self, name: str) -> Optional[ClassDeclaration]:
        key = name.lstrip("\\").lower()
        if self._declarations is None:
            self.definitions()
        declaration = self._index.get(key)
        if declaration is not None:
            return declaration
        declaration = self._references().get(key)
        if declaration is not None:
            return declaration
        return builtin_declaration(key)

    def _references(self) -> Dict[str, ClassDeclaration]:
        if self._reference_index is None:
            self._reference_index = {}
            for root in self._reference_paths:
                if not root.exists():
                    logger.warning("Reference path not found: %s", root)
                    continue
                files = [root] if root.is_file() else _php_files(root)
                for path in files:
                    for declaration in self._parse_file(path):
                        self._reference_index.setdefault(declaration.name.lower(), declaration)
            logger.debug("Indexed %d reference definitions", len(self._reference_index))
        return self._reference_index

    # ------------------------------------------------------------------
    # File level

    def _parse_file(self, path: Path) -> List[ClassDeclaration]:
        try:
            source = path.read_bytes()
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
            return []
        tree = self._parser.parse(source)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s; extracting what parsed", path)
        reader = _FileReader(self, path, source)
        reader.walk(tree.root_node, NameScope())
        return reader.declarations


class _FileReader:
    """Builds declarations for one parsed file."""

    def __init__(self, provider: TreeSitterDefinitionProvider, path: Path, source: bytes) -> None:
        self._provider = provider
        self._path = path
        self._source = source
        self.declarations: List[ClassDeclaration] = []

    def walk(self, node: Node, scope: NameScope) -> None:
        for child in node.named_children:
            if child.type == "namespace_definition":
                self._enter_namespace(child, scope)
            elif child.type == "namespace_use_declaration":
                scope.add_use_declaration(self._text(child))
            elif child.type in _CLASS_NODES:
                declaration = self._read_class(child, _CLASS_NODES[child.type], scope.snapshot())
                if declaration is not None:
                    self.declarations.append(declaration)
            elif child.type in _OPAQUE_NODES or child.type == "comment":
                continue
            else:
                self.walk(child, scope)

    def _enter_namespace(self, node: Node, scope: NameScope) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            name_node = _first_child(node, "namespace_name")
        namespace = self._text(name_node).strip().strip("\\") if name_node is not None else ""
        body = node.child_by_field_name("body")
        if body is None:
            body = _first_child(node, "compound_statement")
        if body is None:
            # Statement form applies to the rest of the file.
            scope.namespace = namespace
            scope.imports.clear()
            return
        self.walk(body, NameScope(namespace=namespace))

    # ------------------------------------------------------------------
    # Class level

    def _read_class(self, node: Node, kind: ClassKind, scope: NameScope) -> Optional[ClassDeclaration]:
        name_node = node.child_by_field_name("name") or _first_child(node, "name")
        if name_node is None:
            return None
        name = scope.qualify(self._text(name_node).strip())
        modifiers = self._modifier_words(node, stop=name_node)
        declaration = ClassDeclaration(
            name=name,
            kind=kind,
            is_abstract="abstract" in modifiers,
            is_final="final" in modifiers,
            is_readonly="readonly" in modifiers,
            doc_comment=self._doc_comment(node, stop=name_node),
            file=str(self._path),
        )

        body = node.child_by_field_name("body")
        for child in node.children:
            if child.type == "base_clause":
                names = [scope.resolve_class(item) for item in split_name_list(self._text(child))]
                if kind is ClassKind.INTERFACE:
                    declaration.interfaces.extend(names)
                elif names:
                    declaration.parent = names[0]
            elif child.type == "class_interface_clause":
                declaration.interfaces.extend(
                    scope.resolve_class(item) for item in split_name_list(self._text(child))
                )
            elif child.type in ("declaration_list", "enum_declaration_list") and body is None:
                body = child

        if kind is ClassKind.ENUM:
            declaration.backing_type = self._enum_backing_type(node, name_node, body)

        evaluator = ExpressionEvaluator(
            self._source,
            scope,
            class_name=name,
            parent_name=declaration.parent,
            lookup=self._provider.resolve,
        )
        if body is not None:
            self._read_members(body, declaration, scope, evaluator)
        return declaration

    def _enum_backing_type(self, node: Node, name_node: Node, body: Optional[Node]) -> Optional[str]:
        end = body.start_byte if body is not None else node.end_byte
        tail = self._source[name_node.end_byte : end].decode("utf-8", errors="replace")
        tail = strip_comments(tail).split("implements", 1)[0]
        match = re.search(r":\s*(\w+)", tail)
        return match.group(1).lower() if match else None

    def _read_members(
        self,
        body: Node,
        declaration: ClassDeclaration,
        scope: NameScope,
        evaluator: ExpressionEvaluator,
    ) -> None:
        for member in body.named_children:
            if member.type == "const_declaration":
                declaration.constants.extend(self._read_constants(member, evaluator))
            elif member.type == "property_declaration":
                declaration.properties.extend(self._read_properties(member, scope))
            elif member.type == "method_declaration":
                method, promoted = self._read_method(member, scope, evaluator)
                if method is not None:
                    declaration.methods.append(method)
                    declaration.properties.extend(promoted)
            elif member.type == "use_declaration":
                declaration.traits.extend(
                    scope.resolve_class(item) for item in split_name_list(self._text(member))
                )
            elif member.type == "enum_case":
                case = self._read_case(member, evaluator)
                if case is not None:
                    declaration.cases.append(case)

    def _read_constants(self, node: Node, evaluator: ExpressionEvaluator) -> Iterator[ConstantDeclaration]:
        elements = [child for child in node.named_children if child.type == "const_element"]
        stop = elements[0] if elements else None
        visibility = _visibility(self._modifier_words(node, stop=stop))
        for element in elements:
            named = [child for child in element.named_children if child.type != "comment"]
            if not named:
                continue
            name = self._text(named[0]).strip()
            value = named[-1] if len(named) > 1 else None
            yield ConstantDeclaration(
                name=name,
                visibility=visibility,
                getter=evaluator.getter(value) if value is not None else None,
            )

    def _read_properties(self, node: Node, scope: NameScope) -> Iterator[PropertyDeclaration]:
        elements = [child for child in node.named_children if child.type == "property_element"]
        if not elements:
            return
        type_node = _type_child(node)
        modifiers = self._modifier_words(node, stop=elements[0], skip=type_node)
        native = parse_native_type(self._text(type_node), scope) if type_node is not None else None
        doc = self._doc_comment(node, stop=elements[0])
        for element in elements:
            variable = _first_child(element, "variable_name")
            if variable is None:
                continue
            yield PropertyDeclaration(
                name=self._text(variable).strip().lstrip("$"),
                visibility=_visibility(modifiers),
                is_static="static" in modifiers,
                is_readonly="readonly" in modifiers,
                type=native,
                doc_comment=doc,
            )

    def _read_case(self, node: Node, evaluator: ExpressionEvaluator) -> Optional[CaseDeclaration]:
        name_node = node.child_by_field_name("name") or _first_child(node, "name")
        if name_node is None:
            return None
        value = node.child_by_field_name("value")
        if value is None:
            seen_equals = False
            for child in node.children:
                if not child.is_named and self._text(child) == "=":
                    seen_equals = True
                elif seen_equals and child.is_named and child.type != "comment":
                    value = child
                    break
        return CaseDeclaration(
            name=self._text(name_node).strip(),
            getter=evaluator.getter(value) if value is not None else None,
        )

    # ------------------------------------------------------------------
    # Methods

    def _read_method(
        self, node: Node, scope: NameScope, evaluator: ExpressionEvaluator
    ) -> tuple[Optional[MethodDeclaration], List[PropertyDeclaration]]:
        name_node = node.child_by_field_name("name") or _first_child(node, "name")
        if name_node is None:
            return None, []
        modifiers = self._modifier_words(node, stop=name_node)
        parameters_node = node.child_by_field_name("parameters") or _first_child(node, "formal_parameters")

        parameters: List[ParameterDeclaration] = []
        promoted: List[PropertyDeclaration] = []
        if parameters_node is not None:
            for param in parameters_node.named_children:
                if param.type not in _PARAMETER_NODES:
                    continue
                parameter = self._read_parameter(param, scope, evaluator)
                if parameter is None:
                    continue
                parameters.append(parameter)
                if param.type == "property_promotion_parameter":
                    promoted.append(self._promoted_property(param, parameter, scope))
        _mark_optional(parameters)

        method = MethodDeclaration(
            name=self._text(name_node).strip(),
            visibility=_visibility(modifiers),
            is_static="static" in modifiers,
            parameters=parameters,
            return_type=self._return_type(node, parameters_node, scope),
            doc_comment=self._doc_comment(node, stop=name_node),
        )
        return method, promoted

    def _return_type(self, node: Node, parameters_node: Optional[Node], scope: NameScope) -> Optional[NativeType]:
        type_node = node.child_by_field_name("return_type")
        if type_node is not None:
            return parse_native_type(self._text(type_node), scope)
        if parameters_node is None:
            return None
        body = node.child_by_field_name("body")
        end = body.start_byte if body is not None else node.end_byte
        tail = strip_comments(self._source[parameters_node.end_byte : end].decode("utf-8", errors="replace"))
        match = re.match(r"\s*:\s*([^{;]+)", tail)
        return parse_native_type(match.group(1), scope) if match else None

    def _read_parameter(
        self, node: Node, scope: NameScope, evaluator: ExpressionEvaluator
    ) -> Optional[ParameterDeclaration]:
        name_node = node.child_by_field_name("name") or _first_child(node, "variable_name")
        if name_node is None:
            return None
        type_node = _type_child(node)
        default = node.child_by_field_name("default_value")
        prefix = " ".join(
            self._text(child)
            for child in node.children
            if child.start_byte < name_node.start_byte
            and child.type not in ("attribute_list", "comment")
            and child != type_node
        )

        native = parse_native_type(self._text(type_node), scope) if type_node is not None else None
        if native is not None and default is not None and _is_null_literal(self._text(default)):
            if native.kind != "named" or native.name not in _NULLABLE_EXEMPT:
                native = native.with_nullable()
        return ParameterDeclaration(
            name=self._text(name_node).strip().lstrip("$"),
            type=native,
            is_variadic=node.type == "variadic_parameter" or "..." in prefix,
            getter=evaluator.getter(default) if default is not None else None,
        )

    def _promoted_property(
        self, node: Node, parameter: ParameterDeclaration, scope: NameScope
    ) -> PropertyDeclaration:
        name_node = node.child_by_field_name("name") or _first_child(node, "variable_name")
        type_node = _type_child(node)
        modifiers = self._modifier_words(node, stop=name_node, skip=type_node)
        return PropertyDeclaration(
            name=parameter.name,
            visibility=_visibility(modifiers),
            is_static=False,
            is_readonly="readonly" in modifiers,
            type=parse_native_type(self._text(type_node), scope) if type_node is not None else None,
            doc_comment=self._doc_comment(node, stop=name_node),
        )

    # ------------------------------------------------------------------
    # Helpers

    def _modifier_words(
        self, node: Node, *, stop: Optional[Node], skip: Optional[Node] = None
    ) -> Set[str]:
        """Lower-cased keywords that precede ``stop`` inside ``node``."""
        words: Set[str] = set()
        for child in node.children:
            if stop is not None and child.start_byte >= stop.start_byte:
                break
            if child.type in ("attribute_list", "comment"):
                continue
            if skip is not None and child.start_byte == skip.start_byte and child.end_byte == skip.end_byte:
                continue
            words.update(word.lower() for word in re.findall(r"[A-Za-z_]+", strip_comments(self._text(child))))
        return words

    def _doc_comment(self, node: Node, *, stop: Optional[Node]) -> Optional[str]:
        found: Optional[str] = None
        for child in node.children:
            if stop is not None and child.start_byte >= stop.start_byte:
                break
            if child.type == "comment" and self._text(child).startswith("/**"):
                found = self._text(child)
        if found is not None:
            return found
        sibling = node.prev_sibling
        while sibling is not None and sibling.type == "comment":
            text = self._text(sibling)
            if text.startswith("/**"):
                return text
            sibling = sibling.prev_sibling
        return None

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _php_files(root: Path) -> List[Path]:
    files: List[Path] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _SKIP_DIRS)
        for filename in sorted(filenames):
            if filename.lower().endswith(".php"):
                files.append(Path(current) / filename)
    return files


def _first_child(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _type_child(node: Node) -> Optional[Node]:
    type_node = node.child_by_field_name("type")
    if type_node is not None:
        return type_node
    for child in node.children:
        if child.type in _TYPE_NODES:
            return child
    return None


def _visibility(words: Set[str]) -> Visibility:
    if "private" in words:
        return Visibility.PRIVATE
    if "protected" in words:
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _is_null_literal(text: str) -> bool:
    return text.strip().lstrip("\\").lower() == "null"


def _mark_optional(parameters: List[ParameterDeclaration]) -> None:
    """A parameter is optional when it has a default and nothing required follows it."""
    trailing_optional = True
    for parameter in reversed(parameters):
        if parameter.is_variadic:
            parameter.is_optional = True
            continue
        parameter.is_optional = trailing_optional and parameter.has_default
        trailing_optional = parameter.is_optional


__all__ = ["TreeSitterDefinitionProvider", "php_language"]
