"""
Renaming-invariant canonical forms for function units.

A unit's tree is serialised as ``kind(child,child,...)`` with children in
source order. Identifier leaves are relabelled ``v0, v1, ...`` in the order
they are first met, so a consistent renaming of a function's identifiers
yields the same string while two distinct names stay distinct. Comments,
statement separators and whitespace do not reach the output.
"""
from __future__ import annotations
import re
from typing import Callable, Dict, List, Union

from tree_sitter import Node

from dupguard.core.errors import UnsupportedUnitShape
from dupguard.parsing.ir import FunctionUnit

IDENTIFIER_KINDS = frozenset({
    "identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
    "statement_identifier",
    "type_identifier",
})

# Leaves emitted as written: property names, keywords-as-nodes, type keywords.
VERBATIM_KINDS = frozenset({
    "property_identifier", "private_property_identifier",
    "this", "super", "true", "false", "null", "undefined",
    "import", "meta_property", "predefined_type", "this_type", "existential_type",
    "hash_bang_line", "regex_flags",
})

# Literal values; whitespace inside them is significant.
LITERAL_KINDS = frozenset({
    "number", "string", "regex", "regex_pattern", "string_fragment",
    "escape_sequence", "html_character_reference", "jsx_text",
})

SKIPPED_KINDS = frozenset({"comment", "html_comment"})
SKIPPED_TOKENS = frozenset({";", ","})

COMPOSITE_KINDS = frozenset({
    # statements and declarations
    "program", "statement_block", "expression_statement", "empty_statement",
    "variable_declaration", "lexical_declaration", "variable_declarator",
    "if_statement", "else_clause", "switch_statement", "switch_body",
    "switch_case", "switch_default", "for_statement", "for_in_statement",
    "while_statement", "do_statement", "try_statement", "catch_clause",
    "finally_clause", "with_statement", "break_statement", "continue_statement",
    "return_statement", "throw_statement", "labeled_statement",
    "debugger_statement", "import_statement", "export_statement",
    "import_clause", "namespace_import", "named_imports", "import_specifier",
    "export_clause", "export_specifier", "namespace_export",
    "function_declaration", "generator_function_declaration",
    "function_expression", "generator_function", "arrow_function",
    "class_declaration", "class", "class_body", "class_heritage",
    "field_definition", "class_static_block", "method_definition", "decorator",
    # patterns and parameters
    "formal_parameters", "rest_pattern", "assignment_pattern", "object_pattern",
    "array_pattern", "pair_pattern", "object_assignment_pattern",
    # expressions
    "pair", "object", "array", "spread_element", "computed_property_name",
    "parenthesized_expression", "sequence_expression", "assignment_expression",
    "augmented_assignment_expression", "await_expression", "unary_expression",
    "binary_expression", "ternary_expression", "update_expression",
    "new_expression", "yield_expression", "call_expression", "arguments",
    "member_expression", "subscript_expression", "optional_chain",
    "template_string", "template_substitution",
    # jsx
    "jsx_element", "jsx_self_closing_element", "jsx_opening_element",
    "jsx_closing_element", "jsx_attribute", "jsx_expression",
    "jsx_namespace_name", "nested_identifier",
    # typescript
    "type_annotation", "optional_type_annotation", "type_arguments",
    "type_parameters", "type_parameter", "generic_type", "union_type",
    "intersection_type", "array_type", "tuple_type", "optional_type",
    "rest_type", "function_type", "constructor_type", "object_type",
    "property_signature", "method_signature", "index_signature",
    "call_signature", "construct_signature", "literal_type",
    "parenthesized_type", "nested_type_identifier", "type_query",
    "index_type_query", "lookup_type", "conditional_type", "infer_type",
    "template_literal_type", "template_type", "readonly_type",
    "type_predicate", "type_predicate_annotation", "asserts",
    "asserts_annotation", "as_expression", "satisfies_expression",
    "non_null_expression", "type_assertion", "instantiation_expression",
    "required_parameter", "optional_parameter", "accessibility_modifier",
    "override_modifier", "constraint", "default_type", "mapped_type_clause",
    "interface_declaration", "interface_body", "type_alias_declaration",
    "enum_declaration", "enum_body", "enum_assignment",
    "abstract_class_declaration", "public_field_definition",
    "implements_clause", "extends_clause", "extends_type_clause",
    "abstract_method_signature", "ambient_declaration", "internal_module",
    "module", "function_signature", "adding_type_annotation",
    "opting_type_annotation", "omitting_type_annotation", "flow_maybe_type",
    "import_alias", "import_require_clause", "import_attribute",
    "using_declaration",
})

KIND_ALIASES = {"function": "function_expression"}

# root kind -> tag of its anonymous expression form
_ROOT_FORMS = {
    "function_declaration": "function_expression",
    "function_expression": "function_expression",
    "function": "function_expression",
    "generator_function_declaration": "generator_function",
    "generator_function": "generator_function",
    "method_definition": "function_expression",
    "arrow_function": "arrow_function",
}

# children of a declaration that only describe the declaration itself
_DECLARATION_ONLY_TOKENS = frozenset({"function", "static", "readonly", "declare", "abstract", "?"})
_DECLARATION_ONLY_KINDS = frozenset({"accessibility_modifier", "override_modifier", "decorator"})

_WS_RE = re.compile(r"\s+")
# JSX text whitespace that spans a line break; runs within a line are kept.
_JSX_BREAK_RE = re.compile(r"[ \t]*\r?\n\s*")
_LITERAL_WS_RE = re.compile(r"\s")

Item = Union[Node, str]


class _Labeler:
    """First-seen-order identifier labels; one instance per canonicalization."""

    def __init__(self) -> None:
        self._labels: Dict[str, str] = {}

    def label(self, name: str) -> str:
        found = self._labels.get(name)
        if found is None:
            found = f"v{len(self._labels)}"
            self._labels[name] = found
        return found


def _text(node: Node) -> str:
    return (node.text or b"").decode("utf-8", errors="replace")


def _escape_ws(text: str) -> str:
    return _LITERAL_WS_RE.sub(lambda m: "\\u%04x" % ord(m.group()), text)


def _is_skipped(node: Node) -> bool:
    if node.type in SKIPPED_KINDS:
        return True
    if node.type == "jsx_text" and b"\n" in (node.text or b"") and not (node.text or b"").strip():
        return True
    return not node.is_named and node.type in SKIPPED_TOKENS


def _plain_parameter(node: Node) -> Node | None:
    # A TypeScript parameter with nothing but a name reads like a JS one.
    kept = [c for c in node.children if not _is_skipped(c)]
    if len(kept) == 1 and kept[0].type == "identifier":
        return kept[0]
    return None


def _composite(tag: str, children: List[Node]) -> List[Item]:
    items: List[Item] = [f"{tag}("]
    for child in children:
        if _is_skipped(child):
            continue
        items.append(child)
        items.append(",")
    items.append(")")
    return items


def _emit_identifier(node: Node, labels: _Labeler) -> List[Item]:
    return [labels.label(_text(node))]


def _emit_verbatim(node: Node, labels: _Labeler) -> List[Item]:
    return [_WS_RE.sub("", _text(node))]


def _emit_literal(node: Node, labels: _Labeler) -> List[Item]:
    text = _text(node)
    if node.type == "jsx_text":
        text = " ".join(p for p in _JSX_BREAK_RE.split(text) if p)
    return [_escape_ws(text)]


def _emit_composite(node: Node, labels: _Labeler) -> List[Item]:
    if node.type == "required_parameter":
        plain = _plain_parameter(node)
        if plain is not None:
            return [plain]
    if node.type == "arrow_function":
        return _arrow(node, "arrow_function")
    if node.type in ("array", "array_pattern"):
        return _array(node, node.type)
    return _composite(KIND_ALIASES.get(node.type, node.type), node.children)


def _emit_opaque(node: Node, labels: _Labeler) -> List[Item]:
    return [f"<{node.type}>"]


_EMITTERS: Dict[str, Callable[[Node, _Labeler], List[Item]]] = {}
for _kinds, _emitter in (
    (IDENTIFIER_KINDS, _emit_identifier),
    (VERBATIM_KINDS, _emit_verbatim),
    (LITERAL_KINDS, _emit_literal),
    (COMPOSITE_KINDS, _emit_composite),
):
    for _kind in _kinds:
        _EMITTERS[_kind] = _emitter
_EMITTERS["function"] = _emit_composite

HANDLED_KINDS = frozenset(_EMITTERS) | SKIPPED_KINDS


def _arrow(node: Node, tag: str) -> List[Item]:
    param = node.child_by_field_name("parameter")
    items: List[Item] = [f"{tag}("]
    for child in node.children:
        if _is_skipped(child):
            continue
        if param is not None and child.start_byte == param.start_byte and child.type == param.type:
            # `a => a` reads like `(a) => a`
            items.extend(["formal_parameters(", "(", ",", child, ",", ")", ",", ")", ","])
            continue
        items.append(child)
        items.append(",")
    items.append(")")
    return items


def _array(node: Node, tag: str) -> List[Item]:
    # Elisions have no node of their own: a `,` right after `[` or another
    # `,` marks a hole. A trailing `,` adds nothing.
    items: List[Item] = [f"{tag}("]
    after_separator = True
    for child in node.children:
        if child.type in SKIPPED_KINDS:
            continue
        if not child.is_named and child.type == ",":
            if after_separator:
                items.extend(["<hole>", ","])
            after_separator = True
            continue
        items.append(child)
        items.append(",")
        if child.is_named:
            after_separator = False
    items.append(")")
    return items


def _root_items(node: Node) -> List[Item]:
    tag = _ROOT_FORMS.get(node.type)
    if tag is None:
        raise UnsupportedUnitShape(node.type)
    if node.child_by_field_name("body") is None:
        raise UnsupportedUnitShape(f"{node.type} without a body")
    if node.type == "arrow_function":
        return _arrow(node, tag)

    name = node.child_by_field_name("name")
    if node.type == "method_definition" and any(c.type == "*" for c in node.children):
        tag = "generator_function"
    kept: List[Node] = []
    for child in node.children:
        if name is not None and child.start_byte == name.start_byte and child.end_byte == name.end_byte:
            continue
        if not child.is_named and child.type in _DECLARATION_ONLY_TOKENS:
            continue
        if child.type in _DECLARATION_ONLY_KINDS:
            continue
        kept.append(child)
    return _composite(tag, kept)


def canonicalize_node(node: Node) -> str:
    labels = _Labeler()
    out: List[str] = []
    stack: List[Item] = list(reversed(_root_items(node)))
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        if not item.is_named:
            out.append(item.type)
            continue
        emitter = _EMITTERS.get(item.type, _emit_opaque)
        stack.extend(reversed(emitter(item, labels)))
    return _WS_RE.sub("", "".join(out))


def canonicalize(unit: FunctionUnit) -> str:
    return canonicalize_node(unit.node)
