from __future__ import annotations
from typing import List, Optional

from tree_sitter import Node

from dupguard.parsing.ir import FunctionUnit, ParsedModule, Span

FUNCTION_KINDS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",  # older grammars; the keyword token shares this type but is unnamed
    "generator_function",
    "arrow_function",
    "method_definition",
})

# parent kind -> field holding the name a function value is bound to
_BINDING_PARENTS = {
    "variable_declarator": "name",
    "pair": "key",
    "field_definition": "property",
    "public_field_definition": "name",
    "assignment_expression": "left",
}

def node_span(node: Node, source: bytes) -> Span:
    """Span of ``node`` with character (not byte) columns."""
    def _column(byte_offset: int, byte_column: int) -> int:
        line_start = byte_offset - byte_column
        return len(source[line_start:byte_offset].decode("utf-8", errors="replace"))

    s_row, s_col = node.start_point
    e_row, e_col = node.end_point
    return Span(
        start_line=int(s_row) + 1,
        start_column=_column(node.start_byte, int(s_col)),
        end_line=int(e_row) + 1,
        end_column=_column(node.end_byte, int(e_col)),
    )

def _text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace").strip()

def _display_name(node: Node) -> str:
    own = node.child_by_field_name("name")
    if own is not None and node.type != "arrow_function":
        return _text(own) or "<anonymous>"
    parent = node.parent
    if parent is not None and parent.type in _BINDING_PARENTS:
        bound = parent.child_by_field_name(_BINDING_PARENTS[parent.type])
        if bound is not None and bound.start_byte != node.start_byte:
            return _text(bound) or "<anonymous>"
    return "<anonymous>"

def collect_functions(module: ParsedModule) -> List[FunctionUnit]:
    """Every callable unit in ``module``, in source (pre-)order.

    Nested functions are reported on their own as well as inside their
    enclosing function.
    """
    units: List[FunctionUnit] = []
    stack = [module.tree.root_node]
    while stack:
        node = stack.pop()
        stack.extend(reversed(node.children))
        if not node.is_named or node.type not in FUNCTION_KINDS:
            continue
        units.append(FunctionUnit(
            source_file=module.path,
            span=node_span(node, module.source),
            node=node,
            kind=node.type,
            name=_display_name(node),
        ))
    return units
