"""Syntax-tree repair tier.

Fills empty bodies that need real context: reset/reveal handlers, and
``if/else`` statements whose branches were both left empty. Runs on the
extracted snippet only when it parses cleanly. Falls back gracefully if
tree-sitter is not installed.
"""

from functools import lru_cache
from typing import List, Optional, Tuple

from . import config
from .handlers import (
    AST_TIER_ROLES,
    StateVar,
    advance_or_finish_branches,
    canonical_body,
    collection_name,
    handler_role,
    render_block,
)
from .utils import dbg

_FUNCTION_VALUES = {"arrow_function", "function", "function_expression"}
_STATE_HOOKS = {"useState", "React.useState"}

Edit = Tuple[int, int, bytes, str]


@lru_cache(maxsize=1)
def _get_parser():
    try:
        from tree_sitter_languages import get_parser
    except ImportError:
        dbg("ast_repair: tree-sitter-languages not installed")
        return None
    try:
        return get_parser(config.AST_LANGUAGE)
    except Exception as e:
        dbg(f"ast_repair: no parser for {config.AST_LANGUAGE}: {e}")
        return None


def parser_available() -> bool:
    return _get_parser() is not None


def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _walk(node):
    yield node
    for child in node.children:
        yield from _walk(child)


def _is_empty_block(node) -> bool:
    if node is None or node.type != "statement_block":
        return False
    return all(child.type == "comment" for child in node.named_children)


def _state_vars(root) -> List[StateVar]:
    out: List[StateVar] = []
    for node in _walk(root):
        if node.type != "variable_declarator":
            continue
        pattern = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if pattern is None or value is None:
            continue
        if pattern.type != "array_pattern" or value.type != "call_expression":
            continue
        callee = value.child_by_field_name("function")
        if callee is None or _text(callee) not in _STATE_HOOKS:
            continue
        names = [c for c in pattern.named_children if c.type == "identifier"]
        if len(names) != 2:
            continue
        args = value.child_by_field_name("arguments")
        initial = _text(args.named_children[0]) if args is not None and args.named_children else "undefined"
        out.append(StateVar(_text(names[0]), _text(names[1]), initial))
    return out


def _line_indent(lines: List[str], row: int) -> str:
    line = lines[row] if row < len(lines) else ""
    return line[: len(line) - len(line.lstrip(" \t"))]


def _handler_body(node) -> Tuple[Optional[str], Optional[object]]:
    """Name and body block of a named function or function-valued declarator."""
    if node.type == "function_declaration":
        name = node.child_by_field_name("name")
        return (_text(name) if name else None), node.child_by_field_name("body")
    if node.type == "variable_declarator":
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name is None or value is None or value.type not in _FUNCTION_VALUES:
            return None, None
        return _text(name), value.child_by_field_name("body")
    return None, None


def _else_block(node):
    alternative = node.child_by_field_name("alternative")
    if alternative is not None and alternative.type == "else_clause":
        blocks = alternative.named_children
        return blocks[0] if blocks else None
    return alternative


def _collect_edits(text: str, root) -> List[Edit]:
    state_vars = _state_vars(root)
    collection = collection_name(text, state_vars)
    lines = text.split("\n")
    edits: List[Edit] = []
    for node in _walk(root):
        if node.type in ("function_declaration", "variable_declarator"):
            name, body = _handler_body(node)
            role = handler_role(name)
            if role not in AST_TIER_ROLES or not _is_empty_block(body):
                continue
            body_lines = canonical_body(role, state_vars, collection)
            if not body_lines:
                continue
            indent = _line_indent(lines, node.start_point[0])
            block = render_block(body_lines, indent)
            edits.append((body.start_byte, body.end_byte, block.encode("utf-8"), f"ast_fill_{role}_handler"))
        elif node.type == "if_statement":
            consequence = node.child_by_field_name("consequence")
            alternative = _else_block(node)
            if not (_is_empty_block(consequence) and _is_empty_block(alternative)):
                continue
            condition = node.child_by_field_name("condition")
            branches = advance_or_finish_branches(_text(condition) if condition else "", state_vars)
            if branches is None:
                continue
            indent = _line_indent(lines, node.start_point[0])
            block = render_block(branches[0], indent) + " else " + render_block(branches[1], indent)
            edits.append(
                (consequence.start_byte, alternative.end_byte, block.encode("utf-8"), "ast_fill_conditional")
            )
    return edits


def _splice(source: bytes, edits: List[Edit]) -> Tuple[bytes, List[str]]:
    chosen: List[Edit] = []
    last_end = -1
    for edit in sorted(edits, key=lambda e: e[0]):
        if edit[0] < last_end:
            continue
        chosen.append(edit)
        last_end = edit[1]
    out = source
    for start, end, replacement, _ in reversed(chosen):
        out = out[:start] + replacement + out[end:]
    applied: List[str] = []
    for edit in chosen:
        if edit[3] not in applied:
            applied.append(edit[3])
    return out, applied


def repair_ast(text: str) -> Tuple[str, List[str]]:
    """Apply the syntax-tree repairs; returns the text and the repair names."""
    src = text or ""
    parser = _get_parser()
    if parser is None or not src.strip():
        return src, []
    try:
        source = src.encode("utf-8")
        tree = parser.parse(source)
        if tree.root_node.has_error:
            dbg("ast_repair: snippet does not parse cleanly, skipping")
            return src, []
        edits = _collect_edits(src, tree.root_node)
        if not edits:
            return src, []
        repaired, applied = _splice(source, edits)
        if parser.parse(repaired).root_node.has_error:
            dbg("ast_repair: repaired snippet no longer parses, keeping original")
            return src, []
        return repaired.decode("utf-8"), applied
    except Exception as e:
        dbg(f"ast_repair: failed: {e}")
        return src, []


def try_repair_ast(text: str) -> str:
    return repair_ast(text)[0]
