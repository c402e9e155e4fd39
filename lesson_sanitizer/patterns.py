"""Vocabulary of known-bad generator output shared by validation and repair.

Each ``RepairPattern`` pairs a detector with a narrow, anchored corrective
action. Patterns that carry a ``message`` are corruption signatures: the
validator reports them, the repair engine fixes them. The typo table is a
curated list of defects seen in real model output; it is meant to grow one
entry at a time, not to generalize.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from . import config

TIER_CLEANUP = "cleanup"
TIER_TYPO = "typo"
TIER_ENTRY = "entry_point"
TIER_CONDITIONAL = "conditional"
TIER_EMPTY_BODY = "empty_body"
TIER_TAG_PAIR = "tag_pair"
TIER_DUPLICATION = "duplication"
TIER_CLOSURE = "closure"
TIER_AST = "ast"


@dataclass(frozen=True)
class RepairPattern:
    name: str
    tier: str
    detector: Callable[[str], Optional[str]]
    action: Optional[Callable[[str], str]] = None
    message: str = ""

    def detect(self, text: str) -> Optional[str]:
        return self.detector(text or "")

    def describe(self, fragment: str) -> str:
        return self.message.format(fragment=fragment)


# ---------- Entry point / mount vocabulary ----------


def entry_decl_re() -> "re.Pattern[str]":
    """``function GeneratedLesson(<params>)``; group 1 holds the parameters."""
    name = re.escape(config.ENTRY_POINT_NAME)
    return re.compile(rf"\bfunction\s+{name}\s*\(([^)]*)\)")


def entry_open_re() -> "re.Pattern[str]":
    """Entry-point declaration up to and including the body's opening brace."""
    name = re.escape(config.ENTRY_POINT_NAME)
    return re.compile(rf"\bfunction\s+{name}\s*\([^)]*\)\s*(?::\s*[^{{;]+?)?\s*\{{")


def mount_re() -> "re.Pattern[str]":
    name = re.escape(config.ENTRY_POINT_NAME)
    mount = re.escape(config.MOUNT_FUNCTION)
    return re.compile(rf"(?<![\w$.]){mount}\(\s*<\s*{name}\s*/>\s*\)\s*;?")


def canonical_mount() -> str:
    return f"{config.MOUNT_FUNCTION}(<{config.ENTRY_POINT_NAME} />);"


# ---------- Detector / action builders ----------


def _literal(before: str) -> Callable[[str], Optional[str]]:
    def detect(text: str) -> Optional[str]:
        return before if before in text else None

    return detect


def _replace(before: str, after: str) -> Callable[[str], str]:
    def apply(text: str) -> str:
        return text.replace(before, after)

    return apply


def _search(pattern: "re.Pattern[str]", group: int = 0) -> Callable[[str], Optional[str]]:
    def detect(text: str) -> Optional[str]:
        m = pattern.search(text)
        return m.group(group) if m else None

    return detect


def _class_token(bad: str, good: str):
    pattern = re.compile(rf"(className\s*=\s*[\"'{{`][^\"'`]*?)\b{bad}\b")

    def apply(text: str) -> str:
        out = text
        for _ in range(20):
            fixed = pattern.sub(rf"\g<1>{good}", out)
            if fixed == out:
                break
            out = fixed
        return out

    return pattern, apply


# ---------- Signatures ----------

DUPLICATE_EVENT_PREFIX_RE = re.compile(r"\bon[Oo]n([A-Z][A-Za-z]*)(\s*=)")
SET_ANSWER_CALL_RE = re.compile(r"(?<![\w$.])setAnswer\s*\(")
SET_ANSWER_DECL_RE = re.compile(r"\bsetAnswer\s*\]")
SET_USER_ANSWER_DECL_RE = re.compile(r"\bsetUserAnswer\s*\]")
EMPTY_ELSE_CLOSE_RE = re.compile(r"\}\s*else\s*\{[ \t]*\n([ \t]*)\};")
INCOMPLETE_IF_ELSE_RE = re.compile(r"(?m)if\s*\([^)]*\)\s*\{\s*\}\s*else\s*\{\s*$")
EMPTY_CONDITIONAL_RE = re.compile(r"if\s*\([^{};]*\)\s*\{\s*\}\s*else\s*\{\s*\}")
EMPTY_ARROW_RE = re.compile(
    r"(?m)^(?P<indent>[ \t]*)(?:const|let|var)\s+(?P<name>[A-Za-z_$][\w$]*)\s*=\s*(?:async\s*)?"
    r"\([^()]*\)\s*(?::\s*[^=;{}]+?)?=>\s*\{\s*\}"
)
EMPTY_FUNCTION_RE = re.compile(
    r"(?m)^(?P<indent>[ \t]*)(?:async\s+)?function\s+(?P<name>[A-Za-z_$][\w$]*)\s*\([^()]*\)\s*\{\s*\}"
)
SVG_PRIMITIVE_RE = re.compile(r"<(rect|circle|ellipse|line|polygon|polyline|path)\b")
ORPHAN_SVG_ELEMENT_RE = re.compile(
    r"[ \t]*<(rect|circle|ellipse|line|polygon|polyline|path)\b[^<>]*?(?:/>|>\s*</\1\s*>)[ \t]*\n?"
)

_BORDER_ROUNDED_RE, _fix_border_rounded = _class_token("borderounded", "border rounded")
_ROUNDED_DISABLED_RE, _fix_rounded_disabled = _class_token("roundedisabled", "rounded disabled")


def _fix_duplicate_event_prefix(text: str) -> str:
    return DUPLICATE_EVENT_PREFIX_RE.sub(r"on\1\2", text)


def _detect_undeclared_set_answer(text: str) -> Optional[str]:
    if not SET_ANSWER_CALL_RE.search(text) or SET_ANSWER_DECL_RE.search(text):
        return None
    return "setAnswer("


def _fix_set_answer(text: str) -> str:
    if not SET_USER_ANSWER_DECL_RE.search(text):
        return text
    return SET_ANSWER_CALL_RE.sub("setUserAnswer(", text)


def _fix_empty_else(text: str) -> str:
    return EMPTY_ELSE_CLOSE_RE.sub(r"}\n\1};", text)


def _detect_empty_handler(text: str) -> Optional[str]:
    for pattern in (EMPTY_ARROW_RE, EMPTY_FUNCTION_RE):
        m = pattern.search(text)
        if m:
            return m.group("name")
    return None


def _detect_orphan_svg(text: str) -> Optional[str]:
    if "<svg" in text:
        return None
    m = SVG_PRIMITIVE_RE.search(text)
    return m.group(0) if m else None


def _strip_orphan_svg(text: str) -> str:
    if "<svg" in text:
        return text
    return ORPHAN_SVG_ELEMENT_RE.sub("", text)


SIGNATURE_PATTERNS = (
    RepairPattern(
        "fix_inputype",
        TIER_TYPO,
        _literal("<inputype="),
        _replace("<inputype=", "<input type="),
        "JSX syntax error: <inputype= should be <input type=",
    ),
    RepairPattern(
        "fix_button_click",
        TIER_TYPO,
        _literal("<buttonClick="),
        _replace("<buttonClick=", "<button onClick="),
        "JSX syntax error: <buttonClick= should be <button onClick=",
    ),
    RepairPattern(
        "fix_border_rounded",
        TIER_TYPO,
        _search(_BORDER_ROUNDED_RE),
        _fix_border_rounded,
        'CSS class error: "borderounded" should be "border rounded"',
    ),
    RepairPattern(
        "fix_rounded_disabled",
        TIER_TYPO,
        _search(_ROUNDED_DISABLED_RE),
        _fix_rounded_disabled,
        'CSS class error: "roundedisabled" should be "rounded disabled"',
    ),
    RepairPattern(
        "fix_duplicate_event_prefix",
        TIER_TYPO,
        _search(DUPLICATE_EVENT_PREFIX_RE),
        _fix_duplicate_event_prefix,
        'JSX syntax error: duplicated event prefix in "{fragment}"',
    ),
    RepairPattern(
        "fix_set_answer",
        TIER_TYPO,
        _detect_undeclared_set_answer,
        _fix_set_answer,
        'Variable name error: "setAnswer" is never declared (expected "setUserAnswer")',
    ),
    RepairPattern(
        "close_empty_else",
        TIER_CONDITIONAL,
        _search(EMPTY_ELSE_CLOSE_RE),
        _fix_empty_else,
        "Incomplete function with empty else block",
    ),
    RepairPattern(
        "incomplete_if_else",
        TIER_CONDITIONAL,
        _search(INCOMPLETE_IF_ELSE_RE),
        None,
        "Incomplete if/else statement detected",
    ),
    RepairPattern(
        "empty_conditional",
        TIER_AST,
        _search(EMPTY_CONDITIONAL_RE),
        None,
        "Conditional with empty branches: {fragment}",
    ),
    RepairPattern(
        "empty_handler_body",
        TIER_EMPTY_BODY,
        _detect_empty_handler,
        None,
        "Empty function bodies are not allowed: {fragment}",
    ),
    RepairPattern(
        "strip_orphan_svg",
        TIER_DUPLICATION,
        _detect_orphan_svg,
        _strip_orphan_svg,
        "SVG elements found without svg container",
    ),
)


def signature_patterns(tier: Optional[str] = None):
    return tuple(p for p in SIGNATURE_PATTERNS if tier is None or p.tier == tier)
