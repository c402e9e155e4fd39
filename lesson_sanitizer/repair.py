"""Text-level repair of raw lesson snippets.

An ordered chain of narrow rewrites, grouped in tiers. ``repair`` is total:
a rewrite that fails, or that leaves the delimiter balance worse than it
found it, is dropped and the text carries on unchanged.
"""

import re
from typing import List, Optional, Tuple

from . import config
from .delimiters import ISSUE_MISMATCH, ISSUE_UNCLOSED, ISSUE_UNMATCHED, DelimiterIssue, scan_delimiters
from .handlers import (
    TEXT_TIER_ROLES,
    canonical_body,
    collection_name,
    find_state_vars,
    handler_role,
    render_block,
)
from .patterns import (
    EMPTY_ARROW_RE,
    EMPTY_FUNCTION_RE,
    TIER_CLEANUP,
    TIER_CLOSURE,
    TIER_CONDITIONAL,
    TIER_DUPLICATION,
    TIER_EMPTY_BODY,
    TIER_ENTRY,
    TIER_TAG_PAIR,
    TIER_TYPO,
    RepairPattern,
    entry_decl_re,
    mount_re,
    signature_patterns,
)
from .utils import dbg, indent_at


# ---------- Cleanup tier ----------

_FENCE_LINE_RE = re.compile(r"(?m)^[ \t]*```[\w-]*[ \t]*(?:\n|$)")
_EXPORT_PREFIX_RE = re.compile(r"(?m)^([ \t]*)export\s+(?:default\s+)?(?=(?:async\s+)?function\b)")
_EXPORT_STATEMENT_RE = re.compile(
    r"(?m)^[ \t]*export\s+(?:default\s+[A-Za-z_$][\w$]*|\{[^}\n]*\})\s*;?[ \t]*(?:\n|$)"
)


def _trusted_import_re() -> "re.Pattern[str]":
    trusted = re.escape(config.TRUSTED_IMPORT)
    return re.compile(
        rf"(?m)^[ \t]*import\s+(?:[^;\n]*?\s+from\s+)?[\"']{trusted}[\"'][ \t]*;?[ \t]*(?:\n|$)"
    )


def _detect_carriage_returns(text: str) -> Optional[str]:
    return "\\r" if "\r" in text else None


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _detect_fences(text: str) -> Optional[str]:
    m = _FENCE_LINE_RE.search(text)
    return m.group(0).strip() if m else None


def _strip_fences(text: str) -> str:
    return _FENCE_LINE_RE.sub("", text)


def _detect_module_declarations(text: str) -> Optional[str]:
    for pattern in (_trusted_import_re(), _EXPORT_PREFIX_RE, _EXPORT_STATEMENT_RE):
        m = pattern.search(text)
        if m:
            return m.group(0).strip() or "export"
    return None


def _strip_module_declarations(text: str) -> str:
    out = _trusted_import_re().sub("", text)
    out = _EXPORT_PREFIX_RE.sub(r"\1", out)
    return _EXPORT_STATEMENT_RE.sub("", out)


# ---------- Entry-point tier ----------

_COMPONENT_DECL_RE = re.compile(r"\bfunction\s+([A-Z][\w$]*)\s*\(\s*\)")


def _arrow_component_re(name: str) -> "re.Pattern[str]":
    return re.compile(
        rf"\b(?:const|let|var)\s+{re.escape(name)}\s*(?::\s*[^=;]+?)?=\s*\(\s*\)\s*(?::\s*[^=;{{]+?)?=>\s*\{{"
    )


def _mount_of_re(name: str) -> "re.Pattern[str]":
    mount = re.escape(config.MOUNT_FUNCTION)
    return re.compile(rf"(?<![\w$.]){mount}\(\s*<\s*{re.escape(name)}\s*/>\s*\)")


def _mounted_names(text: str) -> List[str]:
    mount = re.escape(config.MOUNT_FUNCTION)
    pattern = re.compile(rf"(?<![\w$.]){mount}\(\s*<\s*([A-Z][\w$]*)\s*/>\s*\)")
    return [m.group(1) for m in pattern.finditer(text)]


def _is_declared(text: str, name: str) -> bool:
    if re.search(rf"\bfunction\s+{re.escape(name)}\s*\(\s*\)", text):
        return True
    return bool(_arrow_component_re(name).search(text))


def _entry_alias(text: str) -> Optional[str]:
    """Name of the component to adopt as the entry point, if unambiguous."""
    entry = config.ENTRY_POINT_NAME
    if entry_decl_re().search(text):
        return None
    if _arrow_component_re(entry).search(text):
        return entry
    for name in reversed(_mounted_names(text)):
        if name != entry and _is_declared(text, name):
            return name
    components = sorted(set(_COMPONENT_DECL_RE.findall(text)))
    if len(components) == 1:
        return components[0]
    return None


def _adopt_entry_point(text: str) -> str:
    target = _entry_alias(text)
    if target is None:
        return text
    entry = config.ENTRY_POINT_NAME
    out = _arrow_component_re(target).sub(f"function {entry}() {{", text, count=1)
    out = re.sub(rf"\bfunction\s+{re.escape(target)}\s*\(\s*\)", f"function {entry}()", out, count=1)
    if target != entry:
        out = _mount_of_re(target).sub(f"{config.MOUNT_FUNCTION}(<{entry} />)", out)
    return out


# ---------- Empty-body tier ----------


def _fillable_handlers(text: str) -> List[str]:
    names: List[str] = []
    for pattern in (EMPTY_ARROW_RE, EMPTY_FUNCTION_RE):
        for m in pattern.finditer(text):
            if handler_role(m.group("name")) in TEXT_TIER_ROLES:
                names.append(m.group("name"))
    return names


def _detect_fillable_handler(text: str) -> Optional[str]:
    state_vars = find_state_vars(text)
    collection = collection_name(text, state_vars)
    for name in _fillable_handlers(text):
        if canonical_body(handler_role(name), state_vars, collection):
            return name
    return None


def _fill_known_handlers(text: str) -> str:
    state_vars = find_state_vars(text)
    collection = collection_name(text, state_vars)

    def _fill(m: "re.Match[str]") -> str:
        role = handler_role(m.group("name"))
        if role not in TEXT_TIER_ROLES:
            return m.group(0)
        lines = canonical_body(role, state_vars, collection)
        if not lines:
            return m.group(0)
        whole = m.group(0)
        head = whole[: whole.rfind("{")]
        return head + render_block(lines, m.group("indent"))

    out = EMPTY_ARROW_RE.sub(_fill, text)
    return EMPTY_FUNCTION_RE.sub(_fill, out)


# ---------- Structural-duplication tier ----------

_CLOSING_JUNK_RE = re.compile(r"(?:\s|[)\]};]|</[A-Za-z][\w.:-]*\s*>|</>|```)*")
_TRAILING_UNIT_RE = re.compile(r"((?:\s*</[A-Za-z][\w.:-]*\s*>)*\s*\)\s*;?\s*\}[ \t]*;?)(\s*)$")
_DOUBLE_RETURN_CLOSE_RE = re.compile(r"(\n[ \t]*\);[ \t]*)(?:\n[ \t]*\);[ \t]*)+(?=\n[ \t]*\})")
_ORPHAN_CLOSERS_RE = re.compile(
    r"(\n[ \t]*\);[ \t]*)((?:\n[ \t]*</[A-Za-z][\w.:-]*\s*>[ \t]*)+)(?=\n[ \t]*\})"
)
# Duplicated closing runs only ever sit near the end of a snippet.
_TAIL_WINDOW = 2000


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text)


def _last_mount(text: str) -> Optional["re.Match[str]"]:
    last = None
    for last in mount_re().finditer(text):
        pass
    return last


def _detect_tail_junk(text: str) -> Optional[str]:
    m = _last_mount(text)
    if m is None:
        return None
    tail = text[m.end() :]
    if tail.strip() and _CLOSING_JUNK_RE.fullmatch(tail):
        return tail.strip()
    return None


def _strip_tail_junk(text: str) -> str:
    if _detect_tail_junk(text) is None:
        return text
    return text[: _last_mount(text).end()]


def _duplicate_unit_span(text: str) -> Optional[Tuple[int, int]]:
    m = _last_mount(text)
    boundary = m.start() if m else len(text)
    offset = max(0, boundary - _TAIL_WINDOW)
    head = text[offset:boundary]
    unit = _TRAILING_UNIT_RE.search(head)
    if unit is None:
        return None
    squashed = _squash(unit.group(1))
    if squashed and _squash(head[: unit.start()]).endswith(squashed):
        return offset + unit.start(), offset + unit.end(1)
    return None


def _detect_duplicate_unit(text: str) -> Optional[str]:
    span = _duplicate_unit_span(text)
    return text[span[0] : span[1]].strip() if span else None


def _collapse_duplicate_units(text: str) -> str:
    out = text
    for _ in range(10):
        span = _duplicate_unit_span(out)
        if span is None:
            break
        out = out[: span[0]] + out[span[1] :]
    return out


# ---------- Tag-pair tier ----------


def _first_tag_issue(text: str) -> Optional[DelimiterIssue]:
    for issue in scan_delimiters(text).issues:
        if issue.kind in (ISSUE_MISMATCH, ISSUE_UNMATCHED) and issue.closer.startswith("</"):
            return issue
    return None


def _detect_tag_issue(text: str) -> Optional[str]:
    issue = _first_tag_issue(text)
    return issue.message if issue else None


def _drop_token(text: str, start: int, end: int) -> str:
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end < 0:
        line_end = len(text)
    if not (text[line_start:start] + text[end:line_end]).strip():
        return text[: max(0, line_start - 1)] + text[line_end:]
    return text[:start] + text[end:]


def _repair_tag_pairs(text: str) -> str:
    out = text
    for _ in range(config.MAX_TAG_FIXES):
        issue = _first_tag_issue(out)
        if issue is None:
            break
        if issue.kind == ISSUE_UNMATCHED:
            fixed = _drop_token(out, issue.pos, issue.closer_end)
        elif issue.closes_deeper:
            fixed = out[: issue.pos] + f"</{issue.opener.token}>" + out[issue.pos :]
        else:
            fixed = out[: issue.pos] + f"</{issue.opener.token}>" + out[issue.closer_end :]
        if fixed == out:
            break
        out = fixed
    return out


# ---------- Closure tier ----------

_RETURN_CLOSE_RE = re.compile(r"\)\s*;?\s*\}")


def _closure_plan(text: str):
    """Where and which closing tags to insert, or None.

    The gate reads the text as left by the earlier tiers, not the raw input:
    a snippet whose other balance defects were already repaired upstream
    (stray tail after the mount, a mistyped closer) still gets its missing
    closers. Only an "unclosed openers" scan qualifies.
    """
    decl = entry_decl_re().search(text)
    if decl is None:
        return None
    region_start = decl.start()
    scan = scan_delimiters(text, start=region_start)
    if not scan.only_unclosed:
        return None
    tags = scan.unclosed_tags
    if not tags or len(tags) > config.MAX_CLOSURE_TAGS:
        return None
    if any(f.phase == "attrs" for f in tags):
        return None
    m = _last_mount(text)
    boundary = m.start() if m is not None and m.start() > region_start else len(text)
    anchor = None
    for close in _RETURN_CLOSE_RE.finditer(text, region_start, boundary):
        anchor = close.start()
    if anchor is None or any(f.pos > anchor for f in tags):
        return None
    return region_start, anchor, tags


def _detect_unclosed_tags(text: str) -> Optional[str]:
    plan = _closure_plan(text)
    if plan is None:
        return None
    return ", ".join(f.display for f in plan[2])


def _append_missing_closers(text: str) -> str:
    plan = _closure_plan(text)
    if plan is None:
        return text
    region_start, anchor, tags = plan
    line_start = text.rfind("\n", 0, anchor) + 1
    if text[line_start:anchor].strip():
        at = anchor
        insert = "".join(f"</{f.token}>" for f in reversed(tags))
    else:
        at = line_start
        insert = "".join(f"{indent_at(text, f.pos)}</{f.token}>\n" for f in reversed(tags))
    candidate = text[:at] + insert + text[at:]
    after = scan_delimiters(candidate, start=region_start)
    if after.unclosed_tags or any(issue.kind != ISSUE_UNCLOSED for issue in after.issues):
        return text
    return candidate


def _regex_pattern(name: str, tier: str, pattern: "re.Pattern[str]", repl: str) -> RepairPattern:
    def detect(text: str) -> Optional[str]:
        m = pattern.search(text)
        return m.group(0).strip() if m else None

    def apply(text: str) -> str:
        return pattern.sub(repl, text)

    return RepairPattern(name, tier, detect, apply)


CATALOGUE: Tuple[RepairPattern, ...] = (
    RepairPattern("normalize_newlines", TIER_CLEANUP, _detect_carriage_returns, _normalize_newlines),
    RepairPattern("strip_markdown_fences", TIER_CLEANUP, _detect_fences, _strip_fences),
    RepairPattern("strip_module_declarations", TIER_CLEANUP, _detect_module_declarations, _strip_module_declarations),
    *signature_patterns(TIER_TYPO),
    RepairPattern("adopt_entry_point", TIER_ENTRY, _entry_alias, _adopt_entry_point),
    *[p for p in signature_patterns(TIER_CONDITIONAL) if p.action is not None],
    RepairPattern("fill_known_handlers", TIER_EMPTY_BODY, _detect_fillable_handler, _fill_known_handlers),
    RepairPattern("strip_tail_after_mount", TIER_DUPLICATION, _detect_tail_junk, _strip_tail_junk),
    RepairPattern("collapse_duplicate_closers", TIER_DUPLICATION, _detect_duplicate_unit, _collapse_duplicate_units),
    _regex_pattern("collapse_duplicate_return_close", TIER_DUPLICATION, _DOUBLE_RETURN_CLOSE_RE, r"\1"),
    _regex_pattern("strip_orphan_closing_tags", TIER_DUPLICATION, _ORPHAN_CLOSERS_RE, r"\1"),
    *signature_patterns(TIER_DUPLICATION),
    RepairPattern("repair_tag_pairs", TIER_TAG_PAIR, _detect_tag_issue, _repair_tag_pairs),
    RepairPattern("append_missing_closers", TIER_CLOSURE, _detect_unclosed_tags, _append_missing_closers),
)


def _balance_cost(text: str) -> int:
    return scan_delimiters(text).cost


def repair_candidate(text: str) -> Tuple[str, List[str]]:
    """Run the catalogue in order; returns the text and the names of applied repairs."""
    working = text or ""
    applied: List[str] = []
    cost = _balance_cost(working)
    for pattern in CATALOGUE:
        try:
            if pattern.detect(working) is None:
                continue
            candidate = pattern.action(working)
        except Exception as e:
            dbg(f"repair: {pattern.name} failed: {e}")
            continue
        if candidate == working:
            continue
        new_cost = _balance_cost(candidate)
        if new_cost > cost:
            dbg(f"repair: {pattern.name} reverted (balance cost {cost} -> {new_cost})")
            continue
        working = candidate
        cost = new_cost
        applied.append(pattern.name)
    return working, applied


def repair(text: str) -> str:
    return repair_candidate(text)[0]
