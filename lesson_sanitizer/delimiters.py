"""String- and comment-aware balanced-delimiter scanning for JSX snippets.

One left-to-right pass over an explicit frame stack. Brackets and, when tag
tracking is on, JSX tags share the stack. Text between an element's tags is
read as markup, so quotes and parentheses there are plain text; anything
inside ``{...}`` is read as script again.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .utils import line_of

BRACKET_PAIRS: Dict[str, str] = {"(": ")", "[": "]", "{": "}"}

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)

MODE_NORMAL = "normal"
MODE_STRING = "in_string"
MODE_LINE_COMMENT = "in_line_comment"
MODE_BLOCK_COMMENT = "in_block_comment"

ISSUE_UNMATCHED = "unmatched_closer"
ISSUE_MISMATCH = "mismatch"
ISSUE_UNCLOSED = "unclosed"
ISSUE_UNTERMINATED_TAG = "unterminated_tag"
ISSUE_UNTERMINATED_STRING = "unterminated_string"

_TAG_NAME_RE = re.compile(r"[A-Za-z][\w.:-]*")
_TAG_CLOSE_RE = re.compile(r"</\s*([A-Za-z][\w.:-]*)?\s*>")
_MARKUP_PRECEDERS = frozenset("(,[{=?:&|;}>")
_KEYWORDS_BEFORE_MARKUP = frozenset({"return", "yield", "default", "case", "else", "in", "of", "await"})


@dataclass
class Frame:
    kind: str  # "bracket" or "tag"
    token: str  # opener character, or tag name ("" for fragments)
    pos: int
    phase: str = ""  # tags: "attrs" until the opener's ">" is seen, then "children"

    @property
    def display(self) -> str:
        if self.kind == "tag":
            return f"<{self.token}>"
        return self.token


@dataclass
class DelimiterIssue:
    kind: str
    message: str
    pos: int
    opener: Optional[Frame] = None
    closer: str = ""
    closer_end: int = -1
    closes_deeper: bool = False

    @property
    def involves_tag(self) -> bool:
        return self.closer.startswith("</") or (self.opener is not None and self.opener.kind == "tag")


@dataclass
class DelimiterScan:
    issues: List[DelimiterIssue] = field(default_factory=list)
    unclosed: List[Frame] = field(default_factory=list)
    closed_at: Optional[int] = None

    @property
    def balanced(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> List[str]:
        return [issue.message for issue in self.issues]

    @property
    def only_unclosed(self) -> bool:
        return len(self.issues) == 1 and self.issues[0].kind == ISSUE_UNCLOSED

    @property
    def unclosed_tags(self) -> List[Frame]:
        return [f for f in self.unclosed if f.kind == "tag"]

    @property
    def cost(self) -> int:
        """Issue count weighted by open frames; used to compare two texts."""
        return len(self.issues) + len(self.unclosed)


class BracketStack:
    """Transient scan state: open frames plus the lexical mode."""

    def __init__(self) -> None:
        self.frames: List[Frame] = []
        self.mode = MODE_NORMAL
        self.quote = ""
        self.mode_start = -1

    @property
    def top(self) -> Optional[Frame]:
        return self.frames[-1] if self.frames else None

    def push(self, frame: Frame) -> None:
        self.frames.append(frame)

    def pop(self) -> Optional[Frame]:
        return self.frames.pop() if self.frames else None

    def context(self) -> str:
        top = self.top
        if top is None or top.kind == "bracket":
            return "script"
        return "attrs" if top.phase == "attrs" else "markup"

    def enter(self, mode: str, pos: int, quote: str = "") -> None:
        self.mode = mode
        self.quote = quote
        self.mode_start = pos

    def leave(self) -> None:
        self.mode = MODE_NORMAL
        self.quote = ""
        self.mode_start = -1


def _opens_markup(src: str, i: int, start: int) -> bool:
    nxt = src[i + 1] if i + 1 < len(src) else ""
    if not (nxt == ">" or _TAG_NAME_RE.match(src, i + 1)):
        return False
    j = i - 1
    while j >= start and src[j].isspace():
        j -= 1
    if j < start:
        return True
    prev = src[j]
    if prev in _MARKUP_PRECEDERS:
        return True
    if prev.isalnum() or prev in "_$":
        k = j
        while k >= start and (src[k].isalnum() or src[k] in "_$"):
            k -= 1
        return src[k + 1 : j + 1] in _KEYWORDS_BEFORE_MARKUP
    return False


def _open_tag(src: str, i: int, stack: BracketStack) -> int:
    if src[i + 1 : i + 2] == ">":
        stack.push(Frame("tag", "", i, "children"))
        return i + 2
    m = _TAG_NAME_RE.match(src, i + 1)
    stack.push(Frame("tag", m.group(0), i, "attrs"))
    return m.end()


def _close_bracket(stack: BracketStack, scan: DelimiterScan, ch: str, i: int, closers: Dict[str, str]) -> None:
    opener = closers[ch]
    top = stack.top
    if top is None:
        scan.issues.append(
            DelimiterIssue(ISSUE_UNMATCHED, f"Unmatched closing bracket: {ch}", i, closer=ch, closer_end=i + 1)
        )
    elif top.kind == "bracket" and top.token == opener:
        stack.pop()
    else:
        scan.issues.append(
            DelimiterIssue(
                ISSUE_MISMATCH,
                f"Mismatched brackets: {top.display} and {ch}",
                i,
                opener=top,
                closer=ch,
                closer_end=i + 1,
            )
        )
        stack.pop()


def _close_tag(stack: BracketStack, scan: DelimiterScan, name: str, i: int, end: int) -> None:
    closer = f"</{name}>"
    top = stack.top
    if top is not None and top.kind == "tag" and top.token == name:
        stack.pop()
        return
    match_idx = -1
    for idx in range(len(stack.frames) - 1, -1, -1):
        frame = stack.frames[idx]
        if frame.kind != "tag":
            break
        if frame.token == name:
            match_idx = idx
            break
    if match_idx >= 0:
        for frame in reversed(stack.frames[match_idx + 1 :]):
            scan.issues.append(
                DelimiterIssue(
                    ISSUE_MISMATCH,
                    f"Mismatched tags: {frame.display} and {closer}",
                    i,
                    opener=frame,
                    closer=closer,
                    closer_end=end,
                    closes_deeper=True,
                )
            )
        del stack.frames[match_idx:]
    elif top is not None and top.kind == "tag":
        scan.issues.append(
            DelimiterIssue(
                ISSUE_MISMATCH,
                f"Mismatched tags: {top.display} and {closer}",
                i,
                opener=top,
                closer=closer,
                closer_end=end,
            )
        )
        stack.pop()
    else:
        scan.issues.append(
            DelimiterIssue(ISSUE_UNMATCHED, f"Unmatched closing tag: {closer}", i, closer=closer, closer_end=end)
        )


def scan_delimiters(
    text: str,
    start: int = 0,
    end: Optional[int] = None,
    pairs: Optional[Dict[str, str]] = None,
    track_tags: bool = True,
    stop_when_balanced: bool = False,
) -> DelimiterScan:
    """Scan text[start:end] for unbalanced brackets and, optionally, JSX tags.

    With ``stop_when_balanced`` the scan returns as soon as the stack empties
    after having been non-empty; ``closed_at`` is then the offset just past
    the closing delimiter.
    """
    src = text or ""
    limit = len(src) if end is None else min(end, len(src))
    pairs = dict(BRACKET_PAIRS if pairs is None else pairs)
    if track_tags:
        # JSX expression containers always delimit script inside markup.
        pairs.setdefault("{", "}")
    closers = {v: k for k, v in pairs.items()}
    stack = BracketStack()
    scan = DelimiterScan()
    opened = False
    i = max(0, start)

    while i < limit:
        ch = src[i]
        nxt = src[i + 1] if i + 1 < limit else ""

        if stack.mode == MODE_STRING:
            if ch == "\\":
                i += 2
                continue
            if ch == stack.quote:
                stack.leave()
            i += 1
            continue
        if stack.mode == MODE_LINE_COMMENT:
            if ch == "\n":
                stack.leave()
            i += 1
            continue
        if stack.mode == MODE_BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                stack.leave()
                i += 2
            else:
                i += 1
            continue

        context = stack.context() if track_tags else "script"
        if context == "markup":
            if ch == "{":
                stack.push(Frame("bracket", "{", i))
                i += 1
            elif ch == "<" and nxt == "/":
                m = _TAG_CLOSE_RE.match(src, i)
                if m:
                    _close_tag(stack, scan, m.group(1) or "", i, m.end())
                    i = m.end()
                else:
                    i += 1
            elif ch == "<" and (nxt == ">" or _TAG_NAME_RE.match(src, i + 1)):
                i = _open_tag(src, i, stack)
            else:
                i += 1
        elif context == "attrs":
            top = stack.top
            if ch in "\"'":
                stack.enter(MODE_STRING, i, ch)
                i += 1
            elif ch == "{":
                stack.push(Frame("bracket", "{", i))
                i += 1
            elif ch == "/" and nxt == ">":
                stack.pop()
                i += 2
            elif ch == ">":
                if top.token.lower() in VOID_ELEMENTS:
                    stack.pop()
                else:
                    top.phase = "children"
                i += 1
            elif ch == "<":
                scan.issues.append(
                    DelimiterIssue(ISSUE_UNTERMINATED_TAG, f"Unterminated tag: {top.display}", top.pos, opener=top)
                )
                stack.pop()
            elif ch in closers:
                scan.issues.append(
                    DelimiterIssue(
                        ISSUE_MISMATCH,
                        f"Mismatched brackets: {top.display} and {ch}",
                        i,
                        opener=top,
                        closer=ch,
                        closer_end=i + 1,
                    )
                )
                i += 1
            else:
                i += 1
        else:
            if ch in "\"'`":
                stack.enter(MODE_STRING, i, ch)
                i += 1
            elif ch == "/" and nxt == "/":
                stack.enter(MODE_LINE_COMMENT, i)
                i += 2
            elif ch == "/" and nxt == "*":
                stack.enter(MODE_BLOCK_COMMENT, i)
                i += 2
            elif ch in pairs:
                stack.push(Frame("bracket", ch, i))
                i += 1
            elif ch in closers:
                _close_bracket(stack, scan, ch, i, closers)
                i += 1
            elif track_tags and ch == "<" and nxt == "/":
                m = _TAG_CLOSE_RE.match(src, i)
                if m:
                    _close_tag(stack, scan, m.group(1) or "", i, m.end())
                    i = m.end()
                else:
                    i += 1
            elif track_tags and ch == "<" and _opens_markup(src, i, start):
                i = _open_tag(src, i, stack)
            else:
                i += 1

        if stop_when_balanced:
            if stack.frames:
                opened = True
            elif opened:
                scan.closed_at = i
                return scan

    if stack.mode == MODE_STRING:
        scan.issues.append(
            DelimiterIssue(
                ISSUE_UNTERMINATED_STRING,
                f"Unterminated string literal opened with {stack.quote} on line {line_of(src, stack.mode_start)}",
                stack.mode_start,
            )
        )
    elif stack.mode == MODE_BLOCK_COMMENT:
        scan.issues.append(
            DelimiterIssue(
                ISSUE_UNTERMINATED_STRING,
                f"Unterminated block comment opened on line {line_of(src, stack.mode_start)}",
                stack.mode_start,
            )
        )
    if stack.frames:
        scan.unclosed = list(stack.frames)
        scan.issues.append(
            DelimiterIssue(
                ISSUE_UNCLOSED,
                "Unclosed openers: " + ", ".join(f.display for f in stack.frames),
                stack.frames[0].pos,
            )
        )
    return scan


def find_block_end(text: str, brace_pos: int) -> Optional[int]:
    """Offset just past the brace that closes the block opened at brace_pos."""
    return scan_delimiters(text, start=brace_pos, stop_when_balanced=True).closed_at
