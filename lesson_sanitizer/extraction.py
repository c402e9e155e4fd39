"""Isolate the entry-point component and re-attach the mount call.

The entry point's body is located with the delimiter scanner. When the body
never closes (truncated output), the text is cut after the last complete
JSX closing tag and the still-open delimiters are closed in order.
"""

import re
from dataclasses import dataclass, field
from typing import List

from .delimiters import BRACKET_PAIRS, find_block_end, scan_delimiters
from .patterns import canonical_mount, entry_open_re, mount_re
from .utils import dbg, indent_at

MODE_SPAN = "span"
MODE_TRUNCATED = "truncated"
MODE_MISSING = "missing"

_ROOT_TAG_RE = re.compile(r"\breturn\s*\(?\s*<([A-Za-z][\w.:-]*|>)")
_ANY_CLOSING_TAG_RE = re.compile(r"</[A-Za-z][\w.:-]*\s*>|</>")
_RETURN_BEFORE_RE = re.compile(r"\breturn\s*$")


@dataclass
class Extraction:
    text: str
    mode: str
    closers: List[str] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        return self.mode == MODE_TRUNCATED


def _cut_after_last_closing_tag(region: str) -> int:
    root = _ROOT_TAG_RE.search(region)
    if root:
        name = root.group(1)
        closer = "</>" if name == ">" else f"</{name}>"
        idx = region.rfind(closer)
        if idx > root.start():
            return idx + len(closer)
    last = None
    for last in _ANY_CLOSING_TAG_RE.finditer(region):
        pass
    return last.end() if last else -1


def _truncate_and_close(src: str, start: int) -> Extraction:
    region = src[start:]
    cut = _cut_after_last_closing_tag(region)
    if cut < 0:
        dbg("extract: truncated entry point has no complete closing tag")
        return Extraction(region, MODE_TRUNCATED)
    body = region[:cut].rstrip()
    scan = scan_delimiters(body)
    if not scan.only_unclosed or any(f.kind == "tag" and f.phase == "attrs" for f in scan.unclosed):
        dbg(f"extract: cannot close truncated body: {'; '.join(scan.errors)}")
        return Extraction(region, MODE_TRUNCATED)

    closers: List[str] = []
    for frame in reversed(scan.unclosed):
        if frame.kind == "tag":
            closer = f"</{frame.token}>"
        elif frame.token == "(" and _RETURN_BEFORE_RE.search(body[: frame.pos]):
            closer = ");"
        else:
            closer = BRACKET_PAIRS[frame.token]
        closers.append(closer)
        body += f"\n{indent_at(body, frame.pos)}{closer}"
    dbg(f"extract: closed truncated body with {' '.join(closers)}")
    return Extraction(body + "\n\n" + canonical_mount(), MODE_TRUNCATED, closers)


def extract_entry_point(text: str) -> Extraction:
    src = text or ""
    opening = entry_open_re().search(src)
    if opening is None:
        return Extraction(src, MODE_MISSING)
    end = find_block_end(src, opening.end() - 1)
    if end is None:
        return _truncate_and_close(src, opening.start())

    rest = src[end:]
    stripped = rest.lstrip()
    lead = rest[: len(rest) - len(stripped)]
    separator = lead if lead and mount_re().match(stripped) else "\n\n"
    return Extraction(src[opening.start() : end] + separator + canonical_mount(), MODE_SPAN)


def extract(text: str) -> str:
    return extract_entry_point(text).text
