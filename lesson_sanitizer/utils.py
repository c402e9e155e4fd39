import os
import sys
import time

from . import config


def dbg(message: str):
    if not config.DEBUG:
        return
    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    line = f"[debug] [{ts} pid={os.getpid()}] {message}"
    print(line, file=sys.stderr)
    try:
        with open(config.DEBUG_LOG_PATH, "a") as f:
            f.write(line + "\n")
    except OSError:
        pass


def dbg_dump(label: str, text: str):
    """Dump a snippet to the debug log. Truncated unless LS_DEBUG_DUMP_VERBOSE is set."""
    if not config.DEBUG:
        return
    content = text or ""
    try:
        with open(config.DEBUG_LOG_PATH, "a") as f:
            if config.DEBUG_DUMP_VERBOSE:
                f.write(f"\n[debug_dump] {label}\n")
                f.write(content + "\n")
                return
            max_lines = config.DEBUG_DUMP_MAX_LINES
            max_chars = config.DEBUG_DUMP_MAX_CHARS
            lines = [ln for ln in content.splitlines() if ln.strip()]
            preview = "\n".join(lines[:max_lines])
            if len(preview) > max_chars:
                preview = preview[:max_chars]
            truncated = len(lines) > max_lines or len(content) > max_chars
            f.write(
                f"\n[debug_dump] {label} (len={len(content)})"
                f"{' …(truncated)' if truncated else ''}\n"
            )
            f.write(preview + "\n")
    except OSError:
        pass


def line_of(text: str, pos: int) -> int:
    """1-based line number of a character offset."""
    return (text or "").count("\n", 0, max(0, pos)) + 1


def indent_at(text: str, pos: int) -> str:
    """Leading whitespace of the line containing pos."""
    src = text or ""
    start = src.rfind("\n", 0, pos) + 1
    end = start
    while end < len(src) and src[end] in " \t":
        end += 1
    return src[start:end]
