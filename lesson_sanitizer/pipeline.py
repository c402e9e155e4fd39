"""Orchestrates security scan, pre-check, repair, extraction and final validation."""

from typing import Any, Iterable, List, Mapping, Union

from . import config
from .ast_repair import repair_ast
from .extraction import extract_entry_point
from .repair import repair_candidate
from .security import scan
from .types import (
    EMPTY_INPUT,
    INPUT_TOO_LARGE,
    STRUCTURAL_DEFECT,
    TRUNCATED_OUTPUT,
    UNRECOVERABLE_TRUNCATION,
    Defect,
    SanitizeResult,
)
from .utils import dbg, dbg_dump
from .validator import validate

Chunk = Union[str, Mapping[str, Any]]


def _reject(stage: str, defects: List[Defect], repairs: List[str] = None) -> SanitizeResult:
    return SanitizeResult(
        accepted=False,
        errors=[str(d) for d in defects],
        defects=list(defects),
        repairs=list(repairs or []),
        stage=stage,
    )


def sanitize(raw: str) -> SanitizeResult:
    """Turn raw generator output into an accepted snippet or a rejection.

    A security violation is fatal and skips repair. Text that already
    validates is returned as-is (trimmed). Everything else goes through the
    repair tiers; the final validator alone decides acceptance.
    """
    text = raw or ""
    if not text.strip():
        return _reject("input", [Defect(STRUCTURAL_DEFECT, EMPTY_INPUT, "Generated code is empty")])
    if len(text) > config.MAX_INPUT_CHARS:
        return _reject(
            "input",
            [
                Defect(
                    STRUCTURAL_DEFECT,
                    INPUT_TOO_LARGE,
                    f"Generated code is too large ({len(text)} > {config.MAX_INPUT_CHARS} characters)",
                )
            ],
        )

    security = scan(text)
    if not security.is_valid:
        dbg(f"sanitize: security rejection ({', '.join(security.categories)})")
        return _reject("security", security.errors)

    candidate = text.strip()
    pre = validate(candidate)
    if pre.accepted:
        dbg("sanitize: pre-check accepted, no repair needed")
        return SanitizeResult(accepted=True, code=candidate, warnings=list(pre.warnings), stage="precheck")
    dbg(f"sanitize: pre-check found {len(pre.errors)} error(s): {'; '.join(pre.messages)}")
    dbg_dump("sanitize.raw", text)

    repaired, repairs = repair_candidate(candidate)
    extraction = extract_entry_point(repaired)
    if extraction.truncated:
        repairs.append("truncate_and_close")
    code = extraction.text.strip()
    if config.AST_REPAIR:
        code, ast_repairs = repair_ast(code)
        repairs.extend(ast_repairs)

    final = validate(code)
    dbg(f"sanitize: repairs={repairs} errors {len(pre.errors)} -> {len(final.errors)}")
    if final.accepted:
        return SanitizeResult(
            accepted=True, code=code, warnings=list(final.warnings), repairs=repairs, stage="final"
        )

    dbg_dump("sanitize.rejected", code)
    defects = list(final.errors)
    if extraction.truncated:
        defects.append(
            Defect(
                UNRECOVERABLE_TRUNCATION,
                TRUNCATED_OUTPUT,
                "Generated code was truncated and could not be closed into a valid component",
            )
        )
    result = _reject("final", defects, repairs)
    result.warnings = list(final.warnings)
    return result


def _chunk_text(chunk: Chunk) -> str:
    if isinstance(chunk, str):
        return chunk
    if isinstance(chunk, Mapping):
        content = chunk.get("content")
        return content if isinstance(content, str) else ""
    return ""


def sanitize_chunks(chunks: Iterable[Chunk]) -> SanitizeResult:
    """Join streamed generator pieces, then sanitize the whole."""
    return sanitize("".join(_chunk_text(c) for c in chunks or ()))
