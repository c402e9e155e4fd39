"""Structural acceptance checks for lesson snippets.

Every check runs; errors are aggregated in check order. Used as the
pre-check that decides whether repair is needed and as the final gate.
"""

import re
from typing import List

from . import config
from .delimiters import scan_delimiters
from .patterns import SIGNATURE_PATTERNS, entry_decl_re, mount_re
from .types import (
    CORRUPTION_SIGNATURE,
    DUPLICATE_ENTRY_POINT,
    DUPLICATE_MOUNT,
    ENTRY_POINT_PARAMETERS,
    MISSING_ENTRY_POINT,
    MISSING_JSX_RETURN,
    MISSING_MOUNT,
    MODULE_DECLARATION,
    MOUNT_NOT_TERMINAL,
    STRUCTURAL_DEFECT,
    UNBALANCED_DELIMITERS,
    Defect,
    ValidationResult,
)

_IMPORT_RE = re.compile(r"(?m)^\s*import\b")
_EXPORT_RE = re.compile(r"(?m)^\s*export\b")
_RETURN_RE = re.compile(r"\breturn\b")
_CONSOLE_RE = re.compile(r"\bconsole\.(log|debug|info|warn|error)\s*\(")
_INLINE_STYLE_RE = re.compile(r"\bstyle\s*=\s*\{\{")


def _defect(kind: str, message: str) -> Defect:
    return Defect(STRUCTURAL_DEFECT, kind, message)


def _check_entry_point(text: str) -> List[Defect]:
    name = config.ENTRY_POINT_NAME
    decls = list(entry_decl_re().finditer(text))
    if not decls:
        return [_defect(MISSING_ENTRY_POINT, f"Component must have a 'function {name}()' declaration")]
    errors: List[Defect] = []
    if any(m.group(1).strip() for m in decls):
        errors.append(_defect(ENTRY_POINT_PARAMETERS, f"Function must be declared as 'function {name}()' with no parameters"))
    if len(decls) > 1:
        errors.append(
            _defect(DUPLICATE_ENTRY_POINT, f"Component must declare 'function {name}()' exactly once (found {len(decls)})")
        )
    return errors


def _check_mount(text: str) -> List[Defect]:
    expected = f"{config.MOUNT_FUNCTION}(<{config.ENTRY_POINT_NAME} />)"
    mounts = list(mount_re().finditer(text))
    if not mounts:
        return [_defect(MISSING_MOUNT, f"Component must end with '{expected}'")]
    errors: List[Defect] = []
    if len(mounts) > 1:
        errors.append(_defect(DUPLICATE_MOUNT, f"'{expected}' must appear exactly once (found {len(mounts)})"))
    if text[mounts[-1].end() :].strip():
        errors.append(_defect(MOUNT_NOT_TERMINAL, f"Nothing may follow the '{expected}' call"))
    return errors


def _check_jsx_return(text: str) -> List[Defect]:
    if _RETURN_RE.search(text) and "<" in text:
        return []
    return [_defect(MISSING_JSX_RETURN, "Component must return JSX")]


def _check_module_declarations(text: str) -> List[Defect]:
    errors: List[Defect] = []
    if _IMPORT_RE.search(text):
        errors.append(_defect(MODULE_DECLARATION, "Snippets must not contain import statements"))
    if _EXPORT_RE.search(text):
        errors.append(_defect(MODULE_DECLARATION, "Snippets must not contain export statements"))
    return errors


def _check_signatures(text: str) -> List[Defect]:
    errors: List[Defect] = []
    for pattern in SIGNATURE_PATTERNS:
        fragment = pattern.detect(text)
        if fragment is not None:
            errors.append(_defect(CORRUPTION_SIGNATURE, pattern.describe(fragment)))
    return errors


def _check_balance(text: str) -> List[Defect]:
    return [_defect(UNBALANCED_DELIMITERS, msg) for msg in scan_delimiters(text).errors]


def _warnings(text: str) -> List[str]:
    warnings: List[str] = []
    if _CONSOLE_RE.search(text):
        warnings.append("Console logging left in generated code")
    if _INLINE_STYLE_RE.search(text):
        warnings.append("Inline style objects found; Tailwind classes are expected")
    return warnings


def validate(text: str) -> ValidationResult:
    src = text or ""
    errors: List[Defect] = []
    errors.extend(_check_entry_point(src))
    errors.extend(_check_mount(src))
    errors.extend(_check_jsx_return(src))
    errors.extend(_check_module_declarations(src))
    errors.extend(_check_signatures(src))
    errors.extend(_check_balance(src))
    return ValidationResult(accepted=not errors, errors=tuple(errors), warnings=tuple(_warnings(src)))
