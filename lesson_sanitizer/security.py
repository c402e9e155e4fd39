"""Denylist scan over raw generator output.

Matching is case-sensitive and covers the whole text, string literals and
comments included: the snippet is later executed verbatim.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple

from . import config
from .types import SECURITY_VIOLATION, Defect


@dataclass(frozen=True)
class DenylistCategory:
    name: str
    label: str
    patterns: Tuple["re.Pattern[str]", ...]

    def first_match(self, text: str) -> Optional[str]:
        for pattern in self.patterns:
            m = pattern.search(text)
            if m:
                return m.group(0)
        return None


@dataclass
class SecurityScan:
    is_valid: bool
    errors: List[Defect] = field(default_factory=list)

    @property
    def categories(self) -> List[str]:
        return [d.kind for d in self.errors]


def _compile(*patterns: str) -> Tuple["re.Pattern[str]", ...]:
    return tuple(re.compile(p) for p in patterns)


@lru_cache(maxsize=8)
def denylist(trusted_import: str) -> Tuple[DenylistCategory, ...]:
    trusted = re.escape(trusted_import)
    return (
        DenylistCategory(
            "html_injection",
            "dynamic HTML injection",
            _compile(
                r"dangerouslySetInnerHTML",
                r"\.innerHTML\s*=",
                r"\.outerHTML\s*=",
                r"insertAdjacentHTML",
            ),
        ),
        DenylistCategory(
            "code_evaluation",
            "eval function",
            _compile(
                r"eval\s*\(",
                r"(?<![\w$])set(?:Timeout|Interval)\s*\(\s*[\"'`]",
            ),
        ),
        DenylistCategory(
            "function_constructor",
            "Function constructor",
            _compile(r"(?<![\w$])Function\s*\("),
        ),
        DenylistCategory(
            "dom_manipulation",
            "direct DOM or location manipulation",
            _compile(
                r"document\.write",
                r"window\.location",
                r"document\.location",
                r"window\.open\s*\(",
                r"document\.domain",
            ),
        ),
        DenylistCategory(
            "browser_storage",
            "persistent browser storage access",
            _compile(
                r"localStorage\.",
                r"sessionStorage\.",
                r"indexedDB",
                r"document\.cookie",
            ),
        ),
        DenylistCategory(
            "network_access",
            "outbound network call",
            _compile(
                r"(?<![\w$])fetch\s*\(",
                r"XMLHttpRequest",
                r"(?<![\w$])WebSocket\b",
                r"(?<![\w$])EventSource\b",
                r"navigator\.sendBeacon",
                r"(?<![\w$])axios\.",
            ),
        ),
        DenylistCategory(
            "external_import",
            "external imports",
            _compile(
                rf"import\s+[^;\n]*?from\s+[\"'](?!{trusted}[\"'])",
                rf"(?<![\w$.])import\s+[\"'](?!{trusted}[\"'])",
                r"(?<![\w$.])import\s*\(",
                r"(?<![\w$.])require\s*\(",
            ),
        ),
    )


def scan(text: str) -> SecurityScan:
    """Check every denylist category; one violation per matched category."""
    src = text or ""
    errors: List[Defect] = []
    for category in denylist(config.TRUSTED_IMPORT):
        fragment = category.first_match(src)
        if fragment is None:
            continue
        errors.append(
            Defect(
                SECURITY_VIOLATION,
                category.name,
                f"Dangerous pattern detected: {category.label} ({fragment.strip()})",
            )
        )
    return SecurityScan(is_valid=not errors, errors=errors)
