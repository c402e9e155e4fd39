"""Result types shared by the sanitization stages."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Defect categories
SECURITY_VIOLATION = "SecurityViolation"
STRUCTURAL_DEFECT = "StructuralDefect"
UNRECOVERABLE_TRUNCATION = "UnrecoverableTruncation"

# Structural error kinds
EMPTY_INPUT = "empty_input"
INPUT_TOO_LARGE = "input_too_large"
MISSING_ENTRY_POINT = "missing_entry_point"
ENTRY_POINT_PARAMETERS = "entry_point_parameters"
DUPLICATE_ENTRY_POINT = "duplicate_entry_point"
MISSING_MOUNT = "missing_mount"
DUPLICATE_MOUNT = "duplicate_mount"
MOUNT_NOT_TERMINAL = "mount_not_terminal"
MISSING_JSX_RETURN = "missing_jsx_return"
MODULE_DECLARATION = "module_declaration"
CORRUPTION_SIGNATURE = "corruption_signature"
UNBALANCED_DELIMITERS = "unbalanced_delimiters"
TRUNCATED_OUTPUT = "truncated_output"


@dataclass(frozen=True)
class Defect:
    category: str
    kind: str
    message: str

    def __str__(self) -> str:
        return f"{self.category}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    errors: Tuple[Defect, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def messages(self) -> List[str]:
        return [str(d) for d in self.errors]


@dataclass
class SanitizeResult:
    """Outcome of one sanitization run.

    Attributes:
        accepted: True when ``code`` satisfies the snippet contract.
        code: The sanitized snippet; None on rejection.
        errors: Human-readable reasons, one per defect, in detection order.
        defects: The same reasons with category and kind codes.
        warnings: Non-blocking observations from the final validation.
        repairs: Names of the repair patterns that changed the text.
        stage: Where the run ended ("security", "input", "precheck", "final").
    """

    accepted: bool
    code: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    defects: List[Defect] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    repairs: List[str] = field(default_factory=list)
    stage: str = ""

    @property
    def error_message(self) -> str:
        return "; ".join(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        if self.accepted:
            return {"accepted": True, "code": self.code}
        return {"accepted": False, "errors": list(self.errors)}
