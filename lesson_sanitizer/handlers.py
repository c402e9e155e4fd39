"""Canonical bodies for known lesson event handlers.

Generated lessons regularly ship handlers with an empty body. The catalogue
below maps a fixed set of handler names to a role and builds a body for that
role from the component's ``useState`` declarations. It is deliberately not
exhaustive: a name missing from ``HANDLER_ROLES``, or a role whose state
cannot be inferred, leaves the handler unchanged.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

ROLE_SUBMIT = "submit"
ROLE_ADVANCE = "advance"
ROLE_RESET = "reset"
ROLE_REVEAL = "reveal"

HANDLER_ROLES: Dict[str, str] = {
    "handleSubmit": ROLE_SUBMIT,
    "handleAnswer": ROLE_SUBMIT,
    "handleAnswerSubmit": ROLE_SUBMIT,
    "handleSubmitAnswer": ROLE_SUBMIT,
    "submitAnswer": ROLE_SUBMIT,
    "checkAnswer": ROLE_SUBMIT,
    "handleCheckAnswer": ROLE_SUBMIT,
    "handleNext": ROLE_ADVANCE,
    "handleNextQuestion": ROLE_ADVANCE,
    "nextQuestion": ROLE_ADVANCE,
    "goToNext": ROLE_ADVANCE,
    "handleReset": ROLE_RESET,
    "handleRestart": ROLE_RESET,
    "resetQuiz": ROLE_RESET,
    "resetGame": ROLE_RESET,
    "restartQuiz": ROLE_RESET,
    "restartGame": ROLE_RESET,
    "handleReveal": ROLE_REVEAL,
    "handleRevealAnswer": ROLE_REVEAL,
    "handleShowAnswer": ROLE_REVEAL,
    "revealAnswer": ROLE_REVEAL,
}

TEXT_TIER_ROLES = frozenset({ROLE_SUBMIT, ROLE_ADVANCE})
AST_TIER_ROLES = frozenset({ROLE_RESET, ROLE_REVEAL})

_STATE_RE = re.compile(
    r"(?m)(?:const|let|var)\s*\[\s*([A-Za-z_$][\w$]*)\s*,\s*([A-Za-z_$][\w$]*)\s*\]\s*=\s*"
    r"(?:React\.)?useState\s*(?:<[^>\n]*>)?\s*\(([^;\n]*?)\)\s*;?[ \t]*$"
)
_LENGTH_RE = re.compile(r"\b([A-Za-z_$][\w$]*)\.length\b")
_NUMBER_RE = re.compile(r"^\d+$")
_INDEX_HINT_RE = re.compile(r"(?i)index|idx|current|step|question|page|slide|round|level")
_FINISH_HINT_RE = re.compile(r"(?i)finish|complete|done|result|over|end|summary")
_REVEAL_HINT_RE = re.compile(r"(?i)reveal|answer|feedback|hint|explanation")
_SHOW_HINT_RE = re.compile(r"(?i)^(show|is)")
_ADVANCE_FIRST_RE = re.compile(r"<|!=")


@dataclass(frozen=True)
class StateVar:
    name: str
    setter: str
    initial: str

    @property
    def is_flag(self) -> bool:
        return self.initial == "false"


def handler_role(name: str) -> Optional[str]:
    return HANDLER_ROLES.get(name or "")


def find_state_vars(text: str) -> List[StateVar]:
    """``useState`` declarations written on a single line, in source order."""
    out: List[StateVar] = []
    for m in _STATE_RE.finditer(text or ""):
        initial = m.group(3).strip() or "undefined"
        out.append(StateVar(m.group(1), m.group(2), initial))
    return out


def index_state(state_vars: Sequence[StateVar]) -> Optional[StateVar]:
    numeric = [v for v in state_vars if _NUMBER_RE.match(v.initial) and _INDEX_HINT_RE.search(v.name)]
    if not numeric:
        return None
    for v in numeric:
        if re.search(r"(?i)index|current", v.name):
            return v
    return numeric[0]


def finish_state(state_vars: Sequence[StateVar]) -> Optional[StateVar]:
    for v in state_vars:
        if v.is_flag and _FINISH_HINT_RE.search(v.name):
            return v
    return None


def reveal_state(state_vars: Sequence[StateVar]) -> Optional[StateVar]:
    flags = [v for v in state_vars if v.is_flag]
    for v in flags:
        if _REVEAL_HINT_RE.search(v.name):
            return v
    for v in flags:
        if _SHOW_HINT_RE.search(v.name) and not _FINISH_HINT_RE.search(v.name):
            return v
    return None


def collection_name(text: str, state_vars: Sequence[StateVar]) -> Optional[str]:
    """First ``<name>.length`` operand that is not the index state itself."""
    index = index_state(state_vars)
    for m in _LENGTH_RE.finditer(text or ""):
        if index is None or m.group(1) != index.name:
            return m.group(1)
    return None


def _advance_lines(state_vars: Sequence[StateVar], collection: Optional[str]) -> Optional[List[str]]:
    index = index_state(state_vars)
    if index is None:
        return None
    step = f"{index.setter}({index.name} + 1);"
    if not collection:
        return [step]
    lines = [f"if ({index.name} < {collection}.length - 1) {{", f"  {step}", "}"]
    finish = finish_state(state_vars)
    if finish is not None:
        lines[-1] = "} else {"
        lines.extend([f"  {finish.setter}(true);", "}"])
    return lines


def canonical_body(role: str, state_vars: Sequence[StateVar], collection: Optional[str] = None) -> Optional[List[str]]:
    """Body lines (unindented) for a handler role, or None when unknown."""
    if role in (ROLE_SUBMIT, ROLE_ADVANCE):
        return _advance_lines(state_vars, collection)
    if role == ROLE_RESET:
        lines = [f"{v.setter}({v.initial});" for v in state_vars]
        return lines or None
    if role == ROLE_REVEAL:
        flag = reveal_state(state_vars)
        if flag is None:
            return None
        return [f"{flag.setter}(true);"]
    return None


def advance_or_finish_branches(
    condition: str, state_vars: Sequence[StateVar]
) -> Optional[Tuple[List[str], List[str]]]:
    """Consequence/alternative lines for an index-vs-length conditional."""
    index = index_state(state_vars)
    finish = finish_state(state_vars)
    if index is None or finish is None:
        return None
    if not re.search(rf"(?<![\w$]){re.escape(index.name)}(?![\w$])", condition) or ".length" not in condition:
        return None
    advance = [f"{index.setter}({index.name} + 1);"]
    done = [f"{finish.setter}(true);"]
    if _ADVANCE_FIRST_RE.search(condition):
        return advance, done
    return done, advance


def render_block(lines: Sequence[str], indent: str) -> str:
    body = "".join(f"{indent}  {line}\n" for line in lines)
    return "{\n" + body + indent + "}"
