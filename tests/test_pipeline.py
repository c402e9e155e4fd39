import unittest
from unittest import mock

from lesson_sanitizer import config
from lesson_sanitizer.ast_repair import parser_available
from lesson_sanitizer.delimiters import scan_delimiters
from lesson_sanitizer.pipeline import sanitize, sanitize_chunks
from lesson_sanitizer.types import (
    EMPTY_INPUT,
    INPUT_TOO_LARGE,
    SECURITY_VIOLATION,
    TRUNCATED_OUTPUT,
    UNRECOVERABLE_TRUNCATION,
)


VALID = (
    "function GeneratedLesson() {\n"
    "  const [currentIndex, setCurrentIndex] = useState(0);\n"
    '  const questions = ["a", "b"];\n'
    "\n"
    "  return (\n"
    '    <div className="p-4">\n'
    "      <h2>Question {currentIndex + 1}</h2>\n"
    "      <button onClick={() => setCurrentIndex(currentIndex + 1)}>Next</button>\n"
    "    </div>\n"
    "  );\n"
    "}\n"
    "\n"
    "render(<GeneratedLesson />);"
)

SCENARIO_A = "function GeneratedLesson() { return (<div><h1>Hi</h1></div>); } render(<GeneratedLesson />);"

DENYLISTED = {
    "html_injection": '  const html = { __html: "<b>x</b>" };\n  el.innerHTML = html;\n',
    "code_evaluation": '  const total = eval("1 + 1");\n',
    "function_constructor": '  const add = new Function("a", "b", "return a + b");\n',
    "dom_manipulation": '  window.location.href = "/done";\n',
    "browser_storage": '  sessionStorage.setItem("i", currentIndex);\n',
    "network_access": '  fetch("/api/score");\n',
    "external_import": '  const _ = require("lodash");\n',
}


def _inject(line: str) -> str:
    return VALID.replace("\n  return (", "\n" + line + "  return (")


def _broken_inputs():
    return {
        "typo": VALID.replace("<h2>", '<inputype="text" onOnClick={go}>\n      <h2>'),
        "missing_closer": VALID.replace("    </div>\n  );", "  );"),
        "tail_junk": VALID + "\n    </div>\n  );\n}\n    </div>\n  );\n}",
        "fenced": "```jsx\nimport React from 'react';\n\n" + VALID + "\n```\n",
        "renamed": VALID.replace("GeneratedLesson", "FractionsQuiz"),
        "truncated": VALID[: VALID.index("    </div>") + len("    </div>")] + '\n  <p className="x',
    }


class ScenarioTests(unittest.TestCase):
    def test_scenario_a_accepted_unchanged(self) -> None:
        result = sanitize(SCENARIO_A)
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, SCENARIO_A)
        self.assertEqual(result.repairs, [])
        self.assertEqual(result.stage, "precheck")
        self.assertEqual(result.to_dict(), {"accepted": True, "code": SCENARIO_A})

    def test_scenario_b_typos_repaired(self) -> None:
        raw = VALID.replace("<h2>", '<inputype="text" onOnClick={go}>\n      <h2>')
        result = sanitize(raw)
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID.replace("<h2>", '<input type="text" onClick={go}>\n      <h2>'))
        self.assertIn("fix_inputype", result.repairs)
        self.assertIn("fix_duplicate_event_prefix", result.repairs)

    def test_scenario_c_missing_closer_appended(self) -> None:
        result = sanitize(VALID.replace("    </div>\n  );", "  );"))
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)
        self.assertEqual(result.repairs, ["append_missing_closers"])

    def test_scenario_d_eval_rejected_without_repair(self) -> None:
        raw = _inject('  const total = eval("1 + 1");\n').replace("</h2>", "</h3>")
        result = sanitize(raw)
        self.assertFalse(result.accepted)
        self.assertEqual(result.stage, "security")
        self.assertEqual(result.repairs, [])
        self.assertIsNone(result.code)
        self.assertEqual(
            result.errors, ['SecurityViolation: Dangerous pattern detected: eval function (eval()']
        )
        self.assertEqual(result.to_dict(), {"accepted": False, "errors": result.errors})

    def test_scenario_e_duplicate_tail_collapsed(self) -> None:
        result = sanitize(VALID + "\n    </div>\n  );\n}\n    </div>\n  );\n}")
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)
        self.assertIn("strip_tail_after_mount", result.repairs)


class PipelineTests(unittest.TestCase):
    def test_non_ascii_after_less_than_in_markup(self) -> None:
        for line in ("<p>Is 3 <π? Yes</p>", "<p>Café <é</p>"):
            raw = VALID.replace("Next</button>\n", "Next</button>\n      " + line + "\n")
            result = sanitize(raw)
            self.assertTrue(result.accepted, result.errors)
            self.assertEqual(result.code, raw)

    def test_empty_input(self) -> None:
        result = sanitize("  \n ")
        self.assertFalse(result.accepted)
        self.assertEqual(result.stage, "input")
        self.assertEqual([d.kind for d in result.defects], [EMPTY_INPUT])
        self.assertEqual(result.errors, ["StructuralDefect: Generated code is empty"])
        self.assertFalse(sanitize(None).accepted)

    def test_oversized_input(self) -> None:
        with mock.patch.object(config, "MAX_INPUT_CHARS", 50):
            result = sanitize(VALID)
        self.assertFalse(result.accepted)
        self.assertEqual([d.kind for d in result.defects], [INPUT_TOO_LARGE])

    def test_prose_rejected_with_reasons(self) -> None:
        result = sanitize("Sorry, I cannot build that lesson.")
        self.assertFalse(result.accepted)
        self.assertEqual(result.stage, "final")
        self.assertIn(
            "StructuralDefect: Component must have a 'function GeneratedLesson()' declaration", result.errors
        )
        self.assertTrue(result.error_message.startswith("StructuralDefect: "))

    def test_truncated_output_closed(self) -> None:
        result = sanitize(_broken_inputs()["truncated"])
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)
        self.assertIn("truncate_and_close", result.repairs)

    def test_unrecoverable_truncation(self) -> None:
        result = sanitize("function GeneratedLesson() {\n  const [a, setA] = useState(")
        self.assertFalse(result.accepted)
        self.assertEqual(result.defects[-1].category, UNRECOVERABLE_TRUNCATION)
        self.assertEqual(result.defects[-1].kind, TRUNCATED_OUTPUT)
        self.assertTrue(result.errors[-1].startswith("UnrecoverableTruncation: "))

    def test_fenced_output_with_import(self) -> None:
        result = sanitize(_broken_inputs()["fenced"])
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)

    def test_renamed_component(self) -> None:
        result = sanitize(_broken_inputs()["renamed"])
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)

    def test_duplicate_component_keeps_first(self) -> None:
        result = sanitize(VALID + "\n\n" + VALID)
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)

    def test_warnings_surface(self) -> None:
        result = sanitize(_inject("  console.log(currentIndex);\n"))
        self.assertTrue(result.accepted)
        self.assertEqual(result.warnings, ["Console logging left in generated code"])

    def test_chunks_joined(self) -> None:
        chunks = [VALID[:20], {"content": VALID[20:60]}, {"role": "assistant"}, VALID[60:]]
        result = sanitize_chunks(chunks)
        self.assertTrue(result.accepted, result.errors)
        self.assertEqual(result.code, VALID)

    @unittest.skipUnless(parser_available(), "tree-sitter-languages not installed")
    def test_ast_tier_fills_reset_handler(self) -> None:
        raw = _inject("  const resetQuiz = () => {};\n")
        result = sanitize(raw)
        self.assertTrue(result.accepted, result.errors)
        self.assertIn("  const resetQuiz = () => {\n    setCurrentIndex(0);\n  };\n", result.code)
        self.assertIn("ast_fill_reset_handler", result.repairs)

    def test_ast_tier_can_be_disabled(self) -> None:
        raw = _inject("  const resetQuiz = () => {};\n")
        with mock.patch.object(config, "AST_REPAIR", False):
            result = sanitize(raw)
        self.assertFalse(result.accepted)
        self.assertIn("StructuralDefect: Empty function bodies are not allowed: resetQuiz", result.errors)


class PropertyTests(unittest.TestCase):
    def _accepted(self):
        results = [sanitize(SCENARIO_A), sanitize(VALID)]
        results.extend(sanitize(raw) for raw in _broken_inputs().values())
        for result in results:
            self.assertTrue(result.accepted, result.errors)
        return results

    def test_idempotence(self) -> None:
        for result in self._accepted():
            again = sanitize(result.code)
            self.assertTrue(again.accepted)
            self.assertEqual(again.code, result.code)

    def test_balance_invariant(self) -> None:
        for result in self._accepted():
            self.assertTrue(scan_delimiters(result.code).balanced)

    def test_single_entry_point(self) -> None:
        for result in self._accepted():
            self.assertEqual(result.code.count("function GeneratedLesson("), 1)
            self.assertEqual(result.code.count("render(<GeneratedLesson />)"), 1)

    def test_denylist_completeness(self) -> None:
        for category, line in DENYLISTED.items():
            for raw in (_inject(line), _inject(line).replace("</h2>", "</h3>")):
                with self.subTest(category=category):
                    result = sanitize(raw)
                    self.assertFalse(result.accepted)
                    self.assertEqual(result.stage, "security")
                    self.assertIn(category, [d.kind for d in result.defects])
                    self.assertTrue(all(d.category == SECURITY_VIOLATION for d in result.defects))


if __name__ == "__main__":
    unittest.main()
