import unittest

from lesson_sanitizer.types import (
    CORRUPTION_SIGNATURE,
    DUPLICATE_MOUNT,
    ENTRY_POINT_PARAMETERS,
    MISSING_ENTRY_POINT,
    MISSING_JSX_RETURN,
    MISSING_MOUNT,
    MODULE_DECLARATION,
    MOUNT_NOT_TERMINAL,
    UNBALANCED_DELIMITERS,
)
from lesson_sanitizer.validator import validate


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


def _kinds(result):
    return [d.kind for d in result.errors]


class ValidatorTests(unittest.TestCase):
    def test_accepts_well_formed_snippet(self) -> None:
        result = validate(VALID)
        self.assertTrue(result.accepted, result.messages)
        self.assertEqual(result.errors, ())
        self.assertEqual(result.warnings, ())

    def test_missing_entry_point(self) -> None:
        result = validate(VALID.replace("function GeneratedLesson()", "function Lesson()"))
        self.assertFalse(result.accepted)
        self.assertIn(MISSING_ENTRY_POINT, _kinds(result))

    def test_entry_point_with_parameters(self) -> None:
        result = validate(VALID.replace("function GeneratedLesson()", "function GeneratedLesson(props)"))
        self.assertEqual(_kinds(result), [ENTRY_POINT_PARAMETERS])

    def test_missing_mount(self) -> None:
        result = validate(VALID.replace("render(<GeneratedLesson />);", ""))
        self.assertEqual(_kinds(result), [MISSING_MOUNT])
        self.assertEqual(
            result.messages, ["StructuralDefect: Component must end with 'render(<GeneratedLesson />)'"]
        )

    def test_mount_must_be_terminal(self) -> None:
        result = validate(VALID + "\nconst extra = 1;")
        self.assertEqual(_kinds(result), [MOUNT_NOT_TERMINAL])

    def test_duplicate_mount(self) -> None:
        result = validate(VALID + "\nrender(<GeneratedLesson />);")
        self.assertEqual(_kinds(result), [DUPLICATE_MOUNT])

    def test_module_declarations_rejected(self) -> None:
        result = validate("import React from 'react';\n" + VALID)
        self.assertEqual(_kinds(result), [MODULE_DECLARATION])

    def test_corruption_signature(self) -> None:
        result = validate(VALID.replace("<button onClick=", "<buttonClick="))
        self.assertIn(CORRUPTION_SIGNATURE, _kinds(result))
        self.assertIn(
            "StructuralDefect: JSX syntax error: <buttonClick= should be <button onClick=", result.messages
        )

    def test_empty_handler_signature(self) -> None:
        text = VALID.replace("  return (", "  const handleNext = () => {};\n\n  return (")
        result = validate(text)
        self.assertEqual(_kinds(result), [CORRUPTION_SIGNATURE])
        self.assertEqual(
            result.messages, ["StructuralDefect: Empty function bodies are not allowed: handleNext"]
        )

    def test_unbalanced_delimiters(self) -> None:
        result = validate(VALID.replace("    </div>\n  );", "  );"))
        self.assertEqual(_kinds(result), [UNBALANCED_DELIMITERS])
        self.assertEqual(result.messages, ["StructuralDefect: Unclosed openers: {, (, <div>"])

    def test_errors_aggregate_in_check_order(self) -> None:
        result = validate("")
        self.assertEqual(_kinds(result), [MISSING_ENTRY_POINT, MISSING_MOUNT, MISSING_JSX_RETURN])

    def test_warnings_do_not_block(self) -> None:
        text = VALID.replace("  return (", "  console.log(currentIndex);\n  return (")
        text = text.replace('className="p-4"', 'style={{ padding: 4 }}')
        result = validate(text)
        self.assertTrue(result.accepted, result.messages)
        self.assertEqual(
            list(result.warnings),
            [
                "Console logging left in generated code",
                "Inline style objects found; Tailwind classes are expected",
            ],
        )


if __name__ == "__main__":
    unittest.main()
