import unittest
from unittest import mock

from lesson_sanitizer import ast_repair
from lesson_sanitizer.ast_repair import parser_available, repair_ast, try_repair_ast


RESET_REVEAL = (
    "function GeneratedLesson() {\n"
    "  const [currentIndex, setCurrentIndex] = useState(0);\n"
    "  const [showAnswer, setShowAnswer] = useState(false);\n"
    "\n"
    "  function resetQuiz() {}\n"
    "\n"
    "  function revealAnswer() {\n"
    "  }\n"
    "\n"
    "  return (\n"
    "    <div>\n"
    "      <button onClick={resetQuiz}>Reset</button>\n"
    "      <button onClick={revealAnswer}>Reveal</button>\n"
    "    </div>\n"
    "  );\n"
    "}\n"
    "\n"
    "render(<GeneratedLesson />);"
)

EMPTY_BRANCHES = (
    "function GeneratedLesson() {\n"
    "  const [currentIndex, setCurrentIndex] = useState(0);\n"
    "  const [isComplete, setIsComplete] = useState(false);\n"
    '  const questions = ["a", "b"];\n'
    "\n"
    "  const goOn = () => {\n"
    "    if (currentIndex < questions.length - 1) {} else {}\n"
    "  };\n"
    "\n"
    "  return <button onClick={goOn}>Next</button>;\n"
    "}\n"
    "\n"
    "render(<GeneratedLesson />);"
)


@unittest.skipUnless(parser_available(), "tree-sitter-languages not installed")
class AstRepairTests(unittest.TestCase):
    def test_fills_reset_and_reveal_handlers(self) -> None:
        out, applied = repair_ast(RESET_REVEAL)
        self.assertEqual(applied, ["ast_fill_reset_handler", "ast_fill_reveal_handler"])
        self.assertIn(
            "  function resetQuiz() {\n"
            "    setCurrentIndex(0);\n"
            "    setShowAnswer(false);\n"
            "  }\n",
            out,
        )
        self.assertIn("  function revealAnswer() {\n    setShowAnswer(true);\n  }\n", out)

    def test_fills_empty_conditional_branches(self) -> None:
        out, applied = repair_ast(EMPTY_BRANCHES)
        self.assertEqual(applied, ["ast_fill_conditional"])
        self.assertIn(
            "    if (currentIndex < questions.length - 1) {\n"
            "      setCurrentIndex(currentIndex + 1);\n"
            "    } else {\n"
            "      setIsComplete(true);\n"
            "    }\n",
            out,
        )

    def test_reversed_condition_finishes_first(self) -> None:
        text = EMPTY_BRANCHES.replace(
            "currentIndex < questions.length - 1", "currentIndex >= questions.length - 1"
        )
        out, _ = repair_ast(text)
        self.assertIn(
            "{\n      setIsComplete(true);\n    } else {\n      setCurrentIndex(currentIndex + 1);\n    }",
            out,
        )

    def test_unrelated_condition_untouched(self) -> None:
        text = EMPTY_BRANCHES.replace("currentIndex < questions.length - 1", "ready")
        self.assertEqual(repair_ast(text), (text, []))

    def test_unknown_handler_untouched(self) -> None:
        text = RESET_REVEAL.replace("resetQuiz", "doSomething").replace("revealAnswer", "other")
        self.assertEqual(try_repair_ast(text), text)

    def test_parse_error_is_noop(self) -> None:
        text = "function GeneratedLesson() {\n  function resetQuiz() {}\n  return (<div>;\n"
        self.assertEqual(repair_ast(text), (text, []))


class AstRepairFallbackTests(unittest.TestCase):
    def test_missing_parser_is_noop(self) -> None:
        with mock.patch.object(ast_repair, "_get_parser", return_value=None):
            self.assertEqual(repair_ast(RESET_REVEAL), (RESET_REVEAL, []))
            self.assertEqual(try_repair_ast(RESET_REVEAL), RESET_REVEAL)

    def test_empty_text(self) -> None:
        self.assertEqual(repair_ast(""), ("", []))


if __name__ == "__main__":
    unittest.main()
