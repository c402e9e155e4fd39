import os

# Entry-point contract
ENTRY_POINT_NAME = os.getenv("LS_ENTRY_POINT", "GeneratedLesson")
MOUNT_FUNCTION = os.getenv("LS_MOUNT_FUNCTION", "render")
# The one UI library the sandbox supplies implicitly
TRUSTED_IMPORT = os.getenv("LS_TRUSTED_IMPORT", "react")

# Repair knobs
AST_REPAIR = os.getenv("LS_AST_REPAIR", "true").lower() in ("1", "true", "yes")
AST_LANGUAGE = os.getenv("LS_AST_LANGUAGE", "tsx")
# Upper bound on closing tags the closure tier may append
MAX_CLOSURE_TAGS = int(os.getenv("LS_MAX_CLOSURE_TAGS", "6"))
MAX_TAG_FIXES = int(os.getenv("LS_MAX_TAG_FIXES", "8"))
MAX_INPUT_CHARS = int(os.getenv("LS_MAX_INPUT_CHARS", "200000"))

DEBUG = os.getenv("LS_DEBUG", "").lower() in ("1", "true", "yes")
DEBUG_LOG_PATH = os.getenv("LS_DEBUG_LOG", "lesson-sanitizer-debug.log")
# LS_DEBUG_DUMP_VERBOSE=1: write full snippets to the debug log (no truncation).
DEBUG_DUMP_VERBOSE = os.getenv("LS_DEBUG_DUMP_VERBOSE", "false").lower() in ("1", "true", "yes")
DEBUG_DUMP_MAX_LINES = int(os.getenv("LS_DEBUG_DUMP_MAX_LINES", "20"))
DEBUG_DUMP_MAX_CHARS = int(os.getenv("LS_DEBUG_DUMP_MAX_CHARS", "2000"))
