"""Shared constants for thesis-lint.

For environment-based configuration (LLM provider, thresholds, etc.), use the env module:
    from common.env import env
    provider = env.llm_provider()
"""

# Bump when the persisted snapshot shape changes; older snapshots are then ignored
CACHE_VERSION = 2

# Folder (relative to the workspace root) holding snapshot files
DEFAULT_CACHE_DIR = ".thesis-lint"

# Source files picked up by the structural parser
TEX_SUFFIX = ".tex"

# Directories never scanned for source files
IGNORED_DIRS: set[str] = {
    ".git",
    "node_modules",
    DEFAULT_CACHE_DIR,
}

# Persisted snapshot families
ELEMENTS_FAMILY = "elements"
LOGIC_FAMILY = "logic"
LLM_FAMILY = "llm"

# Diagnostic source labels
LOGIC_SOURCE = "Thesis Logic"
LLM_SOURCE_PREFIX = "LLM:"

# Rule codes; each cached diagnostic is invalidated by its own rule's targets
PUNCTUATION_CODE = "PUNCTUATION_MISSING"
CAPTION_CODE = "CAPTION_MISSING"
SECTION_DENSITY_CODE = "SECTION_DENSITY"
ACRONYM_CODE = "ACRONYM_FIRST_USE"
LLM_REVIEW_CODE = "LLM_REVIEW"
