"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are grammar-level facts and file-selection rules shared by the indexer.

For configurable values, see models.py (IndexerConfig, LoggingConfig, etc.).
"""

# =============================================================================
# Languages
# =============================================================================

BACKEND_LANGUAGES = frozenset({"rust"})
"""Languages whose declarations own command and event names."""

GENERIC_FRONTEND_LANGUAGE = "frontend-generic"
"""Placeholder counterpart language until a concrete frontend usage is seen."""

# =============================================================================
# File selection
# =============================================================================

SOURCE_EXTENSIONS = (
    ".rs",
    ".ts",
    ".mts",
    ".cts",
    ".tsx",
    ".js",
    ".mjs",
    ".cjs",
    ".jsx",
    ".vue",
)
"""Extensions considered by full scans and save events."""

EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".vscode",
        ".github",
        ".tarus",
        "docs",
        "target",
        "dist",
        "build",
        "gen",
    }
)
"""Directory names pruned from every walk, at any depth."""

EXCLUDED_FILE_NAMES = frozenset({"vite.config.ts"})
"""Build tooling files that never contain application symbols."""

EXCLUDED_SUFFIXES = (".d.ts",)
"""Declaration-only files (type stubs) are skipped."""

# =============================================================================
# Debug artifact
# =============================================================================

REGISTRY_DUMP_NAME = "registry.json"
"""File name of the developer-mode registry dump inside .tarus/."""
