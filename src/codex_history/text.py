"""Text helpers shared by the indexer, the history query and previews.

`is_boilerplate_text` is the single predicate deciding whether a piece of
text is injected context (environment blocks, IDE context, instruction
files) rather than something the user actually typed.
"""

import re

EMPTY_SESSION_TEXT = "(empty session)"

FIRST_TEXT_LIMIT = 80
LAST_TEXT_LIMIT = 200

# Case-insensitive substrings marking injected context
BOILERPLATE_MARKERS = (
    "<environment_context>",
    "<user_instructions>",
    "<permissions instructions>",
    "agents.md",
    "# context from my ide setup",
    "系统提示词",
    "mcp 调用规则",
    "你是一个资深全栈技术专家",
)

# Case-insensitive prefixes marking injected context
BOILERPLATE_PREFIXES = (
    "## active file:",
    "## open tabs:",
    "<instructions>",
    "<user_instructions>",
)

_REQUEST_HEADING = re.compile(r"##\s*My request for Codex:\s*(.+)$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


def is_boilerplate_text(text: str | None) -> bool:
    """Check whether text is injected system/instruction content.

    Empty text is not boilerplate; callers decide what absence means.

    Args:
        text: Text to classify

    Returns:
        True if the text looks like injected context
    """
    if not text:
        return False

    stripped = text.strip()
    if not stripped:
        return False

    lowered = stripped.lower()
    if any(marker in lowered for marker in BOILERPLATE_MARKERS):
        return True
    if lowered.startswith(BOILERPLATE_PREFIXES):
        return True

    # A lone tag-wrapped block carries no user words
    return stripped.startswith("<") and stripped.endswith(">")


def extract_user_request(text: str | None) -> str:
    """Return the user's own words from an IDE-wrapped prompt.

    IDE integrations prepend context and put the prompt under a
    "## My request for Codex:" heading.
    """
    if not text:
        return ""
    match = _REQUEST_HEADING.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def clean_text(text: str | None) -> str:
    """Collapse line breaks and whitespace runs into single spaces."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def truncate(text: str, limit: int) -> str:
    """Cut text to limit characters, marking the cut with '...'."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def matches_search(haystack: str, search: str | None) -> bool:
    """Check that every whitespace-separated term occurs in haystack.

    Matching is case-insensitive substring matching; an empty search
    matches everything.
    """
    if not search:
        return True
    lowered = haystack.lower()
    return all(term in lowered for term in search.lower().split())
