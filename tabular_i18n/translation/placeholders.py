"""
Placeholder Masking Module

Protects template parameters such as {name} from the translation service:
- mask(): replace every {param} with a marker the service leaves alone
- unmask(): restore the original {param} form from the markers

The marker wraps the parameter name in PLACEHOLDER_PREFIX/PLACEHOLDER_SUFFIX
and spells it one character at a time with CHAR_SEPARATOR between the
characters. Translation engines happily translate or re-punctuate a bare
word like "name", but leave a run of playing-card and heart emoji intact.
"""

import re
from typing import List, Tuple

from tabular_i18n.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PREFIX = "\U0001F0DF"  # 🃟
PLACEHOLDER_SUFFIX = "\U0001F0DF"  # 🃟
CHAR_SEPARATOR = "\u2764\ufe0f"  # ❤️

PLACEHOLDER_PATTERN = re.compile(r"\{([^}]+)\}")

_escaped_prefix = re.escape(PLACEHOLDER_PREFIX)
_escaped_suffix = re.escape(PLACEHOLDER_SUFFIX)
MARKER_PATTERN = re.compile(
    f"{_escaped_prefix}([^{_escaped_prefix}{_escaped_suffix}]+){_escaped_suffix}"
)


def _build_marker(param: str) -> str:
    return f"{PLACEHOLDER_PREFIX}{CHAR_SEPARATOR.join(param)}{PLACEHOLDER_SUFFIX}"


def mask(text: str) -> Tuple[str, List[str]]:
    """
    Replace {param} placeholders with translation-safe markers.

    Args:
        text: Source text, possibly containing {param} placeholders

    Returns:
        Tuple of (masked_text, params) where params lists the parameter
        names in order of appearance. Text without placeholders comes back
        unchanged with an empty list.

    Example:
        >>> mask("Hello {name}")
        ('Hello 🃟n❤️a❤️m❤️e🃟', ['name'])
    """
    params: List[str] = []

    def _replace(match: re.Match) -> str:
        param = match.group(1)
        params.append(param)
        return _build_marker(param)

    masked_text = PLACEHOLDER_PATTERN.sub(_replace, text)

    if params:
        logger.debug(f"Found placeholders: {', '.join(params)}")

    return masked_text, params


def unmask(text: str) -> str:
    """Restore {param} placeholders from markers produced by mask()."""
    return MARKER_PATTERN.sub(
        lambda match: "{" + match.group(1).replace(CHAR_SEPARATOR, "") + "}",
        text,
    )
