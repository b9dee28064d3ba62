"""Translate shell-style masks into regular expressions over remote names."""

import re
from typing import Iterable


def glob_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a mask where `*` is any run of characters and `?` one character.

    Every other character, including `[` and `]`, is matched literally.
    """
    translated = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(translated, re.DOTALL)


def filter_names(names: Iterable[str], pattern: str) -> list[str]:
    """Names matching `pattern` as a whole, in their original order."""
    regex = glob_to_regex(pattern)
    return [name for name in names if regex.fullmatch(name)]
