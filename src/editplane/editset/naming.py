"""Case-preserving replacement.

The casing of the matched substring decides the casing of the replacement:

- all uppercase and longer than one character: ``WIDGET`` -> ``GADGET``
- first character uppercase: ``Widget`` -> ``Gadget``
- anything else: ``widget`` -> ``gadget``

A first character with no case (digit, ``_``, ``$``) lands in the lowercase
branch.
"""

from __future__ import annotations

import re


def preserve_case(match: str, replacement: str) -> str:
    if len(match) > 1 and match == match.upper() and match != match.lower():
        return replacement.upper()
    if match[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement.lower()


def compute_new_name(old_name: str, pattern: re.Pattern[str], replacement: str) -> str:
    """Apply :func:`preserve_case` to every match of ``pattern`` in ``old_name``."""
    return pattern.sub(lambda m: preserve_case(m.group(0), replacement), old_name)


def apply_filename_replacement(filename: str, pattern: str, replacement: str) -> str:
    """Literal, case-insensitive variant used for file renames."""
    regex = re.compile(re.escape(pattern), re.IGNORECASE)
    return compute_new_name(filename, regex, replacement)
