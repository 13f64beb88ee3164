"""Revision identifiers for quotations and drawings.

Two families are recognised and preserved:

* dotted numeric, ``"<major>.<minor>"`` (``"1.0"`` → ``"1.1"`` / ``"2.0"``)
* lettered, ``"Rev <Letters>[.<n>]"`` (``"Rev A"`` → ``"Rev A.1"`` / ``"Rev B"``)

Anything else falls back to the dotted defaults. ``next_revision`` never
raises.
"""

import enum
import re

from app.models.enums.quotation_status import RevisionAction


class RevisionKind(str, enum.Enum):
    minor = "minor"
    major = "major"


DEFAULT_MAJOR = 1
DEFAULT_MINOR = 0

# The whole identifier must be a revision; "Review 2" is not "Rev IEW".
_LETTERED = re.compile(r"rev\s+([a-z]{1,3})(?:\.\d+)?", re.IGNORECASE)
_DIGITS = re.compile(r"\s*(\d+)")


def revision_kind_for_action(action) -> RevisionKind:
    """Draft saves are minor revisions; updates and sends are major."""
    return RevisionKind.minor if RevisionAction(action) == RevisionAction.draft else RevisionKind.major


def _leading_int(part: str, default: int) -> int:
    match = _DIGITS.match(part)
    return int(match.group(1)) if match else default


def _next_letters(letters: str) -> str:
    # Spreadsheet-column increment: A→B, Z→AA, AZ→BA.
    chars = list(letters.upper())
    i = len(chars) - 1
    while i >= 0:
        if chars[i] != "Z":
            chars[i] = chr(ord(chars[i]) + 1)
            return "".join(chars)
        chars[i] = "A"
        i -= 1
    return "A" + "".join(chars)


def _next_dotted(current: str, kind: RevisionKind) -> str:
    major_part, _, minor_part = current.partition(".")
    major = _leading_int(major_part, DEFAULT_MAJOR) or DEFAULT_MAJOR
    minor = _leading_int(minor_part, DEFAULT_MINOR)
    if kind == RevisionKind.minor:
        return f"{major}.{minor + 1}"
    return f"{major + 1}.0"


def _next_lettered(current: str, kind: RevisionKind) -> str:
    match = _LETTERED.fullmatch(current)
    if not match:
        return "Rev A.1" if kind == RevisionKind.minor else "Rev B"

    letters = match.group(1).upper()
    if kind == RevisionKind.minor:
        return f"Rev {letters}.1"
    return f"Rev {_next_letters(letters)}"


def next_revision(current, kind) -> str:
    try:
        kind = RevisionKind(kind)
    except ValueError:
        kind = RevisionKind.minor

    text = current.strip() if isinstance(current, str) else ""

    if "." in text and "rev" not in text.lower():
        return _next_dotted(text, kind)
    if "rev" in text.lower():
        return _next_lettered(text, kind)
    return "1.1" if kind == RevisionKind.minor else "2.0"
