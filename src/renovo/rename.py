"""Rule-chain renaming of file names.

Applies an ordered rule chain to one file name. The extension is split off
before any rule runs and reattached unchanged, so no rule can alter it.
Nothing here touches the filesystem.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from .rules import (
    AffixRule,
    CaseMode,
    CaseRule,
    RenameRule,
    ReplaceRule,
    SequenceRule,
)

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\S+")


def split_extension(filename: str) -> tuple[str, str]:
    """Split ``filename`` at its last dot into base name and extension.

    The extension keeps its leading dot. A name with no dot has no extension,
    while a dotfile such as ``.gitignore`` is all extension and has an empty
    base.
    """

    base, dot, tail = filename.rpartition(".")
    if not dot:
        return filename, ""
    return base, dot + tail


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


def apply_case(base: str, mode: CaseMode) -> str:
    """Apply a case transform to a base name.

    Parameters
    ----------
    base
        Name without extension.
    mode
        ``upper``/``lower`` transform everything; ``title`` capitalizes each
        whitespace-separated token; ``sentence`` capitalizes only the first
        character of the whole name.

    Returns
    -------
    str
        Transformed name.
    """

    if mode is CaseMode.UPPER:
        return base.upper()
    if mode is CaseMode.LOWER:
        return base.lower()
    if mode is CaseMode.TITLE:
        return _TOKEN_RE.sub(lambda m: _capitalize(m.group(0)), base)
    return _capitalize(base)


def format_sequence(value: int, pad_width: int) -> str:
    # zfill keeps the sign in front and never truncates
    return str(value).zfill(max(pad_width, 0))


def _apply_replace(
    base: str, rule: ReplaceRule, warnings: Optional[List[str]]
) -> str:
    def skip(reason: str) -> str:
        logger.debug("Replace rule %s skipped: %s", rule.id, reason)
        if warnings is not None:
            warnings.append(f"rule {rule.id}: {reason}")
        return base

    if not rule.use_regex:
        if not rule.search:
            return skip("empty search text")
        return base.replace(rule.search, rule.replacement)

    try:
        pattern = re.compile(rule.search)
        return pattern.sub(rule.replacement, base)
    except re.error as exc:
        return skip(f"invalid pattern {rule.search!r}: {exc}")


def apply_rule(
    base: str,
    rule: RenameRule,
    index: int,
    warnings: Optional[List[str]] = None,
) -> str:
    """Apply a single enabled rule to a base name (no extension)."""

    if isinstance(rule, ReplaceRule):
        return _apply_replace(base, rule, warnings)
    if isinstance(rule, AffixRule):
        return f"{rule.prefix}{base}{rule.suffix}"
    if isinstance(rule, CaseRule):
        return apply_case(base, rule.mode)
    if isinstance(rule, SequenceRule):
        number = format_sequence(rule.start + index, rule.pad_width)
        return f"{base}{rule.separator}{number}"
    raise TypeError(f"Unsupported rule type: {type(rule).__name__}")


def apply_rules(
    filename: str,
    rules: Sequence[RenameRule],
    index: int,
    warnings: Optional[List[str]] = None,
) -> str:
    """Run a rule chain over a file name.

    Parameters
    ----------
    filename
        File name (not a path) to transform.
    rules
        Ordered rule chain. Disabled rules are skipped.
    index
        Zero-based position of the file in its batch, used by sequence rules.
    warnings
        Optional list that collects a message for every rule step that was
        skipped as a no-op (invalid pattern, empty search).

    Returns
    -------
    str
        The new file name with the original extension reattached.
    """

    base, ext = split_extension(filename)
    for rule in rules:
        if not rule.enabled:
            continue
        base = apply_rule(base, rule, index, warnings)
    return base + ext
