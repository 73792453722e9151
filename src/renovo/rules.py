"""Rename rule types.

A rule chain is an ordered list of rules; each rule kind carries only the
fields it needs. Rules serialize to plain dicts so they can be stored as
presets or read from JSON rule files.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import ValidationError


def _new_id() -> str:
    return uuid.uuid4().hex[:8]


class CaseMode(Enum):
    UPPER = "upper"
    LOWER = "lower"
    TITLE = "title"
    SENTENCE = "sentence"


@dataclass
class ReplaceRule:
    """Replace every occurrence of ``search`` with ``replacement``.

    With ``use_regex`` the search text is a regular expression and the
    replacement may reference groups (``\\1``, ``\\g<name>``).
    """

    search: str = ""
    replacement: str = ""
    use_regex: bool = False
    id: str = field(default_factory=_new_id)
    enabled: bool = True

    kind = "replace"


@dataclass
class AffixRule:
    """Wrap the base name in ``prefix`` and ``suffix``."""

    prefix: str = ""
    suffix: str = ""
    id: str = field(default_factory=_new_id)
    enabled: bool = True

    kind = "affixes"


@dataclass
class CaseRule:
    mode: CaseMode = CaseMode.LOWER
    id: str = field(default_factory=_new_id)
    enabled: bool = True

    kind = "case"


@dataclass
class SequenceRule:
    """Append ``separator`` and the item's number (``start + index``)."""

    start: int = 1
    pad_width: int = 0
    separator: str = ""
    id: str = field(default_factory=_new_id)
    enabled: bool = True

    kind = "sequence"


RenameRule = Union[ReplaceRule, AffixRule, CaseRule, SequenceRule]

RULE_TYPES = {
    cls.kind: cls for cls in (ReplaceRule, AffixRule, CaseRule, SequenceRule)
}


def parse_case_mode(value: Union[str, CaseMode]) -> CaseMode:
    if isinstance(value, CaseMode):
        return value
    try:
        return CaseMode((value or "").strip().lower())
    except ValueError:
        choices = ", ".join(m.value for m in CaseMode)
        raise ValidationError(
            f"Unknown case mode '{value}'. Choose from: {choices}"
        ) from None


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Rule field '{name}' must be an integer") from None


def _as_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"Rule field '{name}' must be true or false")
    return value


_DOLLAR_TEMPLATE_RE = re.compile(r"\$(?:(\$)|\{(\w+)\}|(\w+))")


def dollar_template_to_python(template: str) -> str:
    """Translate a ``$1`` / ``${name}`` replacement template to ``re`` syntax.

    ``$$`` becomes a literal dollar sign and backslashes are escaped, so the
    result means the same thing when handed to :func:`re.sub`.
    """

    def convert(match: re.Match) -> str:
        if match.group(1):
            return "$"
        return f"\\g<{match.group(2) or match.group(3)}>"

    return _DOLLAR_TEMPLATE_RE.sub(convert, template.replace("\\", "\\\\"))


def rule_from_dict(data: Dict[str, Any]) -> RenameRule:
    """Build a rule from its dict record.

    Accepts the snake_case keys used by :func:`rule_to_dict` as well as the
    flat camelCase record (``useRegex``, ``caseType``, ``seqStart`` ...)
    where every kind shares one structure.

    Parameters
    ----------
    data
        Rule record with at least a ``type`` key.

    Returns
    -------
    RenameRule
        The rule instance for the record's kind.
    """

    if not isinstance(data, dict):
        raise ValidationError("A rule must be a JSON object")

    kind = str(data.get("type") or "").strip().lower()
    if kind not in RULE_TYPES:
        choices = ", ".join(RULE_TYPES)
        raise ValidationError(f"Unknown rule type '{kind}'. Choose from: {choices}")

    common = {"enabled": _as_bool(_pick(data, "enabled", default=True), "enabled")}
    if data.get("id"):
        common["id"] = str(data["id"])

    if kind == "replace":
        use_regex = _as_bool(
            _pick(data, "use_regex", "useRegex", default=False), "use_regex"
        )
        replacement = str(_pick(data, "replacement", "replace", default=""))
        if use_regex and "replacement" not in data and "replace" in data:
            # Flat records carry $1-style templates
            replacement = dollar_template_to_python(replacement)
        return ReplaceRule(
            search=str(_pick(data, "search", default="")),
            replacement=replacement,
            use_regex=use_regex,
            **common,
        )
    if kind == "affixes":
        return AffixRule(
            prefix=str(_pick(data, "prefix", default="")),
            suffix=str(_pick(data, "suffix", default="")),
            **common,
        )
    if kind == "case":
        mode = _pick(data, "mode", "caseType", "case_type", default="lower")
        return CaseRule(mode=parse_case_mode(mode), **common)
    return SequenceRule(
        start=_as_int(_pick(data, "start", "seqStart", default=1), "start"),
        pad_width=_as_int(_pick(data, "pad_width", "seqPad", default=0), "pad_width"),
        separator=str(_pick(data, "separator", "seqSeparator", default="")),
        **common,
    )


def rule_to_dict(rule: RenameRule) -> Dict[str, Any]:
    record: Dict[str, Any] = {"type": rule.kind, "id": rule.id, "enabled": rule.enabled}
    if isinstance(rule, ReplaceRule):
        record.update(
            search=rule.search, replacement=rule.replacement, use_regex=rule.use_regex
        )
    elif isinstance(rule, AffixRule):
        record.update(prefix=rule.prefix, suffix=rule.suffix)
    elif isinstance(rule, CaseRule):
        record["mode"] = rule.mode.value
    elif isinstance(rule, SequenceRule):
        record.update(
            start=rule.start, pad_width=rule.pad_width, separator=rule.separator
        )
    return record


def rules_from_json(text: str) -> List[RenameRule]:
    """Parse a JSON list of rule records."""

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid rule JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ValidationError("A rule chain must be a JSON list of rule objects")
    return [rule_from_dict(item) for item in data]


def load_rule_chain(path: Path) -> List[RenameRule]:
    """Read a rule chain from a JSON file.

    Parameters
    ----------
    path
        File containing a JSON list of rule records.

    Returns
    -------
    list
        Rules in file order.
    """

    return rules_from_json(Path(path).read_text(encoding="utf-8"))
