"""Match rules: one small class per way an issue selector can show up in source.

Rules only answer "does this line match?" so ranking can be tested
without touching the filesystem. ``rules_for_issue`` maps an issue's
category to the set of rules to run.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable

from pixelens.core.models import Issue, MatchKind

_IDENT = r"[A-Za-z_][\w-]*"
_TAG_NAME_RE = re.compile(r"^[A-Za-z][\w-]*")
_QUALIFIER_RE = re.compile(r"([.#])(" + _IDENT + ")")


class MatchRule(ABC):
    """Abstract base class for all line match rules."""

    kind: MatchKind = MatchKind.FALLBACK

    def __init__(self, target: str) -> None:
        self.target = target

    @abstractmethod
    def matches(self, line: str) -> bool:
        ...

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.target == self.target  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.target))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target!r})"


class ClassRule(MatchRule):
    """``class="..."`` / ``className='...'`` containing the name as a token."""

    kind = MatchKind.CLASS

    def __init__(self, target: str) -> None:
        super().__init__(target)
        name = re.escape(target)
        self._pattern = re.compile(
            r"(?<![\w-])(?:class|className)\s*=\s*"
            r"(?:\"(?:[^\"]*\s)?" + name + r"(?:\s[^\"]*)?\""
            r"|'(?:[^']*\s)?" + name + r"(?:\s[^']*)?')",
            re.IGNORECASE,
        )

    def matches(self, line: str) -> bool:
        return self._pattern.search(line) is not None


class IdRule(MatchRule):
    """``id="name"`` or ``id='name'``."""

    kind = MatchKind.ID

    def __init__(self, target: str) -> None:
        super().__init__(target)
        name = re.escape(target)
        self._pattern = re.compile(
            r"(?<![\w-])id\s*=\s*(?:\"" + name + r"\"|'" + name + r"')",
            re.IGNORECASE,
        )

    def matches(self, line: str) -> bool:
        return self._pattern.search(line) is not None


class TagRule(MatchRule):
    """``<name`` as a whole tag name, so ``img`` never hits ``<imgcaption``."""

    kind = MatchKind.TAG

    def __init__(self, target: str) -> None:
        super().__init__(target)
        self._pattern = re.compile(r"<" + re.escape(target) + r"(?=[\s/>]|$)", re.IGNORECASE)

    def matches(self, line: str) -> bool:
        return self._pattern.search(line) is not None


class CssRule(MatchRule):
    """Selector text on a line that opens a rule or holds a declaration."""

    kind = MatchKind.CSS

    def matches(self, line: str) -> bool:
        return self.target in line and ("{" in line or ":" in line)


class SubstringRule(MatchRule):
    """Case-sensitive raw substring on the original line."""

    kind = MatchKind.FALLBACK

    def matches(self, line: str) -> bool:
        return self.target in line


class PlainTextRule(MatchRule):
    """Case-insensitive substring, used by the generic project search."""

    kind = MatchKind.PLAIN

    def __init__(self, target: str) -> None:
        super().__init__(target)
        self._needle = target.lower()

    def matches(self, line: str) -> bool:
        return self._needle in line.lower()


def selector_rules(fragment: str) -> list[MatchRule]:
    """Classify one selector fragment by its leading character.

    ``.logo`` -> class, ``#hero`` -> id, anything else -> tag. A compound
    fragment such as ``img.logo`` also yields rules for its ``.``/``#``
    qualifiers after the leading rule.
    """
    fragment = fragment.strip()
    if not fragment:
        return []

    rules: list[MatchRule] = []
    head = fragment[0]
    if head in ".#":
        match = re.match(_IDENT, fragment[1:])
        if not match:
            return []
        rules.append(ClassRule(match.group(0)) if head == "." else IdRule(match.group(0)))
        rest = fragment[1 + match.end():]
    else:
        match = _TAG_NAME_RE.match(fragment)
        if not match:
            return []
        rules.append(TagRule(match.group(0)))
        rest = fragment[match.end():]

    for marker, name in _QUALIFIER_RE.findall(rest):
        rule = ClassRule(name) if marker == "." else IdRule(name)
        if rule not in rules:
            rules.append(rule)
    return rules


def _accessibility_rules(issue: Issue) -> list[MatchRule]:
    rules: list[MatchRule] = []
    for fragment in issue.selector_fragments:
        for rule in selector_rules(fragment):
            if rule not in rules:
                rules.append(rule)
    return rules


def _styling_rules(issue: Issue) -> list[MatchRule]:
    return [CssRule(fragment) for fragment in dict.fromkeys(issue.selector_fragments)]


def _fallback_rules(issue: Issue) -> list[MatchRule]:
    terms = list(issue.selector_fragments)
    fix = issue.suggested_fix.strip()
    if fix:
        terms.append(fix)
    return [SubstringRule(term) for term in dict.fromkeys(terms)]


RULE_BUILDERS: dict[str, Callable[[Issue], list[MatchRule]]] = {
    "accessibility": _accessibility_rules,
    "styling": _styling_rules,
}


def rules_for_issue(issue: Issue) -> list[MatchRule]:
    """Pick the rule set for an issue's category (fallback for unknown ones)."""
    builder = RULE_BUILDERS.get(issue.normalized_category, _fallback_rules)
    return builder(issue)


def rules_for_term(term: str) -> list[MatchRule]:
    """A raw term from the user is matched like a fallback substring."""
    return [SubstringRule(term)] if term else []
