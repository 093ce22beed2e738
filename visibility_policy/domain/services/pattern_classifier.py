"""
Pattern Classifier

Assigns external artifacts (external repository names such as
``@com_google_guava_guava``) to at most one visibility group using
include/exclude glob rules.

Matching:
    1. Every include pattern of every rule is compiled into a glob matcher.
    2. A rule claims an artifact when one of its include patterns matches
       and none of its own exclude patterns matches (excludes are a pure OR
       over the rule's exclude set).
    3. If the surviving rules belong to more than one group the artifact is
       ambiguous; if none survive the artifact is unclassified.

Glob dialect (applied to the name after the ``@`` or ``//`` sigil is removed):
    *       any characters within one path segment
    **      any characters across segments
    ?       one character other than ``/``
    [abc]   character class, ``[!abc]`` negated (a leading ``^`` is literal)
    {a,b}   alternatives
    \\x      literal ``x``

A ``//foo/...`` pattern is rewritten to ``foo/**``.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from visibility_policy.domain.models.errors import AmbiguousMatchError, InvalidPatternError
from visibility_policy.domain.models.policy import PatternRule
from visibility_policy.domain.models.results import ClassificationReport

logger = logging.getLogger(__name__)

EXTERNAL_SIGIL = "@"
CANONICAL_SIGIL = "@@"

_REPEATED_SLASHES = re.compile(r"/{2,}")


# ---------------------------------------------------------------------------
# Glob compilation (pure functions)
# ---------------------------------------------------------------------------

def glob_body(pattern: str) -> str:
    """Strip the repository sigil from a pattern and normalise separators."""
    body = pattern.strip()
    if body.startswith(EXTERNAL_SIGIL):
        body = body[1:]
    elif body.startswith("//"):
        body = body[2:]
        if body.endswith("/..."):
            body = body[: -len("/...")] + "/**"
    return _REPEATED_SLASHES.sub("/", body)


def translate_glob(glob: str) -> str:
    """Translate a glob into an (unanchored) regular expression."""
    out: List[str] = []
    in_group = False
    i, n = 0, len(glob)

    while i < n:
        c = glob[i]
        i += 1
        if c == "\\":
            if i >= n:
                raise ValueError("dangling escape at end of pattern")
            out.append(re.escape(glob[i]))
            i += 1
        elif c == "*":
            if i < n and glob[i] == "*":
                out.append(".*")
                i += 1
            else:
                out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            j = i
            negate = j < n and glob[j] == "!"
            if negate:
                j += 1
            if j < n and glob[j] == "]":
                j += 1
            while j < n and glob[j] != "]":
                j += 1
            if j >= n:
                raise ValueError("missing ']' in character class")
            body = glob[i + 1 if negate else i:j]
            body = body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]").replace("^", "\\^")
            if "/" in body:
                raise ValueError("explicit '/' not allowed in character class")
            out.append(f"[^/{body}]" if negate else f"[{body}]")
            i = j + 1
        elif c == "{":
            if in_group:
                raise ValueError("groups '{...}' cannot be nested")
            out.append("(?:")
            in_group = True
        elif c == "}" and in_group:
            out.append(")")
            in_group = False
        elif c == "," and in_group:
            out.append("|")
        else:
            out.append(re.escape(c))

    if in_group:
        raise ValueError("missing '}' in group")
    return "".join(out)


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a sigil-prefixed pattern into a regular expression."""
    body = glob_body(pattern)
    if not body:
        raise ValueError("pattern is empty")
    return re.compile(translate_glob(body))


def normalize_artifact_name(name: Optional[str]) -> str:
    """
    Turn an external repository name into the matchable form.

    A single leading ``@`` is accepted; a canonical ``@@`` name is a caller
    error.
    """
    if name is None or not name.strip():
        raise ValueError("External repository name must not be empty")
    value = name.strip()
    if value.startswith(CANONICAL_SIGIL):
        raise ValueError(
            f"Invalid repository name. A canonical label is not expected here: {name}"
        )
    if value.startswith(EXTERNAL_SIGIL):
        value = value[1:]
    value = _REPEATED_SLASHES.sub("/", value)
    if not value:
        raise ValueError(f"External repository name must not be empty: {name!r}")
    return value


# ---------------------------------------------------------------------------
# Compiled rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompiledRule:
    """A pattern rule with its exclude matchers compiled."""
    rule: PatternRule
    excludes: Tuple[re.Pattern[str], ...]

    def is_excluded(self, name: str) -> bool:
        return any(p.fullmatch(name) for p in self.excludes)


@dataclass(frozen=True)
class IncludeMatcher:
    """One compiled include pattern pointing at the rule that owns it."""
    pattern: str
    matcher: re.Pattern[str]
    owner: CompiledRule

    def claims(self, name: str) -> bool:
        return self.matcher.fullmatch(name) is not None and not self.owner.is_excluded(name)


def _compile_rule(rule: PatternRule) -> Tuple[CompiledRule, List[Tuple[str, re.Pattern[str]]]]:
    for pattern in sorted(rule.include_patterns):
        if not pattern.startswith(EXTERNAL_SIGIL) or pattern.startswith(CANONICAL_SIGIL):
            raise InvalidPatternError(
                rule.owner_group, pattern,
                "all include_patterns must begin with '@'",
                rule.defining_label,
            )

    def _compile(pattern: str) -> re.Pattern[str]:
        try:
            return compile_glob(pattern)
        except (ValueError, re.error) as e:
            raise InvalidPatternError(rule.owner_group, pattern, str(e), rule.defining_label) from e

    excludes = tuple(_compile(p) for p in sorted(rule.exclude_patterns))
    includes = [(p, _compile(p)) for p in sorted(rule.include_patterns)]
    return CompiledRule(rule=rule, excludes=excludes), includes


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class PatternClassifier:
    """
    Immutable arena of compiled include matchers.

    Example:
        >>> classifier = PatternClassifier.build([
        ...     PatternRule("G1", {"@foo-*"}, {"@foo-internal-*"}),
        ... ])
        >>> classifier.classify("foo-api")
        'G1'
        >>> classifier.classify("foo-internal-api") is None
        True
    """

    def __init__(self, matchers: Sequence[IncludeMatcher]) -> None:
        self._matchers: Tuple[IncludeMatcher, ...] = tuple(matchers)

    @classmethod
    def build(cls, rules: Iterable[PatternRule]) -> "PatternClassifier":
        """
        Compile all rules.

        Rules without include patterns are skipped. Raises
        ``InvalidPatternError`` naming the owner group for any include
        pattern outside the external namespace or any malformed glob.
        """
        matchers: List[IncludeMatcher] = []
        ordered = sorted(
            rules,
            key=lambda r: (r.owner_group, r.defining_label or "", sorted(r.include_patterns)),
        )
        for rule in ordered:
            if not rule.include_patterns:
                logger.debug(f"Skipping {rule}: no include patterns")
                continue
            compiled, includes = _compile_rule(rule)
            for pattern, matcher in includes:
                matchers.append(IncludeMatcher(pattern=pattern, matcher=matcher, owner=compiled))

        logger.debug(f"Compiled {len(matchers)} include patterns")
        return cls(matchers)

    def __len__(self) -> int:
        return len(self._matchers)

    @property
    def rules(self) -> List[PatternRule]:
        seen: Dict[int, PatternRule] = {}
        for m in self._matchers:
            seen.setdefault(id(m.owner), m.owner.rule)
        return list(seen.values())

    def matching_rules(self, artifact_name: str) -> List[PatternRule]:
        """Rules that claim the artifact after exclude filtering (deduplicated)."""
        name = normalize_artifact_name(artifact_name)
        claimed: Dict[int, PatternRule] = {}
        for m in self._matchers:
            if m.claims(name):
                claimed.setdefault(id(m.owner), m.owner.rule)
        return list(claimed.values())

    def classify(self, artifact_name: str) -> Optional[str]:
        """
        Owning group of an artifact, or ``None`` when no rule claims it.

        Raises:
            AmbiguousMatchError: rules of more than one group claim the artifact
            ValueError: empty or canonical (``@@``) artifact name
        """
        rules = self.matching_rules(artifact_name)
        groups = {r.owner_group for r in rules}
        if len(groups) > 1:
            raise AmbiguousMatchError(
                normalize_artifact_name(artifact_name),
                groups,
                [r.defining_label for r in rules if r.defining_label],
            )
        return next(iter(groups), None)

    def classify_all(
        self,
        artifact_names: Iterable[str],
        max_workers: Optional[int] = None,
    ) -> ClassificationReport:
        """
        Classify a batch of artifacts, collecting ambiguities per artifact.

        With ``max_workers`` greater than one the artifacts are classified on
        a thread pool; the report is identical either way.
        """
        names = sorted({normalize_artifact_name(n) for n in artifact_names})

        def _one(name: str) -> Tuple[str, Optional[str], Optional[AmbiguousMatchError]]:
            try:
                return name, self.classify(name), None
            except AmbiguousMatchError as e:
                return name, None, e

        if max_workers and max_workers > 1 and len(names) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes = list(pool.map(_one, names))
        else:
            outcomes = [_one(n) for n in names]

        report = ClassificationReport()
        unclassified: List[str] = []
        for name, group, error in outcomes:
            if error is not None:
                logger.warning(str(error))
                report.errors[name] = error
            elif group is None:
                unclassified.append(name)
            else:
                report.assignments[name] = group
        report.unclassified = tuple(unclassified)
        return report
