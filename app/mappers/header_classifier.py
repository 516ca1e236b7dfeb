"""
app/mappers/header_classifier.py

Header classification engine for lead CSV column mapping.

Each header is resolved in priority order: exact canonical name, fuzzy
similarity against the readable field names, keyword containment, and
finally the content of the column itself. The rule tables live in a frozen
ClassifierRules value so classification is a pure function of
(headers, samples, rules).
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from app.domain.lead_import import ColumnMapping, SemanticType, StandardHeaderMatch

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class KeywordRule:
    """
    Assigns semantic_type when any of `any_of` occurs in the header.

    `all_of` tokens must also be present and `none_of` tokens absent.
    `exact` headers match regardless of the other conditions.
    """

    semantic_type: SemanticType
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()
    none_of: tuple[str, ...] = ()
    exact: tuple[str, ...] = ()

    def matches(self, header: str) -> bool:
        if header in self.exact:
            return True
        if any(token in header for token in self.none_of):
            return False
        if not all(token in header for token in self.all_of):
            return False
        if self.any_of:
            return any(token in header for token in self.any_of)
        return bool(self.all_of)


@dataclass(frozen=True)
class ClassifierRules:
    """
    Versioned rule set consumed by HeaderClassifier.
    """

    version: str
    fuzzy_targets: tuple[tuple[SemanticType, str], ...]
    keyword_rules: tuple[KeywordRule, ...]
    fuzzy_threshold: float = 0.5
    profile_url_marker: str = "linkedin.com/in/"
    rescue_row_limit: int = 5
    sample_value_limit: int = 4


DEFAULT_CLASSIFIER_RULES = ClassifierRules(
    version="2",
    fuzzy_targets=(
        (SemanticType.PROFILE_URL, "profile url"),
        (SemanticType.FIRST_NAME, "first name"),
        (SemanticType.LAST_NAME, "last name"),
        (SemanticType.COMPANY, "company"),
        (SemanticType.COMPANY_URL, "company url"),
        (SemanticType.TITLE, "title"),
        (SemanticType.HEADLINE, "headline"),
        (SemanticType.LOCATION, "location"),
        (SemanticType.EMAIL, "email"),
    ),
    # Order matters: "Company URL" satisfies both the url and company rules.
    keyword_rules=(
        KeywordRule(SemanticType.PROFILE_URL, any_of=("linkedin",)),
        KeywordRule(SemanticType.PROFILE_URL, any_of=("url", "link"), none_of=("company",)),
        KeywordRule(SemanticType.COMPANY_URL, all_of=("company", "url"), none_of=("linkedin",)),
        KeywordRule(SemanticType.FIRST_NAME, any_of=("first", "fname")),
        KeywordRule(SemanticType.LAST_NAME, any_of=("last", "lname")),
        KeywordRule(SemanticType.HEADLINE, any_of=("headline", "head line")),
        KeywordRule(SemanticType.TITLE, any_of=("title", "role", "position")),
        KeywordRule(SemanticType.LOCATION, any_of=("location", "city", "country")),
        KeywordRule(SemanticType.COMPANY, any_of=("company", "employer", "organization")),
        KeywordRule(SemanticType.EMAIL, any_of=("email", "e-mail")),
        KeywordRule(SemanticType.CUSTOM_VARIABLE, any_of=("tag",)),
    ),
)

STANDARD_HEADERS: tuple[SemanticType, ...] = (
    SemanticType.PROFILE_URL,
    SemanticType.FIRST_NAME,
    SemanticType.LAST_NAME,
    SemanticType.COMPANY,
    SemanticType.TITLE,
)


def normalize_header(header: str) -> str:
    """
    Lower-case a header and collapse internal whitespace.
    """

    return _WHITESPACE.sub(" ", header.strip().lower())


def _bigrams(value: str) -> Counter[str]:
    compact = _WHITESPACE.sub("", value.lower())
    return Counter(compact[index : index + 2] for index in range(len(compact) - 1))


def similarity(left: str, right: str) -> float:
    """
    Sørensen–Dice coefficient over character bigrams, ignoring case and whitespace.
    """

    left_compact = _WHITESPACE.sub("", left.lower())
    right_compact = _WHITESPACE.sub("", right.lower())
    if left_compact == right_compact:
        return 1.0
    if len(left_compact) < 2 or len(right_compact) < 2:
        return 0.0

    left_bigrams = _bigrams(left_compact)
    right_bigrams = _bigrams(right_compact)
    overlap = sum((left_bigrams & right_bigrams).values())
    total = sum(left_bigrams.values()) + sum(right_bigrams.values())
    return 2.0 * overlap / total


class HeaderClassifier:
    """
    Assigns a semantic type to every CSV header.
    """

    def __init__(self, rules: ClassifierRules | None = None) -> None:
        self._rules = rules or DEFAULT_CLASSIFIER_RULES
        self._canonical_names = {
            semantic_type.value: semantic_type
            for semantic_type in SemanticType
            if not semantic_type.is_reserved
        }

    @property
    def rules(self) -> ClassifierRules:
        return self._rules

    def classify(
        self,
        headers: Sequence[str],
        sample_rows: Sequence[Mapping[str, str]],
        limit_samples: int = 5,
    ) -> tuple[ColumnMapping, ...]:
        """
        Classify headers in order; returns one ColumnMapping per header.
        """

        columns = [self._column_values(sample_rows, position, header) for position, header in enumerate(headers)]
        assigned: set[SemanticType] = set()
        resolved: list[SemanticType] = []

        for header, values in zip(headers, columns):
            candidate = self._classify_header(header)
            if candidate is SemanticType.DO_NOT_IMPORT and self._has_profile_url(values[: max(0, limit_samples)]):
                candidate = SemanticType.PROFILE_URL

            if not candidate.is_reserved:
                if candidate in assigned:
                    candidate = SemanticType.DO_NOT_IMPORT
                else:
                    assigned.add(candidate)
            resolved.append(candidate)

        if SemanticType.PROFILE_URL not in assigned:
            for position, values in enumerate(columns):
                if resolved[position] is not SemanticType.DO_NOT_IMPORT:
                    continue
                if self._has_profile_url(values[: self._rules.rescue_row_limit]):
                    resolved[position] = SemanticType.PROFILE_URL
                    break

        return tuple(
            ColumnMapping(
                column_name=header,
                semantic_type=semantic_type,
                sample_values=self._sample_values(values),
            )
            for header, semantic_type, values in zip(headers, resolved, columns)
        )

    def suggest_standard_headers(
        self,
        headers: Sequence[str],
        sample_rows: Sequence[Mapping[str, str]],
    ) -> tuple[StandardHeaderMatch, ...]:
        """
        Match each standard lead field to at most one header (exact, then fuzzy).
        """

        normalized = [normalize_header(header) for header in headers]
        matches: list[StandardHeaderMatch] = []

        for standard in STANDARD_HEADERS:
            matched: str | None = None
            for header, header_norm in zip(headers, normalized):
                if header_norm == standard.value:
                    matched = header
                    break
            if matched is None:
                readable = standard.value.replace("_", " ")
                best_score = 0.0
                for header, header_norm in zip(headers, normalized):
                    score = similarity(readable, header_norm)
                    if score > best_score:
                        best_score = score
                        matched = header
                if best_score <= self._rules.fuzzy_threshold:
                    matched = None
            matches.append(StandardHeaderMatch(standard_header=standard.value, matched_header=matched))

        if matches[0].matched_header is None:
            for position, header in enumerate(headers):
                values = self._column_values(sample_rows, position, header)
                if self._has_profile_url(values[: self._rules.rescue_row_limit]):
                    matches[0] = StandardHeaderMatch(
                        standard_header=SemanticType.PROFILE_URL.value,
                        matched_header=header,
                    )
                    break

        return tuple(matches)

    def sample_values(self, sample_rows: Sequence[Mapping[str, str]], position: int) -> tuple[str, ...]:
        """
        Non-empty preview values of one column, as attached by classify().
        """

        header = ""
        if sample_rows:
            headers = list(sample_rows[0])
            header = headers[position] if position < len(headers) else ""
        return self._sample_values(self._column_values(sample_rows, position, header))

    def _classify_header(self, header: str) -> SemanticType:
        header_norm = normalize_header(header)
        if not header_norm:
            return SemanticType.DO_NOT_IMPORT

        exact = self._canonical_names.get(header_norm)
        if exact is not None:
            return exact

        fuzzy = self._find_best_fuzzy_match(header_norm)
        if fuzzy is not None:
            return fuzzy

        for rule in self._rules.keyword_rules:
            if rule.matches(header_norm):
                return rule.semantic_type
        return SemanticType.DO_NOT_IMPORT

    def _find_best_fuzzy_match(self, header_norm: str) -> SemanticType | None:
        best_type: SemanticType | None = None
        best_score = 0.0
        for semantic_type, readable in self._rules.fuzzy_targets:
            score = similarity(header_norm, readable)
            if score > best_score:
                best_score = score
                best_type = semantic_type

        if best_type is not None and best_score > self._rules.fuzzy_threshold:
            return best_type
        return None

    def _has_profile_url(self, values: Sequence[str]) -> bool:
        marker = self._rules.profile_url_marker
        return any(marker in value.lower() for value in values)

    def _sample_values(self, values: Sequence[str]) -> tuple[str, ...]:
        limit = self._rules.sample_value_limit
        return tuple(value for value in values[:limit] if value)

    @staticmethod
    def _column_values(
        sample_rows: Sequence[Mapping[str, str]],
        position: int,
        header: str,
    ) -> list[str]:
        values: list[str] = []
        for row in sample_rows:
            value_at = getattr(row, "value_at", None)
            if value_at is not None:
                raw = value_at(position)
            else:
                raw = row.get(header)
            values.append("" if raw is None else str(raw).strip())
        return values
