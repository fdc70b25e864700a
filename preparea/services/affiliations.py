"""
Affiliation expansion.

Composite affiliations (a team-up of two factions, say) are defined by
listing their component tokens. Expanding a token yields the token itself
plus the closure over its components, so that selecting a composite matches
cards of every faction it contains and vice versa.

INVARIANTS:
1. Expansion terminates. A token revisited while it is still being expanded
   contributes only itself.
2. Every token that is a key of the component map has an expansion, and the
   "no affiliation" sentinel is always a key.
3. The display list holds each token at most once, first occurrence wins.
"""

import logging
from collections.abc import Iterable, Mapping

from preparea.config import (
    HIDDEN_AFFILIATION_TOKENS,
    MANUAL_AFFILIATION_COMPOSITES,
    NO_AFFILIATION_ICON,
    NO_AFFILIATION_LABEL,
    NO_AFFILIATION_TOKEN,
)
from preparea.models.reference import AffiliationDefinition
from preparea.services.tokens import split_tokens

logger = logging.getLogger(__name__)

# Token used for "no affiliation" in the reference store
_SOURCE_NO_AFFILIATION_TOKEN = "0"


def normalize_affiliation_token(token: str) -> str:
    return NO_AFFILIATION_TOKEN if token == _SOURCE_NO_AFFILIATION_TOKEN else token


def build_component_map(
    definitions: Iterable[AffiliationDefinition],
    manual_composites: Mapping[str, list[str]] = MANUAL_AFFILIATION_COMPOSITES,
) -> dict[str, list[str]]:
    """
    Map every affiliation token to its component tokens.

    Manual composites are applied last and overwrite reference rows.
    """
    components: dict[str, list[str]] = {}
    for definition in definitions:
        components[normalize_affiliation_token(definition.token)] = split_tokens(
            definition.components
        )
    for token, parts in manual_composites.items():
        components[token] = list(parts)
    components.setdefault(NO_AFFILIATION_TOKEN, [])
    return components


class AffiliationResolver:
    """
    Memoized expansion over a component map.

    Example:
        >>> resolver = AffiliationResolver({"46": ["4", "6"], "4": [], "6": []})
        >>> sorted(resolver.expand("46"))
        ['4', '46', '6']
    """

    def __init__(self, component_map: Mapping[str, list[str]]) -> None:
        self._components = dict(component_map)
        self._memo: dict[str, frozenset[str]] = {}

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[AffiliationDefinition],
        manual_composites: Mapping[str, list[str]] = MANUAL_AFFILIATION_COMPOSITES,
    ) -> "AffiliationResolver":
        return cls(build_component_map(definitions, manual_composites))

    @property
    def tokens(self) -> list[str]:
        return list(self._components)

    def expand(self, token: str) -> frozenset[str]:
        """Token plus the closure over its components."""
        return self._expand(token, frozenset())

    def _expand(self, token: str, trail: frozenset[str]) -> frozenset[str]:
        cached = self._memo.get(token)
        if cached is not None:
            return cached
        if token in trail:
            return frozenset({token})

        next_trail = trail | {token}
        result = {token}
        for component in self._components.get(token, []):
            result |= self._expand(component, next_trail)

        expanded = frozenset(result)
        self._memo[token] = expanded
        return expanded

    def expand_all(self) -> dict[str, frozenset[str]]:
        """Expansion of every token in the component map, in map order."""
        return {token: self.expand(token) for token in self._components}

    def expand_selection(self, tokens: Iterable[str]) -> set[str]:
        """Union of the expansions of several tokens."""
        result: set[str] = set()
        for token in tokens:
            result |= self.expand(token)
        return result


def expand_with_map(tokens: Iterable[str], expansion: Mapping[str, frozenset[str]]) -> set[str]:
    """
    Union of precomputed expansions. Tokens missing from the map expand to themselves.
    """
    result: set[str] = set()
    for token in tokens:
        expanded = expansion.get(token)
        if expanded:
            result |= expanded
        else:
            result.add(token)
    return result


def build_affiliation_display(
    definitions: list[AffiliationDefinition],
    manual_composites: Mapping[str, list[str]] = MANUAL_AFFILIATION_COMPOSITES,
    hidden_tokens: frozenset[str] = HIDDEN_AFFILIATION_TOKENS,
) -> list[AffiliationDefinition]:
    """
    Affiliations offered as filter choices, in source order.

    Hidden component tokens and composites are left out unless manually
    defined as composites. The "no affiliation" choice is always present.
    """
    display: list[AffiliationDefinition] = []
    has_no_affiliation = False

    for definition in definitions:
        include = (
            definition.token not in hidden_tokens and not definition.is_composite
        ) or definition.token in manual_composites
        if not include:
            continue
        token = normalize_affiliation_token(definition.token)
        if token == NO_AFFILIATION_TOKEN:
            display.append(
                AffiliationDefinition(
                    token=token,
                    file=definition.file or NO_AFFILIATION_ICON,
                    alt=NO_AFFILIATION_LABEL,
                    is_composite=definition.is_composite,
                    components=definition.components,
                )
            )
            has_no_affiliation = True
        else:
            display.append(definition)

    shown = {d.token for d in display}
    for token, parts in manual_composites.items():
        if token in shown:
            continue
        base = next((d for d in definitions if d.token == token), None)
        if base is None:
            base = AffiliationDefinition(token=token, components=",".join(parts))
        display.append(base)

    if not has_no_affiliation:
        display.insert(
            0,
            AffiliationDefinition(
                token=NO_AFFILIATION_TOKEN,
                file=NO_AFFILIATION_ICON,
                alt=NO_AFFILIATION_LABEL,
            ),
        )

    unique: list[AffiliationDefinition] = []
    seen: set[str] = set()
    for definition in display:
        if definition.token in seen:
            continue
        seen.add(definition.token)
        unique.append(definition)

    logger.debug("Built %s affiliation choices from %s definitions", len(unique), len(definitions))
    return unique
