"""Tests for affiliation expansion and display."""

from preparea.config import NO_AFFILIATION_ICON, NO_AFFILIATION_LABEL, NO_AFFILIATION_TOKEN
from preparea.models.reference import AffiliationDefinition
from preparea.services.affiliations import (
    AffiliationResolver,
    build_affiliation_display,
    build_component_map,
    expand_with_map,
)


class TestComponentMap:
    def test_source_no_affiliation_token_is_normalized(self) -> None:
        """Token '0' is stored under the NONE sentinel."""
        components = build_component_map([AffiliationDefinition("0")], manual_composites={})
        assert NO_AFFILIATION_TOKEN in components
        assert "0" not in components

    def test_manual_composites_overwrite(self) -> None:
        """Manual composites replace the reference row's components."""
        definitions = [AffiliationDefinition("46", is_composite=True, components="4")]
        components = build_component_map(definitions, manual_composites={"46": ["4", "6"]})
        assert components["46"] == ["4", "6"]

    def test_none_sentinel_always_present(self) -> None:
        """The NONE sentinel exists even with no definitions."""
        assert build_component_map([], manual_composites={}) == {NO_AFFILIATION_TOKEN: []}


class TestResolver:
    def test_composite_expands_to_components(self) -> None:
        """A composite expands to itself plus its components."""
        resolver = AffiliationResolver({"46": ["4", "6"], "4": [], "6": []})
        assert resolver.expand("46") == {"46", "4", "6"}
        assert resolver.expand("4") == {"4"}

    def test_nested_composites_expand_transitively(self) -> None:
        """Components of components are included."""
        resolver = AffiliationResolver({"a": ["b"], "b": ["c"], "c": []})
        assert resolver.expand("a") == {"a", "b", "c"}

    def test_cycles_terminate(self) -> None:
        """A cyclic definition terminates and includes both tokens."""
        resolver = AffiliationResolver({"x": ["y"], "y": ["x"]})
        assert resolver.expand("x") == {"x", "y"}

    def test_self_reference_terminates(self) -> None:
        """A token listing itself expands to itself."""
        resolver = AffiliationResolver({"x": ["x"]})
        assert resolver.expand("x") == {"x"}

    def test_unknown_token_expands_to_itself(self) -> None:
        """Tokens absent from the map expand to themselves."""
        resolver = AffiliationResolver({})
        assert resolver.expand("9") == {"9"}

    def test_expand_selection_unions(self) -> None:
        """Selections expand to the union of each token's expansion."""
        resolver = AffiliationResolver({"46": ["4", "6"]})
        assert resolver.expand_selection(["46", "5"]) == {"46", "4", "6", "5"}

    def test_expand_with_map_falls_back_to_token(self) -> None:
        """Precomputed expansion falls back to the token itself."""
        expansion = {"46": frozenset({"46", "4", "6"})}
        assert expand_with_map(["46", "7"], expansion) == {"46", "4", "6", "7"}


class TestDisplay:
    def test_hidden_and_composites_are_left_out(self, reference) -> None:
        """Hidden component tokens are left out; manual composites stay."""
        tokens = [d.token for d in build_affiliation_display(reference.affiliations)]
        assert tokens == [NO_AFFILIATION_TOKEN, "46", "5"]

    def test_no_affiliation_gets_label_and_icon(self) -> None:
        """The NONE entry carries the fixed label and keeps its own icon."""
        display = build_affiliation_display(
            [AffiliationDefinition("0", file=None, alt="zero")], manual_composites={}
        )
        assert display[0].token == NO_AFFILIATION_TOKEN
        assert display[0].alt == NO_AFFILIATION_LABEL
        assert display[0].file == NO_AFFILIATION_ICON

    def test_no_affiliation_inserted_first_when_absent(self) -> None:
        """A NONE entry is added at the front when the source has none."""
        display = build_affiliation_display([AffiliationDefinition("5")], manual_composites={})
        assert [d.token for d in display] == [NO_AFFILIATION_TOKEN, "5"]

    def test_missing_manual_composite_is_synthesized(self) -> None:
        """A manual composite with no source row is still offered."""
        display = build_affiliation_display(
            [AffiliationDefinition("5")], manual_composites={"46": ["4", "6"]}
        )
        synthesized = next(d for d in display if d.token == "46")
        assert synthesized.components == "4,6"

    def test_duplicates_keep_first(self) -> None:
        """Each token appears once; the first occurrence wins."""
        display = build_affiliation_display(
            [AffiliationDefinition("5", alt="first"), AffiliationDefinition("5", alt="second")],
            manual_composites={},
        )
        fives = [d for d in display if d.token == "5"]
        assert len(fives) == 1
        assert fives[0].alt == "first"
