"""Tests for multi-match aggregation."""

from soupheatmap.analysis.aggregate import (
    MapCount,
    aggregate_matches,
    available_maps,
    matches_for_map,
    merge_players,
)


class TestAggregateMatches:
    """Test merging selected matches into one dataset."""

    def test_two_match_scenario(self, make_match, make_player, make_event):
        """Players {a,b} and {b,c} merge to {a,b,c}; events are summed."""
        match_a = make_match(
            "A",
            [make_player("a"), make_player("b")],
            [make_event("a", "b"), make_event("b", "a", round_num=1)],
        )
        match_b = make_match(
            "B",
            [make_player("b"), make_player("c")],
            [make_event("c", "b"), make_event("b", "c"), make_event("c", "b", round_num=3)],
        )

        dataset = aggregate_matches([match_a, match_b], {"A", "B"})

        assert {p.puuid for p in dataset.players} == {"a", "b", "c"}
        assert len(dataset.players) == 3
        assert len(dataset.events) == 5
        assert dataset.map_name == "Ascent"
        assert dataset.match_ids == ("A", "B")

    def test_events_keep_match_order(self, make_match, make_player, make_event):
        first = make_event("a", "b", time_ms=1)
        second = make_event("a", "b", time_ms=2)
        third = make_event("a", "b", time_ms=3)
        match_a = make_match("A", [make_player("a")], [first, second])
        match_b = make_match("B", [make_player("a")], [third])

        dataset = aggregate_matches([match_a, match_b], ["B", "A"])

        assert dataset.events == (first, second, third)

    def test_first_occurrence_wins(self, make_match, make_player):
        """A player present in both matches keeps the first match's record."""
        match_a = make_match("A", [make_player("p", name="Early", agent="Jett")], [])
        match_b = make_match("B", [make_player("p", name="Late", agent="Raze")], [])

        dataset = aggregate_matches([match_a, match_b], {"A", "B"})

        assert len(dataset.players) == 1
        assert dataset.players[0].game_name == "Early"
        assert dataset.players[0].agent == "Jett"

    def test_only_selected_matches(self, make_match, make_player, make_event):
        match_a = make_match("A", [make_player("a")], [make_event("a", "b")])
        match_b = make_match("B", [make_player("c")], [make_event("c", "d")] * 2)

        dataset = aggregate_matches([match_a, match_b], {"B"})

        assert len(dataset.events) == 2
        assert [p.puuid for p in dataset.players] == ["c"]

    def test_no_selection_is_empty_dataset(self, make_match, make_player, make_event):
        match_a = make_match("A", [make_player("a")], [make_event("a", "b")])

        dataset = aggregate_matches([match_a], set(), map_name="Ascent")

        assert dataset.is_empty
        assert dataset.players == ()
        assert dataset.map_name == "Ascent"

    def test_merge_players_directly(self, make_match, make_player):
        matches = [
            make_match("A", [make_player("x"), make_player("y")], []),
            make_match("B", [make_player("y"), make_player("z")], []),
        ]
        assert [p.puuid for p in merge_players(matches)] == ["x", "y", "z"]


class TestMapListing:
    """Test the aggregate-mode map list."""

    def test_available_maps_sorted_by_count(self, make_match, make_player):
        summaries = [
            make_match("1", [], [], map_name="Bind").summary(),
            make_match("2", [], [], map_name="Ascent").summary(),
            make_match("3", [], [], map_name="Bind").summary(),
            make_match("4", [], [], map_name="Haven").summary(),
            make_match("5", [], [], map_name="Bind").summary(),
            make_match("6", [], [], map_name="Ascent").summary(),
        ]

        maps = available_maps(summaries)

        assert maps[0] == MapCount(map="Bind", count=3)
        assert maps[1] == MapCount(map="Ascent", count=2)
        assert maps[2] == MapCount(map="Haven", count=1)

    def test_matches_for_map(self, make_match):
        summaries = [
            make_match("1", [], [], map_name="Bind").summary(),
            make_match("2", [], [], map_name="Ascent").summary(),
            make_match("3", [], [], map_name="Bind").summary(),
        ]
        assert matches_for_map(summaries, "Bind") == ["1", "3"]
        assert matches_for_map(summaries, "Lotus") == []
