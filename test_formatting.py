import pytest

from bf6bot.formatting import (
    MAX_FIELDS,
    CardField,
    StatsCard,
    StatsSnapshot,
    card_to_html,
    fmt_help,
    fmt_player_added,
    fmt_search_results,
    fmt_time_played,
    fmt_tracked_players,
    render_stats,
)
from bf6bot.api import SearchResult
from bf6bot.state import Platform, TrackedPlayer


def _labels(card):
    return [f.label for f in card.fields]


def test_snapshot_from_json_maps_known_keys():
    snap = StatsSnapshot.from_json({
        "userName": "Soldier",
        "id": 42,
        "kills": 10,
        "kdRatio": "1.5",
        "timePlayed": 7260,
        "avatar": "https://img/a.png",
        "unknownField": True,
    })
    assert snap.user_name == "Soldier"
    assert snap.persona_id == "42"
    assert snap.kills == 10
    assert snap.kd_ratio == 1.5
    assert snap.time_played == 7260
    assert snap.avatar == "https://img/a.png"
    assert snap.deaths is None
    assert snap.raw["unknownField"] is True


def test_snapshot_ignores_non_numeric_values():
    snap = StatsSnapshot.from_json({"kills": "lots", "deaths": None, "wins": True})
    assert snap.kills is None
    assert snap.deaths is None
    assert snap.wins is None


def test_render_only_present_fields_in_order():
    snap = StatsSnapshot.from_json({"kills": 100, "deaths": 50, "kdRatio": 2.0})
    card = render_stats(snap, "Soldier", Platform.PC)

    assert [(f.label, f.value) for f in card.fields] == [
        ("Kills", "100"),
        ("Deaths", "50"),
        ("K/D Ratio", "2.00"),
    ]
    assert "Wins" not in _labels(card)
    assert "Score" not in _labels(card)
    assert card.thumbnail is None
    assert card.footer == "Platform: PC"
    assert card.title == "🎮 Soldier's Battlefield 6 Stats"


def test_render_formats_every_field():
    snap = StatsSnapshot.from_json({
        "userName": "Soldier",
        "kills": 12345,
        "deaths": 6789,
        "kdRatio": 1.8183,
        "score": 1234567,
        "wins": 1000,
        "losses": 250,
        "winPercent": 80.04,
        "killsPerMinute": 0.876,
        "timePlayed": 3 * 3600 + 25 * 60 + 59,
        "rank": 87,
        "scorePerMinute": 412.6,
        "avatar": "https://img/a.png",
    })
    card = render_stats(snap, "Soldier", Platform.XBOX)
    values = {f.label: f.value for f in card.fields}

    assert _labels(card) == [
        "Kills", "Deaths", "K/D Ratio", "Score", "Wins", "Losses",
        "Win %", "Kills/Min", "Time Played", "Rank", "SPM",
    ]
    assert values["Kills"] == "12,345"
    assert values["Score"] == "1,234,567"
    assert values["K/D Ratio"] == "1.82"
    assert values["Win %"] == "80.0%"
    assert values["Kills/Min"] == "0.88"
    assert values["Time Played"] == "3h 25m"
    assert values["Rank"] == "87"
    assert values["SPM"] == "413"
    assert card.description == "Player: Soldier"
    assert card.thumbnail == "https://img/a.png"
    assert card.footer == "Platform: XBOX"


def test_time_played_breakdown():
    assert fmt_time_played(0) == "0h 0m"
    assert fmt_time_played(59) == "0h 0m"
    assert fmt_time_played(3600 * 100 + 60 * 7) == "100h 7m"


def test_card_is_capped_at_max_fields():
    card = StatsCard(title="t")
    card.add_fields([CardField(str(i), "v") for i in range(MAX_FIELDS + 5)])
    assert len(card.fields) == MAX_FIELDS
    assert card.fields[0].label == "0"
    assert card.fields[-1].label == str(MAX_FIELDS - 1)

    card.add_fields([CardField("extra", "v")])
    assert len(card.fields) == MAX_FIELDS


def test_tracked_list_is_capped():
    players = [TrackedPlayer(f"p{i}", Platform.PC, str(i)) for i in range(30)]
    card = fmt_tracked_players(players)
    assert len(card.fields) == MAX_FIELDS
    assert card.fields[0].label == "1. p0"
    assert card.description == "Currently tracking 30 player(s):"


def test_search_results_card():
    results = [
        SearchResult("Soldier", Platform.PC, "111", rank=50, kills=1500),
        SearchResult("Soldier", Platform.PSN),
    ]
    card = fmt_search_results("Soldier", results)
    assert _labels(card) == ["1. Soldier", "2. Soldier"]
    assert card.fields[0].value == "Platform: PC\nID: 111\nRank: 50\nKills: 1,500"
    assert card.fields[1].value == "Platform: PSN"


def test_player_added_card():
    card = fmt_player_added(TrackedPlayer("Soldier", Platform.PSN, None), 3)
    assert [(f.label, f.value) for f in card.fields] == [
        ("Player ID", "N/A"),
        ("Platform", "PSN"),
        ("Total Tracked", "3"),
    ]


def test_help_lists_commands():
    labels = _labels(fmt_help())
    assert labels[0].startswith("!add")
    assert "!list" in labels
    assert "!help" in labels


def test_card_to_html_escapes_and_formats():
    card = StatsCard(title="<Title>", description="a & b", footer="foot")
    card.add_fields([CardField("Kills", "100", "💀")])
    html = card_to_html(card)
    assert html.startswith("<b>&lt;Title&gt;</b>")
    assert "a &amp; b" in html
    assert "💀 <b>Kills:</b> 100" in html
    assert html.endswith("<i>foot</i>")


def test_card_to_html_multiline_fields():
    card = StatsCard(title="t")
    card.add_fields([CardField("1. A", "Platform: PC\nID: 1"), CardField("2. B", "Platform: PSN")])
    html = card_to_html(card)
    assert "<b>1. A</b>\nPlatform: PC\nID: 1\n\n<b>2. B:</b> Platform: PSN" in html


def test_snapshot_keeps_text_rank():
    snap = StatsSnapshot.from_json({"rank": "Sergeant", "kills": 3})
    assert snap.rank == "Sergeant"
    card = render_stats(snap, "Soldier", Platform.PC)
    assert ("🎖️", "Rank", "Sergeant") in [(f.icon, f.label, f.value) for f in card.fields]


def test_snapshot_numeric_rank_string_is_a_number():
    assert StatsSnapshot.from_json({"rank": "42"}).rank == 42
    assert StatsSnapshot.from_json({"rank": "  "}).rank is None


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "nan", "-inf", "Infinity"])
def test_non_finite_values_are_absent(value):
    snap = StatsSnapshot.from_json({"kills": value, "kdRatio": value})
    assert snap.kills is None
    assert snap.kd_ratio is None
    assert "Kills" not in _labels(render_stats(snap, "A", Platform.PC))


def test_non_finite_rank_string_is_absent():
    assert StatsSnapshot.from_json({"rank": "NaN"}).rank is None
