"""Tests for the read-only world snapshot."""

from world.models import Player, Scout, WorldSnapshot


def test_records_from_list_or_mapping():
    as_list = WorldSnapshot.from_dict(
        {"current_season": 1, "current_week": 3, "clubs": [{"id": "c1", "name": "Harbour Town"}]}
    )
    as_map = WorldSnapshot.from_dict(
        {"current_season": 1, "current_week": 3, "clubs": {"c1": {"name": "Harbour Town"}}}
    )
    assert as_list.clubs == as_map.clubs
    assert as_map.clubs["c1"].name == "Harbour Town"


def test_camel_case_keys_are_accepted():
    snapshot = WorldSnapshot.from_dict(
        {
            "currentSeason": 4,
            "currentWeek": 12,
            "scout": {"reputation": 55.5, "careerTier": 2, "currentClubId": "c1"},
            "players": [{"id": "p1", "firstName": "Tunde", "lastName": "Adeyemi", "age": 17, "currentAbility": 96}],
            "rivalScouts": [{"id": "rs_1", "name": "Declan Marsh"}],
        }
    )
    assert (snapshot.current_season, snapshot.current_week) == (4, 12)
    assert snapshot.scout == Scout(reputation=55.5, career_tier=2, current_club_id="c1")
    assert snapshot.players["p1"].full_name == "Tunde Adeyemi"
    assert snapshot.players["p1"].current_ability == 96
    assert "rs_1" in snapshot.rival_scouts


def test_defaults_for_missing_sections():
    snapshot = WorldSnapshot.from_dict({})
    assert (snapshot.current_season, snapshot.current_week) == (1, 1)
    assert snapshot.players == {}
    assert snapshot.report_ids == ()
    assert snapshot.scout.employed is False


def test_reports_and_managers_aliases():
    snapshot = WorldSnapshot.from_dict({"reports": ["r1", 2], "managers": ["m1"]})
    assert snapshot.report_ids == ("r1", "2")
    assert snapshot.manager_ids == ("m1",)


def test_employment_follows_club():
    assert Scout(current_club_id="c1").employed is True
    assert Scout.from_dict({"current_club_id": ""}).employed is False


def test_week_and_scout_changes_return_copies():
    original = WorldSnapshot.from_dict({"current_season": 1, "current_week": 1, "scout": {"reputation": 10}})
    moved = original.at_week(2, 7)
    promoted = original.with_scout(reputation=80)
    assert (moved.current_season, moved.current_week) == (2, 7)
    assert promoted.scout.reputation == 80
    assert original.current_week == 1
    assert original.scout.reputation == 10


def test_full_name_without_last_name():
    assert Player(id="p", first_name="Kaka", last_name="").full_name == "Kaka"
