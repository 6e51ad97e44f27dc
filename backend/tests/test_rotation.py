from analysis.paladin_analysis import (
    ATTACK_ID,
    HOLY_SPIRIT_ID,
    REQUIESCAT_ID,
    REQUIESCAT_STATUS_ID,
    RequiescatAnalyzer,
)
from analysis.resources import ResourceTracker
from analysis.rotation import RotationWindowAnalyzer
from conftest import HEALER_ID, PLAYER_ID, make_event

OTHER_GCD_ID = 9


def cast(timestamp, ability_id, mp=None, max_mp=10000, source_id=PLAYER_ID):
    event = make_event("cast", timestamp, ability_id, source_id=source_id, target_id=100)
    if mp is not None:
        event["sourceResources"] = {"mp": mp, "maxMP": max_mp}
    return event


def remove_requiescat(timestamp):
    return make_event("removebuff", timestamp, REQUIESCAT_STATUS_ID)


def run(events):
    resources = ResourceTracker(PLAYER_ID)
    analyzer = RequiescatAnalyzer(PLAYER_ID, resources)
    for event in events:
        resources.add_event(event)
        analyzer.add_event(event)
    return analyzer


class TestResourceGate:
    def test_opener_above_threshold_opens_window(self):
        analyzer = run([cast(1000, REQUIESCAT_ID, mp=8500)])

        assert analyzer.is_open
        assert list(analyzer.windows) == [1000]
        assert analyzer.errors.missed_opener_buffs == 0

    def test_opener_below_threshold_is_tallied(self):
        analyzer = run([cast(1000, REQUIESCAT_ID, mp=7000)])

        assert not analyzer.is_open
        assert analyzer.windows == {}
        assert analyzer.errors.missed_opener_buffs == 1

    def test_one_tick_of_forgiveness(self):
        # 7860 + 141 is just over 80%
        analyzer = run([cast(1000, REQUIESCAT_ID, mp=7860)])

        assert analyzer.is_open

    def test_unknown_resources_pass(self):
        analyzer = run([cast(1000, REQUIESCAT_ID)])

        assert analyzer.is_open

    def test_resources_from_earlier_events_are_used(self):
        analyzer = run(
            [
                cast(500, OTHER_GCD_ID, mp=6000),
                cast(1000, REQUIESCAT_ID),
            ]
        )

        assert analyzer.errors.missed_opener_buffs == 1


class TestWindow:
    def test_shortfall_is_tallied_on_close(self):
        analyzer = run(
            [cast(0, REQUIESCAT_ID, mp=10000)]
            + [cast(1000 * i, HOLY_SPIRIT_ID) for i in range(1, 4)]
            + [remove_requiescat(12000)]
        )

        assert not analyzer.is_open
        assert analyzer.errors.missed_qualifying_actions == 2
        window = analyzer.windows[0]
        assert window.qualifying_count == 3
        assert window.end == 12000

    def test_extra_qualifying_actions_never_go_negative(self):
        analyzer = run(
            [cast(0, REQUIESCAT_ID, mp=10000)]
            + [cast(1000 * i, HOLY_SPIRIT_ID) for i in range(1, 7)]
            + [remove_requiescat(12000)]
        )

        assert analyzer.errors.missed_qualifying_actions == 0

    def test_casts_are_recorded_in_order(self):
        analyzer = run(
            [
                cast(0, REQUIESCAT_ID, mp=10000),
                cast(500, ATTACK_ID),
                cast(1000, HOLY_SPIRIT_ID),
                cast(2000, OTHER_GCD_ID),
                cast(2500, HOLY_SPIRIT_ID, source_id=HEALER_ID),
                remove_requiescat(3000),
                cast(4000, HOLY_SPIRIT_ID),
            ]
        )

        window = analyzer.windows[0]
        assert [event["abilityGameID"] for event in window.events] == [
            REQUIESCAT_ID,
            HOLY_SPIRIT_ID,
            OTHER_GCD_ID,
        ]
        assert window.qualifying_count == 1

    def test_no_op_action_does_not_open_window(self):
        analyzer = RotationWindowAnalyzer(
            PLAYER_ID,
            ResourceTracker(PLAYER_ID),
            opener_action_id=ATTACK_ID,
            status_id=REQUIESCAT_STATUS_ID,
            qualifying_action_id=HOLY_SPIRIT_ID,
            expected_count=5,
            no_op_action_id=ATTACK_ID,
        )
        analyzer.add_event(cast(0, ATTACK_ID))

        assert not analyzer.is_open

    def test_removal_without_window_is_ignored(self):
        analyzer = run([cast(0, REQUIESCAT_ID, mp=1000), remove_requiescat(12000)])

        assert analyzer.errors.missed_qualifying_actions == 0
        assert analyzer.errors.missed_opener_buffs == 1

    def test_windows_are_kept_per_opener(self):
        analyzer = run(
            [
                cast(0, REQUIESCAT_ID, mp=10000),
                remove_requiescat(12000),
                cast(60000, REQUIESCAT_ID, mp=10000),
                cast(61000, HOLY_SPIRIT_ID),
                remove_requiescat(72000),
            ]
        )

        assert list(analyzer.windows) == [0, 60000]
        assert analyzer.errors.missed_qualifying_actions == 5 + 4

    def test_opener_while_open_stays_in_window(self):
        analyzer = run(
            [
                cast(0, REQUIESCAT_ID, mp=10000),
                cast(1000, REQUIESCAT_ID, mp=10000),
            ]
        )

        assert list(analyzer.windows) == [0]
        assert len(analyzer.windows[0].events) == 2

    def test_failed_opener_while_open_keeps_window(self):
        analyzer = run(
            [
                cast(0, REQUIESCAT_ID, mp=10000),
                cast(1000, HOLY_SPIRIT_ID),
                cast(2000, REQUIESCAT_ID, mp=1000),
                cast(3000, HOLY_SPIRIT_ID),
            ]
        )

        assert analyzer.is_open
        assert analyzer.errors.missed_opener_buffs == 1
        assert list(analyzer.windows) == [0]
        window = analyzer.windows[0]
        assert window.qualifying_count == 2
        assert len(window.events) == 4

    def test_window_open_at_end_of_fight_is_not_evaluated(self):
        analyzer = run(
            [
                cast(0, REQUIESCAT_ID, mp=10000),
                cast(1000, HOLY_SPIRIT_ID),
            ]
        )

        assert analyzer.is_open
        assert analyzer.windows[0].end is None
        assert analyzer.errors.missed_qualifying_actions == 0

        (window,) = analyzer.report()["requiescat"]["windows"]
        assert window["end"] is None
        assert window["qualifying_count"] == 1


class TestReport:
    def test_report(self):
        analyzer = run(
            [
                cast(0, REQUIESCAT_ID, mp=10000),
                cast(1000, HOLY_SPIRIT_ID),
                remove_requiescat(12000),
                cast(20000, REQUIESCAT_ID, mp=2000),
            ]
        )

        report = analyzer.report()["requiescat"]
        assert report["missed_holy_spirits"] == 4
        assert report["missed_requiescat_buffs"] == 1
        (window,) = report["windows"]
        assert window["start"] == 0
        assert window["end"] == 12000
        assert window["qualifying_count"] == 1
        assert window["expected_count"] == 5
        assert [c["abilityGameID"] for c in window["casts"]] == [REQUIESCAT_ID, HOLY_SPIRIT_ID]

    def test_generic_report_key(self):
        analyzer = RotationWindowAnalyzer(
            PLAYER_ID,
            ResourceTracker(PLAYER_ID),
            opener_action_id=REQUIESCAT_ID,
            status_id=REQUIESCAT_STATUS_ID,
            qualifying_action_id=HOLY_SPIRIT_ID,
            expected_count=2,
        )
        analyzer.add_event(cast(0, REQUIESCAT_ID))
        analyzer.add_event(remove_requiescat(5000))

        assert analyzer.report()["rotation_windows"]["missed_qualifying_actions"] == 2

    def test_print(self, capsys):
        analyzer = run([cast(0, REQUIESCAT_ID, mp=2000)])

        analyzer.print()

        out = capsys.readouterr().out
        assert "You missed 0 Holy Spirits" in out
        assert "1 times under 80% MP" in out
