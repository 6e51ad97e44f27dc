import pytest

from report import Fight, Source

PLAYER_ID = 1
HEALER_ID = 2
PET_ID = 10
BOSS_ID = 100
ADD_ID = 101


def make_event(type, timestamp, ability_id, source_id=PLAYER_ID, target_id=PLAYER_ID, **kwargs):
    event = {
        "type": type,
        "timestamp": timestamp,
        "abilityGameID": ability_id,
        "sourceID": source_id,
        "targetID": target_id,
    }
    event.update(kwargs)
    return event


def make_fight(events=(), start_time=0, end_time=100000):
    return Fight(
        id=1,
        start_time=start_time,
        end_time=end_time,
        source=Source(PLAYER_ID, "Tank", {PET_ID: PLAYER_ID}),
        events=list(events),
        friendlies={PLAYER_ID, HEALER_ID},
        enemies={BOSS_ID, ADD_ID},
    )


@pytest.fixture
def fight():
    return make_fight()
