from typing import Dict, Iterable, List, Optional


class Source:
    def __init__(self, id: int, name: str, pets: Optional[Dict[int, int]] = None):
        self.id = id
        self.name = name
        # pet id -> owner id
        self.pets = pets or {}


class Encounter:
    def __init__(self, id: int, name: str):
        self.id = id
        self.name = name


class Fight:
    def __init__(
        self,
        id: int,
        start_time: int,
        end_time: int,
        source: Source,
        events: List[dict],
        encounter: Optional[Encounter] = None,
        friendlies: Iterable[int] = (),
        enemies: Iterable[int] = (),
    ):
        self.id = id
        self.start_time = start_time
        self.end_time = end_time
        self.source = source
        self.events = events
        self.encounter = encounter or Encounter(0, "Unknown")
        self.friendlies = set(friendlies) | {source.id}
        self.enemies = set(enemies)

    @property
    def duration(self):
        return self.end_time - self.start_time

    def by_player(self, event):
        return event.get("sourceID") == self.source.id

    def to_player(self, event):
        return event.get("targetID") == self.source.id

    def is_player_pet(self, actor_id):
        return actor_id in self.source.pets

    @classmethod
    def from_dict(cls, data: dict, events: List[dict]):
        source = data["source"]
        encounter = data.get("encounter")
        return cls(
            id=data.get("id", 0),
            start_time=data["start_time"],
            end_time=data["end_time"],
            source=Source(
                source["id"],
                source.get("name", ""),
                {int(pet): owner for pet, owner in source.get("pets", {}).items()},
            ),
            events=events,
            encounter=encounter and Encounter(encounter["id"], encounter["name"]),
            friendlies=data.get("friendlies", ()),
            enemies=data.get("enemies", ()),
        )
