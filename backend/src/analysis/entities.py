import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from analysis.base import BaseAnalyzer, BasePreprocessor
from analysis.uptime import StatusUptimeReducer
from report import Fight


class ConfigurationError(Exception):
    pass


@dataclass(frozen=True)
class Buff:
    ability_id: int
    source_id: Optional[int]
    target_id: Optional[int]
    start: int
    end: Optional[int] = None
    stacks: int = 1
    # (stacks, timestamp) pairs, starting with (1, start)
    stack_history: Tuple[Tuple[int, int], ...] = ()
    is_debuff: bool = False
    event: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def open(cls, event, start, is_debuff):
        return cls(
            ability_id=event["abilityGameID"],
            source_id=event.get("sourceID"),
            target_id=event.get("targetID"),
            start=start,
            stack_history=((1, start),),
            is_debuff=is_debuff,
            event=event,
        )

    @property
    def is_open(self):
        return self.end is None

    def with_stacks(self, stacks, timestamp):
        return replace(
            self,
            stacks=stacks,
            stack_history=self.stack_history + ((stacks, timestamp),),
        )

    def closed(self, timestamp):
        return replace(
            self,
            end=timestamp,
            stack_history=self.stack_history + ((0, timestamp),),
        )


class Entity:
    def __init__(self, id):
        self.id = id
        self.buffs: List[Buff] = []
        # ability id -> index of the open buff in self.buffs
        self._open = {}
        # ability id -> sources whose open buff was taken over by another source
        self.superseded_sources: Dict[int, set] = {}

    def get_open_buff(self, ability_id) -> Optional[Buff]:
        index = self._open.get(ability_id)
        if index is None:
            return None
        return self.buffs[index]

    def add_buff(self, buff: Buff):
        assert buff.ability_id not in self._open
        self.buffs.append(buff)
        if buff.is_open:
            self._open[buff.ability_id] = len(self.buffs) - 1

    def update_open_buff(self, buff: Buff):
        index = self._open[buff.ability_id]
        self.buffs[index] = buff
        if not buff.is_open:
            del self._open[buff.ability_id]


class EntityResolver(ABC):
    """Decides which entity a buff event belongs to"""

    @abstractmethod
    def get_entities(self) -> Dict[int, Entity]:
        pass

    @abstractmethod
    def get_entity(self, event) -> Optional[Entity]:
        pass


class ActorResolver(EntityResolver):
    """Resolves events by target, for a known set of actors"""

    def __init__(self, actor_ids):
        self._actor_ids = set(actor_ids)
        self._entities = {}

    def get_entities(self):
        return self._entities

    def get_entity(self, event):
        actor_id = event.get("targetID")
        if actor_id not in self._actor_ids:
            return None

        if actor_id not in self._entities:
            self._entities[actor_id] = Entity(actor_id)
        return self._entities[actor_id]


class PetOwnerResolver(EntityResolver):
    """Folds events targeting a pet onto the pet's owner"""

    def __init__(self, resolver: EntityResolver, pets: Dict[int, int]):
        self._resolver = resolver
        self._pets = pets

    def get_entities(self):
        return self._resolver.get_entities()

    def get_entity(self, event):
        owner_id = self._pets.get(event.get("targetID"))
        if owner_id is not None:
            event = {**event, "targetID": owner_id}
        return self._resolver.get_entity(event)


class EventSink:
    def __init__(self):
        self._events = []

    def emit(self, event):
        self._events.append(event)

    def drain(self):
        events, self._events = self._events, []
        return events


class EntityTracker(BaseAnalyzer, BasePreprocessor):
    """Reconstructs buff intervals per entity from the raw buff events.

    Stack changes are written to ``sink`` as ``changebuffstack`` /
    ``changedebuffstack`` events rather than being fed back into the input.
    Uptime is only meaningful once every event has been preprocessed.
    """

    def __init__(
        self,
        name,
        fight: Fight,
        resolver: EntityResolver,
        invulns=None,
        sink: Optional[EventSink] = None,
    ):
        if resolver is None:
            raise ConfigurationError(f"{name} tracker needs an entity resolver")

        self._name = name
        self._fight = fight
        self._resolver = resolver
        self._invulns = invulns
        self._sink = sink if sink is not None else EventSink()
        self._current_timestamp = fight.start_time
        self._num_dropped_stack_updates = 0
        self._num_synthesized_buffs = 0
        self._num_superseded_buffs = 0
        self._num_dropped_removals = 0
        self._handlers = {
            "applybuff": functools.partial(self.apply_buff, is_debuff=False),
            "applydebuff": functools.partial(self.apply_buff, is_debuff=True),
            "applybuffstack": functools.partial(
                self.update_buff_stack, is_debuff=False
            ),
            "applydebuffstack": functools.partial(
                self.update_buff_stack, is_debuff=True
            ),
            "removebuffstack": functools.partial(
                self.update_buff_stack, is_debuff=False
            ),
            "removedebuffstack": functools.partial(
                self.update_buff_stack, is_debuff=True
            ),
            "removebuff": functools.partial(self.remove_buff, is_debuff=False),
            "removedebuff": functools.partial(self.remove_buff, is_debuff=True),
        }

    @property
    def sink(self):
        return self._sink

    @property
    def current_timestamp(self):
        return self._current_timestamp

    def get_entities(self):
        return self._resolver.get_entities()

    def get_entity(self, event):
        return self._resolver.get_entity(event)

    def preprocess_event(self, event):
        self._current_timestamp = max(self._current_timestamp, event["timestamp"])

        handler = self._handlers.get(event["type"])
        if handler:
            handler(event)

    def _get_buff_event_entity(self, event):
        # Ignore buff events irrelevant to the tracked player
        if not self._fight.by_player(event) and not self._fight.to_player(event):
            return None

        return self.get_entity(event)

    def apply_buff(self, event, is_debuff=False):
        entity = self._get_buff_event_entity(event)
        if entity is None:
            return

        timestamp = event["timestamp"]
        ability_id = event["abilityGameID"]
        source_id = event.get("sourceID")
        superseded = entity.superseded_sources.setdefault(ability_id, set())
        superseded.discard(source_id)

        existing = entity.get_open_buff(ability_id)
        if existing is not None:
            # the newer application takes over
            self._num_superseded_buffs += 1
            if existing.source_id != source_id:
                superseded.add(existing.source_id)
            self._close_buff(entity, existing, timestamp)

        buff = Buff.open(event, timestamp, is_debuff)
        entity.add_buff(buff)
        self._trigger_change_buff_stack(buff, timestamp, 0, 1)

    def update_buff_stack(self, event, is_debuff=False):
        entity = self._get_buff_event_entity(event)
        if entity is None:
            return

        buff = entity.get_open_buff(event["abilityGameID"])
        if buff is None:
            self._num_dropped_stack_updates += 1
            logging.warning(
                f"Stack update for {event['abilityGameID']} on {entity.id} at "
                f"{event['timestamp']} without a known active buff. Applied "
                "pre-combat, or the log is out of order?"
            )
            return

        old_stacks = buff.stacks or 1
        buff = buff.with_stacks(event.get("stack", old_stacks), event["timestamp"])
        entity.update_open_buff(buff)
        self._trigger_change_buff_stack(
            buff, event["timestamp"], old_stacks, buff.stacks
        )

    def remove_buff(self, event, is_debuff=False):
        entity = self._get_buff_event_entity(event)
        if entity is None:
            return

        ability_id = event["abilityGameID"]
        source_id = event.get("sourceID")
        buff = entity.get_open_buff(ability_id)
        superseded = entity.superseded_sources.get(ability_id, set())

        # This source's buff was already closed when another source took over
        if (buff is None or buff.source_id != source_id) and source_id in superseded:
            superseded.discard(source_id)
            self._num_dropped_removals += 1
            logging.info(
                f"Removal of {ability_id} on {entity.id} from {source_id} at "
                f"{event['timestamp']} after it was superseded, ignoring"
            )
            return

        # If there's no existing buff, assume it was up from the start of the fight
        if buff is None:
            start = min(self._fight.start_time, event["timestamp"])
            self._num_synthesized_buffs += 1
            logging.info(
                f"Removal of {event['abilityGameID']} on {entity.id} without an "
                f"application, assuming it was active from {start}"
            )
            buff = Buff.open(event, start, is_debuff)
            entity.add_buff(buff)

        self._close_buff(entity, buff, event["timestamp"])

    def _close_buff(self, entity, buff, timestamp):
        closed = buff.closed(timestamp)
        entity.update_open_buff(closed)
        self._trigger_change_buff_stack(closed, timestamp, buff.stacks, 0)

    def _trigger_change_buff_stack(self, buff, timestamp, old_stacks, new_stacks):
        self._sink.emit(
            {
                **buff.event,
                "type": "changedebuffstack" if buff.is_debuff else "changebuffstack",
                "timestamp": timestamp,
                "oldStacks": old_stacks,
                "newStacks": new_stacks,
                "stacksGained": new_stacks - old_stacks,
                "buff": buff,
            }
        )

    def get_status_uptime(self, status_id, source_id=None):
        """Milliseconds ``status_id`` was up, net of invulnerable windows.

        ``source_id`` defaults to the tracked player; pass ``ANY_SOURCE`` to
        count every source. Buffs without a recorded source always count.
        """
        if source_id is None:
            source_id = self._fight.source.id

        reducer = StatusUptimeReducer(
            self.get_entities(), self._invulns, self._current_timestamp
        )
        return reducer.uptime(status_id, source_id)

    def report(self):
        return {
            f"{self._name}_tracking": {
                "num_entities": len(self.get_entities()),
                "num_dropped_stack_updates": self._num_dropped_stack_updates,
                "num_synthesized_buffs": self._num_synthesized_buffs,
                "num_superseded_buffs": self._num_superseded_buffs,
                "num_dropped_removals": self._num_dropped_removals,
            }
        }
