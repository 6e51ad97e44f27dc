from collections import defaultdict

from analysis.base import BasePreprocessor, Window
from analysis.uptime import INVULNERABLE
from report import Fight


class InvulnerabilityInterval(Window):
    def __init__(self, entity_id, start, end=None, kind=INVULNERABLE):
        super().__init__(start, end)
        self.entity_id = entity_id
        self.kind = kind

    def __repr__(self):
        return (
            f"InvulnerabilityInterval({self.entity_id}, {self.start}, "
            f"{self.end}, {self.kind!r})"
        )


class InvulnTracker(BasePreprocessor):
    """Windows where an entity can't be affected, from targetability changes
    plus any intervals handed over with the fight"""

    def __init__(self, fight: Fight):
        self._end_time = fight.end_time
        self._invulns = defaultdict(list)
        self._untargetable = {}

    def add_invuln(self, entity_id, start, end=None, kind=INVULNERABLE):
        invuln = InvulnerabilityInterval(entity_id, start, end, kind)
        self._invulns[entity_id].append(invuln)
        return invuln

    def preprocess_event(self, event):
        if event["type"] != "targetabilityupdate":
            return

        entity_id = event.get("targetID")
        if not event.get("targetable"):
            if entity_id not in self._untargetable:
                self._untargetable[entity_id] = self.add_invuln(
                    entity_id, event["timestamp"]
                )
        else:
            invuln = self._untargetable.pop(entity_id, None)
            if invuln:
                invuln.end = event["timestamp"]

    def get_invulns(self, entity_id):
        # still untargetable when the log ended
        return [
            InvulnerabilityInterval(
                invuln.entity_id,
                invuln.start,
                invuln.end if invuln.end is not None else self._end_time,
                invuln.kind,
            )
            for invuln in self._invulns.get(entity_id, [])
        ]
