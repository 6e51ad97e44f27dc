from typing import Dict, Iterable, List

from analysis.base import BaseAnalyzer, Window, range_overlap
from console_table import console, print_table

APPLY = "apply"
REMOVE = "remove"
INVULNERABLE = "invulnerable"

# Passed as a source id to match buffs regardless of who applied them
ANY_SOURCE = "any"


def subtract_window(window, hole) -> List[Window]:
    """Remove ``hole`` from ``window``, returning the zero, one or two pieces left"""
    if not range_overlap((window.start, window.end), (hole.start, hole.end)):
        return [window]

    pieces = []
    if hole.start > window.start:
        # hole chops the tail, or splits the window
        pieces.append(Window(window.start, hole.start))
    if hole.end < window.end:
        # hole chops the head, or splits the window
        pieces.append(Window(hole.end, window.end))
    return pieces


def sweep_uptime(events) -> int:
    """Union duration of (timestamp, APPLY|REMOVE) pairs.

    Removals sort ahead of applications sharing a timestamp, so back to back
    ranges are counted as two spans rather than merged into one.
    """
    active = 0
    start = None
    uptime = 0

    for timestamp, kind in sorted(events, key=lambda e: (e[0], e[1] == APPLY)):
        if kind == APPLY:
            if active == 0:
                start = timestamp
            active += 1
        elif kind == REMOVE:
            active -= 1
            if active == 0:
                uptime += timestamp - start
    return uptime


class StatusUptimeReducer:
    def __init__(self, entities: Dict, invulns, current_timestamp):
        self._entities = entities
        self._invulns = invulns
        self._current_timestamp = current_timestamp

    def _matches(self, buff, status_id, source_id):
        if buff.ability_id != status_id:
            return False
        if source_id == ANY_SOURCE or buff.source_id is None:
            return True
        return buff.source_id == source_id

    def _entity_invulns(self, entity_id):
        if self._invulns is None:
            return []
        return [
            invuln
            for invuln in self._invulns.get_invulns(entity_id)
            if invuln.kind == INVULNERABLE
        ]

    def buff_ranges(self, buff, invulns: Iterable) -> List[Window]:
        end = buff.end
        if end is None:
            end = max(buff.start, self._current_timestamp)

        ranges = [Window(buff.start, end)]
        for invuln in invulns:
            # discard invulns outside the span of the buff
            if not range_overlap((invuln.start, invuln.end), (buff.start, end)):
                continue

            # every range is cut against the same invuln before moving on
            ranges = [
                piece for window in ranges for piece in subtract_window(window, invuln)
            ]

        return [window for window in ranges if window.end > window.start]

    def uptime(self, status_id, source_id):
        events = []

        for entity in self._entities.values():
            invulns = self._entity_invulns(entity.id)

            for buff in entity.buffs:
                if not self._matches(buff, status_id, source_id):
                    continue

                for window in self.buff_ranges(buff, invulns):
                    events.append((window.start, APPLY))
                    events.append((window.end, REMOVE))

        return sweep_uptime(events)


class StatusUptimeAnalyzer(BaseAnalyzer):
    def __init__(self, fight, tracker, status_ids, report_key, source_id=None):
        self._fight = fight
        self._tracker = tracker
        self._status_ids = sorted(status_ids)
        self._report_key = report_key
        self._source_id = source_id

    def uptime(self, status_id):
        return self._tracker.get_status_uptime(status_id, self._source_id)

    def _uptimes(self):
        for status_id in self._status_ids:
            uptime = self.uptime(status_id)
            yield {
                "status_id": status_id,
                "uptime": uptime,
                "uptime_percent": (
                    uptime / self._fight.duration if self._fight.duration > 0 else 0
                ),
            }

    def report(self):
        return {self._report_key: list(self._uptimes())}

    def print(self):
        uptimes = list(self._uptimes())
        if not uptimes:
            return

        console.print(f"* {self._report_key.replace('_', ' ').capitalize()}")
        print_table(
            ["Status", "Uptime (s)", "Uptime %"],
            [
                (
                    str(uptime["status_id"]),
                    f"{uptime['uptime'] / 1000:.1f}",
                    f"{uptime['uptime_percent']:.1%}",
                )
                for uptime in uptimes
            ],
        )
