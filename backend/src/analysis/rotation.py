from typing import Dict, Optional

from analysis.base import BaseAnalyzer, Window
from analysis.resources import ResourceTracker
from console_table import console, print_table


class RotationWindow(Window):
    def __init__(self, start):
        super().__init__(start)
        self.events = []
        self.qualifying_count = 0

    def add_event(self, event, is_qualifying):
        self.events.append(event)
        if is_qualifying:
            self.qualifying_count += 1


class ErrorTally:
    def __init__(self):
        self.missed_qualifying_actions = 0
        self.missed_opener_buffs = 0


class RotationWindowAnalyzer(BaseAnalyzer):
    """Checks the casts made while a buff granted by an opener action is up.

    A window opens on the opener cast, if the resource gate allows it, and
    closes when the granted status is removed. Any shortfall against the
    expected number of qualifying actions is tallied on close.
    """

    def __init__(
        self,
        source_id,
        resources: ResourceTracker,
        opener_action_id,
        status_id,
        qualifying_action_id,
        expected_count,
        no_op_action_id=None,
        resource_threshold=0,
        resource_tick_amount=0,
    ):
        self._source_id = source_id
        self._resources = resources
        self._opener_action_id = opener_action_id
        self._status_id = status_id
        self._qualifying_action_id = qualifying_action_id
        self._expected_count = expected_count
        self._no_op_action_id = no_op_action_id
        self._resource_threshold = resource_threshold
        self._resource_tick_amount = resource_tick_amount
        self._window: Optional[RotationWindow] = None
        self.windows: Dict[int, RotationWindow] = {}
        self.errors = ErrorTally()

    @property
    def is_open(self):
        return self._window is not None

    def add_event(self, event):
        if event.get("sourceID") != self._source_id:
            return

        if event["type"] == "cast":
            self._on_cast(event)
        elif (
            event["type"] == "removebuff"
            and event["abilityGameID"] == self._status_id
        ):
            self._on_remove_status(event)

    def _meets_resource_threshold(self):
        # no resource data in the log, give the benefit of the doubt
        fraction = self._resources.fraction(self._resource_tick_amount)
        return fraction is None or fraction >= self._resource_threshold

    def _on_cast(self, event):
        action_id = event["abilityGameID"]

        if action_id == self._no_op_action_id:
            return

        if action_id == self._opener_action_id:
            if not self._meets_resource_threshold():
                self.errors.missed_opener_buffs += 1
            elif self._window is None:
                self._window = RotationWindow(event["timestamp"])
                self.windows[self._window.start] = self._window

        if self._window is not None:
            self._window.add_event(event, action_id == self._qualifying_action_id)

    def _on_remove_status(self, event):
        if self._window is None:
            return

        self._window.end = event["timestamp"]
        # Clamp to 0 since we can't miss negative
        self.errors.missed_qualifying_actions += max(
            0, self._expected_count - self._window.qualifying_count
        )
        self._window = None

    def window_reports(self):
        return [
            {
                "start": window.start,
                "end": window.end,
                "qualifying_count": window.qualifying_count,
                "expected_count": self._expected_count,
                "casts": [
                    {
                        "timestamp": event["timestamp"],
                        "abilityGameID": event["abilityGameID"],
                        "ability": event.get("ability"),
                    }
                    for event in window.events
                ],
            }
            for window in self.windows.values()
        ]

    def report(self):
        return {
            "rotation_windows": {
                "missed_qualifying_actions": self.errors.missed_qualifying_actions,
                "missed_opener_buffs": self.errors.missed_opener_buffs,
                "windows": self.window_reports(),
            }
        }

    def print(self):
        console.print(
            f"* {self.errors.missed_qualifying_actions} qualifying actions missed "
            f"across {len(self.windows)} windows"
        )
        console.print(
            f"* {self.errors.missed_opener_buffs} openers used below the resource threshold"
        )
        print_table(
            ["Start", "Count", "Casts"],
            [
                (
                    str(window["start"]),
                    f"{window['qualifying_count']}/{window['expected_count']}",
                    ", ".join(
                        str(cast["ability"] or cast["abilityGameID"])
                        for cast in window["casts"]
                    ),
                )
                for window in self.window_reports()
            ],
        )
