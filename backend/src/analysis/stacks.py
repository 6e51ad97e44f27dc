from analysis.base import BaseAnalyzer


class BuffStackAnalyzer(BaseAnalyzer):
    def __init__(self, status_ids):
        self._status_ids = set(status_ids)
        self._stacks = {}

    def add_event(self, event):
        if event["type"] not in ("changebuffstack", "changedebuffstack"):
            return

        status_id = event["abilityGameID"]
        if status_id not in self._status_ids:
            return

        stacks = self._stacks.setdefault(
            status_id,
            {"applications": 0, "max_stacks": 0, "stacks_gained": 0},
        )
        if event["oldStacks"] == 0:
            stacks["applications"] += 1
        stacks["max_stacks"] = max(stacks["max_stacks"], event["newStacks"])
        if event["stacksGained"] > 0:
            stacks["stacks_gained"] += event["stacksGained"]

    def get_stacks(self, status_id):
        return self._stacks.get(
            status_id, {"applications": 0, "max_stacks": 0, "stacks_gained": 0}
        )

    def report(self):
        return {
            "status_stacks": [
                {"status_id": status_id, **self.get_stacks(status_id)}
                for status_id in sorted(self._status_ids)
            ]
        }
