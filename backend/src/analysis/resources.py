from analysis.base import BaseAnalyzer


class ResourceTracker(BaseAnalyzer):
    """Latest known resource pool of the tracked player.

    Must run ahead of any analyzer that reads it, so that the snapshot is the
    one at the time of the event being analyzed.
    """

    def __init__(self, source_id, resource="mp", max_resource="maxMP"):
        self._source_id = source_id
        self._resource = resource
        self._max_resource = max_resource
        self.current = None
        self.maximum = None

    def add_event(self, event):
        if event.get("sourceID") == self._source_id:
            self._update(event.get("sourceResources"))
        if event.get("targetID") == self._source_id:
            self._update(event.get("targetResources"))

    def _update(self, resources):
        if not resources:
            return

        if self._resource in resources:
            self.current = resources[self._resource]
        if self._max_resource in resources:
            self.maximum = resources[self._max_resource]

    @property
    def is_known(self):
        return self.current is not None and bool(self.maximum)

    def fraction(self, bonus=0):
        if not self.is_known:
            return None
        return (self.current + bonus) / self.maximum
