class Window:
    def __init__(self, start, end=None):
        self.start = start
        self.end = end

    def __eq__(self, other):
        if not isinstance(other, Window):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __repr__(self):
        return f"Window({self.start}, {self.end})"


def range_overlap(r1, r2):
    """True if the two (start, end) ranges share more than an endpoint"""
    return r1[0] < r2[1] and r2[0] < r1[1]


class BasePreprocessor:
    INCLUDE_PET_EVENTS = False

    def preprocess_event(self, event):
        pass


class BaseAnalyzer:
    INCLUDE_PET_EVENTS = False

    def add_event(self, event):
        pass

    def report(self):
        return {}

    def print(self):
        pass
