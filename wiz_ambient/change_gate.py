"""
change_gate.py
Suppresses colours that are too close to the last one we let through, so
sensor noise does not turn into a packet every frame.
"""


def accept(candidate, last_accepted, threshold):
    if last_accepted is None:
        return True
    return candidate.distance(last_accepted) > threshold


class ChangeGate:
    def __init__(self, threshold=0):
        self.threshold = threshold
        self.last_accepted = None

    def reset(self):
        self.last_accepted = None

    def offer(self, candidate, threshold=None):
        """Return True and remember `candidate` if it differs enough from the last accepted colour."""
        if threshold is None:
            threshold = self.threshold
        if not accept(candidate, self.last_accepted, threshold):
            return False
        self.last_accepted = candidate
        return True
