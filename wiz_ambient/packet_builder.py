"""
packet_builder.py
Builds the WiZ `setPilot` UDP payload: compact JSON, one datagram per colour.
"""
import json

import numpy as np

SET_PILOT = "setPilot"


class PacketBuilder:
    def __init__(self, config=None):
        self.config = config

    def build(self, color, brightness):
        cap = int(getattr(self.config, 'brightness_cap', 100))
        r, g, b = (int(c) for c in np.clip(np.round(np.array(color, dtype=np.float64)), 0, 255))
        payload = {
            "id": 1,
            "method": SET_PILOT,
            "params": {
                "r": r,
                "g": g,
                "b": b,
                "dimming": int(np.clip(int(brightness), 1, max(cap, 1))),
            },
        }
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")
