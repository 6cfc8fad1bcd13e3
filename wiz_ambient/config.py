"""
config.py
Configuration for the WiZ ambient colour sync application.
Every value here is a caller-side setting; the capture/send pipeline only
ever sees the snapshots built by the helpers at the bottom.
"""

from wiz_ambient.models import CaptureRegion, CorrectionParams, DeviceTarget
from wiz_ambient.utils import clamp


class Config:
    def __init__(self):
        # UDP / device settings
        self.udp_ip = '192.168.50.110'  # WiZ bulb IP or hostname
        self.udp_port = 38899  # WiZ local control port
        self.brightness = 100  # "dimming" field, 1-100
        # Upper bound for "dimming" on every packet; lower it to keep the bulb from ever going full bright.
        self.brightness_cap = 100
        self.debug_udp_packets = False

        # Capture settings
        # None => centre of the primary display, resolved when capture starts.
        self.capture_x = None
        self.capture_y = None
        self.capture_size = 10
        self.monitor_index = 1  # mss monitor list index, 1 = primary
        # Minimum |dR|+|dG|+|dB| against the last accepted colour before a new one is sent.
        self.update_threshold = 3
        self.target_fps = 60
        # How often the loop reports captured frame counts.
        self.fps_report_interval_s = 1.0

        # Colour correction (applied at send time, not capture time)
        self.gamma = 0.6
        self.saturation = 1.8
        self.red_factor = 1.2
        self.green_factor = 1.0
        self.blue_factor = 1.2

        # Accepted ranges, enforced by validate()
        self.ranges = {
            'capture_x': (0, 5000),
            'capture_y': (0, 5000),
            'capture_size': (1, 50),
            'brightness': (1, 100),
            'brightness_cap': (1, 100),
            'target_fps': (30, 200),
            'gamma': (0.5, 3.0),
            'saturation': (0.5, 2.5),
            'red_factor': (0.5, 2.0),
            'green_factor': (0.5, 2.0),
            'blue_factor': (0.5, 2.0),
            'update_threshold': (0, 765),
        }

    def validate(self):
        """Clamp every ranged setting into its range. Returns the names that changed."""
        changed = []
        for name, (low, high) in self.ranges.items():
            value = getattr(self, name)
            if value is None:
                continue
            fixed = type(low)(clamp(value, low, high)) if isinstance(value, (int, float)) else low
            if fixed != value:
                print(f"[CONFIG] {name}={value!r} out of range [{low}, {high}], using {fixed}")
                setattr(self, name, fixed)
                changed.append(name)
        return changed

    def capture_region(self, default_center=(0, 0)):
        x = self.capture_x if self.capture_x is not None else default_center[0]
        y = self.capture_y if self.capture_y is not None else default_center[1]
        return CaptureRegion(int(x), int(y), int(self.capture_size))

    def correction_params(self):
        return CorrectionParams(
            gamma=float(self.gamma),
            saturation=float(self.saturation),
            red=float(self.red_factor),
            green=float(self.green_factor),
            blue=float(self.blue_factor),
        )

    def device_target(self):
        return DeviceTarget(str(self.udp_ip), int(self.udp_port), int(self.brightness))
