"""
controller.py
Caller-side wiring between the capture loop and the light: owns the current
device target and correction snapshot, corrects and sends every accepted
colour, and reports status for whatever front end is attached.
"""

import threading

from wiz_ambient.capture_loop import CaptureLoop, Notifier
from wiz_ambient.color_correction import ColorCorrector
from wiz_ambient.models import RED
from wiz_ambient.screen.screen_sampler import CaptureUnavailableError, MssDisplayCapture
from wiz_ambient.udp_sender import UDPSender


class AmbientController(Notifier):
    def __init__(self, config, capture=None, sender=None, notifier=None):
        self.config = config
        self.notifier = notifier or Notifier()
        if capture is None:
            capture = MssDisplayCapture(config.monitor_index)
        self.sender = sender if sender is not None else UDPSender(config)
        if getattr(self.sender, 'on_status', None) is None:
            self.sender.on_status = self.notifier.on_status
        self.loop = CaptureLoop(
            capture,
            notifier=self,
            target_fps=config.target_fps,
            threshold=config.update_threshold,
            fps_report_interval_s=config.fps_report_interval_s,
        )

        # Replaced wholesale, read without a lock on every send
        self.device_target = config.device_target()
        self.corrector = ColorCorrector(config.correction_params())

        self.capture_active = False
        self.region = None
        # Sends come from both the capture thread and the caller's thread
        self._send_lock = threading.RLock()
        self.last_sent_color = None
        self.last_corrected_color = None
        self.fps = 0.0

    @property
    def correction_params(self):
        return self.corrector.params

    @correction_params.setter
    def correction_params(self, params):
        self.corrector.params = params

    # Capture side

    def _region(self):
        if self.region is None:
            try:
                center = self.loop.sampler.center()
            except CaptureUnavailableError:
                center = (0, 0)
            self.region = self.config.capture_region(default_center=center)
        return self.region

    def update_capture_parameters(self):
        region = self._region()
        self.loop.set_parameters(region.x, region.y, region.size, self.config.update_threshold)

    def set_capture_position(self, x, y):
        self.region = self._region()._replace(x=int(x), y=int(y))
        self.config.capture_x, self.config.capture_y = self.region.x, self.region.y
        self.update_capture_parameters()
        if self.capture_active:
            self._status(f"Capturing at ({self.region.x}, {self.region.y})")

    def set_capture_size(self, size):
        self.config.capture_size = int(size)
        self.region = self._region()._replace(size=int(size))
        self.update_capture_parameters()

    def set_threshold(self, threshold):
        self.config.update_threshold = int(threshold)
        self.loop.set_threshold(threshold)

    def set_target_fps(self, fps):
        """Takes effect the next time capture starts."""
        self.config.target_fps = fps
        self.loop.target_fps = fps

    def start_capture(self):
        if self.capture_active:
            return True
        self.update_capture_parameters()
        if not self.loop.start():
            return False
        self.capture_active = True
        self._status(f"Capturing at ({self.region.x}, {self.region.y})")
        return True

    def stop_capture(self):
        if not self.capture_active:
            return
        self.capture_active = False
        self.loop.stop()
        self._status("Capture stopped")

    def toggle_capture(self):
        if self.capture_active:
            self.stop_capture()
            return False
        return self.start_capture()

    def reposition(self, x, y):
        """Stop capture, move the region, restart capture if it was running."""
        was_active = self.capture_active
        if was_active:
            self.capture_active = False
            self.loop.stop()
        self.set_capture_position(x, y)
        self._status(f"Position set to ({x}, {y})")
        if was_active and not self.capture_active:
            self.start_capture()

    # Send side

    def send_color(self, color):
        with self._send_lock:
            target = self.device_target
            corrected = self.corrector.correct(color)
            self.sender.send(target, corrected)
            self.last_sent_color = color
            self.last_corrected_color = corrected
        return corrected

    def send_test_color(self):
        corrected = self.send_color(RED)
        self._status("Sent test colour (Red)")
        return corrected

    def apply_settings(self, target=None, params=None):
        """Swap in a new device target and/or correction snapshot and resend the last colour."""
        if target is not None:
            self.device_target = target
        if params is not None:
            self.correction_params = params
        self._status(
            f"Settings updated: IP={self.device_target.host}, Brightness={self.device_target.brightness}"
        )
        with self._send_lock:
            color = self.last_sent_color
        if color is not None:
            self.send_color(color)

    def color_report(self):
        with self._send_lock:
            original, corrected = self.last_sent_color, self.last_corrected_color
        if original is None:
            return "RGB: 0, 0, 0"
        return f"Original: {original}  LED: {corrected}"

    def close(self):
        self.stop_capture()
        self.sender.close()

    # Notifier callbacks, invoked on the capture thread

    def on_color_captured(self, color):
        self.notifier.on_color_captured(color)
        self.send_color(color)

    def on_status(self, text):
        self.notifier.on_status(text)

    def on_frame_rate_sample(self, count, elapsed_ms):
        if elapsed_ms > 0:
            self.fps = count * 1000.0 / elapsed_ms
        self.notifier.on_frame_rate_sample(count, elapsed_ms)

    def _status(self, text):
        print(f"[APP] {text}")
        self.notifier.on_status(text)
