"""
capture_loop.py
Background thread that samples the capture region at a bounded frame rate,
drops colours the change gate rejects and hands the rest to the notifier.

Correction and sending are left to the notifier so that correction edits
apply on the next send without waiting for a new capture.
"""

import threading
import time

from wiz_ambient.change_gate import ChangeGate
from wiz_ambient.models import CaptureRegion
from wiz_ambient.screen.screen_sampler import CaptureUnavailableError, RegionSampler


class Notifier:
    """Callbacks from the capture thread. Callers marshal to their own thread if they need to."""

    def on_color_captured(self, color):
        pass

    def on_status(self, text):
        pass

    def on_frame_rate_sample(self, count, elapsed_ms):
        pass


class FrameRateCounter:
    def __init__(self, interval_s=1.0):
        self.interval_s = interval_s
        self.count = 0
        self.started = None

    def reset(self, now):
        self.count = 0
        self.started = now

    def tick(self):
        self.count += 1

    def poll(self, now):
        """(count, elapsed_ms) once per interval, else None."""
        if self.started is None:
            self.reset(now)
            return None
        elapsed = now - self.started
        if elapsed < self.interval_s:
            return None
        sample = (self.count, int(round(elapsed * 1000)))
        self.reset(now)
        return sample


class CaptureLoop:
    def __init__(self, capture, notifier=None, target_fps=60, threshold=1,
                 fps_report_interval_s=1.0, clock=time.perf_counter):
        self.sampler = RegionSampler(capture)
        self.notifier = notifier or Notifier()
        self.gate = ChangeGate()
        self.fps_counter = FrameRateCounter(fps_report_interval_s)
        self.target_fps = target_fps
        self._clock = clock

        # Shared with the caller's thread
        self._lock = threading.Lock()
        self._region = CaptureRegion(0, 0, 10)
        self._threshold = threshold

        self._stop_event = threading.Event()
        self._thread = None

    def set_parameters(self, x, y, size, threshold):
        with self._lock:
            self._region = CaptureRegion(int(x), int(y), int(size))
            self._threshold = int(threshold)

    def set_region(self, region):
        with self._lock:
            self._region = region

    def set_threshold(self, threshold):
        with self._lock:
            self._threshold = int(threshold)

    def snapshot(self):
        with self._lock:
            return self._region, self._threshold

    @property
    def interval(self):
        return 1.0 / max(float(self.target_fps), 1.0)

    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Idle -> Capturing. Returns False if the display cannot be opened."""
        thread = self._thread
        if thread is not None and thread.is_alive():
            if not self._stop_event.is_set():
                return True
            if thread is threading.current_thread():
                # stop() then start() from the same callback: keep this thread going.
                self.gate.reset()
                self._stop_event.clear()
                return True
            # Stopped from inside a callback but not exited yet.
            thread.join()
        self._thread = None
        try:
            self.sampler.open()
        except CaptureUnavailableError as e:
            print(f"[CAPTURE] {e}")
            self.notifier.on_status(str(e))
            return False
        self.gate.reset()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="capture-loop", daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """Capturing -> Idle. Blocks until the loop thread has exited."""
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        if thread is threading.current_thread():
            # Called from a notifier callback; the loop exits at the iteration boundary.
            return
        thread.join()
        self._thread = None

    def run_once(self):
        """One capture iteration. Returns the accepted colour, or None."""
        region, threshold = self.snapshot()
        color = self.sampler.sample(region)
        if color is None:
            return None
        if not self.gate.offer(color, threshold):
            return None
        self.fps_counter.tick()
        self.notifier.on_color_captured(color)
        return color

    def _run(self):
        interval = self.interval
        self.fps_counter.reset(self._clock())
        try:
            while not self._stop_event.is_set():
                started = self._clock()
                try:
                    self.run_once()
                except Exception as e:
                    msg = f"Capture error: {e}"
                    print(f"[CAPTURE] {msg}")
                    self.notifier.on_status(msg)

                now = self._clock()
                sample = self.fps_counter.poll(now)
                if sample is not None:
                    self.notifier.on_frame_rate_sample(*sample)

                # Sleep only what is left of this frame; overruns go straight on.
                remaining = interval - (now - started)
                if remaining > 0:
                    self._stop_event.wait(remaining)
        finally:
            self.sampler.close()
