"""
screen_sampler.py

Captures a small square of the screen and reduces it to its mean RGB colour.
The platform grab sits behind DisplayCapture so the averaging can run on
synthetic frames.
"""

import threading

import cv2
import mss
import numpy as np

from wiz_ambient.models import Color, intersect


class CaptureUnavailableError(Exception):
    """No display could be opened; capture cannot start."""


class DisplayCapture:
    """
    Platform screen grab.
    bounds() -> (left, top, width, height) of the display, raises CaptureUnavailableError.
    grab(left, top, width, height) -> HxWx3 uint8 RGB array, or None on failure.
    """

    def bounds(self):
        raise NotImplementedError

    def grab(self, left, top, width, height):
        raise NotImplementedError

    def close(self):
        pass


class MssDisplayCapture(DisplayCapture):
    def __init__(self, monitor_index=1):
        self.monitor_index = monitor_index
        # mss handles are tied to the thread that created them.
        self._local = threading.local()
        self.last_capture_success = True

    def bounds(self):
        try:
            with mss.mss() as sct:
                monitor = sct.monitors[self.monitor_index]
        except Exception as e:
            raise CaptureUnavailableError(f"Screen capture unavailable: {e}") from e
        return monitor['left'], monitor['top'], monitor['width'], monitor['height']

    def _sct(self):
        sct = getattr(self._local, 'sct', None)
        if sct is None:
            sct = mss.mss()
            self._local.sct = sct
        return sct

    def grab(self, left, top, width, height):
        """
        Grab one rectangle of the screen.
        Returns:
            np.ndarray: RGB image (height, width, 3), or None if the grab failed.
        """
        try:
            shot = self._sct().grab({'left': left, 'top': top, 'width': width, 'height': height})
            img = np.array(shot)
            if img.size == 0:
                return None
            # mss returns BGRA
            rgb = cv2.cvtColor(img, cv2.COLOR_BGRA2RGB)
        except Exception as e:
            # Only report the first failure of a run of failures
            if self.last_capture_success:
                print(f"[SCREEN] Screen capture failed: {e}")
            self.last_capture_success = False
            return None
        self.last_capture_success = True
        return rgb

    def close(self):
        sct = getattr(self._local, 'sct', None)
        if sct is not None:
            sct.close()
            self._local.sct = None


def average_color(pixels):
    """Per-channel mean of an HxWx3 array, floor-divided like the 8-bit totals it comes from."""
    flat = np.asarray(pixels)[..., :3].reshape(-1, 3)
    count = flat.shape[0]
    if count == 0:
        return None
    totals = flat.sum(axis=0, dtype=np.uint64)
    return Color(*(int(total) // count for total in totals))


class RegionSampler:
    def __init__(self, capture):
        self.capture = capture
        self.screen_bounds = None

    def open(self):
        """Read display geometry. Raises CaptureUnavailableError if there is no display."""
        self.screen_bounds = self.capture.bounds()
        return self.screen_bounds

    def close(self):
        self.capture.close()

    def center(self):
        if self.screen_bounds is None:
            self.open()
        left, top, width, height = self.screen_bounds
        return left + width // 2, top + height // 2

    def clip(self, region):
        if self.screen_bounds is None:
            self.open()
        return intersect(region.rect(), self.screen_bounds)

    def sample(self, region):
        """
        Mean colour of `region` clipped to the display.
        Returns:
            Color, or None when there is nothing to sample this tick.
        """
        rect = self.clip(region)
        if rect is None:
            return None
        pixels = self.capture.grab(*rect)
        if pixels is None or pixels.size == 0:
            return None
        if rect[2] == 1 and rect[3] == 1:
            r, g, b = pixels[0, 0, :3]
            return Color(int(r), int(g), int(b))
        return average_color(pixels)
