"""soak_test_synthetic_capture.py

Long-run synthetic stress test for the capture -> correct -> encode path.
- Generates deterministic synthetic frames (no real screen capture)
- Runs the real CaptureLoop thread against them at the requested rate
- Corrects and encodes every accepted colour and validates the setPilot payload
- Checks the achieved capture rate never exceeds the target

Usage:
  python tools/soak_test_synthetic_capture.py --seconds 180 --fps 60
"""

import argparse
import json
import threading
import time

import numpy as np

from wiz_ambient.capture_loop import CaptureLoop, Notifier
from wiz_ambient.color_correction import correct_color
from wiz_ambient.config import Config
from wiz_ambient.packet_builder import PacketBuilder
from wiz_ambient.screen.screen_sampler import DisplayCapture


def make_frame_pattern(t: float, w: int = 64, h: int = 36) -> np.ndarray:
    """Cycle through scenes that stress the sampler and the correction bypass."""
    phase = int(t) % 10

    if phase in (0, 1):
        # Saturated primaries
        colors = ([255, 0, 0], [0, 255, 0], [0, 0, 255])
        c = colors[int(t * 2) % len(colors)]
        img = np.zeros((h, w, 3), dtype=np.uint8)
        img[:, :, :] = np.array(c, dtype=np.uint8)
        return img

    if phase == 2:
        # Near white (correction bypass)
        img = np.zeros((h, w, 3), dtype=np.uint8)
        img[:, :, :] = 253
        return img

    if phase == 3:
        # Near black (correction bypass)
        img = np.zeros((h, w, 3), dtype=np.uint8)
        img[:, :, :] = 2
        return img

    if phase in (4, 5, 6):
        # Smooth gradient sweep
        img = np.zeros((h, w, 3), dtype=np.uint8)
        x = np.linspace(0, 1, w, dtype=np.float32)
        r = (255 * (0.5 + 0.5 * np.sin(2 * np.pi * (x + 0.05 * t)))).astype(np.uint8)
        g = (255 * (0.5 + 0.5 * np.sin(2 * np.pi * (x + 0.05 * t + 0.33)))).astype(np.uint8)
        b = (255 * (0.5 + 0.5 * np.sin(2 * np.pi * (x + 0.05 * t + 0.66)))).astype(np.uint8)
        img[:, :, 0] = r[None, :]
        img[:, :, 1] = g[None, :]
        img[:, :, 2] = b[None, :]
        return img

    # Random-but-deterministic noise block
    rng = np.random.default_rng(int(t * 1000) & 0xFFFF)
    return rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)


class SyntheticCapture(DisplayCapture):
    def __init__(self, w=64, h=36, fail_every=0):
        self.w = w
        self.h = h
        self.fail_every = fail_every
        self.t0 = time.perf_counter()
        self.grabs = 0
        self.failures = 0

    def bounds(self):
        return 0, 0, self.w, self.h

    def grab(self, left, top, width, height):
        self.grabs += 1
        if self.fail_every and self.grabs % self.fail_every == 0:
            self.failures += 1
            return None
        frame = make_frame_pattern(time.perf_counter() - self.t0, self.w, self.h)
        return frame[top:top + height, left:left + width]


class ValidatingNotifier(Notifier):
    def __init__(self, cfg):
        self.cfg = cfg
        self.builder = PacketBuilder(cfg)
        self.lock = threading.Lock()
        self.accepted = 0
        self.bypassed = 0
        self.bad_packets = 0
        self.fps_samples = []
        self.statuses = []

    def on_color_captured(self, color):
        corrected = correct_color(color, self.cfg.correction_params())
        payload = json.loads(self.builder.build(corrected, self.cfg.brightness))
        params = payload.get('params', {})
        ok = (
            payload.get('id') == 1
            and payload.get('method') == 'setPilot'
            and all(0 <= int(params.get(k, -1)) <= 255 for k in ('r', 'g', 'b'))
            and 1 <= int(params.get('dimming', 0)) <= 100
        )
        with self.lock:
            self.accepted += 1
            if corrected == color:
                self.bypassed += 1
            if not ok:
                self.bad_packets += 1
                print(f"BAD PACKET: {payload}")

    def on_status(self, text):
        with self.lock:
            self.statuses.append(text)

    def on_frame_rate_sample(self, count, elapsed_ms):
        with self.lock:
            self.fps_samples.append(count * 1000.0 / max(elapsed_ms, 1))


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--seconds", type=float, default=60.0)
    ap.add_argument("--fps", type=int, default=60)
    ap.add_argument("--size", type=int, default=10)
    ap.add_argument("--threshold", type=int, default=3)
    ap.add_argument("--fail-every", type=int, default=0, help="Make every Nth grab fail (0 = never).")
    ap.add_argument("--json-out", type=str, default="")
    args = ap.parse_args()

    cfg = Config()
    cfg.target_fps = args.fps
    cfg.capture_size = args.size
    cfg.update_threshold = args.threshold

    capture = SyntheticCapture(fail_every=args.fail_every)
    notifier = ValidatingNotifier(cfg)
    loop = CaptureLoop(capture, notifier=notifier, target_fps=cfg.target_fps, threshold=cfg.update_threshold)
    region = cfg.capture_region(default_center=(capture.w // 2, capture.h // 2))
    loop.set_parameters(region.x, region.y, region.size, cfg.update_threshold)

    print(f"Soak: {args.seconds:.0f}s at {args.fps} fps, size={args.size}, threshold={args.threshold}")
    started = time.perf_counter()
    if not loop.start():
        print("Capture failed to start")
        return 2
    try:
        time.sleep(args.seconds)
    finally:
        loop.stop()
    elapsed = time.perf_counter() - started

    achieved = capture.grabs / elapsed if elapsed > 0 else 0.0
    summary = {
        "seconds": elapsed,
        "target_fps": args.fps,
        "achieved_fps": achieved,
        "grabs": capture.grabs,
        "failed_grabs": capture.failures,
        "accepted": notifier.accepted,
        "bypassed": notifier.bypassed,
        "bad_packets": notifier.bad_packets,
        "fps_samples": notifier.fps_samples,
        "errors": [s for s in notifier.statuses if 'error' in s.lower()],
    }
    print(json.dumps({k: v for k, v in summary.items() if k != 'fps_samples'}, indent=2))
    if args.json_out:
        with open(args.json_out, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)

    rc = 0
    if notifier.bad_packets:
        rc = 1
    if summary["errors"]:
        rc = 1
    # One frame of slack for start/stop edges
    if capture.grabs > elapsed * args.fps + 1:
        print(f"Rate limit exceeded: {achieved:.1f} > {args.fps}")
        rc = 1
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
