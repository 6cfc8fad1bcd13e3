"""
main.py
Headless entry point: samples a screen region and drives a WiZ light until Ctrl+C.

Usage:
  wiz-ambient --ip 192.168.50.110 --x 960 --y 540 --size 10
  wiz-ambient --ip 192.168.50.110 --test-color
"""

import argparse
import time

from wiz_ambient.capture_loop import Notifier
from wiz_ambient.config import Config
from wiz_ambient.controller import AmbientController


class ConsoleNotifier(Notifier):
    def __init__(self):
        self.controller = None

    def on_status(self, text):
        print(f"[STATUS] {text}")

    def on_frame_rate_sample(self, count, elapsed_ms):
        fps = count * 1000.0 / elapsed_ms if elapsed_ms > 0 else 0.0
        report = self.controller.color_report() if self.controller is not None else ""
        print(f"[CAPTURE] FPS: {fps:.1f}  {report}")


def build_parser():
    cfg = Config()
    ap = argparse.ArgumentParser(description="Mirror a screen region's colour to a WiZ light over UDP.")
    ap.add_argument("--ip", default=cfg.udp_ip, help="Light IP address or hostname.")
    ap.add_argument("--port", type=int, default=cfg.udp_port)
    ap.add_argument("--brightness", type=int, default=cfg.brightness, help="1-100")
    ap.add_argument("--brightness-cap", type=int, default=cfg.brightness_cap,
                    help="Upper bound for brightness on every packet, 1-100.")
    ap.add_argument("--x", type=int, default=None, help="Capture centre X (default: screen centre).")
    ap.add_argument("--y", type=int, default=None, help="Capture centre Y (default: screen centre).")
    ap.add_argument("--size", type=int, default=cfg.capture_size, help="Capture square side, 1-50.")
    ap.add_argument("--monitor", type=int, default=cfg.monitor_index, help="mss monitor index (1 = primary).")
    ap.add_argument("--threshold", type=int, default=cfg.update_threshold,
                    help="Minimum |dR|+|dG|+|dB| before a new colour is sent.")
    ap.add_argument("--fps", type=int, default=cfg.target_fps, help="Capture rate limit, 30-200.")
    ap.add_argument("--gamma", type=float, default=cfg.gamma)
    ap.add_argument("--saturation", type=float, default=cfg.saturation)
    ap.add_argument("--red", type=float, default=cfg.red_factor)
    ap.add_argument("--green", type=float, default=cfg.green_factor)
    ap.add_argument("--blue", type=float, default=cfg.blue_factor)
    ap.add_argument("--debug-udp", action="store_true", help="Print sent packets (at most once a second).")
    ap.add_argument("--test-color", action="store_true", help="Send pure red once and exit.")
    return ap


def config_from_args(args):
    cfg = Config()
    cfg.udp_ip = args.ip
    cfg.udp_port = args.port
    cfg.brightness = args.brightness
    cfg.brightness_cap = args.brightness_cap
    cfg.capture_x = args.x
    cfg.capture_y = args.y
    cfg.capture_size = args.size
    cfg.monitor_index = args.monitor
    cfg.update_threshold = args.threshold
    cfg.target_fps = args.fps
    cfg.gamma = args.gamma
    cfg.saturation = args.saturation
    cfg.red_factor = args.red
    cfg.green_factor = args.green
    cfg.blue_factor = args.blue
    cfg.debug_udp_packets = args.debug_udp
    cfg.validate()
    return cfg


def main(argv=None):
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)

    notifier = ConsoleNotifier()
    controller = AmbientController(cfg, notifier=notifier)
    notifier.controller = controller

    if args.test_color:
        controller.send_test_color()
        controller.close()
        return 0

    if not controller.start_capture():
        controller.close()
        return 1

    try:
        while controller.capture_active:
            time.sleep(0.1)
    except KeyboardInterrupt:
        print("Exiting...")
    finally:
        controller.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
