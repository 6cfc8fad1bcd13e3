"""run_full_synthetic_test_suite.py

One-shot check of the whole capture -> correct -> encode path with no screen
and no bulb attached. The unittest modules run first, then the soak tool runs
once per entry in SOAK_SCENARIOS. Everything goes to a single log under
--out-dir, and every soak scenario also writes its own JSON summary beside it.

  python tools/run_full_synthetic_test_suite.py --minutes 10
"""

import argparse
import subprocess
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
SOAK_TOOL = REPO_ROOT / "tools" / "soak_test_synthetic_capture.py"

# (tag, share of the time budget, fps override or None, extra soak flags)
SOAK_SCENARIOS = [
    ("baseline", 0.4, None, []),
    ("flaky_grabs", 0.3, None, ["--fail-every", "7"]),
    ("max_rate", 0.3, 200, ["--size", "50", "--threshold", "0"]),
]
MIN_SCENARIO_S = 20.0


def unit_test_command():
    return [sys.executable, "-m", "unittest", "discover",
            "-s", "wiz_ambient", "-t", ".", "-p", "test*.py", "-q"]


def soak_commands(total_s, fps, out_dir, stamp):
    """Yield (tag, argv) for each soak scenario."""
    for tag, share, fps_override, extra in SOAK_SCENARIOS:
        seconds = max(total_s * share, MIN_SCENARIO_S)
        summary = out_dir / f"wiz_suite_{stamp}_{tag}.json"
        yield tag, [
            sys.executable, str(SOAK_TOOL),
            "--seconds", str(int(round(seconds))),
            "--fps", str(fps_override or fps),
            "--json-out", str(summary),
            *extra,
        ]


def run_step(tag, argv, log):
    log.write(f"\n--- {tag} ---\n$ {' '.join(argv)}\n")
    log.flush()
    started = time.monotonic()
    result = subprocess.run(argv, stdout=log, stderr=subprocess.STDOUT, cwd=REPO_ROOT)
    log.write(f"--- {tag}: exit {result.returncode} after {time.monotonic() - started:.1f}s ---\n")
    log.flush()
    print(f"[SUITE] {tag}: {'ok' if result.returncode == 0 else 'FAILED'}")
    return result.returncode


def main():
    ap = argparse.ArgumentParser(description="Unit tests plus synthetic soak runs, logged to one file.")
    ap.add_argument("--minutes", type=float, default=10.0,
                    help="Soak time budget shared across the scenarios (at least 1 minute).")
    ap.add_argument("--fps", type=int, default=60, help="Capture rate for scenarios without their own.")
    ap.add_argument("--out-dir", default="logs")
    args = ap.parse_args()

    out_dir = REPO_ROOT / args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    stamp = time.strftime("%Y%m%d_%H%M%S")
    log_path = out_dir / f"wiz_suite_{stamp}.log"
    total_s = max(args.minutes * 60.0, 60.0)

    failed = []
    with log_path.open("w", encoding="utf-8") as log:
        log.write(f"wiz_ambient synthetic suite {stamp}\n")
        log.write(f"python={sys.executable} budget={total_s:.0f}s fps={args.fps}\n")
        steps = [("unit_tests", unit_test_command())]
        steps += list(soak_commands(total_s, args.fps, out_dir, stamp))
        for tag, argv in steps:
            if run_step(tag, argv, log) != 0:
                failed.append(tag)
        log.write(f"\nfailed: {', '.join(failed) or 'none'}\n")

    print(f"[SUITE] log: {log_path}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
