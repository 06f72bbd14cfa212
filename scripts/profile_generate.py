"""cProfile a full-size generation run on a synthetic portrait, dump .prof + flame graph SVG."""

import cProfile
import pstats
import sys
from pathlib import Path

import cv2
import numpy as np

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT / "src"))

from stringart.config import StringArtConfig  # noqa: E402 (path set above)
from stringart.pipeline import generate_from_array  # noqa: E402

PROF_OUT = ROOT / "profile.prof"
SVG_OUT  = ROOT / "flamegraph.svg"


def _portrait(size: int = 600) -> np.ndarray:
    """Dark disc on a gradient; enough structure to keep selection busy."""
    img = np.tile(np.linspace(255, 140, size, dtype=np.uint8), (size, 1))
    cv2.circle(img, (size // 2, size // 2), size // 4, 30, -1)
    cv2.ellipse(img, (size // 2, size // 2 + size // 5), (size // 6, size // 12), 0, 0, 180, 220, -1)
    return img


def main() -> None:
    image = _portrait()
    cfg = StringArtConfig(num_lines=1500)

    pr = cProfile.Profile()
    pr.enable()
    result = generate_from_array(image, cfg)
    pr.disable()

    print(f"{result.stats.num_lines} lines in {result.stats.elapsed:.1f}s")
    pr.dump_stats(str(PROF_OUT))
    print(f"Profile saved → {PROF_OUT}")

    stats = pstats.Stats(str(PROF_OUT), stream=sys.stdout)
    stats.strip_dirs()
    stats.sort_stats("cumulative")
    stats.print_stats(40)

    # Flame graph
    import subprocess
    proc = subprocess.run(
        [sys.executable, "-m", "flameprof", str(PROF_OUT)],
        capture_output=True, text=True,
    )
    SVG_OUT.write_text(proc.stdout)
    print(f"\nFlame graph → {SVG_OUT}")


if __name__ == "__main__":
    main()
