"""Regenerate the mosaic golden images and metrics under goldens/mosaic/.

usage: python scripts/update_goldens.py [-k EXPR]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
GOLDEN_TESTS = ROOT / "tests" / "mosaic" / "test_mosaic_golden.py"

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("-k", dest="select", help="only refresh golden cases matching this pytest expression")
    args = parser.parse_args()

    env = dict(os.environ, UPDATE_GOLDENS="1")
    cmd = [sys.executable, "-m", "pytest", "-q", "-rs", str(GOLDEN_TESTS)]
    if args.select:
        cmd += ["-k", args.select]
    raise SystemExit(subprocess.call(cmd, cwd=ROOT, env=env))
