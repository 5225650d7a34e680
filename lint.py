#!/usr/bin/env python3
"""
Run ruff and mypy over src/wslstack and tests.
Usage:
  python lint.py check    - ruff check
  python lint.py format   - ruff format
  python lint.py mypy     - mypy type checking
  python lint.py all      - check, format and mypy, stopping at the first failure
"""

import subprocess
import sys

TARGETS = ["src/wslstack", "tests"]

COMMANDS = {
    "check": ["ruff", "check", *TARGETS],
    "format": ["ruff", "format", *TARGETS],
    "mypy": [sys.executable, "-m", "mypy", *TARGETS],
}


def run_command(cmd):
    """Run a command and return the exit code."""
    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd)
    return result.returncode


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(__doc__)
        return 1

    command = args[0]
    if command == "all":
        for name in ("check", "format", "mypy"):
            exit_code = run_command(COMMANDS[name])
            if exit_code != 0:
                return exit_code
        return 0

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(__doc__)
        return 1

    return run_command(COMMANDS[command])


if __name__ == "__main__":
    sys.exit(main())
