"""
Parley - live speech capture with utterance classification.

Entry point for running from a source checkout without installing.
"""

import sys
from pathlib import Path

from dotenv import load_dotenv


def run_parley(argv=None) -> int:
    """Run the terminal session."""
    sys.path.insert(0, str(Path(__file__).parent / "src"))
    from parley.__main__ import main
    return main(argv)


if __name__ == '__main__':
    load_dotenv()
    sys.exit(run_parley(sys.argv[1:]))
