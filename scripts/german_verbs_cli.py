#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Run the German verbs harvester from a source checkout.

Usage:
    python scripts/german_verbs_cli.py scrape --resume
    python scripts/german_verbs_cli.py frequency
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# pylint: disable=wrong-import-position
from german_verbs.cli import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
