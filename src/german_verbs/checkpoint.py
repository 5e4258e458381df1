#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
JSON checkpoint file for resumable scrape runs.

The store only serializes ScrapeState values; it never interprets them.
Every save rewrites the whole document through a temp file so a crash
leaves either the previous or the new checkpoint, never half of one.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from .models import ScrapeState, StateCorruption


class CheckpointStore:
    """Reads and writes the scraper state file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[ScrapeState]:
        """Saved state, or None if there is none or it cannot be used."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ScrapeState.from_dict(data)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            print(f"WARNING: Could not read state file {self.path}: {e}")
        except StateCorruption as e:
            print(f"WARNING: Invalid state file {self.path}: {e}")
        print("WARNING: Starting fresh")
        return None

    def save(self, state: ScrapeState) -> None:
        """Atomically replace the state file with `state`."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.path.with_name(self.path.name + ".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_file, self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
