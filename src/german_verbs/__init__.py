"""Harvest German verb conjugation tables from Wiktionary Flexion pages."""

__version__ = "1.0.0"
