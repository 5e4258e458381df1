#!/usr/bin/env python3
"""Package setup for the German Verbs Harvester."""

from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).parent

# Long description
readme_path = ROOT / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = ""

# Install requirements
requirements_path = ROOT / "requirements.txt"
install_requires: list[str] = []
if requirements_path.exists():
    for line in requirements_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        install_requires.append(line)

setup(
    name="german-verbs",
    version="1.0.0",
    description="Resumable harvester for German verb conjugation tables from Wiktionary",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require={
        "dev": [
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
            "isort>=5.12.0",
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "german-verbs=german_verbs.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "Topic :: Text Processing :: Linguistic",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords=[
        "german",
        "verbs",
        "conjugation",
        "wiktionary",
        "scraper",
    ],
)
