"""Configuration constants for notetree."""

import os
from pathlib import Path

# Environment variable overriding the data directory.
DATA_DIR_ENV = "NOTETREE_DATA_DIR"

# Environment variable setting the log level when --verbose is not given.
LOG_LEVEL_ENV = "NOTETREE_LOG_LEVEL"

# Directory with data. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/notetree").expanduser(),
    Path("~/.notetree").expanduser(),
    Path("~/.config/notetree").expanduser(),
]

# Used when none of DATA_DIRECTORIES exists yet.
DEFAULT_DATA_DIR: Path = DATA_DIRECTORIES[0]

DATABASE_FILENAME = "notetree.db"

# Characters of context shown on each side of a body match.
SNIPPET_RADIUS = 40
SNIPPET_ELLIPSIS = "..."


def resolve_data_directory() -> Path:
    """Return the data directory: env override, first existing candidate, or default."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DEFAULT_DATA_DIR
