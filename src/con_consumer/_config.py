"""Option defaults for con-consumer from the environment and .env files."""

from __future__ import annotations
import logging
import os
from pathlib import Path
from string import Template
from typing import Dict, List, Mapping, Optional, Tuple
from dotenv import dotenv_values

CONFIG_PATHS_VAR = "CONSUMER_CONFIG_PATHS"

# In precedence order, later files override earlier ones.
DEFAULT_CONFIG_PATHS = (
    "/etc/con-consumer/.env",
    "${XDG_CONFIG_HOME}/con-consumer/.env",
    ".con-consumer/.env",
)

# argparse destination -> environment variable providing its default
ENV_VARS = {
    "log_level": "CONSUMER_LOG_LEVEL",
    "cpu_cores": "CONSUMER_CPU_CORES",
    "memory_gb": "CONSUMER_MEMORY_GB",
    "extra_memory_gb": "CONSUMER_EXTRA_MEMORY_GB",
    "extra_memory_delay_seconds": "CONSUMER_EXTRA_MEMORY_DELAY_SECONDS",
    "metrics_port": "CONSUMER_METRICS_PORT",
    "metrics_address": "CONSUMER_METRICS_ADDRESS",
    "summary_format": "CONSUMER_SUMMARY_FORMAT",
    "colors": "CONSUMER_COLORS",
}

# (logging level, message), logged by the caller once logging is set up
Note = Tuple[int, str]


def config_paths(environ: Mapping[str, str]) -> List[Path]:
    """The .env files to read, from CONSUMER_CONFIG_PATHS or the defaults.

    Entries are separated by :data:`os.pathsep` and may reference environment
    variables as ``$VAR`` or ``${VAR}``; XDG_CONFIG_HOME falls back to
    ``~/.config``.
    """
    raw = environ.get(CONFIG_PATHS_VAR)
    entries = DEFAULT_CONFIG_PATHS if raw is None else raw.split(os.pathsep)
    variables = dict(environ)
    variables["XDG_CONFIG_HOME"] = environ.get("XDG_CONFIG_HOME") or "~/.config"
    return [
        Path(Template(entry.strip()).safe_substitute(variables)).expanduser()
        for entry in entries
        if entry.strip()
    ]


def read_env_files(paths: List[Path]) -> Tuple[Dict[str, str], List[Note]]:
    """Merge the CONSUMER_* values of the existing files among `paths`."""
    values: Dict[str, str] = {}
    notes: List[Note] = []
    known = set(ENV_VARS.values())
    loaded = 0
    for path in paths:
        if not path.is_file():
            notes.append((logging.DEBUG, f"No .env file at {path}"))
            continue
        try:
            file_values = dotenv_values(path)
        except OSError as exc:
            notes.append((logging.WARNING, f"Cannot read .env file {path}: {exc}"))
            continue
        notes.append((logging.INFO, f"Loaded .env file {path}"))
        loaded += 1
        for key, value in file_values.items():
            if key not in known:
                if key.startswith("CONSUMER_") and key != CONFIG_PATHS_VAR:
                    notes.append(
                        (logging.WARNING, f"Ignoring unknown setting {key} in {path}")
                    )
                continue
            if value is not None:
                values[key] = value
    if not loaded:
        notes.append((logging.DEBUG, "No .env files loaded"))
    return values, notes


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[Dict[str, str], List[Note]]:
    """Resolve option defaults, keyed by argparse destination.

    Explicit environment variables win over .env files.  The environment is
    only read, never modified.
    """
    if environ is None:
        environ = os.environ
    file_values, notes = read_env_files(config_paths(environ))
    settings: Dict[str, str] = {}
    for dest, var in ENV_VARS.items():
        if var in environ:
            settings[dest] = environ[var]
        elif var in file_values:
            settings[dest] = file_values[var]
    return settings, notes
