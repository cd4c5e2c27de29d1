"""Environment configuration loader for partview.

Loads ``PARTVIEW_*`` settings from layered .env files into ``os.environ`` and
reports values that :class:`partview.settings.Settings` would silently
replace with its defaults.

Precedence (highest wins):
    1. Already-set environment variables
    2. Local ``.env`` file (cwd)
    3. ``~/.config/partview/config.env`` (XDG_CONFIG_HOME respected)
    4. Built-in defaults
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

ENV_PREFIX = "PARTVIEW_"

# Keys read as positive integers; anything else falls back to the default.
INT_KEYS = ("PARTVIEW_PORT", "PARTVIEW_DIFF_MAX_CHARS")
CHOICE_KEYS: dict[str, tuple[str, ...]] = {
    "PARTVIEW_LOG_LEVEL": ("debug", "info", "warning", "error", "critical"),
    "PARTVIEW_LOG_FORMAT": ("console", "json"),
}
KNOWN_KEYS = frozenset(("PARTVIEW_HOST", *INT_KEYS, *CHOICE_KEYS))


def config_dir() -> Path:
    """Return the partview config directory (XDG_CONFIG_HOME/partview)."""
    base = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if not base:
        base = os.path.join(Path.home(), ".config")
    return Path(base) / "partview"


def parse_env_file(path: str | Path) -> dict[str, str]:
    """Parse a .env file and return a dict of key-value pairs.

    Supports ``KEY=value``, quoted values, an ``export`` prefix, comments and
    inline comments after unquoted values. A missing or unreadable file
    yields an empty dict.
    """
    result: dict[str, str] = {}
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return result

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line[7:].strip()

        eq = line.find("=")
        if eq < 1:
            continue

        key = line[:eq].strip()
        value = line[eq + 1 :].strip()

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        else:
            for i, ch in enumerate(value):
                if ch == "#" and (i == 0 or value[i - 1] == " "):
                    value = value[:i].rstrip()
                    break

        result[key] = value

    return result


def check_config(env: Mapping[str, str]) -> list[str]:
    """Describe each ``PARTVIEW_*`` entry that would not take effect.

    Unknown keys (usually typos), non-integer or non-positive numbers, and
    values outside the accepted choices are reported. Blank values simply
    select the default and are not reported.
    """
    problems: list[str] = []
    for key in sorted(env):
        if not key.startswith(ENV_PREFIX):
            continue
        if key not in KNOWN_KEYS:
            problems.append(f"{key}: unknown setting")
            continue

        value = env[key].strip()
        if not value:
            continue

        if key in INT_KEYS:
            try:
                number = int(value)
            except ValueError:
                problems.append(f"{key}: {value!r} is not an integer, using the default")
                continue
            if number <= 0:
                problems.append(f"{key}: {number} is not positive, using the default")
        elif key in CHOICE_KEYS and value.lower() not in CHOICE_KEYS[key]:
            choices = ", ".join(CHOICE_KEYS[key])
            problems.append(f"{key}: {value!r} is not one of {choices}")

    return problems


def load_config() -> list[str]:
    """Load configuration from .env files into ``os.environ``.

    Files are merged lowest precedence first; variables that are already set
    in the environment are never overwritten. Returns the problems
    :func:`check_config` finds in the resulting environment so callers can
    log them once logging is configured.
    """
    merged: dict[str, str] = {}
    merged.update(parse_env_file(config_dir() / "config.env"))
    merged.update(parse_env_file(Path.cwd() / ".env"))

    for key, value in merged.items():
        if key not in os.environ:
            os.environ[key] = value

    return check_config(os.environ)
