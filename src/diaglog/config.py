"""Configuration management for diaglog.

Four-layer settings resolution (highest priority wins):
  1. CLI flags — explicit on the command line
  2. Environment — DIAGLOG_LOGFILE, DIAGLOG_USER_LOGFILE, DIAGLOG_DEBUG
  3. Project config — .diaglog.json in the working directory or above
  4. Global config — ~/.diaglog/config.json

The result is a LogSettings instance handed to init_output(). The global
config directory also holds the startup log written by end_startup().
"""

import json
import os
from pathlib import Path

from diaglog.lib.log_lib import LogSettings, parse_channel_spec


PROJECT_CONFIG_NAME = ".diaglog.json"
STARTUP_LOG_NAME = "startup-log.txt"

# Environment variable -> LogSettings field
ENV_VARS = {
    "DIAGLOG_LOGFILE": "log_file",
    "DIAGLOG_USER_LOGFILE": "user_log_file",
    "DIAGLOG_DEBUG": "debug_level",
}


# ---------------------------------------------------------------------------
# Config file locations
# ---------------------------------------------------------------------------
def get_global_config_dir():
    """Return the global config directory (~/.diaglog/)."""
    return Path.home() / ".diaglog"


def get_global_config_path():
    """Return path to the global config file."""
    return get_global_config_dir() / "config.json"


def get_startup_log_path():
    """Return the path the startup buffer is flushed to."""
    return get_global_config_dir() / STARTUP_LOG_NAME


def find_project_config(start_dir=None):
    """Walk up from start_dir looking for .diaglog.json.

    Returns the path if found, None otherwise.
    """
    current = Path(start_dir or os.getcwd()).resolve()
    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------
def load_json(path):
    """Load a JSON object from a file, returning empty dict on error."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_global_config():
    """Load the global config file."""
    return load_json(get_global_config_path())


def load_project_config(start_dir=None):
    """Load the nearest .diaglog.json walking upward from start_dir."""
    path = find_project_config(start_dir)
    if path:
        return load_json(path), path
    return {}, None


def load_env_settings(environ=None):
    """Read settings overrides from environment variables.

    A file variable that is set but empty selects the default file name
    (an empty string in LogSettings). An empty DIAGLOG_DEBUG turns debug
    output off.
    """
    environ = os.environ if environ is None else environ
    values = {}
    for var, field in ENV_VARS.items():
        if var not in environ:
            continue
        raw = environ[var].strip()
        if field == "debug_level":
            try:
                values[field] = int(raw) if raw else 0
            except ValueError:
                continue
        else:
            values[field] = raw
    return values


# ---------------------------------------------------------------------------
# Settings resolution
# ---------------------------------------------------------------------------
def apply_channel_specs(values, specs):
    """Fold --show style channel specs into a settings dict.

    Raises:
        ValueError: a spec names an unknown channel
    """
    for spec in specs or []:
        cfg = parse_channel_spec(spec)
        values[f"{cfg.name}_logs"] = cfg.enabled
        if cfg.level is not None:
            values["debug_level"] = cfg.level


def resolve_settings(args=None, start_dir=None, environ=None):
    """Resolve LogSettings using four-layer precedence.

    Args:
        args: argparse namespace (log_file, user_log_file, log_time,
              show, verbose); None skips the CLI layer
        start_dir: where to start looking for .diaglog.json
        environ: environment mapping (default: os.environ)

    Returns:
        LogSettings with the merged values.
    """
    values = {}
    values.update(load_global_config())
    project_cfg, _ = load_project_config(start_dir)
    values.update(project_cfg)
    values = {k.replace("-", "_"): v for k, v in values.items()}
    channel_specs = values.pop("channels", None)
    if channel_specs:
        apply_channel_specs(values, channel_specs)

    values.update(load_env_settings(environ))

    if args is not None:
        for key in ("log_file", "user_log_file"):
            cli_val = getattr(args, key, None)
            if cli_val is not None:
                values[key] = cli_val
        if getattr(args, "log_time", False):
            values["log_time"] = True
        apply_channel_specs(
            values, [s for s in (getattr(args, "show", None) or []) if s])
        verbose = getattr(args, "verbose", 0) or 0
        if verbose:
            values["debug_level"] = max(values.get("debug_level", 0), verbose)

    return LogSettings.from_dict(values)
