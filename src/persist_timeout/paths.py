"""State file locations and process identity.

State files live under a single base directory, which can be overridden
with the PERSIST_TIMEOUT_DIR environment variable.

Default locations:
- /var/tmp when present (survives reboots on most systems)
- the system temp directory otherwise
"""

import os
import sys
import tempfile
from importlib.metadata import packages_distributions
from pathlib import Path

DIR_ENV_VAR = "PERSIST_TIMEOUT_DIR"
PROCESS_ID_ENV_VAR = "PERSIST_TIMEOUT_PROCESS_ID"

# Used when neither the environment nor packaging metadata names the app.
FALLBACK_PROCESS_ID = "persist-timeout"


def get_base_dir() -> Path:
    """Get the directory holding state files.

    Resolution order:
    1. PERSIST_TIMEOUT_DIR environment variable (if set)
    2. /var/tmp (if it exists)
    3. tempfile.gettempdir()
    """
    if env_dir := os.environ.get(DIR_ENV_VAR):
        return Path(env_dir).expanduser().resolve()

    var_tmp = Path("/var/tmp")
    if var_tmp.is_dir():
        return var_tmp
    return Path(tempfile.gettempdir())


def _main_distribution_name() -> str | None:
    """Distribution that provides the running ``__main__`` package, if any."""
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    if spec is None or not spec.name:
        return None
    top_level = spec.name.split(".")[0]
    try:
        dists = packages_distributions().get(top_level)
    except Exception:
        return None
    return dists[0] if dists else None


def get_process_id() -> str:
    """Get the application name used to namespace state files.

    Resolution order:
    1. PERSIST_TIMEOUT_PROCESS_ID environment variable (if set)
    2. Distribution name of the running ``__main__`` package
    3. FALLBACK_PROCESS_ID
    """
    if env_id := os.environ.get(PROCESS_ID_ENV_VAR):
        return env_id
    return _main_distribution_name() or FALLBACK_PROCESS_ID


def get_state_path(base_dir: Path, process_id: str, instance: str | int) -> Path:
    """Path of one persister's state file."""
    return base_dir / f"{process_id}-{instance}.json"
