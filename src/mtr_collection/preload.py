"""
Preload scripts.

A preload script is a shell fragment sourced once before the collection runs,
typically to export variables the test tool reads (MTR_BUILD_THREAD, paths to
binaries, ...). The script is sourced in a child shell and the resulting
environment is copied back into this process, so every invocation inherits it.

Only exported variables survive the trip: shell functions defined by the
script are not visible to the invocations.
"""

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Union

from .errors import InvalidOptionError, MissingPathError


def _parse_env_dump(data: bytes) -> Dict[str, str]:
    """Parse NUL-separated 'NAME=value' records as printed by `env -0`."""
    env = {}
    for record in data.split(b'\0'):
        if not record or b'=' not in record:
            continue
        name, _, value = record.partition(b'=')
        env[name.decode('utf-8', 'surrogateescape')] = value.decode('utf-8', 'surrogateescape')
    return env


def load_preload_environment(script: Union[str, Path], shell: str = "bash") -> Dict[str, str]:
    """
    Source a script in a child shell and return the resulting environment.

    Args:
        script: Path to the shell script
        shell: Shell used to source it

    Returns:
        Environment after sourcing the script

    Raises:
        MissingPathError: If the script does not exist
        InvalidOptionError: If sourcing the script fails
    """
    script = Path(script)
    if not script.is_file():
        raise MissingPathError(f"Preload script not found: {script}")

    result = subprocess.run(
        [shell, '-c', '. "$1" >&2 && env -0', shell, str(script.resolve())],
        capture_output=True,
    )

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', 'replace').strip()
        raise InvalidOptionError(
            f"Preload script {script} failed with exit status {result.returncode}"
            + (f": {stderr}" if stderr else "")
        )

    return _parse_env_dump(result.stdout)


def apply_preload(script: Union[str, Path], shell: str = "bash") -> List[str]:
    """
    Source a preload script and merge its environment into os.environ.

    Returns:
        Names of variables that were added or changed
    """
    env = load_preload_environment(script, shell=shell)

    changed = []
    for name, value in env.items():
        # Variables maintained by the shell itself, not by the script
        if name in ('_', 'SHLVL', 'PWD', 'OLDPWD'):
            continue
        if os.environ.get(name) != value:
            os.environ[name] = value
            changed.append(name)

    print(f"Preloaded {script}: {len(changed)} variable(s) set")
    return sorted(changed)
