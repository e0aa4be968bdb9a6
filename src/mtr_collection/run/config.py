"""
Runner configuration.

RunnerConfig wraps a plain dict of settings, loaded from a YAML file and/or
built from command-line options, and computes the per-invocation artifact
paths (logs, reports, archives).

Example YAML:
    collection: collections/default.push
    results_dir: /build/results
    root_dir: /build/mysql-test
    port_base: 13000
    junit: true
    passthrough: ["--retry=0"]
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..errors import InvalidOptionError, MissingPathError


PORT_BASE_MIN = 5001
PORT_BASE_MAX = 32767

DEFAULT_FAILURE_MARKER = "there were failing test cases"

DEFAULT_OPTION_NAMES = {
    'comment': 'comment',
    'vardir': 'vardir',
    'port_base': 'port-base',
    'report_file': 'junit-output',
    'report_package': 'junit-package',
}

KNOWN_KEYS = {
    'collection', 'results_dir', 'root_dir', 'port_base', 'preload', 'junit',
    'passthrough', 'log_prefix', 'report_prefix', 'report_ext',
    'failure_marker', 'options',
}


def validate_port_base(value: Union[int, str]) -> int:
    """
    Validate a port base.

    The test tool allocates a block of ten ports starting at the base, so the
    base must be a multiple of 10 inside the unprivileged range.

    Args:
        value: Port base (int or decimal string)

    Returns:
        Port base as int

    Raises:
        InvalidOptionError: If the value is not an integer, out of range, or
            not a multiple of 10
    """
    if isinstance(value, bool):
        raise InvalidOptionError(f"Port base must be an integer, got {value!r}")
    try:
        port = int(str(value).strip())
    except ValueError:
        raise InvalidOptionError(f"Port base must be an integer, got {value!r}")

    if not PORT_BASE_MIN <= port <= PORT_BASE_MAX:
        raise InvalidOptionError(
            f"Port base {port} out of range ({PORT_BASE_MIN}-{PORT_BASE_MAX})"
        )
    if port % 10 != 0:
        raise InvalidOptionError(f"Port base {port} is not a multiple of 10")
    return port


class RunnerConfig:
    """
    Loads and validates runner configuration.

    Example:
        config = RunnerConfig.from_yaml('runner.yaml', overrides={'port_base': 13010})
        config.validate()
        print(config.log_path('n_mix'))
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = {k: v for k, v in data.items() if v is not None}
        self._validate()

    @classmethod
    def from_yaml(cls, path: Union[str, Path], overrides: Optional[Dict[str, Any]] = None) -> 'RunnerConfig':
        """
        Load config from YAML file.

        Args:
            path: YAML file
            overrides: Values taking precedence over the file (None values ignored)
        """
        path = Path(path)
        if not path.exists():
            raise MissingPathError(f"Runner config not found: {path}")

        with open(path, 'r') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise InvalidOptionError(f"Cannot parse runner config {path}: {e}") from e

        if not isinstance(data, dict):
            raise InvalidOptionError(f"Runner config {path} must be a mapping")

        if overrides:
            data.update({k: v for k, v in overrides.items() if v is not None})

        return cls(data)

    def _validate(self):
        """Validate keys and required options (no filesystem access)."""
        unknown = set(self._data) - KNOWN_KEYS
        if unknown:
            raise InvalidOptionError(f"Unknown config key(s): {', '.join(sorted(unknown))}")

        for key in ('collection', 'results_dir', 'port_base'):
            if key not in self._data:
                raise InvalidOptionError(f"Missing required option: '{key}'")

        self._data['port_base'] = validate_port_base(self._data['port_base'])

        passthrough = self._data.get('passthrough', [])
        if isinstance(passthrough, str) or not isinstance(passthrough, (list, tuple)):
            raise InvalidOptionError("'passthrough' must be a list of arguments")

        options = self._data.get('options', {})
        if not isinstance(options, dict):
            raise InvalidOptionError("'options' must be a mapping")
        unknown = set(options) - set(DEFAULT_OPTION_NAMES)
        if unknown:
            raise InvalidOptionError(f"Unknown option name(s): {', '.join(sorted(unknown))}")

    def validate(self):
        """
        Check that every configured path is usable.

        Raises:
            MissingPathError: If a required file or directory is missing,
                unreadable or (for the results directory) not writable
        """
        collection = self.collection
        if not collection.is_file():
            raise MissingPathError(f"Collection file not found: {collection}")
        if not os.access(collection, os.R_OK):
            raise MissingPathError(f"Collection file not readable: {collection}")

        results_dir = self.results_dir
        if not results_dir.is_dir():
            raise MissingPathError(f"Results directory does not exist: {results_dir}")
        if not os.access(results_dir, os.W_OK | os.X_OK):
            raise MissingPathError(f"Results directory not writable: {results_dir}")

        if self.root_dir is not None and not self.root_dir.is_dir():
            raise MissingPathError(f"Root directory does not exist: {self.root_dir}")

        if self.preload is not None and not self.preload.is_file():
            raise MissingPathError(f"Preload script not found: {self.preload}")

    # --- Inputs ---

    @property
    def collection(self) -> Path:
        return Path(self._data['collection'])

    @property
    def root_dir(self) -> Optional[Path]:
        root_dir = self._data.get('root_dir')
        return Path(root_dir) if root_dir else None

    @property
    def preload(self) -> Optional[Path]:
        preload = self._data.get('preload')
        return Path(preload) if preload else None

    # --- Invocation options ---

    @property
    def port_base(self) -> int:
        return self._data['port_base']

    @property
    def junit(self) -> bool:
        return bool(self._data.get('junit', False))

    @property
    def passthrough(self) -> List[str]:
        return [str(arg) for arg in self._data.get('passthrough', [])]

    @property
    def failure_marker(self) -> str:
        return self._data.get('failure_marker', DEFAULT_FAILURE_MARKER)

    def option_name(self, key: str) -> str:
        """Name of a tool option (e.g. 'vardir'), after config overrides."""
        return self._data.get('options', {}).get(key, DEFAULT_OPTION_NAMES[key])

    # --- Output paths ---

    @property
    def results_dir(self) -> Path:
        return Path(self._data['results_dir'])

    @property
    def log_prefix(self) -> str:
        return self._data.get('log_prefix', 'mtr')

    @property
    def report_prefix(self) -> str:
        return self._data.get('report_prefix', 'junit')

    @property
    def report_ext(self) -> str:
        return self._data.get('report_ext', 'xml')

    def log_path(self, comment: str) -> Path:
        return self.results_dir / f"{self.log_prefix}-{comment}.log"

    def report_path(self, comment: str) -> Path:
        return self.results_dir / f"{self.report_prefix}-{comment}.{self.report_ext}"

    def archive_path(self, comment: str) -> Path:
        return self.results_dir / f"var-{comment}.tar.gz"

    def workdir_for(self, vardir: str) -> Path:
        """Working directory for a declared vardir (joined to root_dir if set)."""
        if self.root_dir is not None:
            return self.root_dir / vardir
        return Path(vardir)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)
