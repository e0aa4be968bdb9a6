"""
Exceptions and process exit codes.

Exit codes are stable so that calling scripts can tell apart bad arguments,
missing files/directories and a failed run.
"""

EXIT_OK = 0
EXIT_BAD_ARGS = 2
EXIT_BAD_PATH = 3
EXIT_RUN_FAILURE = 4


class ConfigError(Exception):
    """Invalid configuration, detected before any invocation starts."""

    exit_code = EXIT_BAD_ARGS


class InvalidOptionError(ConfigError):
    """An option is missing or has a malformed value."""

    exit_code = EXIT_BAD_ARGS


class MissingPathError(ConfigError):
    """A required file or directory does not exist or is not usable."""

    exit_code = EXIT_BAD_PATH


class FatalRunError(Exception):
    """An invocation crashed or returned a status that is not a test failure."""

    exit_code = EXIT_RUN_FAILURE

    def __init__(self, result, reason=None):
        self.result = result
        if reason is None:
            reason = f"failed fatally with exit status {result.exit_code}"
        super().__init__(
            f"Invocation '{result.comment}' (line {result.line_no}) {reason}; "
            f"see {result.log_path}"
        )
