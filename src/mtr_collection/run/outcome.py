"""
Outcome classification for a finished invocation.

The test tool exits 1 both when test cases failed and when it aborted on its
own. The two cases are told apart by the summary line it prints after
reporting failed test cases.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class Outcome(str, Enum):
    SUCCESS = 'success'
    TEST_FAILURE = 'test_failure'
    FATAL = 'fatal'


def log_contains(log_path: Union[str, Path], marker: str) -> bool:
    """Check whether a log file contains a literal marker (False if missing)."""
    log_path = Path(log_path)
    if not log_path.exists():
        return False
    with open(log_path, 'r', encoding='utf-8', errors='replace') as f:
        for line in f:
            if marker in line:
                return True
    return False


def classify(exit_code: int, log_path: Optional[Union[str, Path]], marker: str) -> Outcome:
    """
    Classify an invocation's exit status.

    Args:
        exit_code: Subprocess return code (negative if killed by a signal)
        log_path: Log captured for the invocation
        marker: Literal phrase printed by the tool when test cases failed

    Returns:
        SUCCESS for 0, TEST_FAILURE for 1 with the marker in the log,
        FATAL otherwise
    """
    if exit_code == 0:
        return Outcome.SUCCESS
    if exit_code == 1 and log_path is not None and log_contains(log_path, marker):
        return Outcome.TEST_FAILURE
    return Outcome.FATAL
