"""
Collection file parsing.

A collection lists test-suite invocations, one per line. Each line is a full
command, tokenized with shell quoting rules so that arguments may contain
spaces.

Collection Format:
    Blank lines and lines starting with '#' are ignored.

    Examples:
        # Default suites with mixed binlog format
        perl mysql-test-run.pl --force --comment=n_mix --vardir=var-n_mix --mysqld=--binlog-format=mixed
        perl mysql-test-run.pl --force --comment=ps --vardir=var-ps --ps-protocol --suite="main,binlog"

Options are only inspected, never validated: the test tool owns its own
flag syntax and the runner only needs the label (--comment) and the
working directory (--vardir) each line declares.
"""

import shlex
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from .errors import InvalidOptionError, MissingPathError


def tokenize(line: str) -> List[str]:
    """
    Split an invocation line into arguments.

    Args:
        line: Invocation line

    Returns:
        List of arguments (quotes removed, as a POSIX shell would)

    Raises:
        ValueError: If quotes are unbalanced
    """
    return shlex.split(line, comments=False, posix=True)


def get_option(args: List[str], name: str, default: str = "") -> str:
    """
    Look up the value of a named option in an argument list.

    Both '--name=value' and '--name value' forms are recognized. When the
    option is given several times the last occurrence wins, matching how
    the test tool itself treats repeated flags.

    Args:
        args: Tokenized arguments
        name: Option name without leading dashes (e.g. 'vardir')
        default: Value returned when the option is absent

    Returns:
        Option value, or default

    Example:
        >>> get_option(['--force', '--vardir=var-1', '--comment', 'x'], 'comment')
        'x'
    """
    flag = f"--{name}"
    prefix = f"{flag}="
    value = default

    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith(prefix):
            value = arg[len(prefix):]
        elif arg == flag:
            if i + 1 < len(args) and not args[i + 1].startswith('--'):
                value = args[i + 1]
                i += 1
            else:
                value = default
        i += 1

    return value


@dataclass
class Invocation:
    """A single live line of a collection file."""
    line_no: int
    command: str
    args: List[str] = field(default_factory=list)
    comment: str = ""
    vardir: str = ""


def parse_invocation(
    line: str,
    line_no: int,
    comment_option: str = "comment",
    vardir_option: str = "vardir",
) -> Invocation:
    """
    Parse one collection line into an Invocation.

    Raises:
        InvalidOptionError: If the line cannot be tokenized
    """
    try:
        args = tokenize(line)
    except ValueError as e:
        raise InvalidOptionError(f"Cannot parse collection line {line_no}: {e}") from e

    return Invocation(
        line_no=line_no,
        command=line,
        args=args,
        comment=get_option(args, comment_option),
        vardir=get_option(args, vardir_option),
    )


def read_collection(
    collection_file: Union[str, Path],
    comment_option: str = "comment",
    vardir_option: str = "vardir",
) -> List[Invocation]:
    """
    Read a collection file.

    Args:
        collection_file: Path to collection file (one invocation per line)
        comment_option: Option holding the invocation label
        vardir_option: Option holding the invocation working directory

    Returns:
        List of invocations in file order (blank and comment lines skipped)

    Raises:
        MissingPathError: If the file does not exist or cannot be read
        InvalidOptionError: If a line has unbalanced quotes
    """
    collection_file = Path(collection_file)

    try:
        with open(collection_file, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except FileNotFoundError:
        raise MissingPathError(f"Collection file not found: {collection_file}")
    except (OSError, UnicodeDecodeError) as e:
        raise MissingPathError(f"Cannot read collection file {collection_file}: {e}") from e

    invocations = []
    for line_no, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        invocations.append(
            parse_invocation(line, line_no, comment_option, vardir_option)
        )
    return invocations


def find_duplicate_comments(invocations: List[Invocation]) -> List[str]:
    """Return comments shared by more than one invocation, in first-seen order."""
    counts = Counter(inv.comment for inv in invocations)
    seen = []
    for inv in invocations:
        if counts[inv.comment] > 1 and inv.comment not in seen:
            seen.append(inv.comment)
    return seen
