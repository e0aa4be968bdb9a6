"""Shared fixtures: a fake test tool and collection file helpers."""

import shlex
import sys
import textwrap
from pathlib import Path

import pytest


FAKE_TOOL = textwrap.dedent('''
    import argparse
    import os
    import signal
    import sys
    from pathlib import Path

    parser = argparse.ArgumentParser(allow_abbrev=False)
    parser.add_argument('--comment', default='')
    parser.add_argument('--vardir')
    parser.add_argument('--port-base')
    parser.add_argument('--junit-output')
    parser.add_argument('--junit-package')
    parser.add_argument('--exit', type=int, default=0)
    parser.add_argument('--fail-tests', action='store_true')
    parser.add_argument('--skip-vardir', action='store_true')
    parser.add_argument('--interrupt-parent', action='store_true')
    parser.add_argument('--print-env')
    args, extra = parser.parse_known_args()

    print(f"comment={args.comment}")
    print(f"vardir={args.vardir}")
    print(f"port-base={args.port_base}")
    print(f"junit-package={args.junit_package}")
    print(f"extra={' '.join(extra)}")
    if args.print_env:
        print(f"env {args.print_env}={os.environ.get(args.print_env)}")
    sys.stderr.write("stderr line\\n")

    if not args.skip_vardir:
        vardir = Path(args.vardir)
        (vardir / 'log').mkdir(parents=True, exist_ok=True)
        (vardir / 'log' / 'mysqld.1.err').write_text('server log\\n')
        (vardir / 'my.cnf').write_text('[mysqld]\\n')

    if args.junit_output:
        Path(args.junit_output).write_text('<testsuite/>\\n')

    if args.fail_tests:
        print('Failed 1/10 tests, 90.00% were successful.')
        print('mysql-test-run: *** ERROR: there were failing test cases')

    sys.stdout.flush()
    sys.stderr.flush()

    if args.interrupt_parent:
        os.kill(os.getppid(), signal.SIGINT)

    sys.exit(args.exit)
''')


@pytest.fixture
def fake_tool(tmp_path) -> str:
    """Command prefix running the fake test tool with this interpreter."""
    tool = tmp_path / "fake_mtr.py"
    tool.write_text(FAKE_TOOL)
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(tool))}"


@pytest.fixture
def workspace(tmp_path):
    """Root and results directories for a run."""
    root_dir = tmp_path / "mysql-test"
    results_dir = tmp_path / "results"
    root_dir.mkdir()
    results_dir.mkdir()
    return root_dir, results_dir


@pytest.fixture
def make_collection(tmp_path):
    """Write collection lines to a file and return its path."""
    def _make(lines, name="default.push") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path
    return _make
