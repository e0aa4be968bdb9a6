"""
Run orchestrator - executes every invocation of a collection in order.

For each invocation this:
  - Injects the working directory, port base and (optionally) JUnit report options
  - Tees the combined stdout/stderr of the test tool to results_dir/<prefix>-<comment>.log
  - Classifies the exit status (success / test failures / fatal)
  - Archives the working directory to results_dir/var-<comment>.tar.gz and removes it

Invocations run strictly one at a time: they share the same port base.

Usage:
    orchestrator = RunOrchestrator(config)
    summary = orchestrator.run()
"""

import os
import shlex
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import RunnerConfig
from .cancel import CancellationToken, interrupt_handler
from .outcome import Outcome, classify
from .summary import InvocationResult, RunSummary
from ..archive import archive_if_present
from ..collection import Invocation, find_duplicate_comments, read_collection
from ..errors import FatalRunError, InvalidOptionError
from ..preload import apply_preload


# Conventional shell status for a command that could not be executed
EXIT_NOT_EXECUTED = 127


@dataclass
class RunContext:
    """Per-invocation state derived from the config and the invocation line."""
    comment: str
    workdir: Path
    log_path: Path
    report_path: Optional[Path] = None
    injected_args: List[str] = field(default_factory=list)


class RunOrchestrator:
    """
    Runs a collection of test-suite invocations sequentially.

    Given a RunnerConfig, this class knows how to:
    1. Validate paths and read the collection
    2. Build each invocation's command line with injected overrides
    3. Run it, tee its output to a log and classify the result
    4. Archive its working directory
    5. Stop cleanly between invocations when interrupted

    Example:
        config = RunnerConfig.from_yaml('runner.yaml')
        orch = RunOrchestrator(config)
        summary = orch.run()
        summary.print_summary()
    """

    def __init__(self, config: RunnerConfig, token: Optional[CancellationToken] = None, stdout=None):
        """
        Initialize orchestrator.

        Args:
            config: Runner configuration
            token: Cancellation token (a new one is created if not provided)
            stdout: Stream receiving the live output of invocations (default: sys.stdout)
        """
        self.config = config
        self.token = token if token is not None else CancellationToken()
        self._stdout = stdout
        self.summary: Optional[RunSummary] = None

    @property
    def stdout(self):
        return self._stdout if self._stdout is not None else sys.stdout

    # =========================================================================
    # Preparation
    # =========================================================================

    def prepare(self, preload: bool = True) -> List[Invocation]:
        """
        Validate configuration, run the preload script and read the collection.

        Nothing is executed if this raises.

        Args:
            preload: If False, the preload script is checked but not sourced

        Returns:
            Invocations to run, in collection order

        Raises:
            ConfigError: On any invalid option, path or collection line
        """
        config = self.config
        config.validate()

        invocations = read_collection(
            config.collection,
            comment_option=config.option_name('comment'),
            vardir_option=config.option_name('vardir'),
        )

        duplicates = find_duplicate_comments(invocations)
        if duplicates:
            raise InvalidOptionError(
                "Comments must be unique within a collection, duplicated: "
                + ", ".join(repr(c) for c in duplicates)
            )

        vardir_flag = f"--{config.option_name('vardir')}"
        for inv in invocations:
            if inv.comment in ('.', '..') or any(
                sep and sep in inv.comment for sep in (os.sep, os.altsep)
            ):
                raise InvalidOptionError(
                    f"Collection line {inv.line_no}: comment {inv.comment!r} cannot be "
                    f"used in a file name"
                )
            if not inv.vardir:
                raise InvalidOptionError(
                    f"Collection line {inv.line_no} does not declare {vardir_flag}"
                )
            if config.root_dir is None and not os.path.isabs(inv.vardir):
                raise InvalidOptionError(
                    f"Collection line {inv.line_no}: {vardir_flag}={inv.vardir} is relative "
                    f"and no root directory is configured"
                )

        if preload and config.preload is not None:
            apply_preload(config.preload)

        return invocations

    # =========================================================================
    # Per-invocation steps
    # =========================================================================

    def build_context(self, invocation: Invocation) -> RunContext:
        """Compute working directory, log path and reporting options."""
        config = self.config
        comment = invocation.comment

        workdir = config.workdir_for(invocation.vardir)
        context = RunContext(
            comment=comment,
            workdir=workdir,
            log_path=config.log_path(comment),
        )

        context.injected_args = [
            f"--{config.option_name('vardir')}={workdir}",
            f"--{config.option_name('port_base')}={config.port_base}",
        ]

        if config.junit:
            context.report_path = config.report_path(comment)
            context.injected_args += [
                f"--{config.option_name('report_package')}={comment}",
                f"--{config.option_name('report_file')}={context.report_path}",
            ]

        return context

    def build_command(self, invocation: Invocation, context: RunContext) -> List[str]:
        """
        Build the full argument list for an invocation.

        Injected overrides come after the line's own arguments so they win
        when the tool applies "last flag wins"; passthrough arguments come last.
        """
        return list(invocation.args) + context.injected_args + self.config.passthrough

    def execute(self, command: List[str], log_path: Path) -> int:
        """
        Run a command, copying its combined output to the console and a log file.

        The command runs in its own session so that a terminal interrupt does
        not reach it; interrupts are handled between invocations instead.

        Args:
            command: Argument list
            log_path: Log file (created or truncated)

        Returns:
            The command's own exit status (negative if killed by a signal,
            127 if it could not be started)
        """
        out = self.stdout

        with open(log_path, 'wb') as log:
            try:
                proc = subprocess.Popen(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    stdin=subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as e:
                message = f"Cannot execute {command[0]}: {e}\n"
                log.write(message.encode('utf-8'))
                out.write(message)
                out.flush()
                return EXIT_NOT_EXECUTED

            with proc.stdout:
                for chunk in iter(proc.stdout.readline, b''):
                    log.write(chunk)
                    log.flush()
                    out.write(chunk.decode('utf-8', errors='replace'))
                    out.flush()

            return proc.wait()

    def run_invocation(self, invocation: Invocation) -> InvocationResult:
        """
        Run one invocation end to end: execute, classify, archive.

        Returns:
            InvocationResult (the caller decides whether a FATAL outcome aborts)
        """
        context = self.build_context(invocation)
        command = self.build_command(invocation, context)

        print(f"\n=== [{invocation.line_no}] {context.comment} ===")
        print(f"  Log: {context.log_path}")

        start = time.monotonic()
        exit_code = self.execute(command, context.log_path)
        duration = time.monotonic() - start

        outcome = classify(exit_code, context.log_path, self.config.failure_marker)
        print(f"  Exit status {exit_code}: {outcome.value} ({duration:.1f}s)")

        error = None
        try:
            archive_path = archive_if_present(
                context.workdir, self.config.archive_path(context.comment)
            )
        except OSError as e:
            archive_path = None
            outcome = Outcome.FATAL
            error = f"could not archive {context.workdir}: {e}"
            print(f"  ERROR: {error}")

        return InvocationResult(
            line_no=invocation.line_no,
            comment=context.comment,
            command=command,
            exit_code=exit_code,
            outcome=outcome,
            log_path=str(context.log_path),
            archive_path=str(archive_path) if archive_path else None,
            report_path=str(context.report_path) if context.report_path else None,
            duration_seconds=round(duration, 3),
            error=error,
        )

    # =========================================================================
    # Collection loop
    # =========================================================================

    def run(self, dry_run: bool = False) -> RunSummary:
        """
        Run every invocation of the collection.

        Args:
            dry_run: If True, print the commands without running anything

        Returns:
            RunSummary with status 'completed', 'interrupted' or 'dry-run'

        Raises:
            ConfigError: Before anything runs, if the configuration is invalid
            FatalRunError: After the failing invocation has been archived, or
                when its working directory cannot be archived
        """
        config = self.config
        invocations = self.prepare(preload=not dry_run)

        summary = RunSummary(
            collection=str(config.collection),
            results_dir=str(config.results_dir),
        )
        self.summary = summary

        print(f"Running {len(invocations)} invocation(s) from {config.collection}")
        print(f"  Port base: {config.port_base}")
        print(f"  Results: {config.results_dir}")

        if dry_run:
            for inv in invocations:
                command = self.build_command(inv, self.build_context(inv))
                print(f"  [{inv.line_no}] {shlex.join(command)}")
            summary.finish('dry-run')
            return summary

        with interrupt_handler(self.token):
            for index, inv in enumerate(invocations, start=1):
                if self.token.cancelled:
                    print(f"\nInterrupted ({self.token.reason}): "
                          f"{index - 1} of {len(invocations)} invocation(s) completed")
                    summary.finish('interrupted')
                    return summary

                result = self.run_invocation(inv)
                summary.results.append(result)

                if result.outcome == Outcome.FATAL:
                    summary.finish('failed')
                    raise FatalRunError(result, reason=result.error)

        if self.token.cancelled:
            print(f"\nInterrupted ({self.token.reason}) during the last invocation")
            summary.finish('interrupted')
        else:
            summary.finish('completed')
        return summary
