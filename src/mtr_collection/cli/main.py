"""
Command-line interface for mtr_collection.

Typical use:
    mtr-collection run --collection collections/default.push \\
        --results-dir results/ --root-dir mysql-test/ --port-base 13000 --junit

    mtr-collection run --config runner.yaml -- --retry=0 --max-test-fail=0

Other commands:
    mtr-collection show collections/default.push
    mtr-collection summary results/summary.json
    mtr-collection archive-list results/var-n_mix.tar.gz

Exit codes (run):
    0  all invocations ran (test failures included), or interrupted cleanly
    2  bad arguments or invalid collection
    3  missing or unusable file/directory
    4  an invocation failed fatally
"""

import click
from pathlib import Path

from ..errors import ConfigError, FatalRunError, EXIT_BAD_PATH


@click.group()
@click.version_option()
def cli():
    """MTR Collection - run collections of test-suite invocations."""
    pass


@cli.command('run')
@click.option('--config', '-c', 'config_path', type=click.Path(),
              help='Runner config YAML file (command-line options override it)')
@click.option('--collection', type=click.Path(),
              help='Collection file (one invocation per line)')
@click.option('--results-dir', '-r', type=click.Path(),
              help='Existing directory receiving logs and archives')
@click.option('--root-dir', type=click.Path(),
              help='Directory against which each --vardir is resolved')
@click.option('--port-base', '-p', envvar='MTR_PORT_BASE',
              help='Port base shared by all invocations (5001-32767, multiple of 10)')
@click.option('--preload', type=click.Path(),
              help='Shell script sourced once before the first invocation')
@click.option('--junit/--no-junit', default=None,
              help='Pass JUnit report options to each invocation')
@click.option('--log-prefix', help='Log file prefix (default: mtr)')
@click.option('--failure-marker',
              help='Log phrase marking test failures for exit status 1')
@click.option('--summary-file', type=click.Path(),
              help='Write a JSON run summary to this path')
@click.option('--dry-run', is_flag=True, help='Print commands without running them')
@click.argument('passthrough', nargs=-1, type=click.UNPROCESSED)
def run_collection(config_path, collection, results_dir, root_dir, port_base, preload,
                   junit, log_prefix, failure_marker, summary_file, dry_run, passthrough):
    """Run every invocation of a collection, one after another.

    Arguments after '--' are appended to every invocation; anything else
    that looks like an option must be a runner option.
    """
    from ..run import RunnerConfig, RunOrchestrator

    overrides = {
        'collection': collection,
        'results_dir': results_dir,
        'root_dir': root_dir,
        'port_base': port_base,
        'preload': preload,
        'junit': junit,
        'log_prefix': log_prefix,
        'failure_marker': failure_marker,
        'passthrough': list(passthrough) if passthrough else None,
    }

    orch = None
    try:
        if config_path:
            config = RunnerConfig.from_yaml(config_path, overrides=overrides)
        else:
            config = RunnerConfig(overrides)

        orch = RunOrchestrator(config)
        summary = orch.run(dry_run=dry_run)

    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code)

    except FatalRunError as e:
        click.echo()
        orch.summary.print_summary()
        if summary_file:
            orch.summary.save(summary_file)
        click.echo(f"\nError: {e}", err=True)
        raise SystemExit(e.exit_code)

    if dry_run:
        return

    click.echo()
    summary.print_summary()
    if summary_file:
        summary.save(summary_file)


@cli.command('show')
@click.argument('collection_file', type=click.Path())
@click.option('--comment-option', default='comment', help='Option holding the label')
@click.option('--vardir-option', default='vardir', help='Option holding the working directory')
def show_collection(collection_file, comment_option, vardir_option):
    """List the invocations of a collection file."""
    from ..collection import read_collection, find_duplicate_comments

    try:
        invocations = read_collection(collection_file, comment_option, vardir_option)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code)

    click.echo(f"{len(invocations)} invocation(s) in {collection_file}")
    for inv in invocations:
        click.echo(f"  [{inv.line_no:>3}] {inv.comment or '(no comment)':<24} "
                   f"vardir={inv.vardir or '(none)'}")
        click.echo(f"        {inv.command}")

    duplicates = find_duplicate_comments(invocations)
    if duplicates:
        click.echo(f"WARNING: duplicated comments: {', '.join(duplicates)}", err=True)


@cli.command('summary')
@click.argument('summary_file', type=click.Path())
def show_summary(summary_file):
    """Print a JSON run summary written by 'run --summary-file'."""
    from ..run import load_summary

    if not Path(summary_file).is_file():
        click.echo(f"Error: summary file not found: {summary_file}", err=True)
        raise SystemExit(EXIT_BAD_PATH)

    summary = load_summary(summary_file)
    summary.print_summary()


@cli.command('archive-list')
@click.argument('archive_file', type=click.Path())
def archive_list(archive_file):
    """List the files stored in a var-<comment>.tar.gz archive."""
    from ..archive import list_archive

    if not Path(archive_file).is_file():
        click.echo(f"Error: archive not found: {archive_file}", err=True)
        raise SystemExit(EXIT_BAD_PATH)

    for name in list_archive(archive_file):
        click.echo(name)


if __name__ == '__main__':
    cli()
