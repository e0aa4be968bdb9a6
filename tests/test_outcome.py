"""Tests for exit status classification."""

import pytest

from mtr_collection.run.outcome import Outcome, classify, log_contains


MARKER = "there were failing test cases"


@pytest.fixture
def failing_log(tmp_path):
    log = tmp_path / "mtr-ps.log"
    log.write_text(
        "main.alias    [ fail ]\n"
        "Failed 1/10 tests, 90.00% were successful.\n"
        "mysql-test-run: *** ERROR: there were failing test cases\n"
    )
    return log


@pytest.fixture
def crashed_log(tmp_path):
    log = tmp_path / "mtr-crash.log"
    log.write_text("mysql-test-run: *** ERROR: Could not find mysqld\n")
    return log


def test_success(crashed_log):
    assert classify(0, crashed_log, MARKER) is Outcome.SUCCESS


def test_status_one_with_marker_is_test_failure(failing_log):
    assert classify(1, failing_log, MARKER) is Outcome.TEST_FAILURE


def test_status_one_without_marker_is_fatal(crashed_log):
    assert classify(1, crashed_log, MARKER) is Outcome.FATAL


@pytest.mark.parametrize("status", [2, 127, 255, -9])
def test_other_status_is_fatal_even_with_marker(failing_log, status):
    assert classify(status, failing_log, MARKER) is Outcome.FATAL


def test_missing_log_counts_as_no_marker(tmp_path):
    assert classify(1, tmp_path / "missing.log", MARKER) is Outcome.FATAL
    assert classify(1, None, MARKER) is Outcome.FATAL


def test_marker_is_literal(tmp_path):
    log = tmp_path / "x.log"
    log.write_text("failed (a+b) tests\n")
    assert log_contains(log, "(a+b)")
    assert not log_contains(log, "a+b)?")
