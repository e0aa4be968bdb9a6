"""Runner configuration, outcome classification and orchestration."""

from .config import RunnerConfig, validate_port_base
from .cancel import CancellationToken
from .outcome import Outcome, classify
from .orchestrator import RunOrchestrator
from .summary import InvocationResult, RunSummary, load_summary

__all__ = [
    'RunnerConfig',
    'validate_port_base',
    'CancellationToken',
    'Outcome',
    'classify',
    'RunOrchestrator',
    'InvocationResult',
    'RunSummary',
    'load_summary',
]
