"""
Run summary: per-invocation results and the final status of a run.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from .outcome import Outcome


@dataclass
class InvocationResult:
    """Result of one started invocation."""
    line_no: int
    comment: str
    command: List[str]
    exit_code: int
    outcome: Outcome
    log_path: str
    archive_path: Optional[str] = None
    report_path: Optional[str] = None
    duration_seconds: float = 0.0
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Results of a collection run, in execution order."""
    collection: str
    results_dir: str
    status: str = 'running'  # 'completed', 'interrupted', 'failed', 'dry-run'
    started: str = field(default_factory=lambda: datetime.now().isoformat())
    finished: Optional[str] = None
    results: List[InvocationResult] = field(default_factory=list)

    def finish(self, status: str):
        self.status = status
        self.finished = datetime.now().isoformat()

    def counts(self) -> Dict[str, int]:
        counts = {outcome.value: 0 for outcome in Outcome}
        for result in self.results:
            counts[Outcome(result.outcome).value] += 1
        return counts

    @property
    def log_paths(self) -> List[str]:
        return [r.log_path for r in self.results]

    @property
    def archive_paths(self) -> List[str]:
        return [r.archive_path for r in self.results if r.archive_path]

    def print_summary(self):
        """Print a human-readable summary."""
        print("=" * 60)
        print(f"Collection: {self.collection}")
        print(f"Status: {self.status}")
        print("=" * 60)
        for r in self.results:
            outcome = Outcome(r.outcome).value
            print(f"  {r.comment or '(no comment)':<30} {outcome:<14} "
                  f"exit={r.exit_code:<4} {r.duration_seconds:8.1f}s")
        counts = self.counts()
        print("-" * 60)
        print(f"  {len(self.results)} invocation(s): "
              + ", ".join(f"{n} {name}" for name, n in counts.items()))

    def to_dict(self) -> Dict:
        data = asdict(self)
        for result in data['results']:
            result['outcome'] = Outcome(result['outcome']).value
        return data

    def save(self, output_path: Union[str, Path]) -> Path:
        """Save summary to a JSON file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        print(f"Saved run summary to {output_path}")
        return output_path


def load_summary(path: Union[str, Path]) -> RunSummary:
    """Load a summary saved with RunSummary.save()."""
    with open(path, 'r') as f:
        data = json.load(f)

    results = [
        InvocationResult(**{**r, 'outcome': Outcome(r['outcome'])})
        for r in data.pop('results', [])
    ]
    return RunSummary(results=results, **data)
