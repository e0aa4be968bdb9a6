"""
MTR Collection - sequential runner for collections of test-suite invocations.

This package provides tools for:
- Parsing collection files (one test-run invocation per line)
- Running each invocation with an injected vardir, port base and reporting options
- Classifying outcomes (success, test failures, fatal tool errors)
- Archiving per-invocation working directories next to their logs
"""

__version__ = "1.0.0"
