"""Spec analysis -- compare two specs and lint a spec's structure.

Neither module touches the generated client; both are read-only passes over
the same document shape the extractor consumes.

Sub-modules:

* :mod:`~clientforge.analysis.differ` -- Added, removed, and modified
  operations between two descriptor sets.
* :mod:`~clientforge.analysis.validator` -- Severity-tagged structural issues.
"""

from clientforge.analysis.differ import diff_operations, diff_specs
from clientforge.analysis.validator import enforce_issues, validate_spec

__all__ = ["diff_operations", "diff_specs", "enforce_issues", "validate_spec"]
