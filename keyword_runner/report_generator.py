"""Markdown run summary rendered with Jinja2."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, BaseLoader

from .executor import format_parameters
from .models import TestResult

REPORT_TEMPLATE = """\
# Test run report

**Generated**: {{ generated_at.strftime('%Y-%m-%d %H:%M:%S') }}
**Total duration**: {{ total_ms }} ms

## Summary

| Metric | Value |
|--------|-------|
| Test cases | {{ results | length }} |
| Passed | {{ passed | length }} |
| Failed | {{ failed | length }} |
| Pass rate | {{ '%.1f' | format(pass_rate) }}% |

{% if failed %}
## Failed cases

| Test | Duration | Passed steps | Failed step | Error |
|------|----------|--------------|-------------|-------|
{% for result in failed -%}
{% set failure = result.first_failure -%}
| {{ result.test_name }} | {{ result.duration_ms }} ms | {{ result.passed_steps }}/{{ result.steps | length }} | {% if failure %}{{ failure.step_number }}: {{ failure.action }}{{ failure.parameters | format_parameters }}{% else %}N/A{% endif %} | {{ (failure.error if failure else result.error) or 'N/A' }} |
{% endfor %}
{% endif %}
{% if passed %}
## Passed cases

| Test | Duration | Steps |
|------|----------|-------|
{% for result in passed -%}
| {{ result.test_name }} | {{ result.duration_ms }} ms | {{ result.steps | length }} |
{% endfor %}
{% endif %}
## Step timing
{% for result in results %}
### {{ result.test_name }} ({{ result.status }})

| # | Action | Status | Duration |
|---|--------|--------|----------|
{% for step in result.steps -%}
| {{ step.step_number }} | {{ step.action }}{{ step.parameters | format_parameters }} | {{ step.status }} | {{ step.duration_ms }} ms |
{% endfor %}
{% endfor %}
"""


class ReportGenerator:
    """Renders recorded test results as a Markdown summary."""

    def __init__(self) -> None:
        self.environment = Environment(loader=BaseLoader(), trim_blocks=True, lstrip_blocks=True)
        self.environment.filters["format_parameters"] = format_parameters
        self.template = self.environment.from_string(REPORT_TEMPLATE)

    def render(self, results: List[TestResult], generated_at: Optional[datetime] = None) -> str:
        passed = [result for result in results if result.status == "passed"]
        failed = [result for result in results if result.status != "passed"]
        return self.template.render(
            results=results,
            passed=passed,
            failed=failed,
            pass_rate=(len(passed) / len(results) * 100) if results else 0.0,
            total_ms=sum(result.duration_ms for result in results),
            generated_at=generated_at or datetime.now(),
        )

    def write(self, results: List[TestResult], path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(results), encoding="utf-8")
        return path
