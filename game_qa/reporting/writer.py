"""
Report writer for playtest runs.

Generates ``output.json`` for machine consumption and ``run.md`` for people.
"""

import json
import logging
from pathlib import Path

from game_qa.reporting.aggregator import TestReport

logger = logging.getLogger(__name__)


class ReportWriter:
    """
    Writes a TestReport in JSON and Markdown.

    The Markdown report includes:
    - Summary table (status/score/duration/issues)
    - Method breakdown
    - Per-action timeline
    - Issues and external judge findings
    """

    def __init__(self, report: TestReport):
        self.report = report

    def generate_markdown(self, output_path: Path | None = None) -> str:
        r = self.report
        status_emoji = "✅" if r.passed else "❌"
        evaluation = r.evaluation

        lines = [
            f"# Playtest Report {status_emoji}",
            "",
            f"**URL**: {r.url}",
            f"**Started**: {r.timestamp.isoformat()}",
            f"**Config**: {r.config_path or 'default'}",
            "",
            "## Summary",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Status | {r.status} |",
            f"| Sequence | {r.sequence_status.value} |",
            f"| Playability Score | {r.playability_score:.2f} |",
            f"| Duration | {r.test_duration:.1f}s |",
            f"| Actions | {len(r.action_timings)} |",
            f"| Issues | {len(r.issues)} |",
        ]
        if evaluation is not None:
            lines.append(f"| Heuristic Score | {evaluation.heuristic_score:.2f} |")
            if evaluation.external_score is not None:
                cached = " (cached)" if evaluation.cache_hit else ""
                lines.append(
                    f"| External Score | {evaluation.external_score:.2f} "
                    f"@ {evaluation.external_confidence or 0:.2f}{cached} |"
                )

        lines += [
            "",
            "## Methods",
            "",
            ", ".join(f"{k}: {v}" for k, v in r.action_methods.items()),
            "",
            "## Actions",
            "",
        ]
        for timing in r.action_timings:
            mark = "✅" if timing.success else "❌"
            lines.append(
                f"- {mark} #{timing.index} `{timing.action}` "
                f"{timing.execution_time:.2f}s ({timing.method_used.value})"
            )

        if r.issues:
            lines += ["", "## Issues", ""]
            for issue in r.issues:
                where = f" (action {issue.action_index})" if issue.action_index is not None else ""
                lines.append(f"- **{issue.type.value}**{where}: {issue.description}")

        if evaluation is not None and evaluation.issues:
            lines += ["", "## Judge Findings", ""]
            lines += [f"- {finding}" for finding in evaluation.issues]

        if r.agent_responses:
            lines += ["", "## Agent Responses", ""]
            for response in r.agent_responses:
                summary = response.summary
                lines.append(
                    f"- #{response.index} ({summary.steps_executed or 0} steps): "
                    f"{(summary.message or '')[:500]}"
                )

        content = "\n".join(lines) + "\n"
        if output_path:
            output_path.write_text(content, encoding="utf-8")
            logger.info(f"📄 Report saved: {output_path}")
        return content

    def generate_json(self, output_path: Path | None = None) -> dict:
        summary = self.report.to_json_dict()
        if output_path:
            output_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
            logger.info(f"📄 JSON report saved: {output_path}")
        return summary

    def save_all(self, output_dir: Path) -> tuple[Path, Path]:
        """Write ``output.json`` and ``run.md`` into ``output_dir``."""
        output_dir.mkdir(parents=True, exist_ok=True)
        json_path = output_dir / "output.json"
        md_path = output_dir / "run.md"
        self.generate_json(json_path)
        self.generate_markdown(md_path)
        return json_path, md_path
