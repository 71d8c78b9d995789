"""
Report Generation Module
Creates human-readable Markdown reports from batch deobfuscation runs
"""

from datetime import datetime
from typing import List, Tuple

from .. import __version__


class ReportGenerator:
    """
    Generates Markdown reports from pipeline results

    Creates a summary including:
    - Totals (files, changed, converged)
    - Per-file rounds and techniques applied
    - Plugin errors
    """

    def generate_markdown(self, results: List[Tuple[str, object]], title: str = "Batch Run") -> str:
        """
        Generate Markdown report

        Args:
            results: List of (file label, PipelineResult)
            title: Report title

        Returns:
            Markdown formatted report as string
        """
        sections = [
            self._generate_header(title),
            self._generate_summary(results),
            self._generate_file_table(results),
        ]

        errors_section = self._generate_errors_section(results)
        if errors_section:
            sections.append(errors_section)

        sections.append(self._generate_footer())
        return '\n\n'.join(sections)

    def _generate_header(self, title: str) -> str:
        return f"""# poolbreaker Report: {title}

**Generated**: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}
**Tool**: poolbreaker v{__version__}"""

    def _generate_summary(self, results) -> str:
        changed = sum(1 for _, r in results if r.changed)
        converged = sum(1 for _, r in results if r.converged)
        skipped = sum(1 for _, r in results if r.skipped)
        return f"""## Summary

| Metric | Count |
|--------|-------|
| Files processed | {len(results)} |
| Files changed | {changed} |
| Reached fixed point | {converged} |
| Skipped (size limit) | {skipped} |"""

    def _generate_file_table(self, results) -> str:
        lines = [
            "## Files",
            "",
            "| File | Changed | Rounds | Converged | Techniques |",
            "|------|---------|--------|-----------|------------|",
        ]
        for label, r in results:
            techniques = ', '.join(r.techniques_applied) or '-'
            lines.append(
                f"| `{label}` | {'yes' if r.changed else 'no'} | {r.rounds} | "
                f"{'yes' if r.converged else 'no'} | {techniques} |"
            )
        return '\n'.join(lines)

    def _generate_errors_section(self, results) -> str:
        rows = [(label, name, msg) for label, r in results for name, msg in r.errors]
        if not rows:
            return ""
        lines = ["## Plugin Errors", ""]
        for label, name, msg in rows:
            lines.append(f"- `{label}` [{name}]: {msg}")
        return '\n'.join(lines)

    def _generate_footer(self) -> str:
        return "---\n*Output is unchanged wherever a technique failed or found nothing.*"
