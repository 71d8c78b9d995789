from poolbreaker.core.pipeline import PipelineResult
from poolbreaker.utils.report_generator import ReportGenerator


def test_markdown_report():
    changed = PipelineResult(original="a", code="b", rounds=2, converged=True,
                             trace=[(1, 'string_array', True), (2, 'string_array', False)])
    failed = PipelineResult(original="c", code="c", rounds=1, converged=True,
                            errors=[('jsfuck', 'boom')])
    report = ReportGenerator().generate_markdown([("one.js", changed), ("sub/two.js", failed)], title="samples")

    assert report.startswith("# poolbreaker Report: samples")
    assert "| Files processed | 2 |" in report
    assert "| Files changed | 1 |" in report
    assert "| `one.js` | yes | 2 | yes | string_array |" in report
    assert "| `sub/two.js` | no | 1 | yes | - |" in report
    assert "- `sub/two.js` [jsfuck]: boom" in report


def test_errors_section_is_omitted_when_clean():
    clean = PipelineResult(original="a", code="a", rounds=1, converged=True)
    assert "Plugin Errors" not in ReportGenerator().generate_markdown([("a.js", clean)])
