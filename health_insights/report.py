from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Any

from health_insights.models import VisualizationConfig
from health_insights.profiling import classify_fields, is_record_list

_REPORT_STYLE = """
  body { font-family: 'Segoe UI', system-ui, sans-serif; max-width: 960px; margin: 40px auto; color: #1a1a2e; line-height: 1.7; }
  h1 { color: #0a3d62; border-bottom: 3px solid #e74c3c; padding-bottom: 12px; }
  h2 { color: #1a5276; margin-top: 2em; }
  h3 { color: #2874a6; }
  table { width: 100%; border-collapse: collapse; margin: 1.5em 0; }
  th { background: #1a5276; color: white; padding: 10px; text-align: left; }
  td { padding: 8px 10px; border-bottom: 1px solid #d5d8dc; }
  tr:nth-child(even) { background: #eaf4fb; }
  .chart-meta { color: #7f8c8d; font-size: 0.9em; }
  .limitation { background: #fef9e7; border-left: 4px solid #f39c12; padding: 12px 16px; margin: 8px 0; border-radius: 4px; }
  footer { margin-top: 3em; padding-top: 1em; border-top: 1px solid #d5d8dc; color: #7f8c8d; font-size: 0.9em; }
  @media print { body { margin: 0; max-width: none; } }
"""


def _dataset_overview(data: Any) -> str:
    if is_record_list(data):
        classification = classify_fields(data)
        rows = [
            ("Records", str(len(data))),
            ("Fields", str(len(data[0]))),
            ("Numeric fields", ", ".join(classification.numeric) or "None"),
            ("Categorical fields", ", ".join(classification.categorical) or "None"),
        ]
    elif isinstance(data, dict):
        rows = [("Top-level keys", str(len(data)))]
    else:
        rows = [("Records", "0")]
    body = "".join(f"<tr><td>{html.escape(name)}</td><td>{html.escape(value)}</td></tr>" for name, value in rows)
    return f"<table><tbody>{body}</tbody></table>"


def _format_value(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"


def _visualization_section(index: int, viz: VisualizationConfig) -> str:
    dataset_label = viz.data.dataset_label or "Value"
    rows = "".join(
        f"<tr><td>{html.escape(label)}</td><td>{_format_value(value)}</td></tr>"
        for label, value in zip(viz.data.labels, viz.data.values)
    )
    origin = ""
    if viz.source == "fallback":
        origin = (
            '<p class="limitation">This chart was computed directly from the data '
            "(field totals) because the analysis model was unavailable.</p>"
        )
    return (
        f"<h3>{index}. {html.escape(viz.title)}</h3>"
        f'<p class="chart-meta">Chart type: {html.escape(viz.type)}</p>'
        f"<p>{html.escape(viz.description)}</p>"
        f"{origin}"
        f"<table><thead><tr><th>Category</th><th>{html.escape(dataset_label)}</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


def render_report(
    data: Any,
    summary: str,
    visualizations: list[VisualizationConfig],
    title: str = "Health Data Analysis Report",
) -> str:
    """Standalone, print-friendly HTML report."""
    generated = datetime.now(timezone.utc).strftime("%B %d, %Y at %H:%M UTC")
    summary_html = "".join(
        f"<p>{html.escape(paragraph.strip())}</p>" for paragraph in summary.split("\n\n") if paragraph.strip()
    )
    if visualizations:
        charts_html = "".join(_visualization_section(i, viz) for i, viz in enumerate(visualizations, start=1))
    else:
        charts_html = "<p>No visualizations could be generated for this dataset.</p>"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8" />
<title>{html.escape(title)}</title>
<style>{_REPORT_STYLE}</style>
</head>
<body>
<h1>{html.escape(title)}</h1>
<p style="color:#7f8c8d">Generated: {generated}</p>
<h2>Executive Summary</h2>
{summary_html}
<h2>Dataset Overview</h2>
{_dataset_overview(data)}
<h2>Visualizations</h2>
{charts_html}
<footer>
  <p>This report was automatically generated by the Health Data Analysis Dashboard. AI-generated summaries
  may contain errors; verify critical figures before use.</p>
</footer>
</body>
</html>"""
