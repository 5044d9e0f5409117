"""
Output formatters for backtest and availability reports.

This module formats reports as human-readable text or JSON. JSON output
converts NaN and infinite statistics to null so it stays standards
compliant.
"""

import json
import logging
import math
from datetime import datetime
from typing import Any

from indexsim.backtest.portfolio.results import BacktestReport, ResultsComparison
from indexsim.models.availability import AvailabilityReport
from indexsim.models.enums import OutputFormat


logger = logging.getLogger(__name__)


def generate_output_filename(
    kind: str, output_format: OutputFormat, timestamp: datetime
) -> str:
    """
    Generate a standardized filename for report output.

    Examples:
        >>> from datetime import datetime, timezone
        >>> ts = datetime(2025, 1, 15, 14, 30, 45, tzinfo=timezone.utc)
        >>> generate_output_filename("backtest", OutputFormat.JSON, ts)
        'backtest_20250115_143045.json'
    """
    ext = "json" if output_format == OutputFormat.JSON else "txt"
    filename = f"{kind}_{timestamp.strftime('%Y%m%d_%H%M%S')}.{ext}"
    logger.debug("Generated filename: %s", filename)
    return filename


def clean_value(value: Any) -> Any:
    """Recursively convert NaN/Inf floats to None for JSON serialization."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    if isinstance(value, dict):
        return {key: clean_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clean_value(item) for item in value]
    return value


def format_report_text(report: BacktestReport) -> str:
    """
    Format a backtest report as text.

    Adds per-strategy risk and concentration lines to the comparison
    summary.
    """
    lines = [ResultsComparison(report).format_summary_text(), ""]

    lines.append("RISK AND CONCENTRATION")
    lines.append("-" * 60)
    for result in report.results:
        perf = result.performance
        conc = result.concentration
        if perf is not None:
            lines.append(
                f"{result.name}: volatility={_pct(perf.volatility)}, "
                f"max drawdown={_pct(perf.max_drawdown)}, "
                f"sharpe={_num(perf.sharpe_ratio)}"
            )
        if conc is not None:
            lines.append(
                f"  top5={_pct(conc.average_top5_weight)}, "
                f"top10={_pct(conc.average_top10_weight)}, "
                f"max single={_pct(conc.max_single_weight)}, "
                f"avg holdings={conc.average_holding_count:.1f}"
            )
        if result.skipped_years:
            lines.append(
                f"  skipped years: {', '.join(str(y) for y in result.skipped_years)}"
            )
        if result.fetch_errors:
            failed = sum(len(tickers) for tickers in result.fetch_errors.values())
            lines.append(f"  fetch errors: {failed} lookups")
    return "\n".join(lines)


def format_report_json(report: BacktestReport, include_snapshots: bool = True) -> str:
    """
    Format a backtest report as JSON.

    Args:
        report: Report to serialize.
        include_snapshots: If False, omit per-year snapshots.

    Returns:
        Pretty-printed JSON string.
    """
    data = report.model_dump(mode="json")
    if not include_snapshots:
        for result in data["results"]:
            result.pop("snapshots", None)
        if data.get("benchmark"):
            data["benchmark"].pop("snapshots", None)
    data["comparison"] = ResultsComparison(report).get_aggregate_summary()
    return json.dumps(clean_value(data), indent=2)


def format_availability_text(report: AvailabilityReport) -> str:
    """Format an availability report as text, one line per year."""
    lines = ["=" * 60, "TICKER AVAILABILITY", "=" * 60]
    for entry in report.years:
        line = (
            f"{entry.year}: {len(entry.available)} available, "
            f"{len(entry.entering)} entering, {len(entry.exiting)} exiting"
        )
        if entry.entering and len(entry.entering) <= 10:
            line += f" (+{', '.join(entry.entering)})"
        if entry.exiting and len(entry.exiting) <= 10:
            line += f" (-{', '.join(entry.exiting)})"
        lines.append(line)

    never = report.never_available()
    if never:
        lines.append("")
        lines.append(f"Never available: {', '.join(never)}")
    lines.append("=" * 60)
    return "\n".join(lines)


def format_availability_json(report: AvailabilityReport) -> str:
    """Format an availability report as JSON."""
    data = report.model_dump(mode="json")
    data["never_available"] = report.never_available()
    return json.dumps(data, indent=2)


def _pct(value: float) -> str:
    return "n/a" if math.isnan(value) else f"{value * 100:.2f}%"


def _num(value: float) -> str:
    return "n/a" if math.isnan(value) else f"{value:.3f}"
