"""Output formatting utilities for the CLI."""

import json
from typing import Any, Dict, List

import yaml
from tabulate import tabulate

OUTPUT_FORMATS = ("json", "yaml", "table")


def format_output(data: Any, format_type: str) -> str:
    """Format data as JSON, YAML or a key/value table."""
    if format_type == "json":
        return json.dumps(data, indent=2, default=str)
    if format_type == "yaml":
        return yaml.safe_dump(_plain(data), default_flow_style=False, indent=2, sort_keys=False)
    if format_type == "table":
        if isinstance(data, dict):
            return format_dict_as_table(data)
        return str(data)
    raise ValueError(f"Unsupported format: {format_type}")


def format_dict_as_table(data: Dict[str, Any], max_depth: int = 2) -> str:
    """Flatten nested keys into a two-column table."""
    rows: List[List[str]] = []

    def flatten(d: Dict[str, Any], prefix: str = "", depth: int = 0) -> None:
        for key, value in d.items():
            full_key = f"{prefix}.{key}" if prefix else str(key)
            if isinstance(value, dict) and value and depth < max_depth:
                flatten(value, full_key, depth + 1)
            elif isinstance(value, list) and len(value) <= 5:
                rows.append([full_key, ", ".join(map(str, value))])
            else:
                rows.append([full_key, truncate_string(str(value), 60)])

    flatten(data)
    if not rows:
        return "No data"
    return tabulate(rows, headers=["Key", "Value"], tablefmt="grid")


def format_score_summary(outcome: Dict[str, Any]) -> str:
    """Table of per-criterion scores followed by the QC flags."""
    score = outcome["score"]
    rows = [
        [c["criterion_id"], c["score"], c["max_score"], c["band"], c["confidence"]]
        for c in score["criteria_scores"]
    ]
    table = tabulate(
        rows, headers=["Criterion", "Score", "Max", "Band", "Confidence"], tablefmt="grid"
    )
    flags = ", ".join(outcome["qc"]["quality_flags"]) or "none"
    verdict = "PASS" if score["pass"] else "FAIL"
    return (
        f"{table}\n"
        f"Total: {score['total_score']}/{score['max_score']} "
        f"({score['percentage']}%) {verdict}\n"
        f"Quality flags: {flags}"
    )


def truncate_string(text: str, max_length: int = 50) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _plain(data: Any) -> Any:
    """Round-trip through JSON so YAML only sees plain types."""
    return json.loads(json.dumps(data, default=str))
