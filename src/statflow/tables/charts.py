"""Chart payloads for the Frequencies procedure.

Charts are emitted as data only; rendering is left to whoever reads the
result store.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from statflow.config import ChartOptions
from statflow.variables import Measure, Variable, effective_measure, value_label, variable_display_name

logger = logging.getLogger(__name__)


def _bins(values: List[float], weights: List[float], n_bins: Optional[int] = None) -> List[Dict[str, float]]:
    if n_bins is None:
        n_bins = max(1, min(20, int(np.ceil(np.log2(max(sum(weights), 1)) + 1))))
    counts, edges = np.histogram(values, bins=n_bins, weights=weights)
    return [
        {"start": float(edges[i]), "end": float(edges[i + 1]), "count": float(counts[i])}
        for i in range(len(counts))
    ]


def _normal_curve(values: List[float], weights: List[float], bins: List[Dict[str, float]]) -> List[Dict[str, float]]:
    total = float(np.sum(weights))
    if total < 2 or not bins:
        return []
    mean = float(np.average(values, weights=weights))
    variance = float(np.sum(np.asarray(weights) * (np.asarray(values) - mean) ** 2) / (total - 1))
    if variance <= 0:
        return []
    sd = float(np.sqrt(variance))
    width = bins[0]["end"] - bins[0]["start"]
    xs = np.linspace(bins[0]["start"], bins[-1]["end"], 50)
    density = np.exp(-0.5 * ((xs - mean) / sd) ** 2) / (sd * np.sqrt(2 * np.pi))
    return [{"x": float(x), "y": float(y * total * width)} for x, y in zip(xs, density)]


def build_chart_payloads(
    variable: Variable,
    frequency_table: Mapping[str, Any],
    chart_options: Optional[ChartOptions],
) -> List[Dict[str, Any]]:
    """Chart data for one variable's frequency table.

    Histograms are only produced for scale variables with numeric categories;
    bar and pie charts work for any variable.
    """
    if chart_options is None or chart_options.chart_type == "none":
        return []

    rows = frequency_table.get("rows") or []
    use_percent = chart_options.values == "percentages"
    title = variable_display_name(variable)

    if chart_options.chart_type == "histogram":
        if effective_measure(variable) != Measure.SCALE.value:
            logger.info(f"Skipping histogram for non-scale variable {variable.name}")
            return []
        values, weights = [], []
        for row in rows:
            try:
                values.append(float(row.get("label")))
            except (TypeError, ValueError):
                logger.info(f"Skipping histogram for {variable.name}: non-numeric category {row.get('label')!r}")
                return []
            weights.append(float(row.get("frequency") or 0))
        if not values:
            return []
        bins = _bins(values, weights)
        chart = {
            "chartType": "histogram",
            "title": title,
            "variable": variable.name,
            "bins": bins,
        }
        if chart_options.show_normal_curve:
            chart["normalCurve"] = _normal_curve(values, weights, bins)
        return [chart]

    data = [
        {
            "category": value_label(variable, row.get("label")),
            "value": row.get("percent") if use_percent else row.get("frequency"),
        }
        for row in rows
    ]
    return [
        {
            "chartType": chart_options.chart_type,
            "title": title,
            "variable": variable.name,
            "values": chart_options.values,
            "data": data,
        }
    ]
