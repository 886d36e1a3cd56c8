"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer

from statflow import __version__
from statflow.config import (
    CUT_POINT_TYPES,
    AnalysisSettings,
    CentralTendencyOptions,
    ChartOptions,
    ChiSquareOptions,
    ChiSquareRequest,
    CutPoint,
    DispersionOptions,
    DisplayStatisticsOptions,
    ExpectedRange,
    ExpectedValue,
    FrequenciesRequest,
    RunsOptions,
    RunsRequest,
    StatisticsOptions,
)
from statflow.io import (
    columns_as_data,
    infer_variables,
    load_options,
    load_table,
    load_variable_metadata,
    merge_variables,
)
from statflow.orchestration import AnalysisRunner, ChiSquareRunner, FrequenciesRunner, RunsRunner
from statflow.results import InMemoryResultSink, ResultSink, SQLiteResultSink, export_json
from statflow.variables import Variable

app = typer.Typer(
    name="statflow",
    help="Frequencies, Chi-Square and Runs Test analyses with formatted result tables.",
    add_completion=False,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"statflow {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """statflow: descriptive statistics and nonparametric tests."""
    pass


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _load_dataset(
    data: Path,
    var: Optional[List[str]],
    variables_file: Optional[Path],
    weight: Optional[str] = None,
) -> Tuple[Tuple[Variable, ...], Dict[str, List[Any]], Optional[List[Any]]]:
    """Selected variables, their column data and the weight column (if any)."""
    df = load_table(data)
    names = var or [str(name) for name in df.columns if name != weight]
    variables = infer_variables(df, names)
    if variables_file is not None:
        variables = merge_variables(variables, load_variable_metadata(variables_file))

    weights = None
    if weight is not None:
        weight_variables = infer_variables(df, [weight])
        weights = columns_as_data(df, weight_variables)[weight]
    return tuple(variables), columns_as_data(df, variables), weights


def _read_options(options: Optional[Path]) -> Dict[str, Any]:
    return load_options(options) if options is not None else {}


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _sqlite_run_as_dict(sink: SQLiteResultSink) -> Dict[str, Any]:
    analytic_id = sink.latest_analytic_id()
    if analytic_id is None:
        return {"analytics": []}
    analytic = sink.get_analytic(analytic_id) or {}
    analytic["statistics"] = [
        {
            "title": stat.title,
            "components": stat.components,
            "description": stat.description,
            "output_data": json.loads(stat.output_data),
        }
        for stat in sink.list_statistics(analytic_id)
    ]
    return {"analytics": [analytic]}


def _stored_titles(sink: ResultSink) -> List[str]:
    if isinstance(sink, InMemoryResultSink):
        return [stat.title for analytic in sink.analytics.values() for stat in analytic.statistics]
    if isinstance(sink, SQLiteResultSink):
        analytic_id = sink.latest_analytic_id()
        return [stat.title for stat in sink.list_statistics(analytic_id)] if analytic_id is not None else []
    return []


async def _run(runner: AnalysisRunner, request: Any) -> None:
    async with runner:
        await runner.run_analysis(request)
        await runner.wait()


def _execute(runner_cls, request: Any, db: Optional[Path], json_out: Optional[Path]) -> None:
    sink: ResultSink = SQLiteResultSink(db) if db is not None else InMemoryResultSink()
    runner = runner_cls(sink=sink, settings=AnalysisSettings.from_env())
    asyncio.run(_run(runner, request))

    if runner.error_msg:
        _fail(runner.error_msg)

    titles = _stored_titles(sink)
    if not titles:
        typer.secho("Nothing to store: no analysis produced results.", fg=typer.colors.YELLOW)
        return

    if json_out is not None:
        if isinstance(sink, InMemoryResultSink):
            export_json(sink, json_out)
        else:
            json_out.parent.mkdir(parents=True, exist_ok=True)
            with open(json_out, "w", encoding="utf-8") as handle:
                json.dump(_sqlite_run_as_dict(sink), handle, indent=2)
        typer.echo(f"Results written to {json_out}")

    if runner.note:
        typer.secho(runner.note, fg=typer.colors.YELLOW)
    typer.secho(f"\n✓ Stored {len(titles)} result(s):", fg=typer.colors.GREEN)
    for title in titles:
        typer.echo(f"  - {title}")


def _display_statistics(data: Dict[str, Any], descriptive: bool, quartiles: bool) -> DisplayStatisticsOptions:
    base = DisplayStatisticsOptions.from_dict(data.get("displayStatistics") or data.get("display_statistics") or {})
    return DisplayStatisticsOptions(
        descriptive=descriptive or base.descriptive,
        quartiles=quartiles or base.quartiles,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


DATA_OPTION = typer.Option(..., "--data", help="Path to data file (.csv, .parquet)")
VAR_OPTION = typer.Option(None, "--var", help="Variable (column) to analyse; repeatable. Default: all columns")
VARIABLES_OPTION = typer.Option(
    None, "--variables", help="JSON/YAML file with variable definitions (type, measure, labels, missing values)"
)
OPTIONS_OPTION = typer.Option(None, "--options", help="JSON/YAML file with procedure options")
DB_OPTION = typer.Option(None, "--db", help="SQLite database to store results in")
JSON_OUT_OPTION = typer.Option(None, "--json-out", help="Write stored results to this JSON file")


@app.command()
def frequencies(
    data: Path = DATA_OPTION,
    var: Optional[List[str]] = VAR_OPTION,
    variables: Optional[Path] = VARIABLES_OPTION,
    options: Optional[Path] = OPTIONS_OPTION,
    db: Optional[Path] = DB_OPTION,
    json_out: Optional[Path] = JSON_OUT_OPTION,
    weight: Optional[str] = typer.Option(None, "--weight", help="Weight column"),
    no_tables: bool = typer.Option(False, "--no-tables", help="Skip frequency tables"),
    statistics: bool = typer.Option(False, "--statistics", help="Add the Statistics table"),
    charts: Optional[str] = typer.Option(None, "--charts", help="Chart type: bar, pie or histogram"),
):
    """
    Frequency tables, summary statistics and chart data.

    Examples:
        statflow frequencies --data survey.csv --var age --var gender --statistics
    """
    try:
        selected, column_data, weights = _load_dataset(data, var, variables, weight)
        raw = _read_options(options)
        statistics_raw = raw.get("statisticsOptions") or raw.get("statistics_options")
        statistics_options = StatisticsOptions.from_dict(statistics_raw) if statistics_raw else None
        if statistics and statistics_options is None:
            statistics_options = StatisticsOptions(
                central_tendency=CentralTendencyOptions(mean=True, median=True, mode=True),
                dispersion=DispersionOptions(std_deviation=True, minimum=True, maximum=True),
            )

        chart_raw = dict(raw.get("chartOptions") or raw.get("chart_options") or {})
        if charts:
            chart_raw["chart_type"] = charts
        chart_options = ChartOptions.from_dict(chart_raw) if chart_raw else None

        request = FrequenciesRequest(
            variables=selected,
            data=column_data,
            weights=weights,
            show_frequency_tables=not no_tables,
            show_statistics=statistics or statistics_options is not None,
            statistics_options=statistics_options,
            show_charts=chart_options is not None and chart_options.chart_type != "none",
            chart_options=chart_options,
        )
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))

    _execute(FrequenciesRunner, request, db, json_out)


@app.command("chi-square")
def chi_square(
    data: Path = DATA_OPTION,
    var: Optional[List[str]] = VAR_OPTION,
    variables: Optional[Path] = VARIABLES_OPTION,
    options: Optional[Path] = OPTIONS_OPTION,
    db: Optional[Path] = DB_OPTION,
    json_out: Optional[Path] = JSON_OUT_OPTION,
    lower: Optional[float] = typer.Option(None, "--lower", help="Lower bound of the expected range"),
    upper: Optional[float] = typer.Option(None, "--upper", help="Upper bound of the expected range"),
    expected: Optional[List[float]] = typer.Option(
        None, "--expected", help="Expected value per category, in category order; repeatable"
    ),
    descriptive: bool = typer.Option(False, "--descriptive", help="Add descriptive statistics"),
    quartiles: bool = typer.Option(False, "--quartiles", help="Add quartiles"),
):
    """
    One-sample Chi-Square goodness-of-fit test.

    Examples:
        statflow chi-square --data survey.csv --var rating --lower 1 --upper 5
        statflow chi-square --data survey.csv --var dice --expected 1 --expected 1 --expected 2
    """
    try:
        selected, column_data, _ = _load_dataset(data, var, variables)
        raw = _read_options(options)
        base = ChiSquareOptions.from_dict(raw)

        expected_range = base.expected_range
        if lower is not None or upper is not None:
            expected_range = ExpectedRange(use_specified_range=True, lower_value=lower, upper_value=upper)
        expected_value = base.expected_value
        if expected:
            expected_value = ExpectedValue(all_categories_equal=False, values=tuple(expected))

        request = ChiSquareRequest(
            variables=selected,
            data=column_data,
            options=ChiSquareOptions(
                expected_range=expected_range,
                expected_value=expected_value,
                display_statistics=_display_statistics(raw, descriptive, quartiles),
            ),
        )
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))

    _execute(ChiSquareRunner, request, db, json_out)


@app.command()
def runs(
    data: Path = DATA_OPTION,
    var: Optional[List[str]] = VAR_OPTION,
    variables: Optional[Path] = VARIABLES_OPTION,
    options: Optional[Path] = OPTIONS_OPTION,
    db: Optional[Path] = DB_OPTION,
    json_out: Optional[Path] = JSON_OUT_OPTION,
    cut: Optional[List[str]] = typer.Option(
        None, "--cut", help="Cut point: median, mean, mode or custom; repeatable. Default: median"
    ),
    custom_value: Optional[float] = typer.Option(None, "--custom-value", help="Custom cut point value"),
    descriptive: bool = typer.Option(False, "--descriptive", help="Add descriptive statistics"),
    quartiles: bool = typer.Option(False, "--quartiles", help="Add quartiles"),
):
    """
    Runs Test for randomness.

    Examples:
        statflow runs --data series.csv --var value --cut median --cut mean
    """
    try:
        selected, column_data, _ = _load_dataset(data, var, variables)
        raw = _read_options(options)
        base = RunsOptions.from_dict(raw)

        cut_point = base.cut_point if (raw.get("cutPoint") or raw.get("cut_point")) else CutPoint()
        if cut:
            unknown = [name for name in cut if name not in CUT_POINT_TYPES]
            if unknown:
                raise ValueError(f"Unknown cut point(s): {', '.join(unknown)}. Choose from {', '.join(CUT_POINT_TYPES)}")
            cut_point = CutPoint(**{name: name in cut for name in CUT_POINT_TYPES})

        request = RunsRequest(
            variables=selected,
            data=column_data,
            options=RunsOptions(
                cut_point=cut_point,
                custom_value=custom_value if custom_value is not None else base.custom_value,
                display_statistics=_display_statistics(raw, descriptive, quartiles),
            ),
        )
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))

    _execute(RunsRunner, request, db, json_out)


if __name__ == "__main__":
    app()
