import json
import logging
from pathlib import Path

import click

from openapi_coverage.analysis.insights import build_insights
from openapi_coverage.capture.observation import Observation
from openapi_coverage.coverage.engine import analyze_observations
from openapi_coverage.errors import CoverageError
from openapi_coverage.export.formats import ExportFormat, export_observations, observations_from_json
from openapi_coverage.reporting.console import render_report
from openapi_coverage.spec.catalog import SpecCatalog
from openapi_coverage.spec.loader import load
from openapi_coverage.storage.dynamo import DEFAULT_TABLE, fetch_run_observations

logger = logging.getLogger(__name__)

EXIT_BELOW_THRESHOLD = 2


def _load_catalog(spec: str) -> SpecCatalog:
    try:
        return SpecCatalog(load(spec))
    except CoverageError as e:
        raise click.ClickException(str(e)) from e


def _load_observations(
    observations_file: str | None,
    run_id: str | None,
    table: str,
    region: str | None,
) -> list[Observation]:
    if bool(observations_file) == bool(run_id):
        raise click.UsageError("Pass exactly one of --observations or --run-id")

    if run_id:
        return fetch_run_observations(table_name=table, run_id=run_id, region=region)

    try:
        return observations_from_json(Path(observations_file).read_text(encoding="utf-8"))
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise click.ClickException(f"Could not read observations from {observations_file}: {e}") from e


def _source_options(func):
    func = click.option("--region", envvar="AWS_DEFAULT_REGION")(func)
    func = click.option(
        "--table", envvar="OPENAPI_COVERAGE_TABLE", default=DEFAULT_TABLE, show_default=True
    )(func)
    func = click.option(
        "--run-id", envvar="OPENAPI_COVERAGE_RUN_ID", help="Read a run persisted to DynamoDB"
    )(func)
    func = click.option(
        "--observations", "observations_file", type=click.Path(exists=True, dir_okay=False),
        help="JSON export produced by a test run",
    )(func)
    return func


@click.group()
@click.version_option(package_name="openapi-coverage")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Measure which OpenAPI operations your API tests exercise."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.option("--spec", required=True, envvar="OPENAPI_COVERAGE_SPEC", help="Spec file path or URL")
def operations(spec):
    """List the operations declared by a spec."""
    catalog = _load_catalog(spec)
    for op in catalog.list_operations():
        line = op.label
        if op.summary:
            line += f" - {op.summary}"
        click.echo(line)
    click.echo(f"{len(catalog)} operation(s)", err=True)


@cli.command()
@click.option("--spec", required=True, envvar="OPENAPI_COVERAGE_SPEC", help="Spec file path or URL")
@_source_options
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text", show_default=True)
@click.option(
    "--fail-under", type=float, envvar="OPENAPI_COVERAGE_FAIL_UNDER",
    help="Exit with status 2 when coverage is below this percentage",
)
@click.pass_context
def report(ctx, spec, observations_file, run_id, table, region, output_format, fail_under):
    """Analyse recorded observations against a spec."""
    catalog = _load_catalog(spec)
    observations = _load_observations(observations_file, run_id, table, region)

    coverage = analyze_observations(observations, catalog)
    insights = build_insights(observations, coverage)

    if output_format == "json":
        click.echo(json.dumps(insights.to_dict(), indent=2))
    else:
        click.echo(render_report(coverage, insights))

    if fail_under is not None and coverage.coverage_pct < fail_under:
        click.echo(
            f"Coverage {coverage.coverage_pct:.2f}% is below the required {fail_under:.2f}%",
            err=True,
        )
        ctx.exit(EXIT_BELOW_THRESHOLD)


@cli.command()
@_source_options
@click.option(
    "--format", "export_format", required=True,
    type=click.Choice([f.value for f in ExportFormat], case_sensitive=False),
)
@click.option("--output", required=True, type=click.Path(dir_okay=False))
@click.option("--suite-name", default="API Tests", show_default=True, help="JUnit test suite name")
@click.option("--no-headers", is_flag=True, help="Omit the CSV header row")
def export(observations_file, run_id, table, region, export_format, output, suite_name, no_headers):
    """Convert recorded observations to JSON, CSV or JUnit XML."""
    observations = _load_observations(observations_file, run_id, table, region)
    try:
        path = export_observations(
            observations,
            export_format,
            output,
            include_headers=not no_headers,
            suite_name=suite_name,
        )
    except CoverageError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Exported {len(observations)} observation(s) to {path}")
