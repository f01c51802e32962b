"""Typer CLI entry point."""

from __future__ import annotations

from typing import Optional

import orjson
import psycopg
import typer

from triage.config import Settings
from triage.db.client import db_cursor
from triage.db.reports import ReportStore
from triage.geocoding import NominatimGeocoder
from triage.scoring.engine import TriageEngine
from triage.utils.logging import configure_logging, get_logger


app = typer.Typer(help="Issue Triage Engine CLI")
report_app = typer.Typer(help="Stored report commands")
db_app = typer.Typer(help="Database utilities")

app.add_typer(report_app, name="report")
app.add_typer(db_app, name="db")

logger = get_logger(__name__)


@app.callback()
def main() -> None:
    """Initialize logging for all commands."""
    settings = Settings()
    configure_logging(settings.log_level)


@app.command("score")
def score(
    lat: float = typer.Option(..., help="Latitude in decimal degrees"),
    lng: float = typer.Option(..., help="Longitude in decimal degrees"),
    category: Optional[str] = typer.Option(None, help="Report category"),
    urgency: Optional[str] = typer.Option(None, help="Self-reported urgency text"),
    detection: str = typer.Option("[]", help="Raw detector output as a JSON array"),
    geocode: bool = typer.Option(True, help="Reverse-geocode the coordinates"),
    cluster: bool = typer.Option(True, help="Compare against stored reports"),
    report_id: Optional[str] = typer.Option(
        None, help="Stored report to exclude from clustering and save the score to"
    ),
) -> None:
    """Score a submission and print the result as JSON."""
    settings = Settings()
    try:
        raw_detection = orjson.loads(detection)
    except orjson.JSONDecodeError:
        logger.warning("cli.score.bad_detection_json")
        raw_detection = None

    store = ReportStore(settings) if cluster or report_id else None
    engine = TriageEngine(
        settings=settings,
        locator=store if cluster else None,
        geocoder=NominatimGeocoder(settings) if geocode else None,
    )
    result = engine.score_submission_live(
        lat=lat,
        lng=lng,
        category=category,
        raw_detection=raw_detection,
        manual_urgency=urgency,
        exclude_id=report_id,
    )

    if report_id and store is not None:
        resolved = engine.categories.resolve(category)
        try:
            saved = store.save_scores(resolved, report_id, result.priority_score, result.size_bucket)
        except (ValueError, psycopg.Error) as exc:
            logger.error("cli.score.save_failed: %s", exc)
            typer.echo(f"Saving score failed: {exc}", err=True)
            raise typer.Exit(1)
        if not saved:
            typer.echo(f"Report {resolved}/{report_id} not found", err=True)
            raise typer.Exit(1)

    typer.echo(orjson.dumps(result.model_dump(), option=orjson.OPT_INDENT_2).decode("utf-8"))


@app.command("rank")
def rank(
    category: Optional[str] = typer.Option(None, help="Only rank one category"),
    limit: Optional[int] = typer.Option(None, help="Max reports to print"),
) -> None:
    """Print stored reports ordered by priority."""
    settings = Settings()
    store = ReportStore(settings)
    try:
        reports = store.fetch_reports(category)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)

    ranked = TriageEngine(settings=settings, categories=store.categories).rank_reports(reports)
    for report in ranked[:limit] if limit is not None else ranked:
        score_text = "-" if report.priority_score is None else f"{report.priority_score:g}"
        typer.echo(
            f"{score_text:>5}  {report.category}/{report.id}  {report.status}  {report.title}"
        )


@report_app.command("status")
def report_status(
    category: str = typer.Argument(..., help="Report category"),
    report_id: str = typer.Argument(..., help="Report id"),
    status: str = typer.Argument(..., help="New workflow status"),
) -> None:
    """Update the workflow status of a report."""
    try:
        updated = ReportStore().update_status(category, report_id, status)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)
    if not updated:
        typer.echo(f"Report {category}/{report_id} not found", err=True)
        raise typer.Exit(1)


@report_app.command("delete")
def report_delete(
    category: str = typer.Argument(..., help="Report category"),
    report_id: str = typer.Argument(..., help="Report id"),
) -> None:
    """Delete a stored report."""
    try:
        deleted = ReportStore().delete(category, report_id)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)
    if not deleted:
        typer.echo(f"Report {category}/{report_id} not found", err=True)
        raise typer.Exit(1)


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity."""
    try:
        with db_cursor() as cursor:
            cursor.execute("select 1")
            logger.info("db.check.ok")
    except Exception as exc:
        logger.error("db.check.failed: %s", exc)
        typer.echo(f"Database check failed: {exc}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
