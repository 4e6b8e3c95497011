"""CLI entry point for tr-rename."""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from .adapters.pdf import PdfPlumberAdapter
from .adapters.report import write_report
from .adapters.storage import FilesystemAdapter, NameRegistry
from .config import Settings, load_settings
from .domain.errors import OversizedInput, RenameError
from .domain.filename import build_filename
from .domain.models import OutcomeStatus, ProcessingResult
from .domain.normalizer import normalize_text
from .domain.services import ProcessingService, analyze_text

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_settings(ctx: click.Context) -> Settings:
    try:
        return load_settings(ctx.obj["config_path"])
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-c", "--config", type=click.Path(exists=True), help="Config file path")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """tr-rename - rename Trade Republic PDFs to a sortable scheme."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None


def collect_pdfs(root: Path) -> list[Path]:
    """Collect PDF files below root, sorted.

    Matches the extension case-insensitively. Symlinked files are not
    followed, so nothing outside root is picked up through a link.
    """
    pdfs = []
    for path in root.rglob("*"):
        if path.suffix.lower() != ".pdf":
            continue
        if path.is_symlink():
            logger.debug(f"Skipping symlink: {path}")
            continue
        if path.is_file():
            pdfs.append(path)
    return sorted(pdfs)


def format_result(result: ProcessingResult) -> str:
    name = result.source_path.name
    if result.renamed:
        return f"✓ {name} -> {result.output_path.name}"
    if result.status == OutcomeStatus.SUCCESS:
        return f"✓ {name} (name unchanged)"
    if result.status == OutcomeStatus.SKIPPED:
        reason = result.error.message if result.error else "already renamed"
        return f"- {name}: skipped ({reason})"
    if result.error:
        return f"✗ {name}: [{result.error.kind}] {result.error.message}"
    return f"✗ {name}: failed"


@cli.command()
@click.argument(
    "root", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option("--dry-run", is_flag=True, help="Show new names without renaming")
@click.option("--jobs", type=click.IntRange(min=1), help="Number of worker threads")
@click.option(
    "--report",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a YAML report of all outcomes",
)
@click.pass_context
def rename(
    ctx: click.Context,
    root: Path,
    dry_run: bool,
    jobs: int | None,
    report: Path | None,
) -> None:
    """Classify and rename all PDFs below ROOT."""
    settings = get_settings(ctx)

    pdfs = collect_pdfs(root)
    if not pdfs:
        click.echo("No PDF files found")
        return

    # Wire up adapters
    storage = FilesystemAdapter(
        root,
        registry=NameRegistry(),
        max_attempts=settings.limits.max_collision_attempts,
        max_filename_bytes=settings.limits.max_filename_bytes,
        dry_run=dry_run,
    )
    service = ProcessingService(
        extractor=PdfPlumberAdapter(),
        storage=storage,
        max_file_size=settings.limits.max_file_size,
        max_text_chars=settings.limits.max_text_chars,
        max_asset_length=settings.limits.max_asset_length,
        min_year=settings.dates.min_year,
        max_year=settings.dates.max_year,
    )

    batch = service.process_batch(pdfs, jobs=jobs or settings.run.jobs)

    for result in batch.results:
        click.echo(format_result(result), err=result.status == OutcomeStatus.ERROR)

    prefix = "Dry run, " if dry_run else ""
    click.echo(f"\n{prefix}{batch.summary()}")

    if report:
        write_report(report, batch)
        click.echo(f"Report: {report}")


@cli.command()
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def classify(ctx: click.Context, file: Path) -> None:
    """Show how a single document would be named, without renaming it."""
    settings = get_settings(ctx)

    try:
        size = file.stat().st_size
        if size > settings.limits.max_file_size:
            raise OversizedInput(f"File size {size} exceeds limit")

        text = normalize_text(PdfPlumberAdapter().extract_text(file))
        record = analyze_text(text, settings.dates.min_year, settings.dates.max_year)
        filename = build_filename(record, settings.limits.max_asset_length)
    except RenameError as e:
        click.echo(f"Error: [{e.kind}] {e.message}", err=True)
        sys.exit(1)

    click.echo(f"type: {record.doc_type.tag}")
    click.echo(f"date: {record.date.isoformat() if record.date else None}")
    click.echo(f"isin: {record.isin}")
    click.echo(f"asset: {record.asset}")
    click.echo(f"filename: {filename}")


if __name__ == "__main__":
    cli()
