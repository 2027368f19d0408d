"""
Main CLI application for the contact crawler.

Provides the command-line interface for:
- Crawling a site for contact data
- Batch crawling several sites
- Inspecting configuration
"""

import asyncio
import functools
import json
from contextlib import aclosing
from pathlib import Path
from typing import Any, List, Optional

import pydantic
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from contact_crawler import __version__
from contact_crawler.config import (
    FAST_PRESET,
    CrawlOptions,
    Settings,
    get_default_config_path,
    load_config,
)
from contact_crawler.core.exceptions import ContactCrawlerError
from contact_crawler.core.validation import validate_batch_urls, validate_url
from contact_crawler.crawler import (
    BatchCoordinator,
    BatchResult,
    CrawlJob,
    CrawlResult,
    EventType,
    ProgressEvent,
)
from contact_crawler.utils.logging import get_logger, setup_logging

# Initialize Typer app
app = typer.Typer(
    name="contact-crawler",
    help="Contact Crawler - Crawl websites for emails and public contact data",
    add_completion=False,
    no_args_is_help=True,
)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

console = Console()
logger = get_logger(__name__)


# =============================================================================
# Shared options
# =============================================================================

MAX_PAGES_OPTION = typer.Option(
    None, "--max-pages", "-m", help="Maximum pages to render (1-1000)")
MAX_DEPTH_OPTION = typer.Option(
    None, "--max-depth", "-d", help="Maximum link depth from the seed (0-10)")
DELAY_OPTION = typer.Option(
    None, "--delay", help="Delay between requests in seconds (0-10)")
TIMEOUT_OPTION = typer.Option(
    None, "--timeout", help="Per-page timeout in seconds (5-120)")
ROBOTS_OPTION = typer.Option(
    None, "--robots/--no-robots", help="Respect robots.txt")
PERSONAL_DATA_OPTION = typer.Option(
    None, "--personal-data/--no-personal-data",
    help="Collect phones, names, addresses and social handles")
HEADLESS_OPTION = typer.Option(
    None, "--headless/--no-headless", help="Run browser in headless mode")
EXTERNAL_OPTION = typer.Option(
    None, "--external/--no-external", help="Follow links to other hosts")
RESTRICT_PATH_OPTION = typer.Option(
    None, "--restrict-path", help="Only follow links under this path prefix")
FAST_OPTION = typer.Option(
    False, "--fast", help="Quick scan preset (shallow, short delay, no robots.txt)")
JSON_OPTION = typer.Option(
    False, "--json", help="Print the result as JSON")
OUTPUT_OPTION = typer.Option(
    None, "--output", "-o", help="Write the JSON result to this file", dir_okay=False)
CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help="Path to configuration file", exists=True, dir_okay=False)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]Contact Crawler[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Contact Crawler - Find emails and contact data on websites.

    Use 'contact-crawler --help' for command list.
    """
    ctx.obj = {"verbose": verbose}


def _load_settings(ctx: typer.Context, config_file: Optional[Path]) -> Settings:
    """Load configuration and set up logging, exiting on errors."""
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))

    try:
        settings = load_config(config_file or get_default_config_path())
    except (ContactCrawlerError, pydantic.ValidationError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    setup_logging(settings.logging, level="DEBUG" if verbose else None)
    return settings


def _build_options(
    settings: Settings,
    *,
    max_pages: Optional[int],
    max_depth: Optional[int],
    delay: Optional[float],
    timeout: Optional[float],
    robots: Optional[bool],
    personal_data: Optional[bool],
    headless: Optional[bool],
    external: Optional[bool],
    restrict_path: Optional[str],
    fast: bool,
) -> CrawlOptions:
    """
    Layer the fast preset and command line flags over configured options.

    Raises:
        pydantic.ValidationError: If a value is out of range
    """
    values: dict[str, Any] = settings.crawl.model_dump()
    if fast:
        values.update(FAST_PRESET)

    overrides = {
        "max_pages": max_pages,
        "max_depth": max_depth,
        "request_delay_seconds": delay,
        "page_timeout_seconds": timeout,
        "respect_robots": robots,
        "collect_personal_data": personal_data,
        "headless": headless,
        "follow_external_links": external,
        "restrict_to_path": restrict_path,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    return CrawlOptions(**values)


def _write_output(output: Path, data: dict) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(data, indent=2), encoding="utf-8")


# =============================================================================
# crawl
# =============================================================================


@app.command()
def crawl(
    ctx: typer.Context,
    url: str = typer.Argument(
        ...,
        help="URL to start crawling from",
    ),
    max_pages: Optional[int] = MAX_PAGES_OPTION,
    max_depth: Optional[int] = MAX_DEPTH_OPTION,
    delay: Optional[float] = DELAY_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    robots: Optional[bool] = ROBOTS_OPTION,
    personal_data: Optional[bool] = PERSONAL_DATA_OPTION,
    headless: Optional[bool] = HEADLESS_OPTION,
    external: Optional[bool] = EXTERNAL_OPTION,
    restrict_path: Optional[str] = RESTRICT_PATH_OPTION,
    fast: bool = FAST_OPTION,
    json_output: bool = JSON_OPTION,
    output: Optional[Path] = OUTPUT_OPTION,
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """
    Crawl a website and collect contact data.

    Example:
        contact-crawler crawl https://example.com --max-pages 20
    """
    settings = _load_settings(ctx, config_file)

    try:
        seed = validate_url(url)
        options = _build_options(
            settings,
            max_pages=max_pages,
            max_depth=max_depth,
            delay=delay,
            timeout=timeout,
            robots=robots,
            personal_data=personal_data,
            headless=headless,
            external=external,
            restrict_path=restrict_path,
            fast=fast,
        )
    except (ContactCrawlerError, pydantic.ValidationError) as e:
        console.print(f"[red]Invalid input:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not json_output:
        console.print(Panel(
            f"[bold]Crawling:[/bold] {seed}\n"
            f"[dim]Max pages: {options.max_pages} | Depth: {options.max_depth} | "
            f"Delay: {options.request_delay_seconds}s | "
            f"robots.txt: {'on' if options.respect_robots else 'off'}[/dim]",
            title="Contact Crawler",
            border_style="blue",
        ))

    try:
        result = asyncio.run(_crawl_async(seed, options, settings, show_progress=not json_output))
    except KeyboardInterrupt:
        console.print("\n[yellow]Crawl cancelled by user[/yellow]")
        raise typer.Exit(1)
    except ContactCrawlerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        logger.debug("Crawl failed", exc_info=True)
        raise typer.Exit(1)

    if output:
        _write_output(output, result.to_dict())
        if not json_output:
            console.print(f"[green]✓[/green] Result saved to: {output}")

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_crawl_result(result)


async def _crawl_async(
    seed: str,
    options: CrawlOptions,
    settings: Settings,
    show_progress: bool = True,
) -> CrawlResult:
    """Run one crawl job, rendering its progress stream."""
    job = CrawlJob(
        seed,
        options,
        browser_settings=settings.browser,
        robots_settings=settings.robots,
    )
    result: CrawlResult | None = None

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=not show_progress,
    ) as progress:
        crawl_task = progress.add_task("[cyan]Crawling...", total=options.max_pages)

        async with aclosing(job.stream()) as events:
            async for event in events:
                if event.event_type == EventType.PAGE:
                    progress.update(
                        crawl_task,
                        completed=event.pages_visited,
                        description=(
                            f"[cyan]Crawling... ({event.pages_visited}/{options.max_pages}"
                            f" pages, {event.email_count} emails)"
                        ),
                    )
                elif event.event_type == EventType.FAILED:
                    raise job.error
                else:
                    result = event.result

    return result if result is not None else job.result


def _print_crawl_result(result: CrawlResult) -> None:
    """Render a crawl result as rich tables."""
    console.print()
    console.print(Panel(
        f"[green]✓ Crawl {result.state.value}![/green]\n\n"
        f"Pages visited: [bold]{result.pages_visited}[/bold]\n"
        f"Pages failed: [bold]{result.pages_failed}[/bold]\n"
        f"Emails found: [bold]{result.total_emails}[/bold]\n"
        f"Duration: [dim]{result.duration_seconds:.1f}s[/dim]",
        title="Summary",
        border_style="green",
    ))

    if not result.emails:
        console.print("[yellow]No email addresses found[/yellow]")
    else:
        table = Table(title=f"Emails ({result.total_emails})", show_header=True)
        table.add_column("#", style="dim", width=4)
        table.add_column("Email", style="cyan")
        for i, email in enumerate(result.emails, 1):
            table.add_row(str(i), email)
        console.print(table)

    if result.personal_data:
        table = Table(title=f"Personal data ({len(result.personal_data)})", show_header=True)
        table.add_column("Kind", style="magenta")
        table.add_column("Value", style="white")
        table.add_column("Source", style="dim")
        for record in result.personal_data:
            table.add_row(record.kind.value, record.value, record.source_url)
        console.print(table)


# =============================================================================
# batch
# =============================================================================


@app.command()
def batch(
    ctx: typer.Context,
    urls: List[str] = typer.Argument(
        ...,
        help="Seed URLs to crawl",
    ),
    max_pages: Optional[int] = MAX_PAGES_OPTION,
    max_depth: Optional[int] = MAX_DEPTH_OPTION,
    delay: Optional[float] = DELAY_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    robots: Optional[bool] = ROBOTS_OPTION,
    personal_data: Optional[bool] = PERSONAL_DATA_OPTION,
    headless: Optional[bool] = HEADLESS_OPTION,
    external: Optional[bool] = EXTERNAL_OPTION,
    restrict_path: Optional[str] = RESTRICT_PATH_OPTION,
    fast: bool = FAST_OPTION,
    json_output: bool = JSON_OPTION,
    output: Optional[Path] = OUTPUT_OPTION,
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """
    Crawl several websites one after another.

    Example:
        contact-crawler batch https://a.example https://b.example --fast
    """
    settings = _load_settings(ctx, config_file)

    try:
        seeds = validate_batch_urls(urls, max_urls=settings.batch.max_urls)
        options = _build_options(
            settings,
            max_pages=max_pages,
            max_depth=max_depth,
            delay=delay,
            timeout=timeout,
            robots=robots,
            personal_data=personal_data,
            headless=headless,
            external=external,
            restrict_path=restrict_path,
            fast=fast,
        )
    except (ContactCrawlerError, pydantic.ValidationError) as e:
        console.print(f"[red]Invalid input:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    try:
        result = asyncio.run(_batch_async(seeds, options, settings, show_progress=not json_output))
    except KeyboardInterrupt:
        console.print("\n[yellow]Batch cancelled by user[/yellow]")
        raise typer.Exit(1)

    if output:
        _write_output(output, result.to_dict())
        if not json_output:
            console.print(f"[green]✓[/green] Result saved to: {output}")

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_batch_result(result)


async def _batch_async(
    seeds: list[str],
    options: CrawlOptions,
    settings: Settings,
    show_progress: bool = True,
) -> BatchResult:
    """Run the batch coordinator with a per-seed progress line."""
    job_factory = functools.partial(
        CrawlJob,
        browser_settings=settings.browser,
        robots_settings=settings.robots,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        disable=not show_progress,
    ) as progress:
        status_task = progress.add_task("[cyan]Starting batch...", total=None)

        async def on_progress(seed: str, event: ProgressEvent) -> None:
            progress.update(
                status_task,
                description=(
                    f"[cyan]{seed}[/cyan] {event.pages_visited} pages, "
                    f"{event.email_count} emails"
                ),
            )

        coordinator = BatchCoordinator(
            options,
            job_factory=job_factory,
            on_progress=on_progress,
        )
        return await coordinator.run(seeds)


def _print_batch_result(result: BatchResult) -> None:
    """Render a batch result as a per-seed table and totals."""
    table = Table(title="Batch results", show_header=True)
    table.add_column("URL", style="cyan")
    table.add_column("Status")
    table.add_column("Pages", justify="right")
    table.add_column("Emails", justify="right")
    table.add_column("Error", style="red")

    for item in result.results:
        if item.success:
            table.add_row(item.url, "[green]ok[/green]", str(item.pages_visited),
                          str(item.total_emails), "")
        else:
            table.add_row(item.url, "[red]failed[/red]", "-", "-", item.error or "")

    console.print(table)
    console.print(Panel(
        f"URLs: [bold]{result.total_urls}[/bold] | "
        f"Succeeded: [green]{result.successful_urls}[/green] | "
        f"Failed: [red]{result.failed_urls}[/red] | "
        f"Emails: [bold]{result.total_emails}[/bold]",
        title="Totals",
        border_style="green" if result.failed_urls == 0 else "yellow",
    ))


# =============================================================================
# config
# =============================================================================


@config_app.command("show")
def config_show(
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Show the effective configuration."""
    try:
        settings = load_config(config_file or get_default_config_path())
    except (ContactCrawlerError, pydantic.ValidationError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    config_dict = settings.model_dump(mode="json")

    console.print(Panel(
        "[bold]Current Configuration[/bold]",
        border_style="blue",
    ))

    for section, values in config_dict.items():
        console.print(f"\n[bold cyan]{section}:[/bold cyan]")
        if isinstance(values, dict):
            for key, value in values.items():
                console.print(f"  {key}: [dim]{value}[/dim]")
        else:
            console.print(f"  {values}")


@config_app.command("path")
def config_path() -> None:
    """Show which configuration file would be loaded."""
    path = get_default_config_path()
    if path is None:
        console.print("No configuration file found (using defaults)")
    else:
        console.print(str(path))


if __name__ == "__main__":
    app()
