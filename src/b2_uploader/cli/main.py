"""CLI interface for bulk uploads to Backblaze B2."""

import logging
import sys

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
)
from rich.prompt import Prompt
from rich.table import Table

from ..core.api import B2UploaderAPI
from ..core.files import enumerate_files
from ..core.models import (
    DEFAULT_CONTENT_TYPE,
    MIN_CONCURRENCY,
    RunSummary,
    UploaderConfig,
    UploadStatus,
)

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()

STATUS_STYLES = {
    UploadStatus.UPLOADED: "green",
    UploadStatus.SKIPPED: "blue",
    UploadStatus.FAILED: "red",
}


def get_credentials_interactively(account_id, application_key):
    """Prompt user for B2 credentials if not provided."""
    if not account_id or not application_key:
        console.print("\n[yellow]B2 credentials are required to upload.[/yellow]")
        console.print(
            "Create an application key at: "
            "[link]https://secure.backblaze.com/app_keys.htm[/link]\n"
        )

        if not account_id:
            account_id = Prompt.ask("Account ID (or application key ID)")

        if not application_key:
            application_key = Prompt.ask("Application key", password=True)

    return account_id, application_key


def credential_options(func):
    """Attach the account credential options to a command."""
    func = click.option(
        "--app-key",
        "-a",
        envvar="B2_APPLICATION_KEY",
        help="Application key (or set B2_APPLICATION_KEY env var)",
    )(func)
    func = click.option(
        "--account-id",
        "-i",
        envvar="B2_ACCOUNT_ID",
        help="Account ID (or set B2_ACCOUNT_ID env var)",
    )(func)
    return func


def print_summary(summary: RunSummary) -> None:
    """Print one row per file followed by the totals."""
    table = Table(title=f"Upload results ({summary.bucket_name or 'bucket'})")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Error", style="red")

    for outcome in summary.outcomes:
        style = STATUS_STYLES[outcome.status]
        table.add_row(
            outcome.remote_name,
            f"[{style}]{outcome.status.value}[/{style}]",
            str(outcome.attempts),
            outcome.last_error or "",
        )

    console.print(table)
    console.print(
        f"[green]{summary.uploaded} uploaded[/green], "
        f"[blue]{summary.skipped} skipped[/blue], "
        f"[red]{summary.failed} failed[/red] "
        f"in {summary.elapsed_seconds:.1f}s"
    )

    if summary.failed:
        console.print(
            f"\n[red]{summary.failed} files remained failed after exhausting retries. "
            "Please retry later; files already uploaded will be skipped.[/red]"
        )
        for outcome in summary.failed_outcomes:
            console.print(f"  [red]✗[/red] {outcome.path}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """B2 Uploader CLI - Mirror a local directory into a Backblaze B2 bucket."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@credential_options
@click.option(
    "--recursive",
    "-r",
    is_flag=True,
    help="Upload sub folders as well",
)
@click.option(
    "--threads",
    "-m",
    type=int,
    default=MIN_CONCURRENCY,
    show_default=True,
    envvar="B2_UPLOAD_THREADS",
    help=f"Number of uploads at a time (minimum {MIN_CONCURRENCY})",
)
@click.option(
    "--bucket",
    "-b",
    envvar="B2_BUCKET_NAME",
    help="Target bucket name (default: first bucket of the account)",
)
@click.option(
    "--content-type",
    default=DEFAULT_CONTENT_TYPE,
    show_default=True,
    help="Content type sent with every file",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=3,
    show_default=True,
    help="Upload attempts per file",
)
@click.option(
    "--retry-delay",
    type=click.FloatRange(min=0),
    default=30.0,
    show_default=True,
    help="Seconds to wait between attempts",
)
@click.option(
    "--exponential-backoff",
    is_flag=True,
    help="Double the retry delay after every failed attempt",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Glob pattern of relative paths to skip (repeatable)",
)
@click.pass_context
def upload(
    ctx,
    directory,
    account_id,
    app_key,
    recursive,
    threads,
    bucket,
    content_type,
    max_attempts,
    retry_delay,
    exponential_backoff,
    exclude,
):
    """Upload a directory to a B2 bucket, skipping files already present."""
    try:
        account_id, app_key = get_credentials_interactively(account_id, app_key)

        config = UploaderConfig(
            account_id=account_id,
            application_key=app_key,
            bucket_name=bucket,
            concurrency=threads,
            content_type=content_type,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            exponential_backoff=exponential_backoff,
            recursive=recursive,
            exclude_patterns=list(exclude),
        )
        api = B2UploaderAPI(config)

        files = enumerate_files(directory, recursive, config.exclude_patterns)
        if not files:
            console.print(f"[yellow]No files found in {directory}.[/yellow]")
            return

        console.print(
            f"Uploading [cyan]{len(files)}[/cyan] files from [cyan]{directory}[/cyan] "
            f"with {config.concurrency} workers"
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Uploading...", total=len(files))

            def progress_callback(completed, total, outcome):
                progress.update(
                    task,
                    completed=completed,
                    description=f"{outcome.status.value}: {outcome.remote_name}",
                )

            summary = api.upload_directory(
                directory,
                recursive,
                progress_callback=progress_callback,
                files=files,
            )

        print_summary(summary)

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if not summary.ok:
        sys.exit(1)


@cli.command()
@credential_options
@click.pass_context
def list_buckets(ctx, account_id, app_key):
    """List the buckets of an account."""
    try:
        account_id, app_key = get_credentials_interactively(account_id, app_key)
        api = B2UploaderAPI(
            UploaderConfig(account_id=account_id, application_key=app_key)
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Fetching buckets...", total=None)
            buckets = api.list_buckets()
            progress.update(task, completed=1)

        if not buckets:
            console.print("[yellow]No buckets found.[/yellow]")
            return

        table = Table(title="Buckets")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Type", style="blue")

        for bucket in buckets:
            table.add_row(bucket.bucket_id, bucket.bucket_name, bucket.bucket_type or "N/A")

        console.print(table)

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def main():
    """Main entry point."""
    cli()
