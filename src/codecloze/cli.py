"""Command-line interface for CodeCloze."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from .config import get_settings
from .errors import CodeClozeError
from .models.github import Diff
from .services.review_engine import ReviewPipeline
from .utils.logging import setup_logging
from .webhooks.security import compute_signature

app = typer.Typer(
    name="codecloze",
    help="On-demand pull request review agent for GitHub",
    add_completion=False
)
console = Console()


def _present(value) -> str:
    return "✅" if value else "❌"


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind to (defaults to HOST)"),
    port: Optional[int] = typer.Option(None, help="Port to bind to (defaults to PORT)"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
):
    """Start the webhook server."""
    settings = get_settings()
    setup_logging(settings)

    host = host or settings.host
    port = port or settings.port
    console.print(f"🚀 Starting CodeCloze on {host}:{port}")
    console.print(f"📊 Environment: {settings.environment.value}")

    uvicorn.run(
        "codecloze.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.value.lower()
    )


@app.command()
def config():
    """Show current configuration."""
    settings = get_settings()

    table = Table(title="CodeCloze Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Host", settings.host)
    table.add_row("Port", str(settings.port))
    table.add_row("Environment", settings.environment.value)
    table.add_row("Log Level", settings.log_level.value)
    table.add_row("Invocation Phrase", settings.invocation_phrase)

    table.add_row("GitHub API", settings.github_api_url)
    table.add_row("Has Webhook Secret", _present(settings.github_webhook_secret))
    table.add_row("Has App Id", _present(settings.github_app_id))
    table.add_row(
        "Has Private Key",
        _present(settings.github_private_key_base64 or settings.github_private_key)
    )

    table.add_row("Azure OpenAI Endpoint", settings.azure_openai_endpoint or "❌")
    table.add_row("Has Azure OpenAI Key", _present(settings.azure_openai_api_key))
    table.add_row("Gating Deployment", settings.azure_openai_gating_deployment or "❌")
    table.add_row("Review Deployment", settings.azure_openai_review_deployment or "❌")

    console.print(table)


@app.command()
def sign(
    payload_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Webhook payload file"),
):
    """Print the X-Hub-Signature-256 value for a payload file."""
    settings = get_settings()
    if not settings.github_webhook_secret:
        console.print("❌ GITHUB_WEBHOOK_SECRET is not set")
        raise typer.Exit(code=1)

    typer.echo(compute_signature(settings.github_webhook_secret, payload_file.read_bytes()))


@app.command("review-diff")
def review_diff(
    diff_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Unified diff file"),
):
    """Run the review pipeline on a local diff and print the comment."""
    settings = get_settings()
    setup_logging(settings)

    try:
        settings.require_llm_settings()
    except CodeClozeError as e:
        console.print(f"❌ {e}: {e.details}")
        raise typer.Exit(code=1)

    diff = Diff(text=diff_file.read_text(encoding="utf-8"))
    console.print(
        f"🔍 Reviewing {diff.file_count} file(s), {diff.hunk_count} hunk(s), {diff.byte_length} bytes"
    )

    outcome = asyncio.run(ReviewPipeline(settings).run(diff))

    console.print(f"📈 Review needed: {outcome.review_needed}, findings: {outcome.findings_count}")
    typer.echo(outcome.comment_body)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
