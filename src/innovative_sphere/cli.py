"""Typer-based CLI for catalog setup, one-shot idea generation, and serving the API."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from innovative_sphere.assembler import IdeaAssembler
from innovative_sphere.completion import CompletionClient
from innovative_sphere.composer import PromptComposer
from innovative_sphere.config import Settings
from innovative_sphere.errors import InnovativeSphereError
from innovative_sphere.logging_setup import configure_logging
from innovative_sphere.store import Store

app = typer.Typer(add_completion=False, help="innovative-sphere: capstone project idea generator")


@app.command("init-db")
def init_db(
    db_path: Path | None = typer.Option(None, "--db", help="SQLite database path"),
    no_seed: bool = typer.Option(False, "--no-seed", help="Create the schema without default entries"),
) -> None:
    """Initialize the catalog database and seed default industries and project types."""
    settings = Settings.from_env()
    store = Store(db_path or settings.db_path)
    store.init_db()
    typer.echo(f"DB initialized: {store.db_path}")
    if not no_seed:
        written = store.seed_defaults()
        typer.echo(f"Seeded {written} catalog entries")


@app.command("generate")
def generate(
    industry: str = typer.Option(..., help="Industry id or name"),
    project_type: str = typer.Option(..., "--project-type", help="Project type id or name"),
    interests: list[str] = typer.Option([], "--interest", help="User interest (repeatable)"),
    complexity: str = typer.Option("intermediate", help="beginner, intermediate, or advanced"),
) -> None:
    """Generate one idea and print it as JSON."""
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)

    try:
        assembler = IdeaAssembler(
            composer=PromptComposer(),
            client=CompletionClient.from_settings(settings),
        )
        idea = assembler.generate(
            {
                "industry": industry,
                "projectType": project_type,
                "userInterests": interests,
                "complexity": complexity,
            }
        )
    except InnovativeSphereError as exc:
        typer.echo(f"Error ({exc.kind}): {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps(idea.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(3000, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on source changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("innovative_sphere.api:create_app", host=host, port=port, reload=reload, factory=True)


@app.command("doctor")
def doctor(
    db_path: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Print local environment diagnostics used by the CLI and API."""
    settings = Settings.from_env()
    path = db_path or settings.db_path
    typer.echo(f"DB exists: {path.exists()} ({path})")
    typer.echo(f"MISTRAL_API_KEY set: {bool(settings.mistral_api_key)}")
    typer.echo(f"Completion endpoint: {settings.mistral_api_url} model={settings.mistral_model}")


if __name__ == "__main__":
    app()
