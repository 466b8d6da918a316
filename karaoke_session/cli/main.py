"""Main CLI entry point for Karaoke Session."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import click
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from karaoke_session import __version__
from karaoke_session.core.config import get_settings
from karaoke_session.core.models import Participant, SongRating
from karaoke_session.core.scoring import (
    RecommendationScorer,
    group_ratings_by_song,
    real_user_ids,
)

console = Console()

_participants_adapter = TypeAdapter(list[Participant])
_ratings_adapter = TypeAdapter(list[SongRating])


@click.group()
@click.version_option(version=__version__, prog_name="karaoke-session")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Karaoke Session - Pick songs the whole group can sing."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--limit", "-n", default=10, type=click.IntRange(1, 10), help="Max results")
@click.pass_context
def score(ctx: click.Context, file: Path, limit: int) -> None:
    """Rank group recommendations from a JSON roster export.

    FILE holds {"participants": [...], "ratings": [...]}.
    """
    try:
        data = json.loads(file.read_text())
        participants = _participants_adapter.validate_python(data.get("participants", []))
        ratings = _ratings_adapter.validate_python(data.get("ratings", []))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise click.ClickException(f"Invalid session file: {e}")

    user_ids = real_user_ids(participants)
    # Ratings from people outside the roster don't count
    groups = group_ratings_by_song(r for r in ratings if r.user_id in user_ids)

    if ctx.obj.get("verbose"):
        console.print(
            f"[dim]{len(participants)} participants, {len(user_ids)} with ratings, "
            f"{len(groups)} candidate songs[/dim]"
        )

    recommendations = RecommendationScorer(limit=limit).score(groups, len(user_ids))

    if not recommendations:
        console.print("[yellow]No recommendations (no real participants with ratings)[/yellow]")
        return

    table = Table(title="Group Recommendations")
    table.add_column("#", style="dim", width=3)
    table.add_column("Artist", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Match", justify="right")
    table.add_column("Difficulty", justify="right")

    for i, rec in enumerate(recommendations, 1):
        table.add_row(
            str(i),
            rec.song.artist,
            rec.song.title,
            f"{rec.match_score:.0%}",
            f"{rec.average_difficulty:.1f}",
        )

    console.print(table)


@cli.command()
@click.argument("user_id")
@click.option("--hours", default=24, type=click.IntRange(1, 168), help="Token lifetime in hours")
def token(user_id: str, hours: int) -> None:
    """Mint a bearer token for USER_ID, signed with JWT_SECRET.

    For local development against the API; never use in production.
    """
    from jose import jwt

    settings = get_settings()
    if settings.is_production:
        raise click.ClickException("Refusing to mint tokens in production")
    if not settings.jwt_secret:
        raise click.ClickException("JWT_SECRET is not set")

    now = datetime.now(UTC)
    claims = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=hours)).timestamp()),
    }
    click.echo(jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm))


@cli.command()
@click.option("--host", default=None, help="Bind address (default: API_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: API_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the session API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"[green]Serving Karaoke Session API on http://{host}:{port}[/green]")
    uvicorn.run(
        "backend.main:app",
        host=host,
        port=port,
        reload=reload and not settings.is_production,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
