"""Command line entry points."""

import asyncio

import typer
from dotenv.main import load_dotenv
from rich.console import Console

from src.relying_party.core.errors import MalformedIdentifierError
from src.relying_party.core.models.session import UserIdentity
from src.relying_party.core.sequencing import chain_in_order

console = Console()

app = typer.Typer(
    help="OpenID relying party - run the login service and inspect identities",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.command()
def serve(
    host: str = typer.Option(None, help="Interface to bind (defaults to app.host)"),
    port: int = typer.Option(None, help="Port to listen on (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Start the web server."""
    import uvicorn

    from src.relying_party.runtime.context import get_config

    config = get_config()
    bind_host = host or config.app.host
    bind_port = port or config.app.port
    console.print(f"[green]Listening on {bind_host}:{bind_port}[/green]")
    uvicorn.run(
        "src.relying_party.api.http.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        access_log=False,
    )


@app.command()
def identity(claimed_id: str = typer.Argument(..., help="Claimed identifier URL")) -> None:
    """Print the numeric provider ID carried by a claimed identifier."""
    try:
        user = UserIdentity.from_claimed_id(claimed_id)
    except MalformedIdentifierError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(user.numeric_id)


@app.command()
def chain(
    claimed_ids: list[str] = typer.Argument(..., help="Claimed identifier URLs, in order"),
    alongside: str = typer.Option(
        None, help="Unrelated value printed next to the first numeric ID"
    ),
) -> None:
    """Resolve claimed identifiers one after another and print their numeric IDs in order."""

    async def resolve(claimed_id: str) -> str:
        return UserIdentity.from_claimed_id(claimed_id).numeric_id

    def show(*values: str) -> None:
        console.print(" ".join(values))

    extra = {} if alongside is None else {"alongside_first": alongside}
    try:
        asyncio.run(chain_in_order((resolve(c) for c in claimed_ids), show, **extra))
    except MalformedIdentifierError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e


def main() -> None:
    """Main entry point for the CLI."""
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
