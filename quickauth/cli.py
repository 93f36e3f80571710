"""
quickauth CLI: project scaffolding and token helpers.
"""

import asyncio
import secrets
import sys
from enum import Enum
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table

from quickauth.adapters.impl.jwt_strategy import JWTStrategy

app = typer.Typer(
    name="quickauth",
    help="quickauth - easy authentication setup for FastAPI",
    add_completion=False
)

console = Console()

SCAFFOLD_FILE = "auth_app.py"


class StoreChoice(str, Enum):
    memory = "memory"
    sqlite = "sqlite"


def generate_secret(length: int = 32) -> str:
    """Generate a URL-safe random secret from ``length`` random bytes."""
    return secrets.token_urlsafe(length)


def prompt_store() -> StoreChoice:
    """Ask for the user store until a supported one is given."""
    while True:
        answer = typer.prompt("Which user store? (memory, sqlite)", default="memory")
        try:
            return StoreChoice(answer.strip().lower())
        except ValueError:
            console.print(f"[red]Unsupported store: {answer}[/red]")


def render_template(store: str, secret: str) -> str:
    """Render the FastAPI scaffold for the chosen store."""
    if store == "sqlite":
        store_import = "from quickauth.adapters.impl import SQLiteUserStore\n"
        store_arg = '\n    store=SQLiteUserStore("quickauth.db"),'
    else:
        store_import = ""
        store_arg = ""

    return f'''from fastapi import Depends, FastAPI
from quickauth import User, quick_auth
{store_import}
app = FastAPI()

# Initialize authentication
auth = quick_auth(
    secret={secret!r},{store_arg}
)

# Mounts POST /auth/register, POST /auth/login, POST /auth/logout, GET /auth/me
auth.install(app, prefix="/auth")


@app.get("/api/protected")
async def protected(user: User = Depends(auth.require_auth)):
    return {{"message": "This is protected", "user": user.model_dump(mode="json")}}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
'''


@app.command()
def init(
    directory: Path = typer.Option(Path("."), "--dir", "-d", help="Project directory"),
    store: Optional[StoreChoice] = typer.Option(None, "--store", help="User store"),
    secret: Optional[str] = typer.Option(None, "--secret", help="Token signing secret"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Accept defaults without prompting"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file")
):
    """Scaffold a FastAPI app wired to quickauth."""
    console.print("[bold blue]quickauth setup[/bold blue]\n")

    if store is None:
        store = StoreChoice.memory if yes else prompt_store()
    if secret is None:
        generated = generate_secret()
        secret = generated if yes else typer.prompt(
            "Token secret (enter to use a generated one)",
            default=generated,
            show_default=False
        )

    target = directory / SCAFFOLD_FILE
    if target.exists() and not force:
        console.print(f"[red]✗[/red] {target} already exists (use --force to overwrite)")
        sys.exit(1)

    directory.mkdir(parents=True, exist_ok=True)
    target.write_text(render_template(store.value, secret))

    console.print(f"[green]✓[/green] Created {target}")
    console.print("[yellow]\nNext steps:[/yellow]")
    console.print("1. Install dependencies: pip install quickauth uvicorn")
    console.print(f"2. Run the app: python {target}")
    console.print("3. Move the secret to QUICKAUTH_SECRET before deploying")


@app.command("generate-secret")
def generate_secret_command(
    length: int = typer.Option(32, "--length", "-n", min=16, help="Number of random bytes")
):
    """Generate a random secret key."""
    console.print("[green]Generated secret:[/green]")
    print(generate_secret(length))


@app.command("verify-token")
def verify_token(
    token: str = typer.Argument(..., help="Token to verify"),
    secret: str = typer.Option(..., "--secret", envvar="QUICKAUTH_SECRET", help="Signing secret"),
    issuer: Optional[str] = typer.Option(None, "--issuer", help="Expected issuer"),
    audience: Optional[str] = typer.Option(None, "--audience", help="Expected audience")
):
    """Verify a token and show the identity it carries."""
    strategy = JWTStrategy(secret, issuer=issuer, audience=audience)
    result = asyncio.run(strategy.verify(token))

    if not result.success:
        console.print(f"[red]✗[/red] {result.error}")
        sys.exit(1)

    table = Table(title="Token identity")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    user = result.user.model_dump(mode="json")
    for key in ("id", "email", "created_at", "updated_at"):
        table.add_row(key, str(user[key]))
    for key, value in user["attributes"].items():
        table.add_row(f"attributes.{key}", str(value))

    console.print(table)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
