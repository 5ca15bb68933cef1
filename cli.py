"""
Storefront CLI.

Operational commands that have no HTTP surface: bootstrapping the first
administrator and refresh-token housekeeping.
"""

import asyncio

import typer
from rich.console import Console

from app.core.errors import AppError
from app.db import AsyncSessionLocal, close_db, init_db
from app.models.user import UserRole
from app.schemas.user import check_password_strength
from app.services.auth_service import AuthService
from app.services.refresh_token_service import RefreshTokenService
from app.services.user_service import UserService

app = typer.Typer(
    name="storefront",
    help="Storefront API management CLI",
    add_completion=False,
)
console = Console()


async def _run_in_session(work):
    await init_db()
    try:
        async with AsyncSessionLocal() as db:
            result = await work(db)
            await db.commit()
            return result
    finally:
        await close_db()


@app.command()
def init():
    """Create database tables."""
    async def _init():
        await init_db()
        await close_db()

    asyncio.run(_init())
    console.print("[green]✓ Database tables ready[/green]")


@app.command()
def create_admin(
    email: str = typer.Option(..., prompt=True, help="Administrator email"),
    name: str = typer.Option("Administrator", help="Display name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create an administrator account (or promote an existing one)."""
    try:
        check_password_strength(password)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    user = asyncio.run(_run_in_session(lambda db: UserService.create_admin(db, name, email, password)))
    console.print(f"[green]✓ Administrator {user.email} ({user.id})[/green]")


@app.command()
def set_role(
    email: str = typer.Argument(..., help="Account email"),
    role: UserRole = typer.Argument(..., help="user or admin"),
):
    """Change the role of an existing account."""
    async def _set(db):
        user = await AuthService.get_user_by_email(db, email)
        if user is None:
            raise AppError(f"No account with email {email}", status_code=404)
        return await UserService.set_role(db, user.id, role)

    try:
        user = asyncio.run(_run_in_session(_set))
    except AppError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ {user.email} is now {user.role.value}[/green]")


@app.command()
def purge_tokens():
    """Delete expired and revoked refresh tokens."""
    count = asyncio.run(_run_in_session(RefreshTokenService.purge_expired))
    console.print(f"[green]✓ Purged {count} refresh token(s)[/green]")


if __name__ == "__main__":
    app()
