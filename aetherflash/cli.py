"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from aetherflash.core.builder import all_succeeded
from aetherflash.core.errors import AetherflashError
from aetherflash.core.model import Role
from aetherflash.core.service import ProvisioningService

app = typer.Typer(help="Build and flash AetherLink firmware roles over a CMSIS-DAP probe")


@app.callback()
def main(
    ctx: typer.Context,
    profile: str | None = typer.Option(None, "--profile", help="Provisioning profile name"),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        envvar="AETHERFLASH_WORKSPACE",
        help="Firmware workspace root (defaults to the current directory)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[aetherflash] %(levelname)s: %(message)s",
    )
    ctx.obj = {"profile": profile, "workspace": workspace}


def _build_service(ctx: typer.Context, **kwargs) -> ProvisioningService:
    options = ctx.obj or {}
    service = ProvisioningService(
        profile_name=options.get("profile"),
        workspace=options.get("workspace"),
        progress=typer.echo,
        **kwargs,
    )
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command("roles")
def list_roles(ctx: typer.Context) -> None:
    """List each role's artifact and probe configuration."""
    try:
        service = _build_service(ctx)
        for descriptor in service.list_roles():
            state = "built" if descriptor.artifact_path.is_file() else "missing"
            typer.echo(f"{descriptor.role.value}: {descriptor.label} (package {descriptor.package})")
            typer.echo(f"  artifact: {descriptor.artifact_path} [{state}]")
            typer.echo(f"  probe: {descriptor.interface_config} + {descriptor.target_config}")
    except AetherflashError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices(ctx: typer.Context) -> None:
    """List enumerated USB devices and mark the expected board."""
    try:
        service = _build_service(ctx)
        devices = service.list_devices()
        if not devices:
            typer.echo("No USB devices found")
            return

        for device, matched in devices:
            marker = f" <- {service.profile.board.match}" if matched else ""
            typer.echo(f"{device.line}{marker}")
    except AetherflashError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("build")
def build(
    ctx: typer.Context,
    roles: list[Role] | None = typer.Option(None, "--role", help="Role to build (repeatable, default: all)"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Roles to compile concurrently"),
) -> None:
    """Compile firmware for every role (or the selected ones)."""
    try:
        service = _build_service(ctx)
        results = service.build(roles or None, jobs=jobs)
    except AetherflashError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        typer.echo("Error: aborted by user", err=True)
        raise typer.Exit(code=1) from None

    for role, result in results.items():
        typer.echo(f"  {role.value}: {'ok' if result.success else 'FAILED'}")
    if not all_succeeded(results):
        failed = ", ".join(role.value for role, result in results.items() if not result.success)
        typer.echo(f"Error: build failed for {failed}", err=True)
        raise typer.Exit(code=1)
    typer.echo("All firmware built.")


@app.command("flash")
def flash(
    ctx: typer.Context,
    role: Role = typer.Argument(..., help="Role to flash"),
    timeout: float | None = typer.Option(None, "--timeout", min=1, help="Programmer timeout in seconds"),
) -> None:
    """Program, verify and reset one role's firmware on the attached board."""
    try:
        service = _build_service(ctx, programmer_timeout_s=timeout)
        result = service.flash(role)
    except AetherflashError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        typer.echo(f"Error: [{role.value}] aborted by user; target state unknown", err=True)
        raise typer.Exit(code=1) from None

    if not result.success:
        typer.echo(f"Error: {result.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(result.message)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
