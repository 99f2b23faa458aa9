"""
gpuboot — CLI entrypoint.

Usage:
    gpuboot --help
    gpuboot detect
    gpuboot install
    gpuboot serve
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import NoReturn

import click

from gpuboot import __version__
from gpuboot.core.errors import BootstrapError
from gpuboot.core.observability.logging_config import (
    current_log_file,
    default_log_file,
    setup_logging,
)


def _fail(error: BootstrapError) -> NoReturn:
    click.secho(f"❌ {error}", fg="red", err=True)
    log_file = current_log_file()
    if log_file is not None:
        click.echo(f"   Details: {log_file}", err=True)
    sys.exit(1)


def _load_config(ctx: click.Context):
    from gpuboot.core.config.loader import load_config

    return load_config(ctx.obj.get("config_path"))


@click.group()
@click.version_option(version=__version__, prog_name="gpuboot")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to gpuboot.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """gpuboot — provision a CUDA build toolchain and build llama.cpp."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("GPUBOOT_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("GPUBOOT_LOG_FILE") or default_log_file(),
    )


@cli.command()
@click.option("--arch", type=int, default=None, help="Compute capability override, e.g. 86.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, arch: int | None, as_json: bool) -> None:
    """Show hardware, toolkit policy and prerequisite status (no changes)."""
    from gpuboot.core.use_cases.detect import run_detect

    try:
        result = run_detect(_load_config(ctx), arch_override=arch)
    except BootstrapError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    profile, policy = result.profile, result.policy
    click.secho("\n🔍 Hardware", fg="cyan", bold=True)
    cap = profile.compute_capability
    click.echo(f"   Compute capability: {cap if cap is not None else 'unknown'} ({profile.source})")
    click.echo(f"   CUDA architecture:  {profile.cuda_architecture}")
    wanted = f"exactly {policy.exact}" if policy.exact else f">= {policy.floor}"
    click.echo(f"   Toolkit policy:     {wanted}")

    click.secho("\n   Toolkits:", fg="white", bold=True)
    if not result.toolkits:
        click.echo("     (none)")
    for tk in result.toolkits:
        marker = " ← selected" if result.selected and tk.root == result.selected.root else ""
        click.echo(f"     • {tk.version_str}  → {tk.root}{marker}")

    click.secho("\n   Prerequisites:", fg="white", bold=True)
    for name, ok in result.requirements.items():
        if ok:
            click.secho(f"     ✓ {name}", fg="green")
        else:
            click.secho(f"     ✗ {name}", fg="red")
    click.echo()


@cli.command()
@click.option("--arch", type=int, default=None, help="Compute capability override, e.g. 86.")
@click.option("--prereqs-only", is_flag=True, help="Install prerequisites, skip the build.")
@click.pass_context
def install(ctx: click.Context, arch: int | None, prereqs_only: bool) -> None:
    """Install prerequisites and build llama.cpp with CUDA."""
    from gpuboot.core.use_cases.install import run_install

    quiet = ctx.obj.get("quiet", False)
    progress = None if quiet else (lambda msg: click.echo(f"   {msg}"))

    try:
        result = run_install(
            _load_config(ctx),
            arch_override=arch,
            prereqs_only=prereqs_only,
            progress=progress,
        )
    except BootstrapError as e:
        _fail(e)

    if result.report.all_satisfied:
        click.secho("✅ All prerequisites already satisfied", fg="green")
    else:
        names = ", ".join(name for name, _ in result.report.installed)
        click.secho(f"✅ Installed: {names}", fg="green")
    if result.toolkit is not None:
        click.echo(f"   CUDA {result.toolkit.version_str} → {result.toolkit.root}")
    if result.build_dir is not None:
        click.secho(f"✅ Built into {result.build_dir}", fg="green")


@cli.command()
@click.option("--keep-prerequisites", is_flag=True, help="Only remove the project directory.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def uninstall(ctx: click.Context, keep_prerequisites: bool, yes: bool) -> None:
    """Remove the project and (by default) its prerequisites."""
    from gpuboot.core.use_cases.uninstall import run_uninstall

    try:
        config = _load_config(ctx)
    except BootstrapError as e:
        _fail(e)

    if not yes:
        what = str(config.install_dir)
        if not keep_prerequisites:
            what += " and all prerequisites"
        click.confirm(f"Remove {what}?", abort=True)

    try:
        result = run_uninstall(config, remove_prerequisites=not keep_prerequisites)
    except BootstrapError as e:
        _fail(e)

    if result.project_removed:
        click.secho(f"🗑  Removed {config.install_dir}", fg="yellow")
    for name in result.removed:
        click.secho(f"🗑  Uninstalled {name}", fg="yellow")
    for name in result.skipped:
        click.echo(f"   – {name} (nothing to remove)")


@cli.command()
@click.option("--model-url", default=None, help="GGUF model to download and serve.")
@click.option("--port", "-p", default=None, type=int, help="Port number.")
@click.option("--no-browser", is_flag=True, help="Do not open the web UI.")
@click.pass_context
def serve(ctx: click.Context, model_url: str | None, port: int | None, no_browser: bool) -> None:
    """Start llama-server with a model and open its web UI."""
    from gpuboot.core.use_cases.serve import run_serve

    def ready(url: str) -> None:
        click.echo()
        click.secho("⚡ llama-server", bold=True)
        click.echo(f"   Web UI: {url}")
        click.echo("   Press Ctrl+C to stop.")
        click.echo()

    try:
        result = run_serve(
            _load_config(ctx),
            model_url=model_url,
            port=port,
            open_browser=not no_browser,
            on_ready=ready,
        )
    except BootstrapError as e:
        _fail(e)

    if result.returncode:
        sys.exit(result.returncode)


if __name__ == "__main__":
    cli()
