"""CLI commands for vibe-ade."""

from __future__ import annotations

import asyncio
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.text import Text

from vibe_ade import __version__

app = typer.Typer(
    name="vibe-ade",
    help="vibe-ade - multi-pane shell workspace with local/cloud agent routing",
    no_args_is_help=True,
)
vault_app = typer.Typer(help="Show or change Settings Vault values.", no_args_is_help=True)
app.add_typer(vault_app, name="vault")
console = Console()

_STREAM_STYLES = {"thought": "magenta", "action": "green"}


def version_callback(value: bool) -> None:
    if value:
        console.print(f"vibe-ade v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """vibe-ade entrypoint."""
    del version


@app.command()
def onboard(
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing config without prompt.",
    ),
    non_interactive: bool = typer.Option(
        False,
        "--non-interactive",
        help="Do not ask interactive questions during setup.",
    ),
) -> None:
    """Write a default config and initialize the Settings Vault."""
    from vibe_ade.config.loader import get_config_path, save_config
    from vibe_ade.config.schema import Config
    from vibe_ade.config.vault import SettingsVault

    config_path = get_config_path()
    if config_path.exists():
        if not force and non_interactive:
            console.print(f"[yellow]Config already exists at {config_path} (skip).[/yellow]")
            raise typer.Exit()
        if not force:
            console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
            if not typer.confirm("Overwrite?"):
                raise typer.Exit()

    save_config(Config())
    console.print(f"[green]OK[/green] Created config at {config_path}")

    vault = SettingsVault()
    console.print(f"[green]OK[/green] Settings Vault at {vault.path}")

    console.print("\nvibe-ade is ready!")
    console.print("\nNext steps:")
    console.print("  1. (Optional) store a cloud key: [cyan]vibe-ade vault set --cloud-api-key ...[/cyan]")
    console.print("  2. Start a console session: [cyan]vibe-ade run[/cyan]")


@app.command()
def status() -> None:
    """Show config, vault and runtime status."""
    from vibe_ade.config.loader import get_config_path, load_config
    from vibe_ade.config.vault import SettingsVault
    from vibe_ade.runtime.shell import resolve_shell
    from vibe_ade.utils.helpers import runtime_info

    config_path = get_config_path()
    config = load_config()
    vault = SettingsVault()
    settings = vault.get()
    info = runtime_info()

    console.print("vibe-ade Status\n")
    console.print(f"Config: {config_path} {'[green]OK[/green]' if config_path.exists() else '[red]NO[/red]'}")
    console.print(f"Vault: {vault.path} {'[green]OK[/green]' if vault.path.exists() else '[dim]defaults[/dim]'}")
    console.print(f"Project root: [cyan]{config.project_root}[/cyan]")
    console.print(f"Execution mode: [cyan]{settings.execution_mode.value}[/cyan]")
    console.print(f"Shell: [cyan]{resolve_shell()}[/cyan]")
    console.print(f"Layout: {config.panes.layout_template} panes, {config.panes.default_cols}x{config.panes.default_rows}")
    console.print(f"Local model: [cyan]{settings.local_model}[/cyan] via {config.backends.local_url}")
    key_state = "[green]set[/green]" if settings.cloud_api_key else "[yellow]missing[/yellow]"
    console.print(f"Cloud model: [cyan]{settings.cloud_model}[/cyan] via {settings.cloud_api_base_url} (key {key_state})")
    console.print(
        f"\nRuntime: Python {info['python']} ({info['implementation']}) on {info['platform']}, "
        f"vibe-ade {info['vibe_ade']}"
    )


# ── vault ─────────────────────────────────────────────────────────────


@vault_app.command("show")
def vault_show() -> None:
    """Print vault settings (credential masked)."""
    from vibe_ade.config.vault import SettingsVault

    settings = SettingsVault().get()
    key = settings.cloud_api_key
    masked = f"{key[:3]}…{key[-2:]}" if len(key) > 8 else ("<set>" if key else "<none>")
    console.print(f"cloud_api_key: [dim]{masked}[/dim]")
    console.print(f"cloud_api_base_url: {settings.cloud_api_base_url}")
    console.print(f"local_model: {settings.local_model}")
    console.print(f"cloud_model: {settings.cloud_model}")
    console.print(f"execution_mode: [cyan]{settings.execution_mode.value}[/cyan]")
    console.print(f"system_wide_acknowledged: {settings.system_wide_acknowledged}")


@vault_app.command("set")
def vault_set(
    mode: str = typer.Option("", "--mode", help="sandboxed | system-wide | dual-stream"),
    acknowledge: bool = typer.Option(
        False,
        "--acknowledge-system-wide",
        help="Acknowledge that system-wide mode runs commands unfiltered from $HOME.",
    ),
    local_model: str = typer.Option("", "--local-model"),
    cloud_model: str = typer.Option("", "--cloud-model"),
    cloud_url: str = typer.Option("", "--cloud-url", help="Chat-completions endpoint."),
    cloud_api_key: str = typer.Option("", "--cloud-api-key", help="Stored encrypted."),
) -> None:
    """Update one or more vault settings."""
    from vibe_ade.config.vault import SettingsVault
    from vibe_ade.errors import VaultError

    update: dict[str, object] = {}
    if acknowledge:
        update["system_wide_acknowledged"] = True
    if mode:
        update["execution_mode"] = mode
    if local_model:
        update["local_model"] = local_model
    if cloud_model:
        update["cloud_model"] = cloud_model
    if cloud_url:
        update["cloud_api_base_url"] = cloud_url
    if cloud_api_key:
        update["cloud_api_key"] = cloud_api_key
    if not update:
        console.print("[yellow]Nothing to update.[/yellow]")
        raise typer.Exit()

    try:
        SettingsVault().set(**update)
    except VaultError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]OK[/green] Updated: {', '.join(sorted(update))}")


# ── run ───────────────────────────────────────────────────────────────


@app.command()
def run(
    layout: int = typer.Option(0, "--layout", "-l", help="Pane count (2, 4 or 6); default from config."),
    verbose: bool = typer.Option(False, "--verbose", help="Also log to stderr."),
) -> None:
    """Headless console host: type shell lines or /local, /cloud prompts.

    Host commands: ``:pane N`` switch active pane, ``:restart``, ``:cancel``,
    ``:quit``.
    """
    from vibe_ade.config.loader import load_config
    from vibe_ade.config.vault import SettingsVault
    from vibe_ade.utils.log_setup import configure_logging

    config = load_config()
    log_path = configure_logging(config, console=verbose)
    vault = SettingsVault()
    template = layout or config.panes.layout_template

    console.print(f"vibe-ade v{__version__} | mode [cyan]{vault.execution_mode.value}[/cyan] | log {log_path}")
    try:
        asyncio.run(_run_host(config, vault, template))
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")


async def _run_host(config, vault, template: int) -> None:
    from vibe_ade.bus.events import AgentChunkEvent, AgentRoutedEvent, PaneEvent, PtyDataEvent, PtyExitEvent
    from vibe_ade.orchestrator import build_orchestrator

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_log_loop_exception)

    orchestrator = build_orchestrator(config, vault)
    pane_ids = orchestrator.apply_layout(template)
    active = pane_ids[0]

    def render(event: PaneEvent) -> None:
        tag = f"[bold]{event.pane_id}[/bold]"
        if isinstance(event, PtyDataEvent):
            if event.pane_id == active:
                console.print(Text.from_ansi(event.chunk), end="")
        elif isinstance(event, PtyExitEvent):
            console.print(f"{tag} [yellow]shell exited[/yellow] (:restart to respawn)")
        elif isinstance(event, AgentRoutedEvent):
            console.print(f"{tag} [cyan]→ {event.model}[/cyan] ({event.model_name})")
        elif isinstance(event, AgentChunkEvent):
            if event.error:
                console.print(f"{tag} [red]{event.error}[/red]")
            elif event.chunk:
                style = _STREAM_STYLES.get(event.stream or "action", "")
                console.print(Text(event.chunk.rstrip("\n"), style=style))

    unsubscribe = orchestrator.bus.subscribe(render)
    console.print(f"Panes: {', '.join(pane_ids)} (active: {active})")
    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            line = line.rstrip("\r\n")
            if line.startswith(":"):
                command, _, arg = line[1:].partition(" ")
                if command == "quit":
                    break
                if command == "pane":
                    target = f"pane-{arg.strip()}"
                    if target in orchestrator.layout.pane_ids:
                        active = target
                        console.print(f"[dim]Active pane: {active}[/dim]")
                    else:
                        console.print(f"[red]No such pane: {arg.strip()}[/red]")
                elif command == "restart":
                    orchestrator.restart_pane(active)
                elif command == "cancel":
                    orchestrator.cancel_agent(active)
                else:
                    console.print(f"[red]Unknown host command: {command}[/red]")
                continue
            orchestrator.submit_line(active, line)
    finally:
        unsubscribe()
        orchestrator.shutdown()


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    message = context.get("message", "Unhandled event loop error")
    if exc is not None:
        logger.opt(exception=exc).error(message)
    else:
        logger.error(message)


if __name__ == "__main__":
    app()
