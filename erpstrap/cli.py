from __future__ import annotations

import logging
from typing import List, Mapping, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Config, Settings
from .environment import EnvironmentLabel, collect_signals, detect, post_install_notes
from .errors import ErpstrapError
from .hook import ConsoleHook
from .host import Host, SystemHost
from .logs import setup_logging
from .plan import build_install_plan, build_uninstall_plan
from .preflight import PrivilegeValidator, ReleaseValidator, run_preflight
from .sequencer import RunResult, Sequencer
from .step import Step


logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(name="erpstrap", help="erpstrap: install and remove an Odoo stack on Ubuntu.", no_args_is_help=True)


def _load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    return Settings.load(environ=environ, config=Config.from_environment(environ))


def _print_summary(result: RunResult) -> None:
    table = Table(title="Run result")
    table.add_column("Step")
    table.add_column("Outcome")
    table.add_column("Detail")
    for r in result.records:
        detail = f"{r.phase}: {r.error}" if r.error else ""
        table.add_row(r.name, r.outcome.value, detail)
    console.print(table)


def _ip_address(host: Host) -> str:
    res = host.run(["hostname", "-I"])
    parts = res.stdout.split() if res.ok else []
    return parts[0] if parts else "127.0.0.1"


def _prepare(host: Optional[Host], environ: Optional[Mapping[str, str]]) -> tuple[Settings, Host]:
    settings = _load_settings(environ)
    setup_logging(settings.log_file, console=console)
    host = host or SystemHost()
    run_preflight(host, [PrivilegeValidator(), ReleaseValidator(settings.supported_releases)])
    return settings, host


def _sequence(settings: Settings, host: Host, label: EnvironmentLabel, steps: List[Step]) -> int:
    try:
        result = Sequencer(settings, host, label, hook=ConsoleHook(console)).run(steps)
    except KeyboardInterrupt:
        logger.error("Interrupted; the host is left in whatever state the last completed step produced")
        console.print("[bold red]Interrupted.[/bold red]")
        return 1
    _print_summary(result)
    return 0 if result.ok else 1


def cmd_install(
    host: Optional[Host] = None,
    environ: Optional[Mapping[str, str]] = None,
    label: Optional[EnvironmentLabel] = None,
) -> int:
    try:
        settings, host = _prepare(host, environ)
    except (ErpstrapError, RuntimeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    label = label or detect(collect_signals(environ))
    logger.info(f"Detected environment: {label}")
    console.print(f"Detected environment: [bold]{label}[/bold]")
    console.print(f"Using domain: {settings.domain}, account: {settings.account}, directory: {settings.install_dir}")

    code = _sequence(settings, host, label, build_install_plan(settings))
    if code == 0:
        for line in post_install_notes(label, settings, _ip_address(host)):
            console.print(f"[green]{line}[/green]")
    return code


def cmd_uninstall(
    host: Optional[Host] = None,
    environ: Optional[Mapping[str, str]] = None,
    purge_database: Optional[bool] = None,
    reboot: Optional[bool] = None,
) -> int:
    try:
        settings, host = _prepare(host, environ)
    except (ErpstrapError, RuntimeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if purge_database is None:
        purge_database = typer.confirm("Do you want to uninstall PostgreSQL? This will remove all databases.", default=False)
    label = detect(collect_signals(environ))
    code = _sequence(settings, host, label, build_uninstall_plan(settings, purge_database=purge_database))
    if code != 0:
        return code

    console.print("Uninstall completed. Reboot the system to make sure all changes take effect.")
    if reboot is None:
        reboot = typer.confirm("Do you want to reboot now?", default=False)
    if reboot:
        logger.info("Rebooting system")
        host.run(["systemctl", "reboot"])
    return 0


def cmd_detect(environ: Optional[Mapping[str, str]] = None) -> int:
    signals = collect_signals(environ)
    label = detect(signals)
    console.print(f"environment: [bold]{label}[/bold]")
    console.print(f"  kernel: {signals.kernel_version.strip() or '(unavailable)'}")
    console.print(f"  ide variables: {', '.join(sorted(signals.environ)) or '(none)'}")
    console.print(f"  hypervisor uuid prefix: {signals.hypervisor_uuid or '(none)'}")
    return 0


def cmd_plan(
    environ: Optional[Mapping[str, str]] = None,
    label: Optional[EnvironmentLabel] = None,
    uninstall: bool = False,
) -> int:
    try:
        settings = _load_settings(environ)
        steps = build_uninstall_plan(settings, purge_database=True) if uninstall else build_install_plan(settings)
    except (RuntimeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    label = label or detect(collect_signals(environ))
    table = Table(title=f"{'Uninstall' if uninstall else 'Install'} plan ({label})")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Description")
    for i, step in enumerate(steps, 1):
        if step.applies_to(label):
            table.add_row(str(i), step.name, step.describe())
        else:
            table.add_row(str(i), f"[dim]{step.name}[/dim]", f"[dim]not applicable to {label} hosts[/dim]")
    console.print(table)
    return 0


def cmd_config_set(key: str, value: str, environ: Optional[Mapping[str, str]] = None) -> int:
    try:
        config = Config.from_environment(environ)
        config.set(key, value)
        config.save()
        typer.echo(f"✓ Set {key} = {value}")
        return 0
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


def cmd_config_get(key: Optional[str], environ: Optional[Mapping[str, str]] = None) -> int:
    try:
        config = Config.from_environment(environ)
        if key:
            value = config.get(key)
            typer.echo(f"{key} = {value if value is not None else '(not set)'}")
        else:
            typer.echo(f"Configuration ({config.config_path}):")
            for k, v in sorted(config.items().items()):
                typer.echo(f"  {k}: {v}")
        return 0
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


# Typer command bindings


@app.command("install", help="Install and configure the stack (run as root)")
def install_command():
    raise typer.Exit(cmd_install())


@app.command("uninstall", help="Remove the stack (run as root)")
def uninstall_command():
    raise typer.Exit(cmd_uninstall())


@app.command("detect", help="Show the detected host environment")
def detect_command():
    raise typer.Exit(cmd_detect())


@app.command("plan", help="List the steps an install (or uninstall) would run")
def plan_command(
    uninstall: bool = typer.Option(False, "--uninstall", help="Show the uninstall plan instead"),
):
    raise typer.Exit(cmd_plan(uninstall=uninstall))


@app.command("config", help="Get or set persistent defaults in the YAML config")
def config_command(
    key: Optional[str] = typer.Argument(None, help="Configuration key"),
    value: Optional[str] = typer.Argument(None, help="Value to set (omit to get current value)"),
):
    if value:
        code = cmd_config_set(key, value)
    else:
        code = cmd_config_get(key)
    raise typer.Exit(code)


def main(argv: list[str] | None = None) -> int:
    try:
        # With standalone_mode=False click hands back the Exit code instead of raising
        rv = app(args=argv, prog_name="erpstrap", standalone_mode=False)
        return int(rv or 0)
    except typer.Exit as e:
        return int(e.exit_code or 0)
    except SystemExit as e:
        return int(e.code or 0)
    except typer.Abort:
        return 1
    except Exception as e:  # noqa: BLE001
        if str(e):
            typer.echo(f"Unexpected error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
