"""liveconf CLI entry point."""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from liveconf import __version__
from liveconf.config import YamlConfig, redact_secrets
from liveconf.errors import ConfigError

console = Console()

DEFAULT_ENV_VAR = "LIVECONF_PATH"
DEFAULT_CONFIG_PATH = "config.yaml"


class DocumentConfig(YamlConfig):
    """Schema-less YAML document; every top-level key is kept."""

    model_config = {"extra": "allow"}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def render_config(config: YamlConfig, title: str) -> Table:
    """Build a table of top-level keys with secrets redacted."""
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for key, value in redact_secrets(config.model_dump()).items():
        table.add_row(str(key), repr(value))
    return table


@click.group()
@click.version_option(__version__, prog_name="liveconf")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """liveconf - hot-reloaded configuration files."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
def check(path: Path) -> None:
    """Validate a YAML configuration file and show its contents."""
    try:
        config = DocumentConfig.load(path)
    except ConfigError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(render_config(config, str(path)))
    console.print(f"[green]✓[/green] {escape(str(path))} is valid")


@cli.command()
@click.option("--env-var", default=DEFAULT_ENV_VAR, show_default=True, help="Variable naming the config path")
@click.option("--default-path", default=DEFAULT_CONFIG_PATH, show_default=True, help="Path used when the variable is unset")
@click.option("--retry-delay", default=1.0, show_default=True, help="Seconds before the first load retry")
@click.option("--resubscribe-delay", default=0.0, show_default=True, help="Seconds between watcher restarts")
def watch(env_var: str, default_path: str, retry_delay: float, resubscribe_delay: float) -> None:
    """Load a configuration file and print it every time it changes."""
    from liveconf.service import LiveConfig

    async def run_watch() -> None:
        live = await LiveConfig.start(
            DocumentConfig,
            env_var,
            default_path,
            base_delay=retry_delay,
            resubscribe_delay=resubscribe_delay,
        )
        async with live:
            async with live.read() as config:
                console.print(render_config(config, f"{live.slot.path} (initial)"))

            async for version in live.changes():
                async with live.read() as config:
                    console.print(render_config(config, f"{live.slot.path} (version {version})"))

    try:
        asyncio.run(run_watch())
    except KeyboardInterrupt:
        console.print("\n[yellow]Watcher stopped[/yellow]")
    except ConfigError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise SystemExit(1) from e


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
