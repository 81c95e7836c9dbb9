import asyncio
import logging
from typing import Optional

import typer
from dotenv import load_dotenv
from InquirerPy import inquirer
from pydantic import ValidationError

from trixy_indexer.app.config import Settings, get_settings
from trixy_indexer.app.domain.errors import ConfigurationError, IndexerError
from trixy_indexer.app.infrastructure.registry.networks_registry import NetworksRegistry
from trixy_indexer.app.interface.tasks import TASKS


load_dotenv()

logger = logging.getLogger(__name__)

app = typer.Typer()
indexer_app = typer.Typer(help="cli for indexing Trixy Protocol events on Flow.")
app.add_typer(indexer_app, name="indexer")


def _load_settings() -> Settings:
    try:
        settings = get_settings()
    except ValidationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return settings


def _run_task(task_name: str, **kwargs: object) -> None:
    task = TASKS[task_name]
    try:
        asyncio.run(task(**kwargs))  # type: ignore
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise typer.Exit(code=1)
    except IndexerError as exc:
        logger.error("%s failed: %s", task_name, exc)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


@indexer_app.command("run")
def run() -> None:
    settings = _load_settings()

    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()

    try:
        registry = NetworksRegistry.load(settings.networks_file)
        networks = registry.network_names()
        network = inquirer.select(
            message="Flow network:",
            choices=networks,
            default=settings.flow_network if settings.flow_network in networks else None,
            pointer="❯",
        ).execute()
        contracts = registry.contract_names(network)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise typer.Exit(code=1)

    if not contracts:
        logger.error("No contracts configured for network %r", network)
        raise typer.Exit(code=1)

    contract = contracts[0]
    if len(contracts) > 1:
        contract = inquirer.select(
            message="Contract:",
            choices=contracts,
            pointer="❯",
        ).execute()

    _run_task(task_name, network=network, contract=contract)


@indexer_app.command("sync")
def sync(
    network: Optional[str] = typer.Option(None, "--network", help="Network from the registry (default: FLOW_NETWORK)."),
    contract: Optional[str] = typer.Option(None, "--contract", help="Contract name (default: first configured)."),
    once: bool = typer.Option(False, "--once", help="Catch up to the latest sealed block and exit."),
) -> None:
    _load_settings()
    task_name = "trixy__catch_up_task" if once else "trixy__sync_events_task"
    _run_task(task_name, network=network, contract=contract)


if __name__ == "__main__":
    LOGO = r"""

     /$$$$$$$$        /$$
    |__  $$__/       |__/
       | $$  /$$$$$$  /$$ /$$   /$$ /$$   /$$
       | $$ /$$__  $$| $$|  $$ /$$/| $$  | $$
       | $$| $$  \__/| $$ \  $$$$/ | $$  | $$
       | $$| $$      | $$  >$$  $$ | $$  | $$
       | $$| $$      | $$ /$$/\  $$|  $$$$$$$
       |__/|__/      |__/|__/  \__/ \____  $$
                                    /$$  | $$
                                   |  $$$$$$/
                                    \______/

    Trixy Protocol prediction markets on Flow

      --- Trixy Indexer CLI ---
    """
    typer.echo(LOGO)
    app()
