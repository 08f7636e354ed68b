"""CLI for the OpenPlantbook client.

Commands:
- search: Search plants by name or alias
- details: Show care requirements for a plant
- version: Show version information
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich import print_json
from rich.console import Console
from rich.table import Table

from . import __version__
from .client import PlantbookClient
from .config import MissingCredentialsError, PlantbookSettings
from .exceptions import PlantbookError
from .models import DetailOptions, PlantDetails, PlantSearchResult, SearchOptions

err_console = Console(stderr=True)


class ClientBuilder(Protocol):
    """Protocol for constructing the API client from settings."""

    def __call__(self, settings: PlantbookSettings) -> PlantbookClient:
        """Build a client for one CLI command."""
        ...


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    settings: PlantbookSettings
    client_builder: ClientBuilder

    def build_client(self) -> PlantbookClient:
        return self.client_builder(self.settings)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the openplantbook entry point.")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {message}[/red]", highlight=False)
    return typer.Exit(code=1)


def _print_search_results(results: list[PlantSearchResult]) -> None:
    if not results:
        rprint("No plants found")
        return
    table = Table("Scientific name", "Common name", "PID", "Category")
    for plant in results:
        table.add_row(plant.display_pid, plant.alias, plant.pid, plant.category)
    rprint(table)
    rprint(f"\nFound {len(results)} plant(s)")


def _print_plant_details(details: PlantDetails) -> None:
    rprint(f"[bold]Plant:[/bold] {details.display_pid}")
    rprint(f"Common name: {details.alias}")
    rprint(f"PID: {details.pid}")
    rprint(f"Category: {details.category}\n")

    rprint("[bold]Care requirements[/bold]")
    rprint(f"  Light (lux):       {details.min_light_lux} - {details.max_light_lux}")
    rprint(f"  Temperature (°C):  {details.min_temp:.1f} - {details.max_temp:.1f}")
    rprint(f"  Humidity (%):      {details.min_env_humid} - {details.max_env_humid}")
    rprint(f"  Soil moisture (%): {details.min_soil_moist} - {details.max_soil_moist}")
    rprint(f"  Soil EC (µS/cm):   {details.min_soil_ec} - {details.max_soil_ec}")
    if details.image_url:
        rprint(f"\nImage: {details.image_url}")


def create_app(client_builder: ClientBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided client builder."""
    app = typer.Typer(
        add_completion=False,
        help="OpenPlantbook: plant care information from the command line",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        debug: Annotated[
            bool,
            typer.Option("--debug", help="Log client activity to stderr"),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        try:
            settings = PlantbookSettings.from_env()
        except ValueError as exc:
            raise _fail(str(exc)) from exc
        if debug:
            settings = settings.with_overrides(debug=True)
        ctx.obj = CliContext(settings=settings, client_builder=client_builder)

    @app.command()
    def search(
        ctx: typer.Context,
        query: Annotated[str, typer.Argument(help="Plant name or alias")],
        limit: Annotated[
            int,
            typer.Option("--limit", "-l", help="Maximum number of results"),
        ] = 10,
        user_plants: Annotated[
            bool,
            typer.Option("--user-plants", help="Include user-contributed plants"),
        ] = False,
        json_output: Annotated[
            bool,
            typer.Option("--json", help="Output results as JSON"),
        ] = False,
    ) -> None:
        """Search for plants by name or alias."""
        state = _get_context(ctx)
        try:
            with state.build_client() as client:
                results = client.search_plants(
                    query, SearchOptions(limit=limit, user_plants=user_plants)
                )
        except (PlantbookError, MissingCredentialsError) as exc:
            raise _fail(f"Search failed: {exc}") from exc

        if json_output:
            print_json(data=[asdict(plant) for plant in results])
        else:
            _print_search_results(results)

    @app.command()
    def details(
        ctx: typer.Context,
        pid: Annotated[str, typer.Argument(help="Plant identifier, e.g. 'monstera deliciosa'")],
        lang: Annotated[
            str,
            typer.Option("--lang", help="ISO 639-1 language code"),
        ] = "en",
        json_output: Annotated[
            bool,
            typer.Option("--json", help="Output details as JSON"),
        ] = False,
    ) -> None:
        """Get detailed care information for a plant."""
        state = _get_context(ctx)
        try:
            with state.build_client() as client:
                plant = client.get_plant_details(pid, DetailOptions(language=lang))
        except (PlantbookError, MissingCredentialsError) as exc:
            raise _fail(f"Failed to get details: {exc}") from exc

        if json_output:
            print_json(data=asdict(plant))
        else:
            _print_plant_details(plant)

    @app.command()
    def version() -> None:
        """Show version information."""
        rprint(f"openplantbook version {__version__}")

    _ = (main, search, details, version)

    return app
