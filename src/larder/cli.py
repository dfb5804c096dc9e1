"""Command-line interface for Larder."""

from __future__ import annotations

import json
from typing import Any, Iterable

import typer
from pydantic import BaseModel

from larder.config import get_settings
from larder.errors import LarderError
from larder.logging_utils import configure_logging
from larder.restock.service import (
    get_shopping_list,
    predict_for_user,
    recommendations_for_user,
    reconcile_shopping_list,
)

app = typer.Typer(help="Larder grocery tracker commands.")

UserOption = typer.Option(..., "--user", "-u", help="User id whose data to operate on.")
PrettyOption = typer.Option(False, "--pretty", help="Pretty-print output JSON.")


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _emit(models: Iterable[BaseModel], pretty: bool) -> None:
    payload: list[Any] = [model.model_dump(mode="json") for model in models]
    if pretty:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    else:
        typer.echo(json.dumps(payload))


def _run(action, pretty: bool) -> None:
    try:
        results = action()
    except LarderError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    _emit(results, pretty)


@app.command()
def predictions(user: str = UserOption, pretty: bool = PrettyOption) -> None:
    """Print consumption predictions for every item with enough history."""

    _run(lambda: predict_for_user(user), pretty)


@app.command()
def reconcile(user: str = UserOption, pretty: bool = PrettyOption) -> None:
    """Add due restock suggestions to the shopping list and print the result."""

    _run(lambda: reconcile_shopping_list(user), pretty)


@app.command("shopping-list")
def shopping_list(
    user: str = UserOption,
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Reconcile before listing."),
    pretty: bool = PrettyOption,
) -> None:
    """Print the open shopping list in display order."""

    _run(lambda: get_shopping_list(user, refresh=refresh), pretty)


@app.command()
def recommendations(user: str = UserOption, pretty: bool = PrettyOption) -> None:
    """Print items that need restocking soon, most urgent first."""

    _run(lambda: recommendations_for_user(user), pretty)


if __name__ == "__main__":
    app()
