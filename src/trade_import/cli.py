from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import uvicorn

from trade_import.config import settings
from trade_import.services.jobs import run_parse, run_trade_import


app = typer.Typer(help="Trade-history CSV import CLI")


def _existing_file(value: Path) -> Path:
    if not value.is_file():
        raise typer.BadParameter(f"{value} is not a readable file")
    return value


@app.callback()
def main(
    log_level: Annotated[str, typer.Option(help="Logging level")] = settings.log_level,
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("parse")
def parse_cmd(
    file: Annotated[Path, typer.Argument(help="CSV export to parse", callback=_existing_file)],
) -> None:
    """Parse a trade-history export and print the result as JSON."""
    typer.echo(json.dumps(run_parse(file), indent=2))


@app.command("import")
def import_cmd(
    file: Annotated[Path, typer.Argument(help="CSV export to import", callback=_existing_file)],
    out: Annotated[Path, typer.Option(help="JSON-lines file receiving imported trades")] = settings.output_path,
    batch_size: Annotated[int, typer.Option(min=1, help="Trades per insert batch")] = settings.batch_size,
    user_id: Annotated[str | None, typer.Option(help="Owner id stamped on each trade")] = None,
    classroom_id: Annotated[str | None, typer.Option(help="Classroom id stamped on each trade")] = None,
) -> None:
    """Parse an export and append its trades to a JSON-lines file in batches."""
    context = {"user_id": user_id, "classroom_id": classroom_id}
    result = run_trade_import(file, output_path=out, batch_size=batch_size, context=context)
    typer.echo(json.dumps(result, indent=2))
    if result["import"]["error"]:
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option(help="Host address")] = settings.api_host,
    port: Annotated[int, typer.Option(help="Port")] = settings.api_port,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload")] = False,
) -> None:
    """Run FastAPI server."""
    uvicorn.run("trade_import.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
