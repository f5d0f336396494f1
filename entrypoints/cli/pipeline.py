from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv())

from mortgage_moment.pipelines.preprocess import COMPACT_OUTPUT, RAW_INPUT, audit, preprocess  # noqa: E402

app = typer.Typer(help="Mortgage Moment tooling (dataset preprocessing, audit, API server).")


@app.command("preprocess")
def preprocess_cmd(
    input: Path = typer.Option(RAW_INPUT, "--input", help="Raw listings export (JSON list)"),
    output: Path = typer.Option(COMPACT_OUTPUT, "--output", help="Where to write the compact dataset"),
    force: bool = typer.Option(
        False,
        "--force",
        help="Rebuild even if the output is newer than the input.",
    ),
) -> None:
    """
    Compact the raw listings export into the dataset the API serves from.
    """
    report = preprocess(input_path=input, output_path=output, force=force)
    typer.echo(json.dumps(report.as_dict(), indent=2))


@app.command("audit")
def audit_cmd(
    input: Path = typer.Option(RAW_INPUT, "--input", help="Raw listings export (JSON list)"),
    sample: int = typer.Option(5, help="How many items missing coordinates to print"),
) -> None:
    """
    Count valid items and items missing coordinates or price.
    """
    result = audit(input_path=input, sample_size=sample)
    typer.echo(json.dumps(result.as_dict(), indent=2, ensure_ascii=False))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(3001, help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
    data_file: Optional[str] = typer.Option(
        None,
        help="Override MM_DATA_FILE for this run",
    ),
) -> None:
    """
    Run the HTTP API with uvicorn.
    """
    import os

    import uvicorn

    if data_file:
        os.environ["MM_DATA_FILE"] = data_file

    uvicorn.run("mortgage_moment.api.http:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
