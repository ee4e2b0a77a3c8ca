"""Download the course datasets into the configured data directory."""
import logging
import time

import requests
import typer

from climatecast.constants import DATASETS
from climatecast.data_loader import dataset_path, download_dataset
from climatecast.logging_config import configure_logging
from climatecast.settings import get_settings

logger = logging.getLogger("fetch_climate")

app = typer.Typer(
    help="Download the GISTEMP and Mauna Loa CO2 files used by the course.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def fetch_all(force=False):
    """Download every catalogued dataset; return the paths written."""
    written = []
    for key in DATASETS:
        path = dataset_path(key)
        if path.exists() and not force:
            logger.info("Already downloaded, skipping", extra={"dataset": key, "path": path})
            continue
        written.append(download_dataset(key, path))
        time.sleep(1)  # be polite to the public servers
    return written


@app.command()
def main(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Download again even when a file is already on disk.",
    ),
) -> None:
    """Fetch every dataset that is not already on disk."""
    configure_logging()
    settings = get_settings()
    if settings.offline:
        logger.error("CLIMATECAST_OFFLINE is set; refusing to download")
        raise typer.Exit(code=1)
    try:
        written = fetch_all(force=force)
    except requests.RequestException as exc:
        logger.error("Download failed: %s", exc)
        raise typer.Exit(code=1)
    logger.info("Done: %d file(s) written to %s", len(written), settings.data_dir)
    typer.echo(f"{len(written)} file(s) written to {settings.data_dir}")


if __name__ == "__main__":
    app()
