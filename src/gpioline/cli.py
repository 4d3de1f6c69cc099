"""gpioline command line."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from gpioline.backend import GpioBackend, create_backend
from gpioline.chip import Chip
from gpioline.chip_iter import ChipIter
from gpioline.config import CONFIG_ENV, Config, load_config
from gpioline.exceptions import ConfigurationError, GpioError
from gpioline.flags import RequestOptions
from gpioline.logger import configure_logger, setup_logging
from gpioline.models import ActiveState
from gpioline.timing import sleep
from gpioline.version import __version__

_LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="Inspect and drive GPIO character-device chips.")


class EdgeChoice(str, Enum):
    rising = "rising"
    falling = "falling"
    both = "both"


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "-c",
        "--config",
        metavar="path_to_config",
        help=f"YAML configuration file (default: ${CONFIG_ENV}).",
    ),
]
DebugOption = Annotated[
    int, typer.Option("-d", "--debug", count=True, help="Enable debug logging.")
]
ConsumerOption = Annotated[
    str | None, typer.Option(help="Consumer name shown for requested lines.")
]


def _load(config: Path | None, debug: int) -> tuple[Config, GpioBackend]:
    setup_logging(debug_level=debug)
    if config is None and os.environ.get(CONFIG_ENV):
        config = Path(os.environ[CONFIG_ENV])
    try:
        config_parsed = load_config(config.resolve()) if config else Config()
    except ConfigurationError as err:
        _LOGGER.error("Failed to load config. %s Exiting.", err)
        raise typer.Exit(1)
    configure_logger(debug=debug, log_config=config_parsed.logger)
    return config_parsed, create_backend(config_parsed)


def _parse_assignment(assignment: str) -> tuple[int, int]:
    offset, sep, value = assignment.partition("=")
    if not sep or not offset.isdigit() or value not in ("0", "1"):
        raise typer.BadParameter(f"expected OFFSET=0|1, got {assignment!r}")
    return int(offset), int(value)


def _fail(err: GpioError) -> typer.Exit:
    typer.echo(f"Error: {err}", err=True)
    return typer.Exit(1)


@app.command()
def version(config: ConfigOption = None, debug: DebugOption = 0) -> None:
    """Print gpioline and driver versions."""
    _, backend = _load(config, debug)
    typer.echo(f"gpioline {__version__} (driver {backend.driver_version()})")


@app.command()
def detect(config: ConfigOption = None, debug: DebugOption = 0) -> None:
    """List GPIO chips present on the host."""
    _, backend = _load(config, debug)
    chips = ChipIter.open(backend)
    if chips is None:
        typer.echo("No GPIO chips found.")
        return
    with chips:
        for chip in chips:
            with chip:
                typer.echo(f"{chip.name} [{chip.label}] ({chip.num_lines} lines)")


@app.command()
def info(
    chip: Annotated[str, typer.Argument(help="Chip name or number")],
    config: ConfigOption = None,
    debug: DebugOption = 0,
) -> None:
    """Show the state of every line of a chip."""
    _, backend = _load(config, debug)
    try:
        with Chip.open(chip, backend) as gpio_chip:
            typer.echo(f"{gpio_chip.name} - {gpio_chip.num_lines} lines:")
            for line in gpio_chip.get_all_lines():
                name = f'"{line.name}"' if line.name else "unnamed"
                consumer = f'"{line.consumer}"' if line.consumer else "unused"
                flags = [line.direction.value.lower()]
                if line.active_state is ActiveState.LOW:
                    flags.append("active-low")
                if line.is_open_drain:
                    flags.append("open-drain")
                if line.is_open_source:
                    flags.append("open-source")
                typer.echo(
                    f"\tline {line.offset:>3}: {name:>16} {consumer:>16} {' '.join(flags)}"
                )
    except GpioError as err:
        raise _fail(err)


@app.command()
def get(
    chip: Annotated[str, typer.Argument(help="Chip name or number")],
    offsets: Annotated[list[int], typer.Argument(help="Line offsets to read")],
    active_low: Annotated[bool, typer.Option("--active-low", "-l")] = False,
    consumer: ConsumerOption = None,
    config: ConfigOption = None,
    debug: DebugOption = 0,
) -> None:
    """Read line values, printed in the given order."""
    config_parsed, backend = _load(config, debug)
    try:
        with Chip.open(chip, backend) as gpio_chip:
            with gpio_chip.get_lines(offsets) as lines:
                lines.request_input(
                    consumer or config_parsed.consumer,
                    RequestOptions(active_low=active_low),
                )
                typer.echo(" ".join(str(value) for value in lines.get_values()))
    except GpioError as err:
        raise _fail(err)


@app.command("set")
def set_(
    chip: Annotated[str, typer.Argument(help="Chip name or number")],
    assignments: Annotated[list[str], typer.Argument(help="OFFSET=VALUE pairs")],
    active_low: Annotated[bool, typer.Option("--active-low", "-l")] = False,
    hold: Annotated[
        float, typer.Option(help="Seconds to keep the lines driven before exiting")
    ] = 0.0,
    consumer: ConsumerOption = None,
    config: ConfigOption = None,
    debug: DebugOption = 0,
) -> None:
    """Drive lines to the given values."""
    config_parsed, backend = _load(config, debug)
    pairs = [_parse_assignment(assignment) for assignment in assignments]
    try:
        with Chip.open(chip, backend) as gpio_chip:
            with gpio_chip.get_lines([offset for offset, _ in pairs]) as lines:
                lines.request_output(
                    consumer or config_parsed.consumer,
                    [value for _, value in pairs],
                    RequestOptions(active_low=active_low),
                )
                sleep(hold)
    except GpioError as err:
        raise _fail(err)


@app.command()
def blink(
    chip: Annotated[str, typer.Argument(help="Chip name or number")],
    offset: Annotated[int, typer.Argument(help="Line offset")],
    count: Annotated[int, typer.Option(help="Number of on/off cycles")] = 5,
    period: Annotated[float, typer.Option(help="Seconds per half cycle")] = 0.5,
    consumer: ConsumerOption = None,
    config: ConfigOption = None,
    debug: DebugOption = 0,
) -> None:
    """Toggle one output line on and off."""
    config_parsed, backend = _load(config, debug)
    try:
        with Chip.open(chip, backend) as gpio_chip:
            with gpio_chip.get_line(offset) as line:
                line.request_output(consumer or config_parsed.consumer, 0)
                for _ in range(count):
                    line.set_value(1)
                    sleep(period)
                    line.set_value(0)
                    sleep(period)
                typer.echo(f"Blinked line {offset} {count} times")
    except GpioError as err:
        raise _fail(err)


@app.command()
def monitor(
    chip: Annotated[str, typer.Argument(help="Chip name or number")],
    offset: Annotated[int, typer.Argument(help="Line offset")],
    edge: Annotated[EdgeChoice, typer.Option(help="Edges to report")] = EdgeChoice.both,
    num_events: Annotated[
        int, typer.Option("--num-events", "-n", help="Exit after this many events, 0 = never")
    ] = 0,
    timeout: Annotated[
        float, typer.Option(help="Seconds to wait for each event, negative = forever")
    ] = -1.0,
    consumer: ConsumerOption = None,
    config: ConfigOption = None,
    debug: DebugOption = 0,
) -> None:
    """Print edge events of one line."""
    config_parsed, backend = _load(config, debug)
    consumer = consumer or config_parsed.consumer
    seen = 0
    try:
        with Chip.open(chip, backend) as gpio_chip:
            with gpio_chip.get_line(offset) as line:
                if edge is EdgeChoice.rising:
                    line.request_rising_edge_events(consumer)
                elif edge is EdgeChoice.falling:
                    line.request_falling_edge_events(consumer)
                else:
                    line.request_both_edges_events(consumer)
                while num_events == 0 or seen < num_events:
                    if not line.event_wait(timeout):
                        typer.echo("Timed out waiting for events")
                        break
                    event = line.event_read()
                    seen += 1
                    typer.echo(
                        f"{event.timestamp:.9f} {event.event_type.value.lower()}"
                        f" line {event.line_offset}"
                    )
    except GpioError as err:
        raise _fail(err)


if __name__ == "__main__":
    app()
