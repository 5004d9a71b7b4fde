import argparse
import logging
import sys
import textwrap
from typing import List, Mapping, Optional
from con_consumer import __version__
from con_consumer._config import (
    CONFIG_PATHS_VAR,
    DEFAULT_CONFIG_PATHS,
    ENV_VARS,
    load_settings,
)
from con_consumer._constants import (
    DEFAULT_EXTRA_MEMORY_DELAY_SECONDS,
    DEFAULT_METRICS_ADDRESS,
    DEFAULT_METRICS_PORT,
)
from con_consumer.consumer_main import (
    EXECUTION_SUMMARY_FORMAT,
    ResourceTargets,
)
from con_consumer.consumer_main import execute as consumer_execute

lgr = logging.getLogger("con-consumer")

_env_vars_list = "\n".join(
    f"  {var}: see --{dest.replace('_', '-')}" for dest, var in ENV_VARS.items()
)
_config_paths_list = "\n".join(f"    - {path}" for path in DEFAULT_CONFIG_PATHS)

ABOUT_CONSUMER = f"""
con-consumer consumes CPU and memory resources.

It burns the requested number of CPU cores and allocates the requested amount
of memory, touching every page of it once a second so it stays resident.
Optionally, extra memory is allocated after a delay to model a rise in memory
consumption. Runtime metrics are published for Prometheus to scrape. Resources
are held until the process is interrupted (SIGINT or SIGTERM).

environment variables:
  Most options can be configured by environment variables (which are
  overridden by command line options).

{_env_vars_list}
  {CONFIG_PATHS_VAR}: paths to .env files separated by platform path
    separator (':' on Unix) (see below)

.env files:
  The same variables can be set in .env files. By default, con-consumer reads
  the following locations (later files override earlier ones,
  XDG_CONFIG_HOME defaults to ~/.config):

{_config_paths_list}

  Precedence (highest to lowest):
    1. Command line arguments
    2. Explicit environment variables
    3. .env file values (later paths override earlier paths)
    4. Hardcoded defaults
"""


class CustomHelpFormatter(argparse.ArgumentDefaultsHelpFormatter):
    """Override allows helptext to respect newlines in ABOUT_CONSUMER"""

    def _fill_text(self, text: str, width: int, _indent: str) -> str:
        return "\n".join([textwrap.fill(line, width) for line in text.splitlines()])


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value!r}")
    return number


def port_number(value: str) -> int:
    number = non_negative_int(value)
    if number > 65535:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}")
    return number


def bool_from_str(x: object) -> bool:
    """Convert various string representations to boolean."""
    if isinstance(x, bool):
        return x
    s = str(x).strip().lower()
    if s in {"1", "true", "yes", "on"}:
        return True
    if s in {"0", "false", "no", "off", ""}:
        return False
    raise ValueError(f"invalid boolean: {x!r}")


def setup_logging(args: argparse.Namespace) -> None:
    """Configure logging from --log-level and --quiet."""
    log_level = args.log_level

    if args.quiet:
        log_level = "NONE"

    # NONE means disable all logging
    if log_level == "NONE":
        logging.disable(logging.CRITICAL)
    else:
        logging.basicConfig(
            format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
            level=log_level,
        )


def build_parser(
    settings: Optional[Mapping[str, str]] = None,
) -> argparse.ArgumentParser:
    """Build the parser, taking option defaults from `settings`.

    `settings` maps argparse destinations to unparsed values, see
    :func:`con_consumer._config.load_settings`.
    """
    if settings is None:
        settings = {}
    parser = argparse.ArgumentParser(
        prog="con-consumer",
        allow_abbrev=False,
        description=ABOUT_CONSUMER,
        formatter_class=CustomHelpFormatter,
        usage="con-consumer --cpu-cores 10 --memory-gb 16",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-l",
        "--log-level",
        default=settings.get("log_level", "INFO").upper(),
        choices=("NONE", "CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"),
        type=str.upper,
        help="Level of log output to stderr, use NONE to entirely disable.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Disable logging output (to stderr), same as --log-level NONE.",
    )

    targets = parser.add_argument_group("resource targets")
    targets.add_argument(
        "--cpu-cores",
        type=non_negative_int,
        default=settings.get("cpu_cores"),
        help="How many CPU cores worth of CPU time to consume.",
    )
    targets.add_argument(
        "--memory-gb",
        type=non_negative_int,
        default=settings.get("memory_gb"),
        help="How many GB of memory to consume and keep actively accessing.",
    )
    targets.add_argument(
        "--extra-memory-gb",
        type=non_negative_int,
        default=settings.get("extra_memory_gb"),
        help="How many GB of extra memory to consume after "
        "--extra-memory-delay-seconds, and keep actively accessing. "
        "Allows you to model a rise in memory consumption.",
    )
    targets.add_argument(
        "--extra-memory-delay-seconds",
        type=non_negative_int,
        default=settings.get(
            "extra_memory_delay_seconds", str(DEFAULT_EXTRA_MEMORY_DELAY_SECONDS)
        ),
        help="How many seconds to wait before allocating extra memory.",
    )

    monitoring = parser.add_argument_group("monitoring")
    monitoring.add_argument(
        "--metrics-port",
        type=port_number,
        default=settings.get("metrics_port", str(DEFAULT_METRICS_PORT)),
        help="Port number to publish metrics on.",
    )
    monitoring.add_argument(
        "--metrics-address",
        default=settings.get("metrics_address", DEFAULT_METRICS_ADDRESS),
        help="Address to bind the metrics endpoint to.",
    )
    monitoring.add_argument(
        "--no-metrics",
        action="store_true",
        help="Do not publish metrics.",
    )
    monitoring.add_argument(
        "--summary-format",
        type=str,
        default=settings.get("summary_format", EXECUTION_SUMMARY_FORMAT),
        help="Output template to use when printing the summary on exit. "
        "Accepts custom conversion flags: "
        "!S: Converts byte counts to binary units, green if set, red if None. "
        "!X: Colors green if truthy, red if falsey. "
        "!N: Colors green if not None, red if None.",
    )
    monitoring.add_argument(
        "--colors",
        action="store_true",
        default=bool_from_str(settings.get("colors", "")),
        help="Use colors in the summary output.",
    )
    return parser


def targets_from_args(args: argparse.Namespace) -> ResourceTargets:
    return ResourceTargets(
        cpu_cores=args.cpu_cores,
        memory_gigabytes=args.memory_gb,
        extra_memory_gigabytes=args.extra_memory_gb,
        extra_memory_delay_seconds=args.extra_memory_delay_seconds,
    )


def main(argv: Optional[List[str]] = None) -> None:
    settings, notes = load_settings()
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    targets = targets_from_args(args)

    if not targets.has_resource_target:
        if not argv and targets.extra_memory_gigabytes is None:
            parser.print_help()
            sys.exit(1)
        parser.error("You must consume at least one type of resource.")

    setup_logging(args)
    for level, message in notes:
        lgr.log(level, message)
    sys.exit(
        consumer_execute(
            targets,
            metrics_port=None if args.no_metrics else args.metrics_port,
            metrics_address=args.metrics_address,
            summary_format=args.summary_format,
            colors=args.colors,
        )
    )
