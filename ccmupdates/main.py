"""The main entry point for the ccmupdates application."""

import logging
import sys
from argparse import Namespace

from .args import ArgsParseFailure, get_parser
from .colorlog import create_logger
from .config import Config
from .diagnostics import LoggerSink
from .display import get_display
from .hosts import collect_hosts
from .messages import NoHostsGivenError, UserError
from .poller import UpdatePoller
from .utils import COLORIZE


def main() -> int:
    """The main entry point for the ccmupdates application.

    Returns:
        The exit code of the application.
    """
    logger = create_logger("ccmupdates")

    p = get_parser(sys)
    try:
        args = p.parse_args(sys.argv[1:])
    except ArgsParseFailure as e:
        return e.status

    cfg = Config(args.config)

    return run_ccmupdates(cfg, logger, args)


def run_ccmupdates(
    config: Config, logger: logging.Logger, args: Namespace, poller=UpdatePoller
) -> int:
    """Polls the requested hosts and prints their records.

    Args:
        config: The application configuration.
        logger: The logger instance.
        args: The parsed command-line arguments.
        poller: The poller class to use.

    Returns:
        0 if every host answered, 1 if a host was unreachable, 2 on
        usage errors.
    """
    if args.debug:
        logger.setLevel(level=logging.DEBUG)
    elif args.quiet:
        logger.setLevel(level=logging.WARNING)

    config.merge_args(args)

    try:
        hosts = collect_hosts(args.hosts, args.files, sys.stdin)
        if not hosts:
            raise NoHostsGivenError()
    except UserError as e:
        logger.error(e)
        return 2

    config.resolve_password()

    display = get_display(config.output, sys.stdout, COLORIZE and sys.stdout.isatty())
    sink = LoggerSink(logger.getChild("poller"))
    failed = display.show(poller(config, sink).run(hosts))

    if failed:
        logger.warning("%d of %d hosts unreachable", failed, len(hosts))
        return 1
    return 0
