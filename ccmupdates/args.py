"""Defines the command-line arguments for the ccmupdates tool."""

import argparse
import sys
from pathlib import Path

from ccmupdates import __version__

from .config import OUTPUT_FORMATS


class ArgsParseFailure(RuntimeError):
    """Raised instead of exiting when argument parsing stops."""

    def __init__(self, status: int = 0) -> None:
        self.status = status
        super().__init__(status)


class ArgumentParser(argparse.ArgumentParser):
    """An argument parser writing to an injected ``sys`` and never exiting."""

    def __init__(self, *a, sys_=sys, **kw) -> None:
        self.sys = sys_
        super().__init__(*a, **kw)

    def print_help(self, file=None) -> None:
        super().print_help(self.sys.stdout)

    def print_usage(self, file=None) -> None:
        super().print_usage(self.sys.stdout)

    def exit(self, status: int = 0, message: str | None = None) -> None:  # type: ignore
        if message:
            self._print_message(message, self.sys.stderr)

        raise ArgsParseFailure(status)


def get_parser(sys) -> ArgumentParser:
    """Creates and configures the argument parser for the application.

    Args:
        sys: The `sys` module, used for stdout/stderr.

    Returns:
        A configured `ArgumentParser` instance.
    """
    parser = ArgumentParser(
        prog="ccmupdates",
        description="List pending Configuration Manager updates of Windows hosts.",
        sys_=sys,
    )
    parser.add_argument(
        "hosts",
        nargs="*",
        metavar="HOST",
        help="host to query, comma separated lists allowed",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        action="append",
        default=[],
        dest="files",
        help="read hosts from file, one per line or a .yml inventory; - for stdin",
    )
    parser.add_argument(
        "-e",
        "--error-log",
        nargs="?",
        const="",
        default=None,
        help="append errors of unreachable hosts to file "
        "(default: errors.log in the cache directory)",
    )
    parser.add_argument(
        "-o", "--output", choices=OUTPUT_FORMATS, help="override config output"
    )
    parser.add_argument("-u", "--username", type=str, help="user for both protocols")
    parser.add_argument("--domain", type=str, help="domain of the user")
    parser.add_argument(
        "--hashes", type=str, metavar="LMHASH:NTHASH", help="NTLM hashes for DCOM"
    )
    parser.add_argument(
        "-w",
        "--connection_timeout",
        type=int,
        help="override config ccmupdates.connection_timeout",
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="Override default config path"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=False,
        help="enable debugging output",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="only show warnings and errors",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version="{}".format(__version__),
        help="print version and exit",
    )

    return parser
