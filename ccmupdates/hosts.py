# -*- coding: utf-8 -*-
#
# reading host lists from arguments, text files and YAML inventories
#

from collections.abc import Iterable, Iterator
from logging import getLogger
from pathlib import Path
import sys
from typing import IO, Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .messages import HostFileNotFoundError, InvalidHostFileError
from .utils import split_hosts

logger = getLogger("ccmupdates.hosts")

YAML_SUFFIXES = (".yml", ".yaml")


def read_lines(fd: IO[str]) -> Iterator[str]:
    """Yields the hosts of a plain text file, one per line.

    Blank lines and lines starting with ``#`` are skipped.
    """
    for line in fd:
        line = line.strip()
        if line and not line.startswith("#"):
            yield line


def _inventory_names(data: Any, path: Path | str) -> list[str]:
    if isinstance(data, dict):
        if "hosts" not in data:
            raise InvalidHostFileError(path, "mapping without 'hosts' key")
        data = data["hosts"]
    if data is None:
        return []
    if not isinstance(data, list):
        raise InvalidHostFileError(path, "expected a list of hosts")

    names = []
    for entry in data:
        if isinstance(entry, dict):
            if "name" not in entry:
                raise InvalidHostFileError(path, "host entry without 'name'")
            names.append(str(entry["name"]))
        elif isinstance(entry, (str, int)):
            names.append(str(entry))
        else:
            raise InvalidHostFileError(path, "unexpected entry {!r}".format(entry))
    return names


def read_inventory(fd: IO[str], path: Path | str = "<stream>") -> list[str]:
    """Reads a YAML host inventory.

    The inventory is either a list of host names, a list of mappings with
    a ``name`` key, or a mapping with a ``hosts`` key holding one of
    those.

    Raises:
        InvalidHostFileError: If the document has another layout.
    """
    try:
        data = YAML(typ="safe").load(fd)
    except YAMLError as e:
        raise InvalidHostFileError(path, str(e)) from e
    return _inventory_names(data, path)


def read_host_file(path: Path | str, stdin: IO[str] = sys.stdin) -> list[str]:
    """Reads hosts from a file, ``-`` meaning stdin.

    Args:
        path: The host file.
        stdin: The stream used for ``-``.

    Returns:
        The hosts in file order.

    Raises:
        HostFileNotFoundError: If the file can't be opened.
        InvalidHostFileError: If a YAML inventory is malformed.
    """
    if str(path) == "-":
        return list(read_lines(stdin))

    path = Path(path).expanduser()
    try:
        with path.open() as fd:
            if path.suffix in YAML_SUFFIXES:
                hosts = read_inventory(fd, path)
            else:
                hosts = list(read_lines(fd))
    except OSError as e:
        raise HostFileNotFoundError(path, e.strerror or e) from e

    logger.debug("read %d hosts from %s", len(hosts), path)
    return hosts


def collect_hosts(
    names: Iterable[str], files: Iterable[Path | str] = (), stdin: IO[str] = sys.stdin
) -> list[str]:
    """Builds the host list of a run.

    Hosts given as arguments come first, comma separated values are split,
    followed by the hosts of each file in order. Duplicates are kept.
    """
    hosts: list[str] = []
    for name in names:
        hosts.extend(split_hosts(name))
    for f in files:
        hosts.extend(read_host_file(f, stdin))
    return hosts
