"""Remote-management sessions to Configuration Manager clients.

This module provides the `Connection` classes, which open a session to a
Windows host over WS-Management (pywinrm) or DCOM (impacket) and query a
WMI class from it. Library errors never leave this module as they are:
failures while opening become `SessionOpenError`, failures while
querying become `QueryError`.
"""

import json
import re
from logging import getLogger
from traceback import format_exc
from typing import Any, Self

from impacket.dcerpc.v5.dcom import wmi
from impacket.dcerpc.v5.dcomrt import DCOMConnection
from impacket.dcerpc.v5.dtypes import NULL
import requests
from winrm.exceptions import InvalidCredentialsError
from winrm.protocol import Protocol as WinRMProtocol

from .config import Config
from .exceptions import QueryError, SessionOpenError
from .types import Protocol, Row
from .utils import encode_powershell

logger = getLogger("ccmupdates.connection")

# IEnumWbemClassObject::Next timeout, enumeration ends with S_FALSE
WBEM_INFINITE = 0xFFFFFFFF

QUERY_SCRIPT = """\
[Console]::OutputEncoding = [Text.Encoding]::UTF8
$ErrorActionPreference = 'Stop'
$ProgressPreference = 'SilentlyContinue'
$rows = @(Get-CimInstance -Namespace '{namespace}' -ClassName '{wmi_class}' |
    Select-Object Name, EvaluationState)
ConvertTo-Json -Compress -InputObject $rows
"""


def _ps_quote(value: str) -> str:
    return value.replace("'", "''")


def clean_clixml(stderr: str) -> str:
    """Extracts the error lines from a PowerShell CLIXML error stream.

    Args:
        stderr: The raw stderr of a remote PowerShell command.

    Returns:
        Plain text error message, or `stderr` unchanged if it is not
        CLIXML.
    """
    if not stderr.startswith("#< CLIXML"):
        return stderr.strip()
    lines = re.findall(r'<S S="Error">(.*?)</S>', stderr, re.DOTALL)
    text = "".join(lines).replace("_x000D__x000A_", "\n")
    return text.strip()


def parse_rows(payload: str) -> list[Row]:
    """Parses the JSON emitted by the WS-Management query script.

    Args:
        payload: JSON text, an array of objects or a single object.

    Returns:
        The rows in the order they were returned.

    Raises:
        ValueError: If the payload is not valid JSON or lacks a field.
    """
    payload = payload.strip()
    if not payload:
        return []
    data = json.loads(payload)
    if isinstance(data, dict):
        data = [data]
    try:
        return [Row(str(x["Name"]), int(x["EvaluationState"])) for x in data]
    except (KeyError, TypeError) as e:
        raise ValueError("unexpected row layout: {!s}".format(e)) from e


def split_host_port(hostname: str) -> tuple[str, str]:
    """Splits an optional port off a host name.

    IPv6 literals carry a port only in the ``[addr]:port`` form, a bare
    address with several colons is taken as a host without port.

    Args:
        hostname: ``host``, ``host:port``, ``addr`` or ``[addr]:port``.

    Returns:
        The host and the port text, empty when no port was given.
    """
    if hostname.startswith("["):
        host, _, rest = hostname[1:].partition("]")
        return host, rest.removeprefix(":")
    if hostname.count(":") == 1:
        host, _, port = hostname.partition(":")
        return host, port
    return hostname, ""


class Connection:
    """An open session to a remote host."""

    protocol: Protocol

    def __init__(self, hostname: str, config: Config) -> None:
        """Opens the session.

        Args:
            hostname: The host name, optionally suffixed with ``:port``.
            config: The application configuration.

        Raises:
            SessionOpenError: If the session can't be established.
        """
        self.hostname = hostname
        self.host, self.port = split_host_port(hostname)
        self.timeout: int = config.connection_timeout
        self.config = config

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} object hostname={self.hostname}>"

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def user(self) -> str:
        """The user name in ``DOMAIN\\user`` form when a domain is set."""
        if self.config.domain and self.config.username:
            return "{}\\{}".format(self.config.domain, self.config.username)
        return self.config.username

    def query(self, namespace: str, wmi_class: str) -> list[Row]:
        """Queries all instances of a WMI class.

        Args:
            namespace: The WMI namespace, e.g. ``root\\ccm\\ClientSDK``.
            wmi_class: The class to enumerate.

        Returns:
            One `Row` per instance.

        Raises:
            QueryError: If the query fails.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Closes the session."""
        raise NotImplementedError


class WsmanConnection(Connection):
    """A WS-Management session backed by a remote shell."""

    protocol = Protocol.WSMAN

    def __init__(self, hostname: str, config: Config) -> None:
        super().__init__(hostname, config)

        try:
            port = int(self.port) if self.port else config.winrm_port
        except ValueError:
            port = config.winrm_port
        scheme = "https" if config.winrm_ssl else "http"
        host = f"[{self.host}]" if ":" in self.host else self.host
        self.endpoint = f"{scheme}://{host}:{port}/wsman"

        try:
            logger.debug("opening WS-Management shell at %s", self.endpoint)
            self.client = WinRMProtocol(
                endpoint=self.endpoint,
                transport=config.winrm_transport,
                username=self.user,
                password=config.password,
                server_cert_validation=config.winrm_cert_validation,
                # pywinrm requires the read timeout to exceed the operation one
                operation_timeout_sec=self.timeout,
                read_timeout_sec=self.timeout + 10,
            )
            self.shell_id = self.client.open_shell()
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.debug("no valid connection to %s", self.endpoint)
            raise SessionOpenError(str(e), hostname) from e
        except InvalidCredentialsError as e:
            logger.debug("authentication failed on %s", self.endpoint)
            raise SessionOpenError(str(e), hostname) from e
        except Exception as e:
            logger.debug(format_exc())
            raise SessionOpenError(str(e), hostname) from e

    def query(self, namespace: str, wmi_class: str) -> list[Row]:
        script = QUERY_SCRIPT.format(
            namespace=_ps_quote(namespace), wmi_class=_ps_quote(wmi_class)
        )
        logger.debug("querying %s from %s on %s", wmi_class, namespace, self.hostname)
        try:
            command_id = self.client.run_command(
                self.shell_id,
                "powershell.exe",
                ["-NoProfile", "-NonInteractive", "-EncodedCommand", encode_powershell(script)],
            )
            try:
                stdout, stderr, rc = self.client.get_command_output(
                    self.shell_id, command_id
                )
            finally:
                self.client.cleanup_command(self.shell_id, command_id)
        except Exception as e:
            logger.debug(format_exc())
            raise QueryError(str(e), self.hostname) from e

        if rc != 0:
            reason = clean_clixml(stderr.decode("utf-8", "replace"))
            raise QueryError(reason or "exit status {}".format(rc), self.hostname)

        try:
            return parse_rows(stdout.decode("utf-8-sig", "replace"))
        except ValueError as e:
            raise QueryError(str(e), self.hostname) from e

    def close(self) -> None:
        logger.debug("closing WS-Management shell at %s", self.endpoint)
        self.client.close_shell(self.shell_id)


class DcomConnection(Connection):
    """A DCOM session logged in to the remote WMI service."""

    protocol = Protocol.DCOM

    def __init__(self, hostname: str, config: Config) -> None:
        super().__init__(hostname, config)
        # LMHASH:NTHASH, a bare value is the NT hash
        lmhash, _, nthash = config.hashes.rpartition(":")
        self.dcom: DCOMConnection | None = None

        try:
            logger.debug("opening DCOM connection to %s", self.host)
            self.dcom = DCOMConnection(
                self.host,
                username=config.username,
                password=config.password,
                domain=config.domain,
                lmhash=lmhash,
                nthash=nthash,
                oxidResolver=True,
            )
            interface = self.dcom.CoCreateInstanceEx(
                wmi.CLSID_WbemLevel1Login, wmi.IID_IWbemLevel1Login
            )
            self.login = wmi.IWbemLevel1Login(interface)
        except Exception as e:
            logger.debug(format_exc())
            if self.dcom is not None:
                self.dcom.disconnect()
            raise SessionOpenError(str(e), hostname) from e

    def query(self, namespace: str, wmi_class: str) -> list[Row]:
        wmi_namespace = "//./" + namespace.replace("\\", "/")
        logger.debug("querying %s from %s on %s", wmi_class, wmi_namespace, self.host)
        rows: list[Row] = []
        try:
            services = self.login.NTLMLogin(wmi_namespace, NULL, NULL)
            try:
                enum = services.ExecQuery(
                    "SELECT Name, EvaluationState FROM {}".format(wmi_class)
                )
                while True:
                    try:
                        obj = enum.Next(WBEM_INFINITE, 1)[0]
                    except Exception as e:
                        if "S_FALSE" not in str(e):
                            raise
                        break
                    props = obj.getProperties()
                    rows.append(
                        Row(
                            str(props["Name"]["value"]),
                            int(props["EvaluationState"]["value"]),
                        )
                    )
                enum.RemRelease()
            finally:
                services.RemRelease()
        except Exception as e:
            logger.debug(format_exc())
            raise QueryError(str(e), self.hostname) from e
        return rows

    def close(self) -> None:
        logger.debug("closing DCOM connection to %s", self.host)
        try:
            self.login.RemRelease()
        finally:
            if self.dcom is not None:
                self.dcom.disconnect()


CONNECTIONS: dict[Protocol, type[Connection]] = {
    Protocol.WSMAN: WsmanConnection,
    Protocol.DCOM: DcomConnection,
}


def open_connection(hostname: str, protocol: Protocol, config: Config) -> Connection:
    """Opens a session to a host with the given protocol.

    Args:
        hostname: The host to connect to.
        protocol: The remote-management protocol to use.
        config: The application configuration.

    Returns:
        The open `Connection`.

    Raises:
        ValueError: If the protocol is unknown.
        SessionOpenError: If the session can't be established.
    """
    try:
        cls = CONNECTIONS[Protocol(protocol)]
    except (KeyError, ValueError):
        raise ValueError("unknown protocol {!r}".format(protocol)) from None
    return cls(hostname, config)
