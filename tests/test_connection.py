import json
from base64 import b64decode
from unittest.mock import MagicMock

import pytest
import requests
from winrm.exceptions import InvalidCredentialsError

from ccmupdates.connection import (
    DcomConnection,
    WsmanConnection,
    clean_clixml,
    open_connection,
    parse_rows,
    split_host_port,
)
from ccmupdates.exceptions import QueryError, SessionOpenError
from ccmupdates.types import Protocol, Row


@pytest.fixture
def mock_winrm(monkeypatch):
    """Fixture to mock the pywinrm Protocol within the connection module."""
    cls = MagicMock()
    client = cls.return_value
    client.open_shell.return_value = "shell-1"
    client.run_command.return_value = "cmd-1"
    client.get_command_output.return_value = (b"[]", b"", 0)
    monkeypatch.setattr("ccmupdates.connection.WinRMProtocol", cls)
    return cls


@pytest.fixture
def mock_dcom(monkeypatch):
    """Fixture to mock impacket's DCOM connection and WMI interfaces."""
    dcom_cls = MagicMock()
    wmi = MagicMock()
    login = wmi.IWbemLevel1Login.return_value
    services = login.NTLMLogin.return_value
    enum = services.ExecQuery.return_value
    monkeypatch.setattr("ccmupdates.connection.DCOMConnection", dcom_cls)
    monkeypatch.setattr("ccmupdates.connection.wmi", wmi)
    return dcom_cls, wmi, login, services, enum


def _wmi_object(name, state):
    obj = MagicMock()
    obj.getProperties.return_value = {
        "Name": {"value": name},
        "EvaluationState": {"value": state},
    }
    return obj


def test_parse_rows():
    """
    Test the JSON payload of the query script is parsed
    """
    payload = json.dumps(
        [
            {"Name": "KB1", "EvaluationState": 7},
            {"Name": "KB2", "EvaluationState": 0},
        ]
    )
    assert parse_rows(payload) == [Row("KB1", 7), Row("KB2", 0)]
    assert parse_rows('{"Name": "KB3", "EvaluationState": 13}\r\n') == [
        Row("KB3", 13)
    ]
    assert parse_rows("") == []
    assert parse_rows("[]") == []


@pytest.mark.parametrize("payload", ["not json", '[{"Name": "KB1"}]', "[1]"])
def test_parse_rows_invalid(payload):
    with pytest.raises(ValueError):
        parse_rows(payload)


def test_clean_clixml():
    stderr = (
        '#< CLIXML\r\n<Objs Version="1.1.0.1" xmlns="http://schemas.microsoft.com/'
        'powershell/2004/04"><S S="Error">Invalid namespace _x000D__x000A_</S>'
        '<S S="Error">At line:1 char:1_x000D__x000A_</S></Objs>'
    )
    assert clean_clixml(stderr) == "Invalid namespace \nAt line:1 char:1"
    assert clean_clixml("  plain error\n") == "plain error"


def test_wsman_query(config, mock_winrm):
    """
    Test a WS-Management session opens a shell, runs the query and closes
    """
    client = mock_winrm.return_value
    client.get_command_output.return_value = (
        b'[{"Name":"KB5034441","EvaluationState":8}]',
        b"",
        0,
    )
    config.username = "admin"
    config.domain = "CORP"
    config.password = "secret"

    with WsmanConnection("win01", config) as conn:
        rows = conn.query("root\\ccm\\ClientSDK", "CCM_SoftwareUpdate")

    assert rows == [Row("KB5034441", 8)]
    kw = mock_winrm.call_args.kwargs
    assert kw["endpoint"] == "http://win01:5985/wsman"
    assert kw["transport"] == "ntlm"
    assert kw["username"] == "CORP\\admin"
    assert kw["password"] == "secret"
    assert kw["read_timeout_sec"] > kw["operation_timeout_sec"]
    args = client.run_command.call_args.args
    assert args[0] == "shell-1"
    assert args[1] == "powershell.exe"
    assert "-EncodedCommand" in args[2]
    client.cleanup_command.assert_called_once_with("shell-1", "cmd-1")
    client.close_shell.assert_called_once_with("shell-1")


def test_wsman_endpoint(config, mock_winrm):
    config.winrm_ssl = True
    assert WsmanConnection("win01:5999", config).endpoint == "https://win01:5999/wsman"
    assert WsmanConnection("win01", config).endpoint == "https://win01:5985/wsman"


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.ConnectionError("Max retries exceeded"),
        InvalidCredentialsError("the specified credentials were rejected"),
        RuntimeError("boom"),
    ],
)
def test_wsman_open_failure(config, mock_winrm, error):
    """
    Test every failure while opening the shell is a SessionOpenError
    """
    mock_winrm.return_value.open_shell.side_effect = error
    with pytest.raises(SessionOpenError) as e:
        WsmanConnection("win01", config)
    assert e.value.host == "win01"
    assert e.value.reason == str(error)


def test_wsman_query_nonzero_exit(config, mock_winrm):
    client = mock_winrm.return_value
    client.get_command_output.return_value = (b"", b"Invalid class", 1)
    conn = WsmanConnection("win01", config)
    with pytest.raises(QueryError, match="win01: Invalid class"):
        conn.query("root\\ccm\\ClientSDK", "CCM_SoftwareUpdate")


def test_wsman_query_transport_error(config, mock_winrm):
    client = mock_winrm.return_value
    client.run_command.side_effect = requests.exceptions.ReadTimeout("read timed out")
    conn = WsmanConnection("win01", config)
    with pytest.raises(QueryError) as e:
        conn.query("root\\ccm\\ClientSDK", "CCM_SoftwareUpdate")
    assert e.value.reason == "read timed out"


def test_wsman_query_bad_payload(config, mock_winrm):
    mock_winrm.return_value.get_command_output.return_value = (b"<html>", b"", 0)
    conn = WsmanConnection("win01", config)
    with pytest.raises(QueryError):
        conn.query("root\\ccm\\ClientSDK", "CCM_SoftwareUpdate")


def test_dcom_query(config, mock_dcom):
    """
    Test a DCOM session enumerates the WQL result until S_FALSE
    """
    dcom_cls, wmi, login, services, enum = mock_dcom
    enum.Next.side_effect = [
        [_wmi_object("KB1", 1)],
        [_wmi_object("KB2", 21)],
        Exception("WBEM_S_FALSE"),
    ]
    config.username = "admin"
    config.hashes = "aad3b435b51404eeaad3b435b51404ee:31d6cfe0d16ae931b73c59d7e0c089c0"

    with DcomConnection("win01:5985", config) as conn:
        rows = conn.query("root\\ccm\\ClientSDK", "CCM_SoftwareUpdate")

    assert rows == [Row("KB1", 1), Row("KB2", 21)]
    args, kw = dcom_cls.call_args
    assert args == ("win01",)
    assert kw["username"] == "admin"
    assert kw["lmhash"] == "aad3b435b51404eeaad3b435b51404ee"
    assert kw["nthash"] == "31d6cfe0d16ae931b73c59d7e0c089c0"
    login.NTLMLogin.assert_called_once()
    assert login.NTLMLogin.call_args.args[0] == "//./root/ccm/ClientSDK"
    services.ExecQuery.assert_called_once_with(
        "SELECT Name, EvaluationState FROM CCM_SoftwareUpdate"
    )
    services.RemRelease.assert_called_once()
    login.RemRelease.assert_called_once()
    dcom_cls.return_value.disconnect.assert_called_once()


def test_dcom_query_failure(config, mock_dcom):
    _, _, login, services, enum = mock_dcom
    enum.Next.side_effect = Exception("WBEM_E_ACCESS_DENIED")
    conn = DcomConnection("win01", config)
    with pytest.raises(QueryError, match="WBEM_E_ACCESS_DENIED"):
        conn.query("root\\ccm\\ClientSDK", "CCM_SoftwareUpdate")
    services.RemRelease.assert_called_once()


def test_dcom_open_failure(config, mock_dcom):
    """
    Test a failed interface activation disconnects and raises
    """
    dcom_cls = mock_dcom[0]
    dcom_cls.return_value.CoCreateInstanceEx.side_effect = OSError(
        "[Errno 111] Connection refused"
    )
    with pytest.raises(SessionOpenError, match="Connection refused"):
        DcomConnection("win01", config)
    dcom_cls.return_value.disconnect.assert_called_once()


def test_open_connection(config, mock_winrm, mock_dcom):
    assert isinstance(open_connection("win01", Protocol.WSMAN, config), WsmanConnection)
    assert isinstance(open_connection("win01", Protocol.DCOM, config), DcomConnection)
    assert isinstance(open_connection("win01", "Dcom", config), DcomConnection)
    with pytest.raises(ValueError):
        open_connection("win01", "ssh", config)  # type: ignore


@pytest.mark.parametrize(
    "hostname,expected",
    [
        ("win01", ("win01", "")),
        ("win01:5986", ("win01", "5986")),
        ("fe80::1", ("fe80::1", "")),
        ("[fe80::1]:5986", ("fe80::1", "5986")),
        ("[fe80::1]", ("fe80::1", "")),
    ],
)
def test_split_host_port(hostname, expected):
    assert split_host_port(hostname) == expected


def test_ipv6_host(config, mock_winrm, mock_dcom):
    """
    Test IPv6 literals are kept whole and bracketed in the endpoint
    """
    assert WsmanConnection("fe80::1", config).endpoint == "http://[fe80::1]:5985/wsman"
    assert (
        WsmanConnection("[fe80::1]:5986", config).endpoint
        == "http://[fe80::1]:5986/wsman"
    )
    DcomConnection("fe80::1", config)
    assert mock_dcom[0].call_args.args == ("fe80::1",)


def test_query_script_emits_utf8(config, mock_winrm):
    client = mock_winrm.return_value
    client.get_command_output.return_value = (
        '[{"Name":"Sicherheitsupdate für Windows","EvaluationState":1}]'.encode(),
        b"",
        0,
    )
    rows = WsmanConnection("win01", config).query(
        "root\\ccm\\ClientSDK", "CCM_SoftwareUpdate"
    )

    assert rows == [Row("Sicherheitsupdate für Windows", 1)]
    script = b64decode(client.run_command.call_args.args[2][-1]).decode("utf-16-le")
    assert script.startswith("[Console]::OutputEncoding = [Text.Encoding]::UTF8")


def test_dcom_bare_nt_hash(config, mock_dcom):
    """
    Test a hash without colon is passed as the NT hash
    """
    config.hashes = "31d6cfe0d16ae931b73c59d7e0c089c0"
    DcomConnection("win01", config)
    kw = mock_dcom[0].call_args.kwargs
    assert kw["lmhash"] == ""
    assert kw["nthash"] == "31d6cfe0d16ae931b73c59d7e0c089c0"
