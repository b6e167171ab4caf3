from ccmupdates import messages
from ccmupdates.types import Protocol


def test_messages():
    """
    Test all UserMessage subclasses
    """
    assert str(messages.NoHostsGivenError()) == "No hosts given"
    assert (
        str(messages.HostFileNotFoundError("hosts.txt", "No such file or directory"))
        == "Can't read host file hosts.txt: No such file or directory"
    )
    assert (
        str(messages.InvalidHostFileError("inv.yml", "expected a list of hosts"))
        == "Invalid host inventory inv.yml: expected a list of hosts"
    )
    assert (
        str(messages.AttemptFailedMessage("win01", Protocol.DCOM, "access denied"))
        == "win01: Dcom attempt failed: access denied"
    )
    assert str(messages.HostUnreachableMessage("win01")) == "win01: no connection to client"
    assert str(messages.ProgressMessage(2, 5, "win01")) == "host 2 of 5: win01"


def test_message_equality():
    assert messages.NoHostsGivenError() == "No hosts given"
    assert hash(messages.NoHostsGivenError()) == hash("No hosts given")
    assert isinstance(messages.NoHostsGivenError(), ValueError)
    assert isinstance(messages.InvalidHostFileError("a", "b"), messages.UserError)
