"""Translation of client agent evaluation state codes to labels."""

from types import MappingProxyType

EVALUATION_STATES = MappingProxyType(
    {
        0: "None(0)",
        1: "Available",
        2: "Submitted",
        3: "Detecting",
        4: "PreDownload",
        5: "Downloading",
        6: "WaitInstall",
        7: "Installing",
        8: "PendingSoftReboot",
        9: "PendingHardReboot",
        10: "WaitReboot",
        11: "Verifying",
        12: "InstallComplete",
        13: "Error",
        14: "WaitServiceWindow",
        15: "WaitUserLogon",
        16: "WaitUserLogoff",
        17: "WaitJobUserLogon",
        18: "WaitUserReconnect",
        19: "PendingUserLogoff",
        20: "PendingUpdate",
        21: "WaitingRetry",
        22: "WaitPresModeOff",
        23: "WaitForOrchestration",
    }
)


def translate(code: int) -> str:
    """Returns the label of an evaluation state code.

    Unknown codes are returned unchanged, rendered as a string.

    Args:
        code: The numeric evaluation state.

    Returns:
        The human readable label.
    """
    return EVALUATION_STATES.get(code, str(code))
