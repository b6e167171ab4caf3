import os
from base64 import b64encode

COLORIZE: bool = os.getenv("COLOR", "always") == "always"

if COLORIZE:

    def green(xs: str) -> str:
        """Wraps a string in ANSI escape codes to make it green.

        Args:
            xs: The string to color.

        Returns:
            The colorized string.
        """
        return "\033[1;32m{!s}\033[1;m\033[0m".format(xs)

    def red(xs: str) -> str:
        """Wraps a string in ANSI escape codes to make it red."""
        return "\033[1;31m{!s}\033[1;m\033[0m".format(xs)

    def yellow(xs: str) -> str:
        """Wraps a string in ANSI escape codes to make it yellow."""
        return "\033[1;33m{!s}\033[1;m\033[0m".format(xs)

else:
    green = red = yellow = lambda xs: str(xs)


def split_hosts(value: str) -> list[str]:
    """Splits a comma separated host argument.

    Args:
        value: A value like ``"foo,bar"``.

    Returns:
        The non-empty host names, in order.
    """
    return [x.strip() for x in value.split(",") if x.strip()]


def encode_powershell(script: str) -> str:
    """Encodes a script for ``powershell.exe -EncodedCommand``.

    Args:
        script: The PowerShell source.

    Returns:
        The base64 encoded UTF-16LE script.
    """
    return b64encode(script.encode("utf-16-le")).decode("ascii")
