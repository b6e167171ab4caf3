"""Handles the configuration for ccmupdates.

This module reads configuration files, sets default values, and allows for
overriding configuration options with command-line arguments.
"""

from argparse import Namespace
from collections.abc import Callable
import configparser
import getpass
from logging import getLogger
from os import getenv
from pathlib import Path
from typing import Any

from .xdg import save_cache_path, user_config_file

logger = getLogger("ccmupdates.config")

OUTPUT_FORMATS = ("table", "csv", "json")


class InvalidOptionNameError(RuntimeError):
    """Exception raised when an invalid configuration option name is used."""

    pass


class Config:
    """Read and store the variables from ccmupdates config files."""

    def __init__(self, path: Path | None = None) -> None:
        """Initializes the configuration object.

        Args:
            path: An optional path to a specific config file.
        """
        if path:
            self.configfiles = [path]
        elif _pth := getenv("CCMUPDATES_CONF"):
            self.configfiles = [Path(_pth).expanduser()]
        else:
            self.configfiles = [Path("/etc/ccmupdates.cfg")]
            if user := user_config_file():
                self.configfiles.append(user)
        self.read()

        self._define_config_options()
        self._parse_config()

    def read(self) -> None:
        """Reads the configuration files."""
        self.config = configparser.ConfigParser(
            inline_comment_prefixes=("#", ";"), interpolation=None
        )
        try:
            self.config.read(self.configfiles)
        except configparser.Error as e:
            logger.error(e)

    def _parse_config(self) -> None:
        """Parses the configuration options from the config files."""
        for datum in self.data:
            attr, inipath, default, fixup, getter = datum

            try:
                val = self._get_option(inipath, getter)
            except Exception:
                if callable(default):
                    val = default()
                else:
                    val = default

            setattr(self, str(attr), fixup(val))
            if attr != "password":
                logger.debug('config.%s set to "%s"', attr, val)

    def _define_config_options(self) -> None:
        """Defines all available configuration options."""

        def normalizer(x: Any) -> Any:
            return x

        def optional_path(p: Path | str | None) -> Path | None:
            return Path(p).expanduser() if p else None

        def output_format(x: str) -> str:
            if x not in OUTPUT_FORMATS:
                logger.warning("unknown output format %r, using table", x)
                return "table"
            return x

        data: list[tuple[Any, ...]] = [
            ("namespace", ("query", "namespace"), "root\\ccm\\ClientSDK"),
            ("wmi_class", ("query", "class"), "CCM_SoftwareUpdate"),
            ("username", ("credentials", "username"), ""),
            ("domain", ("credentials", "domain"), ""),
            (
                "password",
                ("credentials", "password"),
                lambda: getenv("CCMUPDATES_PASSWORD", ""),
            ),
            ("hashes", ("credentials", "hashes"), ""),
            (
                "use_keyring",
                ("credentials", "use_keyring"),
                False,
                bool,
                self.config.getboolean,
            ),
            ("winrm_transport", ("wsman", "transport"), "ntlm"),
            ("winrm_port", ("wsman", "port"), 5985, int, self.config.getint),
            ("winrm_ssl", ("wsman", "ssl"), False, bool, self.config.getboolean),
            ("winrm_cert_validation", ("wsman", "cert_validation"), "validate"),
            # seconds, WS-Management operation timeout
            (
                "connection_timeout",
                ("ccmupdates", "connection_timeout"),
                30,
                int,
                self.config.getint,
            ),
            ("error_log", ("ccmupdates", "error_log"), None, optional_path),
            ("output", ("ccmupdates", "output"), "table", output_format),
        ]

        def add_normalizer(x):
            return x if len(x) > 3 else x + (normalizer,)

        n_data = (add_normalizer(x) for x in data)

        getter = self.config.get

        def add_getter(x):
            return x if len(x) > 4 else x + (getter,)

        self.data: list[tuple[str, tuple[str, ...], Any, Callable, Callable]] = [
            add_getter(x) for x in n_data
        ]

    def _has_option(self, opt: str) -> bool:
        """Checks if a given option name is valid.

        Args:
            opt: The option name to check.

        Returns:
            True if the option name is valid, False otherwise.
        """
        return opt in (x[0] for x in self.data)

    def set_option(self, opt: str, val: Any) -> None:
        """Sets a configuration option to a new value.

        Args:
            opt: The name of the option to set.
            val: The new value for the option.

        Raises:
            InvalidOptionNameError: If opt is not a valid option name.
        """
        if not self._has_option(opt):
            raise InvalidOptionNameError(opt)

        setattr(self, opt, val)

    def _get_option(self, secopt, getter):
        """Gets an option from the configuration.

        Args:
            secopt: A tuple containing the section and option name.
            getter: The function to use to get the option.

        Returns:
            The value of the option.
        """
        try:
            return getter(*secopt)
        except (configparser.NoSectionError, configparser.NoOptionError):
            msg = "Config option {0}.{1} not found.".format(*secopt)
            logger.debug(msg)
            raise
        except Exception:
            msg = "Config option {0}.{1} extraction from {2} failed."
            logger.error(msg.format(*secopt, self.configfiles))
            raise

    def merge_args(self, args: Namespace) -> None:
        """Merges command-line arguments into the configuration.

        Args:
            args: The parsed command-line arguments.
        """
        if args.username:
            self.username = args.username

        if args.domain:
            self.domain = args.domain

        if args.hashes:
            self.hashes = args.hashes

        if args.connection_timeout:
            self.connection_timeout = args.connection_timeout

        if args.error_log is not None:
            # bare -e/--error-log picks the cache directory
            if args.error_log:
                self.error_log = Path(args.error_log).expanduser()
            else:
                self.error_log = save_cache_path("errors.log")

        if args.output:
            self.output = args.output

    def resolve_password(self, prompt: Callable[[str], str] = getpass.getpass) -> None:
        """Fills in a missing password for the configured user.

        The system keyring is asked first when ``use_keyring`` is set,
        otherwise the user is prompted once.

        Args:
            prompt: The function used to ask for the password.
        """
        if not self.username or self.password or self.hashes:
            return

        if self.use_keyring:
            import keyring

            if pwd := keyring.get_password("ccmupdates", self.username):
                self.password = pwd
                return
            logger.debug("no keyring entry for %s", self.username)

        self.password = prompt("Password for {}: ".format(self.username))
