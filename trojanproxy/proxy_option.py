"""Option handlers that start a proxy from a config file or from standard input."""

from __future__ import annotations

import platform
import sys

from . import log, proxy
from .common import VERSION
from .errors import TrojanError
from .option import OptionHandler

DEFAULT_CONFIG_PATHS = ("config.json", "config.yml", "config.yaml")


def detect_and_read_config(file: str) -> tuple[bytes, bool]:
    """Read a config file and tell whether it is JSON (True) or YAML (False).

    Raises TrojanError for an unsupported extension and OSError if the file
    cannot be read.
    """
    if file.endswith(".json"):
        is_json = True
    elif file.endswith((".yaml", ".yml")):
        is_json = False
    else:
        raise TrojanError(f"unsupported config format: {file}. use .yaml or .json instead.")
    with open(file, "rb") as handle:
        return handle.read(), is_json


def _launch(data: bytes, is_json: bool) -> None:
    try:
        instance = proxy.new_proxy_from_config_data(data, is_json)
    except Exception as exc:
        log.fatal(exc)
        return
    try:
        instance.run()
    except Exception as exc:
        log.fatal(exc)


class ConfigFileOption(OptionHandler):
    """Starts a proxy from a config file, trying default names when none is given."""

    def __init__(self, path: str = "") -> None:
        self.path = path

    def name(self) -> str:
        return proxy.NAME

    def handle(self) -> None:
        data: bytes | None = None
        is_json = False
        if not self.path:
            log.warn("no specified config file, use default path to detect config file")
            for file in DEFAULT_CONFIG_PATHS:
                log.warn("try to load config from default path:", file)
                try:
                    data, is_json = detect_and_read_config(file)
                except OSError as exc:
                    log.warn(exc)
                    continue
                break
        else:
            try:
                data, is_json = detect_and_read_config(self.path)
            except (OSError, TrojanError) as exc:
                log.fatal(exc)
                return

        if data is not None:
            log.info("trojan-go", VERSION, "initializing")
            _launch(data, is_json)

        log.fatal("no valid config")

    def priority(self) -> int:
        return -1


class StdinOption(OptionHandler):
    """Starts a proxy from a JSON or YAML config read from standard input."""

    def __init__(
        self,
        format: str | None = "disabled",
        suppress_hint: bool | None = False,
        stdin=None,
        stdout=None,
    ) -> None:
        self.format = format
        self.suppress_hint = suppress_hint
        self._stdin = stdin
        self._stdout = stdout

    def name(self) -> str:
        return proxy.NAME + "_STDIN"

    def handle(self) -> None:
        is_json = self.is_format_json()

        if not self.suppress_hint:
            out = self._stdout if self._stdout is not None else sys.stdout
            goos = platform.system().lower()
            goarch = platform.machine().lower()
            print(f"Trojan-Go {VERSION} ({goos}/{goarch})", file=out)
            if is_json:
                print("Reading JSON configuration from stdin.", file=out)
            else:
                print("Reading YAML configuration from stdin.", file=out)

        source = self._stdin if self._stdin is not None else sys.stdin.buffer
        try:
            data = source.read()
        except OSError as exc:
            log.fatalf("Failed to read from stdin: %s", exc)
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        _launch(data, is_json)

    def priority(self) -> int:
        return 0

    def is_format_json(self) -> bool:
        """Return True for JSON input; raise TrojanError when stdin reading is off."""
        if self.format is None:
            raise TrojanError("format specifier is nil")
        if self.format == "disabled":
            raise TrojanError("reading from stdin is disabled")
        return self.format.lower() == "json"