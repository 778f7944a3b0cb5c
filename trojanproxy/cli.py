"""Command-line entry point: picks the first option handler that applies."""

from __future__ import annotations

import argparse
import sys

from . import log, option
from .easy import EasyOption
from .errors import TrojanError
from .golog import logger as _golog  # noqa: F401  installs the colour logger
from .proxy_option import ConfigFileOption, StdinOption


def _add(parser: argparse.ArgumentParser, name: str, **kwargs) -> None:
    parser.add_argument(f"-{name}", f"--{name}", dest=name.replace("-", "_"), **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trojanproxy", allow_abbrev=False)
    _add(parser, "config", default="", help="Trojan-Go config filename (.yaml/.yml/.json)")
    _add(parser, "stdin-format", default="disabled", help="Read from standard input (yaml/json)")
    _add(parser, "stdin-suppress-hint", action="store_true", help="Suppress hint text")
    _add(parser, "server", action="store_true", help="Run a trojan-go server")
    _add(parser, "client", action="store_true", help="Run a trojan-go client")
    _add(parser, "password", default="", help="Password for authentication")
    _add(parser, "remote", default="", help="Remote address, e.g. 127.0.0.1:12345")
    _add(parser, "local", default="", help="Local address, e.g. 127.0.0.1:12345")
    _add(parser, "key", default="server.key", help="Key of the server")
    _add(parser, "cert", default="server.crt", help="Certificates of the server")
    return parser


def build_handlers(args=None) -> list[option.OptionHandler]:
    """Parse command-line ``args`` and build every option handler from them."""
    ns = _build_parser().parse_args(None if args is None else list(args))
    return [
        EasyOption(
            server=ns.server,
            client=ns.client,
            password=ns.password,
            local=ns.local,
            remote=ns.remote,
            cert=ns.cert,
            key=ns.key,
        ),
        StdinOption(format=ns.stdin_format, suppress_hint=ns.stdin_suppress_hint),
        ConfigFileOption(ns.config),
    ]


def main(argv=None) -> int:
    """Run the highest-priority handler that accepts the given options."""
    for handler in build_handlers(argv):
        option.register_handler(handler)
    while True:
        try:
            handler = option.pop_option_handler()
        except TrojanError:
            log.fatal("invalid options")
            return 1
        try:
            handler.handle()
        except TrojanError as exc:
            log.debug("option", handler.name(), "not applied:", exc)
            continue
        return 0


if __name__ == "__main__":
    sys.exit(main())