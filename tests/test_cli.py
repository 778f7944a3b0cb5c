import io
import sys

import pytest

from trojanproxy import config, proxy
from trojanproxy.cli import build_handlers, main

_started = []


class _FakeProxy:
    def __init__(self, ctx):
        self.ctx = ctx

    def run(self):
        _started.append(self.ctx)


proxy.register_proxy_creator("CLITEST", _FakeProxy)


@pytest.fixture(autouse=True)
def _clear_started():
    _started.clear()
    yield
    _started.clear()


def _by_name(handlers):
    return {handler.name(): handler for handler in handlers}


def test_build_handlers_defaults():
    handlers = _by_name(build_handlers([]))
    assert set(handlers) == {"easy", "PROXY", "PROXY_STDIN"}
    assert handlers["PROXY"].path == ""
    assert handlers["PROXY_STDIN"].format == "disabled"
    assert handlers["easy"].key == "server.key"
    assert handlers["easy"].cert == "server.crt"
    assert handlers["easy"].client is False


def test_build_handlers_priorities_order():
    priorities = sorted(handler.priority() for handler in build_handlers([]))
    assert priorities == [-1, 0, 50]


def test_build_handlers_easy_flags():
    password = "password"
    handlers = _by_name(build_handlers(["-client", "-password", password, "-local", "127.0.0.1:1"]))
    easy = handlers["easy"]
    assert easy.client is True
    assert easy.server is False
    assert easy.password == password
    assert easy.local == "127.0.0.1:1"


def test_build_handlers_double_dash():
    handlers = _by_name(build_handlers(["--config", "a.json", "--stdin-suppress-hint"]))
    assert handlers["PROXY"].path == "a.json"
    assert handlers["PROXY_STDIN"].suppress_hint is True


def test_unknown_option_exits():
    with pytest.raises(SystemExit) as info:
        build_handlers(["-bogus"])
    assert info.value.code == 2


def test_main_unsupported_config_is_fatal(tmp_path):
    path = tmp_path / "c.txt"
    path.write_text("x")
    with pytest.raises(SystemExit) as info:
        main(["-config", str(path)])
    assert info.value.code == 1


def test_main_config_file_runs_proxy(tmp_path):
    path = tmp_path / "c.json"
    path.write_text('{"run_type": "clitest"}')
    with pytest.raises(SystemExit):
        main(["-config", str(path)])
    assert len(_started) == 1
    assert config.from_context(_started[0], "PROXY").run_type == "clitest"


def test_main_stdin_json(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b'{"run_type": "clitest"}')))
    assert main(["-stdin-format", "json"]) == 0
    assert len(_started) == 1
    assert "Reading JSON configuration from stdin." in capsys.readouterr().out


def test_main_easy_without_password_is_fatal():
    with pytest.raises(SystemExit) as info:
        main(["-client"])
    assert info.value.code == 1
    assert _started == []