import pytest

from trojanproxy import api
from trojanproxy.api import register_handler, run_service
from trojanproxy.config import Context
from trojanproxy.errors import TrojanError


@pytest.fixture(autouse=True)
def isolated_handlers():
    saved = dict(api._handlers)
    api._handlers.clear()
    yield
    api._handlers.clear()
    api._handlers.update(saved)


def test_runs_registered_handler_with_arguments():
    calls = []

    def handler(ctx, auth):
        calls.append((ctx, auth))
        return "done"

    register_handler("TROJAN_SERVER", handler)
    ctx = Context()
    auth = object()
    assert run_service(ctx, "TROJAN_SERVER", auth) == "done"
    assert calls == [(ctx, auth)]


def test_unknown_service_returns_none():
    register_handler("TROJAN_CLIENT", lambda ctx, auth: "client")
    assert run_service(Context(), "TROJAN_SERVER", None) is None


def test_handler_errors_propagate():
    def failing(ctx, auth):
        raise TrojanError("api failed")

    register_handler("TROJAN_CLIENT", failing)
    with pytest.raises(TrojanError, match="api failed"):
        run_service(Context(), "TROJAN_CLIENT", None)


def test_later_registration_replaces_earlier():
    register_handler("X", lambda ctx, auth: 1)
    register_handler("X", lambda ctx, auth: 2)
    assert run_service(Context(), "X", None) == 2