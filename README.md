# trojanproxy

The core of a trojan-protocol proxy, as a Python library with a small
command. It provides:

- configuration parsing from JSON or YAML into registered dataclasses,
  carried in a cancellable `Context` (`trojanproxy.config`);
- a registry of command-line option handlers tried in priority order
  (`trojanproxy.option`) and the `trojanproxy` command built on it
  (`trojanproxy.cli`);
- a relay core, `Proxy`, that copies streams and packets from inbound
  servers to an outbound client, and a registry of proxy creators keyed by
  run type (`trojanproxy.proxy`);
- a redirector that relays unwanted inbound sockets to a fallback address
  (`trojanproxy.redirector`);
- a traffic recorder that broadcasts connection records to subscribers
  (`trojanproxy.recorder`);
- a decoder that extracts one entry from a `geoip.dat` / `geosite.dat` list
  file (`trojanproxy.geodata`);
- helpers: `RewindReader`, `RewindConn`, `StickyWriter`
  (`trojanproxy.rewind`), `Notifier` (`trojanproxy.notifier`), hashing,
  asset paths, traffic formatting, free-port picking and HTTP fetching
  (`trojanproxy.common`);
- logging: a replaceable process-wide logger (`trojanproxy.log`), a
  coloured, timestamped `ColorLogger` (`trojanproxy.golog.logger`) and a
  plain `SimpleLogger` writing to standard error (`trojanproxy.simplelog`).

## What it does not do

No tunnel protocols are included: there is no transport, TLS, WebSocket,
Shadowsocks, trojan, mux, SOCKS or HTTP layer, and no proxy creator is
registered for any run type. Out of the box, every configuration therefore
ends with `unknown proxy type: ...`; a proxy runs only after your code has
registered a creator with `trojanproxy.proxy.register_proxy_creator`.
There is no API (statistics/user management) server either:
`trojanproxy.api` is only a registry in which such services can be placed.
Geodata entries are returned as raw serialized bytes; they are not parsed
into CIDR or domain lists.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

Installing the package provides the `trojanproxy` command. Every flag can
be written with one or two dashes (`-config` or `--config`). The command
installs the coloured logger and tries, from the highest priority down:
easy mode, standard input, then a configuration file.

Run from a configuration file (`.json`, `.yaml` or `.yml`):

```
trojanproxy --config config.json
```

If no file is given, `config.json`, `config.yml` and `config.yaml` in the
current directory are tried in that order.

Read the configuration from standard input instead (`json` or `yaml`;
`--stdin-suppress-hint` drops the banner printed first):

```
trojanproxy --stdin-format json < config.json
```

Easy mode builds a JSON configuration from a few flags, logs it, and
starts it without a file:

```
trojanproxy --client --password password --local 127.0.0.1:1080 --remote example.com:443
trojanproxy --server --password password --local 0.0.0.0:443 --remote 127.0.0.1:80 --cert server.crt --key server.key
```

A client's local address defaults to `127.0.0.1:1080`; a server defaults
to `0.0.0.0:443` locally and `127.0.0.1:80` remotely; `--cert` and `--key`
default to `server.crt` and `server.key`. An empty password is fatal. The
same configurations are available as `trojanproxy.easy.client_config` and
`trojanproxy.easy.server_config`.

As said above, each of these ends with "unknown proxy type" unless a proxy
creator for `client` or `server` has been registered.

## Configuration

The proxy section understands these keys:

| JSON key            | YAML key            | Default |
|---------------------|---------------------|---------|
| `run_type`          | `run-type`          |         |
| `log_level`         | `log-level`         | `1`     |
| `log_file`          | `log-file`          |         |
| `relay_buffer_size` | `relay_buffer_size` | `4096`  |

Log levels (`trojanproxy.log.LogLevel`): 0 all, 1 info, 2 warn, 3 error,
4 fatal, 5 off. When `log_file` is set, log output is appended to it.

Your own sections are added by registering a factory of a dataclass; field
metadata names the JSON and YAML keys:

```python
from dataclasses import dataclass, field
from trojanproxy import config

@dataclass
class MyConfig:
    enabled: bool = field(default=False, metadata={"json": "enabled", "yaml": "enabled"})

config.register_config_creator("MINE", MyConfig)
ctx = config.with_json_config(config.Context(), b'{"enabled": true}')
assert config.from_context(ctx, "MINE").enabled is True
```

Malformed JSON or YAML, or a value of the wrong type, raises
`trojanproxy.errors.TrojanError`.

## Running a proxy from library code

```python
from trojanproxy import proxy

def make_client(ctx):
    return proxy.Proxy(ctx, sources=my_servers, sink=my_client)

proxy.register_proxy_creator("CLIENT", make_client)
instance = proxy.new_proxy_from_config_data(b'{"run_type": "client"}', True)
instance.run()      # blocks until instance.close() cancels the context
```

Sources provide `accept_conn()`, `accept_packet()` and `close()`; the sink
provides `dial_conn(address)`, `dial_packet()` and `close()`. Stream
connections have `metadata.address`, `read(size)`, `write(data)` and
`close()`; packet connections have `read_with_metadata(size)`,
`write_with_metadata(data, metadata)` and `close()`.

## Other helpers

```python
from trojanproxy.common import sha224_string, human_friendly_traffic
from trojanproxy.geodata import decode, CodeNotFoundError

print(sha224_string("password"))                 # hex SHA-224
print(human_friendly_traffic(5 * 1024 * 1024))   # "5.00 MiB"

try:
    entry = decode("geoip.dat", "private")       # raw bytes of the entry
except CodeNotFoundError:
    entry = None
```

`trojanproxy.common.get_asset_location` resolves a relative asset name in
the directory given by the `TROJAN_GO_LOCATION_ASSET` environment
variable, or else beside the running program.