"""Cancellable value contexts and JSON/YAML config parsing into registered types."""

from __future__ import annotations

import dataclasses
import json
import threading
import types
import typing
from functools import lru_cache
from typing import Any, Callable, Optional, Union

import yaml

from .errors import TrojanError

_SUFFIX = "_CONFIG"
_MISSING = object()


class _CancelScope:
    def __init__(self, parent: "_CancelScope | None" = None) -> None:
        self.event = threading.Event()
        self._lock = threading.Lock()
        self._children: list[_CancelScope] = []
        self._parent = parent
        if parent is not None:
            parent._add(self)

    def _add(self, child: "_CancelScope") -> None:
        with self._lock:
            if not self.event.is_set():
                self._children.append(child)
                return
        child.cancel()

    def _remove(self, child: "_CancelScope") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def cancel(self) -> None:
        with self._lock:
            if self.event.is_set():
                return
            self.event.set()
            children, self._children = self._children, []
        for child in children:
            child.cancel()
        if self._parent is not None:
            self._parent._remove(self)


class Context:
    """An immutable chain of key/value pairs with cancellation."""

    def __init__(self) -> None:
        self._parent: Context | None = None
        self._key: Any = None
        self._value: Any = None
        self._has_value = False
        self._scope = _CancelScope()

    def _derive(self, scope: _CancelScope) -> "Context":
        child = Context.__new__(Context)
        child._parent = self
        child._key = None
        child._value = None
        child._has_value = False
        child._scope = scope
        return child

    def with_value(self, key, value) -> "Context":
        """Return a child context that maps ``key`` to ``value``."""
        child = self._derive(self._scope)
        child._key = key
        child._value = value
        child._has_value = True
        return child

    def value(self, key):
        """Return the nearest value stored under ``key``, or None."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._has_value and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None

    def with_cancel(self) -> "Context":
        """Return a child that can be cancelled without affecting this context."""
        return self._derive(_CancelScope(self._scope))

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._scope.cancel()

    def done(self) -> threading.Event:
        """Event that is set once the context is cancelled."""
        return self._scope.event


_creators: dict[str, Callable[[], Any]] = {}


def register_config_creator(name: str, creator: Callable[[], Any]) -> None:
    """Register a factory of the default config object for module ``name``."""
    _creators[name + _SUFFIX] = creator


@dataclasses.dataclass(frozen=True)
class _Scalar:
    text: str
    value: Any


def _is_null(value) -> bool:
    return value is None or (isinstance(value, _Scalar) and value.value is None)


def _unwrap(tree):
    if isinstance(tree, _Scalar):
        return tree.value
    if isinstance(tree, list):
        return [_unwrap(item) for item in tree]
    if isinstance(tree, dict):
        return {key: _unwrap(item) for key, item in tree.items()}
    return tree


def _yaml_key(node, constructor) -> Any:
    if isinstance(node, yaml.ScalarNode):
        return node.value
    return str(constructor.construct_object(node, deep=True))


def _yaml_tree(node, constructor):
    if isinstance(node, yaml.ScalarNode):
        return _Scalar(node.value, constructor.construct_object(node))
    if isinstance(node, yaml.SequenceNode):
        return [_yaml_tree(item, constructor) for item in node.value]
    return {
        _yaml_key(key, constructor): _yaml_tree(item, constructor)
        for key, item in node.value
    }


def _load_json(data):
    try:
        return json.loads(data)
    except (ValueError, TypeError) as exc:
        raise TrojanError("invalid JSON config").base(exc) from exc


def _load_yaml(data):
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    try:
        node = yaml.compose(data, Loader=yaml.SafeLoader)
        if node is None:
            return {}
        return _yaml_tree(node, yaml.SafeLoader(""))
    except yaml.YAMLError as exc:
        raise TrojanError("invalid YAML config").base(exc) from exc


_NAMED_TYPES = {
    "str": str,
    "int": int,
    "bool": bool,
    "float": float,
    "bytes": bytes,
    "Any": Any,
    "object": object,
    "None": type(None),
    "NoneType": type(None),
    "list": list,
    "List": list,
    "dict": dict,
    "Dict": dict,
}


def _split_top(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` outside of brackets."""
    parts, depth, current = [], 0, []
    for char in text:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _parse_hint(text: str, known: dict):
    """Turn a textual annotation into a type, using ``known`` for class names."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        text = text[1:-1].strip()
    alternatives = _split_top(text, "|")
    if len(alternatives) > 1:
        return Union[tuple(_parse_hint(part, known) for part in alternatives)]
    if "[" in text and text.endswith("]"):
        head, inner = text.split("[", 1)
        head = head.strip().rsplit(".", 1)[-1]
        params = [_parse_hint(part, known) for part in _split_top(inner[:-1], ",")]
        if head == "Optional" and params:
            return Optional[params[0]]
        if head == "Union" and params:
            return Union[tuple(params)]
        if head in ("list", "List", "Sequence") and params:
            return list[params[0]]
        if head in ("dict", "Dict", "Mapping") and len(params) == 2:
            return dict[params[0], params[1]]
        return Any
    name = text.rsplit(".", 1)[-1]
    if name in _NAMED_TYPES:
        return _NAMED_TYPES[name]
    return known.get(name, Any)


@lru_cache(maxsize=None)
def _hints(cls) -> dict:
    known = {cls.__name__: cls}
    fields = dataclasses.fields(cls)
    for field in fields:
        if isinstance(field.type, type) and dataclasses.is_dataclass(field.type):
            known[field.type.__name__] = field.type
        factory = field.default_factory
        if isinstance(factory, type) and dataclasses.is_dataclass(factory):
            known[factory.__name__] = factory
        default = field.default
        if dataclasses.is_dataclass(default) and not isinstance(default, type):
            known[type(default).__name__] = type(default)
    return {
        field.name: _parse_hint(field.type, known) if isinstance(field.type, str) else field.type
        for field in fields
    }


def _mismatch(value, hint) -> TrojanError:
    raw = _unwrap(value)
    name = getattr(hint, "__name__", str(hint))
    return TrojanError(f"cannot decode {type(raw).__name__} {raw!r} into {name}")


def _coerce(value, hint, current, fmt: str):
    if hint is Any or hint is object:
        if (
            dataclasses.is_dataclass(current)
            and not isinstance(current, type)
            and isinstance(value, dict)
        ):
            _populate(current, value, fmt)
            return current
        return _unwrap(value)
    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        if _is_null(value):
            return None
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return _coerce(value, args[0], current, fmt)
        return _unwrap(value)
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        if not isinstance(value, dict):
            raise _mismatch(value, hint)
        target = current if isinstance(current, hint) else hint()
        _populate(target, value, fmt)
        return target
    if origin is list or hint is list:
        if not isinstance(value, list):
            raise _mismatch(value, hint)
        args = typing.get_args(hint)
        item_hint = args[0] if args else Any
        return [_coerce(item, item_hint, None, fmt) for item in value]
    if origin is dict or hint is dict:
        if not isinstance(value, dict):
            raise _mismatch(value, hint)
        args = typing.get_args(hint)
        item_hint = args[1] if len(args) == 2 else Any
        return {key: _coerce(item, item_hint, None, fmt) for key, item in value.items()}
    raw = value.value if isinstance(value, _Scalar) else value
    if hint is str:
        if isinstance(raw, str):
            return raw
        if isinstance(value, _Scalar):
            return value.text
        raise _mismatch(value, hint)
    if hint is bool:
        if isinstance(raw, bool):
            return raw
        raise _mismatch(value, hint)
    if hint is int:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        raise _mismatch(value, hint)
    if hint is float:
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
        raise _mismatch(value, hint)
    return _unwrap(value)


def _populate(obj, tree: dict, fmt: str) -> None:
    hints = _hints(type(obj))
    folded = {str(key).lower(): item for key, item in tree.items()} if fmt == "json" else {}
    for field in dataclasses.fields(obj):
        key = field.metadata.get(fmt, field.name)
        value = tree.get(key, _MISSING)
        if value is _MISSING and fmt == "json":
            value = folded.get(key.lower(), _MISSING)
        if value is _MISSING or _is_null(value):
            continue
        current = getattr(obj, field.name)
        setattr(obj, field.name, _coerce(value, hints.get(field.name, Any), current, fmt))


def _decode(target, tree, fmt: str):
    if dataclasses.is_dataclass(target) and not isinstance(target, type):
        if not isinstance(tree, dict):
            raise _mismatch(tree, type(target))
        _populate(target, tree, fmt)
        return target
    if isinstance(target, dict):
        if not isinstance(tree, dict):
            raise _mismatch(tree, dict)
        merged = dict(target)
        merged.update(_unwrap(tree))
        return merged
    raise TrojanError(f"unsupported config type {type(target).__name__}")


def _with_tree(ctx: Context, tree, fmt: str) -> Context:
    configs = {name: _decode(creator(), tree, fmt) for name, creator in _creators.items()}
    for name, cfg in configs.items():
        ctx = ctx.with_value(name, cfg)
    return ctx


def with_json_config(ctx: Context, data) -> Context:
    """Parse JSON ``data`` into every registered config and attach them to ``ctx``."""
    return _with_tree(ctx, _load_json(data), "json")


def with_yaml_config(ctx: Context, data) -> Context:
    """Parse YAML ``data`` into every registered config and attach them to ``ctx``."""
    return _with_tree(ctx, _load_yaml(data), "yaml")


def with_config(ctx: Context, name: str, cfg) -> Context:
    """Attach ``cfg`` as the config of module ``name``."""
    return ctx.with_value(name + _SUFFIX, cfg)


def from_context(ctx: Context, name: str):
    """Return the config of module ``name`` stored in ``ctx``, or None."""
    return ctx.value(name + _SUFFIX)