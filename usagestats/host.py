"""Host application collaborators queried by the snapshot builder.

The host owns the real object model. This module only pins down the shape
the builder reads, plus StaticHost, an in-memory host used by the CLI and
by tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol


def json_safe_class_name(cls: type | str) -> str:
    """Dotted class name with '.' replaced by '-', usable as a JSON key."""
    if isinstance(cls, str):
        name = cls
    else:
        name = f"{cls.__module__}.{cls.__qualname__}"
    return name.replace(".", "-")


@dataclass
class Computer:
    name: str
    num_executors: int = 0
    architecture: str | None = None
    is_master: bool = False


@dataclass
class Plugin:
    short_name: str
    version: str
    active: bool = True


@dataclass(eq=False)
class ItemDescriptor:
    """A registered workload type. Items are matched by identity, not equality."""
    json_safe_class_name: str


@dataclass
class Item:
    name: str
    descriptor: ItemDescriptor


class Host(Protocol):
    secret_key: bytes
    version: str
    usage_statistics_collected: bool

    def computers(self) -> Iterable[Computer]: ...

    def plugins(self) -> Iterable[Plugin]: ...

    def descriptors(self) -> Iterable[ItemDescriptor]: ...

    def items(self) -> Iterable[Item]: ...


@dataclass
class StaticHost:
    """Fixed inventory host. Lists are returned in insertion order."""
    secret_key: bytes
    version: str
    computer_list: list[Computer] = field(default_factory=list)
    plugin_list: list[Plugin] = field(default_factory=list)
    descriptor_list: list[ItemDescriptor] = field(default_factory=list)
    item_list: list[Item] = field(default_factory=list)
    usage_statistics_collected: bool = True

    def computers(self) -> list[Computer]:
        return list(self.computer_list)

    def plugins(self) -> list[Plugin]:
        return list(self.plugin_list)

    def descriptors(self) -> list[ItemDescriptor]:
        return list(self.descriptor_list)

    def items(self) -> list[Item]:
        return list(self.item_list)

    def descriptor(self, json_id: str) -> ItemDescriptor | None:
        for d in self.descriptor_list:
            if d.json_safe_class_name == json_id:
                return d
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StaticHost":
        """Build a host from an inventory mapping.

        Expected keys: secret, version, nodes, plugins, descriptors, items,
        and optionally usage_statistics (bool, default true).
        Raises ValueError on malformed input.
        """
        if not isinstance(data, dict):
            raise ValueError("inventory must be a JSON object")
        secret = data.get("secret")
        if not isinstance(secret, str) or not secret:
            raise ValueError("inventory 'secret' must be a non-empty string")

        computers = []
        for i, n in enumerate(_entries(data, "nodes")):
            if "name" not in n:
                raise ValueError(f"node #{i} has no name")
            executors = n.get("executors", 0)
            # bool is an int subclass; reject it too
            if not isinstance(executors, int) or isinstance(executors, bool) or executors < 0:
                raise ValueError(f"node #{i} executors must be a non-negative integer, got {executors!r}")
            computers.append(Computer(
                name=n["name"],
                num_executors=executors,
                architecture=n.get("os"),
                is_master=_flag(n, "master", False, f"node #{i}"),
            ))
        if sum(1 for c in computers if c.is_master) > 1:
            raise ValueError("inventory declares more than one master node")

        plugins = []
        for i, p in enumerate(_entries(data, "plugins")):
            if "name" not in p:
                raise ValueError(f"plugin #{i} has no name")
            plugins.append(Plugin(
                short_name=p["name"],
                version=str(p.get("version", "")),
                active=_flag(p, "active", True, f"plugin #{i}"),
            ))

        descriptors = data.get("descriptors", [])
        if not isinstance(descriptors, list) or not all(isinstance(d, str) for d in descriptors):
            raise ValueError("inventory 'descriptors' must be a list of strings")

        host = cls(
            secret_key=secret.encode("utf-8"),
            version=str(data.get("version", "")),
            computer_list=computers,
            plugin_list=plugins,
            descriptor_list=[ItemDescriptor(json_safe_class_name(d)) for d in descriptors],
            usage_statistics_collected=_flag(data, "usage_statistics", True, "inventory"),
        )

        for i, it in enumerate(_entries(data, "items")):
            type_name = it.get("type", "")
            descriptor = host.descriptor(json_safe_class_name(str(type_name)))
            if descriptor is None:
                raise ValueError(f"item #{i} references unknown descriptor {type_name!r}")
            host.item_list.append(Item(name=it.get("name", f"item-{i}"), descriptor=descriptor))
        return host


def _entries(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """The list under key, each entry checked to be a JSON object."""
    entries = data.get(key, [])
    if not isinstance(entries, list):
        raise ValueError(f"inventory {key!r} must be a list")
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"inventory {key!r} entry #{i} must be an object, got {entry!r}")
    return entries


def _flag(entry: dict[str, Any], key: str, default: bool, where: str) -> bool:
    value = entry.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{where} {key!r} must be true or false, got {value!r}")
    return value
