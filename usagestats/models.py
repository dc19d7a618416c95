from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STAT_MARKER = 1


@dataclass
class NodeInfo:
    """One compute node. Only the master carries runtime vendor/version."""
    executors: int
    os: str | None = None
    master: bool = False
    jvm_vendor: str | None = None
    jvm_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        n: dict[str, Any] = {}
        if self.master:
            n["master"] = True
            n["jvm-vendor"] = self.jvm_vendor
            n["jvm-version"] = self.jvm_version
        n["executors"] = self.executors
        n["os"] = self.os
        return n


@dataclass
class PluginInfo:
    name: str
    version: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


@dataclass
class Snapshot:
    """A point-in-time usage record. Built fresh per reporting attempt.

    to_dict() is the wire form; its key order is part of the payload format.
    """
    install: str
    version: str
    nodes: list[NodeInfo] = field(default_factory=list)
    plugins: list[PluginInfo] = field(default_factory=list)
    jobs: dict[str, int] = field(default_factory=dict)
    stat: int = STAT_MARKER

    def to_dict(self) -> dict[str, Any]:
        return {
            "stat": self.stat,
            "install": self.install,
            "version": self.version,
            "nodes": [n.to_dict() for n in self.nodes],
            "plugins": [p.to_dict() for p in self.plugins],
            "jobs": dict(self.jobs),
        }
