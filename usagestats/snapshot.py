"""Assemble a Snapshot from the host's current state.

Pure reads. Nothing here is synchronized across calls: a plugin disabled
halfway through a build may or may not show up, and that is acceptable.
"""
from __future__ import annotations

import hashlib
import logging
import platform
from typing import Callable

from usagestats.host import Computer, Host
from usagestats.models import NodeInfo, PluginInfo, Snapshot

logger = logging.getLogger(__name__)


def install_digest(secret: bytes) -> str:
    """One-way identity for an installation. Stable across reports."""
    return hashlib.sha256(secret).hexdigest()


def _default_architecture(computer: Computer) -> str | None:
    return computer.architecture


class SnapshotBuilder:
    """Builds Snapshots from a Host.

    Args:
        host: the host application object model.
        architecture_of: per-node platform descriptor lookup. May return
            None or raise; either way the node is reported with os=None.
        runtime_vendor / runtime_version: reported on the master node.
            Default to the running interpreter.
    """

    def __init__(
        self,
        host: Host,
        architecture_of: Callable[[Computer], str | None] | None = None,
        runtime_vendor: str | None = None,
        runtime_version: str | None = None,
    ) -> None:
        self.host = host
        self.architecture_of = architecture_of or _default_architecture
        self.runtime_vendor = runtime_vendor or platform.python_implementation()
        self.runtime_version = runtime_version or platform.python_version()

    def build(self) -> Snapshot:
        h = self.host
        return Snapshot(
            install=install_digest(h.secret_key),
            version=h.version,
            nodes=self._nodes(),
            plugins=self._plugins(),
            jobs=self._jobs(),
        )

    def _nodes(self) -> list[NodeInfo]:
        nodes = []
        for c in self.host.computers():
            n = NodeInfo(executors=c.num_executors, os=self._architecture(c))
            if c.is_master:
                n.master = True
                n.jvm_vendor = self.runtime_vendor
                n.jvm_version = self.runtime_version
            nodes.append(n)
        return nodes

    def _architecture(self, computer: Computer) -> str | None:
        try:
            return self.architecture_of(computer)
        except Exception as e:
            logger.debug("Platform lookup failed for %s: %s", computer.name, e)
            return None

    def _plugins(self) -> list[PluginInfo]:
        plugins = []
        for p in self.host.plugins():
            if not p.active:
                # treat disabled plugins as if they are uninstalled
                logger.debug("Skipping inactive plugin %s", p.short_name)
                continue
            plugins.append(PluginInfo(name=p.short_name, version=p.version))
        return plugins

    def _jobs(self) -> dict[str, int]:
        items = list(self.host.items())
        jobs: dict[str, int] = {}
        for d in self.host.descriptors():
            jobs[d.json_safe_class_name] = sum(1 for item in items if item.descriptor is d)
        return jobs
