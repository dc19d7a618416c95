"""The usage statistics component a page-rendering layer holds.

Typical use from a renderer:

    stats = UsageStatistics(host)
    if stats.is_due():
        payload = stats.get_stat_data()
        # embed payload in the page
"""
from __future__ import annotations

import logging
from typing import Callable

from usagestats.config import UsageStatsConfig
from usagestats.gate import ReportingGate
from usagestats.host import Host
from usagestats.keys import DEFAULT_KEY_IMAGE, KeyMaterial
from usagestats.pipeline import encode
from usagestats.snapshot import SnapshotBuilder

logger = logging.getLogger(__name__)


class UsageStatistics:
    """Gate + snapshot builder + key + encoder for one host.

    Collection is allowed only when both the host flag and the optional
    config say so.
    """

    def __init__(
        self,
        host: Host,
        key_image: str = DEFAULT_KEY_IMAGE,
        config: UsageStatsConfig | None = None,
        clock: Callable[[], int] | None = None,
        builder: SnapshotBuilder | None = None,
    ) -> None:
        self.host = host
        self.config = config
        self.keys = KeyMaterial(key_image)
        self.builder = builder or SnapshotBuilder(host)
        self.gate = ReportingGate(self.is_collecting, clock=clock)

    def is_collecting(self) -> bool:
        if self.config is not None and not self.config():
            return False
        return bool(self.host.usage_statistics_collected)

    def is_due(self) -> bool:
        """True if it's time to ask the page to send usage stats."""
        return self.gate.is_due()

    def get_stat_data(self) -> str:
        """The encrypted usage stat data, ready to embed in a page."""
        snapshot = self.builder.build()
        logger.debug(
            "Built usage snapshot: %d nodes, %d plugins, %d job types",
            len(snapshot.nodes), len(snapshot.plugins), len(snapshot.jobs),
        )
        return encode(snapshot, self.keys.get_encrypt_cipher())
