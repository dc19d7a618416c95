"""Tests for snapshot assembly."""
import hashlib

from usagestats.host import Computer, Item, ItemDescriptor, Plugin, StaticHost, json_safe_class_name
from usagestats.models import NodeInfo, PluginInfo, Snapshot
from usagestats.snapshot import SnapshotBuilder, install_digest


def test_install_identity_is_digest_of_secret(host):
    snap = SnapshotBuilder(host).build()
    assert snap.install == hashlib.sha256(b"installation-secret").hexdigest()
    assert "installation-secret" not in snap.install
    assert snap.install == install_digest(host.secret_key)


def test_stat_marker_and_version(host):
    snap = SnapshotBuilder(host).build()
    assert snap.stat == 1
    assert snap.version == "1.2.3"


def test_master_node_carries_runtime_info(host):
    snap = SnapshotBuilder(host, runtime_vendor="Acme", runtime_version="1.0").build()
    master, agent = snap.nodes
    assert master == NodeInfo(executors=2, os="linux", master=True,
                              jvm_vendor="Acme", jvm_version="1.0")
    assert agent == NodeInfo(executors=4, os="windows")
    assert "master" not in agent.to_dict()
    assert "jvm-vendor" not in agent.to_dict()


def test_runtime_defaults_to_running_interpreter(host):
    import platform

    snap = SnapshotBuilder(host).build()
    assert snap.nodes[0].jvm_vendor == platform.python_implementation()
    assert snap.nodes[0].jvm_version == platform.python_version()


def test_platform_lookup_failure_gives_null_os(host):
    def lookup(computer):
        if computer.name == "agent-1":
            raise RuntimeError("monitor not ready")
        return computer.architecture

    snap = SnapshotBuilder(host, architecture_of=lookup).build()
    assert snap.nodes[0].os == "linux"
    assert snap.nodes[1].os is None
    assert snap.nodes[1].to_dict() == {"executors": 4, "os": None}


def test_inactive_plugins_are_excluded(host):
    snap = SnapshotBuilder(host).build()
    assert snap.plugins == [PluginInfo("git", "4.1")]


def test_reactivated_plugin_reappears(host):
    builder = SnapshotBuilder(host)
    assert "ldap" not in [p.name for p in builder.build().plugins]
    host.plugin_list[1].active = True
    assert [p.name for p in builder.build().plugins] == ["git", "ldap"]


def test_jobs_cover_every_descriptor_including_zero(host):
    snap = SnapshotBuilder(host).build()
    assert snap.jobs == {"freeStyleProject": 3, "matrixProject": 0}


def test_jobs_match_descriptor_by_identity():
    """An equal-looking but distinct descriptor does not count."""
    registered = ItemDescriptor("freeStyleProject")
    stray = ItemDescriptor("freeStyleProject")
    h = StaticHost(
        secret_key=b"s", version="1",
        descriptor_list=[registered],
        item_list=[Item("a", registered), Item("b", stray)],
    )
    assert SnapshotBuilder(h).build().jobs == {"freeStyleProject": 1}


def test_empty_host():
    snap = SnapshotBuilder(StaticHost(secret_key=b"s", version="1")).build()
    assert snap.to_dict() == {
        "stat": 1,
        "install": hashlib.sha256(b"s").hexdigest(),
        "version": "1",
        "nodes": [],
        "plugins": [],
        "jobs": {},
    }


def test_wire_key_order():
    snap = Snapshot(
        install="x", version="1",
        nodes=[NodeInfo(executors=1, os="linux", master=True, jvm_vendor="V", jvm_version="9")],
    )
    d = snap.to_dict()
    assert list(d) == ["stat", "install", "version", "nodes", "plugins", "jobs"]
    assert list(d["nodes"][0]) == ["master", "jvm-vendor", "jvm-version", "executors", "os"]


def test_json_safe_class_name():
    class Project:
        pass

    assert json_safe_class_name("hudson.model.FreeStyleProject") == "hudson-model-FreeStyleProject"
    assert "." not in json_safe_class_name(Project)


def test_static_host_from_dict():
    h = StaticHost.from_dict({
        "secret": "abc",
        "version": "2.0",
        "nodes": [{"name": "master", "master": True, "executors": 2, "os": "linux"}],
        "plugins": [{"name": "git", "version": "4.1"}, {"name": "old", "version": "1", "active": False}],
        "descriptors": ["freeStyleProject", "matrixProject"],
        "items": [{"name": "a", "type": "freeStyleProject"}],
    })
    snap = SnapshotBuilder(h).build()
    assert snap.jobs == {"freeStyleProject": 1, "matrixProject": 0}
    assert [p.name for p in snap.plugins] == ["git"]
    assert snap.nodes[0].master is True
    assert h.descriptor("matrixProject") is h.descriptor_list[1]


def test_static_host_from_dict_rejects_unknown_descriptor():
    import pytest

    with pytest.raises(ValueError, match="unknown descriptor"):
        StaticHost.from_dict({"secret": "abc", "items": [{"type": "nope"}]})


def test_static_host_from_dict_requires_secret():
    import pytest

    with pytest.raises(ValueError):
        StaticHost.from_dict({"version": "1"})


def _inventory(**overrides):
    data = {
        "secret": "abc",
        "nodes": [{"name": "master", "master": True, "executors": 2}],
        "plugins": [{"name": "git", "version": "4.1"}],
        "descriptors": ["freeStyleProject"],
        "items": [{"name": "a", "type": "freeStyleProject"}],
    }
    data.update(overrides)
    return data


def test_static_host_items_resolve_to_registered_descriptor():
    h = StaticHost.from_dict(_inventory())
    assert h.item_list[0].descriptor is h.descriptor("freeStyleProject")


def test_static_host_from_dict_rejects_bad_shapes():
    import pytest

    bad = [
        _inventory(nodes=[5]),
        _inventory(nodes={"name": "master"}),
        _inventory(plugins=["git"]),
        _inventory(items=[None]),
        _inventory(descriptors=[1]),
        _inventory(nodes=[{"name": "m", "executors": None}]),
        _inventory(nodes=[{"name": "m", "executors": -3}]),
        _inventory(nodes=[{"name": "m", "executors": "2"}]),
        _inventory(nodes=[{"name": "m", "executors": True}]),
    ]
    for data in bad:
        with pytest.raises(ValueError):
            StaticHost.from_dict(data)


def test_static_host_from_dict_requires_real_booleans():
    import pytest

    with pytest.raises(ValueError, match="active"):
        StaticHost.from_dict(_inventory(plugins=[{"name": "git", "version": "1", "active": "false"}]))
    with pytest.raises(ValueError, match="usage_statistics"):
        StaticHost.from_dict(_inventory(usage_statistics="false"))
    with pytest.raises(ValueError, match="master"):
        StaticHost.from_dict(_inventory(nodes=[{"name": "m", "master": "yes"}]))

    h = StaticHost.from_dict(_inventory(
        plugins=[{"name": "git", "version": "1", "active": False}],
        usage_statistics=False,
    ))
    assert h.plugin_list[0].active is False
    assert h.usage_statistics_collected is False
