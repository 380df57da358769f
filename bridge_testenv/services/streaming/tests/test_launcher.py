"""Tests for StreamingCluster with faked processes and clients."""

from __future__ import annotations

import ssl
from pathlib import Path

import pytest

from bridge_testenv.config.context import HarnessConfig
from bridge_testenv.config.env_loader import PROJECT_ROOT
from bridge_testenv.errors import ConnectivityError, LifecycleError
from bridge_testenv.services.logger.memory_logger import MemoryLogger
from bridge_testenv.services.streaming.launcher import StreamingCluster
from bridge_testenv.services.tls.material import TLSMaterial

from bridge_testenv.services.streaming.tests.fakes import FakeStreamingBackend

CERTS = TLSMaterial.from_directory(PROJECT_ROOT / "resources" / "certs")


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeStreamingBackend:
    return FakeStreamingBackend().install(monkeypatch)


def _cluster(tls: TLSMaterial | None = None) -> StreamingCluster:
    config = HarnessConfig(overrides={
        "NATS_SERVER_BIN": "/opt/nats-server",
        "NATS_STREAMING_SERVER_BIN": "/opt/nats-streaming-server",
    })
    return StreamingCluster(config, MemoryLogger(), tls=tls)


def _conf_text(backend: FakeStreamingBackend) -> str:
    cmd = backend.process("nats-server").cmd
    return Path(cmd[cmd.index("-c") + 1]).read_text()


async def test_plain_start_records_url_and_identities(backend):
    cluster = _cluster()
    await cluster.start(4333, "cluster", "client", "bridge-client")

    assert cluster.url == "nats://localhost:4333"
    assert cluster.port == 4333
    assert (cluster.cluster_id, cluster.client_id, cluster.bridge_client_id) == (
        "cluster", "client", "bridge-client",
    )
    assert backend.events == [
        "launch nats-server", "launch nats-streaming-server", "connect nats", "connect stan",
    ]
    assert backend.nats_connects == [("nats://localhost:4333", None)]
    assert backend.stan_connects == [("cluster", "client")]

    conf = _conf_text(backend)
    assert "port: 4333" in conf
    assert "tls" not in conf
    stan_cmd = backend.process("nats-streaming-server").cmd
    assert stan_cmd[0] == "/opt/nats-streaming-server"
    assert stan_cmd[stan_cmd.index("-cid") + 1] == "cluster"
    assert stan_cmd[stan_cmd.index("-ns") + 1] == "nats://localhost:4333"
    assert "-tls_client_cacert" not in stan_cmd
    assert backend.polled[0].endswith("/varz")
    await cluster.stop()


async def test_negative_port_picks_a_free_one(backend):
    cluster = _cluster()
    await cluster.start(-1, "c", "a", "b")
    assert cluster.port > 0
    assert cluster.url == f"nats://localhost:{cluster.port}"
    await cluster.stop()


async def test_tls_start_uses_server_pair_and_trust_root(backend):
    cluster = _cluster(tls=CERTS)
    await cluster.start(4334, "cluster", "client", "bridge-client")

    assert cluster.url == "tls://localhost:4334"
    conf = _conf_text(backend)
    assert f'cert_file: "{CERTS.server_cert}"' in conf
    assert f'key_file: "{CERTS.server_key}"' in conf
    assert "timeout: 5" in conf
    stan_cmd = backend.process("nats-streaming-server").cmd
    assert stan_cmd[stan_cmd.index("-tls_client_cacert") + 1] == CERTS.ca_file
    url, tls = backend.nats_connects[0]
    assert url == "tls://localhost:4334"
    assert isinstance(tls, ssl.SSLContext)
    await cluster.stop()


async def test_tls_config_failure_aborts_before_launch(backend, tmp_path: Path):
    cluster = _cluster(tls=TLSMaterial.from_directory(tmp_path))
    with pytest.raises(LifecycleError, match="TLS config"):
        await cluster.start(-1, "c", "a", "b")
    assert backend.launched == []


async def test_stop_order_and_idempotence(backend):
    cluster = _cluster()
    await cluster.start(-1, "c", "a", "b")
    backend.events.clear()

    report = await cluster.stop()
    assert report.ok
    assert backend.events == [
        "close streaming connection",
        "close nats connection",
        "stop nats-streaming-server",
        "stop nats-server",
    ]
    assert cluster.sc is None and cluster.nc is None
    assert cluster.nats_server is None and cluster.streaming_server is None

    backend.events.clear()
    assert (await cluster.stop()).ok
    assert backend.events == []


async def test_stop_before_start_is_safe(backend):
    report = await _cluster().stop()
    assert report.ok
    assert backend.events == []


async def test_stop_continues_after_a_failing_step(backend):
    backend.sc_close_error = RuntimeError("stale connection")
    cluster = _cluster()
    await cluster.start(-1, "c", "a", "b")
    report = await cluster.stop()
    assert [name for name, _ in report.errors] == ["streaming connection"]
    assert backend.process("nats-server").stopped
    assert backend.process("nats-streaming-server").stopped


async def test_failed_stan_connect_leaves_servers_for_stop(backend):
    backend.stan_error = ConnectivityError("no streaming")
    cluster = _cluster()
    with pytest.raises(ConnectivityError):
        await cluster.start(-1, "c", "a", "b")
    assert cluster.nats_server is not None
    assert cluster.streaming_server is not None
    await cluster.stop()
    assert backend.process("nats-server").stopped


async def test_restart_reuses_port_and_identities(backend):
    cluster = _cluster()
    await cluster.start(-1, "cluster", "client", "bridge-client")
    port, old_nc, old_sc = cluster.port, cluster.nc, cluster.sc

    await cluster.restart()

    assert cluster.port == port
    assert cluster.url == f"nats://localhost:{port}"
    assert cluster.cluster_id == "cluster"
    assert backend.stan_connects == [("cluster", "client"), ("cluster", "client")]
    assert old_nc.closed and old_sc.closed
    assert cluster.nc is not old_nc and cluster.sc is not old_sc
    assert len(backend.launched) == 4
    await cluster.stop()


async def test_restart_requires_a_previous_start(backend):
    with pytest.raises(LifecycleError, match="never started"):
        await _cluster().restart()
