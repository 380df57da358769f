"""NATS server + NATS Streaming server pair with bypass client connections.

The streaming server runs on top of the NATS server (``-ns <url>``) rather
than embedding its own, so a test can see the same NATS URL the bridge uses.
"""

from __future__ import annotations

import json
import shutil
import ssl
import tempfile
from pathlib import Path
from typing import Any, Callable

from bridge_testenv.config.context import HarnessConfig
from bridge_testenv.errors import LifecycleError
from bridge_testenv.services.lifecycle.teardown import TeardownReport, TeardownSequence
from bridge_testenv.services.logger.interface import LoggingInterface
from bridge_testenv.services.streaming import clients
from bridge_testenv.services.streaming.process import ServerProcess, free_port, wait_for_http
from bridge_testenv.services.tls.material import TLSMaterial

TLS_HANDSHAKE_TIMEOUT = 5  # seconds


class StreamingCluster:
    def __init__(
        self,
        config: HarnessConfig,
        logger: LoggingInterface,
        tls: TLSMaterial | None = None,
    ) -> None:
        self._config = config
        self._log = logger
        self._tls = tls

        self.nats_server: ServerProcess | None = None
        self.streaming_server: ServerProcess | None = None
        self.nc: Any = None  # raw NATS connection, for bypassing the bridge
        self.sc: Any = None  # streaming connection, for bypassing the bridge

        self.port = -1
        self.url = ""
        self.cluster_id = ""
        self.client_id = ""  # kept so reconnects use the same identity
        self.bridge_client_id = ""
        self._work_dir: Path | None = None

    @property
    def use_tls(self) -> bool:
        return self._tls is not None

    async def start(
        self, port: int, cluster_id: str, client_id: str, bridge_client_id: str
    ) -> None:
        """Launch both servers and connect the bypass clients.

        A negative *port* picks a free one. Nothing is rolled back on failure;
        whatever did start is left for ``stop()``.
        """
        self._check_server_tls()
        if port < 0:
            port = free_port()
        monitor_port = free_port()

        self._work_dir = Path(tempfile.mkdtemp(prefix="bridge-testenv-"))
        conf_path = self._work_dir / "nats-server.conf"
        conf_path.write_text(self._nats_server_conf(port, monitor_port))

        self.nats_server = ServerProcess.launch(
            "nats-server",
            [self._config.nats_server_bin, "-c", str(conf_path)],
            log_dir=self._config.log_dir,
        )
        scheme = "tls" if self.use_tls else "nats"
        self.url = f"{scheme}://localhost:{port}"
        self.port = port
        self.cluster_id = cluster_id
        self.client_id = client_id
        self.bridge_client_id = bridge_client_id

        timeout = self._config.startup_timeout
        await wait_for_http(
            f"http://127.0.0.1:{monitor_port}/varz", timeout=timeout, process=self.nats_server
        )
        self._log.debug("NATS server up", url=self.url, pid=self.nats_server.pid)

        cmd = [
            self._config.streaming_server_bin,
            "-cid", cluster_id,
            "-ns", self.url,
            "-st", "MEMORY",
        ]
        if self._tls is not None:
            cmd += ["-tls_client_cacert", self._tls.ca_file]
        self.streaming_server = ServerProcess.launch(
            "nats-streaming-server", cmd, log_dir=self._config.log_dir
        )

        client_tls: ssl.SSLContext | None = None
        if self._tls is not None:
            client_tls = self._tls.client_context(with_client_cert=False)
        self.nc = await clients.connect_nats(self.url, client_tls)
        self.sc = await clients.connect_stan(
            cluster_id,
            client_id,
            self.nc,
            timeout=timeout,
            still_running=self.streaming_server.exit_status,
        )
        self._log.info(
            "Streaming cluster started",
            url=self.url,
            cluster_id=cluster_id,
            client_id=client_id,
        )

    def _check_server_tls(self) -> None:
        """Fail before launching anything if the server cert/key pair does not load."""
        if self._tls is None:
            return
        try:
            self._tls.server_context()
        except (OSError, ssl.SSLError) as exc:
            raise LifecycleError(f"unable to build nats server TLS config: {exc}") from exc

    def _nats_server_conf(self, port: int, monitor_port: int) -> str:
        lines = [
            'host: "127.0.0.1"',
            f"port: {port}",
            f'http: "127.0.0.1:{monitor_port}"',
        ]
        if self._tls is not None:
            lines += [
                "tls {",
                f"  cert_file: {json.dumps(self._tls.server_cert)}",
                f"  key_file: {json.dumps(self._tls.server_key)}",
                f"  timeout: {TLS_HANDSHAKE_TIMEOUT}",
                "}",
            ]
        return "\n".join(lines) + "\n"

    # ── Shutdown steps (each skipped when its handle is absent) ──────────

    async def close_streaming_connection(self) -> None:
        if self.sc is not None:
            sc, self.sc = self.sc, None
            await sc.close()

    async def close_nats_connection(self) -> None:
        if self.nc is not None:
            nc, self.nc = self.nc, None
            await nc.close()

    def stop_streaming_server(self) -> None:
        if self.streaming_server is not None:
            server, self.streaming_server = self.streaming_server, None
            server.stop()

    def stop_nats_server(self) -> None:
        try:
            if self.nats_server is not None:
                server, self.nats_server = self.nats_server, None
                server.stop()
        finally:
            if self._work_dir is not None:
                shutil.rmtree(self._work_dir, ignore_errors=True)
                self._work_dir = None

    def shutdown_steps(self) -> list[tuple[str, Callable[[], Any]]]:
        return [
            ("streaming connection", self.close_streaming_connection),
            ("nats connection", self.close_nats_connection),
            ("streaming server", self.stop_streaming_server),
            ("nats server", self.stop_nats_server),
        ]

    async def stop(self) -> TeardownReport:
        seq = TeardownSequence(self._log)
        for name, step in self.shutdown_steps():
            seq.add(name, step)
        return await seq.run()

    async def restart(
        self,
        port: int | None = None,
        cluster_id: str | None = None,
        client_id: str | None = None,
        bridge_client_id: str | None = None,
    ) -> TeardownReport:
        """Stop, then start again; omitted arguments reuse the current port and identities."""
        if not self.cluster_id and cluster_id is None:
            raise LifecycleError("streaming cluster was never started")
        port = self.port if port is None else port
        cluster_id = cluster_id or self.cluster_id
        client_id = client_id or self.client_id
        bridge_client_id = bridge_client_id or self.bridge_client_id

        report = await self.stop()
        await self.start(port, cluster_id, client_id, bridge_client_id)
        return report
