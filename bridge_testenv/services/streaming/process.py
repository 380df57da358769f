"""Child server processes (nats-server, nats-streaming-server) and readiness polling."""

from __future__ import annotations

import asyncio
import signal
import socket
import subprocess
from pathlib import Path
from typing import IO, Any

import aiohttp

from bridge_testenv.errors import LifecycleError


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class ServerProcess:
    """A launched server binary, its log file, and a graceful stop."""

    def __init__(
        self,
        name: str,
        proc: subprocess.Popen,
        log_path: Path | None = None,
        log_file: IO[Any] | None = None,
    ) -> None:
        self.name = name
        self.proc = proc
        self.log_path = log_path
        self._log_file = log_file

    @classmethod
    def launch(cls, name: str, cmd: list[str], log_dir: Path | None = None) -> ServerProcess:
        log_path: Path | None = None
        log_file: IO[Any] | None = None
        if log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / f"{name}.log"
            log_file = open(log_path, "a")
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=log_file or subprocess.DEVNULL,
                stderr=subprocess.STDOUT if log_file else subprocess.DEVNULL,
            )
        except OSError as exc:
            if log_file:
                log_file.close()
            raise LifecycleError(f"{name} could not be launched ({cmd[0]}): {exc}") from exc
        return cls(name, proc, log_path, log_file)

    @property
    def pid(self) -> int:
        return self.proc.pid

    def exit_status(self) -> str | None:
        """Describe how the process exited, or None while it is running."""
        code = self.proc.poll()
        if code is None:
            return None
        where = f", log: {self.log_path}" if self.log_path else ""
        return f"{self.name} exited with code {code}{where}"

    def stop(self, grace: float = 10.0) -> None:
        """SIGTERM, then SIGKILL if still alive after *grace* seconds."""
        try:
            if self.proc.poll() is None:
                try:
                    self.proc.send_signal(signal.SIGTERM)
                except OSError:
                    pass
                try:
                    self.proc.wait(timeout=grace)
                except subprocess.TimeoutExpired:
                    self.proc.kill()
                    self.proc.wait(timeout=5)
        finally:
            if self._log_file:
                self._log_file.close()
                self._log_file = None


async def wait_for_http(
    url: str,
    timeout: float = 10.0,
    process: ServerProcess | None = None,
    interval: float = 0.05,
) -> None:
    """Poll *url* until it answers below 500; fail early if *process* dies."""
    loop = asyncio.get_event_loop()
    deadline = loop.time() + timeout
    last_error = "no connection attempted"
    async with aiohttp.ClientSession() as session:
        while True:
            if process is not None:
                status = process.exit_status()
                if status:
                    raise LifecycleError(status)
            try:
                async with session.get(url, timeout=aiohttp.ClientTimeout(total=1)) as resp:
                    if resp.status < 500:
                        return
                    last_error = f"status={resp.status}"
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                last_error = str(e) or type(e).__name__
            if loop.time() > deadline:
                raise LifecycleError(
                    f"server at {url} not ready within {timeout}s (last: {last_error})"
                )
            await asyncio.sleep(interval)
