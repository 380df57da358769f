"""Certificate, key and trust-root paths for TLS test runs."""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class TLSMaterial:
    """Server and client certificate pairs plus the CA that signed them."""

    server_cert: str
    server_key: str
    client_cert: str
    client_key: str
    ca_file: str

    @classmethod
    def from_directory(cls, certs_dir: str | Path) -> TLSMaterial:
        root = Path(certs_dir)
        return cls(
            server_cert=str(root / "server-cert.pem"),
            server_key=str(root / "server-key.pem"),
            client_cert=str(root / "client-cert.pem"),
            client_key=str(root / "client-key.pem"),
            ca_file=str(root / "truststore.pem"),
        )

    def missing_files(self) -> list[str]:
        return [
            p
            for p in (self.server_cert, self.server_key, self.client_cert, self.client_key, self.ca_file)
            if not Path(p).is_file()
        ]

    def server_context(self) -> ssl.SSLContext:
        """Server-side context from the server pair; fails fast on unreadable files."""
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ctx.load_cert_chain(self.server_cert, self.server_key)
        return ctx

    def client_context(self, with_client_cert: bool = True) -> ssl.SSLContext:
        """Client-side context trusting ``ca_file``, optionally presenting the client pair."""
        ctx = ssl.create_default_context(cafile=self.ca_file)
        if with_client_cert:
            ctx.load_cert_chain(self.client_cert, self.client_key)
        return ctx
