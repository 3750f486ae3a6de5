from __future__ import annotations

import os
from dataclasses import dataclass


_STORE_BACKENDS = {"sql", "memory"}


def parse_listen_addr(listen_addr: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host binds every interface."""

    host, sep, port = listen_addr.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address: {listen_addr!r}")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"Invalid listen port: {port}")
    return host.strip("[]") or "0.0.0.0", port_number


@dataclass(slots=True)
class ServiceSettings:
    listen_addr: str = ":3000"
    store_backend: str = "sql"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        store_backend = os.getenv("ACCOUNT_STORE", "sql").lower()
        if store_backend not in _STORE_BACKENDS:
            raise RuntimeError(f"Unsupported ACCOUNT_STORE value: {store_backend}")
        return cls(
            listen_addr=os.getenv("ACCOUNT_SERVICE_LISTEN_ADDR", ":3000"),
            store_backend=store_backend,
            log_level=os.getenv("ACCOUNT_LOG_LEVEL", "INFO").upper(),
        )


__all__ = ["ServiceSettings", "parse_listen_addr"]
