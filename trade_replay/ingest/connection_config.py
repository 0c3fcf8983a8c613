"""trade_replay/ingest/connection_config.py

QuestDB connection configuration.

Transport, auth and retry settings are resolved once from the CLI options and
then used as a factory: every sender worker calls build() to open its own
ILP/HTTP sender. The config itself never holds a network resource.

Whenever auth is configured the transport is switched to HTTPS with server
certificate validation disabled. The tool is meant for lab and test clusters
with self-signed certificates, so any server certificate is trusted.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from questdb.ingress import Protocol, Sender

from trade_replay.core.exceptions import ConfigError

MAX_BACKOFF_MS = 5000
PROTOCOL_VERSION = 2

_SECRET_RE = re.compile(r"((?:token|password)=)([^;]+)")


class AuthMode(str, Enum):
    NONE = "none"
    TOKEN = "token"
    BASIC = "basic"


def mask_secrets(conf: str) -> str:
    """Replace token/password values with *** keeping the key names"""
    return _SECRET_RE.sub(r"\1***", conf)


def parse_addresses(addrs: str) -> Tuple[str, ...]:
    """Split a comma separated host:port list, dropping empty entries"""
    out = tuple(a.strip() for a in (addrs or "").split(",") if a.strip())
    if not out:
        raise ConfigError(f"No target address in --addrs {addrs!r}")

    for addr in out:
        host, sep, port = addr.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ConfigError(f"Address must be host:port, got {addr!r}")
    return out


def _present(value: Optional[str]) -> bool:
    return value is not None and value != ""


@dataclass(frozen=True)
class ConnectionConfig:
    """Resolved, immutable connection settings shared by all workers"""
    addresses: Tuple[str, ...]
    auth: AuthMode = AuthMode.NONE
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    retry_timeout_ms: int = 360000
    max_backoff_ms: int = MAX_BACKOFF_MS
    protocol_version: int = PROTOCOL_VERSION

    @classmethod
    def from_options(
        cls,
        addrs: str,
        token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        retry_timeout_ms: int = 360000
    ) -> "ConnectionConfig":
        """
        Resolve CLI level options.

        Token auth wins over username/password; basic auth needs both values.

        Raises:
            ConfigError: Empty or malformed address list, bad retry timeout
        """
        addresses = parse_addresses(addrs)
        if retry_timeout_ms <= 0:
            raise ConfigError("--retry-timeout must be > 0")

        if _present(token):
            return cls(addresses, AuthMode.TOKEN, token=token,
                       retry_timeout_ms=retry_timeout_ms)
        if _present(username) and _present(password):
            return cls(addresses, AuthMode.BASIC, username=username, password=password,
                       retry_timeout_ms=retry_timeout_ms)
        return cls(addresses, retry_timeout_ms=retry_timeout_ms)

    @property
    def tls(self) -> bool:
        return self.auth is not AuthMode.NONE

    @property
    def protocol(self) -> Protocol:
        return Protocol.Https if self.tls else Protocol.Http

    def address_for(self, worker_id: int) -> str:
        """Target address of a worker (round-robin over the address list)"""
        return self.addresses[worker_id % len(self.addresses)]

    def sender_kwargs(self) -> dict:
        """Keyword arguments passed to every Sender built from this config"""
        kwargs = {
            "retry_timeout": self.retry_timeout_ms,
            "protocol_version": self.protocol_version,
        }
        if self.tls:
            kwargs["tls_verify"] = False
        if self.auth is AuthMode.TOKEN:
            kwargs["token"] = self.token
        elif self.auth is AuthMode.BASIC:
            kwargs["username"] = self.username
            kwargs["password"] = self.password
        return kwargs

    def build(self, worker_id: int = 0) -> Sender:
        """
        Create a new, not yet established, sender for one worker.

        Args:
            worker_id: Worker index, selects the target address

        Returns:
            questdb.ingress.Sender owned by the caller
        """
        host, _, port = self.address_for(worker_id).rpartition(":")
        return Sender(self.protocol, host, int(port), **self.sender_kwargs())

    def _render(self) -> str:
        parts = [f"{'https' if self.tls else 'http'}::"]
        parts.extend(f"addr={addr};" for addr in self.addresses)
        if self.auth is AuthMode.TOKEN:
            parts.append(f"token={self.token};")
        elif self.auth is AuthMode.BASIC:
            parts.append(f"username={self.username};password={self.password};")
        if self.tls:
            parts.append("tls_verify=unsafe_off;")
        parts.append(f"retry_timeout={self.retry_timeout_ms};")
        parts.append(f"max_backoff={self.max_backoff_ms};")
        parts.append(f"protocol_version={self.protocol_version};")
        return "".join(parts)

    def describe(self) -> str:
        """Diagnostic rendering of the config, secrets masked"""
        return mask_secrets(self._render())

    def __repr__(self) -> str:
        return f"ConnectionConfig({self.describe()})"
