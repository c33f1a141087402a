"""Destination identity and collector endpoints.

Parsing a DSN string is somebody else's problem; a :class:`Dsn` here is the
already-parsed set of components. :class:`APIDetails` bundles the DSN with
the SDK metadata and optional tunnel, which is everything the envelope
builder and the legacy request builder need to address a payload.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlencode

SDK_NAME = "flare.python"
SDK_VERSION = "0.1.0"

PROTOCOL_VERSION = "7"


class Dsn:
    """Parsed components of a connection string."""

    def __init__(
        self,
        host: str,
        project_id: str,
        public_key: str,
        protocol: str = "https",
        port: Optional[int] = None,
        path: str = "",
        secret_key: str = "",
    ):
        self.host = host
        self.project_id = str(project_id)
        self.public_key = public_key
        self.protocol = protocol
        self.port = int(port) if port else None
        self.path = path.strip("/")
        self.secret_key = secret_key

    def __repr__(self) -> str:
        return f"Dsn({self.to_string()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dsn):
            return NotImplemented
        return self.to_string(with_password=True) == other.to_string(with_password=True)

    def to_string(self, with_password: bool = False) -> str:
        auth = self.public_key
        if with_password and self.secret_key:
            auth += ":" + self.secret_key

        port = f":{self.port}" if self.port else ""
        path = f"{self.path}/" if self.path else ""
        return f"{self.protocol}://{auth}@{self.host}{port}/{path}{self.project_id}"


class APIDetails:
    """Addressing information for a single destination."""

    def __init__(self, dsn: Dsn, metadata: Optional[Dict[str, Any]] = None, tunnel: Optional[str] = None):
        self.dsn = dsn
        self.metadata = dict(metadata or {})
        self.tunnel = tunnel

    @property
    def sdk(self) -> Optional[Dict[str, Any]]:
        """SDK name and version for envelope headers, if any were configured."""
        sdk = self.metadata.get("sdk")
        if not sdk:
            return None
        return {"name": sdk.get("name"), "version": sdk.get("version")}

    def base_url(self) -> str:
        dsn = self.dsn
        port = f":{dsn.port}" if dsn.port else ""
        path = f"/{dsn.path}" if dsn.path else ""
        return f"{dsn.protocol}://{dsn.host}{port}{path}/api/"

    def store_endpoint(self) -> str:
        """URL for legacy per-event submissions, including authentication."""
        return f"{self.base_url()}{self.dsn.project_id}/store/?{self._auth_query()}"

    def envelope_endpoint(self) -> str:
        """URL for envelope submissions; the tunnel, if set, takes precedence."""
        if self.tunnel:
            return self.tunnel
        return f"{self.base_url()}{self.dsn.project_id}/envelope/?{self._auth_query()}"

    def _auth_query(self) -> str:
        return urlencode({
            "flare_key": self.dsn.public_key,
            "flare_version": PROTOCOL_VERSION,
        })


def init_api_details(dsn: Dsn, metadata: Optional[Dict[str, Any]] = None, tunnel: Optional[str] = None) -> APIDetails:
    return APIDetails(dsn, metadata, tunnel)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
