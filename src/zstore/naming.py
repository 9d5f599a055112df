"""
Volume naming for zstore.

Each client gets its own bucket inside the pool, named by a hash of the
client's IP address. A request for volume ``disk1`` from 10.0.0.5 resolves to

    <pool>/<md5("10.0.0.5")>/disk1

The hash only keeps clients apart; it is not an access control boundary.
"""

import hashlib
import posixpath
from typing import Optional, Tuple

from zstore.errors import AddressParseError

# Name depths relative to the pool: pool/bucket and pool/bucket/volume
COLLECTION_DEPTH = 2
ITEM_DEPTH = 3


def split_host_port(address: Optional[str]) -> Tuple[str, str]:
    """
    Split a "host:port" or "[host]:port" address.

    Raises:
        AddressParseError: If the address has no port or is malformed
    """
    if not address:
        raise AddressParseError(address, "missing address")

    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise AddressParseError(address, "missing ']' in address")
        host, rest = address[1:end], address[end + 1:]
        if not rest.startswith(":"):
            raise AddressParseError(address, "missing port in address")
        port = rest[1:]
    else:
        host, sep, port = address.rpartition(":")
        if not sep:
            raise AddressParseError(address, "missing port in address")
        if ":" in host:
            raise AddressParseError(address, "too many colons in address")

    if "[" in port or "]" in port:
        raise AddressParseError(address, "unexpected bracket in port")
    return host, port


def join_host_port(host: str, port: int) -> str:
    """Inverse of split_host_port; brackets IPv6 hosts."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def bucket_name(host: str) -> str:
    """Return the hex MD5 digest of a client host, used as its bucket segment."""
    return hashlib.md5(host.encode("utf-8"), usedforsecurity=False).hexdigest()


def leaf_name(request_path: str, prefix: str) -> str:
    """
    Return the final path segment of a request path after the API prefix.

    Returns an empty string when the path names the collection itself.
    """
    if prefix and request_path.startswith(prefix):
        request_path = request_path[len(prefix):]
    return request_path.rstrip("/").rpartition("/")[2]


def volume_name(pool: str, client_address: Optional[str], request_path: str, prefix: str = "") -> str:
    """
    Derive the bucketed volume name for a request.

    Args:
        pool: Pool name
        client_address: Client "host:port" address
        request_path: URL path of the request
        prefix: API route prefix stripped from the path

    Returns:
        Normalized name, e.g. "zstore/<bucket>/disk1"

    Raises:
        AddressParseError: If the client address cannot be split
    """
    host, _ = split_host_port(client_address)
    name = posixpath.join(pool, bucket_name(host), leaf_name(request_path, prefix))
    return posixpath.normpath(name)


def name_depth(name: str, pool: str) -> int:
    """
    Number of segments in ``name`` counting the pool as one segment.

    Names outside the pool have depth 0.
    """
    if name == pool:
        return 1
    if not name.startswith(pool + "/"):
        return 0
    return 1 + len(name[len(pool) + 1:].split("/"))


def local_name(name: str, pool: str) -> str:
    """Strip the pool prefix from a full volume name, e.g. "<bucket>/disk1"."""
    if name.startswith(pool + "/"):
        return name[len(pool) + 1:]
    return name
