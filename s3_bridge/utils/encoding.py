"""
URL encoding helpers for S3 object keys and SigV4 canonical strings
"""
from typing import Any, Mapping, Optional
from urllib.parse import quote, unquote


def normalize_object_key(object_key: str) -> str:
    """
    Raw form of an object key: leading slashes removed, nothing else touched.

    Keys are opaque strings, so ``%41`` and ``+`` are literal characters here
    and are encoded exactly once on the way out.
    """
    return object_key.lstrip("/")


def encode_object_key(object_key: str) -> str:
    """Percent-encode an object key per RFC 3986, keeping ``/`` separators"""
    normalized = normalize_object_key(object_key)
    if not normalized:
        return ""
    return quote(normalized, safe="/")


def decode_object_key(encoded_key: str) -> str:
    """Inverse of encode_object_key"""
    return unquote(encoded_key)


def uri_encode(value: Any) -> str:
    """RFC 3986 encoding of a single query component (only ``-_.~`` left as is)"""
    return quote(str(value), safe="-_.~")


def encode_canonical_path(path: str) -> str:
    """Encode every path segment exactly once, keeping ``/``"""
    return quote(path, safe="/-_.~")


def canonical_query_string(query_params: Optional[Mapping[str, Any]]) -> str:
    """
    Build a SigV4 canonical query string.

    Keys and values are encoded separately, then pairs are sorted byte-wise by
    encoded key (and value, for equal keys). ``None`` values render as empty.
    """
    if not query_params:
        return ""
    pairs = sorted(
        (uri_encode(key), uri_encode("" if value is None else value))
        for key, value in query_params.items()
    )
    return "&".join(f"{key}={value}" for key, value in pairs)
