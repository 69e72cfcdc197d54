"""
S3 XML codec.

Responses are parsed with a hardened lxml parser (no entity resolution, no
network, no DTD loading) into a plain tree where every child element name maps
to a *list* of nodes, whether the document had one such element or many.
Namespaces are dropped from element names. The typed parse_* functions turn
that tree into the pydantic result models.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from lxml import etree

from s3_bridge.core.errors import EmptyResponseError, XmlParseError
from s3_bridge.models.result_model import (
    BatchDeleteResult,
    BucketsList,
    CopyResult,
    CorsConfiguration,
    DeletedObject,
    DeleteError,
    ObjectsList,
)
from s3_bridge.models.s3_model import CorsRule, Owner, S3Bucket, S3Object, S3Prefix
from s3_bridge.utils.encoding import normalize_object_key

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"
MAX_DEPTH = 100
TEXT = "#text"
ATTRIBUTES = "@attributes"
NAME = "#name"

XmlNode = Dict[str, Any]


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        dtd_validation=False,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def _to_node(element: etree._Element, depth: int) -> XmlNode:
    if depth > MAX_DEPTH:
        raise XmlParseError(f"XML nesting exceeds {MAX_DEPTH} levels", data={"max_depth": MAX_DEPTH})

    node: XmlNode = {NAME: _local_name(element.tag)}
    if element.attrib:
        node[ATTRIBUTES] = {_local_name(k): v for k, v in element.attrib.items()}

    text = (element.text or "").strip()
    if text:
        node[TEXT] = text

    for child in element:
        # comments, processing instructions and unresolved entities have non-string tags
        if not isinstance(child.tag, str):
            continue
        node.setdefault(_local_name(child.tag), []).append(_to_node(child, depth + 1))
    return node


def parse_xml(body: Union[bytes, str, None]) -> XmlNode:
    """
    Parse an XML document into a node tree.

    Raises:
        EmptyResponseError: the body is empty
        XmlParseError: the body is not well-formed or nests deeper than MAX_DEPTH
    """
    if body is None:
        raise EmptyResponseError("Empty response body")
    if isinstance(body, str):
        body = body.encode("utf-8")
    if not body.strip():
        raise EmptyResponseError("Empty response body")

    try:
        root = etree.fromstring(body, parser=_parser())
    except etree.XMLSyntaxError as e:
        raise XmlParseError(f"Malformed XML: {e}") from e
    if root is None:
        raise XmlParseError("Malformed XML: no root element")
    return _to_node(root, 1)


# ----------------------------------------------------------------------
# Tree accessors
# ----------------------------------------------------------------------

def children(node: Optional[XmlNode], name: str) -> List[XmlNode]:
    """All child nodes called ``name`` (always a list)"""
    if not node:
        return []
    return node.get(name, [])


def first(node: Optional[XmlNode], name: str) -> Optional[XmlNode]:
    found = children(node, name)
    return found[0] if found else None


def text(node: Optional[XmlNode], name: str = "", default: str = "") -> str:
    """Text of ``node`` itself, or of its first child ``name``"""
    target = first(node, name) if name else node
    if not target:
        return default
    return target.get(TEXT, default)


def texts(node: Optional[XmlNode], name: str) -> List[str]:
    return [child.get(TEXT, "") for child in children(node, name)]


def boolean(node: Optional[XmlNode], name: str) -> bool:
    return text(node, name).lower() == "true"


def integer(node: Optional[XmlNode], name: str, default: Optional[int] = None) -> Optional[int]:
    value = text(node, name)
    if value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def walk(node: XmlNode) -> Iterator[XmlNode]:
    """Depth-first iteration over ``node`` and all descendants"""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        for key, value in current.items():
            if key.startswith(("#", "@")):
                continue
            stack.extend(reversed(value))


# ----------------------------------------------------------------------
# Typed parsers
# ----------------------------------------------------------------------

def _bucket_from_node(node: XmlNode) -> S3Bucket:
    return S3Bucket(
        name=text(node, "Name"),
        creation_date=text(node, "CreationDate"),
        region=text(node, "BucketRegion") or None,
    )


def parse_buckets_list(body: Union[bytes, str]) -> BucketsList:
    """ListAllMyBucketsResult, falling back to any {Name, CreationDate} pairs found anywhere"""
    root = parse_xml(body)

    bucket_nodes = [
        bucket
        for container in children(root, "Buckets")
        for bucket in children(container, "Bucket")
    ]
    if not bucket_nodes:
        bucket_nodes = [
            node for node in walk(root)
            if text(node, "Name") and "CreationDate" in node
        ]

    owner_node = first(root, "Owner")
    owner = None
    if owner_node:
        owner = Owner(id=text(owner_node, "ID"), display_name=text(owner_node, "DisplayName"))

    return BucketsList(
        buckets=[_bucket_from_node(node) for node in bucket_nodes],
        owner=owner,
        truncated=boolean(root, "IsTruncated"),
        next_marker=text(root, "NextMarker") or text(root, "ContinuationToken") or None,
    )


def parse_objects_list(body: Union[bytes, str]) -> ObjectsList:
    """ListBucketResult (ListObjectsV2)"""
    root = parse_xml(body)

    objects = [
        S3Object(
            key=text(node, "Key"),
            last_modified=text(node, "LastModified"),
            etag=text(node, "ETag"),
            size=integer(node, "Size", 0),
            storage_class=text(node, "StorageClass", "STANDARD"),
        )
        for node in children(root, "Contents")
        if text(node, "Key")
    ]
    prefixes = [
        S3Prefix(prefix=text(node, "Prefix"))
        for node in children(root, "CommonPrefixes")
        if text(node, "Prefix")
    ]

    return ObjectsList(
        objects=objects,
        prefixes=prefixes,
        truncated=boolean(root, "IsTruncated"),
        continuation_token=text(root, "NextContinuationToken") or None,
        prefix=text(root, "Prefix"),
        delimiter=text(root, "Delimiter"),
        key_count=integer(root, "KeyCount"),
    )


def parse_cors_configuration(body: Union[bytes, str], bucket: str = "") -> CorsConfiguration:
    root = parse_xml(body)
    rules = [
        CorsRule(
            id=text(node, "ID") or None,
            allowed_methods=texts(node, "AllowedMethod"),
            allowed_origins=texts(node, "AllowedOrigin"),
            allowed_headers=texts(node, "AllowedHeader"),
            expose_headers=texts(node, "ExposeHeader"),
            max_age_seconds=integer(node, "MaxAgeSeconds"),
        )
        for node in children(root, "CORSRule")
    ]
    return CorsConfiguration(bucket=bucket, rules=rules)


def parse_batch_delete_response(body: Union[bytes, str]) -> BatchDeleteResult:
    root = parse_xml(body)
    return BatchDeleteResult(
        deleted=[
            DeletedObject(key=text(node, "Key"), version_id=text(node, "VersionId") or None)
            for node in children(root, "Deleted")
        ],
        errors=[
            DeleteError(key=text(node, "Key"), code=text(node, "Code"), message=text(node, "Message"))
            for node in children(root, "Error")
        ],
    )


def parse_copy_result(body: Union[bytes, str]) -> CopyResult:
    root = parse_xml(body)
    return CopyResult(
        etag=text(root, "ETag").strip('"'),
        last_modified=text(root, "LastModified"),
    )


def parse_error(body: Union[bytes, str, None]) -> Optional[Tuple[str, str]]:
    """(Code, Message) of an S3 <Error> document, None when the body is not one"""
    try:
        root = parse_xml(body)
    except XmlParseError:
        return None
    code = text(root, "Code")
    if not code:
        return None
    return code, text(root, "Message")


# ----------------------------------------------------------------------
# Builders
# ----------------------------------------------------------------------

def _sub(parent: etree._Element, name: str, value: Any) -> etree._Element:
    element = etree.SubElement(parent, name)
    element.text = str(value)
    return element


def _serialize(root: etree._Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8")


def build_cors_configuration(rules: Iterable[CorsRule]) -> bytes:
    root = etree.Element("CORSConfiguration", nsmap={None: S3_NAMESPACE})
    for index, rule in enumerate(rules, start=1):
        rule_el = etree.SubElement(root, "CORSRule")
        _sub(rule_el, "ID", rule.id or f"rule-{index}")
        for method in rule.allowed_methods:
            _sub(rule_el, "AllowedMethod", method.upper())
        for origin in rule.allowed_origins:
            _sub(rule_el, "AllowedOrigin", origin)
        for header in rule.allowed_headers:
            _sub(rule_el, "AllowedHeader", header)
        for header in rule.expose_headers:
            _sub(rule_el, "ExposeHeader", header)
        if rule.max_age_seconds is not None:
            _sub(rule_el, "MaxAgeSeconds", int(rule.max_age_seconds))
    return _serialize(root)


def build_batch_delete(keys: Iterable[str], quiet: bool = False) -> bytes:
    root = etree.Element("Delete")
    _sub(root, "Quiet", "true" if quiet else "false")
    for key in keys:
        object_el = etree.SubElement(root, "Object")
        _sub(object_el, "Key", normalize_object_key(key))
    return _serialize(root)
