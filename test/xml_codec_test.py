import unittest

from lxml import etree

from s3_bridge.core.errors import EmptyResponseError, XmlParseError
from s3_bridge.models.s3_model import CorsRule
from s3_bridge.utils import xml_codec

LIST_SINGLE = b"""<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>media</Name>
  <Prefix>photos/</Prefix>
  <KeyCount>1</KeyCount>
  <IsTruncated>false</IsTruncated>
  <Contents>
    <Key>photos/a.jpg</Key>
    <LastModified>2024-01-15T10:30:00.000Z</LastModified>
    <ETag>&quot;9b2cf535f27731c974343645a3985328&quot;</ETag>
    <Size>1024</Size>
    <StorageClass>STANDARD</StorageClass>
  </Contents>
</ListBucketResult>"""

LIST_MULTIPLE = b"""<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>media</Name>
  <Prefix></Prefix>
  <Delimiter>/</Delimiter>
  <IsTruncated>true</IsTruncated>
  <NextContinuationToken>token-2</NextContinuationToken>
  <Contents><Key>a.txt</Key><Size>1</Size><ETag>"d41d8cd98f00b204e9800998ecf8427e-3"</ETag></Contents>
  <Contents><Key>b.txt</Key><Size>2</Size></Contents>
  <CommonPrefixes><Prefix>docs/</Prefix></CommonPrefixes>
  <CommonPrefixes><Prefix>photos/</Prefix></CommonPrefixes>
</ListBucketResult>"""


class TestParseXml(unittest.TestCase):

    def test_single_child_is_still_a_list(self):
        root = xml_codec.parse_xml(LIST_SINGLE)
        self.assertEqual(root["#name"], "ListBucketResult")
        self.assertIsInstance(root["Contents"], list)
        self.assertEqual(len(root["Contents"]), 1)
        self.assertEqual(xml_codec.text(root["Contents"][0], "Key"), "photos/a.jpg")

    def test_namespaces_are_dropped(self):
        root = xml_codec.parse_xml(LIST_SINGLE)
        self.assertIn("Name", root)
        self.assertFalse(any(key.startswith("{") for key in root))

    def test_empty_body(self):
        for body in (b"", b"   \n", None, ""):
            with self.subTest(body=body), self.assertRaises(EmptyResponseError):
                xml_codec.parse_xml(body)

    def test_malformed_body(self):
        with self.assertRaises(XmlParseError):
            xml_codec.parse_xml(b"<ListBucketResult><Name>x</ListBucketResult>")

    def test_depth_limit(self):
        depth = xml_codec.MAX_DEPTH + 5
        body = "<a>" * depth + "x" + "</a>" * depth
        with self.assertRaises(XmlParseError):
            xml_codec.parse_xml(body)

    def test_entities_are_not_expanded(self):
        body = b"""<?xml version="1.0"?>
<!DOCTYPE r [<!ENTITY secret SYSTEM "file:///etc/passwd">]>
<Error><Code>&secret;</Code><Message>m</Message></Error>"""
        root = xml_codec.parse_xml(body)
        self.assertNotIn("root:", xml_codec.text(root, "Code"))


class TestTypedParsers(unittest.TestCase):

    def test_objects_list_single(self):
        listing = xml_codec.parse_objects_list(LIST_SINGLE)
        self.assertEqual(len(listing.objects), 1)
        obj = listing.objects[0]
        self.assertEqual(obj.key, "photos/a.jpg")
        self.assertEqual(obj.size, 1024)
        self.assertEqual(obj.etag, "9b2cf535f27731c974343645a3985328")
        self.assertEqual(obj.md5_checksum, "9b2cf535f27731c974343645a3985328")
        self.assertFalse(listing.truncated)
        self.assertIsNone(listing.continuation_token)
        self.assertEqual(listing.key_count, 1)

    def test_objects_list_multiple_with_prefixes(self):
        listing = xml_codec.parse_objects_list(LIST_MULTIPLE)
        self.assertEqual([o.key for o in listing.objects], ["a.txt", "b.txt"])
        self.assertEqual([p.prefix for p in listing.prefixes], ["docs/", "photos/"])
        self.assertTrue(listing.truncated)
        self.assertEqual(listing.continuation_token, "token-2")
        self.assertEqual(listing.delimiter, "/")

        multipart = listing.objects[0]
        self.assertTrue(multipart.is_multipart)
        self.assertIsNone(multipart.md5_checksum)
        self.assertEqual(multipart.multipart_info["part_count"], 3)

    def test_buckets_list(self):
        body = b"""<ListAllMyBucketsResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Owner><ID>abc</ID><DisplayName>me</DisplayName></Owner>
  <Buckets>
    <Bucket><Name>one</Name><CreationDate>2024-01-01T00:00:00.000Z</CreationDate></Bucket>
  </Buckets>
</ListAllMyBucketsResult>"""
        result = xml_codec.parse_buckets_list(body)
        self.assertEqual([b.name for b in result.buckets], ["one"])
        self.assertEqual(result.owner.display_name, "me")
        self.assertEqual(result.buckets[0].formatted_date("%Y-%m-%d"), "2024-01-01")

    def test_buckets_list_fallback_search(self):
        body = b"""<Result><Items>
  <Entry><Name>alpha</Name><CreationDate>2024-02-01T00:00:00Z</CreationDate></Entry>
  <Entry><Name>beta</Name><CreationDate>2024-02-02T00:00:00Z</CreationDate></Entry>
</Items></Result>"""
        result = xml_codec.parse_buckets_list(body)
        self.assertEqual(sorted(b.name for b in result.buckets), ["alpha", "beta"])

    def test_error_document(self):
        body = b"<Error><Code>NoSuchKey</Code><Message>The specified key does not exist.</Message></Error>"
        self.assertEqual(xml_codec.parse_error(body), ("NoSuchKey", "The specified key does not exist."))
        self.assertIsNone(xml_codec.parse_error(b""))
        self.assertIsNone(xml_codec.parse_error(b"not xml"))
        self.assertIsNone(xml_codec.parse_error(LIST_SINGLE))

    def test_batch_delete_response(self):
        body = b"""<DeleteResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Deleted><Key>a.txt</Key></Deleted>
  <Deleted><Key>b.txt</Key><VersionId>v2</VersionId></Deleted>
  <Error><Key>c.txt</Key><Code>AccessDenied</Code><Message>Access Denied</Message></Error>
</DeleteResult>"""
        result = xml_codec.parse_batch_delete_response(body)
        self.assertEqual(result.success_count, 2)
        self.assertEqual(result.deleted[1].version_id, "v2")
        self.assertEqual(result.error_count, 1)
        self.assertEqual(result.errors[0].code, "AccessDenied")

    def test_copy_result(self):
        body = b'<CopyObjectResult><LastModified>2024-01-15T10:30:00.000Z</LastModified><ETag>"abc"</ETag></CopyObjectResult>'
        result = xml_codec.parse_copy_result(body)
        self.assertEqual(result.etag, "abc")
        self.assertEqual(result.last_modified, "2024-01-15T10:30:00.000Z")


class TestBuilders(unittest.TestCase):

    def test_cors_build_then_parse(self):
        rules = [
            CorsRule(allowed_methods=["get", "PUT"], allowed_origins=["https://app.example.com"],
                     allowed_headers=["*"], expose_headers=["ETag"], max_age_seconds=3600),
            CorsRule(id="public-read", allowed_methods=["GET"], allowed_origins=["*"]),
        ]
        body = xml_codec.build_cors_configuration(rules)
        self.assertTrue(body.startswith(b"<?xml"))

        config = xml_codec.parse_cors_configuration(body, bucket="media")
        self.assertEqual(config.bucket, "media")
        self.assertTrue(config.has_cors)
        first, second = config.rules
        self.assertEqual(first.id, "rule-1")
        self.assertEqual(first.allowed_methods, ["GET", "PUT"])
        self.assertEqual(first.max_age_seconds, 3600)
        self.assertTrue(first.allows_upload())
        self.assertEqual(second.id, "public-read")
        self.assertIsNone(second.max_age_seconds)
        self.assertTrue(second.allows_origin("https://anything.example"))

    def test_zero_max_age_is_written_and_read_back(self):
        body = xml_codec.build_cors_configuration(
            [CorsRule(allowed_methods=["PUT"], allowed_origins=["https://app.example.com"], max_age_seconds=0)]
        )
        self.assertEqual(etree.fromstring(body).findtext(".//{*}MaxAgeSeconds"), "0")
        rule = xml_codec.parse_cors_configuration(body, bucket="media").rules[0]
        self.assertEqual(rule.max_age_seconds, 0)

    def test_batch_delete_document(self):
        body = xml_codec.build_batch_delete(["a.txt", "/dir/b c.txt", "c%41d.txt"], quiet=True)
        doc = etree.fromstring(body)
        self.assertEqual(doc.tag, "Delete")
        self.assertEqual(doc.findtext("Quiet"), "true")
        self.assertEqual([node.text for node in doc.iter("Key")], ["a.txt", "dir/b c.txt", "c%41d.txt"])


if __name__ == "__main__":
    unittest.main()
