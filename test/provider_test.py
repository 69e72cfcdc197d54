import unittest

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.core.registry import create_provider, get_all_providers, get_provider_class
from s3_bridge.providers import (
    AwsS3Provider,
    BackblazeB2Provider,
    CloudflareR2Provider,
    DigitalOceanSpacesProvider,
    GenericS3Provider,
    LinodeProvider,
    MegaS4Provider,
    VultrProvider,
    WasabiProvider,
)

ROUND_TRIP_KEYS = [
    "file.txt",
    "photos/2024/summer beach.jpg",
    "a+b=c&d.txt",
    "nested/deep/path/with spaces/and+plus.bin",
    "unicode/naïve café.png",
    "symbols/!'()*~-_.txt",
    "a%41b.txt",
    "reports/report%202024.pdf",
]


def all_configurations():
    return [
        AwsS3Provider("eu-west-1"),
        AwsS3Provider("us-east-1", virtual_hosted_style=True),
        AwsS3Provider("us-east-1", use_standard_endpoint=True, virtual_hosted_style=True),
        CloudflareR2Provider("eu", account_id="acc123"),
        DigitalOceanSpacesProvider("nyc3"),
        GenericS3Provider(endpoint="https://minio.local:9000"),
        GenericS3Provider(endpoint="storage.example.net", path_style=False),
        BackblazeB2Provider(),
        LinodeProvider("eu-central"),
        MegaS4Provider(account_id="m1"),
        VultrProvider(),
        WasabiProvider("eu-central-1"),
    ]


class TestRegistry(unittest.TestCase):

    def test_builtin_providers_registered(self):
        ids = set(get_all_providers())
        self.assertTrue({
            "aws_s3", "cloudflare_r2", "digitalocean_spaces", "generic_s3",
            "backblaze", "linode", "mega_s4", "vultr", "wasabi",
        } <= ids)
        self.assertIs(get_provider_class("wasabi"), WasabiProvider)

    def test_create_provider(self):
        provider = create_provider("cloudflare_r2", "eu", account_id="acc")
        self.assertIsInstance(provider, CloudflareR2Provider)
        self.assertEqual(provider.get_endpoint(), "acc.eu.r2.cloudflarestorage.com")

    def test_unknown_provider(self):
        with self.assertRaises(InvalidArgumentError):
            create_provider("nope")


class TestRegions(unittest.TestCase):

    def test_default_region(self):
        self.assertEqual(AwsS3Provider().region, "us-east-1")
        self.assertEqual(DigitalOceanSpacesProvider().region, "sfo3")

    def test_invalid_region_lists_available(self):
        with self.assertRaises(InvalidArgumentError) as ctx:
            WasabiProvider("mars-1")
        self.assertIn('Invalid region "mars-1" for provider "Wasabi"', str(ctx.exception))
        self.assertIn("us-east-1", str(ctx.exception))
        self.assertEqual(ctx.exception.code, "invalid_argument")

    def test_account_id_required(self):
        with self.assertRaises(InvalidArgumentError):
            CloudflareR2Provider()
        with self.assertRaises(InvalidArgumentError):
            MegaS4Provider()
        self.assertTrue(CloudflareR2Provider(account_id="x").requires_account_id())
        self.assertFalse(AwsS3Provider().requires_account_id())

    def test_generic_requires_endpoint(self):
        with self.assertRaises(InvalidArgumentError):
            GenericS3Provider()

    def test_generic_extra_regions_and_signing_region(self):
        provider = GenericS3Provider("garage", endpoint="s3.garage.local", regions={"garage": "Garage"})
        self.assertTrue(provider.is_valid_region("garage"))
        self.assertEqual(provider.signing_region, "garage")
        provider.set_signing_region("us-east-1")
        self.assertEqual(provider.signing_region, "us-east-1")


class TestUrls(unittest.TestCase):

    def test_path_style(self):
        provider = AwsS3Provider("eu-west-1")
        self.assertEqual(provider.get_host("media"), "s3.eu-west-1.amazonaws.com")
        self.assertEqual(
            provider.format_url("media", "a b/c.jpg"),
            "https://s3.eu-west-1.amazonaws.com/media/a%20b/c.jpg",
        )
        self.assertEqual(provider.format_canonical_uri("media", "a b/c.jpg"), "/media/a b/c.jpg")
        self.assertEqual(provider.format_canonical_uri("media"), "/media")
        self.assertEqual(provider.format_canonical_uri(""), "/")

    def test_virtual_hosted_style(self):
        provider = DigitalOceanSpacesProvider("nyc3")
        self.assertEqual(provider.get_host("media"), "media.nyc3.digitaloceanspaces.com")
        self.assertEqual(provider.format_url("media", "x.txt"), "https://media.nyc3.digitaloceanspaces.com/x.txt")
        self.assertEqual(provider.format_canonical_uri("media", "x.txt"), "/x.txt")
        self.assertEqual(provider.format_canonical_uri("media"), "/")

    def test_virtual_hosted_bucket_with_dots(self):
        provider = DigitalOceanSpacesProvider("nyc3")
        parsed = provider.parse_provider_url("https://my.bucket.nyc3.digitaloceanspaces.com/dir/a.txt")
        self.assertIsNotNone(parsed)
        self.assertEqual((parsed.bucket, parsed.object_key), ("my.bucket", "dir/a.txt"))
        self.assertTrue(provider.is_provider_url("https://my.bucket.nyc3.digitaloceanspaces.com/a.txt"))

        url = provider.format_url("my.bucket", "x.txt")
        parsed = provider.parse_provider_url(url)
        self.assertEqual((parsed.bucket, parsed.object_key), ("my.bucket", "x.txt"))

        self.assertIsNone(provider.parse_provider_url("https://.nyc3.digitaloceanspaces.com/a.txt"))
        self.assertIsNone(provider.parse_provider_url("https://a..b.nyc3.digitaloceanspaces.com/a.txt"))

    def test_percent_sign_is_part_of_the_key(self):
        provider = AwsS3Provider("eu-west-1")
        url = provider.format_url("media", "a%41b.txt")
        self.assertEqual(url, "https://s3.eu-west-1.amazonaws.com/media/a%2541b.txt")
        self.assertNotEqual(url, provider.format_url("media", "aAb.txt"))
        parsed = provider.parse_provider_url(url)
        self.assertEqual((parsed.bucket, parsed.object_key), ("media", "a%41b.txt"))
        self.assertEqual(provider.format_canonical_uri("media", "a%41b.txt"), "/media/a%41b.txt")

    def test_generic_scheme_and_endpoint(self):
        provider = GenericS3Provider(endpoint="http://minio.local:9000/", use_https=False)
        self.assertEqual(provider.get_endpoint(), "minio.local:9000")
        self.assertEqual(provider.format_url("b", "k"), "http://minio.local:9000/b/k")

    def test_round_trip_every_configuration(self):
        for provider in all_configurations():
            for key in ROUND_TRIP_KEYS:
                with self.subTest(provider=repr(provider), key=key):
                    url = provider.format_url("my-bucket", key)
                    parsed = provider.parse_provider_url(url)
                    self.assertIsNotNone(parsed)
                    self.assertEqual(parsed.bucket, "my-bucket")
                    self.assertEqual(parsed.object_key, key)

    def test_aws_alternative_endpoints_recognised(self):
        provider = AwsS3Provider("eu-west-1")
        parsed = provider.parse_provider_url("https://s3.amazonaws.com/media/a.txt")
        self.assertEqual((parsed.bucket, parsed.object_key), ("media", "a.txt"))
        parsed = provider.parse_provider_url("https://media.s3.us-west-2.amazonaws.com/x/y.txt")
        self.assertEqual((parsed.bucket, parsed.object_key), ("media", "x/y.txt"))

    def test_foreign_url_rejected(self):
        provider = AwsS3Provider("eu-west-1")
        self.assertFalse(provider.is_provider_url("https://example.com/media/a.txt"))
        self.assertIsNone(provider.parse_provider_url("https://example.com/media/a.txt"))
        self.assertFalse(provider.is_provider_url(""))


class TestCustomDomains(unittest.TestCase):

    def test_custom_domain_public_url_and_parse(self):
        provider = AwsS3Provider("eu-west-1", custom_domains={"media": "https://cdn.example.com/"})
        self.assertEqual(provider.get_custom_domain("media"), "cdn.example.com")
        self.assertEqual(provider.get_public_url("media", "/a.jpg"), "https://cdn.example.com/a.jpg")

        parsed = provider.parse_provider_url("https://cdn.example.com/dir/a%20b.jpg")
        self.assertEqual((parsed.bucket, parsed.object_key), ("media", "dir/a b.jpg"))

    def test_domain_match_respects_boundaries(self):
        provider = AwsS3Provider("eu-west-1")
        provider.set_custom_domain("good", "cdn.example.com")
        self.assertFalse(provider.is_provider_url("https://cdn.example.com.evil.com/a.jpg"))
        self.assertIsNone(provider.parse_provider_url("https://cdn.example.com.evil.com/a.jpg"))

    def test_cloudfront_domain(self):
        provider = AwsS3Provider("eu-west-1", cloudfront_domains={"media": "d111.cloudfront.net"})
        self.assertTrue(provider.has_integrated_cdn())
        self.assertEqual(provider.get_cdn_url("media", "a.jpg"), "https://d111.cloudfront.net/a.jpg")
        parsed = provider.parse_provider_url("https://d111.cloudfront.net/a.jpg")
        self.assertEqual(parsed.bucket, "media")

    def test_public_url_fallbacks(self):
        self.assertEqual(
            CloudflareR2Provider(account_id="acc").get_public_url("media", "a.jpg"),
            "https://media.acc.r2.dev/a.jpg",
        )
        self.assertIsNone(BackblazeB2Provider().get_public_url("media", "a.jpg"))
        self.assertEqual(
            BackblazeB2Provider(account_id="001").get_public_url("media", "a.jpg"),
            "https://f001.backblazeb2.com/file/media/a.jpg",
        )
        linode = LinodeProvider("eu-central")
        self.assertIsNone(linode.get_public_url("site", "index.html"))
        linode.set_website_enabled("site")
        self.assertEqual(
            linode.get_public_url("site", "index.html"),
            "https://site.eu-central-1.linodeobjects.com/index.html",
        )
        self.assertIsNone(AwsS3Provider().get_public_url("media", "a.jpg"))

    def test_digitalocean_cdn(self):
        provider = DigitalOceanSpacesProvider("ams3")
        self.assertEqual(provider.get_cdn_url("media", "a.jpg"), "https://media.ams3.cdn.digitaloceanspaces.com/a.jpg")
        provider.set_custom_cdn("media", "https://assets.example.com")
        self.assertEqual(provider.get_cdn_url("media", "a.jpg"), "https://assets.example.com/a.jpg")

    def test_wasabi_cdn_falls_back_to_url(self):
        provider = WasabiProvider()
        self.assertEqual(provider.get_cdn_url("media", "a.jpg"), provider.format_url("media", "a.jpg"))
        provider.set_cdn_domain("media", "cdn.wasabi.example")
        self.assertEqual(provider.get_cdn_url("media", "a.jpg"), "https://cdn.wasabi.example/a.jpg")

    def test_mega_endpoints(self):
        provider = MegaS4Provider("ca-central-1", account_id="m1")
        self.assertEqual(provider.get_endpoint(), "s3.ca-central-1.s4.mega.io")
        self.assertEqual(provider.get_iam_endpoint(), "iam.s3.ca-central-1.s4.mega.io")
        self.assertTrue(provider.is_provider_url("https://g.s4.mega.io/b/k"))


if __name__ == "__main__":
    unittest.main()
