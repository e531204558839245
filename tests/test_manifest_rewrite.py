import os
import types
import unittest
from urllib.parse import parse_qs, urlparse

from stream_proxy import manifest


def _fixtures_dir():
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures")


def _load_fixture(name):
    path = os.path.join(_fixtures_dir(), name)
    # newline="" keeps CRLF endings intact
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()


def _extract_urls(playlist_text):
    return [
        line.strip()
        for line in playlist_text.split("\n")
        if line.strip() and not line.startswith("#")
    ]


def _decode_proxy_url(proxied_url):
    params = parse_qs(urlparse(proxied_url).query)
    token = params.get("token", [None])[0]
    return params["url"][0], token


class BaseLocationTests(unittest.TestCase):
    def test_strips_final_path_segment(self):
        self.assertEqual(
            manifest.base_location("https://cdn.example.com/live/abc/index.m3u8"),
            "https://cdn.example.com/live/abc",
        )

    def test_trailing_slash_drops_only_the_slash(self):
        self.assertEqual(
            manifest.base_location("https://cdn.example.com/live/abc/"),
            "https://cdn.example.com/live/abc",
        )

    def test_file_at_root(self):
        self.assertEqual(manifest.base_location("https://cdn.example.com/index.m3u8"), "https://cdn.example.com")

    def test_no_path(self):
        self.assertEqual(manifest.base_location("https://cdn.example.com"), "https://cdn.example.com")

    def test_keeps_port_and_ignores_query(self):
        self.assertEqual(
            manifest.base_location("http://10.0.0.5:8080/hls/ch1/playlist.m3u8?token=a/b&x=1"),
            "http://10.0.0.5:8080/hls/ch1",
        )

    def test_host_drops_userinfo_case_and_default_port(self):
        self.assertEqual(
            manifest.base_location("https://user:pw@CDN.Example.com:443/live/index.m3u8"),
            "https://cdn.example.com/live",
        )
        self.assertEqual(manifest.base_location("http://cdn.example.com:80/a/b.m3u8"), "http://cdn.example.com/a")
        self.assertEqual(manifest.base_location("http://cdn.example.com:443/a/b.m3u8"), "http://cdn.example.com:443/a")

    def test_ipv6_host_keeps_brackets(self):
        self.assertEqual(manifest.base_location("http://[::1]:8080/hls/x.m3u8"), "http://[::1]:8080/hls")

    def test_relative_source_url_is_rejected(self):
        with self.assertRaises(ValueError):
            manifest.base_location("live/index.m3u8")


class ClassifyLineTests(unittest.TestCase):
    def test_kinds(self):
        self.assertIs(manifest.classify_line("#EXTM3U"), manifest.LineKind.DIRECTIVE)
        self.assertIs(manifest.classify_line("# just a comment"), manifest.LineKind.DIRECTIVE)
        self.assertIs(manifest.classify_line(""), manifest.LineKind.BLANK)
        self.assertIs(manifest.classify_line("  \t\r"), manifest.LineKind.BLANK)
        self.assertIs(manifest.classify_line("seg1.ts"), manifest.LineKind.REFERENCE)
        self.assertIs(manifest.classify_line("https://cdn/seg1.ts"), manifest.LineKind.REFERENCE)


class ResolveReferenceTests(unittest.TestCase):
    def test_absolute_kept_verbatim(self):
        for url in ("http://a.example/x.ts", "https://b.example/y/z.ts?q=1&r=2"):
            with self.subTest(url=url):
                self.assertEqual(manifest.resolve_reference(url, "https://base.example/dir"), url)

    def test_relative_is_concatenated_without_normalising(self):
        base = "https://origin.example/live/path"
        self.assertEqual(manifest.resolve_reference("seg1.ts", base), base + "/seg1.ts")
        self.assertEqual(manifest.resolve_reference("../up/seg.ts", base), base + "/../up/seg.ts")
        self.assertEqual(manifest.resolve_reference("./seg.ts", base), base + "/./seg.ts")
        self.assertEqual(manifest.resolve_reference("/abs/seg.ts", base), base + "//abs/seg.ts")

    def test_reference_is_trimmed(self):
        self.assertEqual(manifest.resolve_reference("  seg1.ts \r", "https://o/d"), "https://o/d/seg1.ts")

    def test_scheme_match_is_case_sensitive(self):
        self.assertEqual(manifest.resolve_reference("HTTPS://o/seg.ts", "https://o/d"), "https://o/d/HTTPS://o/seg.ts")


class ProxiedReferenceTests(unittest.TestCase):
    def test_encodes_like_encode_uri_component(self):
        self.assertEqual(
            manifest.encode_component("https://o.example/a b/c.ts?x=1&y=(2)!*'~"),
            "https%3A%2F%2Fo.example%2Fa%20b%2Fc.ts%3Fx%3D1%26y%3D(2)!*'~",
        )

    def test_without_token(self):
        self.assertEqual(
            manifest.proxied_reference("https://other.cdn/seg2.ts"),
            "/api/proxy/segment?url=https%3A%2F%2Fother.cdn%2Fseg2.ts",
        )

    def test_with_token(self):
        self.assertEqual(
            manifest.proxied_reference("https://other.cdn/seg2.ts", token="eyJ+a/b="),
            "/api/proxy/segment?url=https%3A%2F%2Fother.cdn%2Fseg2.ts&token=eyJ%2Ba%2Fb%3D",
        )

    def test_empty_token_is_dropped(self):
        self.assertNotIn("token", manifest.proxied_reference("https://o/s.ts", token=""))

    def test_custom_segment_path(self):
        self.assertTrue(
            manifest.proxied_reference("https://o/s.ts", segment_path="/relay/seg").startswith("/relay/seg?url=")
        )


class RewriteManifestTests(unittest.TestCase):
    def test_scenario(self):
        playlist = "#EXTM3U\n#EXT-X-VERSION:3\nseg1.ts\nhttps://other.cdn/seg2.ts\n#EXT-X-ENDLIST"
        updated = manifest.rewrite_manifest(playlist, "https://origin.example/live/path/master.m3u8")
        self.assertEqual(
            updated.split("\n"),
            [
                "#EXTM3U",
                "#EXT-X-VERSION:3",
                "/api/proxy/segment?url=https%3A%2F%2Forigin.example%2Flive%2Fpath%2Fseg1.ts",
                "/api/proxy/segment?url=https%3A%2F%2Fother.cdn%2Fseg2.ts",
                "#EXT-X-ENDLIST",
            ],
        )

    def test_line_count_preserved(self):
        for playlist in ("", "\n", "#EXTM3U\n", "#EXTM3U\n\n\nseg.ts\n", "a.ts\nb.ts", _load_fixture("media_crlf.m3u8")):
            with self.subTest(playlist=playlist):
                updated = manifest.rewrite_manifest(playlist, "https://o.example/x/list.m3u8", token="t")
                self.assertEqual(len(updated.split("\n")), len(playlist.split("\n")))

    def test_directive_and_blank_lines_are_untouched(self):
        original = _load_fixture("media_crlf.m3u8")
        updated = manifest.rewrite_manifest(original, "https://origin.example.com/live/ch7/index.m3u8", token="secret")
        for before, after in zip(original.split("\n"), updated.split("\n")):
            if before.startswith("#") or not before.strip():
                self.assertEqual(before, after)
            else:
                self.assertNotEqual(before, after)

    def test_key_uri_inside_directive_is_not_rewritten(self):
        original = _load_fixture("media_crlf.m3u8")
        updated = manifest.rewrite_manifest(original, "https://origin.example.com/live/ch7/index.m3u8")
        key_line = next(line for line in updated.split("\n") if line.startswith("#EXT-X-KEY"))
        self.assertIn('URI="https://keys.example.com/k/1042.key"', key_line)

    def test_fixture_media_playlist_round_trip(self):
        original = _load_fixture("media_crlf.m3u8")
        source_url = "https://origin.example.com/live/ch7/index.m3u8"
        updated = manifest.rewrite_manifest(original, source_url, token="secret")
        decoded = [_decode_proxy_url(line) for line in _extract_urls(updated)]
        self.assertEqual(
            decoded,
            [
                ("https://origin.example.com/live/ch7/segment_1042.ts?sig=a1b2", "secret"),
                ("https://origin.example.com/live/ch7/segment_1043.ts?sig=c3d4", "secret"),
                ("http://edge2.example.com/live/segment_1044.ts", "secret"),
            ],
        )

    def test_fixture_master_playlist_rewrite(self):
        original = _load_fixture("master.m3u8")
        source_url = "https://origin.example.com/root/master.m3u8"
        base = manifest.base_location(source_url)
        original_urls = _extract_urls(original)
        updated = manifest.rewrite_manifest(original, source_url)
        updated_urls = _extract_urls(updated)
        self.assertEqual(len(updated_urls), len(original_urls))
        self.assertTrue(any(line.startswith("#EXT-X-STREAM-INF") for line in updated.splitlines()))
        for expected, proxied in zip(original_urls, updated_urls):
            url, token = _decode_proxy_url(proxied)
            self.assertIsNone(token)
            self.assertEqual(url, manifest.resolve_reference(expected, base))
            self.assertTrue(proxied.startswith("/api/proxy/segment?url="))
            self.assertNotIn("token=", proxied)

    def test_token_on_every_reference(self):
        original = _load_fixture("master.m3u8")
        updated = manifest.rewrite_manifest(original, "https://origin.example.com/root/master.m3u8", token="a b&c")
        for proxied in _extract_urls(updated):
            self.assertTrue(proxied.endswith("&token=a%20b%26c"))

    def test_rewrite_lines_is_lazy_and_repeatable(self):
        lines = ["#EXTM3U", "seg.ts"]
        first = manifest.rewrite_lines(lines, "https://o/d", token="t")
        self.assertIsInstance(first, types.GeneratorType)
        self.assertEqual(list(first), list(manifest.rewrite_lines(lines, "https://o/d", token="t")))


if __name__ == '__main__':
    unittest.main()
