# tests/services/test_keys.py
"""Tests for app/services/storage/keys.py module."""

import pytest

from app.services.storage.keys import (
    CdnHttps,
    KeyCodec,
    OpaqueUri,
    ProviderHttps,
    Role,
    normalize_extension,
)


class TestDeriveKey:
    """Tests for key derivation."""

    def test_content_key(self, codec: KeyCodec) -> None:
        assert codec.derive_key(42, Role.CONTENT, ".docx") == "blogs/42/content.docx"

    def test_cover_key_normalizes_extension(self, codec: KeyCodec) -> None:
        """Extensions are lower-cased and get a leading dot."""
        assert codec.derive_key(7, Role.COVER, "PNG") == "blogs/7/cover.png"

    def test_custom_namespace(self) -> None:
        codec = KeyCodec(bucket="b", namespace="/posts/")
        assert codec.derive_key(1, Role.CONTENT, ".md") == "posts/1/content.md"

    def test_normalize_extension_empty(self) -> None:
        assert normalize_extension("") == ""


class TestCandidateKeys:
    """Tests for the keys tried during cleanup."""

    def test_content_includes_legacy_formats(self, codec: KeyCodec) -> None:
        keys = codec.candidate_keys(3, Role.CONTENT, (".docx",))
        assert keys == ["blogs/3/content.docx", "blogs/3/content.html", "blogs/3/content.md"]

    def test_cover_covers_every_image_extension(self, codec: KeyCodec) -> None:
        keys = codec.candidate_keys(3, Role.COVER)
        assert "blogs/3/cover.jpg" in keys
        assert "blogs/3/cover.svg" in keys
        assert len(keys) == len(set(keys))


class TestParse:
    """Tests for locator classification."""

    def test_opaque_uri(self, codec: KeyCodec) -> None:
        assert codec.parse("s3://blog-content/blogs/1/content.docx") == OpaqueUri(
            bucket="blog-content",
            key="blogs/1/content.docx",
        )

    def test_cdn_url(self, codec: KeyCodec) -> None:
        assert codec.parse("https://cdn.example.com/blogs/1/cover.png") == CdnHttps(
            base="https://cdn.example.com",
            key="blogs/1/cover.png",
        )

    def test_provider_url(self, codec: KeyCodec) -> None:
        parsed = codec.parse("https://blog-content.s3.us-east-1.amazonaws.com/blogs/1/cover.png")
        assert parsed == ProviderHttps(
            host="blog-content.s3.us-east-1.amazonaws.com",
            key="blogs/1/cover.png",
        )

    def test_presigned_url_resolves_to_key(self, codec: KeyCodec) -> None:
        """A link issued earlier still points back at its object."""
        url = "https://blog-content.s3.amazonaws.com/blogs/9/content.docx?X-Amz-Signature=abc&X-Amz-Expires=3600"
        assert codec.extract_key(url) == "blogs/9/content.docx"

    def test_percent_encoded_path_is_decoded(self, codec: KeyCodec) -> None:
        url = "https://blog-content.s3.amazonaws.com/blogs/9/my%20cover.png"
        assert codec.extract_key(url) == "blogs/9/my cover.png"

    def test_cdn_url_without_cdn_configured_is_unknown(self) -> None:
        codec = KeyCodec(bucket="blog-content")
        assert codec.extract_key("https://cdn.example.com/blogs/1/cover.png") is None

    @pytest.mark.parametrize(
        "locator",
        [
            None,
            "",
            "garbage",
            "s3://",
            "s3://bucket-only",
            "ftp://blog-content.s3.amazonaws.com/blogs/1/content.docx",
            "https://example.com/blogs/1/content.docx",
            "https://blog-content.s3.amazonaws.com/",
        ],
    )
    def test_unknown_shapes_yield_none(self, codec: KeyCodec, locator: str | None) -> None:
        """Unknown or empty locators never raise."""
        assert codec.extract_key(locator) is None


class TestRoundTrip:
    """Derived keys survive rendering into each locator shape and parsing back."""

    @pytest.mark.parametrize(
        ("role", "extension"),
        [(Role.CONTENT, ".docx"), (Role.CONTENT, ".md"), (Role.COVER, ".jpeg"), (Role.COVER, ".webp")],
    )
    def test_every_shape(self, codec: KeyCodec, role: Role, extension: str) -> None:
        key = codec.derive_key(1234, role, extension)
        for render in (codec.to_opaque, codec.to_cdn, codec.to_provider):
            assert codec.extract_key(render(key)) == key

    def test_to_cdn_requires_base(self) -> None:
        with pytest.raises(ValueError, match="No CDN base"):
            KeyCodec(bucket="b").to_cdn("blogs/1/content.docx")
