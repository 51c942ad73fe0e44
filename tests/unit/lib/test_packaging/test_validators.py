"""Unit tests for package content validation."""

import pytest

from siteplod_api.lib.errors import Rejection, RejectionKind
from siteplod_api.lib.packaging.types import PackageEntry, UploadKind, guess_media_type
from siteplod_api.lib.packaging.validators import (
    check_size,
    detect_local_images,
    detect_video_references,
    find_missing_images,
    image_reference_aliases,
    normalize_reference,
    validate,
    validate_extension,
    validate_supplementary_images,
)


def _entry(path: str, content: bytes | str = b"x") -> PackageEntry:
    if isinstance(content, str):
        content = content.encode()
    return PackageEntry(path=path, content=content, media_type=guess_media_type(path))


class TestValidateExtension:
    @pytest.mark.parametrize("path", ["index.html", "a/b.CSS", "x.js", "f.woff2", "i.svg"])
    def test_allowed(self, path: str) -> None:
        validate_extension(path)

    def test_empty_name(self) -> None:
        with pytest.raises(Rejection, match="Filename is required") as exc_info:
            validate_extension("")
        assert exc_info.value.kind == RejectionKind.REQUIRED_EXTENSION_MISSING

    @pytest.mark.parametrize("path", ["README", "dir/.hidden", "trailing."])
    def test_missing_extension(self, path: str) -> None:
        with pytest.raises(Rejection, match="valid extension"):
            validate_extension(path)

    def test_video_file(self) -> None:
        with pytest.raises(Rejection, match=r"Video files \(\.mp4\) are not supported") as exc_info:
            validate_extension("media/clip.MP4")
        assert exc_info.value.kind == RejectionKind.DISALLOWED_TYPE

    def test_disallowed_type_lists_allowed(self) -> None:
        with pytest.raises(Rejection) as exc_info:
            validate_extension("script.php")
        assert "File type .php is not allowed" in exc_info.value.message
        assert ".html" in exc_info.value.message


class TestVideoReferences:
    def test_finds_extensions_in_order(self) -> None:
        html = '<video src="a.webm"></video><source src="b.MP4"><a href="c.webm">'
        assert detect_video_references(html) == [".webm", ".mp4"]

    def test_bare_extension_without_name_is_ignored(self) -> None:
        assert detect_video_references("supports .mp4 and .mov formats") == []

    def test_over_approximates_identifiers(self) -> None:
        assert detect_video_references("const n = data.movies.length;") == [".mov"]


class TestImageDetection:
    def test_normalize_reference(self) -> None:
        assert normalize_reference("./img/a.png?v=2#top") == "img/a.png"
        assert normalize_reference("../../img/a.png") == "img/a.png"

    def test_detects_local_images(self) -> None:
        html = """
        <img src="img/logo.png">
        <img alt="x" src='./photo.JPG?v=1'>
        <img src="https://cdn.example.com/remote.png">
        <img src="data:image/png;base64,AAAA">
        <link rel="icon" href="favicon.ico">
        <link rel="stylesheet" href="style.css">
        <div style="background-image: url('bg/hero.webp')"></div>
        """
        assert detect_local_images(html) == ["img/logo.png", "photo.JPG", "favicon.ico", "bg/hero.webp"]

    def test_protocol_relative_ignored(self) -> None:
        assert detect_local_images('<img src="//cdn.example.com/a.png">') == []

    def test_find_missing_images(self) -> None:
        doc = _entry("index.html", '<img src="a.png"><img src="b.png">')
        assert find_missing_images(doc, ["index.html", "a.png"]) == ["b.png"]

    def test_normalize_reference_decodes_and_strips_root(self) -> None:
        assert normalize_reference("/logo.png") == "logo.png"
        assert normalize_reference("my%20photo.png") == "my photo.png"

    def test_missing_check_compares_sanitized_paths(self) -> None:
        doc = _entry("index.html", '<img src="my photo.png"><img src="/logo.png"><img src="my%20photo.png">')
        assert find_missing_images(doc, ["index.html", "my_photo.png", "logo.png"]) == []
        assert find_missing_images(doc, ["index.html"]) == ["my photo.png", "logo.png"]


class TestImageReferenceAliases:
    def test_literal_spellings_map_to_hosted_url(self) -> None:
        html = '<img src="my photo.png"><img src="my%20photo.png?v=1"><img src="/logo.png">'
        asset_map = {"my_photo.png": "https://i.ibb.co/x/p.png", "logo.png": "https://i.ibb.co/x/l.png"}

        assert image_reference_aliases(html, asset_map) == {
            "my photo.png": "https://i.ibb.co/x/p.png",
            "my%20photo.png": "https://i.ibb.co/x/p.png",
            "/logo.png": "https://i.ibb.co/x/l.png",
        }

    def test_exact_paths_and_unknown_images_skipped(self) -> None:
        html = '<img src="logo.png"><img src="other.png">'
        assert image_reference_aliases(html, {"logo.png": "https://i.ibb.co/x/l.png"}) == {}


class TestCheckSize:
    def test_within_limit(self) -> None:
        check_size(100, 100)
        check_size(10**9, None)

    def test_over_limit(self) -> None:
        with pytest.raises(Rejection, match="File size exceeds 1MB limit") as exc_info:
            check_size(1024 * 1024 + 1, 1024 * 1024)
        assert exc_info.value.status_code == 413


class TestValidate:
    def test_valid_archive(self) -> None:
        entries = [_entry("index.html", "<html></html>"), _entry("style.css", "body{}"), _entry("a.png")]
        validate(entries, kind=UploadKind.ARCHIVE, max_total_bytes=1024)

    def test_size_checked_first(self) -> None:
        entries = [_entry("index.html", "x" * 2048), _entry("movie.mp4")]
        with pytest.raises(Rejection) as exc_info:
            validate(entries, kind=UploadKind.ARCHIVE, max_total_bytes=1024)
        assert exc_info.value.kind == RejectionKind.TOO_LARGE

    def test_forbidden_media_reference(self) -> None:
        entries = [_entry("index.html", '<video src="intro.mp4"></video>'), _entry("app.js", "load('b.mov')")]
        with pytest.raises(Rejection) as exc_info:
            validate(entries, kind=UploadKind.ARCHIVE)
        error = exc_info.value
        assert error.kind == RejectionKind.FORBIDDEN_MEDIA
        assert error.extensions == [".mp4", ".mov"]
        assert error.to_dict()["videoExtensions"] == [".mp4", ".mov"]
        assert error.to_dict()["error"] == "Video files not supported"

    def test_binary_entries_not_scanned(self) -> None:
        entries = [_entry("index.html", "<p>hi</p>"), _entry("a.png", b"\x00clip.mp4\x00")]
        validate(entries, kind=UploadKind.ARCHIVE)

    def test_missing_images_for_document(self) -> None:
        entries = [_entry("index.html", '<img src="img/logo.png"><img src="a.gif">')]
        with pytest.raises(Rejection) as exc_info:
            validate(entries, kind=UploadKind.DOCUMENT)
        body = exc_info.value.to_dict()
        assert body["missingImages"] == ["img/logo.png", "a.gif"]
        assert body["requiresImageUpload"] is True
        assert body["statusCode"] == 400

    def test_attached_images_satisfy_document(self) -> None:
        entries = [_entry("index.html", '<img src="img/logo.png">'), _entry("img/logo.png")]
        validate(entries, kind=UploadKind.DOCUMENT)

    def test_missing_images_not_checked_for_archives(self) -> None:
        validate([_entry("index.html", '<img src="nowhere.png">')], kind=UploadKind.ARCHIVE)


class TestSupplementaryImages:
    def test_valid_batch(self) -> None:
        validate_supplementary_images([("a.png", "image/png", 10)], max_count=20, max_image_bytes=100)

    def test_empty_batch(self) -> None:
        with pytest.raises(Rejection, match="No images provided"):
            validate_supplementary_images([], max_count=20, max_image_bytes=100)

    def test_too_many(self) -> None:
        images = [(f"{i}.png", "image/png", 1) for i in range(3)]
        with pytest.raises(Rejection, match="Maximum 2 images"):
            validate_supplementary_images(images, max_count=2, max_image_bytes=100)

    def test_image_too_large(self) -> None:
        with pytest.raises(Rejection, match='Image "big.png" exceeds'):
            validate_supplementary_images([("big.png", "image/png", 2 * 1024 * 1024)], max_count=5, max_image_bytes=1024 * 1024)

    def test_bad_mime_type(self) -> None:
        with pytest.raises(Rejection, match="invalid type"):
            validate_supplementary_images([("a.exe", "application/x-msdownload", 1)], max_count=5, max_image_bytes=100)
