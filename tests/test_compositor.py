import base64
import io

import pytest
import requests
from PIL import Image

from app_qr import branding
from app_qr.compositor import (
    INNER_BORDER,
    OUTER_BORDER,
    Branding,
    RasterSurface,
    add_caption,
    caption_lines,
    composite,
    preview_size,
    qr_matrix,
)
from app_qr.exceptions import BrandingLoadFailure


class FakeSurface(RasterSurface):
    """Superficie en memoria que registra las operaciones de dibujo."""

    def __init__(self, size):
        self.size = size
        self.ops = []

    def fill_matrix(self, matrix):
        self.ops.append(("matrix", len(matrix)))

    def draw_circle(self, cx, cy, radius, fill="white"):
        self.ops.append(("circle", cx, cy, radius, fill))

    def load_image(self, data):
        if data == b"broken":
            raise BrandingLoadFailure("<image data>", "cannot identify image")
        return ("image", data)

    def draw_image_in_circle(self, image, cx, cy, radius):
        self.ops.append(("logo", cx, cy, radius))

    def encode(self, fmt="PNG"):
        return repr(self.ops).encode()


def data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


class TestCompositeWithFakeSurface:

    def test_unbranded_only_draws_matrix(self):
        surface = composite("payload", 200, None, surface_factory=FakeSurface)

        assert [op[0] for op in surface.ops] == ["matrix"]

    def test_branding_draws_halo_then_clipped_logo(self):
        # Given a loader that always returns image bytes
        surface = composite("payload", 200, Branding("logo.png"), surface_factory=FakeSurface, loader=lambda url: b"png")

        # Then: logo is 30% of 200 = 60, radius 30, two white halos and the clipped logo
        assert surface.ops[1:] == [
            ("circle", 100, 100, 30 + OUTER_BORDER, "white"),
            ("circle", 100, 100, 30 + INNER_BORDER, "white"),
            ("logo", 100, 100, 30),
        ]

    def test_loader_failure_degrades_to_plain_code(self):
        def failing_loader(url):
            raise BrandingLoadFailure(url, "timeout")

        surface = composite("payload", 200, "https://cdn.example.test/logo.png", surface_factory=FakeSurface, loader=failing_loader)

        assert [op[0] for op in surface.ops] == ["matrix"]

    def test_undecodable_logo_degrades_to_plain_code(self):
        surface = composite("payload", 200, Branding("x"), surface_factory=FakeSurface, loader=lambda url: b"broken")

        assert [op[0] for op in surface.ops] == ["matrix"]


class TestCompositeWithPillow:

    def test_image_has_requested_size(self):
        surface = composite("https://qr.example.test/menu/1?qrName=Screen%201&type=single", 300)

        assert surface.image.size == (300, 300)
        assert surface.image.getpixel((0, 0)) == (255, 255, 255)

    def test_broken_branding_still_returns_full_size_image(self):
        surface = composite("payload", 256, Branding("data:image/png;base64,not-base64!!"))

        assert surface.image.size == (256, 256)

    def test_logo_outside_media_root_still_returns_image(self):
        surface = composite("https://qr.example.test/menu/1", 200, "../../etc/passwd")

        assert surface.image.size == (200, 200)

    def test_logo_is_drawn_at_center_with_white_halo(self, red_png):
        surface = composite("payload", 300, Branding(data_url(red_png)))

        img = surface.image
        assert img.getpixel((150, 150)) == (255, 0, 0)
        # radio del logo 45, halo exterior hasta 53
        assert img.getpixel((150 + 45 + 6, 150)) == (255, 255, 255)

    def test_encode_produces_png(self):
        png = composite("payload", 120).encode()

        assert Image.open(io.BytesIO(png)).format == "PNG"

    def test_matrix_has_quiet_zone(self):
        matrix = qr_matrix("payload")

        assert not any(matrix[0]) and not any(matrix[1])
        assert not any(row[0] for row in matrix)


class TestCaption:

    def test_caption_adds_top_and_bottom_bands(self):
        base = Image.new("RGB", (256, 256), "white")

        out = add_caption(base, "SCAN THIS QR", "Screen 1 | A1")

        assert out.size[0] == 256
        assert out.size[1] == 256 + 2 * 32

    def test_caption_lines_for_seat_and_single(self):
        assert caption_lines("Screen 1", "A1") == ("SCAN THIS QR", "Screen 1 | A1")
        assert caption_lines("Canteen") == ("SCAN THIS QR", "Canteen")

    def test_preview_sizes_by_orientation(self):
        assert preview_size("landscape") == 200
        assert preview_size("portrait") == 250


class TestFetchLogo:

    def test_data_url_is_decoded(self, red_png):
        assert branding.fetch_logo(data_url(red_png)) == red_png

    def test_invalid_base64_raises(self):
        with pytest.raises(BrandingLoadFailure):
            branding.fetch_logo("data:image/png;base64,%%%")

    def test_network_error_raises(self, monkeypatch):
        def boom(url, timeout):
            raise requests.ConnectionError("unreachable")

        monkeypatch.setattr(branding.requests, "get", boom)

        with pytest.raises(BrandingLoadFailure) as exc:
            branding.fetch_logo("https://cdn.example.test/logo.png")
        assert "unreachable" in exc.value.message

    def test_relative_path_uses_base_url(self, monkeypatch):
        seen = {}

        class Resp:
            content = b"bytes"

            def raise_for_status(self):
                return None

        def fake_get(url, timeout):
            seen["url"] = url
            return Resp()

        monkeypatch.setattr(branding.requests, "get", fake_get)

        assert branding.fetch_logo("/images/logo.png") == b"bytes"
        assert seen["url"] == "https://qr.example.test/images/logo.png"

    def test_missing_storage_file_raises(self):
        with pytest.raises(BrandingLoadFailure):
            branding.fetch_logo("logos/does-not-exist.png")

    def test_empty_url_raises(self):
        with pytest.raises(BrandingLoadFailure):
            branding.fetch_logo("")

    @pytest.mark.parametrize("url", ["../secret.png", "/media/../../x.png"])
    def test_path_outside_media_root_raises(self, url):
        with pytest.raises(BrandingLoadFailure):
            branding.fetch_logo(url)


class TestResolveLogoUrl:

    def test_default_uses_configured_logo(self, settings):
        settings.QR_PROVISIONING = {**settings.QR_PROVISIONING, "DEFAULT_LOGO_URL": "/media/default.png"}

        assert branding.resolve_logo_url("default") == "/media/default.png"

    def test_theater_uses_theater_logo(self):
        class T:
            logo_url = "https://cdn.example.test/t.png"

        assert branding.resolve_logo_url("theater", "", T()) == "https://cdn.example.test/t.png"

    def test_custom_uses_given_url(self):
        assert branding.resolve_logo_url("custom", "https://x.test/l.png") == "https://x.test/l.png"

    def test_no_logo_type(self):
        assert branding.resolve_logo_url("", "https://x.test/l.png") == ""
