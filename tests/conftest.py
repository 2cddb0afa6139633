import io
import itertools

import pytest
from django.core.cache import cache
from PIL import Image

from app_qr.generation import RenderedCode
from app_qr.models import QRName, Theater


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    return tmp_path / "media"


@pytest.fixture
def theater(db):
    return Theater.objects.create(name="Cine Central")


@pytest.fixture
def qr_names(theater):
    return [
        QRName.objects.create(theater=theater, qr_name="Screen 1", seat_class="Gold", order=1),
        QRName.objects.create(theater=theater, qr_name="Screen 2", seat_class="Silver", order=2),
        QRName.objects.create(theater=theater, qr_name="Canteen", seat_class="Counter", order=3),
    ]


@pytest.fixture
def red_png():
    buf = io.BytesIO()
    Image.new("RGBA", (40, 40), (255, 0, 0, 255)).save(buf, format="PNG")
    return buf.getvalue()


class FakeRenderer:
    """Sustituye a render_unit: no dibuja ni guarda, solo registra llamadas."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)
        self._seq = itertools.count(1)

    def __call__(self, theater, qr_name, seat_class, seat=None, logo_url="", ts=None):
        self.calls.append((theater.pk, qr_name, seat_class, seat, logo_url))
        if seat in self.fail_on:
            raise OSError(f"disk full while writing {seat}")
        n = next(self._seq)
        return RenderedCode(
            seat=seat,
            qr_code_url=f"/media/fake/{n}.png",
            qr_code_data=f"https://qr.example.test/menu/{theater.pk}?qrName={qr_name}&seat={seat}",
            logo_url=logo_url,
            storage_name=f"fake/{n}.png",
        )


@pytest.fixture
def fake_renderer():
    return FakeRenderer()
