from django.db.models import *
from django.conf import settings
from app_core.models import AutoDateTimeIdAbstract


QR_TYPE_CHOICES = [
    ("single", "Single"),
    ("screen", "Screen"),
]

LOGO_TYPE_CHOICES = [
    ("", "Sin logo"),
    ("default", "Default"),
    ("theater", "Theater"),
    ("custom", "Custom"),
]

ORIENTATION_CHOICES = [
    ("landscape", "Landscape"),
    ("portrait", "Portrait"),
]


class Theater(AutoDateTimeIdAbstract):
    """Teatro / recinto: ámbito en el que se aprovisionan nombres y códigos."""
    name = CharField(max_length=255, verbose_name='Nombre')
    logo_url = CharField(max_length=1000, blank=True, verbose_name='Logo')

    class Meta:
        verbose_name = "Teatro"
        verbose_name_plural = "Teatros"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class QRName(AutoDateTimeIdAbstract):
    """Nombre de QR registrado para un teatro (p. ej. "Screen 1") con su clase de asiento."""
    theater = ForeignKey(Theater, on_delete=CASCADE, related_name="qr_names", verbose_name='Teatro')
    qr_name = CharField(max_length=100, verbose_name='Nombre QR')
    seat_class = CharField(max_length=50, verbose_name='Clase de asiento')
    description = TextField(blank=True, verbose_name='Descripción')

    class Meta:
        verbose_name = "Nombre de QR"
        verbose_name_plural = "Nombres de QR"
        ordering = ["theater", "order", "qr_name"]
        constraints = [
            UniqueConstraint(fields=["theater", "qr_name"], name="uniq_qrname_per_theater"),
        ]

    def __str__(self) -> str:
        return f"{self.qr_name} ({self.seat_class})"


class ProvisionedCode(AutoDateTimeIdAbstract):
    """Código generado para un nombre de QR: uno solo (single) o una sala con butacas (screen)."""
    theater = ForeignKey(Theater, on_delete=CASCADE, related_name="provisioned_codes", verbose_name='Teatro')
    qr_type = CharField(max_length=10, choices=QR_TYPE_CHOICES, verbose_name='Tipo')
    qr_name = CharField(max_length=100, verbose_name='Nombre QR')
    seat_class = CharField(max_length=50, verbose_name='Clase de asiento')
    logo_type = CharField(max_length=10, choices=LOGO_TYPE_CHOICES, blank=True, default="", verbose_name='Tipo de logo')
    logo_url = CharField(max_length=1000, blank=True, verbose_name='Logo')
    orientation = CharField(max_length=10, choices=ORIENTATION_CHOICES, default="landscape", verbose_name='Orientación')
    # solo para qr_type=single; en screen cada butaca tiene su imagen
    qr_code_url = CharField(max_length=1000, blank=True, verbose_name='Imagen QR')
    qr_code_data = TextField(blank=True, verbose_name='Contenido QR')
    scan_count = PositiveIntegerField(default=0, verbose_name='Escaneos')
    last_scanned_at = DateTimeField(null=True, blank=True, verbose_name='Último escaneo')
    generated_by = ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=SET_NULL, null=True, blank=True,
        related_name="provisioned_qr_codes", verbose_name='Generado por',
    )
    version = CharField(max_length=10, default="1.0", editable=False)

    class Meta:
        verbose_name = "Código QR"
        verbose_name_plural = "Códigos QR"
        ordering = ["theater", "qr_name"]
        constraints = [
            UniqueConstraint(fields=["theater", "qr_name"], name="uniq_provisioned_code_per_theater"),
        ]

    def __str__(self) -> str:
        return f"{self.qr_name} [{self.qr_type}]"

    @property
    def is_screen(self) -> bool:
        return self.qr_type == "screen"


class ProvisionedSeat(AutoDateTimeIdAbstract):
    """Butaca de un código tipo screen, con su propia imagen QR."""
    code = ForeignKey(ProvisionedCode, on_delete=CASCADE, related_name="seats", verbose_name='Código')
    seat = CharField(max_length=10, verbose_name='Butaca')
    qr_code_url = CharField(max_length=1000, blank=True, verbose_name='Imagen QR')
    qr_code_data = TextField(blank=True, verbose_name='Contenido QR')
    logo_url = CharField(max_length=1000, blank=True, verbose_name='Logo')
    logo_type = CharField(max_length=10, choices=LOGO_TYPE_CHOICES, blank=True, default="", verbose_name='Tipo de logo')
    scan_count = PositiveIntegerField(default=0, verbose_name='Escaneos')
    last_scanned_at = DateTimeField(null=True, blank=True, verbose_name='Último escaneo')

    class Meta:
        verbose_name = "Butaca QR"
        verbose_name_plural = "Butacas QR"
        ordering = ["code", "order", "created_at"]
        constraints = [
            UniqueConstraint(fields=["code", "seat"], name="uniq_seat_per_code"),
        ]

    def __str__(self) -> str:
        return f"{self.code.qr_name} – {self.seat}"
