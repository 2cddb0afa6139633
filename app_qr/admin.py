import json

from django.contrib import admin
from django.http import JsonResponse, HttpResponseBadRequest
from django.views.decorators.http import require_http_methods
from django.utils.decorators import method_decorator
from django.utils.html import format_html
from django.urls import path, reverse
from import_export import fields, resources
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget

from app_core.templatetags.qr_tags import qr_data_uri

from . import services
from .compositor import preview_size
from .exceptions import InvalidSeatFormat, ProvisioningError
from .models import ProvisionedCode, ProvisionedSeat, QRName, Theater
from .seats import parse
from .selection import group_by_row


# -------------------------
# Import / export
# -------------------------
class QRNameResource(resources.ModelResource):
    theater = fields.Field(
        column_name="theater",
        attribute="theater",
        widget=ForeignKeyWidget(Theater, field="name"),
    )

    class Meta:
        model = QRName
        fields = ("id", "theater", "qr_name", "seat_class", "description", "active", "order")
        import_id_fields = ("id",)


# -------------------------
# Inlines
# -------------------------
class QRNameInline(admin.TabularInline):
    model = QRName
    extra = 0
    fields = ("qr_name", "seat_class", "active", "order")
    ordering = ("order", "qr_name")


class ProvisionedSeatInline(admin.TabularInline):
    """Las butacas se crean y renombran por la API (regenera el QR); aquí solo se activan o desactivan."""
    model = ProvisionedSeat
    extra = 0
    fields = ("seat", "active", "scan_count", "last_scanned_at", "qr_code_url")
    readonly_fields = ("seat", "scan_count", "last_scanned_at", "qr_code_url")
    ordering = ("order", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


# -------------------------
# Admins
# -------------------------
@admin.register(Theater)
class TheaterAdmin(admin.ModelAdmin):
    list_display = ("name", "active", "created_at")
    search_fields = ("name",)
    inlines = [QRNameInline]


@admin.register(QRName)
class QRNameAdmin(ImportExportModelAdmin):
    resource_classes = [QRNameResource]
    list_display = ("qr_name", "theater", "seat_class", "active", "order")
    list_filter = ("theater", "active")
    search_fields = ("qr_name", "seat_class", "theater__name")
    ordering = ("theater", "order", "qr_name")


@admin.register(ProvisionedCode)
class ProvisionedCodeAdmin(admin.ModelAdmin):
    list_display = ("qr_name", "theater", "qr_type", "seat_class", "seat_count", "scan_count", "active")
    list_filter = ("theater", "qr_type", "active")
    search_fields = ("qr_name", "theater__name")
    readonly_fields = ("qr_preview", "qr_code_data", "scan_count", "last_scanned_at", "generated_by", "version")
    ordering = ("theater", "qr_name")
    inlines = [ProvisionedSeatInline]

    @admin.display(description="Butacas")
    def seat_count(self, obj):
        return obj.seats.count()

    @admin.display(description="Vista previa")
    def qr_preview(self, obj):
        data, logo_url = obj.qr_code_data, obj.logo_url
        if not data:
            first = obj.seats.first() if obj.pk else None
            if first:
                data, logo_url = first.qr_code_data, first.logo_url or logo_url
        if not data:
            return "-"
        uri = qr_data_uri(data, preview_size(obj.orientation), logo_url)
        return format_html('<img src="{}" alt="{}"/>', uri, obj.qr_name)

    def get_urls(self):
        urls = super().get_urls()
        custom = [
            path("<str:pk>/api/seats/", self.admin_site.admin_view(self.api_seat_map), name="provisionedcode_api_seats"),
            path("<str:pk>/api/seats/add/", self.admin_site.admin_view(self.api_add_seat), name="provisionedcode_api_add_seat"),
        ]
        return custom + urls

    @method_decorator(require_http_methods(["GET"]))
    def api_seat_map(self, request, pk):
        """Butacas del código agrupadas por fila, para la rejilla del detalle."""
        code = ProvisionedCode.objects.filter(pk=pk).first()
        if code is None:
            return JsonResponse({"ok": False, "error": "QR code not found"}, status=404)
        seats, parsed, invalid = {}, [], []
        for obj in code.seats.all():
            try:
                parsed.append(parse(obj.seat))
            except InvalidSeatFormat:
                # etiquetas guardadas fuera de la API: se listan aparte
                invalid.append({"id": obj.pk, "seat": obj.seat, "active": obj.active, "qr_code_url": obj.qr_code_url})
                continue
            seats[obj.seat] = obj
        rows = []
        for row, items in group_by_row(parsed):
            rows.append({
                "row": row,
                "seats": [
                    {
                        "id": seats[str(s)].pk,
                        "seat": str(s),
                        "active": seats[str(s)].active,
                        "qr_code_url": seats[str(s)].qr_code_url,
                    }
                    for s in items
                ],
            })
        return JsonResponse({
            "ok": True,
            "qr_name": code.qr_name,
            "rows": rows,
            "invalid": invalid,
            "add_url": reverse("admin:provisionedcode_api_add_seat", args=[code.pk]),
        })

    @method_decorator(require_http_methods(["POST"]))
    def api_add_seat(self, request, pk):
        try:
            payload = json.loads(request.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return HttpResponseBadRequest("JSON inválido")
        code = ProvisionedCode.objects.filter(pk=pk).first()
        if code is None:
            return JsonResponse({"ok": False, "error": "QR code not found"}, status=404)
        try:
            seat = services.add_seat(code.theater_id, code.pk, payload.get("seat") or "")
        except ProvisioningError as exc:
            return JsonResponse({"ok": False, "error": exc.message}, status=exc.status_code)
        return JsonResponse({"ok": True, "id": seat.pk, "seat": seat.seat, "qr_code_url": seat.qr_code_url})
