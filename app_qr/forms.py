from django import forms

from .conf import qr_setting
from .exceptions import InvalidSeatFormat, OversizedBatch
from .models import LOGO_TYPE_CHOICES, ORIENTATION_CHOICES, QR_TYPE_CHOICES, Theater
from .seats import sort_seats


class SeatListField(forms.Field):
    """Lista de butacas: acepta lista o texto separado por comas."""

    def to_python(self, value):
        if value in (None, ""):
            return []
        if isinstance(value, str):
            value = [v for v in value.split(",") if v.strip()]
        try:
            return [str(s) for s in sort_seats(value)]
        except InvalidSeatFormat as exc:
            raise forms.ValidationError(exc.message, code=exc.code)


class ProvisioningForm(forms.Form):
    """
    Validación previa al envío. Los errores quedan por campo en
    `form.errors` y no se llega a persistir nada si el form no es válido.
    """
    theater = forms.CharField()
    qr_type = forms.ChoiceField(choices=QR_TYPE_CHOICES)
    qr_name = forms.ChoiceField(choices=())
    logo_type = forms.ChoiceField(choices=[c for c in LOGO_TYPE_CHOICES if c[0]])
    logo_url = forms.CharField(required=False, max_length=1000)
    orientation = forms.ChoiceField(choices=ORIENTATION_CHOICES, required=False)
    seats = SeatListField(required=False)

    def __init__(self, *args, eligible=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.eligible = {n.qr_name: n for n in eligible}
        self.fields["qr_name"].choices = [(n.qr_name, n.qr_name) for n in eligible]

    def clean_theater(self):
        value = self.cleaned_data["theater"]
        try:
            return Theater.objects.get(pk=value, active=True)
        except Theater.DoesNotExist:
            raise forms.ValidationError("Please select a theater", code="invalid")

    def clean_orientation(self):
        return self.cleaned_data.get("orientation") or "landscape"

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("logo_type") == "custom" and not cleaned.get("logo_url"):
            self.add_error("logo_url", "Please provide a logo URL for a custom logo")

        qr_type = cleaned.get("qr_type")
        seats = cleaned.get("seats") or []
        if qr_type == "screen":
            limit = qr_setting("MAX_SEATS_PER_BATCH")
            if not seats and "seats" not in self.errors:
                self.add_error("seats", forms.ValidationError("Please select at least one seat", code="required"))
            elif len(seats) > limit:
                exc = OversizedBatch(len(seats), limit)
                self.add_error("seats", forms.ValidationError(exc.message, code=exc.code))
        elif qr_type == "single":
            cleaned["seats"] = []

        name = self.eligible.get(cleaned.get("qr_name"))
        cleaned["seat_class"] = name.seat_class if name else ""
        return cleaned
