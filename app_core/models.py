import uuid
from django.db.models import *


def new_id() -> str:
    return str(uuid.uuid4())


class AutoDateTimeAbstract(Model):
    order = IntegerField(default=1, verbose_name='Orden')
    active = BooleanField(default=True, verbose_name='Activo')
    created_at = DateTimeField(auto_now_add=True, verbose_name='Creado el')
    updated_at = DateTimeField(auto_now=True, verbose_name='Actualizado el')

    class Meta:
        abstract = True


class AutoDateTimeIdAbstract(AutoDateTimeAbstract):
    # uuid como texto: los ids llegan como str desde las rutas de la API
    id = CharField(primary_key=True, max_length=150, default=new_id, editable=False)

    class Meta:
        abstract = True
