import app_core.models
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _base_fields():
    return [
        ('id', models.CharField(default=app_core.models.new_id, editable=False, max_length=150, primary_key=True, serialize=False)),
        ('order', models.IntegerField(default=1, verbose_name='Orden')),
        ('active', models.BooleanField(default=True, verbose_name='Activo')),
        ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creado el')),
        ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Actualizado el')),
    ]


LOGO_TYPE_CHOICES = [('', 'Sin logo'), ('default', 'Default'), ('theater', 'Theater'), ('custom', 'Custom')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Theater',
            fields=_base_fields() + [
                ('name', models.CharField(max_length=255, verbose_name='Nombre')),
                ('logo_url', models.CharField(blank=True, max_length=1000, verbose_name='Logo')),
            ],
            options={
                'verbose_name': 'Teatro',
                'verbose_name_plural': 'Teatros',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='QRName',
            fields=_base_fields() + [
                ('qr_name', models.CharField(max_length=100, verbose_name='Nombre QR')),
                ('seat_class', models.CharField(max_length=50, verbose_name='Clase de asiento')),
                ('description', models.TextField(blank=True, verbose_name='Descripción')),
                ('theater', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='qr_names', to='app_qr.theater', verbose_name='Teatro')),
            ],
            options={
                'verbose_name': 'Nombre de QR',
                'verbose_name_plural': 'Nombres de QR',
                'ordering': ['theater', 'order', 'qr_name'],
            },
        ),
        migrations.CreateModel(
            name='ProvisionedCode',
            fields=_base_fields() + [
                ('qr_type', models.CharField(choices=[('single', 'Single'), ('screen', 'Screen')], max_length=10, verbose_name='Tipo')),
                ('qr_name', models.CharField(max_length=100, verbose_name='Nombre QR')),
                ('seat_class', models.CharField(max_length=50, verbose_name='Clase de asiento')),
                ('logo_type', models.CharField(blank=True, choices=LOGO_TYPE_CHOICES, default='', max_length=10, verbose_name='Tipo de logo')),
                ('logo_url', models.CharField(blank=True, max_length=1000, verbose_name='Logo')),
                ('orientation', models.CharField(choices=[('landscape', 'Landscape'), ('portrait', 'Portrait')], default='landscape', max_length=10, verbose_name='Orientación')),
                ('qr_code_url', models.CharField(blank=True, max_length=1000, verbose_name='Imagen QR')),
                ('qr_code_data', models.TextField(blank=True, verbose_name='Contenido QR')),
                ('scan_count', models.PositiveIntegerField(default=0, verbose_name='Escaneos')),
                ('last_scanned_at', models.DateTimeField(blank=True, null=True, verbose_name='Último escaneo')),
                ('version', models.CharField(default='1.0', editable=False, max_length=10)),
                ('generated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='provisioned_qr_codes', to=settings.AUTH_USER_MODEL, verbose_name='Generado por')),
                ('theater', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='provisioned_codes', to='app_qr.theater', verbose_name='Teatro')),
            ],
            options={
                'verbose_name': 'Código QR',
                'verbose_name_plural': 'Códigos QR',
                'ordering': ['theater', 'qr_name'],
            },
        ),
        migrations.CreateModel(
            name='ProvisionedSeat',
            fields=_base_fields() + [
                ('seat', models.CharField(max_length=10, verbose_name='Butaca')),
                ('qr_code_url', models.CharField(blank=True, max_length=1000, verbose_name='Imagen QR')),
                ('qr_code_data', models.TextField(blank=True, verbose_name='Contenido QR')),
                ('logo_url', models.CharField(blank=True, max_length=1000, verbose_name='Logo')),
                ('logo_type', models.CharField(blank=True, choices=LOGO_TYPE_CHOICES, default='', max_length=10, verbose_name='Tipo de logo')),
                ('scan_count', models.PositiveIntegerField(default=0, verbose_name='Escaneos')),
                ('last_scanned_at', models.DateTimeField(blank=True, null=True, verbose_name='Último escaneo')),
                ('code', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='seats', to='app_qr.provisionedcode', verbose_name='Código')),
            ],
            options={
                'verbose_name': 'Butaca QR',
                'verbose_name_plural': 'Butacas QR',
                'ordering': ['code', 'order', 'created_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='qrname',
            constraint=models.UniqueConstraint(fields=('theater', 'qr_name'), name='uniq_qrname_per_theater'),
        ),
        migrations.AddConstraint(
            model_name='provisionedcode',
            constraint=models.UniqueConstraint(fields=('theater', 'qr_name'), name='uniq_provisioned_code_per_theater'),
        ),
        migrations.AddConstraint(
            model_name='provisionedseat',
            constraint=models.UniqueConstraint(fields=('code', 'seat'), name='uniq_seat_per_code'),
        ),
    ]
