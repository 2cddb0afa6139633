from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import ProvisionedCode, QRName
from .services import invalidate_theater_cache


# El índice de nombres ya generados se recalcula tras cualquier cambio
@receiver(post_save, sender=ProvisionedCode)
@receiver(post_delete, sender=ProvisionedCode)
@receiver(post_save, sender=QRName)
@receiver(post_delete, sender=QRName)
def invalidate_existing_names(sender, instance, **kwargs):
    invalidate_theater_cache(instance.theater_id)
