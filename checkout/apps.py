import logging

from django.apps import AppConfig

log = logging.getLogger("checkout")


class CheckoutConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "checkout"
    verbose_name = "Checkout"

    def ready(self):
        # Resolve configuration once at startup. A missing secret is logged,
        # not fatal, so manage.py (migrate, checkout_verify) still runs.
        from .config import missing_settings

        missing = missing_settings()
        if missing:
            log.warning("[checkout] configuration incomplete; missing=%s", ",".join(missing))
