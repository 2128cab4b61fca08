from __future__ import annotations

import logging
import threading

from django.core.management.base import BaseCommand

from programmes.triggers import build_dispatcher, default_services, watch_programmes

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Rebuild the search index whenever /Programmes changes (streams from the Realtime Database)"

    def handle(self, *args, **options):
        services = default_services()
        registration = watch_programmes(services.store, build_dispatcher(), default_services)
        self.stdout.write("Listening for /Programmes changes; Ctrl+C to stop")
        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            logger.info("listen_programmes: stopping")
        finally:
            registration.close()
