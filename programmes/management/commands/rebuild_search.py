from __future__ import annotations

from django.core.management.base import BaseCommand

from programmes.search import build_search_index, iter_programmes
from programmes.triggers import DATABASE_WRITE, PROGRAMMES_PATH, DataSnapshot, build_dispatcher, default_services


class Command(BaseCommand):
    help = "Rebuild /search from the stored Programmes"

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Build the index but do not write it")

    def handle(self, *args, **options):
        services = default_services()
        value = services.store.get(PROGRAMMES_PATH)
        if value is None:
            self.stdout.write("No Programmes stored; search index left unchanged")
            return

        if options.get("dry_run"):
            index = build_search_index(iter_programmes(value))
        else:
            index = build_dispatcher().dispatch(DATABASE_WRITE, DataSnapshot(PROGRAMMES_PATH, value), services)[0]
        self.stdout.write(self.style.SUCCESS(f"Search index: {len(index)} subject keys"))
