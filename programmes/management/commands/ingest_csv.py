from __future__ import annotations

import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from programmes.ingest import ingest, publish
from programmes.triggers import default_services


class Command(BaseCommand):
    help = "Ingest a programme requirements CSV into the configured store"

    def add_arguments(self, parser):
        parser.add_argument("path", help="Path to the CSV file")
        parser.add_argument("--dry-run", action="store_true", help="Validate and map only; print a JSON summary")

    def handle(self, *args, **options):
        path = Path(options["path"]).expanduser()
        if not path.is_file():
            raise CommandError(f"CSV file not found: {path}")
        try:
            csv_text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CommandError(f"{path} is not UTF-8 text: {e}")

        result = ingest(csv_text)
        if options.get("dry_run"):
            self.stdout.write(json.dumps(result.summary(), indent=2))
            return

        publish(result, default_services().store)
        self.stdout.write(self.style.SUCCESS(
            f"Stored {len(result.programmes)} programmes ({len(result.errors)} row errors) from {path}"
        ))
