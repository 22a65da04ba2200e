"""
Shared output for the batch management commands.
"""

from django.core.management.base import CommandError

from retreat.exceptions import ConfigurationError

MAX_LISTED = 20


class BatchCommandMixin:
    """Two-phase commands: dry run by default, --commit to write."""

    def add_commit_argument(self, parser):
        parser.add_argument(
            '--commit',
            action='store_true',
            help='Persist changes (default is a dry run that only prints)'
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show detailed output'
        )

    def write_mode(self, dry_run):
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - nothing will be saved (use --commit to persist)'))
        else:
            self.stdout.write(self.style.WARNING('LIVE - changes will be saved'))
        self.stdout.write('')

    def run_batch(self, func, *args, **kwargs):
        """Run a batch, turning configuration errors into a non-zero exit."""
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            raise CommandError(f'Configuration error: {e}')

    def write_summary(self, result, verbose=False):
        label = 'Would update' if result.dry_run else 'Updated'

        self.stdout.write('')
        self.stdout.write('Summary:')
        self.stdout.write(f"  Processed:     {result.processed}")
        self.stdout.write(self.style.SUCCESS(f"  {label + ':':<15}{result.updated}"))
        self.stdout.write(f"  Skipped:       {result.skipped}")
        self.stdout.write(f"  Errors:        {len(result.errors)}")
        for category, count in sorted(result.error_counts().items()):
            self.stdout.write(f"    {category}: {count}")

        if result.warnings:
            self.stdout.write('')
            self.stdout.write(self.style.WARNING(f"Warnings ({len(result.warnings)}):"))
            shown = result.warnings if verbose else result.warnings[:MAX_LISTED]
            for warning in shown:
                self.stdout.write(f"  - {warning}")
            if len(result.warnings) > len(shown):
                self.stdout.write(f"  ... and {len(result.warnings) - len(shown)} more (use --verbose)")

        if result.errors:
            self.stdout.write('')
            self.stdout.write(self.style.ERROR(f"Errors ({len(result.errors)}):"))
            shown = result.errors if verbose else result.errors[:MAX_LISTED]
            for error in shown:
                self.stdout.write(f"  - [{error.category}] {error}")
            if len(result.errors) > len(shown):
                self.stdout.write(f"  ... and {len(result.errors) - len(shown)} more (use --verbose)")
