"""CSV/XLSX export and import CLI commands."""

from datetime import datetime
from pathlib import Path

import click
from flask import current_app
from flask.cli import with_appcontext

from gms.services.context import ActorContext
from gms.services.export_import import ExportImportService


@click.group('data')
def data_commands():
    """Data export and import commands."""
    pass


def ensure_export_dir(output_dir=None):
    """Ensure the export directory exists."""
    export_dir = Path(output_dir or current_app.config.get('EXPORT_DIR', 'exports'))
    export_dir.mkdir(parents=True, exist_ok=True)
    return export_dir


def generate_filename(data_type, extension='csv'):
    """Generate a timestamped filename for the export."""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return f"{data_type}_{timestamp}.{extension}"


@data_commands.command('export-members')
@click.option('--format', 'fmt', type=click.Choice(['csv', 'xlsx']), default='csv', show_default=True)
@click.option('--output-dir', help='Custom output directory (default: EXPORT_DIR)')
@with_appcontext
def export_members(fmt, output_dir):
    """Export every member to CSV or XLSX."""
    service = ExportImportService()
    ctx = ActorContext.system()
    filepath = ensure_export_dir(output_dir) / generate_filename('members', fmt)

    if fmt == 'xlsx':
        filepath.write_bytes(service.export_members_xlsx(ctx))
    else:
        filepath.write_text(service.export_members_csv(ctx), encoding='utf-8')

    click.echo(click.style(f'Members exported to {filepath}', fg='green'))


@data_commands.command('export-users')
@click.option('--output-dir', help='Custom output directory (default: EXPORT_DIR)')
@with_appcontext
def export_users(output_dir):
    """Export every staff account to CSV."""
    filepath = ensure_export_dir(output_dir) / generate_filename('users')
    filepath.write_text(ExportImportService().export_users_csv(ActorContext.system()), encoding='utf-8')
    click.echo(click.style(f'Users exported to {filepath}', fg='green'))


@data_commands.command('import-members')
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--branch', 'branch_id', default=None, help='Branch ID for rows without one')
@with_appcontext
def import_members(csv_file, branch_id):
    """Import members from a CSV file in the export layout."""
    text = csv_file.read_text(encoding='utf-8-sig')
    result = ExportImportService().import_members_csv(text, ActorContext.system(), branch_id)
    if not result:
        click.echo(click.style(f'Error: {result.message}', fg='red'))
        return

    color = 'yellow' if result.value.has_errors else 'green'
    click.echo(click.style(result.value.summary(), fg=color))
