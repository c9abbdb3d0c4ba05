"""
Backup routes - backups, exports, downloads and cleanup.

Thin HTTP layer over the backup services; every response uses the
{success, message?, data?} envelope.
"""

import logging
import os

from flask import Blueprint, jsonify, request, send_file

from pos_backup import get_services
from pos_backup.backup.downloads import InvalidFilenameError, ArtifactNotFoundError
from pos_backup.backup.export import ExportError, UnsupportedCollectionError, UnsupportedFormatError
from pos_backup.backup.orchestrator import BackupInProgressError
from pos_backup.models import BackupOptions, ExportOptions, BACKUP_STATUSES, BACKUP_TYPES


logger = logging.getLogger(__name__)

bp = Blueprint('backup', __name__, url_prefix='/api/backup')


def _error(message, status_code):
    return jsonify({'success': False, 'message': message}), status_code


@bp.route('/status', methods=['GET'])
def get_status():
    """
    Get backup status.

    Returns:
        JSON with isRunning and the newest completed backup
    """
    status = get_services().orchestrator.get_status()
    return jsonify({'success': True, 'data': status.to_dict()})


@bp.route('/history', methods=['GET'])
def list_history():
    """
    Get backup history, newest first.

    Query params:
        - status: Filter by status (pending/completed/failed)
        - type: Filter by backup type
        - limit: Max number of records
    """
    status_filter = request.args.get('status')
    type_filter = request.args.get('type')
    limit = request.args.get('limit', type=int)

    if status_filter and status_filter not in BACKUP_STATUSES:
        return _error('Invalid status filter', 400)
    if type_filter and type_filter not in BACKUP_TYPES:
        return _error('Invalid type filter', 400)

    records = get_services().orchestrator.list_history(
        status=status_filter, backup_type=type_filter, limit=limit
    )
    return jsonify({'success': True, 'data': [r.to_dict() for r in records]})


@bp.route('/create', methods=['POST'])
def create_backup():
    """
    Create a full backup (runs synchronously).

    Request body (all optional):
        - includeDatabase: default true
        - includeUploads: default true
        - includeLogs: default false
        - compression: default true
    """
    options = BackupOptions.from_dict(request.get_json(silent=True))

    try:
        backup = get_services().orchestrator.create_full_backup(options)
    except BackupInProgressError as e:
        return _error(str(e), 409)
    except Exception as e:
        logger.error(f"Failed to create backup: {e}")
        return _error(str(e) or 'Failed to create backup', 500)

    return jsonify({
        'success': True,
        'message': 'Backup created successfully',
        'data': backup.to_dict()
    })


@bp.route('/export', methods=['POST'])
def export_data():
    """
    Export a collection as JSON or CSV.

    Request body:
        - collection: Collection name (required)
        - format: json or csv (required)
        - dateRange: {start, end} ISO timestamps (optional)
        - filters: exact-match field values (optional)
        - fields: fields to keep, in order (optional)
    """
    data = request.get_json(silent=True) or {}

    if not data.get('collection') or not data.get('format'):
        return _error('Collection and format are required', 400)

    try:
        options = ExportOptions.from_dict(data)
        file_path = get_services().exporter.export(options)
    except (UnsupportedCollectionError, UnsupportedFormatError, ValueError) as e:
        return _error(str(e), 400)
    except ExportError as e:
        logger.error(f"Failed to export data: {e}")
        return _error(str(e), 500)

    filename = os.path.basename(file_path)
    return jsonify({
        'success': True,
        'message': 'Data exported successfully',
        'data': {
            'filePath': file_path,
            'downloadUrl': f"/api/backup/download/{filename}"
        }
    })


@bp.route('/download/<path:filename>', methods=['GET'])
def download_file(filename):
    """
    Stream a backup archive or export file.

    Args:
        filename: Bare file name; anything with path segments is rejected
    """
    try:
        resolved = get_services().downloads.resolve(filename)
    except InvalidFilenameError:
        return _error('Invalid filename', 400)
    except ArtifactNotFoundError:
        return _error('File not found', 404)

    return send_file(
        resolved.path,
        mimetype=resolved.content_type,
        as_attachment=True,
        download_name=resolved.filename
    )


@bp.route('/cleanup', methods=['POST'])
def cleanup_backups():
    """Apply the retention policy now."""
    summary = get_services().retention.cleanup_old_backups()
    return jsonify({
        'success': True,
        'message': 'Backup cleanup completed successfully',
        'data': {
            'deleted': summary['deleted'],
            'errors': summary['errors']
        }
    })


@bp.route('/collections', methods=['GET'])
def list_collections():
    """Collections available for export."""
    return jsonify({'success': True, 'data': get_services().exporter.list_collections()})


@bp.route('/formats', methods=['GET'])
def list_formats():
    """Export formats."""
    return jsonify({'success': True, 'data': get_services().exporter.list_formats()})
