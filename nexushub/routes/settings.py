"""
NexusHub - Agency Settings Routes
"""
from flask import Blueprint, jsonify, request

from nexushub.routes.auth import admin_required
from nexushub.services.audit_service import audit_service
from nexushub.services.settings_service import get_agency_settings, get_settings_service
from nexushub.utils import get_json_body, safe_int

settings_bp = Blueprint('settings', __name__)


@settings_bp.route('/', methods=['GET'])
@admin_required
def get_settings(current_user):
    return jsonify({'settings': get_agency_settings().to_dict()})


@settings_bp.route('/', methods=['PUT'])
@admin_required
def save_settings(current_user):
    """
    Update the agency profile; omitted keys keep their stored value

    PUT /api/settings/
    {"agencyName": "NexusHub Digital", "document": "11.222.333/0001-81", "contactPhone": "11987654321"}
    """
    settings = get_settings_service().save(get_json_body())
    audit_service.log_change(audit_service.ACTION_UPDATE, audit_service.RESOURCE_SETTING,
                             'agency', settings.agency_name, user=current_user)
    return jsonify({'settings': settings.to_dict()})


# ==========================================
# AUDIT LOG
# ==========================================

@settings_bp.route('/audit', methods=['GET'])
@admin_required
def get_audit_logs(current_user):
    """
    Get audit logs, newest first

    GET /api/settings/audit?action=login&resource_type=user&days=30&limit=100
    """
    limit = safe_int(request.args.get('limit'), 100, min_val=1, max_val=500)
    offset = safe_int(request.args.get('offset'), 0, min_val=0)

    logs = audit_service.get_logs(
        action=request.args.get('action'),
        resource_type=request.args.get('resource_type'),
        resource_id=request.args.get('resource_id'),
        user_id=request.args.get('user_id'),
        days=safe_int(request.args.get('days'), 30, min_val=1, max_val=365),
        limit=limit,
        offset=offset
    )

    return jsonify({
        'logs': [log.to_dict() for log in logs],
        'count': len(logs),
        'offset': offset,
        'limit': limit
    })
