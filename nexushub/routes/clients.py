"""
NexusHub - Client Management Routes
Admin roster: create, edit, replace collections, delete, seed.
Every mutation answers with the freshly re-read roster.
"""
from flask import Blueprint, current_app, request, jsonify

from nexushub.errors import NotFound, ValidationRejected
from nexushub.routes.auth import admin_required
from nexushub.services.audit_service import audit_service
from nexushub.services.client_service import COLLECTION_FIELDS, get_client_service
from nexushub.services.notification_service import get_notification_service
from nexushub.utils import get_json_body

clients_bp = Blueprint('clients', __name__)

# URL segment -> ClientService replace method
COLLECTION_ENDPOINTS = {
    'products': 'replace_products',
    'contracts': 'replace_contracts',
    'posts': 'replace_posts',
    'integrations': 'replace_integrations',
    'vault-items': 'replace_vault_items',
}


def _roster_response(status: int = 200, **extra):
    clients = get_client_service().fetch_all_clients()
    return jsonify({
        **extra,
        'total': len(clients),
        'clients': [c.to_dict() for c in clients]
    }), status


@clients_bp.route('/', methods=['GET'])
@admin_required
def list_clients(current_user):
    """List every client with its collections"""
    return _roster_response()


@clients_bp.route('/', methods=['POST'])
@admin_required
def create_client(current_user):
    """
    Create a new client

    POST /api/clients/
    {
        "name": "Alice Johnson",
        "company": "Bloom Boutique",
        "email": "alice@bloom.com",
        "siteUrl": "bloomboutique.com.br",
        "siteType": "ecommerce",
        "password": "portal password",
        "products": [{"name": "Hospedagem", "price": 149.9}],
        "visits": [0, 0, 0, 0, 0, 0, 0]
    }
    """
    data = get_json_body(required=['name', 'email'])
    profile = {k: v for k, v in data.items() if k not in ('products', 'visits')}

    service = get_client_service()
    client_id = service.create_client(profile, data.get('products'), data.get('visits'))

    audit_service.log_change(audit_service.ACTION_CREATE, audit_service.RESOURCE_CLIENT,
                             client_id, data['email'], user=current_user)

    # Notification failures never undo the creation
    notifications = get_notification_service().send_welcome(
        data['name'], data['email'], data.get('phone')
    )

    return _roster_response(
        201,
        id=client_id,
        notifications={channel: result.to_dict() for channel, result in notifications.items()}
    )


@clients_bp.route('/seed', methods=['POST'])
@admin_required
def seed_demo(current_user):
    """Create the demo clients that are missing"""
    created = get_client_service().seed_demo_data(
        portal_password=current_app.config.get('DEMO_PORTAL_PASSWORD') or None
    )
    return _roster_response(created=created)


@clients_bp.route('/<client_id>', methods=['GET'])
@admin_required
def get_client(current_user, client_id):
    client = get_client_service().fetch_client(client_id)
    return jsonify({'client': client.to_dict()})


@clients_bp.route('/<client_id>', methods=['PATCH'])
@admin_required
def update_client(current_user, client_id):
    """
    Sparse update of profile, site, address, password and visits.
    Collections are replaced through PUT /api/clients/<id>/<collection>.
    """
    data = get_json_body()
    collections = sorted(key for key in data if key in COLLECTION_FIELDS)
    if collections:
        raise ValidationRejected(
            f"Collections cannot be patched ({', '.join(collections)}); "
            f"use PUT /api/clients/{client_id}/<collection>"
        )

    client = get_client_service().update_client(client_id, data)
    audit_service.log_change(audit_service.ACTION_UPDATE, audit_service.RESOURCE_CLIENT,
                             client_id, client.email, user=current_user,
                             metadata={'fields': sorted(data)})
    return _roster_response()


@clients_bp.route('/<client_id>/<collection>', methods=['PUT'])
@admin_required
def replace_collection(current_user, client_id, collection):
    """
    Replace one owned collection wholesale; [] deletes every item

    PUT /api/clients/<id>/products
    [{"name": "Hospedagem", "price": 149.9}]
    """
    method = COLLECTION_ENDPOINTS.get(collection)
    if method is None:
        raise NotFound(f'Unknown collection: {collection}')

    items = request.get_json(silent=True)
    if isinstance(items, dict):
        items = items.get('items')
    if not isinstance(items, list):
        raise ValidationRejected('Send a JSON list (or {"items": [...]}); [] clears the collection')

    client = getattr(get_client_service(), method)(client_id, items)
    audit_service.log_change(audit_service.ACTION_UPDATE, audit_service.RESOURCE_CLIENT,
                             client_id, client.email, user=current_user,
                             metadata={'replaced': collection, 'count': len(items)})
    return _roster_response()


@clients_bp.route('/<client_id>', methods=['DELETE'])
@admin_required
def delete_client(current_user, client_id):
    """Delete a client and everything it owns"""
    service = get_client_service()
    client = service.fetch_client(client_id)
    service.delete_client(client_id)
    audit_service.log_change(audit_service.ACTION_DELETE, audit_service.RESOURCE_CLIENT,
                             client_id, client.email, user=current_user)
    return _roster_response()


@clients_bp.route('/integrations/<integration_id>', methods=['PATCH'])
@admin_required
def update_integration(current_user, integration_id):
    """
    Set an integration's status

    PATCH /api/clients/integrations/<id>
    {"status": "connected", "lastSync": "2024-05-01T10:00:00Z", "config": {...}}
    """
    data = get_json_body(required=['status'])
    get_client_service().update_integration_status(
        integration_id, data['status'], data.get('lastSync'), data.get('config')
    )
    return _roster_response()
