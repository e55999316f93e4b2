"""
NexusHub - Product Catalog Routes
Agency-wide products offered to every client
"""
from flask import Blueprint, request, jsonify

from nexushub.routes.auth import admin_required
from nexushub.services.audit_service import audit_service
from nexushub.services.catalog_service import get_catalog_service
from nexushub.utils import get_json_body, safe_bool

products_bp = Blueprint('products', __name__)


@products_bp.route('/', methods=['GET'])
@admin_required
def list_products(current_user):
    """List catalog products (?active=true for active ones only)"""
    products = get_catalog_service().list_products(active_only=safe_bool(request.args.get('active')))
    return jsonify({
        'total': len(products),
        'products': [p.to_dict() for p in products]
    })


@products_bp.route('/', methods=['POST'])
@admin_required
def create_product(current_user):
    """
    Add a catalog product

    POST /api/products/
    {"name": "Hospedagem", "price": 89.9, "cycle": "monthly", "description": "..."}
    """
    data = get_json_body(required=['name'])
    product = get_catalog_service().create_product(data)
    audit_service.log_change(audit_service.ACTION_CREATE, audit_service.RESOURCE_PRODUCT,
                             product.id, product.name, user=current_user)
    return jsonify({'product': product.to_dict()}), 201


@products_bp.route('/<product_id>', methods=['PATCH'])
@admin_required
def update_product(current_user, product_id):
    product = get_catalog_service().update_product(product_id, get_json_body())
    return jsonify({'product': product.to_dict()})


@products_bp.route('/<product_id>/toggle', methods=['POST'])
@admin_required
def toggle_product(current_user, product_id):
    """Flip a product between active and inactive"""
    product = get_catalog_service().toggle_product(product_id)
    return jsonify({'product': product.to_dict()})


@products_bp.route('/<product_id>', methods=['DELETE'])
@admin_required
def delete_product(current_user, product_id):
    get_catalog_service().delete_product(product_id)
    audit_service.log_change(audit_service.ACTION_DELETE, audit_service.RESOURCE_PRODUCT,
                             product_id, product_id, user=current_user)
    return jsonify({'success': True})
