"""
NexusHub - Catalog Service
Agency-wide product catalog (not tied to any client)
"""
import logging
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError

from nexushub.database import db
from nexushub.errors import BackendUnavailable, NotFound, ValidationRejected
from nexushub.models.db_models import BillingCycle, DBGlobalProduct
from nexushub.utils import safe_bool

logger = logging.getLogger(__name__)


class CatalogService:
    """CRUD over global_products"""

    def _commit(self, action: str):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"{action} failed: {e}")
            raise BackendUnavailable()

    @staticmethod
    def _clean(data: Dict, partial: bool = False) -> Dict:
        values = {}

        if 'name' in data or not partial:
            name = str(data.get('name') or '').strip()
            if not name:
                raise ValidationRejected('Product name is required')
            values['name'] = name

        if 'description' in data:
            values['description'] = str(data.get('description') or '').strip()

        if 'price' in data or not partial:
            try:
                price = float(data.get('price') if data.get('price') not in (None, '') else 0)
            except (TypeError, ValueError):
                raise ValidationRejected('Product price must be a number')
            if price < 0:
                raise ValidationRejected('Product price cannot be negative')
            values['price'] = price

        if 'cycle' in data:
            cycle = data.get('cycle') or BillingCycle.MONTHLY
            if cycle not in BillingCycle.ALL:
                raise ValidationRejected(f'Invalid billing cycle: {cycle}')
            values['cycle'] = cycle

        if 'active' in data:
            values['active'] = safe_bool(data.get('active'), default=True)

        return values

    def list_products(self, active_only: bool = False) -> List[DBGlobalProduct]:
        try:
            query = DBGlobalProduct.query
            if active_only:
                query = query.filter_by(active=True)
            return query.order_by(DBGlobalProduct.name).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"List products failed: {e}")
            raise BackendUnavailable()

    def get_product(self, product_id: str) -> DBGlobalProduct:
        product = db.session.get(DBGlobalProduct, product_id)
        if product is None:
            raise NotFound(f'Product {product_id} not found')
        return product

    def create_product(self, data: Dict) -> DBGlobalProduct:
        values = self._clean(data)
        name = values.pop('name')
        price = values.pop('price')
        product = DBGlobalProduct(name=name, price=price, **values)
        db.session.add(product)
        self._commit('Create product')
        logger.info(f"Created catalog product {product.id} ({product.name})")
        return product

    def update_product(self, product_id: str, data: Dict) -> DBGlobalProduct:
        """Sparse update: only keys present in data are written"""
        product = self.get_product(product_id)
        for key, value in self._clean(data, partial=True).items():
            setattr(product, key, value)
        self._commit('Update product')
        return product

    def toggle_product(self, product_id: str) -> DBGlobalProduct:
        product = self.get_product(product_id)
        product.active = not product.active
        self._commit('Toggle product')
        return product

    def delete_product(self, product_id: str) -> bool:
        product = self.get_product(product_id)
        db.session.delete(product)
        self._commit('Delete product')
        logger.info(f"Deleted catalog product {product_id}")
        return True


_catalog_service = None


def get_catalog_service() -> CatalogService:
    """Get or create catalog service singleton"""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
