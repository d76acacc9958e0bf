from __future__ import annotations
import logging
from typing import Any, List, Mapping

from fieldservice.models.common import gen_id
from fieldservice.models.product import Product
from fieldservice.services.validation import build
from fieldservice.storage.store import EntityStore

logger = logging.getLogger(__name__)


class CatalogService:
    """Catalogue produits : stock et prix (coût / vente) toujours >= 0."""

    def __init__(self, store: EntityStore):
        self.store = store

    def list_products(self) -> List[Product]:
        return list(self.store.products.list())

    def get_product(self, product_id: str) -> Product:
        return self.store.products.get(product_id)

    def add_product(self, data: Mapping[str, Any]) -> Product:
        product = build(Product.model_validate, {**data, "id": gen_id("prod-")})
        self.store.products.insert(product)
        logger.info("Product %s created (sku=%s)", product.id, product.sku)
        return product
