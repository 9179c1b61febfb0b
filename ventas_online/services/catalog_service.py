# ==============================================================================
# SERVICIO DE CATÁLOGO
# ==============================================================================
# Categorías y productos: CRUD, exploración, stock y más vendidos.
#
# "Más vendidos" se calcula desde el historial de facturas (suma de las
# cantidades del snapshot), no desde un contador en el producto.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from ventas_online.errors import NotFound, ValidationError
from ventas_online.models.entities import Category, Product, new_id
from ventas_online.repositories.category_repository import CategoryRepository
from ventas_online.repositories.invoice_repository import InvoiceRepository
from ventas_online.repositories.product_repository import ProductRepository
from ventas_online.services.audit_service import AuditService

logger = logging.getLogger(__name__)


def require_int(value: Any, field_name: str, minimum: int = 0) -> int:
    """
    Valida un entero (no booleano) mayor o igual a `minimum`.

    Raises:
        ValidationError: Si no es entero o es menor al mínimo
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValidationError(f"'{field_name}' debe ser un entero mayor o igual a {minimum}")
    return value


def require_price(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValidationError("'price' debe ser un número mayor o igual a 0")
    return round(float(value), 2)


class CatalogService:
    """
    Servicio para categorías y productos.

    Responsabilidades:
    - CRUD de categorías (rechaza borrar una categoría en uso)
    - CRUD de productos (valida categoría, precio y stock)
    - Exploración por categoría y nombre
    - Consulta de stock y ranking de más vendidos
    """

    def __init__(
        self,
        category_repo: CategoryRepository,
        product_repo: ProductRepository,
        invoice_repo: InvoiceRepository,
        audit_service: AuditService = None
    ):
        self.category_repo = category_repo
        self.product_repo = product_repo
        self.invoice_repo = invoice_repo
        self.audit_service = audit_service

    # =========================================================================
    # CATEGORÍAS
    # =========================================================================

    def _clean_category_name(self, name: Any, exclude_id: str = None) -> str:
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            raise ValidationError('El nombre de la categoría es requerido')
        existing = self.category_repo.get_by_name(name)
        if existing and existing.get('id') != exclude_id:
            raise ValidationError('Ya existe una categoría con ese nombre')
        return name

    def create_category(self, name: Any, description: Any = '') -> Dict[str, Any]:
        with self.category_repo.transaction():
            category = Category(
                id=new_id(),
                name=self._clean_category_name(name),
                description=description if isinstance(description, str) else '',
            )
            self.category_repo.update(category.id, category.to_dict())
        logger.info("Categoría creada: %s", category.name)
        return category.to_dict()

    def list_categories(self) -> List[Dict[str, Any]]:
        return list(self.category_repo.get_all().values())

    def get_category(self, category_id: str) -> Dict[str, Any]:
        category = self.category_repo.get_by_id(category_id)
        if not category:
            raise NotFound('Categoría no encontrada')
        return category

    def update_category(self, category_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        data = data or {}
        with self.category_repo.transaction():
            category = Category.from_dict(self.get_category(category_id))
            if 'name' in data:
                category.name = self._clean_category_name(data['name'], exclude_id=category_id)
            if isinstance(data.get('description'), str):
                category.description = data['description']
            self.category_repo.update(category_id, category.to_dict())
        return category.to_dict()

    def delete_category(self, category_id: str) -> None:
        """
        Raises:
            NotFound: Categoría inexistente
            ValidationError: Hay productos que la referencian
        """
        with self.category_repo.transaction():
            category = self.get_category(category_id)
            if self.product_repo.get_by_category(category_id):
                raise ValidationError(
                    f"La categoría '{category['name']}' tiene productos asociados"
                )
            self.category_repo.delete(category_id)
        logger.info("Categoría eliminada: %s", category['name'])

    # =========================================================================
    # PRODUCTOS
    # =========================================================================

    def _resolve(self, product: Dict[str, Any], categories: Dict[str, Any] = None) -> Dict[str, Any]:
        """Producto con la categoría resuelta a {id, name}."""
        if categories is None:
            categories = self.category_repo.get_all()
        result = dict(product)
        category = categories.get(product.get('category'))
        result['category'] = (
            {'id': category['id'], 'name': category['name']} if category else None
        )
        return result

    def _require_category(self, category_id: Any) -> str:
        if not isinstance(category_id, str) or not self.category_repo.exists(category_id):
            raise NotFound('Categoría no encontrada')
        return category_id

    def create_product(self, data: Dict[str, Any], actor: str = 'sistema') -> Dict[str, Any]:
        """
        Crea un producto.

        Args:
            data: {name, description?, price, stock, category}
            actor: Email de quien crea (auditoría)

        Raises:
            NotFound: La categoría no existe
            ValidationError: Nombre vacío, precio o stock inválidos
        """
        data = data or {}
        with self.product_repo.transaction():
            category_id = self._require_category(data.get('category'))
            name = data.get('name').strip() if isinstance(data.get('name'), str) else ''
            if not name:
                raise ValidationError('El nombre del producto es requerido')
            product = Product(
                id=new_id(),
                name=name,
                description=data.get('description') if isinstance(data.get('description'), str) else '',
                price=require_price(data.get('price')),
                stock=require_int(data.get('stock', 0), 'stock'),
                category=category_id,
            )
            self.product_repo.save_product(product.to_dict())

        if self.audit_service:
            self.audit_service.log_product_created(actor, product.id, product.name)
        return self._resolve(product.to_dict())

    def update_product(self, product_id: str, data: Dict[str, Any], actor: str = 'sistema') -> Dict[str, Any]:
        data = data or {}
        changes: Dict[str, Any] = {}

        with self.product_repo.transaction():
            current = self.product_repo.get_product(product_id)
            if not current:
                raise NotFound('Producto no encontrado')
            product = Product.from_dict(current)

            if 'category' in data:
                product.category = self._require_category(data['category'])
            if 'name' in data:
                name = data['name'].strip() if isinstance(data['name'], str) else ''
                if not name:
                    raise ValidationError('El nombre del producto es requerido')
                product.name = name
            if 'description' in data and isinstance(data['description'], str):
                product.description = data['description']
            if 'price' in data:
                product.price = require_price(data['price'])
            if 'stock' in data:
                product.stock = require_int(data['stock'], 'stock')

            new_data = product.to_dict()
            changes = {k: {'from': current.get(k), 'to': v} for k, v in new_data.items() if current.get(k) != v}
            self.product_repo.save_product(new_data)

        if self.audit_service and changes:
            self.audit_service.log_product_updated(actor, product.id, product.name, changes)
        return self._resolve(product.to_dict())

    def delete_product(self, product_id: str, actor: str = 'sistema') -> None:
        deleted = self.product_repo.delete_product(product_id)
        if not deleted:
            raise NotFound('Producto no encontrado')
        if self.audit_service:
            self.audit_service.log_product_deleted(actor, product_id, deleted.get('name', ''))

    def list_products(self) -> List[Dict[str, Any]]:
        categories = self.category_repo.get_all()
        return [self._resolve(p, categories) for p in self.product_repo.get_all().values()]

    def get_product(self, product_id: str) -> Dict[str, Any]:
        product = self.product_repo.get_product(product_id)
        if not product:
            raise NotFound('Producto no encontrado')
        return self._resolve(product)

    # =========================================================================
    # EXPLORACIÓN Y REPORTES
    # =========================================================================

    def explore(self, category_id: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Filtra productos por categoría y/o texto en el nombre.
        Ambos filtros son opcionales y se combinan con AND.
        """
        needle = search.strip().lower() if search else ''
        results = []
        for product in self.list_products():
            if category_id:
                category = product.get('category') or {}
                if category.get('id') != category_id:
                    continue
            if needle and needle not in (product.get('name') or '').lower():
                continue
            results.append(product)
        return results

    def best_selling(self, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Productos ordenados por unidades vendidas (historial de facturas).
        Los empates conservan el orden del catálogo.

        Args:
            limit: Máximo de productos a devolver (>= 1)
        """
        limit = require_int(limit, 'limit', minimum=1)
        sold = self.invoice_repo.units_sold_by_product()
        products = []
        for product in self.list_products():
            product['sold'] = sold.get(product['id'], 0)
            products.append(product)
        # sorted() es estable
        products = sorted(products, key=lambda p: p['sold'], reverse=True)
        return products[:limit]

    def check_stock(self, product_id: str, quantity: Any) -> Dict[str, Any]:
        """
        Consulta si hay stock suficiente, sin modificarlo.

        Returns:
            {product, name, stock, requested, available}
        """
        quantity = require_int(quantity, 'quantity', minimum=1)
        product = self.product_repo.get_product(product_id)
        if not product:
            raise NotFound('Producto no encontrado')
        stock = int(product.get('stock', 0))
        return {
            'product': product_id,
            'name': product.get('name'),
            'stock': stock,
            'requested': quantity,
            'available': stock >= quantity,
        }
