# ==============================================================================
# SERVICIO DE FACTURAS
# ==============================================================================
# Convierte el carrito en una factura persistida.
#
# FLUJO DE FACTURACIÓN (todo dentro de transaction()):
#   0. Idempotency-Key repetida → se devuelve la factura existente
#   1. Carrito vacío o inexistente → EmptyCart
#   2. Producto inexistente o sin stock → ProductUnavailable
#   3. Cantidad mayor al stock → InsufficientStock
#   4. Snapshot de líneas (nombre y precio congelados) + total
#   5. Guardar factura (pending)
#   6. Descontar stock en UNA escritura; si falla se borra la factura
#   7. Vaciar el carrito; si falla se borra la factura y se repone el stock
#
# Si algo falla entre 1 y 7, stock y carrito quedan como estaban.
# La auditoría se escribe después y nunca hace fallar la factura.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional, Tuple

from ventas_online.errors import (
    EmptyCart,
    Forbidden,
    InsufficientStock,
    NotFound,
    ProductUnavailable,
    ServiceError,
    ValidationError,
)
from ventas_online.models.entities import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Product,
    User,
    new_id,
    utc_now,
)
from ventas_online.performance_logger import profile_function
from ventas_online.repositories.invoice_repository import InvoiceRepository
from ventas_online.repositories.product_repository import ProductRepository
from ventas_online.services.audit_service import AuditService
from ventas_online.services.cart_service import CartService
from ventas_online.services.catalog_service import require_int

logger = logging.getLogger(__name__)


class InvoiceService:
    """
    Servicio de facturación.

    Responsabilidades:
    - Crear facturas desde el carrito (atómico, todo o nada)
    - Consultas con control de propietario
    - Edición y eliminación por ADMIN con ajuste de stock
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        cart_service: CartService,
        product_repo: ProductRepository,
        audit_service: AuditService = None
    ):
        self.invoice_repo = invoice_repo
        self.cart_service = cart_service
        self.product_repo = product_repo
        self.audit_service = audit_service

    # =========================================================================
    # CREACIÓN
    # =========================================================================

    @profile_function(name='Crear factura desde carrito')
    def create_invoice(self, actor: User, idempotency_key: Optional[str] = None) -> Tuple[Dict[str, Any], bool]:
        """
        Crea una factura con el contenido del carrito del usuario.

        Args:
            actor: Usuario autenticado (CLIENT)
            idempotency_key: Clave opcional para reintentos seguros

        Returns:
            (factura, creada) - creada es False si se devolvió una factura
            existente con la misma clave

        Raises:
            EmptyCart, ProductUnavailable, InsufficientStock, StoreFault
        """
        key = idempotency_key.strip() if isinstance(idempotency_key, str) else ''

        with self.invoice_repo.transaction():
            if key:
                existing = self.invoice_repo.find_by_idempotency_key(actor.id, key)
                if existing:
                    logger.info("Factura %s devuelta por Idempotency-Key repetida", existing['id'])
                    return existing, False

            cart = self.cart_service.find_cart(actor.id)
            if cart is None or cart.is_empty:
                raise EmptyCart()

            # Validar TODO antes de escribir
            catalog = self.product_repo.get_all()
            products: Dict[str, Product] = {}
            for line in cart.items:
                data = catalog.get(line.product)
                if not data or int(data.get('stock', 0)) <= 0:
                    label = data.get('name') if data else line.product
                    raise ProductUnavailable(f'Producto no disponible: {label}')
                products[line.product] = Product.from_dict(data)

            for line in cart.items:
                product = products[line.product]
                if not product.has_stock(line.quantity):
                    raise InsufficientStock(
                        f'Stock insuficiente para {product.name}. '
                        f'Solicitado: {line.quantity}, Disponible: {product.stock}'
                    )

            invoice = Invoice(
                id=new_id(),
                user=actor.id,
                items=[InvoiceItem.snapshot(products[line.product], line.quantity) for line in cart.items],
                idempotency_key=key or None,
            )
            self.invoice_repo.save_invoice(invoice.to_dict())

            changes = {pid: -qty for pid, qty in invoice.quantities().items()}
            try:
                self.product_repo.apply_stock_changes(changes)
            except ServiceError:
                logger.error("Fallo al descontar stock; se revierte la factura %s", invoice.id)
                self.invoice_repo.delete_invoice(invoice.id)
                raise

            try:
                self.cart_service.clear_cart(actor.id)
            except ServiceError:
                logger.error("Fallo al vaciar el carrito; se revierte la factura %s", invoice.id)
                self.invoice_repo.delete_invoice(invoice.id)
                self.product_repo.apply_stock_changes(invoice.quantities())
                raise

        if self.audit_service:
            self.audit_service.log_invoice_created(actor.email, invoice.id, invoice.total, len(invoice.items))
            self.audit_service.log_stock_changes(actor.email, invoice.id, changes, 'venta')
        return invoice.to_dict(), True

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def _load(self, invoice_id: str) -> Invoice:
        data = self.invoice_repo.get_invoice(invoice_id)
        if not data:
            raise NotFound('Factura no encontrada')
        return Invoice.from_dict(data)

    def get_invoice(self, actor: User, invoice_id: str) -> Dict[str, Any]:
        invoice = self._load(invoice_id)
        if not actor.is_admin() and invoice.user != actor.id:
            raise Forbidden('No puedes ver facturas de otro usuario')
        return invoice.to_dict()

    def list_user_invoices(self, actor: User, user_id: str) -> List[Dict[str, Any]]:
        if not actor.is_admin() and actor.id != user_id:
            raise Forbidden('No puedes ver facturas de otro usuario')
        return self.invoice_repo.get_by_user(user_id)

    def list_invoices(self) -> List[Dict[str, Any]]:
        invoices = self.invoice_repo.get_all().values()
        return sorted(invoices, key=lambda i: i.get('created_at', ''), reverse=True)

    # =========================================================================
    # MODIFICACIONES (ADMIN)
    # =========================================================================

    @staticmethod
    def _parse_items(items: Any) -> Dict[str, int]:
        """
        Normaliza [{product, quantity}] a {product_id: cantidad}.
        Productos repetidos se suman.
        """
        if not isinstance(items, list) or not items:
            raise ValidationError("'items' debe ser una lista con al menos un producto")
        quantities: Dict[str, int] = {}
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get('product'), str):
                raise ValidationError("Cada item debe tener 'product' y 'quantity'")
            qty = require_int(item.get('quantity'), 'quantity', minimum=1)
            quantities[item['product']] = quantities.get(item['product'], 0) + qty
        return quantities

    def update_invoice(
        self,
        actor: User,
        invoice_id: str,
        status: Any = None,
        items: Any = None
    ) -> Dict[str, Any]:
        """
        Edita estado y/o líneas de una factura.

        Al cambiar las líneas, el stock se ajusta por la diferencia entre
        cantidades anteriores y nuevas, y el snapshot se reconstruye con
        los precios actuales.

        Raises:
            ValidationError: Estado o items inválidos
            NotFound: Factura o producto inexistente
            InsufficientStock: El aumento supera el stock disponible
        """
        new_status = None
        if status is not None:
            new_status = InvoiceStatus.parse(status)
            if new_status is None:
                raise ValidationError('Estado inválido. Valores permitidos: pending, paid, cancelled')
        new_quantities = self._parse_items(items) if items is not None else None

        changes: Dict[str, int] = {}
        with self.invoice_repo.transaction():
            invoice = self._load(invoice_id)
            old_status = invoice.status

            if new_quantities is not None:
                catalog = self.product_repo.get_all()
                for pid in new_quantities:
                    if pid not in catalog:
                        raise NotFound(f'Producto con ID {pid} no encontrado')

                old_quantities = invoice.quantities()
                for pid in set(old_quantities) | set(new_quantities):
                    delta = old_quantities.get(pid, 0) - new_quantities.get(pid, 0)
                    if delta:
                        changes[pid] = delta

                # Productos que ya no existen no reciben reposición
                self.product_repo.apply_stock_changes(changes, skip_missing=True)
                invoice.items = [
                    InvoiceItem.snapshot(Product.from_dict(catalog[pid]), qty)
                    for pid, qty in new_quantities.items()
                ]

            if new_status is not None:
                invoice.status = new_status
            invoice.updated_at = utc_now()

            try:
                self.invoice_repo.save_invoice(invoice.to_dict())
            except ServiceError:
                if changes:
                    self.product_repo.apply_stock_changes(
                        {pid: -delta for pid, delta in changes.items()}, skip_missing=True
                    )
                raise

        if self.audit_service:
            self.audit_service.log_invoice_updated(actor.email, invoice.id, old_status.value, invoice.status.value)
            self.audit_service.log_stock_changes(actor.email, invoice.id, changes, 'edición')
        return invoice.to_dict()

    def delete_invoice(self, actor: User, invoice_id: str) -> None:
        """
        Elimina una factura devolviendo al stock las cantidades del snapshot.
        Productos que ya no existen se omiten.
        """
        with self.invoice_repo.transaction():
            invoice = self._load(invoice_id)
            restored = self.product_repo.apply_stock_changes(invoice.quantities(), skip_missing=True)
            # restored trae el stock resultante; lo repuesto son las cantidades del snapshot
            returned = {pid: qty for pid, qty in invoice.quantities().items() if pid in restored}
            try:
                self.invoice_repo.delete_invoice(invoice_id)
            except ServiceError:
                logger.error("Fallo al eliminar la factura %s; se deshace la reposición", invoice_id)
                self.product_repo.apply_stock_changes(
                    {pid: -qty for pid, qty in returned.items()}, skip_missing=True
                )
                raise

        if self.audit_service:
            self.audit_service.log_invoice_deleted(actor.email, invoice_id)
            self.audit_service.log_stock_changes(actor.email, invoice_id, returned, 'reposición')
