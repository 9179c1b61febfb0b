# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con el carrito de compras.
# Un carrito persistente por usuario (carts.json). No se reserva stock al
# agregar: el stock se valida al facturar.
# ==============================================================================

from typing import Any, Dict, Optional

from ventas_online.errors import NotFound
from ventas_online.models.entities import Cart, new_id
from ventas_online.repositories.cart_repository import CartRepository
from ventas_online.repositories.product_repository import ProductRepository
from ventas_online.services.catalog_service import require_int


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar items del carrito
    - Mostrar el carrito con productos actuales
    - Limpiar carrito (tras facturar) y eliminarlo (al borrar la cuenta)
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        """
        Args:
            cart_repo: Repositorio de carritos
            product_repo: Repositorio de productos
        """
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    def find_cart(self, user_id: str) -> Optional[Cart]:
        data = self.cart_repo.get_by_user(user_id)
        return Cart.from_dict(data) if data else None

    def _load(self, user_id: str) -> Cart:
        cart = self.find_cart(user_id)
        if cart is None:
            raise NotFound('Carrito no encontrado')
        return cart

    def add_item(self, user_id: str, product_id: Any, quantity: Any = 1) -> Dict[str, Any]:
        """
        Agrega un producto al carrito (crea el carrito si no existe).

        Si el producto ya está en el carrito se suma la cantidad.

        Raises:
            ValidationError: Cantidad no entera o menor a 1
            NotFound: Producto inexistente
        """
        quantity = require_int(quantity, 'quantity', minimum=1)

        with self.cart_repo.transaction():
            if not isinstance(product_id, str) or not self.product_repo.product_exists(product_id):
                raise NotFound('Producto no encontrado')

            cart = self.find_cart(user_id) or Cart(id=new_id(), user=user_id)
            cart.add(product_id, quantity)
            self.cart_repo.save_cart(cart.to_dict())

        return cart.to_dict()

    def get_cart(self, user_id: str) -> Dict[str, Any]:
        """
        Carrito con cada producto resuelto a sus datos actuales.
        Un producto eliminado del catálogo aparece como None.

        Returns:
            Dict con id, user, items, total_items
        """
        cart = self._load(user_id)
        products = self.product_repo.get_all()
        return {
            'id': cart.id,
            'user': cart.user,
            'items': [
                {'product': products.get(item.product), 'quantity': item.quantity}
                for item in cart.items
            ],
            'total_items': cart.total_items,
        }

    def remove_item(self, user_id: str, product_id: str) -> Dict[str, Any]:
        with self.cart_repo.transaction():
            cart = self._load(user_id)
            if not cart.remove(product_id):
                raise NotFound('Producto no encontrado en el carrito')
            self.cart_repo.save_cart(cart.to_dict())
        return cart.to_dict()

    def clear_cart(self, user_id: str) -> None:
        """Vacía las líneas conservando el carrito."""
        with self.cart_repo.transaction():
            cart = self.find_cart(user_id)
            if cart is None:
                return
            cart.clear()
            self.cart_repo.save_cart(cart.to_dict())

    def delete_cart(self, user_id: str) -> bool:
        return self.cart_repo.delete_by_user(user_id)
