# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a products.json
# Los productos se almacenan como diccionario: {product_id: {datos_producto}}
#
# STOCK: toda modificación de stock pasa por apply_stock_changes(), que
# valida y escribe bajo el mismo lock. El stock NUNCA queda negativo.
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from ventas_online.errors import InsufficientStock, NotFound
from ventas_online.repositories.base import DictRepository


class ProductRepository(DictRepository):
    """
    Repositorio de productos del catálogo.

    Formato de datos en products.json:
    {
        "3f2a...": {
            "id": "3f2a...",
            "name": "Café 500g",
            "description": "...",
            "price": 35.5,
            "stock": 12,
            "category": "a1b2..."
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'products.json'))

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(product_id)

    def product_exists(self, product_id: str) -> bool:
        return self.exists(product_id)

    def save_product(self, product_data: Dict[str, Any]) -> None:
        self.update(product_data['id'], product_data)

    def delete_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.delete(product_id)

    def get_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('category', category_id)

    # =========================================================================
    # CONTROL DE STOCK
    # =========================================================================

    def apply_stock_changes(self, changes: Dict[str, int], skip_missing: bool = False) -> Dict[str, int]:
        """
        Aplica varios cambios de stock como una sola escritura.

        Primero valida TODOS los cambios; si alguno dejaría stock negativo
        no se escribe nada.

        Args:
            changes: {product_id: delta} (negativo descuenta, positivo repone)
            skip_missing: Ignorar productos que ya no existen (reposición)

        Returns:
            {product_id: stock_resultante} de los productos modificados

        Raises:
            NotFound: Producto inexistente (si skip_missing es False)
            InsufficientStock: Algún descuento supera el stock actual
        """
        with self._file_lock:
            products = self.get_all()
            result = {}

            for product_id, delta in changes.items():
                product = products.get(product_id)
                if product is None:
                    if skip_missing:
                        continue
                    raise NotFound(f'Producto con ID {product_id} no encontrado')
                new_stock = int(product.get('stock', 0)) + int(delta)
                if new_stock < 0:
                    raise InsufficientStock(
                        f"Stock insuficiente para {product.get('name')}. "
                        f"Solicitado: {-delta}, Disponible: {product.get('stock', 0)}"
                    )
                result[product_id] = new_stock

            if not result:
                return result

            for product_id, new_stock in result.items():
                products[product_id]['stock'] = new_stock
            self.save_all(products)
            return result
