# ==============================================================================
# REPOSITORIO DE CARRITOS
# ==============================================================================
# Encapsula todo el acceso a carts.json
# Un carrito por usuario: la clave del diccionario es el ID del usuario.
# ==============================================================================

import os
from typing import Any, Dict, Optional

from ventas_online.repositories.base import DictRepository


class CartRepository(DictRepository):
    """
    Formato de datos en carts.json:
    {
        "<user_id>": {
            "id": "c9d8...",
            "user": "<user_id>",
            "items": [{"product": "3f2a...", "quantity": 2}]
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'carts.json'))

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(user_id)

    def save_cart(self, cart_data: Dict[str, Any]) -> None:
        self.update(cart_data['user'], cart_data)

    def delete_by_user(self, user_id: str) -> bool:
        return self.delete(user_id) is not None
