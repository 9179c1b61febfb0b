# ==============================================================================
# REPOSITORIO DE CATEGORÍAS
# ==============================================================================
# Encapsula todo el acceso a categories.json
# ==============================================================================

import os
from typing import Any, Dict, Optional

from ventas_online.repositories.base import DictRepository


class CategoryRepository(DictRepository):
    """
    Formato de datos en categories.json:
    {
        "a1b2...": {"id": "a1b2...", "name": "Bebidas", "description": ""}
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'categories.json'))

    def get_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Busca una categoría por nombre sin distinguir mayúsculas."""
        wanted = (name or '').strip().lower()
        for category in self.get_all().values():
            if (category.get('name') or '').lower() == wanted:
                return category
        return None
