# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Encapsula todo el acceso a users.json
# Los usuarios se almacenan como diccionario: {user_id: {datos}}
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from ventas_online.repositories.base import DictRepository


class UserRepository(DictRepository):
    """
    Repositorio para gestión de usuarios.

    Formato de datos en users.json:
    {
        "3f2a...": {"id": "3f2a...", "name": "Ana", "email": "ana@x.com",
                    "password": "scrypt:...", "role": "CLIENT", "active": true}
    }
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'users.json'))

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(user_id)

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Busca un usuario por correo (sin distinguir mayúsculas).

        Args:
            email: Correo a buscar

        Returns:
            Datos del usuario o None
        """
        if not email:
            return None
        wanted = email.strip().lower()
        for user in self.get_all().values():
            if (user.get('email') or '').lower() == wanted:
                return user
        return None

    def email_taken(self, email: str, exclude_id: str = None) -> bool:
        """True si otro usuario (distinto de exclude_id) ya usa el correo."""
        user = self.get_by_email(email)
        return user is not None and user.get('id') != exclude_id

    def create_user(self, user_data: Dict[str, Any]) -> None:
        self.update(user_data['id'], user_data)

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> bool:
        """
        Actualiza campos de un usuario.

        Args:
            user_id: ID del usuario
            updates: Campos a actualizar

        Returns:
            True si se actualizó, False si no existe
        """
        with self._file_lock:
            users = self.get_all()
            if user_id not in users:
                return False
            users[user_id].update(updates)
            self.save_all(users)
            return True

    def delete_user(self, user_id: str) -> bool:
        return self.delete(user_id) is not None

    def get_users_by_role(self, role: str) -> List[Dict[str, Any]]:
        return self.find_all_by('role', role)

    def count_admins(self) -> int:
        return len(self.get_users_by_role('ADMIN'))
