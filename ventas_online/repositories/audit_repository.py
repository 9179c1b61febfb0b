# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a audit.json
# La auditoría se almacena como lista: [{log1}, {log2}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List

from ventas_online.models.entities import AuditLog
from ventas_online.repositories.base import ListRepository


class AuditRepository(ListRepository):
    """
    Repositorio para gestión del log de auditoría.

    Formato de datos en audit.json (más reciente primero):
    [
        {
            "type": "FACTURA",
            "user": "ana@x.com",
            "message": "Factura e4f5... creada por ana@x.com - Total: Q 20.00",
            "timestamp": "2024-01-01T10:00:00+00:00",
            "related_id": "e4f5...",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'audit.json'))

    def load(self) -> List[Dict[str, Any]]:
        """
        Carga todos los logs de auditoría.

        Returns:
            Lista de logs (más recientes primero)
        """
        return sorted(self.get_all(), key=lambda x: x.get('timestamp', ''), reverse=True)

    def save(self, logs: List[Dict[str, Any]]) -> None:
        """
        Guarda todos los logs aplicando el límite de registros.

        Args:
            logs: Lista de logs
        """
        if len(logs) > self.MAX_LOGS:
            logs = logs[:self.MAX_LOGS]
        self.save_all(logs)

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un nuevo evento de auditoría.

        Args:
            log_type: Tipo de evento (USUARIO, PRODUCTO, STOCK, FACTURA, SISTEMA)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (factura, producto, usuario)
            details: Detalles adicionales
        """
        entry = AuditLog(
            type=log_type,
            user=user or 'sistema',
            message=message,
            related_id=related_id,
            details=details or {},
        )
        with self._file_lock:
            logs = self.get_all()
            logs.insert(0, entry.to_dict())
            self.save(logs)

    def get_logs_by_related_id(self, related_id: str) -> List[Dict[str, Any]]:
        return [log for log in self.load() if log.get('related_id') == related_id]

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self.load()[:limit]
