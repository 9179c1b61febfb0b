# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza toda la lógica de registro de auditoría.
# Formatea mensajes humanizados y categoriza eventos.
# ==============================================================================

import logging
from typing import Any, Dict, List

from ventas_online.errors import ServiceError
from ventas_online.models.entities import AuditType
from ventas_online.repositories.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Centraliza:
    - Registro de eventos con mensajes humanizados
    - Categorización de eventos (USUARIO, PRODUCTO, STOCK, FACTURA, SISTEMA)
    - Consulta de logs

    Todo evento también sale por el logger del módulo (nivel INFO).
    """

    def __init__(self, audit_repo: AuditRepository):
        """
        Args:
            audit_repo: Repositorio de auditoría
        """
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: AuditType,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento de auditoría genérico.

        Args:
            log_type: Tipo de evento
            user: Usuario que realizó la acción (email)
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (factura, producto, usuario)
            details: Detalles adicionales
        """
        logger.info("[%s] %s", log_type.value, message)
        # La operación auditada ya se confirmó: un fallo aquí no la revierte
        try:
            self.audit_repo.log(log_type.value, user, message, related_id, details)
        except ServiceError:
            logger.error("No se pudo guardar el evento de auditoría: %s", message, exc_info=True)

    # ---- Usuarios ----------------------------------------------------------

    def log_user_registered(self, email: str, user_id: str) -> None:
        self.log(AuditType.USUARIO, email, f"Usuario registrado: {email}", user_id)

    def log_user_login(self, email: str, user_id: str) -> None:
        self.log(AuditType.USUARIO, email, f"Inicio de sesión: {email}", user_id)

    def log_role_change(self, admin_user: str, target: str, target_id: str, old_role: str, new_role: str) -> None:
        message = f"Cambio de rol: {target} de {old_role} a {new_role} - Por {admin_user}"
        self.log(
            AuditType.USUARIO, admin_user, message, target_id,
            {'from': old_role, 'to': new_role}
        )

    def log_user_updated(self, actor: str, target: str, target_id: str, fields: List[str]) -> None:
        message = f"Usuario actualizado: {target} ({', '.join(fields) or 'sin cambios'}) - Por {actor}"
        self.log(AuditType.USUARIO, actor, message, target_id, {'fields': fields})

    def log_password_change(self, actor: str, target: str, target_id: str) -> None:
        if actor == target:
            message = f"Contraseña cambiada por el propio usuario: {target}"
        else:
            message = f"Contraseña de {target} cambiada por {actor}"
        self.log(AuditType.USUARIO, actor, message, target_id)

    def log_user_deleted(self, actor: str, deleted_user: str, deleted_id: str) -> None:
        message = f"Usuario eliminado: {deleted_user} - Por {actor}"
        self.log(AuditType.USUARIO, actor, message, deleted_id)

    # ---- Catálogo ----------------------------------------------------------

    def log_product_created(self, user: str, product_id: str, name: str) -> None:
        self.log(AuditType.PRODUCTO, user, f"Producto creado: {name} por {user}", product_id)

    def log_product_updated(self, user: str, product_id: str, name: str, changes: Dict[str, Any]) -> None:
        self.log(
            AuditType.PRODUCTO, user, f"Producto actualizado: {name} por {user}",
            product_id, {'changes': changes}
        )

    def log_product_deleted(self, user: str, product_id: str, name: str) -> None:
        self.log(AuditType.PRODUCTO, user, f"Producto eliminado: {name} por {user}", product_id)

    # ---- Facturas y stock --------------------------------------------------

    def log_invoice_created(self, user: str, invoice_id: str, total: float, items_count: int) -> None:
        message = f"Factura {invoice_id} creada por {user} - Total: Q {total:.2f} - {items_count} items"
        self.log(
            AuditType.FACTURA, user, message, invoice_id,
            {'total': total, 'items_count': items_count}
        )

    def log_invoice_updated(self, user: str, invoice_id: str, old_status: str, new_status: str) -> None:
        message = f"Factura {invoice_id} actualizada: {old_status} → {new_status} por {user}"
        self.log(
            AuditType.FACTURA, user, message, invoice_id,
            {'from': old_status, 'to': new_status}
        )

    def log_invoice_deleted(self, user: str, invoice_id: str) -> None:
        self.log(AuditType.FACTURA, user, f"Factura {invoice_id} eliminada por {user}", invoice_id)

    def log_stock_changes(self, user: str, invoice_id: str, changes: Dict[str, int], reason: str) -> None:
        """
        Registra los movimientos de stock ligados a una factura.

        Args:
            changes: {product_id: delta}
            reason: 'venta', 'edición' o 'reposición'
        """
        if not changes:
            return
        desc = ', '.join(f"{pid}: {delta:+d}" for pid, delta in changes.items())
        message = f"Movimiento de stock por {reason} (factura {invoice_id}): {desc}"
        self.log(AuditType.STOCK, user, message, invoice_id, {'changes': changes})

    def log_system(self, message: str, details: Dict[str, Any] = None) -> None:
        self.log(AuditType.SISTEMA, 'sistema', message, '', details)

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self.audit_repo.get_recent_logs(limit)

    def get_logs_for(self, related_id: str) -> List[Dict[str, Any]]:
        return self.audit_repo.get_logs_by_related_id(related_id)
