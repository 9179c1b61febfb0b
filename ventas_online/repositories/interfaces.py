# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Este archivo define las interfaces (protocolos) que los repositorios
# deben implementar. Esto permite:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar JSON → base de datos solo requiere nueva implementación
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# REQUISITO PARA OTRA IMPLEMENTACIÓN:
#    IProductRepository.apply_stock_changes debe ser un update condicional
#    atómico ("descontar N solo si el resultado queda >= 0") y
#    transaction() debe agrupar varias escrituras como una unidad.
#
# ==============================================================================

from typing import Any, ContextManager, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IDictRepository(Protocol):
    """Operaciones mínimas de un repositorio indexado por ID."""

    def get_all(self) -> Dict[str, Any]:
        ...

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def update(self, record_id: str, record_data: Dict[str, Any]) -> None:
        ...

    def delete(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def transaction(self) -> ContextManager[None]:
        ...


@runtime_checkable
class IUserRepository(IDictRepository, Protocol):

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        ...

    def email_taken(self, email: str, exclude_id: str = None) -> bool:
        ...

    def create_user(self, user_data: Dict[str, Any]) -> None:
        ...

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> bool:
        ...

    def delete_user(self, user_id: str) -> bool:
        ...

    def count_admins(self) -> int:
        ...


@runtime_checkable
class IProductRepository(IDictRepository, Protocol):

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save_product(self, product_data: Dict[str, Any]) -> None:
        ...

    def delete_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        ...

    def apply_stock_changes(self, changes: Dict[str, int], skip_missing: bool = False) -> Dict[str, int]:
        """Update condicional atómico de stock (todo o nada)."""
        ...


@runtime_checkable
class ICartRepository(IDictRepository, Protocol):

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save_cart(self, cart_data: Dict[str, Any]) -> None:
        ...

    def delete_by_user(self, user_id: str) -> bool:
        ...


@runtime_checkable
class IInvoiceRepository(IDictRepository, Protocol):

    def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save_invoice(self, invoice_data: Dict[str, Any]) -> None:
        ...

    def delete_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        ...

    def find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Dict[str, Any]]:
        ...

    def units_sold_by_product(self) -> Dict[str, int]:
        ...


@runtime_checkable
class IAuditRepository(Protocol):

    def load(self) -> List[Dict[str, Any]]:
        ...

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        ...
