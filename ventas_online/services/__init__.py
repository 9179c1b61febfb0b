# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas (controllers) solo llaman a servicios
# 4. Los errores se lanzan (ventas_online.errors), NO se devuelven como dicts
#
# ESTRUCTURA:
# ├── auth_service.py      → Tokens JWT: emisión y verificación
# ├── user_service.py      → Registro, login, usuarios, roles
# ├── catalog_service.py   → Categorías, productos, stock, más vendidos
# ├── cart_service.py      → Carrito de compras (uno por usuario)
# ├── invoice_service.py   → Facturación atómica desde el carrito
# └── audit_service.py     → Logs de actividad
# ==============================================================================

from ventas_online.services.audit_service import AuditService
from ventas_online.services.auth_service import AuthService
from ventas_online.services.user_service import UserService
from ventas_online.services.catalog_service import CatalogService
from ventas_online.services.cart_service import CartService
from ventas_online.services.invoice_service import InvoiceService

__all__ = [
    'AuditService',
    'AuthService',
    'UserService',
    'CatalogService',
    'CartService',
    'InvoiceService',
]
