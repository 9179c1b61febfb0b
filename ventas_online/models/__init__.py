# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Beneficios:
#   - Type hints para mejor documentación y autocompletado
#   - Serialización explícita (to_dict / from_dict) para los JSON
#   - Independiente del mecanismo de persistencia
# ==============================================================================

from .entities import (
    # Utilidades
    new_id,
    utc_now,

    # Usuarios
    User,
    UserRole,

    # Catálogo
    Category,
    Product,

    # Carrito
    Cart,
    CartItem,

    # Facturas
    Invoice,
    InvoiceItem,
    InvoiceStatus,

    # Auditoría
    AuditLog,
    AuditType,
)

__all__ = [
    'new_id',
    'utc_now',

    # Usuarios
    'User',
    'UserRole',

    # Catálogo
    'Category',
    'Product',

    # Carrito
    'Cart',
    'CartItem',

    # Facturas
    'Invoice',
    'InvoiceItem',
    'InvoiceStatus',

    # Auditoría
    'AuditLog',
    'AuditType',
]
