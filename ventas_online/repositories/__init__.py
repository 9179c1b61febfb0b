# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (actualmente JSON).
# Para otro almacenamiento solo hay que modificar esta capa.
# Las interfaces (métodos públicos) permanecen iguales.
#
# ESTRUCTURA:
# ├── interfaces.py            → Protocolos/Interfaces
# ├── base.py                  → Clases base JSON + transaction()
# ├── user_repository.py       → users.json
# ├── category_repository.py   → categories.json
# ├── product_repository.py    → products.json (update condicional de stock)
# ├── cart_repository.py       → carts.json
# ├── invoice_repository.py    → invoices.json
# └── audit_repository.py      → audit.json
# ==============================================================================

from ventas_online.repositories.interfaces import (
    IDictRepository,
    IUserRepository,
    IProductRepository,
    ICartRepository,
    IInvoiceRepository,
    IAuditRepository,
)

from ventas_online.repositories.base import BaseRepository, DictRepository, ListRepository
from ventas_online.repositories.user_repository import UserRepository
from ventas_online.repositories.category_repository import CategoryRepository
from ventas_online.repositories.product_repository import ProductRepository
from ventas_online.repositories.cart_repository import CartRepository
from ventas_online.repositories.invoice_repository import InvoiceRepository
from ventas_online.repositories.audit_repository import AuditRepository

__all__ = [
    # Interfaces
    'IDictRepository',
    'IUserRepository',
    'IProductRepository',
    'ICartRepository',
    'IInvoiceRepository',
    'IAuditRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',

    # Implementaciones JSON
    'UserRepository',
    'CategoryRepository',
    'ProductRepository',
    'CartRepository',
    'InvoiceRepository',
    'AuditRepository',
]
