# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (reset_instance() + otra carpeta de datos)
#   - Cambiar repositorios sin tocar servicios
#
# Para otro almacenamiento basta con nuevas clases que implementen las
# interfaces de repositories/interfaces.py y cambiar las importaciones.
# ==============================================================================

import os
from typing import Optional

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from ventas_online.repositories import (
    AuditRepository,
    CartRepository,
    CategoryRepository,
    InvoiceRepository,
    ProductRepository,
    UserRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from ventas_online.services import (
    AuditService,
    AuthService,
    CartService,
    CatalogService,
    InvoiceService,
    UserService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(base_path='/path/to/data', secret_key='...')
        invoice_service = container.invoice_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None, secret_key: str = None, token_hours: float = 4,
                algorithm: str = 'HS256'):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None, secret_key: str = None, token_hours: float = 4,
                 algorithm: str = 'HS256'):
        """
        Inicializa el contenedor.

        Args:
            base_path: Carpeta de los JSON
            secret_key: Clave de firma de tokens
            token_hours: Vigencia de los tokens
            algorithm: Algoritmo de firma JWT
        """
        if self._initialized:
            return

        self._base_path = base_path or os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')
        self._secret_key = secret_key
        self._token_hours = token_hours
        self._algorithm = algorithm

        # Inicializar repositorios (lazy loading)
        self._user_repo: Optional[UserRepository] = None
        self._category_repo: Optional[CategoryRepository] = None
        self._product_repo: Optional[ProductRepository] = None
        self._cart_repo: Optional[CartRepository] = None
        self._invoice_repo: Optional[InvoiceRepository] = None
        self._audit_repo: Optional[AuditRepository] = None

        # Inicializar servicios (lazy loading)
        self._audit_service: Optional[AuditService] = None
        self._auth_service: Optional[AuthService] = None
        self._user_service: Optional[UserService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._cart_service: Optional[CartService] = None
        self._invoice_service: Optional[InvoiceService] = None

        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def user_repo(self) -> UserRepository:
        """Repositorio de usuarios (singleton)."""
        if self._user_repo is None:
            self._user_repo = UserRepository(self._base_path)
        return self._user_repo

    @property
    def category_repo(self) -> CategoryRepository:
        if self._category_repo is None:
            self._category_repo = CategoryRepository(self._base_path)
        return self._category_repo

    @property
    def product_repo(self) -> ProductRepository:
        """Repositorio de productos (singleton)."""
        if self._product_repo is None:
            self._product_repo = ProductRepository(self._base_path)
        return self._product_repo

    @property
    def cart_repo(self) -> CartRepository:
        if self._cart_repo is None:
            self._cart_repo = CartRepository(self._base_path)
        return self._cart_repo

    @property
    def invoice_repo(self) -> InvoiceRepository:
        """Repositorio de facturas (singleton)."""
        if self._invoice_repo is None:
            self._invoice_repo = InvoiceRepository(self._base_path)
        return self._invoice_repo

    @property
    def audit_repo(self) -> AuditRepository:
        """Repositorio de auditoría (singleton)."""
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self._base_path)
        return self._audit_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        """Servicio de auditoría (singleton)."""
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def auth_service(self) -> AuthService:
        """Servicio de tokens (singleton)."""
        if self._auth_service is None:
            self._auth_service = AuthService(
                self.user_repo,
                self._secret_key,
                self._token_hours,
                self._algorithm
            )
        return self._auth_service

    @property
    def user_service(self) -> UserService:
        """Servicio de usuarios (singleton)."""
        if self._user_service is None:
            self._user_service = UserService(
                self.user_repo,
                self.auth_service,
                self.cart_service,
                self.audit_service
            )
        return self._user_service

    @property
    def catalog_service(self) -> CatalogService:
        """Servicio de catálogo (singleton)."""
        if self._catalog_service is None:
            self._catalog_service = CatalogService(
                self.category_repo,
                self.product_repo,
                self.invoice_repo,
                self.audit_service
            )
        return self._catalog_service

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (singleton)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.cart_repo, self.product_repo)
        return self._cart_service

    @property
    def invoice_service(self) -> InvoiceService:
        """Servicio de facturas (singleton)."""
        if self._invoice_service is None:
            self._invoice_service = InvoiceService(
                self.invoice_repo,
                self.cart_service,
                self.product_repo,
                self.audit_service
            )
        return self._invoice_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        self._user_repo = None
        self._category_repo = None
        self._product_repo = None
        self._cart_repo = None
        self._invoice_repo = None
        self._audit_repo = None

        self._audit_service = None
        self._auth_service = None
        self._user_service = None
        self._catalog_service = None
        self._cart_service = None
        self._invoice_service = None

    @classmethod
    def get_instance(cls, base_path: str = None, secret_key: str = None, token_hours: float = 4,
                     algorithm: str = 'HS256') -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Los argumentos solo se usan en la primera llamada.
        """
        if cls._instance is None:
            return cls(base_path, secret_key, token_hours, algorithm)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(base_path: str = None, secret_key: str = None, token_hours: float = 4,
                  algorithm: str = 'HS256') -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(base_path, secret_key, token_hours, algorithm)
