# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia:
# los repositorios guardan to_dict() y los servicios reconstruyen con
# from_dict().
# ==============================================================================

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def new_id() -> str:
    """Genera un identificador único (32 caracteres hex)."""
    return uuid.uuid4().hex


def utc_now() -> str:
    """Timestamp ISO-8601 en UTC."""
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"

    @classmethod
    def parse(cls, value: Any) -> Optional['UserRole']:
        """
        Normaliza un string de rol ('admin', ' Client ') a UserRole.

        Returns:
            UserRole o None si el valor no es un rol válido
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class InvoiceStatus(str, Enum):
    """Estados posibles de una factura."""
    PENDING = "pending"      # Recién creada desde el carrito
    PAID = "paid"            # Pagada
    CANCELLED = "cancelled"  # Anulada por un administrador

    @classmethod
    def parse(cls, value: Any) -> Optional['InvoiceStatus']:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    USUARIO = "USUARIO"
    PRODUCTO = "PRODUCTO"
    STOCK = "STOCK"
    FACTURA = "FACTURA"
    SISTEMA = "SISTEMA"


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class User:
    """
    Representa una cuenta del sistema.

    Attributes:
        id: Identificador único
        name: Nombre visible
        email: Correo (único, se guarda en minúsculas)
        password_hash: Hash de la contraseña (nunca en texto plano)
        role: Rol que define sus permisos
        active: False bloquea login y tokens ya emitidos
    """
    id: str
    name: str
    email: str
    password_hash: str
    role: UserRole = UserRole.CLIENT
    active: bool = True

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'password': self.password_hash,
            'role': self.role.value,
            'active': self.active,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Representación segura para respuestas (sin hash)."""
        data = self.to_dict()
        del data['password']
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            email=data.get('email', ''),
            password_hash=data.get('password', ''),
            role=UserRole.parse(data.get('role')) or UserRole.CLIENT,
            active=bool(data.get('active', True)),
        )


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

@dataclass
class Category:
    id: str
    name: str
    description: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'description': self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            description=data.get('description', ''),
        )


@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador único
        name: Nombre del producto
        description: Descripción libre
        price: Precio unitario (>= 0)
        stock: Unidades disponibles (nunca negativo)
        category: ID de la categoría
    """
    id: str
    name: str
    price: float
    stock: int
    category: str
    description: str = ''

    def has_stock(self, quantity: int) -> bool:
        return self.stock >= quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'stock': self.stock,
            'category': self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            description=data.get('description', ''),
            price=float(data.get('price', 0.0)),
            stock=int(data.get('stock', 0)),
            category=data.get('category', ''),
        )


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """Línea del carrito: referencia a producto + cantidad (>= 1)."""
    product: str
    quantity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {'product': self.product, 'quantity': self.quantity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        return cls(product=data.get('product', ''), quantity=int(data.get('quantity', 1)))


@dataclass
class Cart:
    """
    Carrito de un usuario. Hay como máximo uno por usuario y nunca se
    elimina al facturar: solo se vacía.
    """
    id: str
    user: str
    items: List[CartItem] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_item(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product == product_id:
                return item
        return None

    def add(self, product_id: str, quantity: int) -> None:
        """Suma a la línea existente o agrega una nueva al final."""
        existing = self.find_item(product_id)
        if existing:
            existing.quantity += quantity
        else:
            self.items.append(CartItem(product=product_id, quantity=quantity))

    def remove(self, product_id: str) -> bool:
        existing = self.find_item(product_id)
        if existing is None:
            return False
        self.items.remove(existing)
        return True

    def clear(self) -> None:
        self.items = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user': self.user,
            'items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cart':
        return cls(
            id=data.get('id', ''),
            user=data.get('user', ''),
            items=[CartItem.from_dict(i) for i in data.get('items', [])],
        )


# ==============================================================================
# ENTIDADES DE FACTURA
# ==============================================================================

@dataclass(frozen=True)
class InvoiceItem:
    """
    Línea de factura congelada al momento de facturar.
    Copia nombre y precio: editar el producto después no la altera.
    """
    product: str
    name: str
    quantity: int
    unit_price: float

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product': self.product,
            'name': self.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'subtotal': self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvoiceItem':
        return cls(
            product=data.get('product', ''),
            name=data.get('name', ''),
            quantity=int(data.get('quantity', 0)),
            unit_price=float(data.get('unit_price', 0.0)),
        )

    @classmethod
    def snapshot(cls, product: Product, quantity: int) -> 'InvoiceItem':
        return cls(
            product=product.id,
            name=product.name,
            quantity=quantity,
            unit_price=round(product.price, 2),
        )


@dataclass
class Invoice:
    """
    Factura generada desde un carrito.

    Attributes:
        id: Identificador único
        user: ID del usuario dueño
        items: Snapshot de líneas (producto, cantidad, precio)
        status: Estado de la factura
        created_at: Fecha de creación (UTC)
        updated_at: Última modificación (UTC)
        idempotency_key: Clave enviada por el cliente para reintentos seguros
    """
    id: str
    user: str
    items: List[InvoiceItem] = field(default_factory=list)
    status: InvoiceStatus = InvoiceStatus.PENDING
    created_at: str = ''
    updated_at: str = ''
    idempotency_key: Optional[str] = None

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now()
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def total(self) -> float:
        return round(sum(item.subtotal for item in self.items), 2)

    def quantities(self) -> Dict[str, int]:
        """Cantidad total por producto dentro del snapshot."""
        result: Dict[str, int] = {}
        for item in self.items:
            result[item.product] = result.get(item.product, 0) + item.quantity
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user': self.user,
            'items': [item.to_dict() for item in self.items],
            'status': self.status.value,
            'total': self.total,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'idempotency_key': self.idempotency_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Invoice':
        return cls(
            id=data.get('id', ''),
            user=data.get('user', ''),
            items=[InvoiceItem.from_dict(i) for i in data.get('items', [])],
            status=InvoiceStatus.parse(data.get('status')) or InvoiceStatus.PENDING,
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', ''),
            idempotency_key=data.get('idempotency_key'),
        )


# ==============================================================================
# ENTIDADES DE AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """
    Registro de auditoría.

    Attributes:
        type: Tipo de evento (USUARIO, PRODUCTO, STOCK, FACTURA, SISTEMA)
        user: Usuario que realizó la acción
        message: Mensaje descriptivo humanizado
        timestamp: Fecha y hora del evento
        related_id: ID relacionado (factura, producto, usuario)
        details: Detalles adicionales
    """
    type: str
    user: str
    message: str
    timestamp: str = ''
    related_id: str = ''
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'user': self.user,
            'message': self.message,
            'timestamp': self.timestamp,
            'related_id': self.related_id,
            'details': self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditLog':
        return cls(
            type=data.get('type', ''),
            user=data.get('user', ''),
            message=data.get('message', ''),
            timestamp=data.get('timestamp', ''),
            related_id=data.get('related_id', ''),
            details=data.get('details', {}),
        )
