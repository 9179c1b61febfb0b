# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Taxonomía de errores que lanzan los servicios y repositorios.
# Las rutas NO capturan estos errores: main.py registra un único
# errorhandler que los convierte en {success: False, message} + status HTTP.
# ==============================================================================


class ServiceError(Exception):
    """Error base de negocio. Cada subclase define su status HTTP."""

    status_code = 400
    default_message = 'Operación no permitida'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    """Falta la credencial o el header Authorization está mal formado."""
    status_code = 401
    default_message = 'No autorizado. Se requiere token'


class InvalidToken(ServiceError):
    """Firma inválida, token expirado o usuario inexistente/inactivo."""
    status_code = 401
    default_message = 'Token inválido o expirado'


class Forbidden(ServiceError):
    status_code = 403
    default_message = 'Acceso denegado'


class NotFound(ServiceError):
    status_code = 404
    default_message = 'Recurso no encontrado'


class ValidationError(ServiceError):
    status_code = 400
    default_message = 'Datos inválidos'


class EmptyCart(ServiceError):
    status_code = 400
    default_message = 'No hay productos en el carrito para crear una factura'


class ProductUnavailable(ServiceError):
    status_code = 400
    default_message = 'Producto no disponible o sin stock'


class InsufficientStock(ServiceError):
    status_code = 400
    default_message = 'Stock insuficiente'


class StoreFault(ServiceError):
    """Error de persistencia. El mensaje real solo se registra en logs."""
    status_code = 500
    default_message = 'Error interno del almacenamiento'
