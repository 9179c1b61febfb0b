# ==============================================================================
# GUARDIAS DE ACCESO - Decoradores para rutas
# ==============================================================================
# Se evalúan ANTES del cuerpo de la ruta. No devuelven respuestas: lanzan
# errores del dominio y el errorhandler de main.py los convierte en JSON.
#
# Uso:
#   @app.route('/api/users')
#   @role_required(UserRole.ADMIN)
#   def list_users(): ...
#
# Identidad disponible en la ruta:
#   g.user          → entidad User
#   g.current_user  → dict público (sin hash)
# ==============================================================================

from functools import wraps

from flask import current_app, g, request

from ventas_online.app_container import AppContainer, get_container
from ventas_online.errors import Forbidden
from ventas_online.models.entities import UserRole


def services() -> AppContainer:
    """Contenedor configurado con la app actual."""
    cfg = current_app.config
    return get_container(cfg['DATA_DIR'], cfg['SECRET_KEY'], cfg['TOKEN_HOURS'], cfg['JWT_ALGORITHM'])


def _authenticate() -> None:
    user = services().auth_service.authenticate(request.headers.get('Authorization'))
    g.user = user
    g.current_user = user.to_public_dict()


def token_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        _authenticate()
        return f(*args, **kwargs)
    return wrapper


def role_required(role: UserRole):
    """Exige token válido y exactamente el rol indicado."""
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            _authenticate()
            if g.user.role != role:
                raise Forbidden(f'Acceso denegado. Se requiere rol {role.value}')
            return f(*args, **kwargs)
        return wrapper
    return deco


def self_or_admin(arg_name: str = 'user_id'):
    """
    Permite el acceso si el ID de la URL es el del usuario autenticado
    o si es ADMIN.
    """
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            _authenticate()
            if not g.user.is_admin() and kwargs.get(arg_name) != g.user.id:
                raise Forbidden('Acceso denegado')
            return f(*args, **kwargs)
        return wrapper
    return deco
