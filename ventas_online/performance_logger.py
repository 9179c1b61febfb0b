# ==============================================================================
# LOGGING Y PROFILING INTERNO
# ==============================================================================
# configure_logging(app): nivel y formato del logger del paquete.
# init_profiling(app): mide el tiempo de cada petición (before/after_request).
#
# ARCHIVOS (en LOGS_DIR):
#   performance.log     → todas las peticiones (nivel DEBUG)
#   slow_routes.log     → rutas >= 300 ms (WARNING) o >= 700 ms (CRITICAL)
#   slow_functions.log  → funciones perfiladas que superan los umbrales
#
# ACTIVAR/DESACTIVAR: app.config['ENABLE_PROFILING']
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from functools import wraps

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300   # Advertencia si supera 300ms
THRESHOLD_CRITICAL = 700  # Crítico si supera 700ms

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

PACKAGE_LOGGER = 'ventas_online'

performance_logger = logging.getLogger('ventas_online.performance')
slow_routes_logger = logging.getLogger('ventas_online.performance.slow_routes')
slow_functions_logger = logging.getLogger('ventas_online.performance.slow_functions')

_enabled = True

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    'POST /api/auth/register': 'Registrar usuario',
    'POST /api/auth/login': 'Iniciar sesión',
    'GET /api/products': 'Listar productos',
    'GET /api/products/explore': 'Explorar productos',
    'GET /api/products/best-selling': 'Ver más vendidos',
    'POST /api/products/check-stock': 'Consultar stock',
    'POST /api/cart': 'Agregar al carrito',
    'GET /api/cart': 'Ver carrito',
    'DELETE /api/cart/<product_id>': 'Eliminar del carrito',
    'POST /api/invoices': 'Crear factura',
    'PUT /api/invoices/<invoice_id>': 'Editar factura',
    'DELETE /api/invoices/<invoice_id>': 'Eliminar factura',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def configure_logging(app):
    """
    Configura el logger del paquete y el de Flask con el nivel de
    app.config['LOG_LEVEL'].
    """
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
        # Solo este handler escribe los logs del paquete
        package_logger.propagate = False
    # performance.log registra en DEBUG; la consola respeta LOG_LEVEL
    for handler in package_logger.handlers:
        handler.setLevel(level)

    app.logger.setLevel(level)


def _attach_file_handler(logger, path, level):
    """Agrega un FileHandler una sola vez por archivo."""
    path = os.path.abspath(path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
            return
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def _get_route_name(method, rule):
    """Nombre legible de la ruta o 'MÉTODO /ruta' si no está mapeada."""
    key = f"{method} {rule}"
    return ROUTE_NAMES.get(key, key)


def _request_user():
    from flask import g
    user = getattr(g, 'current_user', None)
    return user.get('email') if user else 'anónimo'


def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.

    Uso:
        from ventas_online.performance_logger import init_profiling
        init_profiling(app)
    """
    global _enabled
    _enabled = bool(app.config.get('ENABLE_PROFILING', True))
    if not _enabled:
        return

    logs_dir = app.config.get('LOGS_DIR') or os.path.join(os.path.dirname(__file__), 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    performance_logger.setLevel(logging.DEBUG)
    _attach_file_handler(performance_logger, os.path.join(logs_dir, 'performance.log'), logging.DEBUG)
    _attach_file_handler(slow_routes_logger, os.path.join(logs_dir, 'slow_routes.log'), logging.WARNING)
    _attach_file_handler(slow_functions_logger, os.path.join(logs_dir, 'slow_functions.log'), logging.WARNING)

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms
        rule = str(request.url_rule) if request.url_rule else request.path
        action = _get_route_name(request.method, rule)
        user = _request_user()

        performance_logger.debug(
            "%s | %s %s | %s | %d | %.0f ms",
            action, request.method, request.path, user, response.status_code, elapsed
        )

        if elapsed >= THRESHOLD_CRITICAL:
            slow_routes_logger.critical(
                "Ruta MUY LENTA: %s (%s %s) - %s - %.0f ms (umbral: %d ms)",
                action, request.method, request.path, user, elapsed, THRESHOLD_CRITICAL
            )
        elif elapsed >= THRESHOLD_WARNING:
            slow_routes_logger.warning(
                "Ruta LENTA: %s (%s %s) - %s - %.0f ms (umbral: %d ms)",
                action, request.method, request.path, user, elapsed, THRESHOLD_WARNING
            )

        return response


# ═══════════════════════════════════════════════════════════════════════════
# DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Crear factura desde carrito")
        def create_invoice():
            ...

    Registra:
        - Cantidad de llamadas
        - Tiempo promedio
        - Tiempo máximo
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not _enabled:
                return fn(*args, **kwargs)

            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_CRITICAL:
                    slow_functions_logger.critical("Función CRÍTICA: %s - %.0f ms", func_name, elapsed_ms)
                elif elapsed_ms >= THRESHOLD_WARNING:
                    slow_functions_logger.warning("Función LENTA: %s - %.0f ms", func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'configure_logging',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
