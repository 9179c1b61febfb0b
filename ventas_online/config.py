# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================
# Se lee UNA vez desde variables de entorno y se carga en Flask con
# app.config.from_object(Config).
#
# VARIABLES:
#   VENTAS_SECRET_KEY      Clave para firmar tokens (OBLIGATORIA en producción)
#   VENTAS_DATA_DIR        Carpeta de los JSON (default: <paquete>/data)
#   VENTAS_TOKEN_HOURS     Vigencia del token en horas (default: 4)
#   VENTAS_ADMIN_EMAIL     Admin por defecto creado al iniciar
#   VENTAS_ADMIN_PASSWORD
#   VENTAS_ADMIN_NAME
#   VENTAS_PROFILING       1/0 - medición de tiempos por ruta
#   VENTAS_LOGS_DIR        Carpeta de logs (default: <paquete>/logs)
#   VENTAS_LOG_LEVEL       DEBUG, INFO, WARNING... (default: INFO)
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))

# Solo para desarrollo local; main.py avisa en el log si se usa.
DEFAULT_SECRET = "ventas_online_dev_secret_key_change_in_production"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'si', 'on')


class Config:
    SECRET_KEY = os.environ.get('VENTAS_SECRET_KEY') or DEFAULT_SECRET
    JWT_ALGORITHM = 'HS256'
    TOKEN_HOURS = float(os.environ.get('VENTAS_TOKEN_HOURS', '4'))

    DATA_DIR = os.environ.get('VENTAS_DATA_DIR') or os.path.join(BASE, 'data')

    DEFAULT_ADMIN_EMAIL = os.environ.get('VENTAS_ADMIN_EMAIL', 'admin@ventas.local')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('VENTAS_ADMIN_PASSWORD', 'Admin123!')
    DEFAULT_ADMIN_NAME = os.environ.get('VENTAS_ADMIN_NAME', 'Administrador')

    ENABLE_PROFILING = _env_flag('VENTAS_PROFILING', True)
    LOGS_DIR = os.environ.get('VENTAS_LOGS_DIR') or os.path.join(BASE, 'logs')
    LOG_LEVEL = os.environ.get('VENTAS_LOG_LEVEL', 'INFO').upper()

    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB
