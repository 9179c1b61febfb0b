from flask import Flask, g, request
from werkzeug.exceptions import HTTPException

from ventas_online.config import DEFAULT_SECRET, Config
from ventas_online.errors import ServiceError, ValidationError
from ventas_online.guards import role_required, self_or_admin, services, token_required
from ventas_online.models.entities import UserRole

# Sistema de profiling interno
from ventas_online.performance_logger import configure_logging, init_profiling

app = Flask(__name__)
app.config.from_object(Config)

configure_logging(app)

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y funciones. Logs en LOGS_DIR.
# Para desactivar: VENTAS_PROFILING=0
init_profiling(app)

if app.config['SECRET_KEY'] == DEFAULT_SECRET:
    app.logger.warning("[ADVERTENCIA] VENTAS_SECRET_KEY no definida; se usa la clave de desarrollo")


# ═══════════════════════════════════════════════════════════════════════════════
# ARRANQUE - Administrador por defecto
# ═══════════════════════════════════════════════════════════════════════════════
# Se crea una vez por carpeta de datos, antes de la primera petición.
_seeded_dirs = set()


@app.before_request
def ensure_default_admin():
    data_dir = app.config['DATA_DIR']
    if data_dir in _seeded_dirs:
        return
    services().user_service.ensure_default_admin(
        app.config['DEFAULT_ADMIN_EMAIL'],
        app.config['DEFAULT_ADMIN_PASSWORD'],
        app.config['DEFAULT_ADMIN_NAME'],
    )
    _seeded_dirs.add(data_dir)


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Cache-Control'] = 'no-store'
    # NOTA: HSTS solo en producción con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════════
# Las rutas no capturan errores del dominio: se convierten aquí.

@app.errorhandler(ServiceError)
def handle_service_error(error):
    if error.status_code >= 500:
        app.logger.error("%s %s → %s", request.method, request.path, error.message)
    else:
        app.logger.warning("%s %s → %d %s", request.method, request.path, error.status_code, error.message)
    return {"success": False, "message": error.message}, error.status_code


@app.errorhandler(HTTPException)
def handle_http_error(error):
    if error.code is None or error.code < 400:
        return error.get_response()
    return {"success": False, "message": error.description}, error.code


@app.errorhandler(Exception)
def handle_unexpected_error(error):
    app.logger.exception("Error inesperado en %s %s", request.method, request.path)
    return {"success": False, "message": "Error interno del servidor"}, 500


def json_body():
    """Cuerpo JSON de la petición como dict (vacío si no hay)."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Datos no recibidos o formato inválido')
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/auth/register", methods=["POST"])
def api_register():
    data = json_body()
    user = services().user_service.register(data.get('name'), data.get('email'), data.get('password'))
    return {"success": True, "message": "Usuario registrado", "user": user}, 201


@app.route("/api/auth/login", methods=["POST"])
def api_login():
    data = json_body()
    result = services().user_service.login(data.get('email'), data.get('password'))
    return {"success": True, "message": "Inicio de sesión exitoso", **result}


# ═══════════════════════════════════════════════════════════════════════════════
# CATEGORÍAS
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/categories", methods=["GET"])
def api_list_categories():
    return {"success": True, "categories": services().catalog_service.list_categories()}


@app.route("/api/categories", methods=["POST"])
@role_required(UserRole.ADMIN)
def api_create_category():
    data = json_body()
    category = services().catalog_service.create_category(data.get('name'), data.get('description', ''))
    return {"success": True, "message": "Categoría creada", "category": category}, 201


@app.route("/api/categories/<category_id>", methods=["GET"])
def api_get_category(category_id):
    return {"success": True, "category": services().catalog_service.get_category(category_id)}


@app.route("/api/categories/<category_id>", methods=["PUT"])
@role_required(UserRole.ADMIN)
def api_update_category(category_id):
    category = services().catalog_service.update_category(category_id, json_body())
    return {"success": True, "message": "Categoría actualizada", "category": category}


@app.route("/api/categories/<category_id>", methods=["DELETE"])
@role_required(UserRole.ADMIN)
def api_delete_category(category_id):
    services().catalog_service.delete_category(category_id)
    return {"success": True, "message": "Categoría eliminada"}


# ═══════════════════════════════════════════════════════════════════════════════
# PRODUCTOS
# ═══════════════════════════════════════════════════════════════════════════════
# Las rutas literales (explore, best-selling, check-stock) van antes de <id>.

@app.route("/api/products", methods=["POST"])
@role_required(UserRole.ADMIN)
def api_create_product():
    product = services().catalog_service.create_product(json_body(), actor=g.user.email)
    return {"success": True, "message": "Producto creado", "product": product}, 201


@app.route("/api/products", methods=["GET"])
def api_list_products():
    return {"success": True, "products": services().catalog_service.list_products()}


@app.route("/api/products/explore", methods=["GET"])
def api_explore_products():
    products = services().catalog_service.explore(
        category_id=request.args.get('category') or None,
        search=request.args.get('search') or None,
    )
    return {"success": True, "products": products}


@app.route("/api/products/best-selling", methods=["GET"])
@role_required(UserRole.ADMIN)
def api_best_selling():
    raw = request.args.get('limit')
    limit = 5
    if raw is not None:
        try:
            limit = int(raw)
        except ValueError:
            raise ValidationError("'limit' debe ser un entero mayor o igual a 1")
    return {"success": True, "products": services().catalog_service.best_selling(limit)}


@app.route("/api/products/check-stock", methods=["POST"])
@role_required(UserRole.ADMIN)
def api_check_stock():
    data = json_body()
    result = services().catalog_service.check_stock(data.get('product'), data.get('quantity'))
    return {"success": True, **result}


@app.route("/api/products/<product_id>", methods=["GET"])
def api_get_product(product_id):
    return {"success": True, "product": services().catalog_service.get_product(product_id)}


@app.route("/api/products/<product_id>", methods=["PUT"])
@role_required(UserRole.ADMIN)
def api_update_product(product_id):
    product = services().catalog_service.update_product(product_id, json_body(), actor=g.user.email)
    return {"success": True, "message": "Producto actualizado", "product": product}


@app.route("/api/products/<product_id>", methods=["DELETE"])
@role_required(UserRole.ADMIN)
def api_delete_product(product_id):
    services().catalog_service.delete_product(product_id, actor=g.user.email)
    return {"success": True, "message": "Producto eliminado"}


# ═══════════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/cart", methods=["POST"])
@token_required
def api_cart_add():
    """
    Agregar producto al carrito del usuario autenticado.
    Espera JSON con: product, quantity (opcional, default 1)
    """
    data = json_body()
    cart = services().cart_service.add_item(g.user.id, data.get('product'), data.get('quantity', 1))
    return {"success": True, "message": "Producto agregado al carrito", "cart": cart}


@app.route("/api/cart", methods=["GET"])
@token_required
def api_cart_get():
    return {"success": True, "cart": services().cart_service.get_cart(g.user.id)}


@app.route("/api/cart/<product_id>", methods=["DELETE"])
@token_required
def api_cart_remove(product_id):
    cart = services().cart_service.remove_item(g.user.id, product_id)
    return {"success": True, "message": "Producto eliminado del carrito", "cart": cart}


# ═══════════════════════════════════════════════════════════════════════════════
# FACTURAS
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/invoices", methods=["POST"])
@role_required(UserRole.CLIENT)
def api_create_invoice():
    """
    Convierte el carrito en factura.
    Header opcional Idempotency-Key: reintentos con la misma clave devuelven
    la misma factura sin volver a descontar stock.
    """
    invoice, created = services().invoice_service.create_invoice(
        g.user, request.headers.get('Idempotency-Key')
    )
    if created:
        return {"success": True, "message": "Factura creada", "invoice": invoice}, 201
    return {"success": True, "message": "Factura ya registrada", "invoice": invoice}


@app.route("/api/invoices", methods=["GET"])
@role_required(UserRole.ADMIN)
def api_list_invoices():
    return {"success": True, "invoices": services().invoice_service.list_invoices()}


@app.route("/api/invoices/user/<user_id>", methods=["GET"])
@token_required
def api_user_invoices(user_id):
    invoices = services().invoice_service.list_user_invoices(g.user, user_id)
    return {"success": True, "invoices": invoices}


@app.route("/api/invoices/<invoice_id>", methods=["GET"])
@token_required
def api_get_invoice(invoice_id):
    return {"success": True, "invoice": services().invoice_service.get_invoice(g.user, invoice_id)}


@app.route("/api/invoices/<invoice_id>", methods=["PUT"])
@role_required(UserRole.ADMIN)
def api_update_invoice(invoice_id):
    data = json_body()
    invoice = services().invoice_service.update_invoice(
        g.user, invoice_id, status=data.get('status'), items=data.get('items')
    )
    return {"success": True, "message": "Factura actualizada", "invoice": invoice}


@app.route("/api/invoices/<invoice_id>", methods=["DELETE"])
@role_required(UserRole.ADMIN)
def api_delete_invoice(invoice_id):
    services().invoice_service.delete_invoice(g.user, invoice_id)
    return {"success": True, "message": "Factura eliminada"}


# ═══════════════════════════════════════════════════════════════════════════════
# USUARIOS
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/users", methods=["GET"])
@role_required(UserRole.ADMIN)
def api_list_users():
    return {"success": True, "users": services().user_service.list_users()}


@app.route("/api/users/profile", methods=["PUT"])
@token_required
def api_update_profile():
    user = services().user_service.update_profile(g.user, json_body())
    return {"success": True, "message": "Perfil actualizado", "user": user}


@app.route("/api/users/<user_id>", methods=["GET"])
@role_required(UserRole.ADMIN)
def api_get_user(user_id):
    return {"success": True, "user": services().user_service.get_user(user_id)}


@app.route("/api/users/<user_id>/role", methods=["PUT"])
@role_required(UserRole.ADMIN)
def api_update_role(user_id):
    data = json_body()
    user = services().user_service.update_role(g.user, user_id, data.get('role'))
    return {"success": True, "message": "Rol actualizado", "user": user}


@app.route("/api/users/<user_id>", methods=["PUT"])
@self_or_admin('user_id')
def api_update_user(user_id):
    user = services().user_service.update_user(g.user, user_id, json_body())
    return {"success": True, "message": "Usuario actualizado", "user": user}


@app.route("/api/users/<user_id>", methods=["DELETE"])
@self_or_admin('user_id')
def api_delete_user(user_id):
    services().user_service.delete_user(g.user, user_id)
    return {"success": True, "message": "Usuario eliminado"}


# ═══════════════════════════════════════════════════════════════════════════════
# AUDITORÍA
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/audit", methods=["GET"])
@role_required(UserRole.ADMIN)
def api_audit():
    related = request.args.get('related_id')
    audit = services().audit_service
    if related:
        logs = audit.get_logs_for(related)
    else:
        try:
            limit = int(request.args.get('limit', 100))
        except ValueError:
            raise ValidationError("'limit' debe ser un entero")
        logs = audit.get_recent_logs(max(limit, 1))
    return {"success": True, "logs": logs}


if __name__ == "__main__":
    import os
    # En producción usar WSGI (gunicorn)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))
    app.run(host=HOST, port=PORT, debug=DEBUG)
