import os
import sys
import tempfile

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# logs de profiling fuera del paquete
os.environ.setdefault('VENTAS_LOGS_DIR', tempfile.mkdtemp(prefix='ventas_logs_'))

from ventas_online.app_container import AppContainer  # noqa: E402
from ventas_online.main import app  # noqa: E402

ADMIN_EMAIL = 'admin@test.local'
ADMIN_PASSWORD = 'Admin123!'
SECRET = 'test-secret'


@pytest.fixture
def client(tmp_path):
    AppContainer.reset_instance()
    app.config.update(
        TESTING=True,
        DATA_DIR=str(tmp_path / 'data'),
        SECRET_KEY=SECRET,
        TOKEN_HOURS=1,
        DEFAULT_ADMIN_EMAIL=ADMIN_EMAIL,
        DEFAULT_ADMIN_PASSWORD=ADMIN_PASSWORD,
        DEFAULT_ADMIN_NAME='Admin Test',
    )
    with app.test_client() as c:
        yield c
    AppContainer.reset_instance()


@pytest.fixture
def container(client):
    """Contenedor ya configurado con la carpeta de datos del test."""
    return AppContainer.get_instance(app.config['DATA_DIR'], SECRET, 1)


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


def login(client, email, password):
    r = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()['token']


@pytest.fixture
def admin_headers(client):
    return bearer(login(client, ADMIN_EMAIL, ADMIN_PASSWORD))


@pytest.fixture
def register(client):
    """Registra un cliente y devuelve (user, headers)."""
    def _register(email, password='secreto1', name='Cliente'):
        r = client.post('/api/auth/register', json={'name': name, 'email': email, 'password': password})
        assert r.status_code == 201, r.get_json()
        user = r.get_json()['user']
        return user, bearer(login(client, email, password))
    return _register


@pytest.fixture
def category(client, admin_headers):
    r = client.post('/api/categories', json={'name': 'General'}, headers=admin_headers)
    assert r.status_code == 201
    return r.get_json()['category']


@pytest.fixture
def create_product(client, admin_headers, category):
    def _create(name='Producto', price=10.0, stock=5, category_id=None):
        r = client.post('/api/products', json={
            'name': name,
            'price': price,
            'stock': stock,
            'category': category_id or category['id'],
        }, headers=admin_headers)
        assert r.status_code == 201, r.get_json()
        return r.get_json()['product']
    return _create


@pytest.fixture
def stock_of(client):
    def _stock(product_id):
        return client.get(f'/api/products/{product_id}').get_json()['product']['stock']
    return _stock
