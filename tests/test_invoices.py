import logging
import threading

from ventas_online.errors import InsufficientStock, ProductUnavailable, StoreFault
from ventas_online.models.entities import User
from ventas_online.performance_logger import get_function_stats, reset_stats


def _add(client, headers, product_id, quantity=1):
    r = client.post('/api/cart', json={'product': product_id, 'quantity': quantity}, headers=headers)
    assert r.status_code == 200, r.get_json()


def test_checkout_creates_invoice_and_decrements_stock(client, register, create_product, stock_of):
    product = create_product(name='Taza', price=10.0, stock=5)
    user, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)

    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 201
    invoice = r.get_json()['invoice']
    assert invoice['user'] == user['id']
    assert invoice['status'] == 'pending'
    assert invoice['total'] == 20.0
    assert invoice['items'] == [{
        'product': product['id'], 'name': 'Taza', 'quantity': 2, 'unit_price': 10.0, 'subtotal': 20.0,
    }]

    assert stock_of(product['id']) == 3
    cart = client.get('/api/cart', headers=headers).get_json()['cart']
    assert cart['items'] == []


def test_checkout_with_empty_cart(client, register, create_product):
    product = create_product()
    _, headers = register('ana@mail.com')
    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 400

    _add(client, headers, product['id'])
    client.delete(f"/api/cart/{product['id']}", headers=headers)
    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 400
    assert 'carrito' in r.get_json()['message']


def test_out_of_stock_product_leaves_everything_unchanged(client, register, create_product, stock_of):
    available = create_product(name='A', stock=5)
    empty = create_product(name='B', stock=0)
    _, headers = register('ana@mail.com')
    _add(client, headers, available['id'], 1)
    _add(client, headers, empty['id'], 1)

    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 400
    assert 'no disponible' in r.get_json()['message']

    assert stock_of(available['id']) == 5
    cart = client.get('/api/cart', headers=headers).get_json()['cart']
    assert cart['total_items'] == 2
    assert client.get('/api/invoices/user/' + cart['user'], headers=headers).get_json()['invoices'] == []


def test_insufficient_stock_is_all_or_nothing(client, register, create_product, stock_of):
    a = create_product(name='A', stock=5)
    b = create_product(name='B', stock=2)
    user, headers = register('ana@mail.com')
    _add(client, headers, a['id'], 3)
    _add(client, headers, b['id'], 3)

    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 400
    assert 'Stock insuficiente' in r.get_json()['message']
    assert stock_of(a['id']) == 5
    assert stock_of(b['id']) == 2
    assert client.get(f"/api/invoices/user/{user['id']}", headers=headers).get_json()['invoices'] == []


def test_deleted_product_in_cart_is_unavailable(client, admin_headers, register, create_product):
    product = create_product()
    _, headers = register('ana@mail.com')
    _add(client, headers, product['id'])
    client.delete(f"/api/products/{product['id']}", headers=admin_headers)
    assert client.post('/api/invoices', headers=headers).status_code == 400


def test_only_clients_create_invoices(client, admin_headers):
    assert client.post('/api/invoices').status_code == 401
    assert client.post('/api/invoices', headers=admin_headers).status_code == 403


def test_invoice_visibility(client, admin_headers, register, create_product):
    product = create_product()
    ana, ana_headers = register('ana@mail.com')
    _, luis_headers = register('luis@mail.com')
    _add(client, ana_headers, product['id'])
    invoice = client.post('/api/invoices', headers=ana_headers).get_json()['invoice']

    assert client.get(f"/api/invoices/{invoice['id']}", headers=ana_headers).status_code == 200
    assert client.get(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/invoices/{invoice['id']}", headers=luis_headers).status_code == 403
    assert client.get('/api/invoices/nope', headers=admin_headers).status_code == 404

    assert client.get(f"/api/invoices/user/{ana['id']}", headers=luis_headers).status_code == 403
    r = client.get(f"/api/invoices/user/{ana['id']}", headers=admin_headers)
    assert [i['id'] for i in r.get_json()['invoices']] == [invoice['id']]

    assert client.get('/api/invoices', headers=ana_headers).status_code == 403
    assert len(client.get('/api/invoices', headers=admin_headers).get_json()['invoices']) == 1


def test_snapshot_survives_price_change(client, admin_headers, register, create_product):
    product = create_product(name='Taza', price=10.0)
    _, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)
    invoice = client.post('/api/invoices', headers=headers).get_json()['invoice']

    client.put(f"/api/products/{product['id']}", json={'price': 99.0, 'name': 'Taza XL'}, headers=admin_headers)
    stored = client.get(f"/api/invoices/{invoice['id']}", headers=headers).get_json()['invoice']
    assert stored['items'][0]['unit_price'] == 10.0
    assert stored['items'][0]['name'] == 'Taza'
    assert stored['total'] == 20.0


def test_idempotency_key_returns_same_invoice(client, register, create_product, stock_of):
    product = create_product(stock=5)
    _, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)
    retry_headers = dict(headers, **{'Idempotency-Key': 'pedido-001'})

    first = client.post('/api/invoices', headers=retry_headers)
    second = client.post('/api/invoices', headers=retry_headers)
    assert first.status_code == 201
    assert second.status_code == 200
    assert first.get_json()['invoice']['id'] == second.get_json()['invoice']['id']
    assert stock_of(product['id']) == 3


def test_delete_invoice_restores_snapshot_quantities(client, admin_headers, register, create_product, stock_of):
    a = create_product(name='A', stock=5)
    b = create_product(name='B', stock=4)
    _, headers = register('ana@mail.com')
    _add(client, headers, a['id'], 2)
    _add(client, headers, b['id'], 3)
    invoice = client.post('/api/invoices', headers=headers).get_json()['invoice']
    assert (stock_of(a['id']), stock_of(b['id'])) == (3, 1)

    client.delete(f"/api/products/{b['id']}", headers=admin_headers)
    r = client.delete(f"/api/invoices/{invoice['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert stock_of(a['id']) == 5
    assert client.get(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 404


def test_update_invoice_status(client, admin_headers, register, create_product):
    product = create_product()
    _, headers = register('ana@mail.com')
    _add(client, headers, product['id'])
    invoice = client.post('/api/invoices', headers=headers).get_json()['invoice']

    r = client.put(f"/api/invoices/{invoice['id']}", json={'status': 'PAID'}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()['invoice']['status'] == 'paid'

    r = client.put(f"/api/invoices/{invoice['id']}", json={'status': 'enviado'}, headers=admin_headers)
    assert r.status_code == 400
    r = client.put(f"/api/invoices/{invoice['id']}", json={'status': 'paid'}, headers=headers)
    assert r.status_code == 403


def test_update_invoice_items_adjusts_stock(client, admin_headers, register, create_product, stock_of):
    a = create_product(name='A', price=10.0, stock=5)
    b = create_product(name='B', price=4.0, stock=3)
    _, headers = register('ana@mail.com')
    _add(client, headers, a['id'], 2)
    invoice = client.post('/api/invoices', headers=headers).get_json()['invoice']
    assert stock_of(a['id']) == 3

    r = client.put(f"/api/invoices/{invoice['id']}", json={'items': [
        {'product': a['id'], 'quantity': 1},
        {'product': b['id'], 'quantity': 2},
    ]}, headers=admin_headers)
    assert r.status_code == 200
    updated = r.get_json()['invoice']
    assert updated['total'] == 18.0
    assert (stock_of(a['id']), stock_of(b['id'])) == (4, 1)

    # aumento mayor al stock disponible: nada cambia
    r = client.put(f"/api/invoices/{invoice['id']}", json={'items': [
        {'product': b['id'], 'quantity': 10},
    ]}, headers=admin_headers)
    assert r.status_code == 400
    assert (stock_of(a['id']), stock_of(b['id'])) == (4, 1)

    r = client.put(f"/api/invoices/{invoice['id']}", json={'items': [{'product': 'nope', 'quantity': 1}]},
                   headers=admin_headers)
    assert r.status_code == 404
    r = client.put(f"/api/invoices/{invoice['id']}", json={'items': [{'product': a['id'], 'quantity': 0}]},
                   headers=admin_headers)
    assert r.status_code == 400


def test_failed_stock_write_removes_invoice(client, register, create_product, container, monkeypatch, stock_of):
    product = create_product(stock=5)
    user, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)

    def broken_write(changes, skip_missing=False):
        raise StoreFault()

    monkeypatch.setattr(container.product_repo, 'apply_stock_changes', broken_write)
    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 500
    assert r.get_json()['success'] is False
    monkeypatch.undo()

    assert container.invoice_repo.get_by_user(user['id']) == []
    assert client.get('/api/cart', headers=headers).get_json()['cart']['total_items'] == 2
    assert stock_of(product['id']) == 5


def test_failed_cart_clear_rolls_back_checkout(client, register, create_product, container, monkeypatch, stock_of):
    product = create_product(stock=5)
    user, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)

    def broken_save(cart_data):
        raise StoreFault()

    monkeypatch.setattr(container.cart_repo, 'save_cart', broken_save)
    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 500
    monkeypatch.undo()

    assert container.invoice_repo.get_by_user(user['id']) == []
    assert stock_of(product['id']) == 5
    assert client.get('/api/cart', headers=headers).get_json()['cart']['total_items'] == 2

    assert client.post('/api/invoices', headers=headers).status_code == 201
    assert stock_of(product['id']) == 3


def test_failed_invoice_delete_keeps_stock(client, admin_headers, register, create_product, container,
                                           monkeypatch, stock_of):
    product = create_product(stock=5)
    _, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)
    invoice = client.post('/api/invoices', headers=headers).get_json()['invoice']
    assert stock_of(product['id']) == 3

    def broken_delete(invoice_id):
        raise StoreFault()

    monkeypatch.setattr(container.invoice_repo, 'delete_invoice', broken_delete)
    r = client.delete(f"/api/invoices/{invoice['id']}", headers=admin_headers)
    assert r.status_code == 500
    monkeypatch.undo()

    assert stock_of(product['id']) == 3
    assert client.get(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 200

    # el reintento repone una sola vez
    assert client.delete(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 200
    assert stock_of(product['id']) == 5


def test_audit_failure_does_not_undo_committed_work(client, admin_headers, register, create_product, container,
                                                    monkeypatch, stock_of):
    product = create_product(stock=5)
    user, headers = register('ana@mail.com')
    _add(client, headers, product['id'], 2)

    def broken_log(*args, **kwargs):
        raise StoreFault()

    monkeypatch.setattr(container.audit_repo, 'log', broken_log)

    r = client.post('/api/invoices', headers=headers)
    assert r.status_code == 201
    invoice = r.get_json()['invoice']
    assert stock_of(product['id']) == 3
    assert client.get('/api/cart', headers=headers).get_json()['cart']['total_items'] == 0

    r = client.put(f"/api/invoices/{invoice['id']}", json={'status': 'paid'}, headers=admin_headers)
    assert r.status_code == 200
    assert client.delete(f"/api/invoices/{invoice['id']}", headers=admin_headers).status_code == 200
    assert stock_of(product['id']) == 5

    r = client.post('/api/auth/register', json={'name': 'Luis', 'email': 'luis@mail.com', 'password': 'secreto1'})
    assert r.status_code == 201
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200


def test_concurrent_checkouts_never_oversell(client, register, create_product, container, stock_of):
    product = create_product(stock=5)
    buyers = []
    for n in range(10):
        user, headers = register(f'cliente{n}@mail.com')
        _add(client, headers, product['id'], 1)
        buyers.append(User.from_dict(container.user_repo.get_user(user['id'])))

    created, rejected = [], []

    def checkout(buyer):
        try:
            invoice, _ = container.invoice_service.create_invoice(buyer)
            created.append(invoice['id'])
        except (InsufficientStock, ProductUnavailable):
            rejected.append(buyer.id)

    threads = [threading.Thread(target=checkout, args=(b,)) for b in buyers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 5
    assert len(rejected) == 5
    assert stock_of(product['id']) == 0


def test_checkout_is_profiled(client, register, create_product):
    reset_stats()
    product = create_product()
    _, headers = register('ana@mail.com')
    _add(client, headers, product['id'])
    client.post('/api/invoices', headers=headers)

    stats = get_function_stats()
    assert stats['Crear factura desde carrito']['calls'] == 1


def test_package_logger_does_not_duplicate_to_root(client):
    package_logger = logging.getLogger('ventas_online')
    assert package_logger.propagate is False
    assert len([h for h in package_logger.handlers if type(h) is logging.StreamHandler]) == 1
