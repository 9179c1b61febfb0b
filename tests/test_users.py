from conftest import ADMIN_EMAIL, login


def test_admin_lists_and_gets_users(client, register, admin_headers):
    user, headers = register('ana@mail.com')
    r = client.get('/api/users', headers=admin_headers)
    assert r.status_code == 200
    emails = {u['email'] for u in r.get_json()['users']}
    assert {'ana@mail.com', ADMIN_EMAIL} <= emails
    assert all('password' not in u for u in r.get_json()['users'])

    assert client.get(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200
    assert client.get('/api/users/noexiste', headers=admin_headers).status_code == 404
    assert client.get('/api/users', headers=headers).status_code == 403


def test_admin_cannot_assign_admin_role(client, register, admin_headers):
    user, _ = register('ana@mail.com')
    r = client.put(f"/api/users/{user['id']}/role", json={'role': 'admin'}, headers=admin_headers)
    assert r.status_code == 400

    admin_id = next(u['id'] for u in client.get('/api/users', headers=admin_headers).get_json()['users']
                    if u['email'] == ADMIN_EMAIL)
    r = client.put(f"/api/users/{admin_id}/role", json={'role': 'ADMIN'}, headers=admin_headers)
    assert r.status_code == 400


def test_role_update_validation(client, register, admin_headers):
    user, headers = register('ana@mail.com')
    r = client.put(f"/api/users/{user['id']}/role", json={'role': 'SUPER'}, headers=admin_headers)
    assert r.status_code == 400
    r = client.put(f"/api/users/{user['id']}/role", json={'role': ' client '}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()['user']['role'] == 'CLIENT'
    r = client.put('/api/users/noexiste/role', json={'role': 'CLIENT'}, headers=admin_headers)
    assert r.status_code == 404
    r = client.put(f"/api/users/{user['id']}/role", json={'role': 'CLIENT'}, headers=headers)
    assert r.status_code == 403


def test_update_profile_and_password(client, register):
    user, headers = register('ana@mail.com')
    r = client.put('/api/users/profile', json={'name': 'Ana María'}, headers=headers)
    assert r.status_code == 200
    assert r.get_json()['user']['name'] == 'Ana María'

    r = client.put('/api/users/profile', json={'new_password': 'nueva123', 'confirm_password': 'otra123'},
                   headers=headers)
    assert r.status_code == 400

    r = client.put('/api/users/profile', json={'new_password': 'nueva123', 'confirm_password': 'nueva123'},
                   headers=headers)
    assert r.status_code == 200
    login(client, 'ana@mail.com', 'nueva123')
    r = client.post('/api/auth/login', json={'email': 'ana@mail.com', 'password': 'secreto1'})
    assert r.status_code == 401


def test_email_change_checks_uniqueness(client, register):
    register('ana@mail.com')
    user, headers = register('luis@mail.com')
    r = client.put(f"/api/users/{user['id']}", json={'email': 'ANA@mail.com'}, headers=headers)
    assert r.status_code == 400
    r = client.put(f"/api/users/{user['id']}", json={'email': 'luis.nuevo@mail.com'}, headers=headers)
    assert r.status_code == 200
    assert r.get_json()['user']['email'] == 'luis.nuevo@mail.com'


def test_client_cannot_touch_other_accounts(client, register):
    ana, ana_headers = register('ana@mail.com')
    luis, _ = register('luis@mail.com')
    assert client.put(f"/api/users/{luis['id']}", json={'name': 'X'}, headers=ana_headers).status_code == 403
    assert client.delete(f"/api/users/{luis['id']}", headers=ana_headers).status_code == 403


def test_client_cannot_change_active_flag(client, register):
    user, headers = register('ana@mail.com')
    r = client.put(f"/api/users/{user['id']}", json={'active': False}, headers=headers)
    assert r.status_code == 403


def test_self_delete_removes_cart(client, register, create_product, container):
    product = create_product()
    user, headers = register('ana@mail.com')
    client.post('/api/cart', json={'product': product['id']}, headers=headers)
    assert container.cart_repo.get_by_user(user['id']) is not None

    assert client.delete(f"/api/users/{user['id']}", headers=headers).status_code == 200
    assert container.cart_repo.get_by_user(user['id']) is None
    assert container.user_repo.get_user(user['id']) is None


def test_admin_deletes_any_user(client, register, admin_headers):
    user, _ = register('ana@mail.com')
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 404


def test_audit_trail_records_user_events(client, register, admin_headers):
    user, _ = register('ana@mail.com')
    r = client.get(f"/api/audit?related_id={user['id']}", headers=admin_headers)
    assert r.status_code == 200
    messages = [log['message'] for log in r.get_json()['logs']]
    assert any('Usuario registrado' in m for m in messages)
