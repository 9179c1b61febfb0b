from datetime import datetime, timedelta, timezone

import jwt

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, SECRET, bearer, login
from ventas_online.main import app


def test_register_returns_public_client(client):
    r = client.post('/api/auth/register', json={'name': 'Ana', 'email': 'Ana@Mail.com', 'password': 'secreto1'})
    assert r.status_code == 201
    user = r.get_json()['user']
    assert user['email'] == 'ana@mail.com'
    assert user['role'] == 'CLIENT'
    assert user['active'] is True
    assert 'password' not in user


def test_register_rejects_invalid_data(client, register):
    register('ana@mail.com')
    cases = [
        {'name': 'Otra', 'email': 'ANA@mail.com', 'password': 'secreto1'},
        {'name': 'Otra', 'email': 'no-es-correo', 'password': 'secreto1'},
        {'name': 'Otra', 'email': 'otra@mail.com', 'password': '123'},
        {'name': '', 'email': 'otra@mail.com', 'password': 'secreto1'},
    ]
    for body in cases:
        r = client.post('/api/auth/register', json=body)
        assert r.status_code == 400, body
        assert r.get_json()['success'] is False


def test_password_stored_as_hash(client, register, container):
    user, _ = register('ana@mail.com')
    stored = container.user_repo.get_user(user['id'])
    assert stored['password'] != 'secreto1'
    assert stored['password'].startswith(('scrypt:', 'pbkdf2:'))


def test_login_with_wrong_password(client, register):
    register('ana@mail.com')
    r = client.post('/api/auth/login', json={'email': 'ana@mail.com', 'password': 'incorrecta'})
    assert r.status_code == 401
    r = client.post('/api/auth/login', json={'email': 'nadie@mail.com', 'password': 'secreto1'})
    assert r.status_code == 401


def test_default_admin_is_seeded(client):
    token = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    r = client.get('/api/users', headers=bearer(token))
    assert r.status_code == 200
    admins = [u for u in r.get_json()['users'] if u['role'] == 'ADMIN']
    assert len(admins) == 1


def test_missing_or_malformed_header(client):
    assert client.get('/api/cart').status_code == 401
    assert client.get('/api/cart', headers={'Authorization': 'Token abc'}).status_code == 401
    assert client.get('/api/cart', headers={'Authorization': 'Bearer '}).status_code == 401


def test_tampered_and_foreign_tokens(client, register):
    user, headers = register('ana@mail.com')
    token = headers['Authorization'].split(' ', 1)[1]
    signing_input, signature = token.rsplit('.', 1)
    tampered = signing_input + '.' + ('x' * len(signature))
    assert client.get('/api/cart', headers=bearer(tampered)).status_code == 401

    foreign = jwt.encode({'uid': user['id'], 'role': 'ADMIN'}, 'otra-clave', algorithm='HS256')
    assert client.get('/api/cart', headers=bearer(foreign)).status_code == 401


def test_expired_token(client, register):
    user, _ = register('ana@mail.com')
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {'uid': user['id'], 'role': 'CLIENT', 'iat': past, 'exp': past + timedelta(minutes=5)},
        SECRET, algorithm='HS256'
    )
    r = client.get('/api/cart', headers=bearer(token))
    assert r.status_code == 401
    assert r.get_json()['message'] == 'Token expirado'


def test_role_claim_is_not_trusted(client, register):
    user, _ = register('ana@mail.com')
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {'uid': user['id'], 'role': 'ADMIN', 'iat': now, 'exp': now + timedelta(hours=1)},
        SECRET, algorithm='HS256'
    )
    # firma válida pero el rol guardado es CLIENT
    assert client.get('/api/users', headers=bearer(forged)).status_code == 403


def test_inactive_user_is_locked_out(client, register, admin_headers):
    user, headers = register('ana@mail.com')
    r = client.put(f"/api/users/{user['id']}", json={'active': False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()['user']['active'] is False

    assert client.get('/api/cart', headers=headers).status_code == 401
    r = client.post('/api/auth/login', json={'email': 'ana@mail.com', 'password': 'secreto1'})
    assert r.status_code == 401


def test_token_of_deleted_user_is_rejected(client, register):
    user, headers = register('ana@mail.com')
    assert client.delete(f"/api/users/{user['id']}", headers=headers).status_code == 200
    assert client.get('/api/cart', headers=headers).status_code == 401


def test_signing_algorithm_comes_from_config(client, monkeypatch):
    monkeypatch.setitem(app.config, 'JWT_ALGORITHM', 'HS512')
    token = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert jwt.get_unverified_header(token)['alg'] == 'HS512'
    assert client.get('/api/users', headers=bearer(token)).status_code == 200

    hs256 = jwt.encode(jwt.decode(token, SECRET, algorithms=['HS512']), SECRET, algorithm='HS256')
    assert client.get('/api/users', headers=bearer(hs256)).status_code == 401
