# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con usuarios.
#
# - Este servicio NO depende del tipo de almacenamiento
# - Solo interactúa con repositorios a través de interfaces claras
# - Toda la lógica de permisos y validaciones está aquí, NO en rutas
#
# REGLA DE ROLES:
# Ningún administrador puede asignar el rol ADMIN mediante la API
# (ni a otros ni a sí mismo). Los administradores nacen del arranque
# (ensure_default_admin).
# ==============================================================================

import logging
import re
from typing import Any, Dict, List

from werkzeug.security import check_password_hash, generate_password_hash

from ventas_online.errors import Forbidden, NotFound, Unauthenticated, ValidationError
from ventas_online.models.entities import User, UserRole, new_id
from ventas_online.repositories.user_repository import UserRepository
from ventas_online.services.audit_service import AuditService
from ventas_online.services.auth_service import AuthService
from ventas_online.services.cart_service import CartService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Registro y login (emite el token vía AuthService)
    - CRUD de usuarios
    - Gestión de roles
    - Validaciones de seguridad (propietario o ADMIN)

    Las rutas solo orquestan request → service → response.
    """

    MIN_PASSWORD_LENGTH = 6

    def __init__(
        self,
        user_repo: UserRepository,
        auth_service: AuthService,
        cart_service: CartService = None,
        audit_service: AuditService = None
    ):
        """
        Args:
            user_repo: Repositorio de usuarios
            auth_service: Emisión de tokens
            cart_service: Para eliminar el carrito junto con la cuenta (opcional)
            audit_service: Servicio de auditoría (opcional)
        """
        self.user_repo = user_repo
        self.auth_service = auth_service
        self.cart_service = cart_service
        self.audit_service = audit_service

    # =========================================================================
    # VALIDACIONES
    # =========================================================================

    @staticmethod
    def _clean_text(value: Any) -> str:
        return value.strip() if isinstance(value, str) else ''

    def _validate_email(self, email: str, exclude_id: str = None) -> str:
        email = self._clean_text(email).lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError('Correo electrónico inválido')
        if self.user_repo.email_taken(email, exclude_id):
            raise ValidationError('El correo ya está registrado')
        return email

    def _validate_password(self, password: Any) -> str:
        if not isinstance(password, str) or len(password) < self.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f'La contraseña debe tener al menos {self.MIN_PASSWORD_LENGTH} caracteres'
            )
        return password

    def _load(self, user_id: str) -> User:
        data = self.user_repo.get_user(user_id)
        if not data:
            raise NotFound('Usuario no encontrado')
        return User.from_dict(data)

    @staticmethod
    def _check_self_or_admin(actor: User, user_id: str) -> None:
        if not actor.is_admin() and actor.id != user_id:
            raise Forbidden('Solo puedes modificar tu propia cuenta')

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def register(self, name: Any, email: Any, password: Any) -> Dict[str, Any]:
        """
        Registra un nuevo usuario con rol CLIENT.

        Returns:
            Usuario público creado

        Raises:
            ValidationError: Nombre vacío, correo inválido o repetido, contraseña corta
        """
        name = self._clean_text(name)
        if not name:
            raise ValidationError('El nombre es requerido')

        with self.user_repo.transaction():
            email = self._validate_email(email)
            password = self._validate_password(password)
            user = User(
                id=new_id(),
                name=name,
                email=email,
                password_hash=generate_password_hash(password),
                role=UserRole.CLIENT,
            )
            self.user_repo.create_user(user.to_dict())

        if self.audit_service:
            self.audit_service.log_user_registered(user.email, user.id)
        return user.to_public_dict()

    def login(self, email: Any, password: Any) -> Dict[str, Any]:
        """
        Valida credenciales y emite un token.

        Returns:
            {'token': str, 'user': dict}

        Raises:
            Unauthenticated: Credenciales incorrectas o usuario inactivo
        """
        data = self.user_repo.get_by_email(self._clean_text(email))
        if not data or not isinstance(password, str):
            raise Unauthenticated('Credenciales inválidas')

        user = User.from_dict(data)
        if not check_password_hash(user.password_hash, password):
            logger.info("Login fallido para %s", user.email)
            raise Unauthenticated('Credenciales inválidas')
        if not user.active:
            raise Unauthenticated('Usuario inactivo')

        if self.audit_service:
            self.audit_service.log_user_login(user.email, user.id)
        return {'token': self.auth_service.issue_token(user), 'user': user.to_public_dict()}

    def ensure_default_admin(self, email: str, password: str, name: str = 'Administrador') -> bool:
        """
        Crea un administrador si no existe ninguno.

        Returns:
            True si se creó el administrador
        """
        with self.user_repo.transaction():
            if self.user_repo.count_admins() > 0:
                return False
            existing = self.user_repo.get_by_email(email)
            if existing:
                # El correo ya existe como cliente: se promueve
                self.user_repo.update_user(existing['id'], {'role': UserRole.ADMIN.value, 'active': True})
                admin_id = existing['id']
            else:
                admin = User(
                    id=new_id(),
                    name=name,
                    email=email.strip().lower(),
                    password_hash=generate_password_hash(password),
                    role=UserRole.ADMIN,
                )
                self.user_repo.create_user(admin.to_dict())
                admin_id = admin.id

        logger.info("Administrador por defecto disponible: %s", email)
        if self.audit_service:
            self.audit_service.log_system(f"Administrador por defecto creado: {email}", {'user_id': admin_id})
        return True

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_users(self) -> List[Dict[str, Any]]:
        users = [User.from_dict(u) for u in self.user_repo.get_all().values()]
        return [u.to_public_dict() for u in users]

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._load(user_id).to_public_dict()

    # =========================================================================
    # MODIFICACIONES
    # =========================================================================

    def update_role(self, actor: User, user_id: str, role: Any) -> Dict[str, Any]:
        """
        Cambia el rol de un usuario (solo ADMIN).

        Raises:
            ValidationError: Rol inválido, o intento de asignar ADMIN
            NotFound: Usuario inexistente
        """
        new_role = UserRole.parse(role)
        if new_role is None:
            raise ValidationError('Rol inválido. Valores permitidos: ADMIN, CLIENT')
        if new_role == UserRole.ADMIN and actor.is_admin():
            raise ValidationError('Un administrador no puede asignar el rol ADMIN')

        with self.user_repo.transaction():
            target = self._load(user_id)
            old_role = target.role
            self.user_repo.update_user(user_id, {'role': new_role.value})
            target.role = new_role

        if self.audit_service and old_role != new_role:
            self.audit_service.log_role_change(
                actor.email, target.email, target.id, old_role.value, new_role.value
            )
        return target.to_public_dict()

    def update_user(self, actor: User, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza datos de un usuario (propietario o ADMIN).

        Campos aceptados: name, email, new_password + confirm_password,
        active (solo ADMIN).

        Raises:
            Forbidden: No es el propietario ni ADMIN, o no-ADMIN cambiando 'active'
            ValidationError: Datos inválidos
            NotFound: Usuario inexistente
        """
        self._check_self_or_admin(actor, user_id)
        data = data or {}
        updates: Dict[str, Any] = {}

        if 'active' in data:
            if not actor.is_admin():
                raise Forbidden('Solo un administrador puede activar o desactivar cuentas')
            if not isinstance(data['active'], bool):
                raise ValidationError("El campo 'active' debe ser booleano")
            updates['active'] = data['active']

        if 'name' in data:
            name = self._clean_text(data['name'])
            if not name:
                raise ValidationError('El nombre no puede estar vacío')
            updates['name'] = name

        password_changed = False
        new_password = data.get('new_password')
        if new_password:
            if new_password != data.get('confirm_password'):
                raise ValidationError('Las contraseñas no coinciden')
            updates['password'] = generate_password_hash(self._validate_password(new_password))
            password_changed = True

        with self.user_repo.transaction():
            target = self._load(user_id)
            if 'email' in data:
                updates['email'] = self._validate_email(data['email'], exclude_id=user_id)
            if updates:
                self.user_repo.update_user(user_id, updates)
            target = self._load(user_id)

        if self.audit_service:
            fields = sorted(k for k in updates if k != 'password')
            if fields:
                self.audit_service.log_user_updated(actor.email, target.email, target.id, fields)
            if password_changed:
                self.audit_service.log_password_change(actor.email, target.email, target.id)
        return target.to_public_dict()

    def update_profile(self, actor: User, data: Dict[str, Any]) -> Dict[str, Any]:
        """Igual que update_user pero sobre la cuenta del propio usuario."""
        return self.update_user(actor, actor.id, data)

    def delete_user(self, actor: User, user_id: str) -> None:
        """
        Elimina una cuenta (propietario o ADMIN).
        El carrito se elimina con la cuenta; las facturas se conservan.

        Raises:
            Forbidden: No es el propietario ni ADMIN
            NotFound: Usuario inexistente
        """
        self._check_self_or_admin(actor, user_id)

        with self.user_repo.transaction():
            target = self._load(user_id)
            self.user_repo.delete_user(user_id)
            if self.cart_service:
                self.cart_service.delete_cart(user_id)

        if self.audit_service:
            self.audit_service.log_user_deleted(actor.email, target.email, target.id)
