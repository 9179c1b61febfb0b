# ==============================================================================
# SERVICIO DE AUTENTICACIÓN (TOKENS)
# ==============================================================================
# Emite y verifica tokens JWT (PyJWT, HS256).
# Claims: uid (ID del usuario), role, iat, exp.
#
# La verificación NO confía solo en el token: el usuario debe seguir
# existiendo y estar activo, y el rol efectivo es el guardado en users.json.
# ==============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from ventas_online.errors import InvalidToken, Unauthenticated
from ventas_online.models.entities import User
from ventas_online.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """
    Guardia de acceso: token → identidad.

    Uso:
        token = auth_service.issue_token(user)
        user = auth_service.authenticate(request.headers.get('Authorization'))
    """

    BEARER_PREFIX = 'Bearer '

    def __init__(
        self,
        user_repo: UserRepository,
        secret_key: str,
        token_hours: float = 4,
        algorithm: str = 'HS256'
    ):
        self.user_repo = user_repo
        self.secret_key = secret_key
        self.token_hours = token_hours
        self.algorithm = algorithm

    def issue_token(self, user: User) -> str:
        """
        Genera un token firmado para el usuario.

        Args:
            user: Usuario autenticado

        Returns:
            Token JWT
        """
        now = datetime.now(timezone.utc)
        payload = {
            'uid': user.id,
            'role': user.role.value,
            'iat': now,
            'exp': now + timedelta(hours=self.token_hours),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verifica firma y expiración.

        Raises:
            InvalidToken: Firma inválida, token expirado o mal formado
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidToken('Token expirado')
        except jwt.InvalidTokenError as exc:
            logger.warning("Token rechazado: %s", exc)
            raise InvalidToken()

    def extract_token(self, authorization: Optional[str]) -> str:
        """
        Obtiene el token del header Authorization.

        Raises:
            Unauthenticated: Header ausente o sin formato 'Bearer <token>'
        """
        if not authorization or not authorization.startswith(self.BEARER_PREFIX):
            raise Unauthenticated()
        token = authorization[len(self.BEARER_PREFIX):].strip()
        if not token:
            raise Unauthenticated()
        return token

    def authenticate(self, authorization: Optional[str]) -> User:
        """
        Resuelve el usuario que hace la petición.

        Args:
            authorization: Valor del header Authorization

        Returns:
            Usuario existente y activo

        Raises:
            Unauthenticated: Sin credencial
            InvalidToken: Token inválido o usuario inexistente/inactivo
        """
        token = self.extract_token(authorization)
        claims = self.decode_token(token)

        data = self.user_repo.get_user(claims.get('uid'))
        if not data:
            raise InvalidToken('Usuario no encontrado - No autorizado')

        user = User.from_dict(data)
        if not user.active:
            raise InvalidToken('Usuario inactivo - No autorizado')
        return user
