# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from ventas_online.errors import StoreFault

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios.
    Proporciona funcionalidad común para lectura/escritura de archivos JSON
    con manejo de concurrencia mediante un lock compartido.

    El lock es de clase: TODOS los repositorios del proceso comparten el
    mismo RLock. Eso permite que transaction() agrupe escrituras sobre
    varios archivos (factura + productos + carrito) como una sola unidad.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Inicializa el repositorio con la ruta al archivo JSON.

        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        os.makedirs(os.path.dirname(self.file_path), exist_ok=True)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """
        Retorna la estructura de datos vacía para este repositorio.

        Returns:
            Estructura vacía (dict, list) según el repositorio
        """

    @classmethod
    @contextmanager
    def transaction(cls) -> Iterator[None]:
        """
        Mantiene el lock de todos los repositorios durante un bloque.

        Uso:
            with BaseRepository.transaction():
                ...leer, validar y escribir varios repositorios...

        Es re-entrante: los métodos de los repositorios vuelven a tomar
        el mismo lock sin bloquearse.
        """
        with cls._file_lock:
            yield

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Returns:
            Datos parseados del JSON

        Raises:
            StoreFault: Si el archivo tiene JSON inválido o no se puede leer
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except FileNotFoundError:
                return self._empty_data()
            except (json.JSONDecodeError, OSError) as exc:
                logger.error("No se pudo leer %s: %s", self.file_path, exc)
                raise StoreFault() from exc

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON.

        Args:
            data: Datos a serializar y escribir

        Raises:
            StoreFault: Si hay error de escritura
        """
        with self._file_lock:
            # Escribir a archivo temporal primero para atomicidad
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except (OSError, TypeError, ValueError) as exc:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                logger.error("No se pudo escribir %s: %s", self.file_path, exc)
                raise StoreFault() from exc


class DictRepository(BaseRepository):
    """
    Repositorio base para datos almacenados como diccionario.
    El ID es la clave del diccionario.

    Ejemplo: products.json -> {"3f2a...": {...}, "9c1b...": {...}}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        """
        Obtiene todos los registros.

        Returns:
            Diccionario con todos los datos (en orden de inserción)
        """
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Obtiene un registro por su ID.

        Args:
            record_id: ID del registro

        Returns:
            Datos del registro o None si no existe
        """
        if record_id is None:
            return None
        return self.get_all().get(str(record_id))

    def exists(self, record_id: str) -> bool:
        return self.get_by_id(record_id) is not None

    def save_all(self, data: Dict[str, Any]) -> None:
        """
        Guarda todos los registros (reemplazo completo).

        Args:
            data: Diccionario completo de datos
        """
        self._write_raw(data)

    def update(self, record_id: str, record_data: Dict[str, Any]) -> None:
        """
        Crea o reemplaza un registro específico.

        Args:
            record_id: ID del registro
            record_data: Nuevos datos del registro
        """
        with self._file_lock:
            data = self.get_all()
            data[str(record_id)] = record_data
            self._write_raw(data)

    def delete(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un registro.

        Args:
            record_id: ID del registro a eliminar

        Returns:
            Datos del registro eliminado o None si no existía
        """
        with self._file_lock:
            data = self.get_all()
            removed = data.pop(str(record_id), None)
            if removed is not None:
                self._write_raw(data)
            return removed

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        """
        Busca todos los registros cuyo campo coincide con un valor.

        Args:
            field: Nombre del campo
            value: Valor a buscar

        Returns:
            Lista de registros que coinciden
        """
        return [r for r in self.get_all().values() if r.get(field) == value]


class ListRepository(BaseRepository):
    """
    Repositorio base para datos almacenados como lista.

    Ejemplo: audit.json -> [{...}, {...}]
    """

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        """
        Obtiene todos los registros.

        Returns:
            Lista con todos los datos
        """
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)

