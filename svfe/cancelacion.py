import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple

from .errores import TiempoExcedido

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoliticaTiempo:
    """Duración de una etapa de red y el diagnóstico a devolver si se agota."""
    segundos: float
    descripcion: str = "TIEMPO DE RESPUESTA EXCEDIDO"
    observaciones: Tuple[str, ...] = ("SE TERMINO EL TIEMPO DE RESPUESTA",)


async def ejecutar_con_limite(funcion: Callable[..., Awaitable], politica: PoliticaTiempo, *args, **kwargs):
    """
    Espera la corrutina ``funcion(*args, timeout=..., **kwargs)`` como máximo
    ``politica.segundos``.

    Al agotarse el tiempo la tarea se cancela: el cliente HTTP cierra su
    conexión antes de que se lance TiempoExcedido, y ninguna respuesta tardía
    llega a procesarse.
    """
    try:
        return await asyncio.wait_for(
            funcion(*args, timeout=politica.segundos, **kwargs),
            timeout=politica.segundos,
        )
    except asyncio.TimeoutError:
        logger.warning("%s no respondió en %ss", getattr(funcion, "__name__", funcion), politica.segundos)
        raise TiempoExcedido(politica)
