import logging
from typing import Optional

import httpx

from .errores import FirmaError, FirmaNoEncontrada

logger = logging.getLogger(__name__)


async def firmar_documento(documento: dict, url: str, timeout: Optional[float] = None) -> str:
    """
    Envía el sobre {nit, activo, passwordPri, dteJson} al servicio de firma
    y devuelve el documento firmado (JWS) que viene en ``body``.

    - FirmaError: el firmador no respondió o devolvió un estado HTTP de error.
    - FirmaNoEncontrada: respondió, pero sin ``body``.

    Si la tarea se cancela, el cliente se cierra junto con su conexión.
    """
    client = httpx.AsyncClient(timeout=timeout)
    try:
        response = await client.post(url, json=documento)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Error al contactar el firmador en %s: %s", url, e)
        raise FirmaError(f"No se pudo firmar el documento: {e}")
    finally:
        await client.aclose()

    try:
        data = response.json()
    except ValueError:
        data = None

    body = data.get("body") if isinstance(data, dict) else None
    if not body:
        logger.warning("El firmador respondió %s sin documento firmado", response.status_code)
        raise FirmaNoEncontrada("El firmador no devolvió el documento firmado")
    return body
