import logging
from typing import Iterable, Optional

import httpx
import pydantic
import requests

from .config import settings
from .errores import TransmisionError
from .models import Desenlace, RespuestaMH, ResultadoMH
from .utils import fecha_procesamiento

logger = logging.getLogger(__name__)

AMBIENTE_PRUEBAS = "00"

SIN_RESPUESTA = "EL SISTEMA DE TRANSMISIÓN DE DTE NO RESPONDIÓ"
SIN_RESPUESTA_OBS = ("NO SE OBTUVO RESPUESTA DEL MINISTERIO DE HACIENDA",)
TIEMPO_EXCEDIDO = "TIEMPO DE RESPUESTA EXCEDIDO"
TIEMPO_EXCEDIDO_OBS = ("SE TERMINO EL TIEMPO DE RESPUESTA DEL MINISTERIO DE HACIENDA",)
RESPUESTA_INVALIDA = "RESPUESTA NO RECONOCIDA DEL MINISTERIO DE HACIENDA"


def seleccionar_url(ambiente: str, prueba: str, produccion: str) -> str:
    """ "00" es pruebas; cualquier otro valor, producción."""
    return prueba if ambiente == AMBIENTE_PRUEBAS else produccion


def respuesta_sintetica(
    ambiente: str,
    codigo_generacion: Optional[str],
    descripcion: str,
    observaciones: Iterable[str],
) -> RespuestaMH:
    """Respuesta con forma de rechazo para los casos en que el MH no contestó."""
    return RespuestaMH(
        version=0,
        ambiente=ambiente,
        versionApp=1,
        estado="RECHAZADO",
        codigoGeneracion=codigo_generacion or "N/A",
        selloRecibido=None,
        fhProcesamiento=fecha_procesamiento(),
        clasificaMsg="0",
        codigoMsg="0",
        descripcionMsg=descripcion,
        observaciones=list(observaciones),
    )


def clasificar(respuesta: RespuestaMH) -> Desenlace:
    if respuesta.estado == "PROCESADO":
        return Desenlace.PROCESADO
    if respuesta.estado == "RECHAZADO":
        return Desenlace.RECHAZADO
    return Desenlace.ESTADO_DESCONOCIDO


async def _enviar(
    url: str,
    payload: dict,
    ambiente: str,
    token: str,
    timeout: Optional[float],
    codigo_generacion: Optional[str],
) -> ResultadoMH:
    client = httpx.AsyncClient(timeout=timeout)
    try:
        response = await client.post(url, json=payload, headers={"Authorization": token})
    except httpx.TimeoutException as e:
        logger.warning("[%s] El MH no respondió a tiempo: %s", codigo_generacion, e)
        return ResultadoMH(
            desenlace=Desenlace.TIEMPO_EXCEDIDO,
            respuesta=respuesta_sintetica(ambiente, codigo_generacion, TIEMPO_EXCEDIDO, TIEMPO_EXCEDIDO_OBS),
        )
    except httpx.HTTPError as e:
        logger.error("[%s] Sin respuesta del MH en %s: %s", codigo_generacion, url, e)
        return ResultadoMH(
            desenlace=Desenlace.FALLO_TRANSPORTE,
            respuesta=respuesta_sintetica(ambiente, codigo_generacion, SIN_RESPUESTA, SIN_RESPUESTA_OBS),
        )
    finally:
        await client.aclose()

    # Aunque el estado HTTP sea de error, el body del MH trae su propio
    # código y mensaje de rechazo: se devuelve tal cual.
    try:
        respuesta = RespuestaMH.model_validate(response.json())
    except (ValueError, pydantic.ValidationError) as e:
        logger.warning("[%s] Respuesta HTTP %s no reconocida: %s", codigo_generacion, response.status_code, e)
        return ResultadoMH(
            desenlace=Desenlace.ESTADO_DESCONOCIDO,
            respuesta=respuesta_sintetica(
                ambiente, codigo_generacion, RESPUESTA_INVALIDA, [f"HTTP {response.status_code}"]
            ),
        )

    desenlace = clasificar(respuesta)
    logger.info("[%s] Respuesta del MH: %s", codigo_generacion, respuesta.estado)
    return ResultadoMH(desenlace=desenlace, respuesta=respuesta)


async def send_to_mh(
    payload: dict,
    ambiente: str,
    token: str,
    timeout: Optional[float] = None,
    codigo_generacion: Optional[str] = None,
) -> ResultadoMH:
    """
    Envía un DTE firmado al MH:
      {ambiente, idEnvio, version, tipoDte, documento}
    """
    url = seleccionar_url(ambiente, settings.MH_DTE_TEST, settings.MH_DTE)
    return await _enviar(url, payload, ambiente, token, timeout, codigo_generacion)


async def send_invalidation_to_mh(
    payload: dict,
    ambiente: str,
    token: str,
    timeout: Optional[float] = None,
    codigo_generacion: Optional[str] = None,
) -> ResultadoMH:
    """
    Envía una anulación firmada al MH:
      {version, idEnvio, ambiente, documento}
    """
    url = seleccionar_url(ambiente, settings.MH_INVALIDATION_TEST, settings.MH_INVALIDATION)
    return await _enviar(url, payload, ambiente, token, timeout, codigo_generacion)


def check_dte(payload: dict, token: str, ambiente: str = AMBIENTE_PRUEBAS, timeout: Optional[float] = None) -> dict:
    """
    Consulta el estado de un DTE ya enviado.
    payload: {nitEmisor, tdte, codigoGeneracion}
    """
    url = seleccionar_url(ambiente, settings.MH_CHECK_TEST, settings.MH_CHECK)
    try:
        response = requests.post(
            url,
            json=payload,
            headers={"Authorization": token},
            timeout=timeout or settings.TIMEOUT_MH,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.error("Error consultando el DTE %s: %s", payload.get("codigoGeneracion"), e)
        raise TransmisionError(f"No se pudo consultar el DTE: {e}")
    except ValueError as e:
        raise TransmisionError(f"Respuesta inválida del MH: {e}")
