"""
Orquestación de la emisión: armar -> firmar -> transmitir -> clasificar.

Cada etapa de red corre con su propio límite de tiempo (20 s por defecto).
Pase lo que pase, quien llama recibe un ``ResultadoDTE`` completo: los
fallos de firma o de transmisión se devuelven como respuestas con forma de
rechazo del MH. Solo los errores de validación del armado se propagan.
"""
import logging
from typing import Iterable, Optional

from .cancelacion import PoliticaTiempo, ejecutar_con_limite
from .config import settings
from .dte import (
    generate_credito_fiscal,
    generate_factura,
    generate_nota_credito,
    generate_nota_debito,
    generate_sujeto_excluido,
)
from .errores import FirmaError, FirmaNoEncontrada, TiempoExcedido
from .firmador import firmar_documento
from .models import (
    CreditoFiscalRequest,
    Desenlace,
    FacturaRequest,
    NotaRequest,
    ResultadoDTE,
    SujetoExcluidoRequest,
)
from .transmision import respuesta_sintetica, send_invalidation_to_mh, send_to_mh

logger = logging.getLogger(__name__)

ID_ENVIO = 1

FIRMA_NO_ENCONTRADA = "FIRMA NO ENCONTRADA"
FIRMA_NO_ENCONTRADA_OBS = ("EL FIRMADOR NO DEVOLVIÓ EL DOCUMENTO FIRMADO",)
NO_SE_PUDO_FIRMAR = "NO SE PUDO FIRMAR"
NO_SE_PUDO_FIRMAR_OBS = ("NO SE ENCONTRÓ EL SISTEMA DE FIRMAS",)
ERROR_ENVIO = "ERROR EN ENVÍO AL SERVIDOR"
ERROR_ENVIO_OBS = ("NO SE OBTUVO RESPUESTA DEL SERVIDOR",)


def politica_firma_por_defecto() -> PoliticaTiempo:
    return PoliticaTiempo(
        settings.TIMEOUT_FIRMA,
        observaciones=("EL SISTEMA DE FIRMAS NO RESPONDIÓ A TIEMPO",),
    )


def politica_mh_por_defecto() -> PoliticaTiempo:
    return PoliticaTiempo(
        settings.TIMEOUT_MH,
        observaciones=("SE TERMINO EL TIEMPO DE RESPUESTA DEL MINISTERIO DE HACIENDA",),
    )


# ——————————————————————————————————————————————————————————————
# Cargas útiles hacia el MH
# ——————————————————————————————————————————————————————————————
def payload_dte(identificacion: dict, firma: str) -> dict:
    return {
        "ambiente": identificacion["ambiente"],
        "idEnvio": ID_ENVIO,
        "version": identificacion["version"],
        "tipoDte": identificacion["tipoDte"],
        "documento": firma,
    }


def payload_invalidacion(identificacion: dict, firma: str) -> dict:
    return {
        "version": identificacion["version"],
        "idEnvio": ID_ENVIO,
        "ambiente": identificacion["ambiente"],
        "documento": firma,
    }


def _fallo(
    desenlace: Desenlace,
    dte_json: dict,
    descripcion: str,
    observaciones: Iterable[str],
) -> ResultadoDTE:
    identificacion = dte_json["identificacion"]
    codigo = identificacion["codigoGeneracion"]
    logger.warning("[%s] %s: %s", codigo, desenlace.value, descripcion)
    return ResultadoDTE(
        desenlace=desenlace,
        mh=respuesta_sintetica(identificacion["ambiente"], codigo, descripcion, observaciones),
        documento=dte_json,
    )


# ——————————————————————————————————————————————————————————————
# Pipeline genérico
# ——————————————————————————————————————————————————————————————
async def procesar_documento(
    envio: dict,
    token: str,
    *,
    invalidacion: bool = False,
    firmador_url: Optional[str] = None,
    politica_firma: Optional[PoliticaTiempo] = None,
    politica_mh: Optional[PoliticaTiempo] = None,
) -> ResultadoDTE:
    """
    Firma y transmite un sobre ya armado ({nit, activo, passwordPri, dteJson}).

    Con ``invalidacion=True`` el documento firmado viaja a la ruta de
    anulación con la carga {version, idEnvio, ambiente, documento}.
    """
    dte_json = envio["dteJson"]
    identificacion = dte_json["identificacion"]
    codigo = identificacion["codigoGeneracion"]
    p_firma = politica_firma or politica_firma_por_defecto()
    p_mh = politica_mh or politica_mh_por_defecto()

    # 1) Firma
    logger.info("[%s] Enviando al firmador", codigo)
    try:
        firma = await ejecutar_con_limite(
            firmar_documento, p_firma, envio, firmador_url or settings.FIRMADOR_URL
        )
    except TiempoExcedido as e:
        return _fallo(Desenlace.TIEMPO_EXCEDIDO, dte_json, e.politica.descripcion, e.politica.observaciones)
    except FirmaNoEncontrada:
        return _fallo(Desenlace.FIRMA_NO_ENCONTRADA, dte_json, FIRMA_NO_ENCONTRADA, FIRMA_NO_ENCONTRADA_OBS)
    except FirmaError:
        return _fallo(Desenlace.FALLO_FIRMA, dte_json, NO_SE_PUDO_FIRMAR, NO_SE_PUDO_FIRMAR_OBS)

    # 2) Transmisión
    if invalidacion:
        enviar, payload = send_invalidation_to_mh, payload_invalidacion(identificacion, firma)
    else:
        enviar, payload = send_to_mh, payload_dte(identificacion, firma)

    logger.info("[%s] Documento firmado, transmitiendo al MH", codigo)
    try:
        resultado = await ejecutar_con_limite(
            enviar, p_mh, payload, identificacion["ambiente"], token, codigo_generacion=codigo
        )
    except TiempoExcedido as e:
        return _fallo(Desenlace.TIEMPO_EXCEDIDO, dte_json, e.politica.descripcion, e.politica.observaciones)

    # 3) Clasificación
    if resultado.desenlace == Desenlace.PROCESADO:
        logger.info("[%s] PROCESADO, sello %s", codigo, resultado.respuesta.selloRecibido)
        return ResultadoDTE(
            desenlace=Desenlace.PROCESADO,
            mh=resultado.respuesta,
            documento=dte_json,
            firmado={
                **dte_json,
                "respuestaMH": resultado.respuesta.model_dump(),
                "firma": firma,
            },
        )

    if resultado.desenlace in (Desenlace.RECHAZADO, Desenlace.FALLO_TRANSPORTE, Desenlace.TIEMPO_EXCEDIDO):
        logger.warning(
            "[%s] %s: %s", codigo, resultado.desenlace.value, resultado.respuesta.descripcionMsg
        )
        return ResultadoDTE(desenlace=resultado.desenlace, mh=resultado.respuesta, documento=dte_json)

    return _fallo(Desenlace.ESTADO_DESCONOCIDO, dte_json, ERROR_ENVIO, ERROR_ENVIO_OBS)


# ——————————————————————————————————————————————————————————————
# Un punto de entrada por tipo de documento
# ——————————————————————————————————————————————————————————————
async def process_factura(data: FacturaRequest, token: str, **opciones) -> ResultadoDTE:
    return await procesar_documento(generate_factura(data), token, **opciones)


async def process_credito_fiscal(data: CreditoFiscalRequest, token: str, **opciones) -> ResultadoDTE:
    return await procesar_documento(generate_credito_fiscal(data), token, **opciones)


async def process_nota_credito(data: NotaRequest, token: str, **opciones) -> ResultadoDTE:
    return await procesar_documento(generate_nota_credito(data), token, **opciones)


async def process_nota_debito(data: NotaRequest, token: str, **opciones) -> ResultadoDTE:
    return await procesar_documento(generate_nota_debito(data), token, **opciones)


async def process_sujeto_excluido(data: SujetoExcluidoRequest, token: str, **opciones) -> ResultadoDTE:
    return await procesar_documento(generate_sujeto_excluido(data), token, **opciones)
