import logging

from .calculos import redondear
from .dte import requerido, validar_ambiente, validar_transmisor
from .models import InvalidationPayload, ResultadoDTE
from .pipeline import procesar_documento
from .utils import convert_to_null, generate_uuid, get_el_salvador_datetime

logger = logging.getLogger(__name__)

VERSION_INVALIDACION = 2


def generate_invalidation(payload: InvalidationPayload) -> dict:
    """
    Arma la solicitud de anulación de un DTE ya procesado por el MH.

    La identificación lleva un código de generación nuevo; el del documento
    que se anula viaja en ``documento.codigoGeneracion`` junto con su sello.
    """
    validar_transmisor(payload.transmitter)
    validar_ambiente(payload.ambiente)
    requerido(payload.cod_estable, "codEstable")
    requerido(payload.cod_punto_venta, "codPuntoVenta")
    requerido(payload.sale.codigo_generacion, "sale.codigoGeneracion")
    requerido(payload.sale.sello_recibido, "sale.selloRecibido")

    transmitter = payload.transmitter
    sale = payload.sale
    document = payload.document
    ahora = get_el_salvador_datetime()

    logger.info("Armando invalidación del DTE %s", sale.codigo_generacion)

    return {
        "nit": transmitter.nit,
        "activo": True,
        "passwordPri": transmitter.clave_privada,
        "dteJson": {
            "identificacion": {
                "version": VERSION_INVALIDACION,
                "ambiente": payload.ambiente,
                "codigoGeneracion": generate_uuid().upper(),
                "fecAnula": ahora["fecEmi"],
                "horAnula": ahora["horEmi"],
            },
            "emisor": {
                "nit": transmitter.nit,
                "nombre": transmitter.nombre,
                "tipoEstablecimiento": payload.tipo_establecimiento,
                "telefono": convert_to_null(transmitter.telefono),
                "correo": convert_to_null(transmitter.correo),
                "codEstable": payload.cod_estable,
                "codPuntoVenta": payload.cod_punto_venta,
                "nomEstablecimiento": convert_to_null(payload.nombre_establecimiento),
            },
            "documento": {
                "tipoDte": payload.tipo_dte,
                "codigoGeneracion": sale.codigo_generacion,
                "codigoGeneracionR": convert_to_null(sale.codigo_generacion_r),
                "selloRecibido": sale.sello_recibido,
                "numeroControl": sale.numero_control,
                "fecEmi": sale.fec_emi,
                "montoIva": redondear(sale.monto_iva),
                "tipoDocumento": convert_to_null(payload.customer.tipo_documento),
                "numDocumento": convert_to_null(payload.customer.num_documento),
                "nombre": payload.customer.nombre,
            },
            "motivo": {
                "tipoAnulacion": document.tipo_anulacion,
                "motivoAnulacion": convert_to_null(document.motivo_anulacion),
                "nombreResponsable": document.nombre_responsable,
                "tipDocResponsable": document.tip_doc_responsable,
                "numDocResponsable": document.num_doc_responsable,
                "nombreSolicita": document.nombre_solicita,
                "tipDocSolicita": document.tip_doc_solicita,
                "numDocSolicita": document.num_doc_solicita,
            },
        },
    }


async def process_invalidation(payload: InvalidationPayload, token: str, **opciones) -> ResultadoDTE:
    """Arma, firma y envía la anulación a la ruta de invalidación del MH."""
    return await procesar_documento(generate_invalidation(payload), token, invalidacion=True, **opciones)
