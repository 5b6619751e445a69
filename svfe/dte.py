"""
Armado de los DTE de venta: factura (01), crédito fiscal (03),
nota de crédito (05), nota de débito (06) y sujeto excluido (14).

Cada ``generate_*`` recibe la solicitud ya parseada y devuelve el sobre que
espera el firmador::

    {"nit": ..., "activo": True, "passwordPri": ..., "dteJson": {...}}

Los montos del resumen se calculan una sola vez en ``calcular_totales`` y se
redondean a dos decimales antes de escribirse; el total a pagar y su versión
en letras salen de esos mismos valores redondeados.
"""
import logging
from typing import List, NamedTuple, Optional

from . import calculos
from .calculos import currency_in_words, redondear
from .errores import ValidationError
from .models import (
    CartProduct,
    CartProductFSE,
    CreditoFiscalRequest,
    Customer,
    Direccion,
    EmisionBase,
    FacturaRequest,
    NotaRequest,
    Pago,
    SujetoExcluidoRequest,
    Transmitter,
    Tributo,
)
from .utils import (
    agregar_guion,
    convert_to_null,
    formatear_numero,
    generate_control,
    generate_uuid,
    get_el_salvador_datetime,
)

logger = logging.getLogger(__name__)

FACTURA = "01"
CREDITO_FISCAL = "03"
NOTA_CREDITO = "05"
NOTA_DEBITO = "06"
SUJETO_EXCLUIDO = "14"

VERSIONES = {FACTURA: 1, CREDITO_FISCAL: 3, NOTA_CREDITO: 3, NOTA_DEBITO: 3, SUJETO_EXCLUIDO: 1}
AMBIENTES = ("00", "01")

# Tipo de documento del receptor cuando es contribuyente (NIT)
TIPO_DOCUMENTO_NIT = "36"
# Retención de renta fija para compras a sujetos excluidos (%)
RETENCION_SUJETO_EXCLUIDO = 10


# ——————————————————————————————————————————————————————————————
# Validaciones previas al armado
# ——————————————————————————————————————————————————————————————
def requerido(valor, campo: str):
    if valor is None or (isinstance(valor, str) and not valor.strip()):
        raise ValidationError(campo, "es obligatorio")


def validar_ambiente(ambiente: str):
    if ambiente not in AMBIENTES:
        raise ValidationError("ambiente", f"debe ser uno de {AMBIENTES}")


def validar_transmisor(transmitter: Transmitter):
    requerido(transmitter.nit, "transmitter.nit")
    requerido(transmitter.nombre, "transmitter.nombre")
    requerido(transmitter.clave_privada, "transmitter.clavePrivada")


def validar_emision(data: EmisionBase, productos: list):
    validar_transmisor(data.transmitter)
    validar_ambiente(data.ambiente)
    requerido(data.cod_estable, "codEstable")
    requerido(data.cod_punto_venta, "codPuntoVenta")
    if data.next_correlative < 1:
        raise ValidationError("nextCorrelative", "debe ser mayor que cero")
    if not productos:
        raise ValidationError("products", "el documento no tiene productos")


# ——————————————————————————————————————————————————————————————
# Bloques compartidos
# ——————————————————————————————————————————————————————————————
def generate_identificacion(tipo_dte: str, data: EmisionBase) -> dict:
    return {
        "version": VERSIONES[tipo_dte],
        "codigoGeneracion": generate_uuid().upper(),
        "ambiente": data.ambiente,
        "tipoDte": tipo_dte,
        "numeroControl": generate_control(
            tipo_dte,
            data.cod_estable,
            data.cod_punto_venta,
            formatear_numero(data.next_correlative),
        ),
        "tipoModelo": 1,
        "tipoOperacion": 1,
        "tipoContingencia": None,
        "motivoContin": None,
        "tipoMoneda": "USD",
        **get_el_salvador_datetime(),
    }


def _direccion(direccion: Optional[Direccion]) -> Optional[dict]:
    if direccion is None:
        return None
    return {
        "departamento": direccion.departamento,
        "municipio": direccion.municipio,
        "complemento": direccion.complemento,
    }


def _envolver(transmitter: Transmitter, dte_json: dict) -> dict:
    return {
        "nit": transmitter.nit,
        "activo": True,
        "passwordPri": transmitter.clave_privada,
        "dteJson": dte_json,
    }


def generate_emisor(data: EmisionBase) -> dict:
    t = data.transmitter
    return {
        "nit": t.nit,
        "nrc": t.nrc,
        "nombre": t.nombre,
        "nombreComercial": convert_to_null(t.nombre_comercial),
        "codActividad": t.cod_actividad,
        "descActividad": t.desc_actividad,
        "tipoEstablecimiento": data.tipo_establecimiento,
        "direccion": _direccion(t.direccion),
        "telefono": convert_to_null(t.telefono),
        "correo": convert_to_null(t.correo),
        "codEstable": data.cod_estable,
        "codEstableMH": convert_to_null(data.cod_estable_mh),
        "codPuntoVenta": data.cod_punto_venta,
        "codPuntoVentaMH": convert_to_null(data.cod_punto_venta_mh),
    }


def generate_emisor_nota(data: EmisionBase) -> dict:
    """Las notas de crédito/débito no llevan códigos de establecimiento."""
    t = data.transmitter
    return {
        "nit": t.nit,
        "nrc": t.nrc,
        "nombre": t.nombre,
        "codActividad": t.cod_actividad,
        "descActividad": t.desc_actividad,
        "nombreComercial": convert_to_null(t.nombre_comercial),
        "tipoEstablecimiento": data.tipo_establecimiento,
        "direccion": _direccion(t.direccion),
        "telefono": convert_to_null(t.telefono),
        "correo": convert_to_null(t.correo),
    }


def generate_emisor_fse(data: EmisionBase) -> dict:
    t = data.transmitter
    return {
        "nit": t.nit,
        "nrc": t.nrc,
        "nombre": t.nombre,
        "codActividad": t.cod_actividad,
        "descActividad": t.desc_actividad,
        "direccion": _direccion(t.direccion),
        "telefono": convert_to_null(t.telefono),
        "correo": convert_to_null(t.correo),
        "codEstable": convert_to_null(data.cod_estable),
        "codEstableMH": convert_to_null(data.cod_estable_mh),
        "codPuntoVenta": convert_to_null(data.cod_punto_venta),
        "codPuntoVentaMH": convert_to_null(data.cod_punto_venta_mh),
    }


def es_contribuyente(customer: Customer) -> bool:
    """Un receptor con NRC distinto de cero se trata como contribuyente."""
    nrc = convert_to_null(customer.nrc)
    if nrc is None:
        return False
    try:
        return float(nrc) != 0
    except ValueError:
        return True


def generate_receptor(customer: Customer) -> dict:
    """
    Receptor de factura:
    - Contribuyente (NRC distinto de cero): tipoDocumento "36" y su NIT.
    - Si no, su propio tipo de documento y número con guion (DUI).
    """
    if es_contribuyente(customer):
        tipo_documento = TIPO_DOCUMENTO_NIT
        num_documento = convert_to_null(customer.nit)
    else:
        tipo_documento = convert_to_null(customer.tipo_documento)
        num_documento = convert_to_null(customer.num_documento)
        if num_documento is not None:
            num_documento = agregar_guion(num_documento)

    return {
        "tipoDocumento": tipo_documento,
        "numDocumento": num_documento,
        "nrc": convert_to_null(customer.nrc),
        "nombre": customer.nombre,
        "codActividad": convert_to_null(customer.cod_actividad),
        "descActividad": convert_to_null(customer.desc_actividad),
        "direccion": _direccion(customer.direccion),
        "telefono": convert_to_null(customer.telefono),
        "correo": convert_to_null(customer.correo),
    }


def generate_receptor_fiscal(customer: Customer) -> dict:
    """Receptor de crédito fiscal y notas: siempre un contribuyente."""
    requerido(convert_to_null(customer.nit), "customer.nit")
    requerido(convert_to_null(customer.nrc), "customer.nrc")
    return {
        "nit": customer.nit,
        "nrc": customer.nrc,
        "nombre": customer.nombre,
        "codActividad": convert_to_null(customer.cod_actividad),
        "descActividad": convert_to_null(customer.desc_actividad),
        "nombreComercial": convert_to_null(customer.nombre_comercial),
        "direccion": _direccion(customer.direccion),
        "telefono": convert_to_null(customer.telefono),
        "correo": convert_to_null(customer.correo),
    }


def generate_subject(customer: Customer) -> dict:
    return {
        "tipoDocumento": convert_to_null(customer.tipo_documento),
        "numDocumento": convert_to_null(customer.num_documento),
        "nombre": customer.nombre,
        "codActividad": convert_to_null(customer.cod_actividad),
        "descActividad": convert_to_null(customer.desc_actividad),
        "direccion": _direccion(customer.direccion),
        "telefono": convert_to_null(customer.telefono),
        "correo": convert_to_null(customer.correo),
    }


def _pagos(tipo_pago: List[Pago]) -> List[dict]:
    return [
        {
            "codigo": p.codigo,
            "montoPago": redondear(p.monto_pago),
            "referencia": p.referencia,
            "plazo": p.plazo,
            "periodo": p.periodo,
        }
        for p in tipo_pago
    ]


def _porcentaje_descuento(products: List[CartProduct]) -> float:
    lista = calculos.total_without_discount(products)
    if lista == 0:
        return 0.0
    return calculos.discount_from_prices(lista, calculos.total(products)).percentage


# ——————————————————————————————————————————————————————————————
# Cuerpo del documento
# ——————————————————————————————————————————————————————————————
def make_cuerpo_documento_factura(products: List[CartProduct]) -> List[dict]:
    return [
        {
            "numItem": index,
            "tipoItem": cp.tipo_item,
            "uniMedida": cp.uni_medida,
            "numeroDocumento": None,
            "cantidad": cp.quantity,
            "codigo": convert_to_null(cp.product_code),
            "codTributo": None,
            "descripcion": cp.product_name,
            "precioUni": redondear(cp.price),
            "montoDescu": redondear(cp.monto_descuento * cp.quantity),
            "ventaNoSuj": redondear(cp.total_no_suj),
            "ventaExenta": redondear(cp.total_exenta),
            "ventaGravada": redondear(cp.total_gravada),
            "ivaItem": redondear(calculos.tax_for_amount(cp.total_gravada, 1)),
            "tributos": None,
            "psv": 0,
            "noGravado": redondear(cp.no_gravado),
        }
        for index, cp in enumerate(products, start=1)
    ]


def make_cuerpo_documento_fiscal(include_iva: bool, products: List[CartProduct]) -> List[dict]:
    """
    Líneas de crédito fiscal. Con ``include_iva`` el precio del carrito ya trae
    IVA y se le quita antes de calcular la venta gravada.
    """
    cuerpo = []
    for index, cp in enumerate(products, start=1):
        precio = calculos.remove_tax(cp.price) if include_iva else cp.price
        precio_uni = redondear(precio)
        cuerpo.append({
            "numItem": index,
            "tipoItem": cp.tipo_item,
            "uniMedida": cp.uni_medida,
            "numeroDocumento": None,
            "cantidad": cp.quantity,
            "codigo": convert_to_null(cp.product_code),
            "codTributo": None,
            "descripcion": cp.product_name,
            "precioUni": precio_uni,
            "montoDescu": redondear(cp.monto_descuento * cp.quantity),
            "ventaNoSuj": 0,
            "ventaExenta": 0,
            "ventaGravada": redondear(precio_uni * cp.quantity),
            "tributos": cp.tributos or ["20"],
            "psv": 0,
            "noGravado": redondear(cp.no_gravado),
        })
    return cuerpo


def make_cuerpo_documento_nota(include_iva: bool, products: List[CartProduct], numero_documento: str) -> List[dict]:
    cuerpo = make_cuerpo_documento_fiscal(include_iva, products)
    for item in cuerpo:
        item["numeroDocumento"] = numero_documento
        del item["psv"]
        del item["noGravado"]
    return cuerpo


def make_cuerpo_documento_fse(products: List[CartProductFSE]) -> List[dict]:
    cuerpo = []
    for index, prd in enumerate(products, start=1):
        precio_uni = redondear(prd.precio_uni)
        compra = prd.compra if prd.compra is not None else precio_uni * prd.cantidad
        cuerpo.append({
            "numItem": index,
            "tipoItem": prd.tipo_item,
            "cantidad": prd.cantidad,
            "codigo": convert_to_null(prd.codigo),
            "uniMedida": prd.uni_medida,
            "descripcion": prd.descripcion,
            "precioUni": precio_uni,
            "montoDescu": redondear(prd.monto_descu),
            "compra": redondear(compra),
        })
    return cuerpo


# ——————————————————————————————————————————————————————————————
# Resumen
# ——————————————————————————————————————————————————————————————
class Totales(NamedTuple):
    gravada: float
    iva: float
    monto_total: float
    rete_iva: float
    rete_renta: float
    total_pagar: float
    total_descuento: float
    porcentaje_descuento: float


def calcular_totales(
    cuerpo: List[dict],
    products: List[CartProduct],
    include_iva: bool,
    retencion: float,
    rete: float,
) -> Totales:
    """
    Totales de los documentos con crédito fiscal (03, 05, 06). La base
    gravada sale de las líneas ya armadas, no del carrito.
    """
    gravada = redondear(sum(item["ventaGravada"] for item in cuerpo))
    if include_iva:
        iva = redondear(calculos.tax_extracted(products))
    else:
        iva = redondear(calculos.tax_added(gravada))
    monto_total = redondear(gravada + iva)
    rete_iva = redondear(retencion)
    rete_renta = redondear(calculos.income_tax_retention(rete, monto_total))
    return Totales(
        gravada=gravada,
        iva=iva,
        monto_total=monto_total,
        rete_iva=rete_iva,
        rete_renta=rete_renta,
        total_pagar=redondear(monto_total - rete_iva - rete_renta),
        total_descuento=redondear(calculos.discount_total(products)),
        porcentaje_descuento=redondear(_porcentaje_descuento(products)),
    )


def _resumen_fiscal(totales: Totales, tributo: Tributo, condition: int) -> dict:
    """Campos comunes del resumen de 03, 05 y 06."""
    return {
        "totalNoSuj": 0,
        "totalExenta": 0,
        "totalGravada": totales.gravada,
        "subTotalVentas": totales.gravada,
        "descuNoSuj": 0,
        "descuExenta": 0,
        "descuGravada": 0,
        "totalDescu": totales.total_descuento,
        "tributos": [
            {
                "codigo": tributo.codigo,
                "descripcion": tributo.descripcion,
                "valor": totales.iva,
            }
        ],
        "subTotal": totales.gravada,
        "ivaPerci1": 0,
        "ivaRete1": totales.rete_iva,
        "reteRenta": totales.rete_renta,
        "montoTotalOperacion": totales.monto_total,
        "condicionOperacion": condition,
    }


# ——————————————————————————————————————————————————————————————
# Documentos
# ——————————————————————————————————————————————————————————————
def _resumen_factura(data: FacturaRequest) -> dict:
    products = data.products
    no_suj = redondear(calculos.non_subject_total(products))
    exenta = redondear(calculos.exempt_total(products))
    gravada = redondear(calculos.taxed_total(products))
    no_gravado = redondear(calculos.non_taxed_total(products))
    sub_total = redondear(no_suj + exenta + gravada)
    rete_iva = redondear(data.iva_rete1)
    total_pagar = redondear(sub_total + no_gravado - rete_iva)

    return {
        "totalNoSuj": no_suj,
        "totalExenta": exenta,
        "totalGravada": gravada,
        "subTotalVentas": sub_total,
        "descuNoSuj": 0,
        "descuExenta": 0,
        "descuGravada": 0,
        "porcentajeDescuento": redondear(_porcentaje_descuento(products)),
        "totalDescu": redondear(calculos.discount_total(products)),
        "tributos": None,
        "subTotal": sub_total,
        "ivaRete1": rete_iva,
        "reteRenta": 0,
        "totalIva": redondear(calculos.tax_extracted(products)),
        "montoTotalOperacion": sub_total,
        "totalNoGravado": no_gravado,
        "totalPagar": total_pagar,
        "totalLetras": currency_in_words(total_pagar),
        "saldoFavor": 0,
        "condicionOperacion": data.condition,
        "pagos": _pagos(data.tipo_pago),
        "numPagoElectronico": None,
    }


def generate_factura(data: FacturaRequest) -> dict:
    """Factura electrónica (01): precios con IVA incluido, consumidor final."""
    validar_emision(data, data.products)

    identificacion = generate_identificacion(FACTURA, data)
    logger.info("Armando factura %s", identificacion["numeroControl"])

    return _envolver(data.transmitter, {
        "identificacion": identificacion,
        "documentoRelacionado": None,
        "emisor": generate_emisor(data),
        "receptor": generate_receptor(data.customer),
        "otrosDocumentos": None,
        "ventaTercero": None,
        "cuerpoDocumento": make_cuerpo_documento_factura(data.products),
        "resumen": _resumen_factura(data),
        "extension": None,
        "apendice": None,
    })


def generate_credito_fiscal(data: CreditoFiscalRequest) -> dict:
    """
    Comprobante de crédito fiscal (03). Admite retención de IVA
    (``retencion``), retención de renta en % (``rete``) y precios con IVA
    incluido (``include_iva``).
    """
    validar_emision(data, data.products)
    receptor = generate_receptor_fiscal(data.customer)
    cuerpo = make_cuerpo_documento_fiscal(data.include_iva, data.products)
    totales = calcular_totales(cuerpo, data.products, data.include_iva, data.retencion, data.rete)

    resumen = _resumen_fiscal(totales, data.tributo, data.condition)
    resumen.update({
        "porcentajeDescuento": totales.porcentaje_descuento,
        "totalNoGravado": 0,
        "totalPagar": totales.total_pagar,
        "totalLetras": currency_in_words(totales.total_pagar),
        "saldoFavor": 0,
        "pagos": _pagos(data.tipo_pago),
        "numPagoElectronico": None,
    })

    identificacion = generate_identificacion(CREDITO_FISCAL, data)
    logger.info("Armando crédito fiscal %s", identificacion["numeroControl"])

    return _envolver(data.transmitter, {
        "identificacion": identificacion,
        "documentoRelacionado": None,
        "emisor": generate_emisor(data),
        "receptor": receptor,
        "otrosDocumentos": None,
        "ventaTercero": None,
        "cuerpoDocumento": cuerpo,
        "resumen": resumen,
        "extension": None,
        "apendice": None,
    })


def _generate_nota(tipo_dte: str, data: NotaRequest) -> dict:
    validar_emision(data, data.products)
    if not data.documentos_relacionados:
        raise ValidationError("documentosRelacionados", "la nota debe referir al menos un documento")

    receptor = generate_receptor_fiscal(data.customer)
    relacionado = data.documentos_relacionados[0].numero_documento
    cuerpo = make_cuerpo_documento_nota(data.include_iva, data.products, relacionado)
    totales = calcular_totales(cuerpo, data.products, data.include_iva, data.retencion, data.rete)

    resumen = _resumen_fiscal(totales, data.tributo, data.condition)
    resumen["totalLetras"] = currency_in_words(totales.monto_total)
    if tipo_dte == NOTA_DEBITO:
        resumen["numPagoElectronico"] = None

    identificacion = generate_identificacion(tipo_dte, data)
    logger.info("Armando nota %s %s", tipo_dte, identificacion["numeroControl"])

    return _envolver(data.transmitter, {
        "identificacion": identificacion,
        "documentoRelacionado": [
            {
                "tipoDocumento": dr.tipo_documento,
                "tipoGeneracion": dr.tipo_generacion,
                "numeroDocumento": dr.numero_documento,
                "fechaEmision": dr.fecha_emision,
            }
            for dr in data.documentos_relacionados
        ],
        "emisor": generate_emisor_nota(data),
        "receptor": receptor,
        "ventaTercero": None,
        "cuerpoDocumento": cuerpo,
        "resumen": resumen,
        "extension": None,
        "apendice": None,
    })


def generate_nota_credito(data: NotaRequest) -> dict:
    return _generate_nota(NOTA_CREDITO, data)


def generate_nota_debito(data: NotaRequest) -> dict:
    return _generate_nota(NOTA_DEBITO, data)


def generate_sujeto_excluido(data: SujetoExcluidoRequest) -> dict:
    """
    Factura de sujeto excluido (14): se retiene el 10 % de renta sobre el
    subtotal y esa es la única deducción del total a pagar.
    """
    validar_emision(data, data.products)
    cuerpo = make_cuerpo_documento_fse(data.products)

    sub_total = redondear(sum(prd.precio_uni * prd.cantidad for prd in data.products))
    rete_renta = redondear(calculos.income_tax_retention(RETENCION_SUJETO_EXCLUIDO, sub_total))
    total_pagar = redondear(sub_total - rete_renta)

    identificacion = generate_identificacion(SUJETO_EXCLUIDO, data)
    logger.info("Armando sujeto excluido %s", identificacion["numeroControl"])

    return _envolver(data.transmitter, {
        "identificacion": identificacion,
        "emisor": generate_emisor_fse(data),
        "sujetoExcluido": generate_subject(data.sujeto_excluido),
        "cuerpoDocumento": cuerpo,
        "resumen": {
            "totalCompra": sub_total,
            "descu": 0,
            "totalDescu": 0,
            "subTotal": sub_total,
            "ivaRete1": 0,
            "reteRenta": rete_renta,
            "totalPagar": total_pagar,
            "totalLetras": currency_in_words(total_pagar),
            "condicionOperacion": 1,
            "pagos": [
                {
                    "codigo": "01",
                    "montoPago": total_pagar,
                    "referencia": "",
                    "plazo": None,
                    "periodo": None,
                }
            ],
            "observaciones": convert_to_null(data.observaciones),
        },
        "apendice": None,
    })
