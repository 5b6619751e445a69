from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Modelo(BaseModel):
    # Acepta tanto los nombres Python como las claves camelCase del front
    model_config = ConfigDict(populate_by_name=True)


# ——————————————————————————————————————————————————————————————
# Emisor, receptor y productos
# ——————————————————————————————————————————————————————————————
class Direccion(_Modelo):
    departamento: str
    municipio: str
    complemento: str


class Transmitter(_Modelo):
    nit: str
    nrc: str
    nombre: str
    nombre_comercial: Optional[str] = Field(None, alias="nombreComercial")
    cod_actividad: str = Field(alias="codActividad")
    desc_actividad: str = Field(alias="descActividad")
    direccion: Direccion
    telefono: str
    correo: str
    clave_privada: str = Field(alias="clavePrivada")


class Customer(_Modelo):
    nombre: str
    nombre_comercial: Optional[str] = Field(None, alias="nombreComercial")
    nrc: Optional[str] = None
    nit: Optional[str] = None
    tipo_documento: Optional[str] = Field(None, alias="tipoDocumento")
    num_documento: Optional[str] = Field(None, alias="numDocumento")
    cod_actividad: Optional[str] = Field(None, alias="codActividad")
    desc_actividad: Optional[str] = Field(None, alias="descActividad")
    telefono: Optional[str] = None
    correo: Optional[str] = None
    direccion: Optional[Direccion] = None


class CartProduct(_Modelo):
    product_name: str = Field(alias="productName")
    product_code: Optional[str] = Field(None, alias="productCode")
    quantity: float
    price: float
    base_price: float = 0.0
    tipo_item: int = Field(1, alias="tipoItem")
    uni_medida: int = Field(59, alias="uniMedida")
    monto_descuento: float = 0.0
    total_gravada: float = 0.0
    total_exenta: float = 0.0
    total_no_suj: float = 0.0
    no_gravado: float = 0.0
    tributos: Optional[List[str]] = None


class CartProductFSE(_Modelo):
    """Línea de compra a un sujeto excluido."""
    descripcion: str
    codigo: Optional[str] = None
    cantidad: float
    precio_uni: float = Field(alias="precioUni")
    monto_descu: float = Field(0.0, alias="montoDescu")
    tipo_item: int = Field(1, alias="tipoItem")
    uni_medida: int = Field(59, alias="uniMedida")
    compra: Optional[float] = None


class Pago(_Modelo):
    codigo: str
    monto_pago: float = Field(alias="montoPago")
    referencia: Optional[str] = None
    plazo: Optional[str] = None
    periodo: Optional[int] = None


class Tributo(_Modelo):
    codigo: str = "20"
    descripcion: str = "Impuesto al Valor Agregado 13%"


class DocumentoRelacionado(_Modelo):
    tipo_documento: str = Field("03", alias="tipoDocumento")
    tipo_generacion: int = Field(2, alias="tipoGeneracion")
    numero_documento: str = Field(alias="numeroDocumento")
    fecha_emision: str = Field(alias="fechaEmision")


# ——————————————————————————————————————————————————————————————
# Solicitudes de emisión
# ——————————————————————————————————————————————————————————————
class EmisionBase(_Modelo):
    transmitter: Transmitter
    cod_estable: str = Field(alias="codEstable")
    cod_punto_venta: str = Field(alias="codPuntoVenta")
    cod_estable_mh: Optional[str] = Field(None, alias="codEstableMH")
    cod_punto_venta_mh: Optional[str] = Field(None, alias="codPuntoVentaMH")
    tipo_establecimiento: str = Field("01", alias="tipoEstablecimiento")
    next_correlative: int = Field(alias="nextCorrelative")
    ambiente: str = "00"


class FacturaRequest(EmisionBase):
    customer: Customer
    products: List[CartProduct]
    condition: int = 1
    tipo_pago: List[Pago] = []
    iva_rete1: float = Field(0.0, alias="ivaRete1")


class CreditoFiscalRequest(EmisionBase):
    customer: Customer
    products: List[CartProduct]
    condition: int = 1
    tipo_pago: List[Pago] = []
    retencion: float = 0.0
    tributo: Tributo = Tributo()
    rete: float = 0.0              # % de retención de renta
    include_iva: bool = Field(False, alias="includeIva")


class NotaRequest(EmisionBase):
    """Nota de crédito (05) o de débito (06) sobre un crédito fiscal."""
    customer: Customer
    products: List[CartProduct]
    documentos_relacionados: List[DocumentoRelacionado] = Field(alias="documentosRelacionados")
    condition: int = 1
    retencion: float = 0.0
    tributo: Tributo = Tributo()
    rete: float = 0.0
    include_iva: bool = Field(False, alias="includeIva")


class SujetoExcluidoRequest(EmisionBase):
    sujeto_excluido: Customer = Field(alias="sujetoExcluido")
    products: List[CartProductFSE]
    observaciones: Optional[str] = None


class DocumentoAnulacion(_Modelo):
    tipo_anulacion: int = Field(alias="tipoAnulacion")
    motivo_anulacion: Optional[str] = Field(None, alias="motivoAnulacion")
    nombre_responsable: str = Field(alias="nombreResponsable")
    tip_doc_responsable: str = Field(alias="tipDocResponsable")
    num_doc_responsable: str = Field(alias="numDocResponsable")
    nombre_solicita: str = Field(alias="nombreSolicita")
    tip_doc_solicita: str = Field(alias="tipDocSolicita")
    num_doc_solicita: str = Field(alias="numDocSolicita")


class ClienteAnulacion(_Modelo):
    tipo_documento: Optional[str] = Field(None, alias="tipoDocumento")
    num_documento: Optional[str] = Field(None, alias="numDocumento")
    nombre: str = Field(alias="name")


class VentaAnulada(_Modelo):
    codigo_generacion: str = Field(alias="codigoGeneracion")
    codigo_generacion_r: Optional[str] = Field(None, alias="codigoGeneracionR")
    sello_recibido: str = Field(alias="selloRecibido")
    numero_control: str = Field(alias="numeroControl")
    fec_emi: str = Field(alias="fecEmi")
    monto_iva: float = Field(0.0, alias="montoIva")


class InvalidationPayload(_Modelo):
    transmitter: Transmitter
    cod_estable: str = Field(alias="codEstable")
    cod_punto_venta: str = Field(alias="codPuntoVenta")
    tipo_establecimiento: str = Field("01", alias="tipoEstablecimiento")
    nombre_establecimiento: str = Field(alias="nombreEstablecimiento")
    tipo_dte: str = Field(alias="tipoDte")
    document: DocumentoAnulacion
    customer: ClienteAnulacion
    sale: VentaAnulada
    ambiente: str = "00"


class ConsultaRequest(_Modelo):
    nit_emisor: str = Field(alias="nitEmisor")
    tdte: str
    codigo_generacion: str = Field(alias="codigoGeneracion")
    ambiente: str = "00"


# ——————————————————————————————————————————————————————————————
# Respuestas del Ministerio de Hacienda
# ——————————————————————————————————————————————————————————————
class RespuestaMH(BaseModel):
    """Forma de la respuesta del MH; se conservan campos extra tal cual llegan."""

    model_config = ConfigDict(extra="allow")

    version: int = 0
    ambiente: Optional[str] = None
    versionApp: int = 1
    estado: Optional[str] = None
    codigoGeneracion: Optional[str] = None
    selloRecibido: Optional[str] = None
    fhProcesamiento: Optional[str] = None
    clasificaMsg: Optional[str] = None
    codigoMsg: Optional[str] = None
    descripcionMsg: Optional[str] = None
    observaciones: Optional[List[Any]] = []


class Desenlace(str, Enum):
    PROCESADO = "PROCESADO"
    RECHAZADO = "RECHAZADO"
    TIEMPO_EXCEDIDO = "TIEMPO_EXCEDIDO"
    FALLO_TRANSPORTE = "FALLO_TRANSPORTE"
    ESTADO_DESCONOCIDO = "ESTADO_DESCONOCIDO"
    FIRMA_NO_ENCONTRADA = "FIRMA_NO_ENCONTRADA"
    FALLO_FIRMA = "FALLO_FIRMA"


class ResultadoMH(BaseModel):
    """Clasificación de un envío al MH, decidida una sola vez al recibirlo."""
    desenlace: Desenlace
    respuesta: RespuestaMH


class ResultadoDTE(BaseModel):
    """Lo que recibe quien llama al pipeline: siempre completo."""
    desenlace: Desenlace
    mh: RespuestaMH
    documento: dict
    firmado: Optional[dict] = None
