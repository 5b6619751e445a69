import pytest

from svfe.models import (
    CreditoFiscalRequest,
    FacturaRequest,
    InvalidationPayload,
    NotaRequest,
    SujetoExcluidoRequest,
)

TRANSMITTER = {
    "nit": "06142803901121",
    "nrc": "1234567",
    "nombre": "COMERCIAL LA ESQUINA S.A. DE C.V.",
    "nombreComercial": "LA ESQUINA",
    "codActividad": "47190",
    "descActividad": "Venta al por menor de otros productos",
    "direccion": {"departamento": "06", "municipio": "14", "complemento": "Col. Escalón"},
    "telefono": "22223333",
    "correo": "ventas@laesquina.com.sv",
    "clavePrivada": "clave-secreta",
}

CONTRIBUYENTE = {
    "nombre": "DISTRIBUIDORA EL SOL S.A. DE C.V.",
    "nit": "06140101001010",
    "nrc": "765432",
    "codActividad": "46900",
    "descActividad": "Venta al por mayor",
    "direccion": {"departamento": "06", "municipio": "14", "complemento": "Blvd. Los Héroes"},
    "telefono": "22224444",
    "correo": "compras@elsol.com.sv",
}


def _emision(**extra) -> dict:
    base = {
        "transmitter": TRANSMITTER,
        "codEstable": "0001",
        "codPuntoVenta": "0002",
        "nextCorrelative": 123,
        "ambiente": "00",
    }
    base.update(extra)
    return base


@pytest.fixture
def factura_request():
    return FacturaRequest.model_validate(_emision(
        customer={
            "nombre": "JUAN PEREZ",
            "nrc": "0",
            "tipoDocumento": "13",
            "numDocumento": "012345678",
        },
        products=[
            {"productName": "Café", "productCode": "CAF-1", "quantity": 2, "price": 10, "total_gravada": 20},
            {"productName": "Pan", "productCode": "PAN-1", "quantity": 1, "price": 5, "total_gravada": 5},
        ],
    ))


@pytest.fixture
def credito_fiscal_request():
    return CreditoFiscalRequest.model_validate(_emision(
        customer=CONTRIBUYENTE,
        products=[
            {"productName": "Caja de tornillos", "quantity": 4, "price": 25},
        ],
    ))


@pytest.fixture
def nota_request():
    return NotaRequest.model_validate(_emision(
        customer=CONTRIBUYENTE,
        products=[
            {"productName": "Devolución de tornillos", "quantity": 1, "price": 50},
        ],
        documentosRelacionados=[
            {"numeroDocumento": "0C1F2A3B-0000-4000-8000-000000000001", "fechaEmision": "2024-05-01"},
        ],
    ))


@pytest.fixture
def sujeto_excluido_request():
    return SujetoExcluidoRequest.model_validate(_emision(
        sujetoExcluido={
            "nombre": "MARIA LOPEZ",
            "tipoDocumento": "13",
            "numDocumento": "01234567-8",
        },
        products=[
            {"descripcion": "Servicio de limpieza", "cantidad": 1, "precioUni": 100},
        ],
    ))


@pytest.fixture
def invalidation_payload():
    return InvalidationPayload.model_validate({
        "transmitter": TRANSMITTER,
        "codEstable": "0001",
        "codPuntoVenta": "0002",
        "nombreEstablecimiento": "Casa matriz",
        "tipoDte": "01",
        "document": {
            "tipoAnulacion": 2,
            "motivoAnulacion": "Error en los datos del receptor",
            "nombreResponsable": "ANA GOMEZ",
            "tipDocResponsable": "13",
            "numDocResponsable": "01234567-8",
            "nombreSolicita": "JUAN PEREZ",
            "tipDocSolicita": "13",
            "numDocSolicita": "01234567-9",
        },
        "customer": {"tipoDocumento": "13", "numDocumento": "01234567-9", "name": "JUAN PEREZ"},
        "sale": {
            "codigoGeneracion": "9A8B7C6D-0000-4000-8000-000000000009",
            "selloRecibido": "2024ABCDEF0123456789",
            "numeroControl": "DTE-01-00010002-000000000000120",
            "fecEmi": "2024-05-01",
            "montoIva": 2.8761,
        },
    })
