import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .errores import TransmisionError, ValidationError
from .invalidacion import process_invalidation
from .models import (
    ConsultaRequest,
    CreditoFiscalRequest,
    FacturaRequest,
    InvalidationPayload,
    NotaRequest,
    ResultadoDTE,
    SujetoExcluidoRequest,
)
from .pipeline import (
    process_credito_fiscal,
    process_factura,
    process_nota_credito,
    process_nota_debito,
    process_sujeto_excluido,
)
from .transmision import check_dte

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Iniciando API de DTE (firmador en %s)", settings.FIRMADOR_URL)
    yield
    logger.info("Deteniendo API de DTE")


app = FastAPI(
    title="API DTE El Salvador",
    version="1.0",
    description="Arma, firma y transmite documentos tributarios electrónicos al Ministerio de Hacienda",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origen.strip() for origen in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


async def _emitir(proceso, data, token: str) -> ResultadoDTE:
    """Corre el pipeline y traduce las excepciones a respuestas HTTP."""
    try:
        return await proceso(data, token)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception("Error inesperado emitiendo el documento")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/", summary="Estado del servicio")
def root():
    return {"mensaje": "API DTE funcionando correctamente"}


@app.post("/factura", response_model=ResultadoDTE, summary="Emite una factura (01)")
async def emitir_factura(data: FacturaRequest, authorization: str = Header(...)):
    return await _emitir(process_factura, data, authorization)


@app.post("/credito-fiscal", response_model=ResultadoDTE, summary="Emite un crédito fiscal (03)")
async def emitir_credito_fiscal(data: CreditoFiscalRequest, authorization: str = Header(...)):
    return await _emitir(process_credito_fiscal, data, authorization)


@app.post("/nota-credito", response_model=ResultadoDTE, summary="Emite una nota de crédito (05)")
async def emitir_nota_credito(data: NotaRequest, authorization: str = Header(...)):
    return await _emitir(process_nota_credito, data, authorization)


@app.post("/nota-debito", response_model=ResultadoDTE, summary="Emite una nota de débito (06)")
async def emitir_nota_debito(data: NotaRequest, authorization: str = Header(...)):
    return await _emitir(process_nota_debito, data, authorization)


@app.post("/sujeto-excluido", response_model=ResultadoDTE, summary="Emite una factura de sujeto excluido (14)")
async def emitir_sujeto_excluido(data: SujetoExcluidoRequest, authorization: str = Header(...)):
    return await _emitir(process_sujeto_excluido, data, authorization)


@app.post("/invalidacion", response_model=ResultadoDTE, summary="Anula un DTE ya procesado")
async def invalidar(data: InvalidationPayload, authorization: str = Header(...)):
    return await _emitir(process_invalidation, data, authorization)


@app.post("/consulta", summary="Consulta el estado de un DTE en el MH")
def consultar(data: ConsultaRequest, authorization: str = Header(...)):
    payload = {
        "nitEmisor": data.nit_emisor,
        "tdte": data.tdte,
        "codigoGeneracion": data.codigo_generacion,
    }
    try:
        return check_dte(payload, authorization, ambiente=data.ambiente)
    except TransmisionError as e:
        raise HTTPException(status_code=502, detail=str(e))
