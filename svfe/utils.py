import uuid
import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from .config import settings

# Valores que el front usa para decir "sin dato"
VALORES_VACIOS = ("", "0", "N/A")


def convert_to_null(value: Optional[str]) -> Optional[str]:
    """
    Devuelve None si el valor está vacío, es "0" o "N/A"; si no, el mismo valor.
    """
    if value is None or value in VALORES_VACIOS:
        return None
    return value


def agregar_guion(texto: str) -> str:
    """
    Inserta un guion antes del último dígito (formato DUI), salvo que
    el texto ya tenga uno: "012345678" -> "01234567-8".
    """
    if "-" in texto:
        return texto
    return texto[:-1] + "-" + texto[-1:]


def formatear_numero(numero: int) -> str:
    """Correlativo a 15 dígitos con ceros a la izquierda."""
    return str(numero).zfill(15)


def generate_control(tipo_dte: str, cod_estable: str, cod_punto_venta: str, correlativo: str) -> str:
    """
    Número de control del DTE:
      DTE-{tipoDte}-{codEstable}{codPuntoVenta}-{correlativo a 15 dígitos}
    """
    return f"DTE-{tipo_dte}-{cod_estable}{cod_punto_venta}-{correlativo}"


# ——————————————————————————————————————————————————————————————
# Colaboradores externos: identificador y reloj
# ——————————————————————————————————————————————————————————————
def generate_uuid() -> str:
    return str(uuid.uuid4())


def get_el_salvador_datetime() -> dict:
    """
    Fecha y hora actuales en la zona horaria del emisor:
      - fecEmi: YYYY-MM-DD
      - horEmi: HH:MM:SS (24 horas)
    """
    ahora = datetime.datetime.now(ZoneInfo(settings.TIMEZONE)).replace(microsecond=0)
    return {
        "fecEmi": ahora.strftime("%Y-%m-%d"),
        "horEmi": ahora.strftime("%H:%M:%S"),
    }


def fecha_procesamiento() -> str:
    """Marca de tiempo para las respuestas sintetizadas (dd/mm/YYYY HH:MM:SS)."""
    ahora = datetime.datetime.now(ZoneInfo(settings.TIMEZONE))
    return ahora.strftime("%d/%m/%Y %H:%M:%S")
