"""
Cálculos de totales para los DTE.

Todas las funciones son puras y trabajan sobre una lista de productos del
carrito (cualquier objeto con los atributos de ``CartProduct``). Los valores
intermedios NO se redondean; el redondeo a dos decimales se hace al momento
de escribir cada campo del documento (ver ``redondear``).
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, NamedTuple

# Tasa de IVA incluida en los precios (13 %)
IVA_RATE = 0.13

SUFIJO_MONEDA = "DOLARES AMERICANOS"
MAXIMO_EN_LETRAS = 1_000_000


class Descuento(NamedTuple):
    amount: float
    percentage: float


class PrecioDescontado(NamedTuple):
    amount: float
    price: float


CENTAVO = Decimal("0.01")


def redondear(valor: float) -> float:
    """
    Redondea a dos decimales (mitad hacia arriba), tal como se escribe en el
    JSON del DTE. ``currency_in_words`` usa la misma regla.
    """
    return float(Decimal(str(valor)).quantize(CENTAVO, rounding=ROUND_HALF_UP))


# ——————————————————————————————————————————————————————————————
# Totales del carrito
# ——————————————————————————————————————————————————————————————
def total(items: Iterable) -> float:
    return sum(float(i.quantity) * float(i.price) for i in items)


def total_without_discount(items: Iterable) -> float:
    """
    Total a precio de lista. Si el precio del producto quedó por debajo
    del precio base (ya descontado), se usa el precio base.
    """
    return sum(
        max(float(i.price), float(i.base_price)) * float(i.quantity)
        for i in items
    )


def discount_total(items: Iterable) -> float:
    return sum(float(i.monto_descuento) * float(i.quantity) for i in items)


def tax_for_amount(price: float, quantity: float) -> float:
    """IVA contenido en una línea cuyo precio ya incluye el impuesto."""
    monto = float(price) * float(quantity)
    return monto - monto / (1 + IVA_RATE)


def tax_extracted(items: Iterable) -> float:
    return sum(tax_for_amount(i.price, i.quantity) for i in items)


def tax_added(amount: float) -> float:
    """IVA a sumar sobre un monto que no lo incluye."""
    return float(amount) * IVA_RATE


def remove_tax(price: float) -> float:
    return float(price) / (1 + IVA_RATE)


def taxed_total(items: Iterable) -> float:
    return sum(float(i.total_gravada) for i in items)


def exempt_total(items: Iterable) -> float:
    return sum(float(i.total_exenta) for i in items)


def non_subject_total(items: Iterable) -> float:
    return sum(float(i.total_no_suj) for i in items)


def non_taxed_total(items: Iterable) -> float:
    return sum(float(i.no_gravado) for i in items)


# ——————————————————————————————————————————————————————————————
# Descuentos y retenciones
# ——————————————————————————————————————————————————————————————
def discount_from_prices(original: float, desired: float) -> Descuento:
    """
    Monto y porcentaje de descuento para pasar de ``original`` a ``desired``.
    Lanza ValueError si el precio original es cero.
    """
    original = float(original)
    if original == 0:
        raise ValueError("El precio original no puede ser cero")
    amount = original - float(desired)
    return Descuento(amount=amount, percentage=amount / original * 100)


def price_from_discount(original: float, percentage: float) -> PrecioDescontado:
    amount = float(percentage) / 100 * float(original)
    return PrecioDescontado(amount=amount, price=float(original) - amount)


def income_tax_retention(rate_percent: float, total: float) -> float:
    """Retención de renta; nunca negativa."""
    renta = float(total) * float(rate_percent) / 100
    return renta if renta > 0 else 0.0


# ——————————————————————————————————————————————————————————————
# Monto en letras
# ——————————————————————————————————————————————————————————————
UNIDADES = [
    "", "UNO", "DOS", "TRES", "CUATRO", "CINCO", "SEIS", "SIETE", "OCHO",
    "NUEVE", "DIEZ", "ONCE", "DOCE", "TRECE", "CATORCE", "QUINCE",
    "DIECISEIS", "DIECISIETE", "DIECIOCHO", "DIECINUEVE",
]
DECENAS = [
    "", "", "VEINTE", "TREINTA", "CUARENTA", "CINCUENTA", "SESENTA",
    "SETENTA", "OCHENTA", "NOVENTA",
]
CENTENAS = [
    "", "CIENTO", "DOSCIENTOS", "TRESCIENTOS", "CUATROCIENTOS", "QUINIENTOS",
    "SEISCIENTOS", "SETECIENTOS", "OCHOCIENTOS", "NOVECIENTOS",
]


def _decenas_a_letras(num: int, contraida: bool = False) -> str:
    if num < 20:
        return UNIDADES[num]
    decena, unidad = divmod(num, 10)
    if unidad == 0:
        return DECENAS[decena]
    # Después de una centena: 21-29 se escriben "VEINTIUNO" ... "VEINTINUEVE"
    if contraida and decena == 2:
        return "VEINTI" + UNIDADES[unidad]
    return f"{DECENAS[decena]} Y {UNIDADES[unidad]}"


def number_to_words(num: int) -> str:
    """
    Convierte un entero a letras.

    >>> number_to_words(12)
    'DOCE'
    >>> number_to_words(123)
    'CIENTO VEINTITRES'
    >>> number_to_words(1234)
    'MIL DOSCIENTOS TREINTA Y CUATRO'
    """
    if num < 0 or num >= MAXIMO_EN_LETRAS:
        raise ValueError(f"Monto fuera de rango para convertir a letras: {num}")
    if num == 0:
        return "CERO"
    if num < 100:
        return _decenas_a_letras(num)
    if num < 1000:
        centena, resto = divmod(num, 100)
        if resto == 0:
            return "CIEN" if centena == 1 else CENTENAS[centena]
        return f"{CENTENAS[centena]} {_decenas_a_letras(resto, contraida=True)}"

    miles, resto = divmod(num, 1000)
    texto = "MIL" if miles == 1 else f"{number_to_words(miles)} MIL"
    if resto:
        texto += f" {number_to_words(resto)}"
    return texto


def currency_in_words(amount) -> str:
    """
    Representación textual del monto para ``totalLetras``:
    ``"CIENTO VEINTICINCO 50/100 DOLARES AMERICANOS"``.
    """
    try:
        valor = Decimal(str(amount)).quantize(CENTAVO, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Monto inválido: {amount!r}")
    if valor < 0:
        raise ValueError(f"Monto negativo: {amount!r}")

    entero, centavos = f"{valor:f}".split(".")
    return f"{number_to_words(int(entero))} {centavos}/100 {SUFIJO_MONEDA}"
