"""
Normalización de identificadores de empleado.

El directorio maestro usa identificadores numéricos, mientras que algunas
fuentes heredadas los guardan con prefijos o separadores ("MTI-00123",
" 00123 "). Toda la reconciliación entre formatos pasa por aquí.
"""
import re
from typing import Iterable, List, Optional

_NON_DIGITS = re.compile(r"\D+")


def normalize_employee_id(raw: Optional[str]) -> str:
    """
    Devuelve la forma canónica de un identificador de empleado.

    - Si contiene dígitos, se conservan solo los dígitos.
    - Si no contiene dígitos, se devuelve recortado y en mayúsculas.
    - None o cadena vacía devuelven "".
    """
    if raw is None:
        return ""
    value = str(raw).strip()
    if not value:
        return ""
    digits = _NON_DIGITS.sub("", value)
    return digits if digits else value.upper()


def normalize_many(raw_ids: Iterable[Optional[str]]) -> List[str]:
    """Normaliza una lista, descartando vacíos y duplicados (conserva el orden)."""
    seen = set()
    result = []
    for raw in raw_ids:
        value = normalize_employee_id(raw)
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result
