# clients/validators.py
import re

from django.core.exceptions import ValidationError

RUT_RE = re.compile(r"^(\d{1,8})-([0-9K])$")


def rut_check_digit(body: int) -> str:
    """Modulo-11 check digit of a RUT body ('K' stands for 10)."""
    m, s = 0, 1
    while body:
        s = (s + body % 10 * (9 - m % 6)) % 11
        body //= 10
        m += 1
    return str(s - 1) if s else "K"


def normalize_rut(value: str) -> str:
    """
    Accepts '12.345.678-5', '12345678-5' or '6-k' and returns '12345678-5' / '6-K'.
    Raises ValidationError when the format or the check digit is wrong.
    """
    raw = (value or "").strip().replace(".", "").replace(" ", "").upper()
    match = RUT_RE.match(raw)
    if not match:
        raise ValidationError("RUT must look like 12345678-5", code="invalid_rut_format")
    body, dv = match.groups()
    if rut_check_digit(int(body)) != dv:
        raise ValidationError(f"Invalid RUT check digit for {value}", code="invalid_rut")
    return f"{int(body)}-{dv}"


def validate_rut(value: str) -> None:
    normalize_rut(value)
