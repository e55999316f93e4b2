"""
NexusHub - Formatting Utilities
Brazilian locale formatting (dates, phone, currency, documents) and
checksum validation for CPF/CNPJ numbers
"""
import re
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]


def digits_only(value: Optional[str]) -> str:
    """Strip everything but digits"""
    if not value:
        return ''
    return re.sub(r'\D', '', str(value))


def _to_datetime(value: DateLike) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if re.fullmatch(r'\d{1,2}/\d{1,2}/\d{4}', text):
        try:
            return datetime.strptime(text, '%d/%m/%Y')
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None


def parse_date(value: DateLike) -> Optional[date]:
    """
    Parse a date from ISO (YYYY-MM-DD, or a full ISO timestamp) or
    Brazilian (DD/MM/YYYY) notation. Returns None when unparseable.
    """
    dt = _to_datetime(value)
    return dt.date() if dt else None


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """Parse a timestamp, normalizing timezone-aware values to naive UTC"""
    dt = _to_datetime(value)
    if dt is not None and dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def format_date_br(value: DateLike) -> str:
    """Format date as DD/MM/YYYY"""
    dt = _to_datetime(value)
    return dt.strftime('%d/%m/%Y') if dt else ''


def format_datetime_br(value: DateLike) -> str:
    """Format datetime as DD/MM/YYYY HH:mm"""
    dt = _to_datetime(value)
    return dt.strftime('%d/%m/%Y %H:%M') if dt else ''


def format_time_br(value: DateLike) -> str:
    """Format time as HH:mm"""
    dt = _to_datetime(value)
    return dt.strftime('%H:%M') if dt else ''


def format_phone_br(phone: Optional[str]) -> str:
    """
    Format phone number: (11) 99999-9999 for mobiles, (11) 9999-9999 for
    landlines. Anything else is returned unchanged.
    """
    if not phone:
        return ''
    cleaned = digits_only(phone)
    if len(cleaned) == 11:
        return f"({cleaned[:2]}) {cleaned[2:7]}-{cleaned[7:]}"
    if len(cleaned) == 10:
        return f"({cleaned[:2]}) {cleaned[2:6]}-{cleaned[6:]}"
    return phone


def format_cep(cep: Optional[str]) -> str:
    """Format CEP as 99999-999"""
    if not cep:
        return ''
    cleaned = digits_only(cep)
    if len(cleaned) == 8:
        return f"{cleaned[:5]}-{cleaned[5:]}"
    return cep


def format_currency_br(value: Union[int, float, Decimal, None]) -> str:
    """Format a number as Brazilian Real: R$ 1.234,56"""
    amount = Decimal(str(value or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = '-' if amount < 0 else ''
    integer, cents = f"{abs(amount):.2f}".split('.')
    grouped = f"{int(integer):,}".replace(',', '.')
    return f"{sign}R$ {grouped},{cents}"


def format_cpf(cpf: Optional[str]) -> str:
    """Format CPF as 999.999.999-99"""
    if not cpf:
        return ''
    cleaned = digits_only(cpf)
    if len(cleaned) == 11:
        return f"{cleaned[:3]}.{cleaned[3:6]}.{cleaned[6:9]}-{cleaned[9:]}"
    return cpf


def format_cnpj(cnpj: Optional[str]) -> str:
    """Format CNPJ as 99.999.999/9999-99"""
    if not cnpj:
        return ''
    cleaned = digits_only(cnpj)
    if len(cleaned) == 14:
        return f"{cleaned[:2]}.{cleaned[2:5]}.{cleaned[5:8]}/{cleaned[8:12]}-{cleaned[12:]}"
    return cnpj


def _plural(n: int, singular: str, plural: str) -> str:
    return f"há {n} {singular if n == 1 else plural}"


def relative_time_br(value: DateLike, now: Optional[datetime] = None) -> str:
    """Relative time in Portuguese: 'agora mesmo', 'há 5 minutos', 'há 2 horas'..."""
    dt = _to_datetime(value)
    if not dt:
        return ''
    if now is None:
        now = datetime.now(dt.tzinfo)
    
    seconds = int((now - dt).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    
    if seconds < 60:
        return 'agora mesmo'
    if minutes < 60:
        return _plural(minutes, 'minuto', 'minutos')
    if hours < 24:
        return _plural(hours, 'hora', 'horas')
    if days < 7:
        return _plural(days, 'dia', 'dias')
    if days < 30:
        return _plural(days // 7, 'semana', 'semanas')
    if days < 365:
        return _plural(days // 30, 'mês', 'meses')
    return _plural(days // 365, 'ano', 'anos')


def is_valid_cpf(cpf: Optional[str]) -> bool:
    """Validate the two CPF check digits"""
    cleaned = digits_only(cpf)
    if len(cleaned) != 11 or cleaned == cleaned[0] * 11:
        return False
    
    digits = [int(d) for d in cleaned]
    for position in (9, 10):
        total = sum(digits[i] * (position + 1 - i) for i in range(position))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != digits[position]:
            return False
    return True


def is_valid_cnpj(cnpj: Optional[str]) -> bool:
    """Validate the two CNPJ check digits"""
    cleaned = digits_only(cnpj)
    if len(cleaned) != 14 or cleaned == cleaned[0] * 14:
        return False
    
    digits = [int(d) for d in cleaned]
    weights = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    for position in (12, 13):
        w = weights[13 - position:]
        total = sum(d * k for d, k in zip(digits[:position], w))
        remainder = total % 11
        check = 0 if remainder < 2 else 11 - remainder
        if check != digits[position]:
            return False
    return True


def date_to_iso(date_br: Optional[str]) -> str:
    """Convert DD/MM/YYYY to YYYY-MM-DD"""
    if not date_br:
        return ''
    parts = date_br.split('/')
    if len(parts) != 3:
        return ''
    day, month, year = parts
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def date_from_iso(date_iso: Optional[str]) -> str:
    """Convert YYYY-MM-DD to DD/MM/YYYY"""
    if not date_iso:
        return ''
    parts = date_iso.split('-')
    if len(parts) != 3:
        return ''
    year, month, day = parts
    return f"{day}/{month}/{year}"
