"""
NexusHub - Formatter Tests
"""
from datetime import date, datetime, timedelta

import pytest

from nexushub.formatters import (
    date_from_iso, date_to_iso, digits_only, format_cep, format_cnpj, format_cpf,
    format_currency_br, format_date_br, format_datetime_br, format_phone_br, format_time_br,
    is_valid_cnpj, is_valid_cpf, parse_date, parse_datetime, relative_time_br
)


class TestDates:
    """Date formatting and parsing"""

    def test_format_date_br(self):
        assert format_date_br('2024-03-05') == '05/03/2024'
        assert format_date_br(date(2024, 12, 15)) == '15/12/2024'
        assert format_date_br(None) == ''

    def test_format_datetime_and_time(self):
        assert format_datetime_br('2024-03-05T14:07:00') == '05/03/2024 14:07'
        assert format_time_br(datetime(2024, 3, 5, 9, 5)) == '09:05'

    def test_parse_date_accepts_iso_and_brazilian(self):
        assert parse_date('2024-12-15') == date(2024, 12, 15)
        assert parse_date('15/12/2024') == date(2024, 12, 15)
        assert parse_date('garbage') is None
        assert parse_date('31/02/2024') is None

    def test_parse_datetime_normalizes_to_naive_utc(self):
        assert parse_datetime('2024-05-01T10:00:00Z') == datetime(2024, 5, 1, 10, 0)
        assert parse_datetime('2024-05-01T10:00:00-03:00') == datetime(2024, 5, 1, 13, 0)

    def test_iso_conversions(self):
        assert date_to_iso('5/3/2024') == '2024-03-05'
        assert date_from_iso('2024-03-05') == '05/03/2024'
        assert date_to_iso('') == ''
        assert date_from_iso('2024/03/05') == ''


class TestRelativeTime:
    """Portuguese relative time"""

    NOW = datetime(2024, 1, 10, 12, 0)

    @pytest.mark.parametrize('delta,expected', [
        (timedelta(seconds=30), 'agora mesmo'),
        (timedelta(minutes=1), 'há 1 minuto'),
        (timedelta(minutes=5), 'há 5 minutos'),
        (timedelta(hours=2), 'há 2 horas'),
        (timedelta(days=1), 'há 1 dia'),
        (timedelta(days=14), 'há 2 semanas'),
        (timedelta(days=60), 'há 2 meses'),
        (timedelta(days=400), 'há 1 ano'),
    ])
    def test_relative_time(self, delta, expected):
        assert relative_time_br(self.NOW - delta, now=self.NOW) == expected

    def test_empty_value(self):
        assert relative_time_br(None) == ''


class TestNumbers:
    """Phone, CEP, currency and documents"""

    def test_digits_only(self):
        assert digits_only('(11) 9876-5432') == '1198765432'
        assert digits_only(None) == ''

    def test_format_phone(self):
        assert format_phone_br('11987654321') == '(11) 98765-4321'
        assert format_phone_br('1133334444') == '(11) 3333-4444'
        assert format_phone_br('123') == '123'

    def test_format_cep(self):
        assert format_cep('01310100') == '01310-100'
        assert format_cep('0131') == '0131'

    def test_format_currency(self):
        assert format_currency_br(1234.56) == 'R$ 1.234,56'
        assert format_currency_br(0) == 'R$ 0,00'
        assert format_currency_br(-5.5) == '-R$ 5,50'
        assert format_currency_br(1234567.891) == 'R$ 1.234.567,89'

    def test_format_documents(self):
        assert format_cpf('52998224725') == '529.982.247-25'
        assert format_cnpj('11222333000181') == '11.222.333/0001-81'

    def test_cpf_checksum(self):
        assert is_valid_cpf('529.982.247-25')
        assert not is_valid_cpf('529.982.247-26')
        assert not is_valid_cpf('111.111.111-11')
        assert not is_valid_cpf('123')

    def test_cnpj_checksum(self):
        assert is_valid_cnpj('11.222.333/0001-81')
        assert not is_valid_cnpj('11.222.333/0001-82')
        assert not is_valid_cnpj('00000000000000')
