# clinicstock/utils/dates.py
"""
Datas no fuso da clínica.

Os carimbos de data/hora são gravados em UTC (naive); dias de calendário
(hoje, filtros por período, exportação) seguem settings.DEFAULT_TIMEZONE.
"""
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from clinicstock.core.config import settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.DEFAULT_TIMEZONE)


def local_today() -> date:
    """Data de hoje no fuso configurado da clínica"""
    return datetime.now(local_zone()).date()


def local_day_start_utc(day: date) -> datetime:
    """Meia-noite local de `day`, convertida para UTC naive"""
    start = datetime.combine(day, time.min, tzinfo=local_zone())
    return start.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    """Carimbo UTC naive -> horário local"""
    return value.replace(tzinfo=timezone.utc).astimezone(local_zone())
