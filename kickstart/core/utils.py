# kickstart/core/utils.py
# Fonctions temporelles (UTC aware) partagées par les services.

import datetime as dt
from typing import Callable

Clock = Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    """Date/heure UTC (timezone-aware).

    Description:
        Horloge par défaut de tous les services. Les services reçoivent une `Clock`
        injectable afin que les tests puissent figer le temps.

    Returns:
        datetime.datetime: Timestamp UTC (aware).
    """
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    """Normalise un datetime en UTC aware (un datetime naive est supposé déjà en UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def start_of_day(day: dt.date) -> dt.datetime:
    """Minuit UTC du jour donné."""
    return dt.datetime(day.year, day.month, day.day, tzinfo=dt.timezone.utc)


def epoch_ms(value: dt.datetime) -> int:
    """Timestamp en millisecondes (utilisé pour nommer les artefacts uploadés)."""
    return int(as_utc(value).timestamp() * 1000)
