"""
SMS templates for appointment notifications (French or Dutch)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import (
    GARAGE_ADDRESS_LINE,
    GARAGE_CITY,
    GARAGE_NAME,
    GARAGE_PHONE,
    GARAGE_POSTAL_CODE,
    GARAGE_TIMEZONE,
    SMS_LANGUAGE,
)
from ..models_sms import NotificationType


@dataclass(frozen=True)
class GarageInfo:
    name: str
    address_line: str = ""
    postal_code: str = ""
    city: str = ""
    phone: str = ""

    @property
    def full_address(self) -> str:
        locality = " ".join(p for p in (self.postal_code, self.city) if p)
        return ", ".join(p for p in (self.address_line, locality) if p)

    @classmethod
    def from_config(cls) -> "GarageInfo":
        return cls(
            name=GARAGE_NAME,
            address_line=GARAGE_ADDRESS_LINE,
            postal_code=GARAGE_POSTAL_CODE,
            city=GARAGE_CITY,
            phone=GARAGE_PHONE,
        )


TEMPLATES = {
    "FR": {
        NotificationType.CONFIRM: "{name} ✅ RDV confirmé\nLe {date} à {time}\nAdresse: {address}",
        NotificationType.UPDATE: "{name} 🔁 RDV modifié\nNouvelle date: {date} à {time}\nAdresse: {address}",
        NotificationType.CANCEL: (
            "{name} ❌ RDV annulé (prévu le {date}). Besoin d'un nouveau RDV? Contact: {phone}"
        ),
        NotificationType.REMINDER: "{name} ⏰ Rappel RDV\nLe {date} à {time}\nAdresse: {address}",
    },
    "NL": {
        NotificationType.CONFIRM: "{name} ✅ Afspraak bevestigd\nOp {date} om {time}\nAdres: {address}",
        NotificationType.UPDATE: (
            "{name} 🔁 Afspraak gewijzigd\nNieuwe datum: {date} om {time}\nAdres: {address}"
        ),
        NotificationType.CANCEL: (
            "{name} ❌ Afspraak geannuleerd (op {date}). Nieuwe afspraak nodig? Contact: {phone}"
        ),
        NotificationType.REMINDER: "{name} ⏰ Herinnering afspraak\nOp {date} om {time}\nAdres: {address}",
    },
}

TIME_FORMATS = {"FR": "%Hh%M", "NL": "%H:%M"}


class SmsTemplateRenderer:
    """Renders notification texts in the garage's local time"""

    def __init__(
        self,
        garage: Optional[GarageInfo] = None,
        language: str = SMS_LANGUAGE,
        timezone: str = GARAGE_TIMEZONE,
    ):
        self.garage = garage or GarageInfo.from_config()
        self.language = language.upper() if language.upper() in TEMPLATES else "FR"
        self.zone = ZoneInfo(timezone)

    def _local(self, value: datetime) -> datetime:
        return value.astimezone(self.zone)

    def render(self, event) -> str:
        template = TEMPLATES[self.language][NotificationType(event.type)]
        start = self._local(event.start_time)
        return template.format(
            name=self.garage.name,
            date=start.strftime("%d/%m/%Y"),
            time=start.strftime(TIME_FORMATS[self.language]),
            address=self.garage.full_address,
            phone=self.garage.phone,
        )
