import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./garagebook.db")

# Seconds a booking write waits for the staff calendar lock before giving up
APPOINTMENT_LOCK_TIMEOUT = float(os.getenv("APPOINTMENT_LOCK_TIMEOUT", "5"))

# Appointment duration bounds (minutes)
MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 480

# Phone normalisation: FR -> +33, BE -> +32
PHONE_DEFAULT_COUNTRY = os.getenv("PHONE_DEFAULT_COUNTRY", "FR").upper()

# SMS Configuration
SMS_ENABLED = os.getenv("SMS_ENABLED", "false").lower() == "true"
SMS_LANGUAGE = os.getenv("SMS_LANGUAGE", "FR").upper()  # FR or NL
SMS_MAX_ATTEMPTS = int(os.getenv("SMS_MAX_ATTEMPTS", "3"))
SMS_LOG_RETENTION_DAYS = int(os.getenv("SMS_LOG_RETENTION_DAYS", "90"))
SMS_DISPATCH_WORKERS = int(os.getenv("SMS_DISPATCH_WORKERS", "4"))

# Twilio Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
# Either a From number or a Messaging Service SID is required to send
TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER")
TWILIO_MESSAGING_SERVICE_SID = os.getenv("TWILIO_MESSAGING_SERVICE_SID")
TWILIO_API_BASE_URL = os.getenv("TWILIO_API_BASE_URL", "https://api.twilio.com/2010-04-01")

# Garage info used in SMS templates
GARAGE_NAME = os.getenv("GARAGE_NAME", "GarageBook")
GARAGE_ADDRESS_LINE = os.getenv("GARAGE_ADDRESS_LINE", "")
GARAGE_POSTAL_CODE = os.getenv("GARAGE_POSTAL_CODE", "")
GARAGE_CITY = os.getenv("GARAGE_CITY", "")
GARAGE_PHONE = os.getenv("GARAGE_PHONE", "")
GARAGE_TIMEZONE = os.getenv("GARAGE_TIMEZONE", "Europe/Brussels")

# Reminders are sent for confirmed appointments starting this many hours from now
REMINDER_HOURS_BEFORE = int(os.getenv("REMINDER_HOURS_BEFORE", "24"))
REMINDER_WINDOW_MINUTES = int(os.getenv("REMINDER_WINDOW_MINUTES", "60"))
