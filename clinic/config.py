"""Configuration for the dental clinic core.

All default business data centralized here - modify as needed without touching code.
Environment overrides are read once at import (after loading a local .env).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Store and logging
CLINIC_STORE_URL = os.getenv("CLINIC_STORE_URL", "memory://")
CLINIC_LOG_LEVEL = os.getenv("CLINIC_LOG_LEVEL", "INFO")
CLINIC_JSON_LOGS = os.getenv("CLINIC_JSON_LOGS", "true").lower() == "true"

# Working hours (weekday indices: 0 = Sunday ... 6 = Saturday)
DEFAULT_WORK_DAYS = [0, 1, 2, 3, 4]
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"
DEFAULT_SLOT_DURATION = 30
DEFAULT_APPOINTMENT_DURATION = 30

# Rows used to place existing appointments on the calendar; booking never uses it
MICRO_GRID_MINUTES = 15

MAX_PATIENT_TAGS = 10
PATIENT_SEARCH_LIMIT = 10

DEFAULT_TAGS = ["VIP", "دكتور", "صديق", "موظف", "طالب"]

DEFAULT_SETTINGS = {
    "work_days": DEFAULT_WORK_DAYS,
    "start_time": DEFAULT_START_TIME,
    "end_time": DEFAULT_END_TIME,
    "shifts": [
        {"id": "default", "start_time": DEFAULT_START_TIME, "end_time": DEFAULT_END_TIME}
    ],
    "holidays": [],
    "logo": None,
    "tags": DEFAULT_TAGS,
    "slot_duration": DEFAULT_SLOT_DURATION,
}

DEFAULT_TREATMENT_GROUPS = [
    {"id": "g1", "code": "RS", "name_ar": "ترميم", "name_en": "Restoration", "effect": "tooth"},
    {"id": "g2", "code": "EN", "name_ar": "علاج عصب", "name_en": "Endodontics", "effect": "tooth"},
    {"id": "g3", "code": "IM", "name_ar": "زراعة", "name_en": "Implant", "effect": "tooth"},
    {"id": "g4", "code": "ES", "name_ar": "تجميل", "name_en": "Esthetic", "effect": "tooth"},
    {"id": "g5", "code": "CR", "name_ar": "تيجان", "name_en": "Crowns", "effect": "tooth"},
    {"id": "g6", "code": "OR", "name_ar": "تقويم أسنان", "name_en": "Orthodontics", "effect": "both_jaws"},
    {"id": "g7", "code": "SU", "name_ar": "جراحة", "name_en": "Surgery", "effect": "dynamic"},
    {"id": "g8", "code": "PR", "name_ar": "أمراض لثة", "name_en": "Periodontics", "effect": "jaw"},
    {"id": "g9", "code": "PO", "name_ar": "تركيبات صناعية", "name_en": "Prosthodontics", "effect": "none"},
    {"id": "g10", "code": "PD", "name_ar": "أطفال", "name_en": "Pediatric", "effect": "tooth"},
    {"id": "g11", "code": "OT", "name_ar": "علاجات أخرى سن", "name_en": "Other Tooth", "effect": "tooth"},
    {"id": "g12", "code": "OJ", "name_ar": "علاجات أخرى فك", "name_en": "Other Jaw", "effect": "jaw"},
    {"id": "g13", "code": "OB", "name_ar": "علاجات أخرى فكين", "name_en": "Other Both Jaws", "effect": "both_jaws"},
]

DEFAULT_LAB_WORK_TYPES = [
    {"id": "lw1", "name": "تاج زركون"},
    {"id": "lw2", "name": "جسر بورسلين"},
    {"id": "lw3", "name": "طقم كامل"},
    {"id": "lw4", "name": "تقويم متحرك"},
    {"id": "lw5", "name": "واقي أسنان"},
]

DEFAULT_EXPENSE_TYPES = ["إيجار", "كهرباء", "ماء", "مواد طبية", "رواتب", "صيانة", "مصاريف أخرى"]

# Expense types written automatically when paying doctors and labs
DOCTOR_PAYMENT_EXPENSE_TYPE = "مدفوعات أطباء"
LAB_PAYMENT_EXPENSE_TYPE = "مصاريف مخابر"

OWNER_DOCTOR_ID = "owner"

DEFAULT_DOCTORS = [
    {"id": OWNER_DOCTOR_ID, "name": "مالك العيادة", "specialty": "", "phone": "", "is_owner": True, "is_active": True},
]

# Appointment treatment type used when no group is picked
DEFAULT_TREATMENT_TYPE = "فحص"

# Phone country codes offered on the patient form and their local digit counts
COUNTRY_PHONE_DIGITS = {
    "+963": 9,   # Syria
    "+964": 10,  # Iraq
    "+962": 9,   # Jordan
    "+961": 8,   # Lebanon
    "+966": 9,   # Saudi Arabia
    "+971": 9,   # UAE
    "+20": 10,   # Egypt
    "+90": 10,   # Turkey
}
DEFAULT_COUNTRY_CODE = "+963"
DEFAULT_MEDICAL_HISTORY = "لا يوجد"
DEFAULT_CREATED_BY = "المالك"
