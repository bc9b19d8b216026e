# backend/clowee/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/clowee.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///clowee.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Calculations above this many milliseconds are logged as slow
    SLOW_OPERATION_MS = int(os.environ.get("SLOW_OPERATION_MS", "500"))

    CURRENCY_CODE = "BDT"
    CURRENCY_SYMBOL = "৳"

    INVOICE_PREFIX = os.environ.get("INVOICE_PREFIX", "INV")
    INVOICE_COMPANY = {
        "name": "i3 Technologies",
        "address": "House #29, Flat #C2, 29, Katasur, Mohammadpur, Dhaka-1207",
        "mobile": "+8801325-886868",
        "email": "support@i3technologies.com.bd",
        "website": "www.sohub.com.bd/clowee",
    }
    INVOICE_BANKS = [
        {
            "bank_name": "Midland Bank Limited",
            "branch": "Gulshan",
            "account_name": "i3 Technologies",
            "account_number": "0011-1050008790",
        },
    ]
    INVOICE_FOOTER_NOTES = [
        "Payment due upon receipt.",
        "Please send deposit slip/screenshot after payment.",
    ]
