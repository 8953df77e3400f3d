import os


def _env_set(name, default):
    raw = os.environ.get(name)
    if not raw:
        return set(default)
    return {item.strip() for item in raw.split(",") if item.strip()}


# ETL Configuration
class Config:
    LOG_FILE = os.environ.get("LOG_FILE", "server.log")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    PORT = int(os.environ.get("PORT", 5000))
    CORS_ORIGINS = sorted(_env_set("CORS_ORIGINS", {"http://localhost:5173", "http://localhost:3000"}))

    MAX_UPLOAD_MB = float(os.environ.get("MAX_UPLOAD_MB", 20))
    ALLOWED_EXTENSIONS = _env_set("ALLOWED_EXTENSIONS", {"xlsx", "xlsm", "csv"})

    UNKNOWN_CLINIC = os.environ.get("UNKNOWN_CLINIC", "Unknown")
    UNKNOWN_PAYMENT_METHOD = "Unknown"
    DEPOSIT_WINDOW_MONTHS = int(os.environ.get("DEPOSIT_WINDOW_MONTHS", 2))
    CHECKSUM_TOLERANCE = float(os.environ.get("CHECKSUM_TOLERANCE", 0.01))

    DEPOSIT_PAYMENT_METHODS = _env_set("DEPOSIT_PAYMENT_METHODS", {"Treatment Deposit"})
    VOUCHER_PAYMENT_METHODS = _env_set(
        "VOUCHER_PAYMENT_METHODS",
        {"Clinic Voucher - Value", "Clinic Voucher - Treatment"},
    )
