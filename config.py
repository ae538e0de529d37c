import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./membership.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    API_RELOAD = data.get("API_RELOAD", False)
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    # Payment gateway: "demo" issues local checkout URLs, "hitpay" calls HitPay
    PAYMENT_GATEWAY_BACKEND = data.get("PAYMENT_GATEWAY_BACKEND", "demo")
    PAYMENT_CURRENCY = data.get("PAYMENT_CURRENCY", "SGD")
    PAYMENT_GATEWAY_TIMEOUT = float(data.get("PAYMENT_GATEWAY_TIMEOUT", 10))
    PAYMENT_GATEWAY_MAX_ATTEMPTS = int(data.get("PAYMENT_GATEWAY_MAX_ATTEMPTS", 3))
    HITPAY_BASE_URL = data.get("HITPAY_BASE_URL", "https://api.sandbox.hit-pay.com/v1")
    HITPAY_API_KEY = data.get("HITPAY_API_KEY", "")
    HITPAY_SALT = data.get("HITPAY_SALT", "dev-webhook-salt")
    FRONTEND_URL = data.get("FRONTEND_URL", "http://localhost:3000")
    WEBHOOK_URL = data.get("WEBHOOK_URL", "")
    # Stale pending memberships are expired by the admin sweep after this long
    PENDING_EXPIRY_HOURS = int(data.get("PENDING_EXPIRY_HOURS", 72))
    CACHE_TTL_SECONDS = int(data.get("CACHE_TTL_SECONDS", 60))
    CACHE_MAXSIZE = int(data.get("CACHE_MAXSIZE", 1024))
