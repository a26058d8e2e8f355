import os
from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./foodmarket.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:4200",
        "http://127.0.0.1:4200",
    ]

# Auth (JWT)
DEV_JWT_SECRET_KEY = "CHANGE_ME_DEV_SECRET"
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
if not JWT_SECRET_KEY and not IS_PROD:
    # só para dev/test; em produção o startup recusa segredo vazio
    JWT_SECRET_KEY = DEV_JWT_SECRET_KEY
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

# Horário de funcionamento / estimativa de entrega.
# Vazio = hora local do servidor.
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "").strip()
RUSH_HOUR_START = int(os.getenv("RUSH_HOUR_START", "17"))
RUSH_HOUR_END = int(os.getenv("RUSH_HOUR_END", "19"))
DELIVERY_FLAT_MINUTES = int(os.getenv("DELIVERY_FLAT_MINUTES", "10"))

MAX_ITEM_QUANTITY = int(os.getenv("MAX_ITEM_QUANTITY", "99"))
