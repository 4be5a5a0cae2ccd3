import os

host = os.environ.get("HOST", "0.0.0.0")
port = int(os.environ.get("PORT", "3003"))

db_url = os.environ.get("DB_URL", "sqlite://:memory:")
generate_schemas = os.environ.get("GENERATE_SCHEMAS", "true").lower() in ("1", "true", "yes")

ticket_service_url = os.environ.get("TICKET_SERVICE_URL", "http://ticket-service:3002")
ticket_service_timeout = float(os.environ.get("TICKET_SERVICE_TIMEOUT", "5.0"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
