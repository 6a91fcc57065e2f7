from datetime import timedelta

# Environment keys
ENV_USER = "PROXMOX_USER"
ENV_PASSWORD = "PROXMOX_PASS"
ENV_REALM = "PROXMOX_REALM"
ENV_BASE_URL = "PROXMOX_BASEURL"
ENV_PORT = "PROXMOX_PORT"

# Credential fields, in the order they are checked
CONF_USER = "user"
CONF_PASSWORD = "password"
CONF_REALM = "realm"
CONF_BASE_URL = "base_url"
CONF_PORT = "port"

REQUIRED_FIELDS = (CONF_USER, CONF_PASSWORD, CONF_REALM, CONF_BASE_URL, CONF_PORT)

MISSING_FIELD_MESSAGES = {
    CONF_USER: "user should be set",
    CONF_PASSWORD: "password should be set",
    CONF_REALM: "user's realm should be set",
    CONF_BASE_URL: "base_url should be set",
    CONF_PORT: "port should be set",
}

# Options
CONF_VERIFY_SSL = "verify_ssl"
CONF_CONNECT_TIMEOUT = "connect_timeout"
CONF_REQUEST_TIMEOUT = "request_timeout"
CONF_TICKET_CACHE = "ticket_cache"

DEFAULT_VERIFY_SSL = False
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_TICKET_CACHE = False

# API
REST_API_PATH = "api2/json"
AUTHENTICATION_PATH = f"{REST_API_PATH}/access/ticket"

PVE_AUTH_COOKIE = "PVEAuthCookie"
CSRF_PREVENTION_TOKEN_HEADER = "CSRFPreventionToken"

# PVE tickets are valid for two hours, refresh a little before that
TICKET_LIFETIME = timedelta(hours=2) - timedelta(minutes=5)

HTTP_METHOD_ERROR = "http method should be GET, POST, PUT or DELETE"
