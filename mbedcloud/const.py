VERSION = "0.3.0"

DEFAULT_HOST = "https://api.us-east-1.mbedcloud.com"

# Environment variables consulted by config.load_config()
ENV_API_KEY = "MBED_CLOUD_API_KEY"
ENV_HOST = "MBED_CLOUD_HOST"

# Timeouts and intervals (seconds)
REQUEST_TIMEOUT = 20         # ordinary REST calls
PULL_TIMEOUT = 60            # long-poll fetch; the server may hold it open ~30 s
PULL_INTERVAL = 0.5          # delay between pull iterations, measured from response receipt

# REST paths, relative to the configured host
PULL_PATH = "/v2/notification/pull"
CALLBACK_PATH = "/v2/notification/callback"
ENDPOINTS_PATH = "/v2/endpoints"
SUBSCRIPTIONS_PATH = "/v2/subscriptions"

# Key under which resource operations return their async operation id
ASYNC_KEY = "async-response-id"

# Notification batch wire fields, in dispatch order
BATCH_NOTIFICATIONS = "notifications"
BATCH_REGISTRATIONS = "registrations"
BATCH_REREGISTRATIONS = "reg-updates"
BATCH_DEREGISTRATIONS = "de-registrations"
BATCH_EXPIRATIONS = "registrations-expired"
BATCH_ASYNC_RESPONSES = "async-responses"

# Events emitted by ConnectApi
EVENT_NOTIFICATION = "notification"
EVENT_REGISTRATION = "registration"
EVENT_REREGISTRATION = "reregistration"
EVENT_DEREGISTRATION = "deregistration"
EVENT_EXPIRED = "expired"
