"""Constants for the Reqres Operator."""

# API Group
API_GROUP = "reqres.in"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_USER = "User"
PLURAL_USERS = "users"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Controller name used in structured logs
CONTROLLER_NAME = "reqres-operator"

# Remote API
DEFAULT_REQRES_ROOT_URL = "https://reqres.in"
USERS_API = "/api/users"

# Expected success status codes per remote operation
HTTP_CREATE_SUCCESS = 201
HTTP_GET_SUCCESS = 200
HTTP_UPDATE_SUCCESS = 204
HTTP_DELETE_SUCCESS = 204

# Existence sentinel for status.remoteId
REMOTE_ID_UNSET = 0

# Condition Types
COND_AVAILABLE = "Available"
COND_UNAVAILABLE = "Unavailable"

# Condition Reasons
REASON_CREATED = "created"
REASON_SYNCED = "synced"
REASON_UPDATED = "updated"
REASON_INVALID_SPEC = "InvalidSpec"
REASON_CREATE_FAILED = "CreateFailed"
REASON_REMOTE_UNAVAILABLE = "RemoteUnavailable"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_USER_CREATED = "UserCreated"
EVENT_REASON_USER_UPDATED = "UserUpdated"
EVENT_REASON_USER_DELETED = "UserDeleted"
EVENT_REASON_USER_UNAVAILABLE = "UserUnavailable"
