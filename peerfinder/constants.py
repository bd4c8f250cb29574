"""Global constants for the peerfinder application."""

# Firestore collections
USERS_COLLECTION = "users"
GROUPS_COLLECTION = "groups"
JOIN_REQUESTS_COLLECTION = "join_requests"
CONVERSATIONS_COLLECTION = "conversations"
MESSAGES_COLLECTION = "messages"
AI_GROUP_REQUESTS_COLLECTION = "ai_group_requests"

# Firestore caps 'in' / 'array_contains_any' filters at 30 values
FIRESTORE_IN_QUERY_LIMIT = 30

# Study group limits
MIN_GROUP_MEMBERS = 2
MAX_GROUP_MEMBERS = 20
MAX_GROUP_NAME_LENGTH = 50

# Join request statuses
REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"
REQUEST_REJECTED = "rejected"

# Chat system message kinds
EVENT_JOIN = "join"
EVENT_LEAVE = "leave"
EVENT_OWNERSHIP_TRANSFER = "ownership_transfer"
EVENT_KICK = "kick"
SYSTEM_SENDER_ID = "system"

# User profile
MIN_PASSWORD_LENGTH = 8
PROFILE_FIELDS = ("name", "availability", "year", "bio", "imageUrl")

# AI-assisted groups
AI_SUGGESTION_MAX_ATTEMPTS = 2
AI_CANDIDATE_POOL_LIMIT = 50
DEFAULT_AI_GROUP_COOLDOWN_HOURS = 24.0
DEFAULT_AI_SUGGESTION_MODEL = "claude-sonnet-4-20250514"

# Peer search
DEFAULT_PEER_SEARCH_LIMIT = 50
