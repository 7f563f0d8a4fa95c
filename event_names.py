CONNECTED = "connected"  # server -> client, carries the connection id

# Lifecycle
JOIN_ROOM = "join-room"
LEAVE_ROOM = "leave-room"

# Presence
USERS_IN_ROOM = "users-in-room"
USER_JOINED = "user-joined"
USER_LEFT = "user-left"
AUTH_ERROR = "auth-error"

# Addressed signaling - forwarded to the single peer named in `to`
OFFER = "offer"
ANSWER = "answer"
ICE_CANDIDATE = "ice-candidate"

# Room broadcasts - forwarded to every other member of the room
PEER_STATE = "peer-state"
CHAT_MESSAGE = "chat-message"
