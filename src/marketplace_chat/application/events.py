"""Socket event names shared by server and client; stable for interop."""
from __future__ import annotations

# client -> server
SEND_MESSAGE = "send-message"
MARK_READ = "mark-read"
PING = "ping"

# relayed unchanged to one party's room
NEW_BOOKING = "new-booking"
BOOKING_UPDATED = "booking-updated"

# server -> client
MESSAGE = "message"
MESSAGE_SENT = "message-sent"
MESSAGE_ERROR = "message-error"
CONVERSATION_UPDATED = "conversation-updated"
CHAT_EVENT = "chat-event"
PONG = "pong"
ERROR = "error"
