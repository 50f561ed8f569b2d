# coursehub/services/chat/events.py
"""Names of frames exchanged over the real-time channel."""

# client -> server
JOIN_COURSE = "joinCourse"
LEAVE_COURSE = "leaveCourse"

# server -> client
CONNECTED = "connected"
JOINED_COURSE = "joinedCourse"
LEFT_COURSE = "leftCourse"
NEW_MESSAGE = "newMessage"
ERROR = "error"

# both directions
VIDEO_PROGRESS_UPDATE = "video:progress:update"
