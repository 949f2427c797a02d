# penwise/events.py
import logging
from flask_socketio import emit, join_room
from . import socketio

logger = logging.getLogger(__name__)


def room_for(user_id):
    return f"user:{user_id}"


def publish_credits(user_id, credits):
    """Sends the new balance to every socket the user has open."""
    socketio.emit('credits_updated', {'credits': credits}, to=room_for(user_id))


@socketio.on('connect')
def handle_connect(auth=None):
    from .credentials import resolve_token

    token = (auth or {}).get('token')
    user = resolve_token(token) if token else None
    if user is None:
        logger.info("Rejected socket connection without a live session")
        return False
    join_room(room_for(user.id))
    profile = user.profile
    emit('credits_updated', {'credits': profile.credits if profile else 0})
