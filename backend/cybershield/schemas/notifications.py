from typing import Any, Dict, Literal

from pydantic import BaseModel, Field


NotificationType = Literal["new_alert", "honeypot_attack", "stats_update"]


class Notification(BaseModel):
    """
    Envelope pushed to every live subscriber:

        {"type": "new_alert",       "payload": {"alert": ..., "threat": ...}}
        {"type": "honeypot_attack", "payload": {"attack": ..., "alert": ... | null}}
        {"type": "stats_update",    "payload": {"stats": ...}}
    """
    type: NotificationType
    payload: Dict[str, Any] = Field(default_factory=dict)
