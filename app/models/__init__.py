from app.models.user import User
from app.models.subscription import Subscription
from app.models.fortune import Fortune

__all__ = [
    "User",
    "Subscription",
    "Fortune",
]
