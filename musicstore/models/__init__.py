from musicstore.models.user import User, UserRole
from musicstore.models.music import Music
from musicstore.models.review import Review
from musicstore.models.purchase import Purchase

__all__ = [
    "User", "UserRole",
    "Music",
    "Review",
    "Purchase",
]
