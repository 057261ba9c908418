from app.models.base import Base
from app.models.models import Generation, Project, Subscription, User

__all__ = ["Base", "Generation", "Project", "Subscription", "User"]
