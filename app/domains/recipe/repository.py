"""Recipe repository."""

from app.shared.repository import BaseRepository
from models import Recipe


class RecipeRepository(BaseRepository[Recipe]):
    model = Recipe

    # Relations every recipe read returns to callers
    DEFAULT_RELATIONS = ("user", "cuisine_type", "attachments")
