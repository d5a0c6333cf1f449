# Import all models for Tortoise ORM registration
from .base import BaseModel
from .face import Face
from .relation import Relation

__all__ = [
    "BaseModel",
    "Face",
    "Relation",
]
