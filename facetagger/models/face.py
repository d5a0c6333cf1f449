from tortoise import fields
from .base import BaseModel


class Face(BaseModel):
    """A cropped face artifact; ``face_name`` stays NULL until an operator labels it."""

    face_id = fields.CharField(max_length=64, primary_key=True)
    face_name = fields.CharField(max_length=255, null=True, index=True)

    class Meta:
        table = "names"
