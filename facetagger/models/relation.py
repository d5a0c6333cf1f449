from tortoise import fields
from .base import BaseModel


class Relation(BaseModel):
    id = fields.UUIDField(primary_key=True)
    image_id = fields.CharField(max_length=512, index=True)
    face = fields.ForeignKeyField(
        "models.Face",
        related_name="relations",
        on_delete=fields.CASCADE,
    )

    class Meta:
        table = "relations"
