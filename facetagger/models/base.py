from tortoise import fields
from tortoise.models import Model


class BaseModel(Model):
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        abstract = True
