from tortoise import fields
from .base import BaseModel

class Image(BaseModel):
    name = fields.CharField(max_length=512)
    size = fields.IntField()  # bytes
    width = fields.IntField()
    height = fields.IntField()
    url = fields.CharField(max_length=512, unique=True)
    placeholder = fields.TextField()
    user = fields.ForeignKeyField("models.User", related_name="images", null=True, on_delete=fields.CASCADE)
    admin = fields.ForeignKeyField("models.AdminUser", related_name="images", null=True, on_delete=fields.CASCADE)

    class Meta:
        table = "images"

    async def save(self, *args, **kwargs) -> None:
        # Owned by exactly one account kind
        if (self.user_id is None) == (self.admin_id is None):
            raise ValueError("image must belong to exactly one of user or admin")
        await super().save(*args, **kwargs)
