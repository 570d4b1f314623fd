from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import RegexValidator
from .managers import UserManager

handle_validator = RegexValidator(
    r"^[a-z0-9_](?:[a-z0-9_.]{0,28}[a-z0-9_])?$",
    "Handles are 1-30 characters: lowercase letters, digits, '_' and inner '.'",
)


class User(AbstractBaseUser, PermissionsMixin):
    email = models.EmailField(unique=True, db_index=True)
    # @mention target, stored lowercase
    handle = models.CharField(max_length=30, unique=True, validators=[handle_validator])
    display_name = models.CharField(max_length=120, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = UserManager()
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["handle"]

    def save(self, *args, **kwargs):
        if self.handle:
            self.handle = self.handle.lower()
        super().save(*args, **kwargs)

    @property
    def name(self):
        return self.display_name or self.handle

    def __str__(self):
        return f"@{self.handle}"


class UserBlock(models.Model):
    blocker = models.ForeignKey(User, on_delete=models.CASCADE, related_name="blocks_made")
    blocked = models.ForeignKey(User, on_delete=models.CASCADE, related_name="blocks_received")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("blocker", "blocked")
