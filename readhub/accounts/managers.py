from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, handle=None, **extra):
        if not email:
            raise ValueError("Email required")
        if not handle:
            raise ValueError("Handle required")

        user = self.model(email=self.normalize_email(email), handle=handle.lower(), **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, handle=None, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        return self.create_user(email, password, handle=handle, **extra)
