# cbt_platform/users/models.py
from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class School(models.Model):
    name = models.CharField(max_length=255)
    # IANA name, used when a student has no timezone of their own
    timezone = models.CharField(max_length=50, default=settings.EXAM_DEFAULT_TIMEZONE)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class User(AbstractUser):
    class Role(models.TextChoices):
        SCHOOL = "school", "School Admin"
        TUTOR = "tutor", "Tutor"
        STUDENT = "student", "Student"

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT)
    school = models.ForeignKey(School, on_delete=models.SET_NULL, null=True, blank=True, related_name='members')
    registration_number = models.CharField(max_length=100, blank=True)
    # Class or group the student belongs to, e.g. "SS2"
    category = models.CharField(max_length=100, blank=True)
    timezone = models.CharField(max_length=50, blank=True)

    @property
    def is_school_staff(self):
        return self.is_staff or self.role in (self.Role.SCHOOL, self.Role.TUTOR)

    @property
    def timezone_name(self):
        """Student's own timezone, falling back to the school's, then the platform default."""
        if self.timezone:
            return self.timezone
        if self.school_id and self.school.timezone:
            return self.school.timezone
        return settings.EXAM_DEFAULT_TIMEZONE

    def __str__(self):
        return self.get_full_name() or self.username
