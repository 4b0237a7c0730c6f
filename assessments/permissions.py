from rest_framework import permissions

class IsSchoolStaff(permissions.BasePermission):
    """
    Allows access to school admins and tutors (and platform staff).
    Strictly blocks Students.
    """
    def has_permission(self, request, view):
        # 1. User must be logged in
        if not request.user or not request.user.is_authenticated:
            return False

        # 2. Check Role
        return request.user.is_school_staff


class IsStudent(permissions.BasePermission):
    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated and
            getattr(request.user, 'role', '') == 'student'
        )
