from rest_framework import generics

from assessments.permissions import IsSchoolStaff
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogListView(generics.ListAPIView):
    """Staff actions within the caller's school, newest first. ?action=GRADE etc."""
    serializer_class = AuditLogSerializer
    permission_classes = [IsSchoolStaff]

    def get_queryset(self):
        queryset = AuditLog.objects.select_related('actor').order_by('-timestamp')
        user = self.request.user
        if not user.is_staff:
            queryset = queryset.filter(actor__school_id=user.school_id)

        action = self.request.query_params.get('action')
        if action:
            queryset = queryset.filter(action=action.upper())
        return queryset
