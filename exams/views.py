import logging

from rest_framework import viewsets, filters

from assessments.permissions import IsSchoolStaff
from .models import Exam, Question
from .serializers import ExamSerializer, QuestionSerializer

logger = logging.getLogger(__name__)


class ExamViewSet(viewsets.ModelViewSet):
    serializer_class = ExamSerializer
    permission_classes = [IsSchoolStaff]

    # Enable search on title and category
    filter_backends = [filters.SearchFilter]
    search_fields = ['title', 'category']

    def get_queryset(self):
        queryset = Exam.objects.all().order_by('-created_at')
        user = self.request.user
        if not user.is_staff:
            queryset = queryset.filter(school_id=user.school_id)
        return queryset

    def perform_create(self, serializer):
        user = self.request.user
        serializer.save(school_id=user.school_id, tutor=user)


class QuestionViewSet(viewsets.ModelViewSet):
    """
    Question bank for the caller's school. Deletion is soft: the question
    drops out of future papers but attempts that already hold it keep it.
    """
    serializer_class = QuestionSerializer
    permission_classes = [IsSchoolStaff]

    filter_backends = [filters.SearchFilter]
    search_fields = ['text']

    def get_queryset(self):
        queryset = Question.objects.active().select_related('exam').order_by('exam', 'display_order', 'created_at')
        user = self.request.user
        if not user.is_staff:
            queryset = queryset.filter(exam__school_id=user.school_id)
        # Filter by Exam if provided ?exam=1
        exam_id = self.request.query_params.get('exam')
        if exam_id:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset

    def perform_destroy(self, instance):
        instance.is_deleted = True
        instance.save(update_fields=['is_deleted', 'updated_at'])
        logger.info(f"Question {instance.id} removed from exam {instance.exam_id}")
