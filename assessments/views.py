from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status, views
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from cores.models import AuditLog
from exams.models import Exam, Question
from .access import start_or_resume
from .exceptions import AttemptNotFound
from .models import Attempt, ExamSchedule
from .notifications import send_exam_credentials
from .permissions import IsSchoolStaff, IsStudent
from .schedules import (
    available_students, cancel_schedule, create_schedule, list_schedules, reschedule, schedule_students,
)
from .scoring import grade_theory, submit_attempt
from .serializers import (
    AttemptResultSerializer, AttemptStartSerializer, AvailableStudentSerializer, ExamScheduleSerializer,
    GradeTheorySerializer, RescheduleSerializer, ScheduleCreateSerializer, StartAttemptSerializer,
    StudentScheduleSerializer, SubmitAttemptSerializer,
)
from .sweeper import sweep_expired


def _int_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: "Must be an integer"})


def staff_schedule_or_404(user, pk):
    queryset = ExamSchedule.objects.exclude(status=ExamSchedule.Status.CANCELLED).select_related('exam', 'student')
    if not user.is_staff:
        queryset = queryset.filter(exam__school_id=user.school_id)
    return get_object_or_404(queryset, pk=pk)


# --- STAFF VIEWS ---

class ScheduleListCreateView(views.APIView):
    """
    GET: schedules of the caller's school, optionally ?exam=<id> / ?student=<id>.
    POST: schedule one student (409 on duplicates) or a batch.
    """
    permission_classes = [IsSchoolStaff]

    def get(self, request):
        queryset = list_schedules(
            exam_id=_int_param(request, "exam"),
            student_id=_int_param(request, "student"),
        )
        if not request.user.is_staff:
            queryset = queryset.filter(exam__school_id=request.user.school_id)
        return Response(ExamScheduleSerializer(queryset, many=True).data)

    def post(self, request):
        serializer = ScheduleCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        window = dict(
            scheduled_date=data['scheduled_date'],
            start_time=data['start_time'],
            end_time=data['end_time'],
            created_by=request.user,
            max_attempts=data['max_attempts'],
        )

        if 'student_ids' not in data:
            schedule = create_schedule(data['exam'], data['students'][0], **window)
            AuditLog.record(request.user, 'CREATE', schedule, f"Scheduled {schedule.student} for {schedule.exam.title}")
            return Response(ExamScheduleSerializer(schedule).data, status=status.HTTP_201_CREATED)

        scheduled, failed = schedule_students(data['exam'], data['students'], **window)
        for schedule in scheduled:
            AuditLog.record(request.user, 'CREATE', schedule, f"Scheduled {schedule.student} for {schedule.exam.title}")
        return Response({
            "message": f"{len(scheduled)} students scheduled successfully",
            "scheduled": ExamScheduleSerializer(scheduled, many=True).data,
            "failed": failed,
        }, status=status.HTTP_201_CREATED)


class ScheduleDetailView(views.APIView):
    """PATCH reschedules, DELETE cancels."""
    permission_classes = [IsSchoolStaff]

    def get(self, request, pk):
        return Response(ExamScheduleSerializer(staff_schedule_or_404(request.user, pk)).data)

    def patch(self, request, pk):
        schedule = staff_schedule_or_404(request.user, pk)
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        previous = schedule.status
        schedule = reschedule(schedule, **serializer.validated_data)
        AuditLog.record(request.user, 'UPDATE', schedule, f"Rescheduled ({previous} -> {schedule.status})")
        return Response(ExamScheduleSerializer(schedule).data)

    def delete(self, request, pk):
        schedule = staff_schedule_or_404(request.user, pk)
        cancel_schedule(schedule)
        AuditLog.record(request.user, 'DELETE', schedule, "Cancelled schedule")
        return Response({"status": "Schedule cancelled successfully"})


class SendCredentialsView(views.APIView):
    permission_classes = [IsSchoolStaff]

    def post(self, request, pk):
        schedule = staff_schedule_or_404(request.user, pk)
        sent = send_exam_credentials(schedule)
        return Response({"sent": sent})


class AvailableStudentsView(generics.ListAPIView):
    """
    Students of the school who can still be scheduled for ?exam=<id>,
    optionally narrowed with ?category=<name>.
    """
    permission_classes = [IsSchoolStaff]
    serializer_class = AvailableStudentSerializer

    def get_queryset(self):
        exam_id = _int_param(self.request, "exam")
        if exam_id is None:
            raise ValidationError({"exam": "This query parameter is required"})

        exams = Exam.objects.all()
        if not self.request.user.is_staff:
            exams = exams.filter(school_id=self.request.user.school_id)
        exam = get_object_or_404(exams, pk=exam_id)
        return available_students(exam, self.request.query_params.get("category"))


class PendingGradingListView(views.APIView):
    """Submitted attempts with theory answers still waiting for marks."""
    permission_classes = [IsSchoolStaff]

    def get(self, request):
        # Soft-deleted theory questions still count, older papers may hold them
        theory_exams = Question.objects.filter(question_type=Question.QuestionType.THEORY).values('exam_id')
        queryset = Attempt.objects.filter(
            status__in=[Attempt.Status.COMPLETED, Attempt.Status.FAILED],
            exam_id__in=theory_exams,
        ).select_related('exam', 'student').order_by('-end_time')
        if not request.user.is_staff:
            queryset = queryset.filter(exam__school_id=request.user.school_id)

        pending = [a for a in queryset if a.has_ungraded_theory]
        return Response([
            {
                "attempt_id": a.id,
                "exam_title": a.exam.title,
                "student_name": a.student.get_full_name(),
                "submitted_at": a.end_time,
            }
            for a in pending
        ])


class GradeTheoryView(views.APIView):
    """Grader submits marks for the theory answers of one attempt."""
    permission_classes = [IsSchoolStaff]

    def post(self, request, pk):
        serializer = GradeTheorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = grade_theory(pk, request.user, serializer.validated_data['grades'])
        AuditLog.record(request.user, 'GRADE', pk, f"Theory graded: {result['score']}/{result['total_marks']}", target_model='Attempt')
        return Response({"message": "Graded successfully", **result})


# --- STUDENT VIEWS ---

class StudentScheduleListView(generics.ListAPIView):
    """Logged-in student's exams; runs the expiry sweep first."""
    permission_classes = [IsStudent]
    serializer_class = StudentScheduleSerializer

    def get_queryset(self):
        return list_schedules(student_id=self.request.user.id).select_related('exam__tutor')


class StartAttemptView(views.APIView):
    """
    Student enters (or re-enters) a scheduled exam with the access code.
    Returns the attempt WITH its questions, answer keys stripped.
    """
    permission_classes = [IsStudent]

    def post(self, request, pk):
        serializer = StartAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        attempt = start_or_resume(
            pk,
            request.user,
            serializer.validated_data['access_code'],
            timezone_name=serializer.validated_data.get('timezone') or None,
        )
        return Response({"message": "Access granted", **AttemptStartSerializer(attempt).data})


class SubmitAttemptView(views.APIView):
    permission_classes = [IsStudent]

    def post(self, request, pk):
        serializer = SubmitAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payload = submit_attempt(
            pk,
            request.user,
            data['answers'],
            time_spent_minutes=data.get('time_spent_minutes'),
            auto_submitted=data['auto_submitted'],
        )
        return Response({"message": "Exam submitted successfully", **payload})


class AttemptDetailView(generics.RetrieveAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = AttemptResultSerializer

    def get_object(self):
        return get_object_or_404(
            Attempt.objects.select_related('exam', 'schedule'),
            pk=self.kwargs['pk'], student=self.request.user,
        )


class MyResultView(generics.RetrieveAPIView):
    """Student's result for one of their schedules."""
    permission_classes = [IsStudent]
    serializer_class = AttemptResultSerializer

    def get_object(self):
        attempt = Attempt.objects.select_related('exam', 'schedule').filter(
            schedule_id=self.kwargs['schedule_id'], student=self.request.user,
        ).first()
        if attempt is None:
            raise AttemptNotFound("Result not found")
        return attempt


class HistoryPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100


class MyHistoryView(generics.ListAPIView):
    """Finished attempts of the logged-in student, newest first. Missed exams show up as expired."""
    permission_classes = [IsStudent]
    serializer_class = AttemptResultSerializer
    pagination_class = HistoryPagination

    def get_queryset(self):
        sweep_expired(student_id=self.request.user.id)
        return Attempt.objects.filter(
            student=self.request.user,
        ).exclude(
            status=Attempt.Status.IN_PROGRESS,
        ).select_related('exam', 'schedule').order_by('-end_time', '-id')
