from django.urls import path
from .views import (
    AttemptDetailView, AvailableStudentsView, GradeTheoryView, MyHistoryView, MyResultView, PendingGradingListView,
    ScheduleDetailView, ScheduleListCreateView, SendCredentialsView, StartAttemptView, StudentScheduleListView,
    SubmitAttemptView,
)

urlpatterns = [
    # --- Scheduling (School / Tutor) ---
    path('schedules/', ScheduleListCreateView.as_view(), name='schedules'),
    path('schedules/available-students/', AvailableStudentsView.as_view(), name='available-students'),
    path('schedules/<int:pk>/', ScheduleDetailView.as_view(), name='schedule-detail'),
    path('schedules/<int:pk>/send-credentials/', SendCredentialsView.as_view(), name='schedule-credentials'),

    # --- Student Exam Flow ---
    path('schedules/my-exams/', StudentScheduleListView.as_view(), name='my-exams'),
    path('schedules/<int:pk>/start/', StartAttemptView.as_view(), name='start-attempt'),
    path('schedules/<int:pk>/submit/', SubmitAttemptView.as_view(), name='submit-attempt'),
    path('attempts/<int:pk>/', AttemptDetailView.as_view(), name='attempt-detail'),

    # --- Student Results ---
    path('results/my-result/<int:schedule_id>/', MyResultView.as_view(), name='my-result'),
    path('results/my-history/', MyHistoryView.as_view(), name='my-history'),

    # --- Grading Module ---
    path('grading/pending/', PendingGradingListView.as_view(), name='grading-pending'),
    path('attempts/<int:pk>/grade-theory/', GradeTheoryView.as_view(), name='grade-theory'),
]
