from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication & Profile ---
    path('api/', include('users.urls')),

    # --- Exams & Question Bank ---
    path('api/', include('exams.urls')),

    # --- Scheduling, Exam Taking & Grading ---
    path('api/', include('assessments.urls')),

    # --- Audit Trail ---
    path('api/', include('cores.urls')),
]
