from django.contrib import admin

from .models import Attempt, ExamSchedule


@admin.register(ExamSchedule)
class ExamScheduleAdmin(admin.ModelAdmin):
    list_display = ('student', 'exam', 'scheduled_date', 'start_time', 'end_time', 'status')
    list_filter = ('status', 'scheduled_date')


admin.site.register(Attempt)
