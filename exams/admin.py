from django.contrib import admin

from .models import Exam, Question


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('title', 'school', 'tutor', 'total_questions', 'pass_mark_percentage', 'is_published')
    list_filter = ('school', 'is_published')
    search_fields = ('title', 'category')


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'exam', 'question_type', 'marks', 'display_order', 'is_deleted')
    list_filter = ('question_type', 'is_deleted')
