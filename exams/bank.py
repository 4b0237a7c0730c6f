"""Read side of the question bank used by the attempt engine."""
from .models import Question


def active_questions(exam):
    """Snapshots of every non-deleted question of ``exam`` in display order."""
    qs = Question.objects.active().filter(exam=exam).order_by('display_order', 'created_at', 'id')
    return [q.to_snapshot() for q in qs]
