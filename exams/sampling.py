"""
Stratified question sampling for exam papers.

Question type doubles as a difficulty proxy: ``fill_blank`` is the hard
stratum, ``multiple_choice`` the medium one and ``true_false`` the easy one.
Theory questions never belong to a stratum; they only reach a paper when the
whole pool is taken or through the final top-up.

Everything here works on question snapshots (plain dicts, see
``Question.to_snapshot``) and never touches the database. Randomness comes from
the ``rng`` argument so callers and tests can seed it.
"""
import copy
import random

HARD = 'fill_blank'
MEDIUM = 'multiple_choice'
EASY = 'true_false'
STRATA = (HARD, MEDIUM, EASY)


def _order_key(question):
    return (question.get('display_order') or 0, question.get('created_at') or '')


def _arrange(questions, shuffle, rng):
    questions = list(questions)
    if shuffle:
        rng.shuffle(questions)
        return questions
    # sorted() is stable, so ties keep their pool order
    return sorted(questions, key=_order_key)


def stratum_targets(limit):
    """Initial per-stratum quotas for a paper of ``limit`` questions."""
    if limit % 3 == 0:
        share = limit // 3
        return {HARD: share, MEDIUM: share, EASY: share}
    hard = limit * 3 // 10
    medium = limit * 3 // 10
    return {HARD: hard, MEDIUM: medium, EASY: limit - hard - medium}


def apply_shortfall(targets, available):
    """
    Clamp quotas to what each stratum holds and push the deficit down the
    cascade: hard splits between medium (floor) and easy (ceil), medium goes
    to easy, and whatever easy cannot cover is simply dropped.
    """
    targets = dict(targets)

    deficit = targets[HARD] - available[HARD]
    if deficit > 0:
        targets[HARD] = available[HARD]
        targets[MEDIUM] += deficit // 2
        targets[EASY] += deficit - deficit // 2

    deficit = targets[MEDIUM] - available[MEDIUM]
    if deficit > 0:
        targets[MEDIUM] = available[MEDIUM]
        targets[EASY] += deficit

    if targets[EASY] > available[EASY]:
        targets[EASY] = available[EASY]
    return targets


def sample_questions(pool, limit, shuffle_questions=False, shuffle_options=False, rng=None):
    """
    Pick an ordered paper of at most ``limit`` questions from ``pool``.

    Returns deep copies, so the result can be stored as an attempt snapshot
    and later edits to the pool never leak into it.
    """
    rng = rng or random.Random()
    pool = [copy.deepcopy(q) for q in pool]

    if limit <= 0 or limit >= len(pool):
        selection = _arrange(pool, shuffle_questions, rng)
    else:
        strata = {kind: [q for q in pool if q.get('question_type') == kind] for kind in STRATA}
        targets = apply_shortfall(
            stratum_targets(limit),
            {kind: len(items) for kind, items in strata.items()},
        )

        selection = []
        for kind in STRATA:
            selection.extend(_arrange(strata[kind], shuffle_questions, rng)[:targets[kind]])

        # Several strata ran dry: fill from anything not yet picked
        if len(selection) < limit:
            picked = {id(q) for q in selection}
            leftovers = [q for q in pool if id(q) not in picked]
            selection.extend(_arrange(leftovers, shuffle_questions, rng)[:limit - len(selection)])

        selection = _arrange(selection, shuffle_questions, rng)

    if shuffle_options:
        for question in selection:
            if question.get('question_type') == MEDIUM and question.get('options'):
                rng.shuffle(question['options'])

    return selection
