# tests/test_progress_service.py
from edu_portal.services.progress_service import ProgressTracker


async def test_progress_never_decreases(db):
    tracker = ProgressTracker(db)
    await tracker.update_progress("user-1", "ch-1", 40, time_spent_seconds=300)
    record = await tracker.update_progress("user-1", "ch-1", 20, time_spent_seconds=120)

    assert record.progress_percentage == 40
    assert record.time_spent_seconds == 420
    assert record.completed_at is None
    assert record.state == "in_progress"
    assert await db.student_progress.count_documents({}) == 1


async def test_completion_is_stamped_once(db):
    tracker = ProgressTracker(db)
    done = await tracker.update_progress("user-1", "ch-1", 100, time_spent_seconds=60)
    assert done.completed_at is not None

    again = await tracker.update_progress("user-1", "ch-1", 50, time_spent_seconds=60)
    assert again.progress_percentage == 100
    assert again.completed_at == done.completed_at
    assert again.state == "completed"


async def test_progress_is_per_user_and_chapter(db):
    tracker = ProgressTracker(db)
    await tracker.update_progress("user-1", "ch-1", 30)
    await tracker.update_progress("user-1", "ch-2", 60)
    await tracker.update_progress("user-2", "ch-1", 90)

    records = await tracker.list_progress("user-1")
    assert sorted(r.progress_percentage for r in records) == [30, 60]


async def test_save_attempt_resumes_then_completes(db):
    tracker = ProgressTracker(db)
    first = await tracker.save_attempt("user-1", "quiz-1", score=5, max_score=10, completed=False)
    assert first.is_open

    second = await tracker.save_attempt("user-1", "quiz-1", score=8, max_score=10, completed=True)

    assert second.id == first.id
    assert second.score == 8
    assert second.completed_at is not None
    assert await db.quiz_attempts.count_documents({}) == 1


async def test_completed_attempt_is_not_mutated(db):
    tracker = ProgressTracker(db)
    await tracker.save_attempt("user-1", "quiz-1", score=5, max_score=10)
    completed = await tracker.save_attempt("user-1", "quiz-1", score=8, max_score=10, completed=True)

    retry = await tracker.save_attempt("user-1", "quiz-1", score=2, max_score=10)

    assert retry.id != completed.id
    assert retry.is_open
    stored = await db.quiz_attempts.find_one({"id": completed.id})
    assert stored["score"] == 8
    assert await db.quiz_attempts.count_documents({}) == 2


async def test_list_open_attempts(db):
    tracker = ProgressTracker(db)
    await tracker.save_attempt("user-1", "quiz-1", score=1, max_score=5)
    await tracker.save_attempt("user-1", "quiz-2", score=5, max_score=5, completed=True)
    await tracker.save_attempt("user-2", "quiz-1", score=3, max_score=5)

    open_attempts = await tracker.list_open_attempts("user-1")
    assert [a.quiz_id for a in open_attempts] == ["quiz-1"]


async def test_stats(db):
    tracker = ProgressTracker(db)
    await tracker.save_attempt("user-1", "quiz-1", score=8, max_score=10, completed=True)
    await tracker.save_attempt("user-1", "quiz-2", score=5, max_score=10, completed=True)
    await tracker.save_attempt("user-1", "quiz-3", score=1, max_score=10)
    await tracker.update_progress("user-1", "ch-1", 100, time_spent_seconds=5400)
    await tracker.update_progress("user-1", "ch-2", 10, time_spent_seconds=1800)

    stats = await tracker.get_stats("user-1")

    assert stats.testsCompleted == 2
    assert stats.avgScore == 65
    assert stats.studyHours == 2
    assert stats.chaptersCompleted == 1


async def test_stats_for_new_student(db):
    stats = await ProgressTracker(db).get_stats("nobody")
    assert stats.testsCompleted == 0
    assert stats.avgScore == 0
    assert stats.studyHours == 0
    assert stats.coursesActive == 0
    assert stats.overallProgress == 0


async def test_subject_progress(db, seed):
    await seed.subject()
    await seed.subject(id="subj-maths", name="Mathematics")
    await seed.subject(id="subj-art", name="Art")
    await seed.chapter("ch-1")
    await seed.chapter("ch-2", chapter_number=2)
    await seed.chapter("ch-3", chapter_number=3)
    await seed.chapter("m-1", subject_id="subj-maths")

    tracker = ProgressTracker(db)
    await tracker.update_progress("user-1", "ch-1", 100)
    await tracker.update_progress("user-1", "ch-2", 60)
    await tracker.update_progress("user-1", "m-1", 100)
    await tracker.update_progress("user-2", "ch-3", 100)

    subjects = {s.subjectId: s for s in await tracker.get_subject_progress("user-1")}

    assert (subjects["subj-physics"].totalChapters, subjects["subj-physics"].completedChapters) == (3, 1)
    assert subjects["subj-physics"].progressPercentage == 33
    assert subjects["subj-maths"].progressPercentage == 100
    assert subjects["subj-art"].totalChapters == 0
    assert subjects["subj-art"].progressPercentage == 0

    stats = await tracker.get_stats("user-1")
    assert stats.coursesActive == 1
    assert stats.overallProgress == 44
