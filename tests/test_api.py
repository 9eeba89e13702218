# tests/test_api.py
import httpx
import pytest

from edu_portal.api.deps import get_db, get_gateway
from edu_portal.main import app

NEWTON_NOTES = ("Newton's laws describe how forces change the motion of bodies. " * 12)[:600]
STUDENT = {"X-User-Id": "student-1"}


@pytest.fixture
def client_for(db, providers):
    """Build an API client whose gateway only has the given providers configured"""
    def build(*names):
        app.dependency_overrides[get_db] = lambda: db
        app.dependency_overrides[get_gateway] = lambda: providers.gateway(*names)
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    yield build
    app.dependency_overrides.clear()


async def seed_newton_chapter(seed):
    await seed.subject()
    await seed.chapter("ch-newton", name="Laws of Motion")
    await seed.training_document("Newton's Laws", NEWTON_NOTES, chapter_id="ch-newton")


async def test_root(client_for):
    async with client_for() as client:
        response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "operational"
    assert "X-Process-Time-Ms" in response.headers


async def test_health_reports_components(client_for):
    async with client_for() as client:
        response = await client.get("/health")
    body = response.json()
    # No MongoDB server in tests
    assert response.status_code == 503
    assert body["components"]["mongodb"]["status"] == "unhealthy"
    assert [p["provider"] for p in body["components"]["providers"]] == [
        "huggingface", "gemini", "lovable", "openai", "anthropic"
    ]


async def test_generate_save_and_play(client_for, seed, providers, question_payload, mcq_factory):
    await seed_newton_chapter(seed)
    providers.reply("huggingface", question_payload(*[mcq_factory(f"Q{i}?") for i in range(5)]))

    async with client_for("huggingface") as client:
        response = await client.post(
            "/api/generate-test",
            json={"chapterId": "ch-newton", "numQuestions": 5, "difficulty": "medium"},
            headers=STUDENT,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["saved"] is True
        assert body["generatedCount"] == 5
        assert len(body["questions"]) == 5

        listed = (await client.get("/api/chapters/ch-newton/quizzes")).json()
        assert [q["quizId"] for q in listed] == [body["quizId"]]

        played = (await client.get(f"/api/quizzes/{body['quizId']}")).json()
        assert [q["order_index"] for q in played["questions"]] == [0, 1, 2, 3, 4]
        assert played["quiz"]["time_limit_minutes"] == 10


async def test_generate_without_identity_is_not_saved(client_for, seed, providers, question_payload, mcq_factory):
    await seed_newton_chapter(seed)
    providers.reply("gemini", question_payload(mcq_factory("Q?")))

    async with client_for("gemini") as client:
        response = await client.post("/api/generate-test", json={"chapterId": "ch-newton", "numQuestions": 1})

    assert response.status_code == 200
    assert response.json()["saved"] is False
    assert response.json()["quizId"] is None


async def test_insufficient_content_error(client_for, seed, providers):
    await seed.subject()
    await seed.chapter("ch-empty")

    async with client_for("huggingface") as client:
        response = await client.post("/api/generate-test", json={"chapterId": "ch-empty"}, headers=STUDENT)

    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_CONTENT"
    assert providers.calls == []


async def test_rate_limited_error(client_for, seed, providers):
    await seed_newton_chapter(seed)
    providers.fail("huggingface", 429, "slow down")
    providers.fail("lovable", 429, "slow down")

    async with client_for("huggingface", "lovable") as client:
        response = await client.post("/api/generate-test", json={"chapterId": "ch-newton"})

    assert response.status_code == 429
    assert response.json() == {
        "error": "lovable rate limit exceeded",
        "code": "PROVIDER_RATE_LIMITED",
    }


async def test_no_provider_error(client_for, seed):
    await seed_newton_chapter(seed)
    async with client_for() as client:
        response = await client.post("/api/generate-test", json={"chapterId": "ch-newton"})
    assert response.status_code == 503
    assert response.json()["code"] == "NO_PROVIDER_CONFIGURED"


async def test_unknown_chapter_error(client_for):
    async with client_for("huggingface") as client:
        response = await client.post("/api/generate-test", json={"chapterId": "nope"})
    assert response.status_code == 404
    assert response.json()["code"] == "CHAPTER_NOT_FOUND"


async def test_request_validation(client_for):
    async with client_for("huggingface") as client:
        too_few = await client.post("/api/generate-test", json={"chapterId": "ch-1", "numQuestions": 0})
        bad_type = await client.post(
            "/api/generate-test", json={"chapterId": "ch-1", "questionTypes": ["essay"]}
        )
    assert too_few.status_code == 422
    assert bad_type.status_code == 422


async def test_incomplete_quiz_is_refused(client_for, db):
    await db.quizzes.insert_one({
        "id": "quiz-orphan",
        "chapter_id": "ch-1",
        "title": "Half written",
        "is_published": True,
    })
    async with client_for() as client:
        orphan = await client.get("/api/quizzes/quiz-orphan")
        missing = await client.get("/api/quizzes/quiz-missing")
        listed = await client.get("/api/chapters/ch-1/quizzes")
        purged = await client.delete("/api/chapters/ch-1/quizzes/incomplete")
        gone = await client.get("/api/quizzes/quiz-orphan")

    assert orphan.status_code == 409
    assert orphan.json()["code"] == "QUIZ_INCOMPLETE"
    assert missing.status_code == 404
    assert listed.json() == []
    assert purged.json() == {"chapterId": "ch-1", "purged": 1}
    assert gone.status_code == 404


async def test_content_status(client_for, seed):
    await seed.subject()
    await seed.chapter("ch-1", name="Motion", chapter_number=1)
    await seed.chapter("ch-2", name="Gravitation", chapter_number=2)
    await seed.chapter("ch-3", name="Sound", chapter_number=3, description="Waves and echoes")
    await seed.training_document("Motion notes", "Velocity and acceleration", chapter_id="ch-1")
    await seed.chapter_document("ch-1", "motion.pdf")

    async with client_for() as client:
        response = await client.get("/api/subjects/subj-physics/content-status")

    statuses = {s["chapterId"]: s for s in response.json()}
    assert statuses["ch-1"]["hasContent"] is True
    assert statuses["ch-1"]["contentCount"] == 2
    assert statuses["ch-2"]["hasContent"] is False
    assert statuses["ch-3"]["hasContent"] is True
    assert statuses["ch-3"]["contentCount"] == 0


async def test_ai_mentor(client_for, providers):
    providers.reply("gemini", "Great question!")

    async with client_for("gemini") as client:
        response = await client.post(
            "/api/ai-mentor",
            json={
                "messages": [{"role": "user", "content": "What is momentum?"}],
                "context": {"board": "cbse", "class_level": 9},
            },
        )

    assert response.status_code == 200
    assert response.json() == {"response": "Great question!"}


async def test_ai_mentor_requires_messages(client_for):
    async with client_for("gemini") as client:
        response = await client.post("/api/ai-mentor", json={"messages": []})
    assert response.status_code == 422


async def test_ai_mentor_needs_a_user_turn_last(client_for, providers):
    providers.reply("gemini", "unused")
    history = [
        {"role": "assistant", "content": "Hi! I'm your AI mentor."},
        {"role": "user", "content": "What is momentum?"},
        {"role": "assistant", "content": "Mass times velocity."},
    ]

    async with client_for("gemini") as client:
        trailing = await client.post("/api/ai-mentor", json={"messages": history})
        greeted = await client.post("/api/ai-mentor", json={"messages": history[:2]})

    assert trailing.status_code == 422
    assert greeted.status_code == 200
    assert providers.calls == ["gemini"]


async def test_progress_requires_identity(client_for):
    async with client_for() as client:
        response = await client.post("/api/progress", json={"chapterId": "ch-1", "progressPercentage": 10})
    assert response.status_code == 401


async def test_progress_and_attempt_flow(client_for):
    async with client_for() as client:
        await client.post(
            "/api/progress",
            json={"chapterId": "ch-1", "progressPercentage": 40, "timeSpentSeconds": 1800},
            headers=STUDENT,
        )
        progress = await client.post(
            "/api/progress",
            json={"chapterId": "ch-1", "progressPercentage": 20, "timeSpentSeconds": 1800},
            headers=STUDENT,
        )
        assert progress.json()["progress_percentage"] == 40
        assert progress.json()["time_spent_seconds"] == 3600

        first = await client.post(
            "/api/quiz-attempts",
            json={"quizId": "quiz-1", "score": 5, "maxScore": 10, "answers": {"0": "A"}},
            headers=STUDENT,
        )
        assert first.json()["completed_at"] is None

        open_attempts = (await client.get("/api/quiz-attempts/open", headers=STUDENT)).json()
        assert [a["id"] for a in open_attempts] == [first.json()["id"]]

        done = await client.post(
            "/api/quiz-attempts",
            json={"quizId": "quiz-1", "score": 8, "maxScore": 10, "completed": True},
            headers=STUDENT,
        )
        assert done.json()["id"] == first.json()["id"]
        assert done.json()["completed_at"] is not None

        stats = (await client.get("/api/progress/stats", headers=STUDENT)).json()

    assert stats == {
        "testsCompleted": 1,
        "studyHours": 1,
        "avgScore": 80,
        "chaptersCompleted": 0,
        "coursesActive": 0,
        "overallProgress": 0,
    }


async def test_attempt_score_cannot_exceed_max(client_for):
    async with client_for() as client:
        response = await client.post(
            "/api/quiz-attempts",
            json={"quizId": "quiz-1", "score": 11, "maxScore": 10},
            headers=STUDENT,
        )
    assert response.status_code == 422


async def test_subject_progress_endpoint(client_for, seed):
    await seed.subject()
    await seed.chapter("ch-1")
    await seed.chapter("ch-2", chapter_number=2)

    async with client_for() as client:
        await client.post("/api/progress", json={"chapterId": "ch-1", "progressPercentage": 100}, headers=STUDENT)
        subjects = await client.get("/api/progress/subjects", headers=STUDENT)
        anonymous = await client.get("/api/progress/subjects")
        stats = (await client.get("/api/progress/stats", headers=STUDENT)).json()

    assert subjects.json() == [{
        "subjectId": "subj-physics",
        "name": "Physics",
        "board": "cbse",
        "classLevel": 9,
        "totalChapters": 2,
        "completedChapters": 1,
        "progressPercentage": 50,
    }]
    assert anonymous.status_code == 401
    assert stats["coursesActive"] == 1
    assert stats["overallProgress"] == 50
