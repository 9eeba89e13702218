import json
import uuid

import httpx
from mongomock_motor import AsyncMongoMockClient
import pytest

from edu_portal.core.config import Settings
from edu_portal.services.llm_client import (
    ProviderDescriptor,
    ProviderGateway,
    ProviderRegistry,
    WireFormat,
)

PROVIDER_WIRES = {
    "huggingface": WireFormat.CHAT_COMPLETIONS,
    "gemini": WireFormat.GEMINI,
    "lovable": WireFormat.CHAT_COMPLETIONS,
    "openai": WireFormat.CHAT_COMPLETIONS,
    "anthropic": WireFormat.ANTHROPIC,
}


def envelope(wire, text):
    """Provider response body carrying `text`"""
    if wire == WireFormat.GEMINI:
        return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    if wire == WireFormat.ANTHROPIC:
        return {"content": [{"type": "text", "text": text}]}
    return {"choices": [{"message": {"content": text}}]}


def make_registry(*names):
    """Registry with credentials for the given providers only"""
    return ProviderRegistry([
        ProviderDescriptor(
            name=name,
            wire_format=wire,
            url=f"https://{name}.test/v1/generate",
            model=f"{name}-model",
            api_key="test-key" if name in names else None,
            rank=rank,
        )
        for rank, (name, wire) in enumerate(PROVIDER_WIRES.items())
    ])


class FakeProviders:
    """Scripted provider endpoints behind an httpx.MockTransport"""

    def __init__(self):
        self.handlers = {}
        self.calls = []
        self.requests = []

    def reply(self, name, text):
        body = envelope(PROVIDER_WIRES[name], text)
        self.handlers[name] = lambda request: httpx.Response(200, json=body)

    def fail(self, name, status, body="error"):
        self.handlers[name] = lambda request: httpx.Response(status, text=body)

    def timeout(self, name):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)
        self.handlers[name] = handler

    def handle(self, request):
        name = request.url.host.split(".")[0]
        self.calls.append(name)
        self.requests.append(request)
        return self.handlers[name](request)

    def last_payload(self):
        return json.loads(self.requests[-1].content)

    def gateway(self, *names):
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handle))
        return ProviderGateway(make_registry(*names), http_client=client, timeout=5)


class Seeder:
    """Inserts portal records the way the admin screens store them"""

    def __init__(self, db):
        self.db = db

    async def subject(self, id="subj-physics", name="Physics", board="cbse", class_level=9):
        await self.db.subjects.insert_one(
            {"id": id, "name": name, "board": board, "class_level": class_level}
        )
        return id

    async def chapter(self, id, subject_id="subj-physics", name="Laws of Motion",
                      chapter_number=1, description=None, syllabus_content=None):
        await self.db.chapters.insert_one({
            "id": id,
            "subject_id": subject_id,
            "name": name,
            "chapter_number": chapter_number,
            "description": description,
            "syllabus_content": syllabus_content,
        })
        return id

    async def training_document(self, title, content, chapter_id=None, class_level=None,
                                board=None, is_active=True, training_status="completed",
                                document_type="notes", file_name=None):
        await self.db.ai_training_documents.insert_one({
            "id": f"doc-{title}",
            "title": title,
            "content": content,
            "chapter_id": chapter_id,
            "class_level": class_level,
            "board": board,
            "is_active": is_active,
            "training_status": training_status,
            "document_type": document_type,
            "file_name": file_name,
        })

    async def chapter_document(self, chapter_id, file_name):
        await self.db.chapter_documents.insert_one(
            {"id": f"file-{file_name}", "chapter_id": chapter_id, "file_name": file_name}
        )


@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"edu_portal_test_{uuid.uuid4().hex}"]


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def providers():
    return FakeProviders()


@pytest.fixture
def test_settings():
    return Settings(_env_file=None)


def mcq(text, options=("A", "B", "C", "D"), answer="A", **extra):
    question = {
        "question_text": text,
        "question_type": "mcq",
        "options": list(options),
        "correct_answer": answer,
        "explanation": f"Because {answer}",
        "points": 1,
    }
    question.update(extra)
    return question


@pytest.fixture
def question_payload():
    """Build a model reply wrapping the given questions in prose"""
    def build(*questions):
        return "Here is your test:\n```json\n" + json.dumps({"questions": list(questions)}) + "\n```"
    return build


@pytest.fixture
def mcq_factory():
    return mcq
