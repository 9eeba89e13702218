# tests/test_mentor_service.py
from edu_portal.db.content_store import ContentStore
from edu_portal.models.chat import ChatContext
from edu_portal.models.generation import ChatMessage
from edu_portal.services.context_assembler import ContextAssembler
from edu_portal.services.mentor_service import MentorService


def build_service(db, gateway, settings):
    return MentorService(ContextAssembler(ContentStore(db)), gateway, settings)


async def test_reply_is_grounded_on_matching_material(db, seed, providers, test_settings):
    await seed.subject()
    await seed.chapter("ch-1", syllabus_content="Newton's three laws of motion and their applications.")
    await seed.training_document("Force basics", "Force is a push or a pull.", class_level=9)
    await seed.training_document("Organic chemistry", "Alkanes are saturated.", class_level=11)
    providers.reply("openai", "A force is a push or pull acting on a body.")

    reply = await build_service(db, providers.gateway("openai"), test_settings).reply(
        [ChatMessage(role="user", content="What is force?")],
        ChatContext(board="cbse", class_level=9)
    )

    assert reply == "A force is a push or pull acting on a body."
    system_prompt = providers.last_payload()["messages"][0]["content"]
    assert "--- KNOWLEDGE BASE ---" in system_prompt
    assert "Force is a push or a pull." in system_prompt
    assert "Alkanes" not in system_prompt
    assert "--- SYLLABUS CONTENT ---" in system_prompt
    assert "Newton's three laws" in system_prompt


async def test_reply_without_material(db, providers, test_settings):
    providers.reply("anthropic", "Happy to help!")

    reply = await build_service(db, providers.gateway("anthropic"), test_settings).reply(
        [ChatMessage(role="user", content="Hi")]
    )

    assert reply == "Happy to help!"
    assert "KNOWLEDGE BASE" not in providers.last_payload()["system"]


async def test_conversation_history_is_forwarded(db, providers, test_settings):
    providers.reply("huggingface", "Sure, here is another example.")
    history = [
        ChatMessage(role="user", content="Explain inertia"),
        ChatMessage(role="assistant", content="Inertia is resistance to change."),
        ChatMessage(role="user", content="Another example?"),
    ]

    await build_service(db, providers.gateway("huggingface"), test_settings).reply(history)

    roles = [m["role"] for m in providers.last_payload()["messages"]]
    assert roles == ["system", "user", "assistant", "user"]
