import pytest

from src.core.schemas import StatementStatus
from src.db.seed import DEMO_USER_ID
from src.services.statements import StatementParseError, StatementProcessor, extract_json

FENCED = """Here you go:
```json
{"brokerageCompany": "Fidelity", "statementDate": "2025-02-28", "qualitativeSummary": "Quiet month."}
```"""


def test_extract_json_from_fence():
    assert extract_json(FENCED)["brokerageCompany"] == "Fidelity"


def test_extract_json_bare():
    assert extract_json('  {"brokerageCompany": "Vanguard"} ') == {"brokerageCompany": "Vanguard"}


@pytest.mark.parametrize("text", ["", "   ", "not json at all", "[1, 2]"])
def test_extract_json_rejects(text):
    with pytest.raises(StatementParseError):
        extract_json(text)


@pytest.fixture()
def processor(seeded_repo, fake_llm):
    p = StatementProcessor(seeded_repo, llm=fake_llm, max_workers=1)
    yield p
    p.shutdown()


def test_submit_starts_processing(processor):
    rec = processor.submit(DEMO_USER_ID, "fidelity.pdf", "statement text")
    assert rec.status == StatementStatus.PROCESSING
    assert rec.file_name == "fidelity.pdf"


def test_successful_parse_completes(processor, fake_llm):
    fake_llm.reply = FENCED
    rec = processor.submit(DEMO_USER_ID, "fidelity.pdf", "Fidelity Investments ... ending value 10,000")
    processor.wait(timeout=5)

    done = processor.status(rec.id, user_id=DEMO_USER_ID)
    assert done.status == StatementStatus.COMPLETED
    assert done.brokerage_company == "Fidelity"
    assert done.parsed_data["qualitativeSummary"] == "Quiet month."
    assert done.error is None
    assert "fidelity.pdf" in fake_llm.prompts[0]
    assert "ending value 10,000" in fake_llm.prompts[0]


def test_unparseable_reply_fails(processor, fake_llm):
    fake_llm.reply = "Sorry, I can't read that."
    rec = processor.submit(DEMO_USER_ID, "blurry.pdf", "???")
    processor.wait(timeout=5)

    failed = processor.status(rec.id)
    assert failed.status == StatementStatus.FAILED
    assert "AI analysis failed" in failed.error
    assert failed.parsed_data is None


def test_llm_error_fails_without_retry(processor, fake_llm, monkeypatch):
    calls = []

    def boom(prompt):
        calls.append(prompt)
        raise RuntimeError("model overloaded")

    monkeypatch.setattr(fake_llm, "generate", boom)
    rec = processor.submit(DEMO_USER_ID, "a.pdf", "text")
    processor.wait(timeout=5)

    failed = processor.status(rec.id)
    assert failed.status == StatementStatus.FAILED
    assert failed.error == "model overloaded"
    assert len(calls) == 1


def test_status_scoped_to_owner(processor):
    rec = processor.submit(DEMO_USER_ID, "a.pdf", "text")
    processor.wait(timeout=5)
    assert processor.status(rec.id, user_id="someone-else") is None
