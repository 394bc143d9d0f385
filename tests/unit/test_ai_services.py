from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from billia.db import schemas
from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import sales as sales_repo
from billia.errors import LLMUnavailableError, ValidationError
from billia.services import llm, memo_parser, sales_categorization


def test_llm_client_requires_api_key():
    with pytest.raises(LLMUnavailableError):
        llm.get_llm_client(llm.LLMConfig(api_key=None))


def test_llm_client_respects_feature_flag(monkeypatch):
    from billia.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("LLM_FEATURES_ENABLED", "false")
    refresh_feature_flag_cache()
    with pytest.raises(LLMUnavailableError):
        llm.get_llm_client(llm.LLMConfig(api_key="key"))


def test_llm_config_reads_environment(monkeypatch):
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "fallback-key")
    monkeypatch.setenv("LLM_TEMPERATURE", "not-a-number")
    config = llm.LLMConfig.from_environment()
    assert config.api_key == "fallback-key"
    assert config.model_name == llm.DEFAULT_MODEL_NAME
    assert config.temperature == 0.1


def test_strip_code_fences():
    assert llm.strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert llm.strip_code_fences('{"a": 1}') == '{"a": 1}'


def _fake_client(text):
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text=text)
    return client


def test_generate_json_parses_fenced_reply():
    with patch.object(llm, "get_llm_client", return_value=_fake_client('```json\n{"items": []}\n```')):
        assert llm.generate_json("prompt", llm.LLMConfig(api_key="k")) == {"items": []}


@pytest.mark.parametrize("reply", ["not json", "[1, 2]"])
def test_generate_json_rejects_unusable_replies(reply):
    with patch.object(llm, "get_llm_client", return_value=_fake_client(reply)):
        with pytest.raises(LLMUnavailableError):
            llm.generate_json("prompt", llm.LLMConfig(api_key="k"))


def test_generate_json_wraps_transport_errors():
    client = MagicMock()
    client.models.generate_content.side_effect = RuntimeError("quota")
    with patch.object(llm, "get_llm_client", return_value=client):
        with pytest.raises(LLMUnavailableError):
            llm.generate_json("prompt", llm.LLMConfig(api_key="k"))


def test_parse_memo_builds_invoice_draft():
    reply = {
        "clientName": " ABC商事 ",
        "clientEmail": "billing@abc.example",
        "issueDate": "2024-05-01",
        "dueDate": "2024-06-30",
        "items": [
            {"name": "システム開発", "quantity": 2, "unitPrice": "１００，０００円"},
            {"name": "保守", "quantity": "abc", "unitPrice": 5000},
        ],
        "note": "至急",
    }
    with patch("billia.services.llm.generate_json", return_value=reply) as generate:
        draft = memo_parser.parse_memo("ABC商事 システム開発 10万円x2", today=date(2024, 5, 15))

    assert "dueDate" in generate.call_args.args[0]
    assert draft["client_name"] == "ABC商事"
    assert draft["client_email"] == "billing@abc.example"
    assert draft["client_address"] is None
    assert draft["issue_date"] == date(2024, 5, 1)
    assert draft["due_date"] == date(2024, 6, 30)
    assert draft["valid_until"] is None
    assert draft["items"] == [
        {"name": "システム開発", "quantity": 2.0, "unit_price": 100000},
        {"name": "保守", "quantity": 1, "unit_price": 5000},
    ]
    assert draft["note"] == "至急"


def test_parse_memo_quote_defaults_dates():
    reply = {"clientName": "山田様", "items": [{"name": "撮影", "quantity": 1, "unitPrice": 30000}]}
    with patch("billia.services.llm.generate_json", return_value=reply) as generate:
        draft = memo_parser.parse_memo("山田様 撮影 3万", kind="quote", today=date(2024, 5, 15))

    assert "validUntil" in generate.call_args.args[0]
    assert draft["issue_date"] == date(2024, 5, 15)
    assert draft["valid_until"] == date(2024, 6, 30)
    assert draft["due_date"] is None


@pytest.mark.parametrize(
    "reply",
    [{"items": [{"name": "x", "unitPrice": 1}]}, {"clientName": "A", "items": []}, {"clientName": "A"}],
)
def test_parse_memo_requires_client_and_items(reply):
    with patch("billia.services.llm.generate_json", return_value=reply):
        with pytest.raises(ValidationError):
            memo_parser.parse_memo("memo")


def test_parse_memo_rejects_blank_text_without_calling_llm():
    with patch("billia.services.llm.generate_json") as generate:
        with pytest.raises(ValidationError):
            memo_parser.parse_memo("   ")
    generate.assert_not_called()


def _invoice(db_session, user, client):
    return invoice_repo.create_invoice(
        db_session,
        user_id=user.id,
        invoice=schemas.InvoiceCreate(
            client_id=client.id,
            issue_date=date(2024, 5, 10),
            due_date=date(2024, 6, 30),
            items=[
                schemas.LineItemInput(name="Web制作", quantity=1, unit_price=300000),
                schemas.LineItemInput(name="サーバー保守", quantity=3, unit_price=10000),
                schemas.LineItemInput(name="ドメイン", quantity=1, unit_price=2000),
            ],
        ),
    )


def test_categorize_invoice_adds_to_month_entries(db_session, user, client_factory):
    invoice = _invoice(db_session, user, client_factory(user))
    web = sales_repo.create_category(db_session, user_id=user.id, name="制作")
    ops = sales_repo.create_category(db_session, user_id=user.id, name="保守")
    sales_repo.add_to_entry(db_session, user_id=user.id, category_id=ops.id, month="2024-05", amount=5000)
    db_session.commit()

    reply = {
        "assignments": [
            {"itemIndex": 0, "categoryName": "制作"},
            {"itemIndex": 1, "categoryName": "保守"},
            {"itemIndex": 2, "categoryName": "保守"},
            {"itemIndex": 9, "categoryName": "制作"},
            {"itemIndex": 1, "categoryName": "広告"},
        ]
    }
    with patch("billia.services.llm.generate_json", return_value=reply):
        result = sales_categorization.categorize_invoice(db_session, user_id=user.id, invoice_id=invoice.id)

    assert result["month"] == "2024-05"
    assert result["totals"] == {"制作": 300000, "保守": 32000}
    assert len(result["assignments"]) == 3
    amounts = {e.category_id: e.amount for e in sales_repo.list_entries(db_session, user_id=user.id, month="2024-05")}
    assert amounts == {web.id: 300000, ops.id: 37000}


def test_categorize_invoice_needs_categories(db_session, user, client_factory):
    invoice = _invoice(db_session, user, client_factory(user))
    with patch("billia.services.llm.generate_json") as generate:
        with pytest.raises(ValidationError):
            sales_categorization.categorize_invoice(db_session, user_id=user.id, invoice_id=invoice.id)
    generate.assert_not_called()
