"""
Unit tests for the knowledge store: rule priority, placeholders, add/persist.
"""

import json
import threading
from pathlib import Path

import pytest

from app.services.knowledge_base import TOPIC_RULES, KnowledgeStore

KNOWLEDGE = {
    "company": {
        "name": "Premade Innovation",
        "description": "a software company",
        "mission": "Build useful things",
    },
    "services": {"AI Development": "Custom AI", "Consulting": "Strategy"},
    "careers": {
        "openPositions": ["ML Engineer", "Designer"],
        "benefits": ["Remote work"],
        "applicationProcess": "jobs@example.com",
    },
    "contact": {"email": "hi@example.com", "phone": "123", "website": "example.com"},
    "technologies": {"backend": ["Python", "FastAPI"], "notes": "not a list"},
    "founders": {"ceo": "Jane Doe", "role": "Founder & CEO", "background": "Builder."},
}


@pytest.fixture
def store() -> KnowledgeStore:
    return KnowledgeStore(KNOWLEDGE)


class TestLookup:
    def test_company_rule(self, store: KnowledgeStore) -> None:
        assert store.lookup("What does Premade do?") == (
            "Premade Innovation is a software company. Our mission is: Build useful things"
        )

    def test_services_lists_every_key(self, store: KnowledgeStore) -> None:
        answer = store.lookup("What services do you offer?")
        assert answer.startswith("Our services include:\n")
        assert "AI Development: Custom AI" in answer
        assert "Consulting: Strategy" in answer

    def test_careers_rule(self, store: KnowledgeStore) -> None:
        assert store.lookup("Are you hiring?") == (
            "We're hiring for: ML Engineer, Designer. Benefits include: Remote work. Apply at: jobs@example.com"
        )

    def test_contact_rule(self, store: KnowledgeStore) -> None:
        assert store.lookup("What is your phone number?") == (
            "Contact us:\nEmail: hi@example.com\nPhone: 123\nWebsite: example.com"
        )

    def test_technologies_only_lists_list_values(self, store: KnowledgeStore) -> None:
        answer = store.lookup("Which tech stack do you use?")
        assert answer == "Our technology stack includes:\nbackend: Python, FastAPI"

    def test_founders_rule(self, store: KnowledgeStore) -> None:
        assert store.lookup("Who is the founder?") == "Our Founder & CEO is Jane Doe. Builder."

    def test_generic_ai_rule(self, store: KnowledgeStore) -> None:
        assert store.lookup("Explain artificial intelligence").startswith("Artificial Intelligence (AI)")

    def test_generic_ml_rule(self, store: KnowledgeStore) -> None:
        assert store.lookup("What is ML?").startswith("Machine Learning is a subset of AI")

    def test_case_insensitive(self, store: KnowledgeStore) -> None:
        assert store.lookup("CONTACT") == store.lookup("contact")

    def test_no_match_returns_none(self, store: KnowledgeStore) -> None:
        assert store.lookup("xyzzy plugh") is None

    def test_empty_or_non_string_returns_none(self, store: KnowledgeStore) -> None:
        assert store.lookup("") is None
        assert store.lookup(None) is None
        assert store.lookup(42) is None

    def test_idempotent(self, store: KnowledgeStore) -> None:
        assert store.lookup("Tell me about your services") == store.lookup("Tell me about your services")


class TestRulePriority:
    def test_service_beats_career(self, store: KnowledgeStore) -> None:
        for query in ("service career", "career service", "any career or service info"):
            assert store.match_rule(query).name == "services"
            assert store.lookup(query).startswith("Our services include:")

    def test_company_beats_everything(self, store: KnowledgeStore) -> None:
        assert store.match_rule("company services careers contact").name == "company"

    def test_priority_order(self) -> None:
        assert [r.name for r in TOPIC_RULES] == [
            "company",
            "services",
            "careers",
            "contact",
            "technologies",
            "founders",
            "artificial_intelligence",
            "machine_learning",
        ]

    def test_email_matches_contact_before_ai(self, store: KnowledgeStore) -> None:
        # "email" contains "ai"; contact comes first.
        assert store.match_rule("what is your email").name == "contact"


class TestPlaceholders:
    @pytest.mark.parametrize(
        "query,expected",
        [
            ("premade", "Premade Innovation is a technology company."),
            ("service", "Details about our services are coming soon."),
            ("career", "We're hiring for: Various positions. Benefits include: Competitive benefits."),
            ("contact", "Phone: N/A"),
            ("technology", "Details about our technology stack are coming soon."),
            ("ceo", "Our CEO is Manish Chandra."),
        ],
    )
    def test_empty_knowledge_uses_placeholders(self, query: str, expected: str) -> None:
        answer = KnowledgeStore({}).lookup(query)
        assert expected in answer

    def test_wrong_types_do_not_raise(self) -> None:
        store = KnowledgeStore({"company": "oops", "services": ["a"], "careers": {"openPositions": "x"}})
        assert "Premade Innovation" in store.lookup("company")
        assert "coming soon" in store.lookup("service")
        assert "Various positions" in store.lookup("job")


class TestAddAndSnapshot:
    def test_add_persists_whole_document(self, tmp_path: Path) -> None:
        path = tmp_path / "knowledge.json"
        path.write_text(json.dumps(KNOWLEDGE), encoding="utf-8")
        store = KnowledgeStore.from_file(path)
        store.add("services", "Training", "Workshops")

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["services"]["Training"] == "Workshops"
        assert saved["company"] == KNOWLEDGE["company"]
        assert "Training: Workshops" in store.lookup("services")

    def test_add_list_valued_service_is_listed(self) -> None:
        store = KnowledgeStore({})
        store.add("services", "Training", ["Workshops", "Bootcamps"])
        store.add("services", "Support", {"hours": "24/7"})
        store.add("services", "Audit", [])
        answer = store.lookup("services")
        assert "Training: Workshops, Bootcamps" in answer
        assert "Support: hours: 24/7" in answer
        assert "Audit: details coming soon" in answer

    def test_add_creates_missing_category(self) -> None:
        store = KnowledgeStore({})
        store.add("contact", "email", "new@example.com")
        assert "Email: new@example.com" in store.lookup("contact")

    def test_add_rejects_unknown_category(self, store: KnowledgeStore) -> None:
        with pytest.raises(ValueError):
            store.add("weather", "today", "sunny")

    def test_add_rejects_empty_key(self, store: KnowledgeStore) -> None:
        with pytest.raises(ValueError):
            store.add("services", "  ", "x")

    def test_snapshot_is_a_copy(self, store: KnowledgeStore) -> None:
        snap = store.snapshot()
        snap["services"]["Hacked"] = "yes"
        assert "Hacked" not in store.snapshot()["services"]

    def test_constructor_copies_input(self) -> None:
        source = {"services": {"A": "a"}}
        store = KnowledgeStore(source)
        source["services"]["B"] = "b"
        assert "B" not in store.snapshot()["services"]

    def test_concurrent_adds_are_not_lost(self, tmp_path: Path) -> None:
        path = tmp_path / "knowledge.json"
        store = KnowledgeStore({}, path=path)
        threads = [
            threading.Thread(target=store.add, args=("services", f"svc{i}", str(i)))
            for i in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert len(saved["services"]) == 20
        assert len(store.snapshot()["services"]) == 20


class TestFromFile:
    def test_missing_file_gives_empty_store(self, tmp_path: Path) -> None:
        store = KnowledgeStore.from_file(tmp_path / "missing.json")
        assert store.snapshot() == {}
        assert store.lookup("xyzzy") is None

    def test_invalid_json_gives_empty_store(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        assert KnowledgeStore.from_file(path).snapshot() == {}

    def test_shipped_document_loads(self) -> None:
        path = Path(__file__).resolve().parent.parent / "data" / "knowledge.json"
        store = KnowledgeStore.from_file(path)
        assert set(store.snapshot()) == {"company", "services", "careers", "contact", "technologies", "founders"}
        assert store.lookup("What does Premade Innovation do?").startswith("Premade Innovation is")
