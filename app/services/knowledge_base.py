"""
Knowledge store: static company knowledge loaded from a JSON document and a
keyword matcher over it.

Matching walks an ordered list of topic rules. Each rule is a set of trigger
substrings and a formatter that renders the answer from the document; the first
rule with any trigger present in the lowercased query wins. Adding a topic means
adding a rule to TOPIC_RULES.
"""

import copy
import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from app.core.config import KNOWLEDGE_CATEGORIES

logger = logging.getLogger(__name__)

Knowledge = dict[str, Any]


def _section(knowledge: Knowledge, name: str) -> dict[str, Any]:
    value = knowledge.get(name)
    return value if isinstance(value, dict) else {}


def _text(value: Any, placeholder: str) -> str:
    if value is None or value == "" or isinstance(value, (dict, list)):
        return placeholder
    return str(value)


def _joined(value: Any, placeholder: str) -> str:
    if isinstance(value, list) and value:
        return ", ".join(str(v) for v in value)
    return placeholder


def _entry(value: Any, placeholder: str) -> str:
    if isinstance(value, list):
        return _joined([v for v in value if v not in (None, "")], placeholder)
    if isinstance(value, dict):
        if not value:
            return placeholder
        return ", ".join(f"{k}: {v}" for k, v in value.items())
    return _text(value, placeholder)


def format_company(knowledge: Knowledge) -> str:
    company = _section(knowledge, "company")
    name = _text(company.get("name"), "Premade Innovation")
    description = _text(company.get("description"), "a technology company")
    mission = _text(company.get("mission"), "to build useful software and AI solutions")
    return f"{name} is {description}. Our mission is: {mission}"


def format_services(knowledge: Knowledge) -> str:
    services = _section(knowledge, "services")
    if not services:
        return "Our services include:\nDetails about our services are coming soon."
    lines = "\n".join(f"{key}: {_entry(value, 'details coming soon')}" for key, value in services.items())
    return f"Our services include:\n{lines}"


def format_careers(knowledge: Knowledge) -> str:
    careers = _section(knowledge, "careers")
    positions = _joined(careers.get("openPositions"), "Various positions")
    benefits = _joined(careers.get("benefits"), "Competitive benefits")
    apply_at = _text(careers.get("applicationProcess"), "careers@premadeinnovation.com")
    return f"We're hiring for: {positions}. Benefits include: {benefits}. Apply at: {apply_at}"


def format_contact(knowledge: Knowledge) -> str:
    contact = _section(knowledge, "contact")
    return (
        "Contact us:\n"
        f"Email: {_text(contact.get('email'), 'info@premadeinnovation.com')}\n"
        f"Phone: {_text(contact.get('phone'), 'N/A')}\n"
        f"Website: {_text(contact.get('website'), 'www.premadeinnovation.com')}"
    )


def format_technologies(knowledge: Knowledge) -> str:
    technologies = _section(knowledge, "technologies")
    lines = [
        f"{category}: {', '.join(str(i) for i in items)}"
        for category, items in technologies.items()
        if isinstance(items, list)
    ]
    if not lines:
        lines = ["Details about our technology stack are coming soon."]
    return "Our technology stack includes:\n" + "\n".join(lines)


def format_founders(knowledge: Knowledge) -> str:
    founders = _section(knowledge, "founders")
    role = _text(founders.get("role"), "CEO")
    ceo = _text(founders.get("ceo"), "Manish Chandra")
    background = _text(founders.get("background"), "Technology leader with extensive experience.")
    return f"Our {role} is {ceo}. {background}"


def format_ai(knowledge: Knowledge) -> str:
    return (
        "Artificial Intelligence (AI) is the simulation of human intelligence in machines that are "
        "programmed to think and learn. At Premade Innovation, we specialize in developing custom AI "
        "solutions for businesses."
    )


def format_ml(knowledge: Knowledge) -> str:
    return (
        "Machine Learning is a subset of AI that enables computers to learn and improve from experience "
        "without being explicitly programmed. We use ML to create intelligent automation solutions."
    )


@dataclass(frozen=True)
class TopicRule:
    name: str
    triggers: tuple[str, ...]
    formatter: Callable[[Knowledge], str]

    def matches(self, query_lower: str) -> bool:
        return any(t in query_lower for t in self.triggers)


# Priority order. Substring triggers overlap (e.g. "service" and "career" in one
# query); the earliest rule always wins.
TOPIC_RULES: tuple[TopicRule, ...] = (
    TopicRule("company", ("premade", "company", "what do you do"), format_company),
    TopicRule("services", ("service", "what do you offer"), format_services),
    TopicRule("careers", ("career", "job", "hiring", "work"), format_careers),
    TopicRule("contact", ("contact", "email", "phone"), format_contact),
    TopicRule("technologies", ("technology", "tech stack", "programming"), format_technologies),
    TopicRule("founders", ("founder", "ceo", "manish"), format_founders),
    TopicRule("artificial_intelligence", ("artificial intelligence", "ai"), format_ai),
    TopicRule("machine_learning", ("machine learning", "ml"), format_ml),
)


class KnowledgeStore:
    """
    Owns one knowledge document. lookup() and snapshot() only read; add() rewrites
    the whole document under a lock and persists it to path when one is set.
    """

    def __init__(
        self,
        knowledge: Knowledge | None = None,
        path: Path | None = None,
        rules: tuple[TopicRule, ...] = TOPIC_RULES,
    ) -> None:
        self._knowledge: Knowledge = copy.deepcopy(knowledge) if knowledge else {}
        self.path = Path(path) if path else None
        self.rules = rules
        self._write_lock = threading.Lock()

    @classmethod
    def from_file(cls, path: Path) -> "KnowledgeStore":
        """Load the document at path. A missing or unreadable file gives an empty store."""
        path = Path(path)
        knowledge: Knowledge = {}
        if path.is_file():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    knowledge = data
                else:
                    logger.warning("[knowledge_base] %s does not hold a JSON object; using empty knowledge", path)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("[knowledge_base] failed to load %s: %s", path, e)
        else:
            logger.warning("[knowledge_base] %s not found; using empty knowledge", path)
        logger.info("[knowledge_base] loaded categories=%s from %s", sorted(knowledge), path)
        return cls(knowledge, path=path)

    def match_rule(self, query: str) -> TopicRule | None:
        """Return the first rule whose triggers occur in the query, or None."""
        if not query or not isinstance(query, str):
            return None
        q = query.lower()
        for rule in self.rules:
            if rule.matches(q):
                return rule
        return None

    def lookup(self, query: str) -> str | None:
        """Render the answer of the first matching topic rule, or None when nothing matches."""
        rule = self.match_rule(query)
        if rule is None:
            logger.info("[knowledge_base:lookup] IN  query=%r OUT no match", query)
            return None
        answer = rule.formatter(self._knowledge)
        logger.info("[knowledge_base:lookup] IN  query=%r OUT rule=%s answer_len=%d", query, rule.name, len(answer))
        return answer

    def add(self, category: str, key: str, value: Any) -> None:
        """
        Set knowledge[category][key] = value and persist the full document.

        Raises:
            ValueError: If category is not one of KNOWLEDGE_CATEGORIES or key is empty.
            OSError: If writing the document fails (the in-memory copy is left unchanged).
        """
        if category not in KNOWLEDGE_CATEGORIES:
            raise ValueError(f"Unknown category {category!r}. Allowed: {', '.join(KNOWLEDGE_CATEGORIES)}")
        if not key or not str(key).strip():
            raise ValueError("key is required")
        with self._write_lock:
            updated = copy.deepcopy(self._knowledge)
            section = updated.get(category)
            if not isinstance(section, dict):
                section = {}
                updated[category] = section
            section[str(key).strip()] = value
            if self.path is not None:
                self._save(updated)
            self._knowledge = updated
        logger.info("[knowledge_base:add] category=%s key=%s", category, key)

    def _save(self, knowledge: Knowledge) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(knowledge, indent=2), encoding="utf-8")
        tmp.replace(self.path)
        logger.info("[knowledge_base] saved %s", self.path)

    def snapshot(self) -> Knowledge:
        """Deep copy of the knowledge document."""
        return copy.deepcopy(self._knowledge)
