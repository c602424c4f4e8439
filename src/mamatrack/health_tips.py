# src/mamatrack/health_tips.py
import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional

from .errors import InvalidRecordError, LLMError
from .llm import ChatClient, ChatMessage, safe_json_loads

TIP_CATEGORIES = ("pregnancy", "childcare", "vaccination", "nutrition", "general")
TIP_PRIORITIES = ("low", "normal", "high")


@dataclass
class HealthTip:
    id: str
    title: str
    content: str
    category: str = "general"
    priority: str = "normal"
    target_weeks: Optional[int] = None
    target_age: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "HealthTip":
        category = raw.get("category", "general")
        priority = raw.get("priority", "normal")
        if category not in TIP_CATEGORIES or priority not in TIP_PRIORITIES:
            raise InvalidRecordError(f"Bad tip category/priority: {category}/{priority}")
        if not raw.get("title") or not raw.get("content"):
            raise InvalidRecordError(f"Tip without title or content: {raw!r}")
        weeks = raw.get("target_weeks", raw.get("targetWeeks"))
        return cls(
            id=str(raw.get("id") or raw["title"].lower().replace(" ", "-")),
            title=raw["title"],
            content=raw["content"],
            category=category,
            priority=priority,
            target_weeks=int(weeks) if isinstance(weeks, (int, float)) else None,
            target_age=raw.get("target_age", raw.get("targetAge")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TipContext:
    """What the tip source may know about a mother."""
    first_name: str
    pregnancy_weeks: Optional[int] = None     # None -> not pregnant
    tetanus_vaccinated: bool = False
    ifas_started: bool = False
    children_ages: List[str] = field(default_factory=list)

    @property
    def is_pregnant(self) -> bool:
        return self.pregnancy_weeks is not None


TipProvider = Callable[[TipContext], List[HealthTip]]


def fallback_tips(ctx: TipContext) -> List[HealthTip]:
    """Static tips following Kenyan MoH guidance, used when no provider answers."""
    tips: List[HealthTip] = []

    if ctx.is_pregnant:
        weeks = ctx.pregnancy_weeks
        if weeks >= 27 and not ctx.tetanus_vaccinated:
            tips.append(HealthTip(
                "tetanus-vaccine", "Tetanus Vaccination Due",
                "You should receive your tetanus vaccination between 27-36 weeks of "
                "pregnancy. This protects both you and your baby from tetanus infection. "
                "Visit your nearest health facility.",
                "pregnancy", "high", target_weeks=weeks,
            ))
        if not ctx.ifas_started:
            tips.append(HealthTip(
                "ifas-supplements", "Start IFAS Supplements",
                "Iron and Folic Acid supplements are essential throughout pregnancy. Take "
                "30-60mg iron + 400μg folic acid daily. Available free at all public "
                "health facilities.",
                "nutrition", "high", target_weeks=weeks,
            ))
        tips.append(HealthTip(
            "pregnancy-nutrition", f"Nutrition at {weeks} Weeks",
            "Eat a balanced diet with plenty of vegetables, fruits, and protein. Include "
            "iron-rich foods like green leafy vegetables, beans, and lean meat. Stay hydrated.",
            "nutrition", "normal", target_weeks=weeks,
        ))

    if ctx.children_ages:
        tips.append(HealthTip(
            "vaccination-importance", "Why Vaccinations Matter",
            "Following Kenya EPI schedule protects your children from serious diseases. "
            "All routine vaccines are free at public health facilities. Keep vaccination "
            "cards safe.",
            "vaccination", "normal",
        ))

    tips.append(HealthTip(
        "general-health", "Stay Healthy in Kenya",
        "Regular handwashing, clean water, and nutritious local foods keep you and your "
        "family healthy. Visit your nearest health facility for any concerns.",
        "general", "normal",
    ))
    return tips


_SYSTEM_PROMPT = (
    "You are a Kenyan maternal and child health expert. Give practical, culturally "
    "appropriate advice following Kenya's health guidelines, the Kenya EPI vaccination "
    "schedule and ANC care protocols. Answer with JSON: {\"tips\": [{\"id\", \"title\", "
    "\"content\", \"category\": pregnancy|childcare|vaccination|nutrition|general, "
    "\"priority\": low|normal|high, \"targetWeeks\", \"targetAge\"}]}"
)


def describe_context(ctx: TipContext) -> str:
    text = f"Generate health tips for a Kenyan mother named {ctx.first_name}."
    if ctx.is_pregnant:
        text += f" She is currently {ctx.pregnancy_weeks} weeks pregnant."
        if not ctx.tetanus_vaccinated:
            text += " She hasn't received her tetanus vaccination yet."
        if not ctx.ifas_started:
            text += " She hasn't started IFAS supplements yet."
    if ctx.children_ages:
        text += f" She has {len(ctx.children_ages)} children:"
        for i, age in enumerate(ctx.children_ages, 1):
            text += f" Child {i} is {age} old."
    return text


class LlmTipProvider:
    """Tip provider backed by a chat completion endpoint."""

    def __init__(self, client: ChatClient):
        self.client = client

    def __call__(self, ctx: TipContext) -> List[HealthTip]:
        raw = self.client.chat([
            ChatMessage("system", _SYSTEM_PROMPT),
            ChatMessage("user", describe_context(ctx)),
        ])
        data = safe_json_loads(raw)
        if not data or not isinstance(data.get("tips"), list):
            raise LLMError("Model answer carries no tips list")
        return [HealthTip.from_dict(t) for t in data["tips"]]


def provider_from_config(cfg: dict) -> Optional[TipProvider]:
    llm_cfg = cfg.get("llm", {})
    if llm_cfg.get("mode") != "http":
        return None
    return LlmTipProvider(ChatClient(llm_cfg))


def generate_health_tips(ctx: TipContext, provider: Optional[TipProvider] = None) -> List[HealthTip]:
    """Ask the provider; any failure or an empty answer yields the static tips."""
    if provider is None:
        return fallback_tips(ctx)
    try:
        tips = provider(ctx)
    except Exception as e:
        logging.error(f"[MamaTrack] Health tip provider failed, using fallback tips: {e}")
        return fallback_tips(ctx)
    if not tips:
        logging.info("[MamaTrack] Health tip provider returned no tips, using fallback tips.")
        return fallback_tips(ctx)
    return tips
