"""Prompts do assistente e textos fixos de resposta.

Textos voltados ao usuário ficam em inglês (idioma do produto).
"""

from __future__ import annotations

from datetime import date

from lostfound_assistant.domain.enums import ConversationStep, ItemCategory
from lostfound_assistant.domain.models import CollectedReportData

CATEGORY_LIST = ", ".join(c.value for c in ItemCategory)

INTENT_SYSTEM_PROMPT = """You are a Lost & Found assistant intent classifier.
Classify the user's message into exactly one intent:
- FILE_REPORT: User wants to file/report a lost item
- SEARCH_ITEMS: User wants to search for found items
- MY_REPORTS: User wants to see their own lost reports
- CHECK_MATCHES: User wants to check if found items match their report
- MY_PICKUPS: User wants to see their pickup schedule/status
- UNKNOWN: Cannot determine

Respond ONLY with valid JSON:
{
  "intent": "FILE_REPORT|SEARCH_ITEMS|MY_REPORTS|CHECK_MATCHES|MY_PICKUPS|UNKNOWN",
  "keyword": "search keyword if SEARCH_ITEMS, else null",
  "category": "item category if mentioned, else null",
  "reportId": "report ID if CHECK_MATCHES and user provided one, else null"
}"""


def build_report_system_prompt(today: date) -> str:
    """Instrução de coleta do relato (formato JSON estrito + regras de mapeamento)."""
    return f"""You are a helpful Lost & Found assistant collecting information to file a lost item report.
Respond ONLY in valid JSON. No markdown, no extra text.

Format:
{{
  "reply": "Your friendly message",
  "extracted": {{
    "category": "one of: {CATEGORY_LIST} or null",
    "description": "item description or null",
    "locationLost": "location or null",
    "dateLost": "YYYY-MM-DD or null",
    "identifyingFeatures": ["feature1"] or null,
    "contactPhone": "phone or null",
    "intent": "provide_info|confirm|cancel|skip"
  }}
}}

Rules:
- Be empathetic and concise
- Today is {today.isoformat()}. Interpret "yesterday", "today", "last Monday" accordingly
- Map common words to categories: phone/mobile/iphone→ELECTRONICS, wallet/purse→ACCESSORIES, bag/backpack→BAGS, keys→KEYS, laptop/tablet→ELECTRONICS, book→BOOKS, jacket/shirt→CLOTHING, ring/necklace→JEWELRY, passport/id→DOCUMENTS
- "no"/"skip"/"none"/"don't have" → intent: "skip"
- Confirmation → intent: "confirm"
- Cancellation → intent: "cancel\""""


GREETING_PROMPT = (
    "Hello! I'm your Lost & Found assistant 🤖\n\n"
    "I can help you:\n"
    "• 📋 **File a lost item report**\n"
    "• 🔍 **Search found items**\n"
    "• 📄 **View your reports**\n"
    "• 🔗 **Check matches for your report**\n"
    "• 📦 **View your pickups**\n\n"
    "What would you like to do?"
)

_STEP_PROMPTS: dict[ConversationStep, str] = {
    ConversationStep.GREETING: GREETING_PROMPT,
    ConversationStep.COLLECTING_CATEGORY: (
        "What type of item did you lose? (Electronics, Bags, Documents, Keys, Clothing, "
        "Accessories, Jewelry, Books, Sports Equipment, or Other)"
    ),
    ConversationStep.COLLECTING_DESCRIPTION: (
        "Can you describe the item? (color, brand, model, size, etc.)"
    ),
    ConversationStep.COLLECTING_LOCATION: (
        "Where did you lose it? Be as specific as possible (building, floor, area, etc.)"
    ),
    ConversationStep.COLLECTING_DATE: "When did you lose it? (today, yesterday, or a specific date)",
    ConversationStep.COLLECTING_FEATURES: (
        "Any unique identifying features? (serial number, stickers, engravings) "
        "Say 'none' to skip."
    ),
    ConversationStep.COLLECTING_PHONE: "Your contact phone number? (optional, say 'skip' to skip)",
}

# Respostas fixas
ALREADY_FILED_REPLY = (
    "Your report is already filed. Start a new chat to file another or ask me anything!"
)
SESSION_CANCELLED_REPLY = "Session cancelled. Start a new chat whenever you're ready!"
REPORT_CANCELLED_REPLY = "No problem! Report cancelled. Start a new chat whenever you're ready."
REPORT_FAILED_REPLY = "Sorry, there was an error filing your report. Please try confirming again."
QUERY_FAILED_MESSAGE = "Something went wrong. Please try again."
QUERY_FOLLOW_UP = 'Anything else? Say **"file a report"** to report a lost item.'
SERVICE_UNAVAILABLE_MESSAGE = "AI service temporarily unavailable. Please try again."


def render_confirmation(data: CollectedReportData) -> str:
    """Resumo do relato para confirmação."""
    category = data.category.value if data.category else None
    date_lost = data.date_lost.isoformat() if data.date_lost else None
    return "\n".join([
        "Please confirm your report:",
        f"• **Category:** {category}",
        f"• **Description:** {data.description}",
        f"• **Location:** {data.location_lost}",
        f"• **Date:** {date_lost}",
        f"• **Features:** {', '.join(data.identifying_features or []) or 'None'}",
        f"• **Phone:** {data.contact_phone or 'Not provided'}",
        "",
        'Type **"confirm"** to file or **"cancel"** to start over.',
    ])


def get_step_prompt(step: ConversationStep | str, data: CollectedReportData) -> str:
    """Texto fixo de cada passo; vazio para passos terminais ou desconhecidos."""
    if step == ConversationStep.CONFIRMING:
        return render_confirmation(data)
    return _STEP_PROMPTS.get(step, "")  # type: ignore[call-overload]


def terminal_reply(step: ConversationStep) -> str:
    """Mensagem fixa para turnos em sessão já encerrada."""
    if step == ConversationStep.COMPLETED:
        return ALREADY_FILED_REPLY
    return SESSION_CANCELLED_REPLY


def report_filed_reply(report_id: str) -> str:
    return (
        f"✅ Report filed!\n\n**Report ID:** `{report_id}`\n\n"
        "We'll notify you by email if a matching item is found. Anything else I can help with?"
    )


def query_reply(message: str) -> str:
    """Resposta composta de um turno de consulta."""
    return f"{message}\n\n{QUERY_FOLLOW_UP}"
