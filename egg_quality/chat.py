"""
Natural-language Q&A over the current dashboard summary.

Only the aggregate context (filters, record count, averages) is sent to the
model; raw records never leave the app.
"""
import logging

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from egg_quality.errors import ChatServiceError
from egg_quality.quality_engine import CATEGORY_COLUMNS, is_wildcard
from egg_quality.standards import METRIC_CONFIG

logger = logging.getLogger(__name__)

NO_ANSWER = "I could not generate an answer."

CATEGORY_LABELS = {
    "farm": "Farm",
    "shed": "Shed",
    "age": "Age",
    "breed": "Breed",
    "client": "Client",
    "metaqualixId": "Metaqualix No.",
}

SYSTEM_PROMPT = """You are an expert in poultry production and egg quality analysis (Egg Quality Monitor). Interpret the statistics provided below and answer the user's question clearly, in a professional and approachable tone. Use your poultry knowledge to put the results in context when it helps.

Instructions:
1. Answer the user's question.
2. Base your answer on the 'Current Data Context', which reflects the active filters and averages.
3. Be concise and get to the point.
4. Use Markdown only for bold text and lists."""

QUESTION_TEMPLATE = """Using the following data context, answer my question.

--- CURRENT DATA CONTEXT ---
{context}
--- END CONTEXT ---

My question is: {question}"""

QA_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", QUESTION_TEMPLATE),
])


def build_data_context(criteria, averages, record_count):
    """Summarize the active filters, record count and metric averages as plain text."""
    filters = []
    for column in CATEGORY_COLUMNS:
        value = criteria.categories.get(column)
        filters.append(f"{CATEGORY_LABELS[column]}: {'All' if is_wildcard(value) else value}")

    avg = ", ".join(
        f"{METRIC_CONFIG[key]['name']}: {value:.2f} {METRIC_CONFIG[key]['unit']}"
        for key, value in averages.items()
        if key in METRIC_CONFIG
    )

    return (
        "Current Data Context:\n"
        f"Applied Filters: {', '.join(filters)}. "
        f"Date Range: {criteria.start_date:%Y-%m-%d} to {criteria.end_date:%Y-%m-%d}.\n"
        f"Total samples (records) in the current context: {record_count}.\n"
        f"Key Averages: {avg}."
    )


def build_chat_model(api_key, model="gpt-4o", temperature=0):
    if not api_key:
        raise ChatServiceError(
            "Configuration error: OPENAI_API_KEY is not set. Add it to secrets.toml or the environment."
        )
    return ChatOpenAI(api_key=api_key, model=model, temperature=temperature)


def ask_quality_expert(question, data_context, llm):
    """Send a question plus the data context to the chat model and return the answer text."""
    messages = QA_PROMPT.format_messages(context=data_context, question=question)
    try:
        response = llm.invoke(messages)
    except Exception as e:
        logger.exception("Chat model request failed")
        raise ChatServiceError(f"Error communicating with the quality expert: {e}") from e

    text = getattr(response, "content", response)
    if not isinstance(text, str):
        text = str(text) if text else ""
    return text.strip() or NO_ANSWER
