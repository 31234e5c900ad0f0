"""Summary: Seed prompt templates.

Importance: Provides the default instructions for each AI workflow.
Alternatives: Load prompts from JSON files outside the codebase.
"""

from __future__ import annotations

from inboxagent.models import (
    PROMPT_ACTION_EXTRACTION,
    PROMPT_AUTO_REPLY,
    PROMPT_CATEGORIZATION,
    PromptTemplate,
)

NO_REPLY_SENTINEL = "NO_REPLY_NEEDED"

CATEGORIZATION_PROMPT = """Categorize this email into exactly ONE of these categories: Important, Newsletter, Spam, To-Do.

Rules:
- "Important": Urgent matters, direct requests from people, time-sensitive content
- "Newsletter": Promotional content, subscriptions, regular updates from services
- "Spam": Unsolicited messages, suspicious content, irrelevant promotions
- "To-Do": Emails containing direct action requests or tasks requiring user response

Respond with ONLY the category name, nothing else."""

ACTION_EXTRACTION_PROMPT = """Extract all action items and tasks from this email. For each task, identify:
1. The task description
2. Any deadline mentioned (or null if none)

Respond ONLY with a valid JSON array in this exact format:
[{"task": "description here", "deadline": "date or null"}]

If there are no action items, respond with an empty array: []
Do not include any explanation, only the JSON array."""

AUTO_REPLY_PROMPT = f"""Generate a professional email reply draft for this email. Consider:

1. If it's a meeting request: Draft a polite reply asking for agenda details or confirming availability
2. If it's a task request: Acknowledge receipt and indicate you'll review/respond
3. If it's informational: Thank them for the information and note any follow-up needed
4. If it's promotional/newsletter: No reply needed, respond with "{NO_REPLY_SENTINEL}"

Keep the tone professional but friendly. Be concise.
Format as a complete email body, ready to send."""


def default_prompts() -> list[PromptTemplate]:
    """Summary: Return the seed template for every workflow type.

    Importance: The store captures these contents at start-up as reset targets.
    Alternatives: Ship prompts as editable files and re-read them on reset.
    """

    return [
        PromptTemplate(
            id=PROMPT_CATEGORIZATION,
            name="Categorization Prompt",
            description="Categorize emails into predefined categories",
            type=PROMPT_CATEGORIZATION,
            content=CATEGORIZATION_PROMPT,
        ),
        PromptTemplate(
            id=PROMPT_ACTION_EXTRACTION,
            name="Action Item Extraction Prompt",
            description="Extract tasks and action items from emails",
            type=PROMPT_ACTION_EXTRACTION,
            content=ACTION_EXTRACTION_PROMPT,
        ),
        PromptTemplate(
            id=PROMPT_AUTO_REPLY,
            name="Auto-Reply Draft Prompt",
            description="Generate professional email reply drafts",
            type=PROMPT_AUTO_REPLY,
            content=AUTO_REPLY_PROMPT,
        ),
    ]
