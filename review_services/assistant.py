"""Chat assistant over the GL review snapshot, backed by Google Gemini.

Uses the google-genai SDK. The assistant only sees a compact projection of
the accounts; its failures are soft and come back as a fallback message.
"""

from __future__ import annotations

import json
import os
from typing import Any, Sequence

from google import genai

from review_kernel.domain.account import GLAccount
from review_kernel.exceptions import AssistantServiceFailure
from review_kernel.logging_config import get_logger

logger = get_logger("services.assistant")

DEFAULT_MODEL = "gemini-2.5-flash"

DISABLED_MESSAGE = (
    "The AI chat feature is currently disabled because the API key is not configured."
)
FALLBACK_MESSAGE = (
    "Sorry, I encountered an error while processing your request. Please try again later."
)
EMPTY_QUESTION_MESSAGE = "Please enter a question about the GL accounts."

_PROMPT_TEMPLATE = """\
You are FinSight AI, an intelligent assistant for financial auditing and workflow analysis.
Your task is to answer questions based ONLY on the following JSON data representing General Ledger (GL) accounts and their current review status.
Do not make up information or answer questions outside of this data context. If the answer is not in the data, state that clearly.
Analyze the data to provide accurate, concise, and professional answers.

Data Schema Guide:
- "Review Status": The status of the item (e.g., Pending, Mismatch, Finalized).
- "Current Stage": The current person/team responsible for the next action (e.g., Checker 1, Checker 2, Finalized).

Here is the GL accounts data:
{data}

User's question: "{question}"

Your Answer:
"""


def project_account(account: GLAccount) -> dict[str, Any]:
    """The fields the assistant is allowed to see."""
    return {
        "GL Account": account.account_name,
        "Account Number": account.account_number,
        "Department": account.department,
        "Category": account.main_head,
        "Review Status": account.review_status.value,
        "Current Stage": account.stage_label,
        "Reviewer": account.reviewer,
        "SPOC": account.spoc,
        "Mistake Count": account.mistake_count,
    }


def build_prompt(question: str, accounts: Sequence[GLAccount]) -> str:
    data = json.dumps([project_account(a) for a in accounts], indent=2, ensure_ascii=False)
    return _PROMPT_TEMPLATE.format(data=data, question=question)


class AssistantService:
    """Answers natural-language questions about a snapshot of accounts.

    ``client`` is anything with ``models.generate_content(model=, contents=)``;
    by default a ``genai.Client`` is created from the API key.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        client: Any | None = None,
    ):
        self._model = model
        if client is not None:
            self._client = client
        elif api_key:
            self._client = genai.Client(api_key=api_key)
        else:
            self._client = None
            logger.warning("assistant_disabled", extra={"model": model})

    @classmethod
    def from_config(cls, config: Any) -> "AssistantService":
        """Build from a ``review_config.ReviewConfiguration``; the key comes from the environment."""
        return cls(
            api_key=os.environ.get(config.assistant.api_key_env),
            model=config.assistant.model,
        )

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def ask(self, question: str, snapshot: Sequence[GLAccount]) -> str:
        """Answer ``question`` from ``snapshot``. Never raises."""
        if not question or not question.strip():
            return EMPTY_QUESTION_MESSAGE
        if self._client is None:
            return DISABLED_MESSAGE
        try:
            return self._generate(build_prompt(question.strip(), snapshot))
        except AssistantServiceFailure as exc:
            logger.error(
                "assistant_failed",
                extra={"model": exc.model, "detail": exc.detail, "account_count": len(snapshot)},
            )
            return FALLBACK_MESSAGE

    def _generate(self, prompt: str) -> str:
        try:
            response = self._client.models.generate_content(model=self._model, contents=prompt)
        except Exception as exc:
            raise AssistantServiceFailure(self._model, f"{type(exc).__name__}: {exc}") from exc
        text = getattr(response, "text", None)
        if not text:
            raise AssistantServiceFailure(self._model, "empty response")
        return text
