"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod

from ..exceptions import LLMProcessingError
from ..models import ExtractedContent, ProcessedNote, VaultContext
from .prompts import (
    CATEGORIZE_DESCRIPTION,
    CATEGORIZE_SCHEMA,
    CATEGORIZE_TOOL,
    SUMMARIZE_DESCRIPTION,
    SUMMARIZE_SCHEMA,
    SUMMARIZE_TOOL,
    build_categorization_prompt,
    build_summarization_prompt,
    validate_categorization_result,
    validate_summarization_result,
)


class LLMProvider(ABC):
    """Turns extracted content into a summarized, categorized note.

    Subclasses implement _call_tool for their API. process_content runs two
    calls: summarize, then categorize against the vault context.
    """

    def __init__(self, summary_detail: str = "standard", default_folder: str = "Inbox"):
        self._summary_detail = summary_detail
        self._default_folder = default_folder

    @abstractmethod
    async def _call_tool(
        self,
        tool_name: str,
        description: str,
        schema: dict,
        prompt: str,
        model: str,
    ) -> dict:
        """Force a single tool call and return its arguments.

        Args:
            tool_name: Name of the tool the model must call.
            description: Tool description shown to the model.
            schema: JSON schema of the tool's input.
            prompt: User message.
            model: Model to use for this call.
        """

    @property
    @abstractmethod
    def summary_model(self) -> str:
        """Model used for summarization."""

    @property
    @abstractmethod
    def categorization_model(self) -> str:
        """Model used for categorization."""

    async def process_content(
        self,
        content: ExtractedContent,
        vault_context: VaultContext,
    ) -> ProcessedNote:
        summary = await self._summarize(content)
        category = await self._categorize(summary, content, vault_context)
        return ProcessedNote(
            title=summary["title"] or content.title or "Untitled",
            summary=summary["summary"],
            key_takeaways=summary["key_takeaways"],
            suggested_folder=category["suggested_folder"],
            suggested_tags=category["suggested_tags"],
            type=content.type,
            platform=content.platform,
            source=content,
        )

    async def _summarize(self, content: ExtractedContent) -> dict:
        prompt = build_summarization_prompt(content, self._summary_detail)
        data = await self._run_stage(
            "summarization",
            SUMMARIZE_TOOL,
            SUMMARIZE_DESCRIPTION,
            SUMMARIZE_SCHEMA,
            prompt,
            self.summary_model,
        )
        try:
            return validate_summarization_result(data)
        except ValueError as e:
            raise LLMProcessingError(
                f"Summarization result invalid: {e}", "summarization"
            ) from e

    async def _categorize(
        self,
        summary: dict,
        content: ExtractedContent,
        vault_context: VaultContext,
    ) -> dict:
        prompt = build_categorization_prompt(summary, content, vault_context)
        data = await self._run_stage(
            "categorization",
            CATEGORIZE_TOOL,
            CATEGORIZE_DESCRIPTION,
            CATEGORIZE_SCHEMA,
            prompt,
            self.categorization_model,
        )
        try:
            return validate_categorization_result(
                data, vault_context.folders, self._default_folder
            )
        except ValueError as e:
            raise LLMProcessingError(
                f"Categorization result invalid: {e}", "categorization"
            ) from e

    async def _run_stage(self, stage: str, *args) -> dict:
        try:
            return await self._call_tool(*args)
        except LLMProcessingError:
            raise
        except Exception as e:
            raise LLMProcessingError(
                f"{stage.capitalize()} API call failed: {e}", stage
            ) from e
