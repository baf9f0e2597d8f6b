"""Prompts, tool schemas and result validation shared by all providers."""

from ..models import ExtractedContent, VaultContext
from ..vault_context import format_for_prompt

SUMMARIZE_TOOL = "summarize_content"
CATEGORIZE_TOOL = "categorize_content"

DETAIL_INSTRUCTIONS = {
    "brief": "Write a 1-2 sentence summary and 2-3 key takeaways.",
    "standard": "Write a 2-3 sentence summary and 3-5 key takeaways.",
    "detailed": "Write a detailed, multi-paragraph summary and 5-8 key takeaways.",
}

SUMMARIZE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "A concise, descriptive title for the note",
        },
        "summary": {
            "type": "string",
            "description": "A summary of the content",
        },
        "keyTakeaways": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Key takeaways or insights from the content",
        },
    },
    "required": ["title", "summary", "keyTakeaways"],
}

CATEGORIZE_SCHEMA = {
    "type": "object",
    "properties": {
        "suggestedFolder": {
            "type": "string",
            "description": "The most appropriate existing folder path for this content",
        },
        "suggestedTags": {
            "type": "array",
            "items": {"type": "string"},
            "description": "3-7 relevant tags, preferring existing vault tags",
        },
    },
    "required": ["suggestedFolder", "suggestedTags"],
}

SUMMARIZE_DESCRIPTION = "Summarize web content into a structured format for an Obsidian note."
CATEGORIZE_DESCRIPTION = (
    "Choose the best folder and tags for this content based on the user's vault structure."
)


def build_summarization_prompt(content: ExtractedContent, detail: str = "standard") -> str:
    parts = [f"Title: {content.title}"]
    if content.author:
        parts.append(f"Author: {content.author}")
    if content.date_published:
        parts.append(f"Published: {content.date_published}")
    parts.extend([
        f"URL: {content.url}",
        f"Type: {content.type} ({content.platform})",
        "",
        DETAIL_INSTRUCTIONS.get(detail, DETAIL_INSTRUCTIONS["standard"]),
        "Write in an objective, third-person, informational style.",
        "",
        "Content:",
        content.content,
    ])
    return "\n".join(parts)


def build_categorization_prompt(
    summary: dict,
    content: ExtractedContent,
    context: VaultContext,
) -> str:
    return "\n".join([
        "Categorize this content into the user's Obsidian vault.",
        "",
        f"Title: {summary['title']}",
        f"Summary: {summary['summary']}",
        f"Type: {content.type} ({content.platform})",
        f"URL: {content.url}",
        "",
        format_for_prompt(context),
        "",
        "Choose the best existing folder for this content. Suggest tags that are relevant, "
        "preferring existing tags when they fit. You may suggest new tags if needed. "
        "Tags are lowercase, use hyphens instead of spaces and have no leading #.",
    ])


def validate_summarization_result(data: object) -> dict:
    """Check the summarize tool output. Raises ValueError if malformed."""
    if not isinstance(data, dict) or not all(
        key in data for key in ("title", "summary", "keyTakeaways")
    ):
        raise ValueError("Invalid summarization result: missing required fields")
    if not isinstance(data["title"], str) or not isinstance(data["summary"], str):
        raise ValueError("Invalid summarization result: title and summary must be strings")
    if not isinstance(data["keyTakeaways"], list):
        raise ValueError("Invalid summarization result: keyTakeaways must be an array")

    return {
        "title": data["title"].strip(),
        "summary": data["summary"].strip(),
        "key_takeaways": tuple(str(t) for t in data["keyTakeaways"]),
    }


def _clean_tag(tag: str) -> str:
    return tag.strip().lstrip("#").strip().replace(" ", "-")


def validate_categorization_result(
    data: object,
    folders: tuple[str, ...],
    default_folder: str = "Inbox",
) -> dict:
    """Check the categorize tool output. Raises ValueError if malformed.

    A folder that isn't in the vault is replaced by the first known folder.
    """
    if not isinstance(data, dict) or not all(
        key in data for key in ("suggestedFolder", "suggestedTags")
    ):
        raise ValueError("Invalid categorization result: missing required fields")
    if not isinstance(data["suggestedFolder"], str):
        raise ValueError("Invalid categorization result: suggestedFolder must be a string")
    if not isinstance(data["suggestedTags"], list):
        raise ValueError("Invalid categorization result: suggestedTags must be an array")

    folder = data["suggestedFolder"].strip().strip("/")
    if folders and folder not in folders:
        folder = folders[0]
    if not folder:
        folder = default_folder

    tags: list[str] = []
    for raw in data["suggestedTags"]:
        tag = _clean_tag(str(raw))
        if tag and tag not in tags:
            tags.append(tag)

    return {"suggested_folder": folder, "suggested_tags": tuple(tags)}
