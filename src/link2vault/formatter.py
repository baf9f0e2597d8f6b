"""YAML frontmatter and Obsidian markdown formatting."""

import re
from datetime import date
from typing import Optional

from .models import ProcessedNote

HUB_FOLDER = "Tags"

# Values containing these need quoting in YAML
_YAML_UNSAFE = re.compile(r"[:\"'#\n]")


def _escape_yaml(text: str) -> str:
    """Quote a YAML scalar if it contains special characters."""
    if not _YAML_UNSAFE.search(text):
        return text
    text = text.replace("\\", "\\\\")
    text = text.replace('"', '\\"')
    text = text.replace("\n", " ")
    return f'"{text}"'


def format_frontmatter(note: ProcessedNote, saved: Optional[date] = None) -> str:
    """Generate YAML frontmatter for a note."""
    saved = saved or date.today()
    source = note.source

    lines = [
        "---",
        f"source: {_escape_yaml(source.url)}",
    ]
    if source.author:
        lines.append(f"author: {_escape_yaml(source.author)}")
    if source.date_published:
        lines.append(f"date_published: {_escape_yaml(source.date_published)}")
    lines.append(f"date_saved: {saved.strftime('%Y-%m-%d')}")
    if note.suggested_tags:
        lines.append("tags:")
        for tag in note.suggested_tags:
            lines.append(f"  - {_escape_yaml(tag)}")
    lines.append(f"type: {note.type}")
    if note.type == "social-media":
        lines.append(f"platform: {note.platform}")
    lines.extend([
        "status: unread",
        "---",
    ])
    return "\n".join(lines)


def format_note(note: ProcessedNote, saved: Optional[date] = None) -> str:
    """Format a complete note with frontmatter and content."""
    lines = [
        format_frontmatter(note, saved),
        "",
        f"# {note.title}",
        "",
        "## Summary",
        "",
        note.summary,
        "",
    ]

    if note.type == "social-media":
        lines.extend(["## Key Points", ""])
        lines.extend(f"- {point}" for point in note.key_takeaways)
        lines.extend(["", "## Original Content", ""])
        lines.extend(f"> {line}" for line in note.source.content.split("\n"))
        lines.append("")
    else:
        lines.extend(["## Key Takeaways", ""])
        lines.extend(f"- {takeaway}" for takeaway in note.key_takeaways)
        lines.append("")

    lines.extend([
        "## Source",
        "",
        f"[{note.title}]({note.source.url})",
        "",
    ])
    return "\n".join(lines)


def hub_note_path(tag: str) -> str:
    return f"{HUB_FOLDER}/{tag}.md"


def backlink_line(note_title: str) -> str:
    return f"\n- [[{note_title}]]"


def format_tag_hub_note(tag: str, note_titles: list[str]) -> str:
    """Format the hub note that collects backlinks for one tag."""
    lines = [
        "---",
        "type: tag-hub",
        f"tag: {_escape_yaml(tag)}",
        "---",
        "",
        f"# {tag}",
        "",
        f"Notes tagged with #{tag}:",
        "",
    ]
    lines.extend(f"- [[{title}]]" for title in note_titles)
    return "\n".join(lines)
